"""Shared fixtures for mission board tests."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from missions.auth import LocalSessionGate
from missions.schema import Category, Task
from missions.session import MissionSession
from missions.store import SnapshotStore


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(str(tmp_path / "missions.db"))


@pytest.fixture
def gate():
    return LocalSessionGate()


@pytest.fixture
def signed_in_session(store, gate):
    session = MissionSession(store, gate=gate)
    gate.sign_up("ada@example.com", "secret123", "Ada")
    yield session
    session.close()


@pytest.fixture
def abc_category():
    """Category with tasks A, B, C in that order."""
    return Category(
        id="cat-1",
        name="Work",
        color="#4ECDC4",
        tasks=(
            Task(id="a", text="A", created_at=1),
            Task(id="b", text="B", created_at=2),
            Task(id="c", text="C", created_at=3),
        ),
    )
