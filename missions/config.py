# Missions — configuration
# Defaults, overridden by an optional YAML file, then by environment variables.

import os
import logging
import sys
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CONFIG_PATH = Path(__file__).parent.parent / "missions.yaml"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Runtime configuration for the mission board."""

    # Storage
    db_path: str = "~/.local/share/missions/missions.db"
    slot: str = "missions-possible-data"
    async_writes: bool = False

    # Session gate (Supabase when both are set, local accounts otherwise)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # HTTP surface
    api_secret: str = ""
    host: str = "127.0.0.1"
    port: int = 3000

    log_level: str = "INFO"

    def apply_env(self):
        """Environment variables win over file values."""
        env = os.environ
        if env.get("MISSIONS_DB"):
            self.db_path = env["MISSIONS_DB"]
        if env.get("MISSIONS_SLOT"):
            self.slot = env["MISSIONS_SLOT"]
        if env.get("MISSIONS_API_SECRET"):
            self.api_secret = env["MISSIONS_API_SECRET"]
        if env.get("SUPABASE_URL"):
            self.supabase_url = env["SUPABASE_URL"]
        if env.get("SUPABASE_ANON_KEY"):
            self.supabase_anon_key = env["SUPABASE_ANON_KEY"]
        if env.get("MISSIONS_LOG_LEVEL"):
            self.log_level = env["MISSIONS_LOG_LEVEL"]
        if env.get("MISSIONS_ASYNC_WRITES") is not None:
            self.async_writes = env["MISSIONS_ASYNC_WRITES"].strip().lower() in _TRUTHY

    def resolve_paths(self):
        self.db_path = str(Path(self.db_path).expanduser())

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logging.getLogger(__name__).warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        else:
            cfg = cls()
        cfg.apply_env()
        cfg.resolve_paths()
        return cfg


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [missions] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
