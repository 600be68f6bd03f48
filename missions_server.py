#!/usr/bin/env python3
"""
Missions Board Server
---------------------
JSON API over a single mission session: sign in, then manage categories and
their ordered tasks. The board snapshot lives in a local SQLite slot.

Usage:
    python missions_server.py --port 3000
    python missions_server.py --config missions.yaml --db /tmp/missions.db

API:
    GET    /health                                  → { status, db, session }
    GET    /api/board                               → { categories, stats, user }
    GET    /api/colors                              → { colors }
    POST   /api/auth/signin    { email, password }
    POST   /api/auth/signup    { email, password, name }
    POST   /api/auth/signout
    GET    /api/auth/me
    POST   /api/categories                          { name, color }
    PUT    /api/categories/<id>                     { name?, color? }
    DELETE /api/categories/<id>                     { confirm: true }
    POST   /api/categories/<id>/tasks               { text }
    POST   /api/categories/<id>/tasks/<tid>/toggle
    POST   /api/categories/<id>/tasks/<tid>/move    { direction: up|down }
    DELETE /api/categories/<id>/tasks/<tid>

Mutating routes require an X-API-Key header when api_secret is configured.
"""

import hmac
import logging
from dataclasses import replace
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request

from missions.auth import AuthError, LocalSessionGate, SessionGate, SupabaseSessionGate
from missions.config import Config, setup_logging
from missions.schema import (
    PRESET_COLORS,
    Direction,
    collection_to_list,
    is_valid_category_name,
    is_valid_task_text,
)
from missions.session import MissionSession
from missions.store import SnapshotStore
from missions.writer import BackgroundWriter, InlineWriter

logger = logging.getLogger(__name__)


def build_gate(config: Config) -> SessionGate:
    if config.use_supabase:
        return SupabaseSessionGate(config.supabase_url, config.supabase_anon_key)
    return LocalSessionGate()


def create_app(
    config: Optional[Config] = None,
    gate: Optional[SessionGate] = None,
    store: Optional[SnapshotStore] = None,
    writer=None,
) -> Flask:
    config = config or Config.load()
    store = store or SnapshotStore(config.db_path, slot=config.slot)
    gate = gate or build_gate(config)
    if writer is None:
        writer = BackgroundWriter(store) if config.async_writes else InlineWriter(store)
    session = MissionSession(store, gate=gate, writer=writer)

    app = Flask(__name__)
    app.config["MISSIONS"] = config
    app.extensions["missions_session"] = session

    # ── Auth ─────────────────────────────────────────────────────────────────

    def require_api_key(f):
        """Decorator: reject requests without a valid X-API-Key header."""
        @wraps(f)
        def decorated(*args, **kwargs):
            if not config.api_secret:
                return f(*args, **kwargs)
            provided = request.headers.get("X-API-Key", "").strip()
            if not hmac.compare_digest(provided, config.api_secret):
                code = 401 if not provided else 403
                return jsonify({"error": "Unauthorized"}), code
            return f(*args, **kwargs)
        return decorated

    def require_session(f):
        """Decorator: board routes need a signed-in user."""
        @wraps(f)
        def decorated(*args, **kwargs):
            if not session.active:
                return jsonify({"error": "Not signed in"}), 401
            return f(*args, **kwargs)
        return decorated

    def body() -> dict:
        data = request.get_json(force=True, silent=True)
        return data if isinstance(data, dict) else {}

    def user_json():
        identity = gate.get_current_user()
        if identity is None:
            return None
        return {"name": identity.display_name, "email": identity.email}

    def valid_color(value) -> bool:
        return isinstance(value, str) and bool(value.strip())

    def category_not_found():
        return jsonify({"error": "Category not found"}), 404

    # ── Routes ───────────────────────────────────────────────────────────────

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "db": store.db_path, "session": session.active})

    @app.route("/api/colors")
    def api_colors():
        return jsonify({"colors": list(PRESET_COLORS)})

    @app.route("/api/auth/me")
    def api_me():
        return jsonify({"user": user_json()})

    @app.route("/api/auth/signin", methods=["POST"])
    def api_signin():
        data = body()
        try:
            gate.sign_in(data.get("email", ""), data.get("password", ""))
        except AuthError as e:
            logger.warning(f"Sign-in rejected for {data.get('email', '')}: {e.message}")
            return jsonify({"error": e.message}), 401
        return jsonify({"user": user_json()})

    @app.route("/api/auth/signup", methods=["POST"])
    def api_signup():
        data = body()
        try:
            identity = gate.sign_up(
                data.get("email", ""), data.get("password", ""), data.get("name", "")
            )
        except AuthError as e:
            return jsonify({"error": e.message}), 400
        if identity is None:
            return jsonify({"confirmation_sent": True, "user": None}), 201
        return jsonify({"confirmation_sent": False, "user": user_json()}), 201

    @app.route("/api/auth/signout", methods=["POST"])
    def api_signout():
        gate.sign_out()
        return jsonify({"user": None})

    @app.route("/api/board")
    @require_session
    def api_board():
        return jsonify({
            "categories": collection_to_list(session.categories),
            "stats": session.stats(),
            "user": user_json(),
        })

    @app.route("/api/categories", methods=["POST"])
    @require_api_key
    @require_session
    def api_add_category():
        data = body()
        name = data.get("name", "")
        if not is_valid_category_name(name):
            return jsonify({"error": "name is required"}), 400
        color = data.get("color", PRESET_COLORS[0])
        if not valid_color(color):
            return jsonify({"error": "color must be a non-empty string"}), 400
        category = session.add_category(name, color.strip())
        return jsonify({"category": category.to_dict()}), 201

    @app.route("/api/categories/<category_id>", methods=["PUT"])
    @require_api_key
    @require_session
    def api_update_category(category_id):
        category = session.get_category(category_id)
        if category is None:
            return category_not_found()
        data = body()
        changes = {}
        if "name" in data:
            if not is_valid_category_name(data["name"]):
                return jsonify({"error": "name must not be blank"}), 400
            changes["name"] = data["name"].strip()
        if "color" in data:
            if not valid_color(data["color"]):
                return jsonify({"error": "color must be a non-empty string"}), 400
            changes["color"] = data["color"].strip()
        updated = replace(category, **changes)
        session.update_category(updated)
        return jsonify({"category": updated.to_dict()})

    @app.route("/api/categories/<category_id>", methods=["DELETE"])
    @require_api_key
    @require_session
    def api_delete_category(category_id):
        if session.get_category(category_id) is None:
            return category_not_found()
        if body().get("confirm") is not True:
            return jsonify({"error": "Deleting a category requires confirm: true"}), 409
        session.delete_category(category_id)
        logger.info(f"Deleted category {category_id}")
        return jsonify({"deleted": category_id})

    @app.route("/api/categories/<category_id>/tasks", methods=["POST"])
    @require_api_key
    @require_session
    def api_add_task(category_id):
        if session.get_category(category_id) is None:
            return category_not_found()
        text = body().get("text", "")
        if not is_valid_task_text(text):
            return jsonify({"error": "text is required"}), 400
        updated = session.add_task(category_id, text)
        return jsonify({"category": updated.to_dict(), "task": updated.tasks[-1].to_dict()}), 201

    @app.route("/api/categories/<category_id>/tasks/<task_id>/toggle", methods=["POST"])
    @require_api_key
    @require_session
    def api_toggle_task(category_id, task_id):
        updated = session.toggle_task(category_id, task_id)
        if updated is None:
            return category_not_found()
        return jsonify({"category": updated.to_dict()})

    @app.route("/api/categories/<category_id>/tasks/<task_id>/move", methods=["POST"])
    @require_api_key
    @require_session
    def api_move_task(category_id, task_id):
        direction = Direction.from_str(str(body().get("direction", "")))
        if direction is None:
            return jsonify({"error": "direction must be 'up' or 'down'"}), 400
        updated = session.move_task(category_id, task_id, direction)
        if updated is None:
            return category_not_found()
        return jsonify({"category": updated.to_dict()})

    @app.route("/api/categories/<category_id>/tasks/<task_id>", methods=["DELETE"])
    @require_api_key
    @require_session
    def api_delete_task(category_id, task_id):
        updated = session.delete_task(category_id, task_id)
        if updated is None:
            return category_not_found()
        return jsonify({"category": updated.to_dict()})

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main():
    import argparse

    parser = argparse.ArgumentParser(description="Missions Board Server")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to missions.db (overrides MISSIONS_DB env var)")
    parser.add_argument("--config", help="Path to a YAML config file")
    args = parser.parse_args()

    config = Config.load(args.config)
    if args.db:
        config.db_path = args.db
        config.resolve_paths()
    host = args.host or config.host
    port = args.port or config.port

    setup_logging(config.log_level)
    app = create_app(config)
    gate_name = "supabase" if config.use_supabase else "local"

    print(f"""
╔═══════════════════════════════════════╗
║  Missions Board Server                ║
╠═══════════════════════════════════════╣
║  URL:  http://{host}:{port:<20}║
║  DB:   {config.db_path:<31}║
║  Auth: {gate_name:<31}║
╚═══════════════════════════════════════╝
""")

    try:
        app.run(host=host, port=port, debug=False, threaded=False)
    finally:
        app.extensions["missions_session"].close()


if __name__ == "__main__":
    main()
