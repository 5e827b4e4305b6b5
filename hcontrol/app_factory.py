"""Application factory.

Wires configuration, the database engine, logging, error handlers and every
API blueprint into a Flask app.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from flask import Flask

from .admin_api import bp as admin_api_bp
from .auth import bp as auth_bp, ensure_bootstrap_admin, probe_bp as auth_probe_bp
from .businesses_api import bp as businesses_api_bp
from .cleaning_logs_api import bp as cleaning_logs_api_bp
from .cleaning_templates_api import bp as cleaning_templates_api_bp
from .config import Config
from .db import init_engine, remove_session
from .diary_devices_api import bp as diary_devices_api_bp
from .errors import register_error_handlers
from .establishments_api import bp as establishments_api_bp
from .export_api import bp as export_api_bp
from .food_diary_api import bp as food_diary_api_bp
from .food_items_api import bp as food_items_api_bp
from .food_templates_api import bp as food_templates_api_bp
from .incoming_controls_api import bp as incoming_controls_api_bp
from .logging_setup import configure_logging
from .personnel_api import bp as personnel_api_bp
from .seed_api import bp as seed_api_bp
from .temperature_logs_api import bp as temperature_logs_api_bp, cron_bp
from .temperature_readings_api import bp as temperature_readings_api_bp

BLUEPRINTS = (
    auth_bp,
    auth_probe_bp,
    businesses_api_bp,
    temperature_logs_api_bp,
    cron_bp,
    establishments_api_bp,
    seed_api_bp,
    personnel_api_bp,
    diary_devices_api_bp,
    temperature_readings_api_bp,
    incoming_controls_api_bp,
    cleaning_logs_api_bp,
    cleaning_templates_api_bp,
    food_items_api_bp,
    food_diary_api_bp,
    food_templates_api_bp,
    admin_api_bp,
    export_api_bp,
)


def create_app(config_override: dict[str, Any] | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)

    # --- Configuration ---
    cfg = Config.from_env()
    if config_override:
        known = {k: v for k, v in config_override.items() if hasattr(cfg, k)}
        if known:
            cfg.override(known)
    # Resolve a stable absolute sqlite path when DATABASE_URL is not provided
    if not os.getenv("DATABASE_URL") and not (config_override or {}).get("database_url"):
        if str(cfg.database_url).startswith("sqlite:///"):
            os.makedirs(app.instance_path, exist_ok=True)
            cfg.database_url = f"sqlite:///{os.path.join(app.instance_path, 'hcontrol.db')}"
    app.config.update(cfg.to_flask_dict())
    for k, v in (config_override or {}).items():  # direct Flask config keys
        if k.isupper():
            app.config[k] = v
    # Cyrillic stays readable in JSON bodies
    app.json.ensure_ascii = False  # type: ignore[attr-defined]

    # --- DB setup ---
    init_engine(cfg.database_url, force=bool(config_override and "database_url" in config_override))
    app.logger.info("DB_URL=%s", cfg.database_url)

    @app.teardown_appcontext
    def _remove_session(_exc: BaseException | None) -> None:
        remove_session()

    # --- Logging + errors ---
    configure_logging(app)
    register_error_handlers(app)

    # --- Blueprints ---
    for bp in BLUEPRINTS:
        app.register_blueprint(bp)

    @app.get("/healthz")
    def healthz() -> tuple[dict[str, Any], int]:
        return {"status": "ok"}, 200

    with app.app_context():
        ensure_bootstrap_admin()

    return app


__all__ = ["create_app"]
