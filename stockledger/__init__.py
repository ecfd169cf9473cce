import logging
import os
from typing import Any

from flask import Flask, jsonify
from sqlalchemy.pool import StaticPool

from .config import ENV_DIAGNOSTICS, EnvReader
from .extensions import db, migrate
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    os.makedirs(app.instance_path, exist_ok=True)

    _load_base_config(app, config)
    _configure_sqlite_engine_options(app)

    db.init_app(app)
    migrate.init_app(app, db)

    from . import models  # noqa: F401  # ensure models registered for Alembic
    from .blueprints.api import stock_api_bp

    app.register_blueprint(stock_api_bp, url_prefix='/api/stock')
    _add_core_routes(app)
    configure_logging(app)

    from .resilience import register_resilience_handlers

    register_resilience_handlers(app)

    from .management import register_commands

    register_commands(app)
    _run_optional_create_all(app)

    return app


def _load_base_config(app: Flask, config: dict[str, Any] | None) -> None:
    app.config.from_object("stockledger.config.Config")
    if config:
        app.config.update(config)
    app.config["ENV_DIAGNOSTICS"] = ENV_DIAGNOSTICS
    for warning in ENV_DIAGNOSTICS.get("warnings", ()):
        logger.warning("Environment configuration warning: %s", warning)

    if config and "DATABASE_URL" in config:
        app.config["SQLALCHEMY_DATABASE_URI"] = config["DATABASE_URL"]


def _configure_sqlite_engine_options(app):
    """Configure SQLite engine options for testing/local databases"""
    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if not uri.startswith("sqlite"):
        return
    opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}))
    # Remove pool args that SQLite does not accept
    for key in ("pool_size", "max_overflow", "pool_timeout", "pool_use_lifo"):
        opts.pop(key, None)
    connect_args = dict(opts.get("connect_args", {}))
    connect_args.setdefault("check_same_thread", False)
    # Concurrent writers wait for the database lock instead of failing at once.
    connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT_SECONDS)
    opts["connect_args"] = connect_args
    if uri in ("sqlite://", "sqlite:///:memory:"):
        opts["poolclass"] = StaticPool
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts


def _run_optional_create_all(app: Flask) -> None:
    if not EnvReader().bool("SQLALCHEMY_CREATE_ALL"):
        logger.debug("Schema is managed by Alembic migrations; skipping db.create_all()")
        return
    with app.app_context():
        db.create_all()
    logger.info("Created stock ledger tables with db.create_all() (SQLALCHEMY_CREATE_ALL)")


def _add_core_routes(app):
    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "env": app.config.get("ENV_DIAGNOSTICS", {}).get("active")})
