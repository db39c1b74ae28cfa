"""
Student Review Portal
Flask Application Factory.

Usage:
    from review_portal import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from review_portal.config import config
from review_portal.core.error_handlers import register_error_handlers
from review_portal.middleware.identity import init_identity
from review_portal.middleware.logging_config import configure_logging
from review_portal.middleware.rate_limiter import init_rate_limits
from review_portal.middleware.timing import init_request_timing
from review_portal.models import db

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
# No global limit; storage comes from RATELIMIT_STORAGE_URI
limiter = Limiter(key_func=get_remote_address, default_limits=[])


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())
    os.makedirs(app.instance_path, exist_ok=True)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing and identity ──────────────────────────────────────
    init_request_timing(app)
    init_identity(app)

    # ── Content-Type guard for API writes ────────────────────────────────
    @app.before_request
    def _guard_request():
        from flask import abort
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so create_all / Alembic can see them ───────────
    from review_portal.models import project as _project_models  # noqa: F401
    from review_portal.models import title as _title_models      # noqa: F401
    from review_portal.models import user as _user_models        # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from review_portal.blueprints.health_bp import health_bp
    from review_portal.blueprints.project_bp import project_bp
    from review_portal.blueprints.review_bp import review_bp
    from review_portal.blueprints.title_bp import title_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(title_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(review_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-titles")
    @click.option("--department", default=None, help="Department for the sample titles.")
    def seed_titles_cmd(department):
        """Seed the sample title corpus (idempotent)."""
        from review_portal.services.seed import seed_sample_titles
        count = seed_sample_titles(department or app.config["DEFAULT_DEPARTMENT"])
        click.echo(f"Seeded {count} new titles.")

    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Seed demo users plus the sample title corpus."""
        from review_portal.services.seed import seed_demo_data
        summary = seed_demo_data(app.config["DEFAULT_DEPARTMENT"])
        click.echo(f"Seeded {summary['users']} users and {summary['titles']} titles.")

    return app
