"""
SiteLedger
Flask Application Factory.

Usage:
    from siteledger import create_app
    app = create_app()           # defaults to APP_ENV, else "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from siteledger.config import basedir, config
from siteledger.middleware.jwt_auth import init_jwt_middleware
from siteledger.middleware.logging_config import configure_logging
from siteledger.middleware.rate_limiter import init_rate_limits
from siteledger.middleware.timing import init_request_timing
from siteledger.models import db
from siteledger.services.storage_service import init_storage
from siteledger.utils.errors import E, api_error

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit: apply per-blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),  # Redis in production, memory for dev
)


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
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        os.makedirs(os.path.join(basedir, "instance"), exist_ok=True)
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)
    init_storage(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT auth middleware (sets g.actor) ───────────────────────────────
    init_jwt_middleware(app)

    # ── Request guard (Content-Type) ─────────────────────────────────────
    @app.before_request
    def _guard_request():
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                return api_error(
                    E.VALIDATION_INVALID, "Content-Type must be application/json", status=415
                )
        return None

    # ── Import all models so Alembic can detect them ─────────────────────
    from siteledger.models import audit as _audit_models             # noqa: F401
    from siteledger.models import auth as _auth_models               # noqa: F401
    from siteledger.models import daily_report as _daily_report_models  # noqa: F401
    from siteledger.models import file_object as _file_object_models    # noqa: F401
    from siteledger.models import project as _project_models         # noqa: F401

    # ── Auto-create tables outside tests (CREATE IF NOT EXISTS) ─────────
    if not app.config.get("TESTING"):
        with app.app_context():
            db.create_all()
            app.logger.info("db.create_all() completed successfully")

    # ── Blueprints ───────────────────────────────────────────────────────
    from siteledger.blueprints.auth_bp import auth_bp
    from siteledger.blueprints.daily_reports_bp import daily_reports_bp
    from siteledger.blueprints.dashboard_bp import dashboard_bp
    from siteledger.blueprints.files_bp import files_bp
    from siteledger.blueprints.health_bp import health_bp
    from siteledger.blueprints.projects_bp import projects_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(daily_reports_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(health_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found")

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(413)
    def too_large(e):
        return api_error(E.VALIDATION_INVALID, "Request body too large", status=413)

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"retry_after": e.description})

    @app.errorhandler(500)
    def server_error(e):
        # Details stay in the log; clients get a generic message
        logger.error("500 error on %s %s", request.method, request.path,
                     exc_info=getattr(e, "original_exception", None) or e)
        db.session.rollback()
        return api_error(E.INTERNAL, "Internal server error")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
