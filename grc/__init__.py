"""
GRC Scope Service
Flask Application Factory.

Usage:
    from grc import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.errors import RateLimitExceeded
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine, event as _sa_event
from werkzeug.exceptions import MethodNotAllowed, NotFound

from grc.config import config
from grc.middleware.jwt_auth import init_jwt_middleware
from grc.middleware.logging_config import configure_logging
from grc.middleware.rate_limiter import init_rate_limits, rate_limit_key
from grc.middleware.security_headers import init_security_headers
from grc.middleware.tenant_context import init_tenant_context
from grc.middleware.timing import init_request_timing
from grc.models import db
from grc.utils.errors import E, api_error

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[],                     # no global limit: apply per-blueprint
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
    # Instantiating runs the production config's required-variable checks
    app.config.from_object(config[config_name]())
    os.makedirs(app.instance_path, exist_ok=True)

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins == "*":
        CORS(app)
    elif cors_origins:
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()],
             supports_credentials=True)

    init_security_headers(app)
    init_request_timing(app)

    # Chain order: jwt_auth → tenant_context → limiter → route handler
    init_jwt_middleware(app)
    init_tenant_context(app)
    limiter.init_app(app)

    from grc.models import assessment as _assessment_models  # noqa: F401
    from grc.models import auth as _auth_models              # noqa: F401
    from grc.models import framework as _framework_models    # noqa: F401

    if app.config.get("TESTING") or config_name == "development":
        with app.app_context():
            db.create_all()

    from grc.blueprints.assessment_bp import assessment_bp
    from grc.blueprints.framework_bp import framework_bp
    from grc.blueprints.health_bp import health_bp
    from grc.blueprints.scope_bp import scope_bp
    from grc.blueprints.tenant_bp import tenant_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(scope_bp)
    app.register_blueprint(tenant_bp)
    app.register_blueprint(framework_bp)
    app.register_blueprint(assessment_bp)

    init_rate_limits(app, limiter)

    _register_error_handlers(app)
    _register_cli(app)

    return app


def _register_error_handlers(app):
    """JSON error bodies for errors raised outside blueprint handlers."""

    @app.errorhandler(NotFound)
    def not_found(error):
        return api_error(E.NOT_FOUND, "Resource not found")

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(error):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(RateLimitExceeded)
    def rate_limited(error):
        return api_error(E.RATE_LIMITED, f"Rate limit exceeded: {error.description}")

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("recompute-progress")
    @click.option("--assessment-id", default=None, help="Recompute a single assessment.")
    @click.option("--framework-id", default=None, help="Recompute every assessment of a framework.")
    def recompute_progress_command(assessment_id, framework_id):
        """Re-run progress aggregation over stored responses (idempotent)."""
        from grc.services.progress_aggregator import recompute_all, recompute_progress

        if assessment_id:
            summary = recompute_progress(assessment_id)
            if summary is None:
                raise click.ClickException(f"Could not recompute assessment {assessment_id}")
            click.echo(
                f"{summary['assessment_id']}: {summary['answered']}/{summary['total']} "
                f"→ {summary['percentual_conclusao']}% ({summary['status']})"
            )
            return
        updated = recompute_all(framework_id=framework_id)
        click.echo(f"Recomputed {updated} assessment(s)")
