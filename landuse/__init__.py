"""
Change of Land Use Portal
Flask Application Factory for the workflow backend-for-frontend.

Usage:
    from landuse import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from landuse.config import config
from landuse.integrations import backend_gateway as gw_module
from landuse.middleware.logging_config import configure_logging
from landuse.middleware.rate_limiter import init_rate_limits
from landuse.middleware.session_context import init_session_context
from landuse.middleware.timing import init_request_timing
from landuse.services.stage_registry import log_registry_conflicts

logger = logging.getLogger(__name__)

# Storage comes from RATELIMIT_STORAGE_URI in the app config
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # limits are applied per blueprint
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

    app = Flask(__name__)
    # Instantiate so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Request middleware ───────────────────────────────────────────────
    # Before the limiter so its per-user key can read g.session_ctx
    init_request_timing(app)
    init_session_context(app)

    # ── Extensions ───────────────────────────────────────────────────────
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Backend gateway ──────────────────────────────────────────────────
    gw_module.backend_gateway.configure(
        base_url=app.config["BACKEND_BASE_URL"],
        timeout=app.config["BACKEND_TIMEOUT"],
        upload_timeout=app.config["BACKEND_UPLOAD_TIMEOUT"],
    )

    # ── Blueprints ───────────────────────────────────────────────────────
    from landuse.blueprints.health_bp import health_bp
    from landuse.blueprints.navigation_bp import navigation_bp
    from landuse.blueprints.stages_bp import stages_bp
    from landuse.blueprints.workflow_bp import workflow_bp

    app.register_blueprint(workflow_bp)
    app.register_blueprint(stages_bp)
    app.register_blueprint(navigation_bp)
    app.register_blueprint(health_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def payload_too_large(e):
        return {"error": "Attachment too large"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error on %s: %s", request.path, e, exc_info=True)
        return {"error": "Internal server error"}, 500

    # ── Startup diagnostics ──────────────────────────────────────────────
    log_registry_conflicts()

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
