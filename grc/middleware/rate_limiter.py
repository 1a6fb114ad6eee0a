"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter
instance is created in grc/__init__.py with no default limits; this
module applies granular limits per route category.

Limits are keyed by effective tenant when a scope is resolved, else by
remote IP, so one noisy tenant cannot exhaust another's quota.

Usage:
    from grc.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import g, request as flask_request

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"
ADMIN_LIMIT = "30/minute"


def rate_limit_key():
    """Dynamic rate limit key: effective tenant if available, else remote IP."""
    scope = getattr(g, "scope", None)
    if scope is not None and scope.tenant_id:
        return f"tenant:{scope.tenant_id}"
    principal = getattr(g, "principal", None)
    if principal is not None:
        return f"user:{principal.user_id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits:
        - Assessment / response writes:  60/minute
        - Framework catalogue, scope:    200/minute
        - Tenant / security admin:       30/minute
        - Health check:                  exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("assessment")
    if bp:
        limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("framework", "scope"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("tenant")
    if bp:
        limiter.limit(ADMIN_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: write: %s, read: %s, admin: %s",
        WRITE_LIMIT, READ_LIMIT, ADMIN_LIMIT,
    )
