"""
Tenant Context Middleware: resolves the effective scope for API requests.

  1. g.principal is already set by jwt_auth middleware
  2. The admin tenant selection is read from the session store
  3. resolve_scope() combines both into g.scope
  4. Every service call downstream receives g.scope

Data routes fail closed: no principal → 401, an unresolvable tenant →
403 ERR_TENANT_REQUIRED. The request never continues with an unscoped
(or "all tenants") view for a non-admin.

Chain order:
  jwt_auth.py  →  tenant_context.py  →  route handler
"""

import logging

from flask import current_app, g, request

from grc.core.exceptions import TenantScopeError
from grc.services.security_observability import record_security_event
from grc.services.tenant_scope import DEFAULT_SENTINELS, resolve_scope
from grc.services.tenant_selection import current_store
from grc.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that are not tenant data routes. They still get g.principal, and
# their views enforce their own access rules.
TENANT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/api/v1/tenant-selection",
    "/api/v1/auth/",
    "/api/v1/tenants",
    "/api/v1/security/",
)


def resolve_request_scope(principal):
    """Resolve the scope for ``principal`` using the session's selection."""
    sentinels = current_app.config.get("TENANT_SENTINEL_VALUES", DEFAULT_SENTINELS)
    return resolve_scope(principal, current_store().get(), sentinels=sentinels)


def init_tenant_context(app):
    """Register tenant context middleware as a before_request hook."""

    @app.before_request
    def _tenant_context():
        g.scope = None

        if not request.path.startswith("/api/v1/"):
            return None
        if request.path.startswith(TENANT_SKIP_PREFIXES):
            return None
        if request.method == "OPTIONS":
            return None

        principal = getattr(g, "principal", None)
        if principal is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")

        try:
            g.scope = resolve_request_scope(principal)
        except TenantScopeError as exc:
            record_security_event(
                event_type="tenant_scope_error",
                reason=type(exc).__name__,
                severity="medium",
                tenant_id=principal.tenant_id,
                user_id=principal.user_id,
            )
            logger.warning("Tenant scope error for user %s: %s", principal.user_id, exc)
            return api_error(E.TENANT_REQUIRED, str(exc))

        return None

    logger.debug("Tenant context middleware installed")
