"""
Principal decorators for routes that are not tenant data routes.

Tenant data routes are already guarded by the tenant context middleware
(g.scope is set or the request was rejected). These decorators cover the
skip-listed routes: tenant selection, sign-out and platform admin.

Usage:
    @bp.route("/tenant-selection", methods=["PUT"])
    @require_platform_admin
    def select_tenant():
        ...
"""

import functools
import logging

from flask import g

from grc.services.security_observability import record_security_event
from grc.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_principal(f):
    """Decorator: require an authenticated principal (401 otherwise)."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "principal", None) is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return f(*args, **kwargs)

    return decorated


def require_platform_admin(f):
    """Decorator: require a platform admin principal (401 / 403 otherwise)."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        principal = getattr(g, "principal", None)
        if principal is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        if not principal.is_platform_admin:
            record_security_event(
                event_type="platform_admin_denied",
                reason=f.__name__,
                severity="medium",
                tenant_id=principal.tenant_id,
                user_id=principal.user_id,
            )
            logger.warning("User %s denied platform admin route %s",
                           principal.user_id, f.__name__)
            return api_error(E.FORBIDDEN, "Platform admin access required")
        return f(*args, **kwargs)

    return decorated
