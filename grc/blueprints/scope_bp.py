"""
Scope Blueprint: effective scope and the platform-admin tenant selector.

Endpoints:
    GET    /api/v1/scope            : scope resolved for the caller
    GET    /api/v1/tenant-selection : current admin selection (may be null)
    PUT    /api/v1/tenant-selection : select a tenant (platform admin)
    DELETE /api/v1/tenant-selection : clear the selection (platform admin)
    POST   /api/v1/auth/sign-out    : drop the selection and the session

The selection lives in the signed session cookie (SessionTenantSelectionStore);
the identity provider owns the actual sign-in.
"""

import logging

from flask import Blueprint, current_app, g, jsonify, session

from grc.blueprints import get_json_body, register_error_handlers
from grc.middleware.permission_required import require_platform_admin, require_principal
from grc.middleware.tenant_context import resolve_request_scope
from grc.services import tenant_service
from grc.services.tenant_scope import is_sentinel
from grc.services.tenant_selection import current_store
from grc.utils.errors import E, api_error

logger = logging.getLogger(__name__)

scope_bp = register_error_handlers(Blueprint("scope", __name__, url_prefix="/api/v1"))


@scope_bp.route("/scope", methods=["GET"])
def get_scope():
    principal = g.principal
    return jsonify({
        "user_id": principal.user_id,
        "is_platform_admin": principal.is_platform_admin,
        "scope": g.scope.to_dict(),
    }), 200


@scope_bp.route("/tenant-selection", methods=["GET"])
@require_principal
def get_selection():
    selection = current_store().get()
    return jsonify({
        "selected_tenant_id": None if selection.is_empty else selection.selected_tenant_id,
    }), 200


@scope_bp.route("/tenant-selection", methods=["PUT"])
@require_platform_admin
def select_tenant():
    """Body: {"tenant_id": "<uuid>"}. The tenant must exist and be active."""
    data = get_json_body()
    tenant_id = str(data.get("tenant_id") or "").strip()
    if not tenant_id:
        return api_error(E.VALIDATION_REQUIRED, "tenant_id is required")
    if is_sentinel(tenant_id, current_app.config["TENANT_SENTINEL_VALUES"]):
        return api_error(E.VALIDATION_INVALID, f"{tenant_id!r} is not a tenant identifier")

    tenant = tenant_service.get_active_tenant(tenant_id)
    current_store().select(tenant.id)
    logger.info("Platform admin %s selected tenant %s", g.principal.user_id, tenant.id)
    return jsonify({
        "selected_tenant_id": tenant.id,
        "scope": resolve_request_scope(g.principal).to_dict(),
    }), 200


@scope_bp.route("/tenant-selection", methods=["DELETE"])
@require_platform_admin
def clear_selection():
    current_store().clear()
    logger.info("Platform admin %s cleared tenant selection", g.principal.user_id)
    return jsonify({
        "selected_tenant_id": None,
        "scope": resolve_request_scope(g.principal).to_dict(),
    }), 200


@scope_bp.route("/auth/sign-out", methods=["POST"])
def sign_out():
    """Forget the tenant selection together with the rest of the session."""
    current_store().clear()
    session.clear()
    return "", 204
