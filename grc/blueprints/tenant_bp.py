"""
Tenant Blueprint: platform admin tenant registry and security alerts.

Endpoints:
    GET   /api/v1/tenants             : list tenants (?search=)
    POST  /api/v1/tenants             : create tenant
    PATCH /api/v1/tenants/<id>        : activate / deactivate
    GET   /api/v1/security/alerts     : recent security events + alerts

Every route requires a platform admin principal.
"""

from flask import Blueprint, jsonify, request

from grc.blueprints import get_json_body, register_error_handlers
from grc.middleware.permission_required import require_platform_admin
from grc.services import tenant_service
from grc.services.security_observability import (
    evaluate_security_alerts,
    get_recent_security_events,
)
from grc.utils.errors import E, api_error

tenant_bp = register_error_handlers(Blueprint("tenant", __name__, url_prefix="/api/v1"))


@tenant_bp.route("/tenants", methods=["GET"])
@require_platform_admin
def list_tenants():
    search = request.args.get("search", "", type=str).strip()
    items = tenant_service.list_tenants(search=search)
    return jsonify({"items": items, "total": len(items)}), 200


@tenant_bp.route("/tenants", methods=["POST"])
@require_platform_admin
def create_tenant():
    data = get_json_body()
    tenant = tenant_service.create_tenant(data.get("name"), data.get("slug") or "")
    return jsonify(tenant), 201


@tenant_bp.route("/tenants/<tenant_id>", methods=["PATCH"])
@require_platform_admin
def update_tenant(tenant_id):
    data = get_json_body()
    if not isinstance(data.get("is_active"), bool):
        return api_error(E.VALIDATION_REQUIRED, "is_active (boolean) is required")
    return jsonify(tenant_service.set_tenant_active(tenant_id, data["is_active"])), 200


@tenant_bp.route("/security/alerts", methods=["GET"])
@require_platform_admin
def security_alerts():
    seconds = request.args.get("seconds", 3600, type=int)
    event_type = request.args.get("event_type") or None
    events = get_recent_security_events(seconds=seconds, event_type=event_type)
    result = evaluate_security_alerts()
    result["events"] = events[-200:]
    return jsonify(result), 200
