"""
Assessment Blueprint: assessments and their responses.

Endpoints:
    GET    /api/v1/assessments                      : list (?status=&framework_id=)
    POST   /api/v1/assessments                      : create
    GET    /api/v1/assessments/<id>                 : detail
    PUT    /api/v1/assessments/<id>                 : update name/description/due_date/status
    DELETE /api/v1/assessments/<id>                 : delete (responses cascade)
    POST   /api/v1/assessments/<id>/recompute       : re-run progress aggregation
    GET    /api/v1/assessments/<id>/responses       : list responses
    POST   /api/v1/assessments/<id>/responses       : answer a question (?upsert=false to append)
    PUT    /api/v1/responses/<id>                   : update / move a response
    DELETE /api/v1/responses/<id>                   : delete a response

Progress fields in request bodies are ignored; they are recomputed after
every response write.
"""

from flask import Blueprint, g, jsonify, request

from grc.blueprints import get_json_body, register_error_handlers
from grc.services import assessment_service, response_service
from grc.utils.errors import E, api_error

assessment_bp = register_error_handlers(Blueprint("assessment", __name__, url_prefix="/api/v1"))


# ═════════════════════════════════════════════════════════════════════════
# Assessments
# ═════════════════════════════════════════════════════════════════════════


@assessment_bp.route("/assessments", methods=["GET"])
def list_assessments():
    items = assessment_service.list_assessments(
        g.scope,
        status=request.args.get("status") or None,
        framework_id=request.args.get("framework_id") or None,
    )
    return jsonify({"items": items, "total": len(items)}), 200


@assessment_bp.route("/assessments", methods=["POST"])
def create_assessment():
    a = assessment_service.create_assessment(g.scope, g.principal, get_json_body())
    return jsonify(a), 201


@assessment_bp.route("/assessments/<assessment_id>", methods=["GET"])
def get_assessment(assessment_id):
    return jsonify(assessment_service.get_assessment(g.scope, assessment_id).to_dict()), 200


@assessment_bp.route("/assessments/<assessment_id>", methods=["PUT"])
def update_assessment(assessment_id):
    a = assessment_service.update_assessment(g.scope, assessment_id, get_json_body())
    return jsonify(a), 200


@assessment_bp.route("/assessments/<assessment_id>", methods=["DELETE"])
def delete_assessment(assessment_id):
    assessment_service.delete_assessment(g.scope, assessment_id)
    return "", 204


@assessment_bp.route("/assessments/<assessment_id>/recompute", methods=["POST"])
def recompute_assessment(assessment_id):
    summary = assessment_service.recompute(g.scope, assessment_id)
    if summary is None:
        return api_error(E.INTERNAL, "Progress recompute failed")
    return jsonify(summary), 200


# ═════════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════════


@assessment_bp.route("/assessments/<assessment_id>/responses", methods=["GET"])
def list_responses(assessment_id):
    items = response_service.list_responses(g.scope, assessment_id)
    return jsonify({"items": items, "total": len(items)}), 200


@assessment_bp.route("/assessments/<assessment_id>/responses", methods=["POST"])
def save_response(assessment_id):
    upsert = request.args.get("upsert", "true").lower() not in ("0", "false", "no")
    result = response_service.save_response(
        g.scope, assessment_id, get_json_body(), g.principal.user_id, upsert=upsert,
    )
    return jsonify(result), 201 if result["created"] else 200


@assessment_bp.route("/responses/<response_id>", methods=["PUT"])
def update_response(response_id):
    result = response_service.update_response(
        g.scope, response_id, get_json_body(), g.principal.user_id,
    )
    return jsonify(result), 200


@assessment_bp.route("/responses/<response_id>", methods=["DELETE"])
def delete_response(response_id):
    progress = response_service.delete_response(g.scope, response_id)
    return jsonify({"deleted": response_id, "progress": progress}), 200
