"""
Framework Blueprint: compliance framework catalogue.

Endpoints:
    GET  /api/v1/frameworks                    : visible frameworks (?standard=true)
    POST /api/v1/frameworks                    : create framework
    GET  /api/v1/frameworks/<id>               : framework with its tree
    POST /api/v1/frameworks/<id>/domains       : add domain
    POST /api/v1/frameworks/<id>/controls      : add control
    POST /api/v1/controls/<id>/questions       : add question
    POST /api/v1/questions/<id>/deactivate     : retire a question
    POST /api/v1/questions/<id>/activate       : bring it back

Layer contract: no ORM calls here; g.scope is passed to every service call.
"""

from flask import Blueprint, g, jsonify, request

from grc.blueprints import get_json_body, register_error_handlers
from grc.services import framework_service

framework_bp = register_error_handlers(Blueprint("framework", __name__, url_prefix="/api/v1"))


@framework_bp.route("/frameworks", methods=["GET"])
def list_frameworks():
    standard_only = request.args.get("standard", "").lower() in ("1", "true", "yes")
    items = framework_service.list_frameworks(g.scope, standard_only=standard_only)
    return jsonify({"items": items, "total": len(items)}), 200


@framework_bp.route("/frameworks", methods=["POST"])
def create_framework():
    fw = framework_service.create_framework(g.scope, g.principal, get_json_body())
    return jsonify(fw), 201


@framework_bp.route("/frameworks/<framework_id>", methods=["GET"])
def get_framework(framework_id):
    fw = framework_service.get_framework(g.scope, framework_id)
    return jsonify(fw.to_dict(include_tree=True)), 200


@framework_bp.route("/frameworks/<framework_id>/domains", methods=["POST"])
def add_domain(framework_id):
    return jsonify(framework_service.add_domain(g.scope, framework_id, get_json_body())), 201


@framework_bp.route("/frameworks/<framework_id>/controls", methods=["POST"])
def add_control(framework_id):
    return jsonify(framework_service.add_control(g.scope, framework_id, get_json_body())), 201


@framework_bp.route("/controls/<control_id>/questions", methods=["POST"])
def add_question(control_id):
    return jsonify(framework_service.add_question(g.scope, control_id, get_json_body())), 201


@framework_bp.route("/questions/<question_id>/deactivate", methods=["POST"])
def deactivate_question(question_id):
    return jsonify(framework_service.set_question_active(g.scope, question_id, False)), 200


@framework_bp.route("/questions/<question_id>/activate", methods=["POST"])
def activate_question(question_id):
    return jsonify(framework_service.set_question_active(g.scope, question_id, True)), 200
