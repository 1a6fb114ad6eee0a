"""
Framework Service: compliance framework catalogue.

Visibility:
    - a tenant sees its own frameworks plus every standard (shared) one
    - standard frameworks are created and edited only by platform admins
      with an unrestricted scope (no tenant selected)
    - tenant frameworks are edited only inside their tenant's scope

Retiring a question (active=False) removes it from every progress
denominator, so the assessments on that framework are recomputed.
"""

import logging

from grc.core.exceptions import AccessDeniedError, NotFoundError, ValidationError
from grc.models import db
from grc.models.framework import QUESTION_TYPES, Control, Domain, Framework, Question
from grc.services import access_policy
from grc.services.progress_aggregator import recompute_all
from grc.services.tenant_scope import EffectiveScope, Principal

logger = logging.getLogger(__name__)


def _required(data: dict, *fields: str) -> None:
    errors = {}
    for f in fields:
        value = data.get(f)
        if value is not None and not isinstance(value, str):
            errors[f] = "Must be a string."
        elif not (value or "").strip():
            errors[f] = "Required."
    if errors:
        raise ValidationError("Validation failed", details=errors)


# ═══════════════════════════════════════════════════════════════
# Frameworks
# ═══════════════════════════════════════════════════════════════

def list_frameworks(scope: EffectiveScope, *, standard_only: bool = False) -> list[dict]:
    stmt = db.select(Framework).order_by(Framework.name)
    stmt = access_policy.scope_query(stmt, Framework, scope, include_standard=True)
    if standard_only:
        stmt = stmt.where(Framework.is_standard.is_(True))
    return [f.to_dict() for f in db.session.execute(stmt).scalars().all()]


def get_framework(scope: EffectiveScope, framework_id: str) -> Framework:
    """Readable framework or NotFoundError."""
    fw = db.session.get(Framework, framework_id)
    return access_policy.ensure_readable(scope, fw, "Framework", framework_id)


def get_writable_framework(scope: EffectiveScope, framework_id: str) -> Framework:
    """Framework the scope may modify.

    A tenant already sees standard frameworks, so refusing one is a 403;
    anything else outside the scope stays a 404.
    """
    fw = get_framework(scope, framework_id)
    if fw.is_standard and not access_policy.can_write(scope, fw):
        raise AccessDeniedError("Standard frameworks can only be changed by a platform admin")
    return access_policy.ensure_writable(scope, fw, "Framework", framework_id)


def create_framework(scope: EffectiveScope, principal: Principal, data: dict) -> dict:
    """Create a tenant framework, or a standard one for platform admins.

    Raises:
        ValidationError: missing name/code.
        AccessDeniedError: non-admin asked for is_standard, or an admin
            asked for it while a tenant is selected.
        MissingTenantError: tenant framework requested without a concrete tenant.
    """
    _required(data, "name", "code")
    is_standard = bool(data.get("is_standard"))

    if is_standard:
        if not principal.is_platform_admin:
            raise AccessDeniedError("Only platform admins can create standard frameworks")
        if not scope.is_unrestricted:
            raise AccessDeniedError(
                "Clear the tenant selection before creating a standard framework"
            )
        tenant_id = None
    else:
        tenant_id = scope.require_tenant()

    fw = Framework(
        tenant_id=tenant_id,
        name=data["name"].strip(),
        code=data["code"].strip(),
        description=data.get("description", ""),
        version=data.get("version"),
        category=data.get("category"),
        is_standard=is_standard,
    )
    db.session.add(fw)
    db.session.commit()
    logger.info("Framework created: %s (%s) standard=%s tenant=%s",
                fw.code, fw.id, is_standard, tenant_id)
    return fw.to_dict()


# ═══════════════════════════════════════════════════════════════
# Hierarchy: domains → controls → questions
# ═══════════════════════════════════════════════════════════════

def add_domain(scope: EffectiveScope, framework_id: str, data: dict) -> dict:
    fw = get_writable_framework(scope, framework_id)
    _required(data, "name")
    domain = Domain(
        framework_id=fw.id,
        tenant_id=fw.tenant_id,
        name=data["name"].strip(),
        code=data.get("code"),
        order=data.get("order", 0),
        weight=data.get("weight", 1),
    )
    db.session.add(domain)
    db.session.commit()
    return domain.to_dict()


def add_control(scope: EffectiveScope, framework_id: str, data: dict) -> dict:
    fw = get_writable_framework(scope, framework_id)
    _required(data, "code", "title")

    domain_id = data.get("domain_id")
    if domain_id:
        domain = db.session.get(Domain, domain_id)
        if domain is None or domain.framework_id != fw.id:
            raise ValidationError("Domain does not belong to this framework",
                                  details={"domain_id": domain_id})

    control = Control(
        framework_id=fw.id,
        domain_id=domain_id,
        tenant_id=fw.tenant_id,
        code=data["code"].strip(),
        title=data["title"].strip(),
        objective=data.get("objective", ""),
        control_type=data.get("control_type"),
        criticality=data.get("criticality", "media"),
        weight=data.get("weight", 1),
        order=data.get("order", 0),
    )
    db.session.add(control)
    db.session.commit()
    return control.to_dict()


def _get_writable_control(scope: EffectiveScope, control_id: str) -> Control:
    control = db.session.get(Control, control_id)
    if control is None:
        raise NotFoundError(resource="Control", resource_id=control_id)
    get_writable_framework(scope, control.framework_id)
    return control


def add_question(scope: EffectiveScope, control_id: str, data: dict) -> dict:
    control = _get_writable_control(scope, control_id)
    _required(data, "text")
    question_type = data.get("question_type", "sim_nao")
    if question_type not in QUESTION_TYPES:
        raise ValidationError(
            f"Invalid question_type '{question_type}'",
            details={"question_type": f"Must be one of: {', '.join(QUESTION_TYPES)}."},
        )
    options = data.get("options") or []
    if question_type == "multipla_escolha" and not options:
        raise ValidationError("Multiple-choice questions need options",
                              details={"options": "Required for multipla_escolha."})

    question = Question(
        control_id=control.id,
        tenant_id=control.tenant_id,
        code=data.get("code"),
        text=data["text"].strip(),
        question_type=question_type,
        options=options,
        weight=data.get("weight", 1),
        order=data.get("order", 0),
        evidence_required=bool(data.get("evidence_required")),
    )
    db.session.add(question)
    db.session.commit()

    # A new active question grows every denominator on this framework
    recompute_all(framework_id=control.framework_id)
    return question.to_dict()


def set_question_active(scope: EffectiveScope, question_id: str, active: bool) -> dict:
    question = db.session.get(Question, question_id)
    if question is None:
        raise NotFoundError(resource="Question", resource_id=question_id)
    control = _get_writable_control(scope, question.control_id)

    if question.active != active:
        question.active = active
        db.session.commit()
        logger.info("Question %s %s", question_id, "reactivated" if active else "retired")
        recompute_all(framework_id=control.framework_id)
    return question.to_dict()
