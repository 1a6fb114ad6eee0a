"""
Assessment Service: tenant-scoped assessment lifecycle.

Derived fields (percentual_conclusao, percentual_maturidade) are never
taken from user input; they belong to the progress aggregator. Manual
status changes are accepted for any value of ASSESSMENT_STATUSES.
"""

import logging

from grc.core.exceptions import ValidationError
from grc.models import db
from grc.models.assessment import ASSESSMENT_STATUSES, STATUS_PLANNED, Assessment
from grc.services import access_policy
from grc.services.framework_service import get_framework
from grc.services.progress_aggregator import recompute_progress
from grc.services.tenant_scope import EffectiveScope, Principal
from grc.utils.helpers import parse_date

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("name", "description", "due_date", "status")


def _validate_status(status: str) -> None:
    if status not in ASSESSMENT_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'",
            details={"status": f"Must be one of: {', '.join(ASSESSMENT_STATUSES)}."},
        )


def _name_error(value) -> str | None:
    if value is not None and not isinstance(value, str):
        return "Must be a string."
    if not (value or "").strip():
        return "Required."
    return None


def list_assessments(scope: EffectiveScope, *, status: str | None = None,
                     framework_id: str | None = None) -> list[dict]:
    stmt = db.select(Assessment).order_by(Assessment.created_at.desc())
    stmt = access_policy.scope_query(stmt, Assessment, scope)
    if status:
        _validate_status(status)
        stmt = stmt.where(Assessment.status == status)
    if framework_id:
        stmt = stmt.where(Assessment.framework_id == framework_id)
    return [a.to_dict() for a in db.session.execute(stmt).scalars().all()]


def get_assessment(scope: EffectiveScope, assessment_id: str) -> Assessment:
    a = db.session.get(Assessment, assessment_id)
    return access_policy.ensure_readable(scope, a, "Assessment", assessment_id)


def get_writable_assessment(scope: EffectiveScope, assessment_id: str) -> Assessment:
    a = db.session.get(Assessment, assessment_id)
    return access_policy.ensure_writable(scope, a, "Assessment", assessment_id)


def create_assessment(scope: EffectiveScope, principal: Principal, data: dict) -> dict:
    """Create an assessment in the scope's tenant.

    Raises:
        MissingTenantError: unrestricted scope (admin must select a tenant first).
        ValidationError: missing name/framework_id or bad due_date.
        NotFoundError: framework not visible to the scope.
    """
    tenant_id = scope.require_tenant()

    errors = {}
    name_error = _name_error(data.get("name"))
    if name_error:
        errors["name"] = name_error
    if not data.get("framework_id"):
        errors["framework_id"] = "Required."
    if errors:
        raise ValidationError("Validation failed", details=errors)

    framework = get_framework(scope, data["framework_id"])

    assessment = Assessment(
        tenant_id=tenant_id,
        framework_id=framework.id,
        name=data["name"].strip(),
        description=data.get("description", ""),
        status=STATUS_PLANNED,
        percentual_conclusao=0,
        percentual_maturidade=0,
        due_date=parse_date(data.get("due_date")),
        created_by=principal.user_id,
    )
    db.session.add(assessment)
    db.session.commit()
    logger.info("Assessment created: %s (%s) tenant=%s framework=%s",
                assessment.name[:200], assessment.id, tenant_id, framework.id)
    return assessment.to_dict()


def update_assessment(scope: EffectiveScope, assessment_id: str, data: dict) -> dict:
    assessment = get_writable_assessment(scope, assessment_id)

    if "status" in data:
        _validate_status(data["status"])
    if "name" in data:
        name_error = _name_error(data["name"])
        if name_error:
            raise ValidationError("Validation failed", details={"name": name_error})

    for field in _EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "due_date":
            value = parse_date(value)
        elif field == "name":
            value = value.strip()
        setattr(assessment, field, value)

    db.session.commit()
    return assessment.to_dict()


def delete_assessment(scope: EffectiveScope, assessment_id: str) -> None:
    assessment = get_writable_assessment(scope, assessment_id)
    db.session.delete(assessment)
    db.session.commit()
    logger.info("Assessment deleted: %s", assessment_id)


def recompute(scope: EffectiveScope, assessment_id: str) -> dict | None:
    """Manually re-run the progress aggregator for one assessment."""
    assessment = get_writable_assessment(scope, assessment_id)
    return recompute_progress(assessment.id)
