"""
Response Service: recording answers against an assessment.

Every committed insert, update or delete is followed by a progress
recompute of the affected assessment(s). The recompute runs after the
response commit and cannot undo it: aggregator failures are logged inside
the aggregator and the write still succeeds.

Upsert semantics (default for the API): answering a question that already
has a response updates the most recent one instead of adding a row. With
upsert=False a second row is stored; the aggregator counts it once.
"""

import logging

from grc.core.exceptions import NotFoundError, ValidationError
from grc.models import db
from grc.models.assessment import Assessment, AssessmentResponse
from grc.models.base import utcnow
from grc.models.framework import Control, Question
from grc.services import access_policy
from grc.services.assessment_service import get_assessment, get_writable_assessment
from grc.services.progress_aggregator import on_response_changed
from grc.services.response_scoring import score_response
from grc.services.tenant_scope import EffectiveScope

logger = logging.getLogger(__name__)

_ANSWER_FIELDS = ("boolean_answer", "numeric_answer", "choice_answers", "text_answer")


def list_responses(scope: EffectiveScope, assessment_id: str) -> list[dict]:
    assessment = get_assessment(scope, assessment_id)
    stmt = (
        db.select(AssessmentResponse)
        .where(AssessmentResponse.assessment_id == assessment.id)
        .order_by(AssessmentResponse.created_at)
    )
    stmt = access_policy.scope_query(stmt, AssessmentResponse, scope)
    return [r.to_dict() for r in db.session.execute(stmt).scalars().all()]


def _question_for(assessment: Assessment, question_id: str | None) -> Question:
    """Active question that belongs to the assessment's framework."""
    if not question_id:
        raise ValidationError("Validation failed", details={"question_id": "Required."})
    question = db.session.get(Question, question_id)
    if question is None:
        raise NotFoundError(resource="Question", resource_id=question_id)
    control = db.session.get(Control, question.control_id)
    if control is None or control.framework_id != assessment.framework_id:
        raise ValidationError(
            "Question does not belong to the assessment's framework",
            details={"question_id": question_id},
        )
    if not question.active:
        raise ValidationError("Question is inactive", details={"question_id": question_id})
    return question


def _apply_answer(response: AssessmentResponse, question: Question, data: dict,
                  answered_by: str | None) -> None:
    for field in _ANSWER_FIELDS:
        if field in data:
            setattr(response, field, data[field])
    if "comments" in data:
        response.comments = data["comments"]

    answer = {f: getattr(response, f) for f in _ANSWER_FIELDS}
    result = score_response(question.question_type, answer, question.options)
    response.score_obtained = result.score_obtained
    response.score_max = result.score_max
    response.conformity_pct = result.conformity_pct
    response.conformity_status = result.conformity_status
    response.answered_by = answered_by
    response.answered_at = utcnow()


def _latest_response(assessment_id: str, question_id: str) -> AssessmentResponse | None:
    return db.session.execute(
        db.select(AssessmentResponse)
        .where(
            AssessmentResponse.assessment_id == assessment_id,
            AssessmentResponse.question_id == question_id,
        )
        .order_by(AssessmentResponse.updated_at.desc(), AssessmentResponse.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()


def save_response(scope: EffectiveScope, assessment_id: str, data: dict,
                  answered_by: str | None = None, *, upsert: bool = True) -> dict:
    """Record an answer for one question of an assessment.

    Returns ``{"response": ..., "progress": [...]}``; progress holds the
    aggregator summaries (empty if the recompute failed).
    """
    assessment = get_writable_assessment(scope, assessment_id)
    question = _question_for(assessment, data.get("question_id"))

    response = _latest_response(assessment.id, question.id) if upsert else None
    created = response is None
    if created:
        response = AssessmentResponse(
            tenant_id=assessment.tenant_id,
            assessment_id=assessment.id,
            question_id=question.id,
            control_id=question.control_id,
        )
        db.session.add(response)

    _apply_answer(response, question, data, answered_by)
    db.session.commit()
    logger.info("Response %s %s (assessment=%s question=%s)",
                response.id, "created" if created else "updated", assessment.id, question.id)

    progress = on_response_changed(new_assessment_id=assessment.id)
    return {"response": response.to_dict(), "progress": progress, "created": created}


def _get_writable_response(scope: EffectiveScope, response_id: str) -> AssessmentResponse:
    response = db.session.get(AssessmentResponse, response_id)
    return access_policy.ensure_writable(scope, response, "AssessmentResponse", response_id)


def update_response(scope: EffectiveScope, response_id: str, data: dict,
                    answered_by: str | None = None) -> dict:
    """Update a response in place; ``assessment_id`` in data moves it.

    A move recomputes both the old and the new assessment.
    """
    response = _get_writable_response(scope, response_id)
    old_assessment_id = response.assessment_id

    target_id = data.get("assessment_id") or old_assessment_id
    assessment = get_writable_assessment(scope, target_id)
    question = _question_for(assessment, data.get("question_id") or response.question_id)

    response.assessment_id = assessment.id
    response.question_id = question.id
    response.control_id = question.control_id
    _apply_answer(response, question, data, answered_by)
    db.session.commit()

    progress = on_response_changed(old_assessment_id=old_assessment_id,
                                   new_assessment_id=assessment.id)
    return {"response": response.to_dict(), "progress": progress}


def delete_response(scope: EffectiveScope, response_id: str) -> list[dict]:
    """Delete a response. Returns the aggregator summaries."""
    response = _get_writable_response(scope, response_id)
    assessment_id = response.assessment_id
    db.session.delete(response)
    db.session.commit()
    logger.info("Response deleted: %s (assessment=%s)", response_id, assessment_id)
    return on_response_changed(old_assessment_id=assessment_id)
