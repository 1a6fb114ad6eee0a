"""
Assessment Progress Aggregator.

Recomputes an assessment's derived fields from the full current set of
responses every time a response row is inserted, updated or deleted:

    total     = active questions whose control belongs to the framework
    answered  = DISTINCT question_id among the assessment's responses
    percentual_conclusao  = round(100 × answered / max(total, 1)), capped at 100
    percentual_maturidade = round(100 × Σ score_obtained / Σ score_max)
                            over the latest response per question

Status rule: "planejado" moves to "em_andamento" once anything is
answered. Every other status is left as is; manual transitions (review,
completion, ...) are never overridden here.

The computation never reads the triggering row, so running it twice with
no data change in between yields the same result. Failures are logged and
rolled back, never raised: the response write that triggered the
recompute has already been committed and must stand.

Usage:
    from grc.services.progress_aggregator import recompute_progress, on_response_changed

    recompute_progress(assessment.id)
    on_response_changed(old_assessment_id, new_assessment_id)
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from grc.core.exceptions import OrphanedResponseError
from grc.models import db
from grc.models.assessment import (
    STATUS_IN_PROGRESS,
    STATUS_PLANNED,
    Assessment,
    AssessmentResponse,
)
from grc.models.base import utcnow
from grc.models.framework import Control, Question

logger = logging.getLogger(__name__)


def percent(part, whole) -> int:
    """round-half-up(100 × part / whole); 0 when whole is 0."""
    if not whole:
        return 0
    value = Decimal(str(part)) * 100 / Decimal(str(whole))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def count_active_questions(framework_id: str) -> int:
    return db.session.scalar(
        db.select(func.count(Question.id))
        .join(Control, Question.control_id == Control.id)
        .where(Control.framework_id == framework_id, Question.active.is_(True))
    ) or 0


def count_answered_questions(assessment_id: str) -> int:
    return db.session.scalar(
        db.select(func.count(func.distinct(AssessmentResponse.question_id)))
        .where(AssessmentResponse.assessment_id == assessment_id)
    ) or 0


def _maturity(assessment_id: str) -> int:
    rows = db.session.execute(
        db.select(AssessmentResponse)
        .where(AssessmentResponse.assessment_id == assessment_id)
        .order_by(AssessmentResponse.updated_at, AssessmentResponse.created_at)
    ).scalars().all()

    latest = {}
    for r in rows:
        latest[r.question_id] = r

    obtained = sum(r.score_obtained or 0 for r in latest.values())
    maximum = sum(r.score_max or 0 for r in latest.values())
    return percent(obtained, maximum)


def recompute_progress(assessment_id: str | None) -> dict | None:
    """Recompute and persist progress for one assessment.

    Returns a summary dict, or None if the assessment could not be resolved
    or the update failed.
    """
    try:
        assessment = db.session.get(Assessment, assessment_id) if assessment_id else None
        if assessment is None:
            raise OrphanedResponseError(assessment_id)

        total = count_active_questions(assessment.framework_id)
        answered = count_answered_questions(assessment.id)
        denominator = max(total, 1)

        assessment.percentual_conclusao = min(percent(answered, denominator), 100)
        assessment.percentual_maturidade = _maturity(assessment.id)
        if assessment.status == STATUS_PLANNED and answered > 0:
            assessment.status = STATUS_IN_PROGRESS
        assessment.updated_at = utcnow()
        db.session.commit()
    except OrphanedResponseError as exc:
        logger.warning("Progress recompute skipped: %s", exc)
        return None
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Progress recompute failed for assessment %s", assessment_id)
        return None
    except Exception:
        db.session.rollback()
        logger.exception("Progress recompute error for assessment %s", assessment_id)
        return None

    logger.debug(
        "Assessment %s progress: %d/%d → %d%% (%s)",
        assessment.id, answered, total, assessment.percentual_conclusao, assessment.status,
    )
    return {
        "assessment_id": assessment.id,
        "answered": answered,
        "total": total,
        "percentual_conclusao": assessment.percentual_conclusao,
        "percentual_maturidade": assessment.percentual_maturidade,
        "status": assessment.status,
    }


def on_response_changed(old_assessment_id: str | None = None,
                        new_assessment_id: str | None = None) -> list[dict]:
    """Row-change hook: recompute every assessment touched by the change.

    Insert passes only the new row's assessment, delete only the old one;
    an update that moves a response recomputes both.
    """
    results = []
    for aid in dict.fromkeys(a for a in (old_assessment_id, new_assessment_id) if a):
        summary = recompute_progress(aid)
        if summary is not None:
            results.append(summary)
    return results


def recompute_all(framework_id: str | None = None) -> int:
    """Recompute every assessment (optionally one framework's). Returns count updated."""
    stmt = db.select(Assessment.id)
    if framework_id:
        stmt = stmt.where(Assessment.framework_id == framework_id)
    ids = db.session.execute(stmt).scalars().all()
    updated = 0
    for aid in ids:
        if recompute_progress(aid) is not None:
            updated += 1
    logger.info("Recomputed progress for %d/%d assessments", updated, len(ids))
    return updated
