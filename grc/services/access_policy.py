"""
Access Policy Evaluator: application-side row ownership rules.

These mirror the data store's row-level policies so the decision can be
made (and unit-tested) in application code. The database policies stay in
place as a second enforcement point; this module never assumes it is the
only one.

Rules:
    read  : unrestricted scope sees everything;
             shared standard rows (is_standard=True) are readable by all;
             otherwise row.tenant_id must equal scope.tenant_id.
    write : standard rows: only an unrestricted (platform admin) scope;
             tenant rows: a concrete scope tenant equal to row.tenant_id.

Usage:
    stmt = scope_query(db.select(Assessment), Assessment, scope)
    if not can_write(scope, assessment):
        raise NotFoundError(resource="Assessment", resource_id=assessment.id)
"""

import logging

from sqlalchemy import false, or_

from grc.core.exceptions import NotFoundError
from grc.services.security_observability import record_security_event
from grc.services.tenant_scope import EffectiveScope

logger = logging.getLogger(__name__)


def _is_standard(row) -> bool:
    return bool(getattr(row, "is_standard", False))


def can_read(scope: EffectiveScope, row) -> bool:
    if scope.is_unrestricted:
        return True
    if _is_standard(row):
        return True
    if scope.tenant_id is None:
        return False
    return getattr(row, "tenant_id", None) == scope.tenant_id


def can_write(scope: EffectiveScope, row) -> bool:
    if _is_standard(row):
        return scope.is_unrestricted
    if scope.tenant_id is None:
        return False
    return getattr(row, "tenant_id", None) == scope.tenant_id


def scope_query(stmt, model, scope: EffectiveScope, *, include_standard: bool = False):
    """Add the tenant filter for ``scope`` to a select() on ``model``.

    An unrestricted scope adds no filter. A restricted scope without a
    tenant matches nothing rather than everything.
    """
    if scope.is_unrestricted:
        return stmt
    if not hasattr(model, "tenant_id"):
        raise ValueError(
            f"{model.__name__} has no tenant_id column; refusing to build an unscoped query"
        )
    if scope.tenant_id is None:
        return stmt.where(false())

    condition = model.tenant_id == scope.tenant_id
    if include_standard and hasattr(model, "is_standard"):
        condition = or_(condition, model.is_standard.is_(True))
    return stmt.where(condition)


def ensure_readable(scope: EffectiveScope, row, resource: str, resource_id=None):
    """Return row if readable under scope, else raise NotFoundError."""
    if row is None:
        raise NotFoundError(resource=resource, resource_id=resource_id)
    if not can_read(scope, row):
        _deny(scope, resource, resource_id, "read")
    return row


def ensure_writable(scope: EffectiveScope, row, resource: str, resource_id=None):
    """Return row if writable under scope, else raise NotFoundError.

    An unrestricted scope may see the row but still needs a selected
    tenant to change it: that raises MissingTenantError instead.
    """
    if row is None:
        raise NotFoundError(resource=resource, resource_id=resource_id)
    if scope.is_unrestricted and not _is_standard(row):
        scope.require_tenant()
    if not can_write(scope, row):
        _deny(scope, resource, resource_id, "write")
    return row


def _deny(scope: EffectiveScope, resource: str, resource_id, action: str):
    record_security_event(
        event_type="cross_scope_access_attempt",
        reason=f"{action}_denied",
        severity="high",
        tenant_id=scope.tenant_id,
        details={"resource": resource, "resource_id": resource_id},
    )
    logger.debug("Scope %s denied %s on %s id=%s", scope, action, resource, resource_id)
    raise NotFoundError(resource=resource, resource_id=resource_id)
