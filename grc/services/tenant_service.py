"""
Tenant Service: tenant registry used by platform admins.

Blueprint layer never touches db or model classes directly; lookups used to
validate a tenant selection live here too.
"""

import logging
import re

from grc.core.exceptions import ConflictError, NotFoundError, ValidationError
from grc.models import db
from grc.models.auth import Tenant

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _slugify(value: str) -> str:
    return _SLUG_RE.sub("-", value.lower()).strip("-")


def list_tenants(search: str = "") -> list[dict]:
    """Return every tenant, newest first, optionally filtered by name/slug."""
    query = db.select(Tenant).order_by(Tenant.created_at.desc())
    if search:
        query = query.where(
            Tenant.name.ilike(f"%{search}%") | Tenant.slug.ilike(f"%{search}%")
        )
    return [t.to_dict() for t in db.session.execute(query).scalars().all()]


def get_tenant(tenant_id: str) -> Tenant:
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError(resource="Tenant", resource_id=tenant_id)
    return tenant


def get_active_tenant(tenant_id: str) -> Tenant:
    """Tenant lookup used before a selection is stored; inactive counts as missing."""
    tenant = get_tenant(tenant_id)
    if not tenant.is_active:
        raise ValidationError("Tenant is deactivated", details={"tenant_id": tenant_id})
    return tenant


def create_tenant(name: str, slug: str = "") -> dict:
    """
    Create a new tenant.

    Raises:
        ValidationError: name missing.
        ConflictError: slug already in use.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Tenant name is required", details={"name": "Required."})
    slug = _slugify(slug or name)

    existing = db.session.execute(
        db.select(Tenant).where(Tenant.slug == slug)
    ).scalar_one_or_none()
    if existing:
        raise ConflictError(resource="Tenant", field="slug", value=slug)

    tenant = Tenant(name=name, slug=slug)
    db.session.add(tenant)
    db.session.commit()
    logger.info("Tenant created: %s (%s)", name[:200], tenant.id)
    return tenant.to_dict()


def set_tenant_active(tenant_id: str, is_active: bool) -> dict:
    tenant = get_tenant(tenant_id)
    tenant.is_active = is_active
    db.session.commit()
    logger.info("Tenant %s %s", tenant_id, "activated" if is_active else "deactivated")
    return tenant.to_dict()
