"""
TenantModel: Abstract base class for tenant-scoped models.

All models that need tenant isolation should inherit from TenantModel
instead of db.Model directly. This adds:
  - UUID string primary key
  - tenant_id FK column with index
  - created_at / updated_at timestamps
  - query_for_tenant(tenant_id) classmethod
"""

import uuid
from datetime import datetime, timezone

from grc.models import db


def new_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(value):
    return value.isoformat() if value else None


class TenantModel(db.Model):
    """Abstract base for tenant-scoped tables."""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    tenant_id = db.Column(
        db.String(36),
        db.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @classmethod
    def query_for_tenant(cls, tenant_id):
        """Return a select() filtered by tenant_id."""
        return db.select(cls).where(cls.tenant_id == tenant_id)
