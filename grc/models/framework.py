"""
Framework catalogue models.

Models:
    - Framework: a compliance framework (ISO 27001, NIST CSF, CIS v8, ...)
    - Domain: top-level grouping of controls inside a framework
    - Control: a single control objective
    - Question: an assessable question attached to a control

Hierarchy: framework → domain → control → question. Controls carry
``framework_id`` directly so question counts per framework need one join.

Standard frameworks (``is_standard=True``) are shared rows readable by
every tenant. Their ``tenant_id`` may be NULL; children copy the
framework's tenant_id.
"""

from grc.models import db
from grc.models.base import iso, new_uuid, utcnow

QUESTION_TYPES = ("sim_nao", "escala", "multipla_escolha", "texto")


# ═══════════════════════════════════════════════════════════════
# 1. FRAMEWORKS
# ═══════════════════════════════════════════════════════════════
class Framework(db.Model):
    __tablename__ = "assessment_frameworks"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    tenant_id = db.Column(
        db.String(36), db.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, default="")
    version = db.Column(db.String(50))
    category = db.Column(db.String(100))
    is_standard = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(db.String(20), default="ativo", comment="ativo | inativo")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    domains = db.relationship(
        "Domain", back_populates="framework", cascade="all, delete-orphan",
        order_by="Domain.order",
    )
    controls = db.relationship(
        "Control", back_populates="framework", cascade="all, delete-orphan",
        order_by="Control.order",
    )

    def to_dict(self, include_tree=False):
        d = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "version": self.version,
            "category": self.category,
            "is_standard": self.is_standard,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_tree:
            d["domains"] = [dom.to_dict() for dom in self.domains]
            d["controls"] = [c.to_dict(include_questions=True) for c in self.controls]
        return d


# ═══════════════════════════════════════════════════════════════
# 2. DOMAINS
# ═══════════════════════════════════════════════════════════════
class Domain(db.Model):
    __tablename__ = "assessment_domains"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    framework_id = db.Column(
        db.String(36), db.ForeignKey("assessment_frameworks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50))
    order = db.Column(db.Integer, default=0)
    weight = db.Column(db.Integer, default=1)
    active = db.Column(db.Boolean, default=True, nullable=False)

    framework = db.relationship("Framework", back_populates="domains")

    def to_dict(self):
        return {
            "id": self.id,
            "framework_id": self.framework_id,
            "name": self.name,
            "code": self.code,
            "order": self.order,
            "weight": self.weight,
            "active": self.active,
        }


# ═══════════════════════════════════════════════════════════════
# 3. CONTROLS
# ═══════════════════════════════════════════════════════════════
class Control(db.Model):
    __tablename__ = "assessment_controls"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    framework_id = db.Column(
        db.String(36), db.ForeignKey("assessment_frameworks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    domain_id = db.Column(
        db.String(36), db.ForeignKey("assessment_domains.id", ondelete="SET NULL"),
        nullable=True,
    )
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True)
    code = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(500), nullable=False)
    objective = db.Column(db.Text, default="")
    control_type = db.Column(db.String(30), comment="preventivo | detectivo | corretivo")
    criticality = db.Column(db.String(20), default="media", comment="baixa | media | alta | critica")
    weight = db.Column(db.Integer, default=1)
    order = db.Column(db.Integer, default=0)
    active = db.Column(db.Boolean, default=True, nullable=False)

    framework = db.relationship("Framework", back_populates="controls")
    questions = db.relationship(
        "Question", back_populates="control", cascade="all, delete-orphan",
        order_by="Question.order",
    )

    def to_dict(self, include_questions=False):
        d = {
            "id": self.id,
            "framework_id": self.framework_id,
            "domain_id": self.domain_id,
            "code": self.code,
            "title": self.title,
            "objective": self.objective,
            "control_type": self.control_type,
            "criticality": self.criticality,
            "weight": self.weight,
            "order": self.order,
            "active": self.active,
        }
        if include_questions:
            d["questions"] = [q.to_dict() for q in self.questions]
        return d


# ═══════════════════════════════════════════════════════════════
# 4. QUESTIONS
# ═══════════════════════════════════════════════════════════════
class Question(db.Model):
    __tablename__ = "assessment_questions"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    control_id = db.Column(
        db.String(36), db.ForeignKey("assessment_controls.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True)
    code = db.Column(db.String(50))
    text = db.Column(db.Text, nullable=False)
    question_type = db.Column(
        db.String(30), nullable=False, default="sim_nao",
        comment="sim_nao | escala | multipla_escolha | texto",
    )
    options = db.Column(db.JSON, default=list)
    weight = db.Column(db.Integer, default=1)
    order = db.Column(db.Integer, default=0)
    evidence_required = db.Column(db.Boolean, default=False)
    active = db.Column(db.Boolean, default=True, nullable=False)

    control = db.relationship("Control", back_populates="questions")

    def to_dict(self):
        return {
            "id": self.id,
            "control_id": self.control_id,
            "code": self.code,
            "text": self.text,
            "question_type": self.question_type,
            "options": self.options or [],
            "weight": self.weight,
            "order": self.order,
            "evidence_required": self.evidence_required,
            "active": self.active,
        }
