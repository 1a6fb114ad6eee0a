"""
Assessment models.

Models:
    - Assessment: one evaluation of a tenant against a framework
    - AssessmentResponse: a recorded answer to one question of one assessment

``percentual_conclusao`` and ``percentual_maturidade`` are derived fields
owned by the progress aggregator (grc.services.progress_aggregator); user
edits never write them directly.

There is no unique constraint on (assessment_id, question_id):
repeated answers for the same question are stored and counted once.
"""

from grc.models import db
from grc.models.base import TenantModel, iso

ASSESSMENT_STATUSES = (
    "planejado",
    "em_andamento",
    "em_revisao",
    "concluido",
    "cancelado",
    "pausado",
)
STATUS_PLANNED = "planejado"
STATUS_IN_PROGRESS = "em_andamento"

CONFORMITY_STATUSES = ("conforme", "parcialmente_conforme", "nao_conforme")


class Assessment(TenantModel):
    __tablename__ = "assessments"

    framework_id = db.Column(
        db.String(36), db.ForeignKey("assessment_frameworks.id", ondelete="RESTRICT"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(
        db.String(30), nullable=False, default=STATUS_PLANNED,
        comment="planejado | em_andamento | em_revisao | concluido | cancelado | pausado",
    )
    percentual_conclusao = db.Column(db.Integer, nullable=False, default=0)
    percentual_maturidade = db.Column(db.Integer, nullable=False, default=0)
    due_date = db.Column(db.Date, nullable=True)
    created_by = db.Column(db.String(36))

    framework = db.relationship("Framework")
    responses = db.relationship(
        "AssessmentResponse", back_populates="assessment",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        db.Index("ix_assessments_tenant_status", "tenant_id", "status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "framework_id": self.framework_id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "percentual_conclusao": self.percentual_conclusao,
            "percentual_maturidade": self.percentual_maturidade,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class AssessmentResponse(TenantModel):
    __tablename__ = "assessment_responses"

    assessment_id = db.Column(
        db.String(36), db.ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    question_id = db.Column(
        db.String(36), db.ForeignKey("assessment_questions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    control_id = db.Column(db.String(36), db.ForeignKey("assessment_controls.id", ondelete="SET NULL"))

    # Answer payload: one of these is used depending on question_type
    boolean_answer = db.Column(db.Boolean)
    numeric_answer = db.Column(db.Float)
    choice_answers = db.Column(db.JSON)
    text_answer = db.Column(db.Text)
    comments = db.Column(db.Text)

    # Scoring (computed on write)
    score_obtained = db.Column(db.Float, default=0)
    score_max = db.Column(db.Float, default=0)
    conformity_pct = db.Column(db.Float, default=0)
    conformity_status = db.Column(
        db.String(30), comment="conforme | parcialmente_conforme | nao_conforme",
    )

    answered_by = db.Column(db.String(36))
    answered_at = db.Column(db.DateTime(timezone=True))

    assessment = db.relationship("Assessment", back_populates="responses")

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "assessment_id": self.assessment_id,
            "question_id": self.question_id,
            "control_id": self.control_id,
            "boolean_answer": self.boolean_answer,
            "numeric_answer": self.numeric_answer,
            "choice_answers": self.choice_answers,
            "text_answer": self.text_answer,
            "comments": self.comments,
            "score_obtained": self.score_obtained,
            "score_max": self.score_max,
            "conformity_pct": self.conformity_pct,
            "conformity_status": self.conformity_status,
            "answered_by": self.answered_by,
            "answered_at": iso(self.answered_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
