"""initial_scope_schema

Creates the tenant registry, framework catalogue and assessment tables:
  - tenants
  - assessment_frameworks / assessment_domains / assessment_controls / assessment_questions
  - assessments
  - assessment_responses  (no unique constraint on assessment_id + question_id)

Tables are created conditionally so the revision also applies to databases
that already received them via db.create_all() in development.

Revision ID: 5c1f0e9a7b21
Revises:
Create Date: 2025-09-01 10:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '5c1f0e9a7b21'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    bind = op.get_bind()
    existing = set(sa_inspect(bind).get_table_names())

    # ── Tenants ───────────────────────────────────────────────────────────
    if "tenants" not in existing:
        op.create_table(
            "tenants",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("slug", sa.String(length=100), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.UniqueConstraint("slug", name="uq_tenants_slug"),
        )

    # ── Framework catalogue ───────────────────────────────────────────────
    if "assessment_frameworks" not in existing:
        op.create_table(
            "assessment_frameworks",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("tenant_id", sa.String(length=36),
                      sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("code", sa.String(length=100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("version", sa.String(length=50), nullable=True),
            sa.Column("category", sa.String(length=100), nullable=True),
            sa.Column("is_standard", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("status", sa.String(length=20), nullable=True, comment="ativo | inativo"),
            *_timestamps(),
        )
        op.create_index("ix_assessment_frameworks_tenant_id", "assessment_frameworks", ["tenant_id"])

    if "assessment_domains" not in existing:
        op.create_table(
            "assessment_domains",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("framework_id", sa.String(length=36),
                      sa.ForeignKey("assessment_frameworks.id", ondelete="CASCADE"),
                      nullable=False),
            sa.Column("tenant_id", sa.String(length=36),
                      sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("code", sa.String(length=50), nullable=True),
            sa.Column("order", sa.Integer(), nullable=True),
            sa.Column("weight", sa.Integer(), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        )
        op.create_index("ix_assessment_domains_framework_id", "assessment_domains", ["framework_id"])

    if "assessment_controls" not in existing:
        op.create_table(
            "assessment_controls",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("framework_id", sa.String(length=36),
                      sa.ForeignKey("assessment_frameworks.id", ondelete="CASCADE"),
                      nullable=False),
            sa.Column("domain_id", sa.String(length=36),
                      sa.ForeignKey("assessment_domains.id", ondelete="SET NULL"), nullable=True),
            sa.Column("tenant_id", sa.String(length=36),
                      sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True),
            sa.Column("code", sa.String(length=50), nullable=False),
            sa.Column("title", sa.String(length=500), nullable=False),
            sa.Column("objective", sa.Text(), nullable=True),
            sa.Column("control_type", sa.String(length=30), nullable=True,
                      comment="preventivo | detectivo | corretivo"),
            sa.Column("criticality", sa.String(length=20), nullable=True,
                      comment="baixa | media | alta | critica"),
            sa.Column("weight", sa.Integer(), nullable=True),
            sa.Column("order", sa.Integer(), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        )
        op.create_index("ix_assessment_controls_framework_id", "assessment_controls", ["framework_id"])

    if "assessment_questions" not in existing:
        op.create_table(
            "assessment_questions",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("control_id", sa.String(length=36),
                      sa.ForeignKey("assessment_controls.id", ondelete="CASCADE"),
                      nullable=False),
            sa.Column("tenant_id", sa.String(length=36),
                      sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True),
            sa.Column("code", sa.String(length=50), nullable=True),
            sa.Column("text", sa.Text(), nullable=False),
            sa.Column("question_type", sa.String(length=30), nullable=False,
                      server_default="sim_nao",
                      comment="sim_nao | escala | multipla_escolha | texto"),
            sa.Column("options", sa.JSON(), nullable=True),
            sa.Column("weight", sa.Integer(), nullable=True),
            sa.Column("order", sa.Integer(), nullable=True),
            sa.Column("evidence_required", sa.Boolean(), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        )
        op.create_index("ix_assessment_questions_control_id", "assessment_questions", ["control_id"])

    # ── Assessments ───────────────────────────────────────────────────────
    if "assessments" not in existing:
        op.create_table(
            "assessments",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("tenant_id", sa.String(length=36),
                      sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
            sa.Column("framework_id", sa.String(length=36),
                      sa.ForeignKey("assessment_frameworks.id", ondelete="RESTRICT"),
                      nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="planejado",
                      comment="planejado | em_andamento | em_revisao | concluido | cancelado | pausado"),
            sa.Column("percentual_conclusao", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("percentual_maturidade", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("due_date", sa.Date(), nullable=True),
            sa.Column("created_by", sa.String(length=36), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_assessments_tenant_id", "assessments", ["tenant_id"])
        op.create_index("ix_assessments_framework_id", "assessments", ["framework_id"])
        op.create_index("ix_assessments_tenant_status", "assessments", ["tenant_id", "status"])

    if "assessment_responses" not in existing:
        op.create_table(
            "assessment_responses",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("tenant_id", sa.String(length=36),
                      sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
            sa.Column("assessment_id", sa.String(length=36),
                      sa.ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("question_id", sa.String(length=36),
                      sa.ForeignKey("assessment_questions.id", ondelete="CASCADE"),
                      nullable=False),
            sa.Column("control_id", sa.String(length=36),
                      sa.ForeignKey("assessment_controls.id", ondelete="SET NULL"),
                      nullable=True),
            sa.Column("boolean_answer", sa.Boolean(), nullable=True),
            sa.Column("numeric_answer", sa.Float(), nullable=True),
            sa.Column("choice_answers", sa.JSON(), nullable=True),
            sa.Column("text_answer", sa.Text(), nullable=True),
            sa.Column("comments", sa.Text(), nullable=True),
            sa.Column("score_obtained", sa.Float(), nullable=True),
            sa.Column("score_max", sa.Float(), nullable=True),
            sa.Column("conformity_pct", sa.Float(), nullable=True),
            sa.Column("conformity_status", sa.String(length=30), nullable=True,
                      comment="conforme | parcialmente_conforme | nao_conforme"),
            sa.Column("answered_by", sa.String(length=36), nullable=True),
            sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_assessment_responses_tenant_id", "assessment_responses", ["tenant_id"])
        op.create_index("ix_assessment_responses_assessment_id", "assessment_responses",
                        ["assessment_id"])
        op.create_index("ix_assessment_responses_question_id", "assessment_responses",
                        ["question_id"])


def downgrade():
    for table in (
        "assessment_responses",
        "assessments",
        "assessment_questions",
        "assessment_controls",
        "assessment_domains",
        "assessment_frameworks",
        "tenants",
    ):
        op.drop_table(table)
