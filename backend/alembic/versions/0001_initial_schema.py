"""create analyses, platform_insights and profiles

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

analysis_status = sa.Enum("PENDING", "PROCESSING", "COMPLETED", "FAILED", name="analysisstatus")
content_type = sa.Enum("TEXT", "IMAGE", "VIDEO", "MIXED", name="contenttype")


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("credits_remaining", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subscription_tier", sa.String(length=50), nullable=False, server_default="free"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("credits_remaining >= 0", name="ck_profiles_credits_non_negative"),
    )

    op.create_table(
        "analyses",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_type", content_type, nullable=False),
        sa.Column("platforms", sa.JSON(), nullable=False),
        sa.Column("target_audience", sa.JSON(), nullable=True),
        sa.Column("status", analysis_status, nullable=False),
        sa.Column("overall_virality_score", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_analyses_user_id", "analyses", ["user_id"])
    op.create_index("ix_analyses_status", "analyses", ["status"])
    op.create_index("ix_analyses_created_at", "analyses", ["created_at"])

    op.create_table(
        "platform_insights",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "analysis_id",
            sa.UUID(),
            sa.ForeignKey("analyses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("platform", sa.String(length=50), nullable=False),
        sa.Column("virality_score", sa.Integer(), nullable=True),
        sa.Column("metrics", sa.JSON(), nullable=True),
        sa.Column("recommendations", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("analysis_id", "platform", name="uq_analysis_platform"),
    )
    op.create_index("ix_platform_insights_analysis_id", "platform_insights", ["analysis_id"])


def downgrade() -> None:
    op.drop_index("ix_platform_insights_analysis_id", table_name="platform_insights")
    op.drop_table("platform_insights")
    op.drop_index("ix_analyses_created_at", table_name="analyses")
    op.drop_index("ix_analyses_status", table_name="analyses")
    op.drop_index("ix_analyses_user_id", table_name="analyses")
    op.drop_table("analyses")
    op.drop_table("profiles")
    analysis_status.drop(op.get_bind(), checkfirst=True)
    content_type.drop(op.get_bind(), checkfirst=True)
