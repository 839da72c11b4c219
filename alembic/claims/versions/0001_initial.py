"""initial claims schema

Revision ID: 0001_claims
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_claims"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "claims",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("paypal_email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=False),
        sa.Column("visit_count_at_claim", sa.Integer(), nullable=False),
        sa.Column("user_agent", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("state_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')",
            name="ck_claims_status",
        ),
        sa.CheckConstraint(
            "(status = 'pending') = (processed_at IS NULL)",
            name="ck_claims_processed_at_pending",
        ),
    )
    op.create_index("ix_claims_email", "claims", ["email"])
    op.create_index("ix_claims_paypal_email", "claims", ["paypal_email"])
    op.create_index("ix_claims_status_processed_at", "claims", ["status", "processed_at"])

    op.create_table(
        "claim_timeline",
        sa.Column("timeline_id", sa.String(), nullable=False),
        sa.Column("claim_id", sa.String(), sa.ForeignKey("claims.id"), nullable=False),
        sa.Column("from_state", sa.String(), nullable=True),
        sa.Column("to_state", sa.String(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("timeline_id"),
    )
    op.create_index("ix_claim_timeline_claim_id", "claim_timeline", ["claim_id"])


def downgrade() -> None:
    op.drop_index("ix_claim_timeline_claim_id", table_name="claim_timeline")
    op.drop_table("claim_timeline")
    op.drop_index("ix_claims_status_processed_at", table_name="claims")
    op.drop_index("ix_claims_paypal_email", table_name="claims")
    op.drop_index("ix_claims_email", table_name="claims")
    op.drop_table("claims")
