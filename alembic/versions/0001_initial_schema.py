"""analysis history schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "analysis_results",
        sa.Column("id", sa.BIGINT().with_variant(sa.Integer(), "sqlite"), autoincrement=True, nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("test_date", sa.String(length=32), nullable=False),
        sa.Column("date_inferred", sa.Boolean(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analysis_results_test_date", "analysis_results", ["test_date"], unique=False)
    op.create_index("ix_analysis_results_created_at", "analysis_results", ["created_at"], unique=False)

    op.create_table(
        "biomarker_observations",
        sa.Column("id", sa.BIGINT().with_variant(sa.Integer(), "sqlite"), autoincrement=True, nullable=False),
        sa.Column("analysis_id", sa.BIGINT().with_variant(sa.Integer(), "sqlite"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=True),
        sa.Column("range_min", sa.Float(), nullable=True),
        sa.Column("range_max", sa.Float(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["analysis_id"], ["analysis_results.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_biomarker_observations_analysis_id", "biomarker_observations", ["analysis_id"], unique=False)
    op.create_index("ix_biomarker_observations_name", "biomarker_observations", ["name"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_biomarker_observations_name", table_name="biomarker_observations")
    op.drop_index("ix_biomarker_observations_analysis_id", table_name="biomarker_observations")
    op.drop_table("biomarker_observations")
    op.drop_index("ix_analysis_results_created_at", table_name="analysis_results")
    op.drop_index("ix_analysis_results_test_date", table_name="analysis_results")
    op.drop_table("analysis_results")
