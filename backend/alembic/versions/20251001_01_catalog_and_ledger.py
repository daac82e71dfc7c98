"""Resource catalog tables and the per-schedule usage ledger."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20251001_01_catalog_and_ledger"
down_revision = None
branch_labels = None
depends_on = None

KEY_LENGTH = 20
TITLE_LENGTH = 1000


def _resource_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("stable_id", sa.String(length=255), nullable=True),
        sa.Column("title", sa.String(length=TITLE_LENGTH), nullable=False),
        sa.Column("key", sa.String(length=KEY_LENGTH), nullable=False),
        sa.Column("time_minutes", sa.Integer(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "topics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("content_category_number", sa.String(length=10), nullable=False),
        sa.Column("content_category_title", sa.String(length=TITLE_LENGTH), nullable=False, server_default=""),
        sa.Column("subtopic_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subtopic_title", sa.String(length=TITLE_LENGTH), nullable=False, server_default=""),
        sa.Column("concept_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("concept_title", sa.String(length=TITLE_LENGTH), nullable=False, server_default=""),
        sa.Column("high_yield", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("key", sa.String(length=KEY_LENGTH), nullable=False),
    )
    op.create_index("ix_topics_key", "topics", ["key"])

    op.create_table(
        "khan_academy_resources",
        *_resource_columns(),
        sa.Column("resource_type", sa.String(length=64), nullable=False),
    )
    op.create_index("ix_khan_academy_resources_key", "khan_academy_resources", ["key"])

    op.create_table(
        "kaplan_resources",
        *_resource_columns(),
        sa.Column("high_yield", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_kaplan_resources_key", "kaplan_resources", ["key"])

    op.create_table(
        "jack_westin_resources",
        *_resource_columns(),
        sa.Column("resource_type", sa.String(length=64), nullable=False),
        sa.Column("cars_resource", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_jack_westin_resources_key", "jack_westin_resources", ["key"])
    op.create_index("ix_jack_westin_resources_cars", "jack_westin_resources", ["cars_resource"])

    op.create_table(
        "uworld_resources",
        *_resource_columns(),
        sa.Column("question_count", sa.Integer(), nullable=False, server_default="10"),
    )
    op.create_index("ix_uworld_resources_key", "uworld_resources", ["key"])

    op.create_table(
        "aamc_resources",
        *_resource_columns(),
        sa.Column("resource_type", sa.String(length=64), nullable=False),
        sa.Column("pack_name", sa.String(length=TITLE_LENGTH), nullable=True),
    )

    op.create_table(
        "used_resources",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("schedule_id", sa.String(length=64), nullable=False),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("resource_uid", sa.String(length=TITLE_LENGTH + KEY_LENGTH + 1), nullable=False),
        sa.Column("used_date", sa.Date(), nullable=False),
        sa.UniqueConstraint("schedule_id", "resource_uid", name="uq_used_resources_schedule_uid"),
    )
    op.create_index("ix_used_resources_schedule", "used_resources", ["schedule_id"])


def downgrade() -> None:
    op.drop_index("ix_used_resources_schedule", table_name="used_resources")
    op.drop_table("used_resources")
    op.drop_table("aamc_resources")
    op.drop_index("ix_uworld_resources_key", table_name="uworld_resources")
    op.drop_table("uworld_resources")
    op.drop_index("ix_jack_westin_resources_cars", table_name="jack_westin_resources")
    op.drop_index("ix_jack_westin_resources_key", table_name="jack_westin_resources")
    op.drop_table("jack_westin_resources")
    op.drop_index("ix_kaplan_resources_key", table_name="kaplan_resources")
    op.drop_table("kaplan_resources")
    op.drop_index("ix_khan_academy_resources_key", table_name="khan_academy_resources")
    op.drop_table("khan_academy_resources")
    op.drop_index("ix_topics_key", table_name="topics")
    op.drop_table("topics")
