"""initial tracking schema

Revision ID: 9c1e4b7a2d10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "9c1e4b7a2d10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # =========================================================
    # 1. businesses
    # =========================================================
    op.create_table(
        "businesses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False, index=True),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("industry", sa.String(100), nullable=False),
        sa.Column("country", sa.String(100), nullable=False, server_default="United States"),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("website_url", sa.String(500), nullable=True),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_check_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_businesses_next_check_date", "businesses", ["next_check_date"])

    # =========================================================
    # 2. tracked_prompts
    # =========================================================
    op.create_table(
        "tracked_prompts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "business_id",
            sa.Uuid(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("prompt_text", sa.String(2000), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # =========================================================
    # 3. tracking_results (append-only)
    # =========================================================
    op.create_table(
        "tracking_results",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "prompt_id",
            sa.Uuid(),
            sa.ForeignKey("tracked_prompts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ai_platform", sa.String(20), nullable=False),
        sa.Column("appeared", sa.Boolean(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.Column("full_response_text", sa.Text(), nullable=True),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("tracked_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(status = 'failed' AND appeared IS NULL AND position IS NULL AND full_response_text IS NULL)"
            " OR (status = 'success' AND appeared IS NOT NULL)",
            name="ck_tracking_result_status_shape",
        ),
    )
    op.create_index("ix_tracking_results_prompt_tracked_at", "tracking_results", ["prompt_id", "tracked_at"])

    # =========================================================
    # 4. manual_tracking_runs (quota log)
    # =========================================================
    op.create_table(
        "manual_tracking_runs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column(
            "business_id",
            sa.Uuid(),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("run_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_manual_tracking_runs_user_run_at", "manual_tracking_runs", ["user_id", "run_at"])

    # =========================================================
    # 5. user_subscriptions
    # =========================================================
    op.create_table(
        "user_subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False, unique=True),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="trial"),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # =========================================================
    # 6. app_config
    # =========================================================
    op.create_table(
        "app_config",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("key", sa.String(100), nullable=False, unique=True),
        sa.Column("value", sa.String(255), nullable=False),
        sa.Column("description", sa.String(500), nullable=False, server_default=""),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.execute(
        "INSERT INTO app_config (id, key, value, description) VALUES "
        "(gen_random_uuid(), 'cron_enabled', 'true', 'Set to false to pause scheduled tracking')"
    )


def downgrade() -> None:
    op.drop_table("app_config")
    op.drop_table("user_subscriptions")
    op.drop_index("ix_manual_tracking_runs_user_run_at", table_name="manual_tracking_runs")
    op.drop_table("manual_tracking_runs")
    op.drop_index("ix_tracking_results_prompt_tracked_at", table_name="tracking_results")
    op.drop_table("tracking_results")
    op.drop_table("tracked_prompts")
    op.drop_index("ix_businesses_next_check_date", table_name="businesses")
    op.drop_table("businesses")
