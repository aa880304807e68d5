"""Initial migration – create users, aliases, reminders tables.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("user_id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("timezone", sa.String(64), nullable=True),
    )

    # ── aliases ───────────────────────────────────────────────────────
    op.create_table(
        "aliases",
        sa.Column("alias_id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("command_name", sa.Text(), nullable=False),
        sa.Column("command_key", sa.Text(), nullable=False),
        sa.Column("command_text", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("guild_id", "command_key", name="uq_aliases_guild_key"),
    )
    op.create_index("idx_aliases_user", "aliases", ["user_id"])

    # ── reminders ─────────────────────────────────────────────────────
    op.create_table(
        "reminders",
        sa.Column("reminder_id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("channel_id", sa.BigInteger(), nullable=False),
        sa.Column("thread_id", sa.BigInteger(), nullable=True),
        sa.Column("reminder_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reminder_text", sa.Text(), nullable=False),
        sa.Column("triggered", sa.Boolean(), nullable=False, server_default="false"),
    )
    op.create_index("idx_reminders_due", "reminders", ["triggered", "reminder_time"])


def downgrade() -> None:
    op.drop_table("reminders")
    op.drop_table("aliases")
    op.drop_table("users")
