"""processed_messages table (shared dedup window).

Revision ID: 002_processed_messages
Revises: 001_artifacts
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op

revision = "002_processed_messages"
down_revision = "001_artifacts"
branch_labels = None
depends_on = None


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(
        """
        CREATE TABLE processed_messages (
            message_id  text PRIMARY KEY,
            received_at timestamptz NOT NULL DEFAULT now()
        );

        CREATE INDEX processed_messages_received_at_idx
            ON processed_messages (received_at);
        """
    )


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql("DROP TABLE processed_messages;")
