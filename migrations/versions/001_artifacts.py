"""artifacts table.

Revision ID: 001_artifacts
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op

revision = "001_artifacts"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(
        """
        CREATE EXTENSION IF NOT EXISTS pgcrypto;

        CREATE TABLE artifacts (
            id                  uuid PRIMARY KEY DEFAULT gen_random_uuid(),
            source              text NOT NULL DEFAULT 'web'
                                CHECK (source IN ('web', 'whatsapp')),
            user_prompt         text NOT NULL,
            user_image_ref      text,
            generated_image_ref text NOT NULL,
            refined_prompt      text,
            provider_name       text NOT NULL,
            created_at          timestamptz NOT NULL DEFAULT now()
        );

        CREATE INDEX artifacts_created_at_idx ON artifacts (created_at DESC);
        """
    )


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql("DROP TABLE artifacts;")
