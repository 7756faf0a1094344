"""Artifacts repository.

Uses raw SQL with psycopg2 (no ORM). Rows are returned as tuples in
ARTIFACT_COLUMNS order.
"""

from typing import Any

from psycopg2.extensions import cursor as PgCursor

ARTIFACT_COLUMNS = (
    "id",
    "source",
    "user_prompt",
    "user_image_ref",
    "generated_image_ref",
    "refined_prompt",
    "provider_name",
    "created_at",
)

_SELECT_LIST = ", ".join(ARTIFACT_COLUMNS)


def insert_artifact(
    cur: PgCursor,
    *,
    source: str,
    user_prompt: str,
    generated_image_ref: str,
    provider_name: str,
    refined_prompt: str | None = None,
    user_image_ref: str | None = None,
) -> tuple[Any, ...]:
    """Insert an artifact and return the stored row.

    Args:
        cur: Database cursor (within transaction).
        source: "web" or "whatsapp".
        user_prompt: Prompt as typed or selected by the user.
        generated_image_ref: Reference to the generated image.
        provider_name: Generation provider identifier.
        refined_prompt: Provider-refined description, if any.
        user_image_ref: Reference to the user's uploaded image, if any.

    Returns:
        The inserted row (id generated by the database).
    """
    cur.execute(
        f"""
        INSERT INTO artifacts (
            source, user_prompt, user_image_ref,
            generated_image_ref, refined_prompt, provider_name
        )
        VALUES (%s, %s, %s, %s, %s, %s)
        RETURNING {_SELECT_LIST}
        """,
        (
            source,
            user_prompt,
            user_image_ref,
            generated_image_ref,
            refined_prompt,
            provider_name,
        ),
    )
    return cur.fetchone()


def get_artifact(cur: PgCursor, artifact_id: str) -> tuple[Any, ...] | None:
    """Fetch one artifact row by id (caller validates the UUID format)."""
    cur.execute(
        f"SELECT {_SELECT_LIST} FROM artifacts WHERE id = %s",
        (artifact_id,),
    )
    return cur.fetchone()
