"""Artifact persistence.

The store is the only component that assigns artifact ids. Callers request a
creation and read the assigned id back to build shareable links.
"""

import asyncio
import uuid
from typing import Any, Protocol

from goodchoice.artifacts.models import Artifact, NewArtifact
from goodchoice.infra import db
from goodchoice.infra.repositories import artifacts_repository


class ArtifactStoreError(Exception):
    """Raised when the backing store fails to create or read an artifact."""


class InvalidArtifactIdError(ArtifactStoreError):
    """Raised when an id does not match the store's id format."""


class ArtifactStore(Protocol):
    """Create/read persistence for artifacts."""

    async def create(self, new: NewArtifact) -> Artifact:
        ...

    async def get(self, artifact_id: str) -> Artifact | None:
        ...

    async def ping(self) -> bool:
        ...


def _row_to_artifact(row: tuple[Any, ...]) -> Artifact:
    record = dict(zip(artifacts_repository.ARTIFACT_COLUMNS, row))
    return Artifact(
        id=str(record["id"]),
        source=record["source"],
        user_prompt=record["user_prompt"],
        user_image_ref=record["user_image_ref"],
        generated_image_ref=record["generated_image_ref"],
        refined_prompt=record["refined_prompt"],
        provider_name=record["provider_name"],
        created_at=record["created_at"],
    )


def parse_artifact_id(artifact_id: str) -> str:
    """Normalize an artifact id, raising InvalidArtifactIdError if malformed."""
    try:
        return str(uuid.UUID(artifact_id))
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidArtifactIdError(f"malformed artifact id: {artifact_id!r}") from exc


class PostgresArtifactStore:
    """Artifact store on the ``artifacts`` table.

    psycopg2 is blocking, so every call is pushed to a worker thread.
    """

    def _create_sync(self, new: NewArtifact) -> Artifact:
        with db.txn() as cur:
            row = artifacts_repository.insert_artifact(
                cur,
                source=new.source,
                user_prompt=new.user_prompt,
                generated_image_ref=new.generated_image_ref,
                provider_name=new.provider_name,
                refined_prompt=new.refined_prompt,
                user_image_ref=new.user_image_ref,
            )
        if row is None:
            raise ArtifactStoreError("insert returned no row")
        return _row_to_artifact(row)

    def _get_sync(self, artifact_id: str) -> Artifact | None:
        with db.txn() as cur:
            row = artifacts_repository.get_artifact(cur, artifact_id)
        return _row_to_artifact(row) if row else None

    async def create(self, new: NewArtifact) -> Artifact:
        try:
            return await asyncio.to_thread(self._create_sync, new)
        except ArtifactStoreError:
            raise
        except Exception as exc:
            raise ArtifactStoreError("failed to create artifact") from exc

    async def get(self, artifact_id: str) -> Artifact | None:
        normalized = parse_artifact_id(artifact_id)
        try:
            return await asyncio.to_thread(self._get_sync, normalized)
        except Exception as exc:
            raise ArtifactStoreError("failed to read artifact") from exc

    async def ping(self) -> bool:
        return await asyncio.to_thread(db.ping)
