"""Artifact records: a user prompt paired with its generated image."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from goodchoice.infra.time import isoformat_utc

ArtifactSource = Literal["web", "whatsapp"]


@dataclass(frozen=True)
class NewArtifact:
    """Fields supplied by callers; id and created_at are assigned by the store."""

    source: ArtifactSource
    user_prompt: str
    generated_image_ref: str
    provider_name: str
    refined_prompt: str | None = None
    user_image_ref: str | None = None

    def __post_init__(self) -> None:
        if not self.user_prompt:
            raise ValueError("user_prompt is required")
        if not self.generated_image_ref:
            raise ValueError("generated_image_ref is required")
        if not self.provider_name:
            raise ValueError("provider_name is required")


@dataclass(frozen=True)
class Artifact:
    """Persisted artifact. Immutable once created."""

    id: str
    source: ArtifactSource
    user_prompt: str
    generated_image_ref: str
    provider_name: str
    created_at: datetime
    refined_prompt: str | None = None
    user_image_ref: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """API representation (camelCase keys)."""
        return {
            "id": self.id,
            "source": self.source,
            "userPrompt": self.user_prompt,
            "userImageRef": self.user_image_ref,
            "generatedImageRef": self.generated_image_ref,
            "refinedPrompt": self.refined_prompt,
            "providerName": self.provider_name,
            "createdAt": isoformat_utc(self.created_at),
        }
