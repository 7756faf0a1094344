"""Content generator interface."""

from dataclasses import dataclass
from typing import Protocol


class GenerationError(Exception):
    """Raised when the provider fails or returns an unusable response."""


@dataclass(frozen=True)
class InputImage:
    """Reference image supplied by the user (web uploads only)."""

    data: bytes
    filename: str = "input.png"
    mime_type: str = "image/png"


@dataclass(frozen=True)
class GeneratedImage:
    image_bytes: bytes
    refined_prompt: str
    mime_type: str = "image/png"


class ContentGenerator(Protocol):
    """Turns a prompt (and optional reference image) into an image."""

    provider_name: str

    async def generate(self, prompt: str, input_image: InputImage | None = None) -> GeneratedImage:
        ...
