"""Shared test doubles and payload builders.

These are plain classes/functions, not fixtures, so test modules can import
them directly.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import uuid
from typing import Any

from goodchoice.artifacts.models import Artifact, NewArtifact
from goodchoice.artifacts.store import ArtifactStoreError, parse_artifact_id
from goodchoice.catalog.menu import MenuCatalog, MenuCategory
from goodchoice.generation.base import GeneratedImage, InputImage
from goodchoice.infra.time import utc_now

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

VERIFY_TOKEN = "test_verify_token"
FRONTEND_URL = "https://x.test"


class FakeSender:
    """Records every outbound call in order."""

    def __init__(self, *, media_id: str | None = "MEDIA_1", send_ok: bool = True) -> None:
        self.media_id = media_id
        self.send_ok = send_ok
        self.calls: list[tuple[str, Any]] = []

    async def upload_media(self, data: bytes, mime_type: str = "image/png", filename: str = "exhibit.png"):
        self.calls.append(("upload_media", len(data)))
        return self.media_id

    async def send_welcome_menu(self, to: str, catalog: MenuCatalog) -> bool:
        self.calls.append(("welcome", (to, [c.id for c in catalog.categories])))
        self.last_catalog = catalog
        return self.send_ok

    async def send_category_options(self, to: str, category: MenuCategory) -> bool:
        self.calls.append(("category_options", (to, category.id)))
        return self.send_ok

    async def send_image(self, to: str, media_id: str) -> bool:
        self.calls.append(("image", (to, media_id)))
        return self.send_ok

    async def send_link(self, to: str, link: str) -> bool:
        self.calls.append(("link", (to, link)))
        return self.send_ok

    async def aclose(self) -> None:
        pass

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeGenerator:
    provider_name = "fake"

    def __init__(self, *, error: Exception | None = None, image: bytes = PNG_BYTES) -> None:
        self.error = error
        self.image = image
        self.calls: list[tuple[str, InputImage | None]] = []

    async def generate(self, prompt: str, input_image: InputImage | None = None) -> GeneratedImage:
        self.calls.append((prompt, input_image))
        if self.error is not None:
            raise self.error
        return GeneratedImage(image_bytes=self.image, refined_prompt=f"An exhibit of {prompt.lower()}")


class InMemoryArtifactStore:
    """Artifact store double. Ids are UUIDs unless an id_factory is given."""

    def __init__(self, *, id_factory=None, fail_create: bool = False, healthy: bool = True) -> None:
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.fail_create = fail_create
        self.healthy = healthy
        self.items: dict[str, Artifact] = {}

    async def create(self, new: NewArtifact) -> Artifact:
        if self.fail_create:
            raise ArtifactStoreError("store unavailable")
        artifact = Artifact(
            id=self._id_factory(),
            source=new.source,
            user_prompt=new.user_prompt,
            user_image_ref=new.user_image_ref,
            generated_image_ref=new.generated_image_ref,
            refined_prompt=new.refined_prompt,
            provider_name=new.provider_name,
            created_at=utc_now(),
        )
        self.items[artifact.id] = artifact
        return artifact

    async def get(self, artifact_id: str) -> Artifact | None:
        return self.items.get(parse_artifact_id(artifact_id))

    async def ping(self) -> bool:
        return self.healthy


def make_meta_payload(
    message_id: str = "wamid.TEST0001",
    sender: str = "919800000001",
    *,
    text: str | None = None,
    reply_id: str | None = None,
    reply_kind: str = "list_reply",
) -> dict[str, Any]:
    """Build a Meta webhook envelope with a single message."""
    message: dict[str, Any] = {"from": sender, "id": message_id, "timestamp": "1704067200"}
    if text is not None:
        message["type"] = "text"
        message["text"] = {"body": text}
    elif reply_id is not None:
        message["type"] = "interactive"
        message["interactive"] = {
            "type": reply_kind,
            reply_kind: {"id": reply_id, "title": "Picked"},
        }
    else:
        message["type"] = "image"
        message["image"] = {"id": "IMG1", "mime_type": "image/jpeg"}

    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA_ID",
                "changes": [
                    {
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15550000000",
                                "phone_number_id": "123456789",
                            },
                            "contacts": [{"profile": {"name": "Test User"}, "wa_id": sender}],
                            "messages": [message],
                        },
                        "field": "messages",
                    }
                ],
            }
        ],
    }


def sign(body: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode()
