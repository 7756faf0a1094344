"""Fulfillment pipeline: option selected -> generated exhibit delivered.

Sequence per invocation:
1. resolve option -> prompt
2. generate image (bounded by a timeout)
3. store the image and create the artifact
4. upload the image to Meta
5. send the image, then the shareable link

A failure in steps 1-3 aborts the run with nothing sent, no artifact
written and no image file left on disk. Steps 4-5 are independent
best-effort sends; the link is only built after the artifact exists. The
user receives no error message on failure.
"""

import asyncio
import os
from enum import Enum
from typing import Protocol

from goodchoice.artifacts.models import NewArtifact
from goodchoice.artifacts.store import ArtifactStore
from goodchoice.catalog.menu import MenuCatalog
from goodchoice.generation.base import ContentGenerator
from goodchoice.infra.media_storage import MediaStorage
from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

DEFAULT_GENERATION_TIMEOUT = float(os.environ.get("GENERATION_TIMEOUT_SECONDS", "120"))


class FulfillmentResult(str, Enum):
    COMPLETED = "completed"
    ABORTED_UNKNOWN_OPTION = "aborted_unknown_option"
    ABORTED_GENERATION = "aborted_generation"
    ABORTED_PERSISTENCE = "aborted_persistence"


class ReplySender(Protocol):
    async def upload_media(self, data: bytes, mime_type: str = ..., filename: str = ...) -> str | None:
        ...

    async def send_image(self, to: str, media_id: str) -> bool:
        ...

    async def send_link(self, to: str, link: str) -> bool:
        ...


def build_share_link(frontend_base_url: str, artifact_id: str) -> str:
    return f"{frontend_base_url.rstrip('/')}/?arId={artifact_id}"


class FulfillmentPipeline:
    def __init__(
        self,
        *,
        catalog: MenuCatalog,
        generator: ContentGenerator,
        store: ArtifactStore,
        media: MediaStorage,
        sender: ReplySender,
        frontend_base_url: str,
        generation_timeout: float = DEFAULT_GENERATION_TIMEOUT,
    ) -> None:
        self.catalog = catalog
        self.generator = generator
        self.store = store
        self.media = media
        self.sender = sender
        self.frontend_base_url = frontend_base_url
        self.generation_timeout = generation_timeout

    async def fulfill(self, sender: str, option_id: str) -> FulfillmentResult:
        log_ctx = safe_log_context(option_id=option_id, to_hash=hash_identifier(sender))

        prompt = self.catalog.prompt_for(option_id)
        if prompt is None:
            logger.warning("unknown option, nothing to fulfill", extra={"extra_fields": log_ctx})
            return FulfillmentResult.ABORTED_UNKNOWN_OPTION

        logger.info("generating exhibit", extra={"extra_fields": log_ctx})
        try:
            generated = await asyncio.wait_for(
                self.generator.generate(prompt), timeout=self.generation_timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                "content generation timed out",
                extra={"extra_fields": safe_log_context(**log_ctx, timeout=self.generation_timeout)},
            )
            return FulfillmentResult.ABORTED_GENERATION
        except Exception:
            logger.exception("content generation failed", extra={"extra_fields": log_ctx})
            return FulfillmentResult.ABORTED_GENERATION

        image_ref = None
        try:
            image_ref = await asyncio.to_thread(
                self.media.save, generated.image_bytes, generated.mime_type
            )
            artifact = await self.store.create(
                NewArtifact(
                    source="whatsapp",
                    user_prompt=prompt,
                    generated_image_ref=image_ref,
                    refined_prompt=generated.refined_prompt,
                    provider_name=self.generator.provider_name,
                )
            )
        except Exception:
            logger.exception("artifact persistence failed", extra={"extra_fields": log_ctx})
            # no artifact refers to the file
            if image_ref is not None:
                await asyncio.to_thread(self.media.delete, image_ref)
            return FulfillmentResult.ABORTED_PERSISTENCE

        log_ctx = safe_log_context(**log_ctx, artifact_id=artifact.id)
        logger.info("artifact created", extra={"extra_fields": log_ctx})

        media_id = await self.sender.upload_media(generated.image_bytes, generated.mime_type)
        if media_id:
            image_sent = await self.sender.send_image(sender, media_id)
        else:
            image_sent = False
            logger.warning("media upload failed, sending link only", extra={"extra_fields": log_ctx})

        link_sent = await self.sender.send_link(
            sender, build_share_link(self.frontend_base_url, artifact.id)
        )

        logger.info(
            "fulfillment finished",
            extra={
                "extra_fields": safe_log_context(
                    **log_ctx, image_sent=image_sent, link_sent=link_sent
                )
            },
        )
        return FulfillmentResult.COMPLETED
