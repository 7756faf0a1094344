"""Web API: prompt -> generated image -> shareable link.

POST /api/artifacts          create (multipart form or JSON)
GET  /api/artifacts/{id}     read one artifact

Errors carry a generic ``{"message": ...}`` body; internal details stay in
the logs.
"""

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, ValidationError
from starlette.datastructures import UploadFile

from goodchoice.api.deps import get_services
from goodchoice.artifacts.models import NewArtifact
from goodchoice.artifacts.store import ArtifactStoreError, InvalidArtifactIdError
from goodchoice.conversation.fulfillment import build_share_link
from goodchoice.generation.base import InputImage
from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import safe_log_context
from goodchoice.services import Services

router = APIRouter(prefix="/api/artifacts", tags=["artifacts"])

logger = get_logger(__name__)


class CreateArtifactRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _read_body(request: Request) -> tuple[Any, UploadFile | None]:
    """Return (prompt, image) from a JSON or form body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = CreateArtifactRequest.model_validate(await request.json())
        except (ValueError, ValidationError):
            return None, None
        return body.prompt, None

    form = await request.form()
    image = form.get("image")
    return form.get("prompt"), image if isinstance(image, UploadFile) else None


@router.post("")
async def create_artifact(request: Request, services: Services = Depends(get_services)) -> JSONResponse:
    """Generate an image for a prompt and persist it as an artifact.

    Returns:
        200 {"artifactId", "link"}; 400 if prompt is missing; 500 on any
        internal failure.
    """
    try:
        prompt, image = await _read_body(request)
    except Exception:
        logger.warning("unreadable artifact request body")
        return _error(400, "Prompt is required")

    if not isinstance(prompt, str) or not prompt.strip():
        return _error(400, "Prompt is required")
    prompt = prompt.strip()

    # files written by this request; removed again if it fails
    saved_refs: list[str] = []
    try:
        input_image = None
        user_image_ref = None
        if image is not None:
            data = await image.read()
            if data:
                input_image = InputImage(
                    data=data,
                    filename=image.filename or "input.png",
                    mime_type=image.content_type or "image/png",
                )

        generated = await asyncio.wait_for(
            services.generator.generate(prompt, input_image),
            timeout=services.generation_timeout,
        )
        if input_image is not None:
            user_image_ref = await asyncio.to_thread(
                services.media.save, input_image.data, input_image.mime_type, folder="user"
            )
            saved_refs.append(user_image_ref)
        image_ref = await asyncio.to_thread(
            services.media.save, generated.image_bytes, generated.mime_type
        )
        saved_refs.append(image_ref)
        artifact = await services.store.create(
            NewArtifact(
                source="web",
                user_prompt=prompt,
                user_image_ref=user_image_ref,
                generated_image_ref=image_ref,
                refined_prompt=generated.refined_prompt,
                provider_name=services.generator.provider_name,
            )
        )
    except Exception:
        logger.exception(
            "artifact creation failed",
            extra={"extra_fields": safe_log_context(has_image=image is not None)},
        )
        for ref in saved_refs:
            await asyncio.to_thread(services.media.delete, ref)
        return _error(500, "Failed to create artifact")

    logger.info(
        "web artifact created",
        extra={"extra_fields": safe_log_context(artifact_id=artifact.id)},
    )
    return JSONResponse(
        status_code=200,
        content={
            "artifactId": artifact.id,
            "link": build_share_link(services.frontend_base_url, artifact.id),
        },
    )


@router.get("/{artifact_id}")
async def read_artifact(artifact_id: str, services: Services = Depends(get_services)) -> JSONResponse:
    """Return the full artifact record.

    Returns:
        200 with the record; 404 if absent; 500 if the id is malformed or
        the store fails.
    """
    try:
        artifact = await services.store.get(artifact_id)
    except InvalidArtifactIdError:
        logger.warning("malformed artifact id requested")
        return _error(500, "Invalid artifact id")
    except ArtifactStoreError:
        logger.exception("artifact read failed")
        return _error(500, "Failed to read artifact")

    if artifact is None:
        return _error(404, "Artifact not found")
    return JSONResponse(status_code=200, content=artifact.to_dict())
