"""OpenAI-backed image generation.

Two calls per prompt: a chat completion that turns the habit into a museum
exhibit description (JSON), then an image generation (or edit, when the user
supplied a reference image) from that description.
"""

import base64
import binascii
import json
import os

from openai import AsyncOpenAI, OpenAIError

from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import safe_log_context

from .base import GeneratedImage, GenerationError, InputImage

logger = get_logger(__name__)

DEFAULT_TEXT_MODEL = "gpt-4o-mini"
DEFAULT_IMAGE_MODEL = "gpt-image-1"
IMAGE_SIZE = "1024x1024"

CURATOR_SYSTEM_PROMPT = "You are a museum curator. Respond ONLY with valid JSON."
CURATOR_USER_PROMPT = (
    'Create a vivid visual description for: "{prompt}". '
    'Return an object with a single "description" field.'
)


class OpenAIImageGenerator:
    provider_name = "openai"

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        *,
        text_model: str | None = None,
        image_model: str | None = None,
    ) -> None:
        self._client = client
        self.text_model = text_model or os.environ.get("OPENAI_TEXT_MODEL", DEFAULT_TEXT_MODEL)
        self.image_model = image_model or os.environ.get("OPENAI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Reads OPENAI_API_KEY
            self._client = AsyncOpenAI()
        return self._client

    async def refine_prompt(self, prompt: str) -> str:
        """Ask the text model for an exhibit description; fall back to the prompt."""
        response = await self._get_client().chat.completions.create(
            model=self.text_model,
            messages=[
                {"role": "system", "content": CURATOR_SYSTEM_PROMPT},
                {"role": "user", "content": CURATOR_USER_PROMPT.format(prompt=prompt)},
            ],
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content if response.choices else None
        try:
            meta = json.loads(content or "")
        except json.JSONDecodeError:
            logger.warning(
                "curator response was not valid json, using raw prompt",
                extra={"extra_fields": safe_log_context(model=self.text_model)},
            )
            return prompt

        description = meta.get("description") if isinstance(meta, dict) else None
        if isinstance(description, str) and description.strip():
            return description.strip()
        return prompt

    async def generate(self, prompt: str, input_image: InputImage | None = None) -> GeneratedImage:
        """Generate an image for the prompt.

        Raises:
            GenerationError: On provider errors or a response without image data.
        """
        try:
            refined = await self.refine_prompt(prompt)
            client = self._get_client()
            if input_image is not None:
                result = await client.images.edit(
                    model=self.image_model,
                    image=(input_image.filename, input_image.data, input_image.mime_type),
                    prompt=refined,
                    size=IMAGE_SIZE,
                )
            else:
                result = await client.images.generate(
                    model=self.image_model,
                    prompt=refined,
                    size=IMAGE_SIZE,
                )
        except OpenAIError as exc:
            raise GenerationError(f"openai request failed: {type(exc).__name__}") from exc

        b64 = result.data[0].b64_json if result.data else None
        if not b64:
            raise GenerationError("Image generation failed: no base64 returned")

        try:
            image_bytes = base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise GenerationError("Image generation returned invalid base64") from exc

        logger.info(
            "image generated",
            extra={
                "extra_fields": safe_log_context(
                    model=self.image_model,
                    size=len(image_bytes),
                    edited=input_image is not None,
                )
            },
        )
        return GeneratedImage(image_bytes=image_bytes, refined_prompt=refined)
