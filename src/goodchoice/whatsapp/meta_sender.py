"""Outbound WhatsApp messaging via Meta Cloud API.

Every send is a single best-effort attempt with one retry on network errors
and 5xx responses. Failures are logged and reported as ``False``/``None``;
nothing here raises into the caller.

Security: NEVER log recipient phone numbers or message text. Only hashes and
lengths.
"""

import asyncio
import os
from typing import Any

import httpx

from goodchoice.catalog.menu import MenuCatalog, MenuCategory
from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import hash_identifier, safe_log_context

from . import templates

logger = get_logger(__name__)

HTTP_TIMEOUT = float(os.environ.get("META_HTTP_TIMEOUT_SECONDS", "10"))
UPLOAD_TIMEOUT = float(os.environ.get("META_UPLOAD_TIMEOUT_SECONDS", "30"))

MAX_RETRIES = 1
RETRY_DELAY = 0.2

DEFAULT_GRAPH_API_VERSION = "v19.0"
GRAPH_BASE_URL = "https://graph.facebook.com"


class MetaConfigError(RuntimeError):
    """Raised when META_PHONE_NUMBER_ID / META_ACCESS_TOKEN are missing."""


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return 500 <= exc.response.status_code < 600
    return isinstance(exc, httpx.TransportError)


class MetaSender:
    """Delivery transport for the Cloud API ``/messages`` and ``/media`` endpoints."""

    def __init__(
        self,
        *,
        phone_number_id: str,
        access_token: str,
        api_version: str = DEFAULT_GRAPH_API_VERSION,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = GRAPH_BASE_URL,
    ) -> None:
        if not phone_number_id or not access_token:
            raise MetaConfigError(
                "Missing Meta config: META_PHONE_NUMBER_ID and META_ACCESS_TOKEN required"
            )
        self._phone_number_id = phone_number_id
        self._access_token = access_token
        self._base = f"{base_url.rstrip('/')}/{api_version}/{phone_number_id}"
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_env(cls) -> "MetaSender":
        """Build from META_PHONE_NUMBER_ID, META_ACCESS_TOKEN, META_GRAPH_API_VERSION."""
        return cls(
            phone_number_id=os.environ.get("META_PHONE_NUMBER_ID", ""),
            access_token=os.environ.get("META_ACCESS_TOKEN", ""),
            api_version=os.environ.get("META_GRAPH_API_VERSION", DEFAULT_GRAPH_API_VERSION),
        )

    @property
    def messages_url(self) -> str:
        return f"{self._base}/messages"

    @property
    def media_url(self) -> str:
        return f"{self._base}/media"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _post_with_retry(self, log_ctx: dict[str, str], **request: Any) -> httpx.Response | None:
        client = self._get_client()
        for attempt in range(MAX_RETRIES + 1):
            try:
                response = await client.post(headers=self._auth_headers(), **request)
                response.raise_for_status()
                return response
            except httpx.HTTPError as exc:
                if attempt < MAX_RETRIES and _is_retryable(exc):
                    logger.warning(
                        "meta request failed, retrying",
                        extra={
                            "extra_fields": safe_log_context(
                                **log_ctx, attempt=attempt, error_type=type(exc).__name__
                            )
                        },
                    )
                    await asyncio.sleep(RETRY_DELAY)
                    continue

                status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
                logger.error(
                    "meta request failed",
                    extra={
                        "extra_fields": safe_log_context(
                            **log_ctx,
                            attempt=attempt,
                            error_type=type(exc).__name__,
                            status_code=status,
                        )
                    },
                )
                return None
        return None

    async def send(self, payload: dict[str, Any]) -> bool:
        """POST a message payload. Returns True on a 2xx response."""
        log_ctx = safe_log_context(
            to_hash=hash_identifier(str(payload.get("to", ""))),
            message_type=payload.get("type", "unknown"),
            provider="meta",
        )
        logger.info("sending outbound message via meta", extra={"extra_fields": log_ctx})

        response = await self._post_with_retry(log_ctx, url=self.messages_url, json=payload)
        if response is None:
            return False

        logger.info("outbound message sent via meta", extra={"extra_fields": log_ctx})
        return True

    async def upload_media(
        self, data: bytes, mime_type: str = "image/png", filename: str = "exhibit.png"
    ) -> str | None:
        """Upload media and return its handle id, or None on failure."""
        log_ctx = safe_log_context(size=len(data), mime_type=mime_type, provider="meta")
        response = await self._post_with_retry(
            log_ctx,
            url=self.media_url,
            data={"messaging_product": "whatsapp", "type": mime_type},
            files={"file": (filename, data, mime_type)},
            timeout=UPLOAD_TIMEOUT,
        )
        if response is None:
            return None

        try:
            media_id = response.json().get("id")
        except (ValueError, AttributeError):
            media_id = None

        if not media_id:
            logger.error("meta media upload returned no id", extra={"extra_fields": log_ctx})
            return None
        return str(media_id)

    async def send_welcome_menu(self, to: str, catalog: MenuCatalog) -> bool:
        return await self.send(templates.welcome_menu(to, catalog))

    async def send_category_options(self, to: str, category: MenuCategory) -> bool:
        return await self.send(templates.category_options(to, category))

    async def send_image(self, to: str, media_id: str, caption: str = templates.IMAGE_CAPTION) -> bool:
        return await self.send(templates.image_by_media_id(to, media_id, caption))

    async def send_text(self, to: str, body: str) -> bool:
        return await self.send(templates.text_message(to, body))

    async def send_link(self, to: str, link: str) -> bool:
        return await self.send_text(to, templates.link_text(link))
