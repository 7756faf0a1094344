"""WhatsApp webhook routes - Meta Cloud API.

Ack-first contract: POST always answers 200, and answers before any
downstream work runs. Meta treats slow or non-2xx responses as failures and
redelivers, so classification, generation and replies all happen in a
background task spawned after the dedup check.

Security:
- sender phone numbers and message text are never logged
- signatures are verified when META_APP_SECRET is set
"""

import asyncio
import os
from typing import Any

from fastapi import APIRouter, Depends, Header, Query, Request, Response

from goodchoice.api.deps import get_services
from goodchoice.dedup.window import check_and_record_fail_open
from goodchoice.observability.correlation import get_correlation_id
from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import id_prefix, safe_log_context
from goodchoice.services import Services
from goodchoice.whatsapp.meta_adapter import (
    InvalidPayloadError,
    SignatureVerificationError,
    normalize,
    verify_signature,
)

router = APIRouter(prefix="/webhook", tags=["webhooks"])

logger = get_logger(__name__)

SUBSCRIBE_MODE = "subscribe"


def _ok(content: str = "ok") -> Response:
    return Response(status_code=200, content=content, media_type="text/plain")


@router.get("")
async def webhook_verify(
    hub_mode: str | None = Query(None, alias="hub.mode"),
    hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(None, alias="hub.challenge"),
) -> Response:
    """Meta webhook verification.

    Returns:
        200 with hub.challenge verbatim if mode is "subscribe" and the token
        matches META_VERIFY_TOKEN; 403 with an empty body otherwise.
    """
    expected_token = os.environ.get("META_VERIFY_TOKEN", "")

    if expected_token and hub_mode == SUBSCRIBE_MODE and hub_verify_token == expected_token:
        logger.info("meta webhook verification successful")
        return Response(status_code=200, content=hub_challenge or "", media_type="text/plain")

    logger.warning(
        "meta webhook verification failed",
        extra={
            "extra_fields": safe_log_context(
                hub_mode=hub_mode or "missing",
                token_configured=bool(expected_token),
            )
        },
    )
    return Response(status_code=403)


@router.post("")
async def webhook_receive(
    request: Request,
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
    services: Services = Depends(get_services),
) -> Response:
    """Receive a Meta webhook delivery.

    IMPORTANT: Always return 200, even on errors. Meta retries non-2xx
    responses, which would cause duplicate processing.
    """
    correlation_id = get_correlation_id()

    # 1. Raw body (needed for signature verification)
    try:
        body_bytes = await request.body()
    except Exception:
        logger.warning(
            "failed to read request body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return _ok()

    # 2. Signature (only when an app secret is configured)
    app_secret = os.environ.get("META_APP_SECRET", "")
    if app_secret:
        try:
            verify_signature(body_bytes, x_hub_signature_256 or "", app_secret)
        except SignatureVerificationError as e:
            logger.warning(
                "meta signature verification failed",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id, error=str(e))},
            )
            return _ok()

    # 3. Parse JSON
    try:
        payload: Any = await request.json()
    except Exception:
        logger.warning(
            "invalid json body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return _ok()

    # 4. First message (status updates and other events carry none)
    try:
        msg = normalize(payload)
    except InvalidPayloadError as e:
        logger.debug(
            "no message in meta payload",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id, reason=str(e))},
        )
        return _ok()

    log_ctx = safe_log_context(
        correlationId=correlation_id,
        message_id_prefix=id_prefix(msg.message_id),
        kind=msg.kind,
    )

    # 5. Collaborators; a message that cannot be handled is not recorded as seen
    try:
        conversation = services.router
    except Exception:
        logger.exception("message handling unavailable", extra={"extra_fields": log_ctx})
        return _ok()

    # 6. Dedupe (atomic check-and-insert, fails open)
    is_new = await asyncio.to_thread(check_and_record_fail_open, services.dedup, msg.message_id)
    if not is_new:
        logger.info("duplicate meta message ignored", extra={"extra_fields": log_ctx})
        return _ok("duplicate")

    logger.info("meta webhook received", extra={"extra_fields": log_ctx})

    # 7. Hand off; the task starts only after this handler returns
    try:
        spawned = services.tasks.spawn(
            f"whatsapp:{msg.message_id}",
            lambda: conversation.handle(msg),
        )
    except Exception:
        logger.exception("failed to schedule message handling", extra={"extra_fields": log_ctx})
        return _ok()

    if not spawned:
        logger.warning("message handling already in flight", extra={"extra_fields": log_ctx})

    return _ok()
