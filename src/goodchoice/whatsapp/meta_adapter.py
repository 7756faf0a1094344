"""Meta Cloud API adapter - validate and normalize webhook payloads.

Handles signature verification and extraction of the first message at
``entry[0].changes[0].value.messages[0]``.
"""

import hashlib
import hmac
from typing import Any

from goodchoice.infra.time import utc_now

from .models import InboundMessage, parse_selection


class InvalidPayloadError(Exception):
    """Raised when a Meta payload carries no usable message."""


class SignatureVerificationError(Exception):
    """Raised when HMAC signature verification fails."""


def verify_signature(payload_bytes: bytes, signature_header: str, app_secret: str) -> None:
    """Verify Meta webhook signature (HMAC-SHA256, ``sha256=<hex>``).

    Raises:
        SignatureVerificationError: If signature is invalid or missing.
    """
    if not signature_header:
        raise SignatureVerificationError("missing signature header")

    if not signature_header.startswith("sha256="):
        raise SignatureVerificationError("invalid signature format")

    expected_sig = signature_header[len("sha256="):]

    computed_sig = hmac.new(
        key=app_secret.encode("utf-8"),
        msg=payload_bytes,
        digestmod=hashlib.sha256,
    ).hexdigest()

    if not hmac.compare_digest(computed_sig, expected_sig):
        raise SignatureVerificationError("signature mismatch")


def normalize(payload: Any) -> InboundMessage:
    """Normalize the first message of a Meta payload.

    Text is lower-cased and trimmed for comparison. Interactive list and
    button replies are decoded into a typed Selection.

    Raises:
        InvalidPayloadError: If there is no message, or it lacks id or sender.
    """
    message = extract_first_message(payload)
    if message is None:
        raise InvalidPayloadError("no message found in payload")

    message_id = message.get("id")
    if not message_id or not isinstance(message_id, str):
        raise InvalidPayloadError("missing or invalid message_id")

    sender = message.get("from")
    if not sender or not isinstance(sender, str):
        raise InvalidPayloadError("missing sender")

    kind = str(message.get("type") or "unknown")

    return InboundMessage(
        message_id=message_id,
        sender=sender,
        kind=kind,
        received_at=utc_now(),
        text=_extract_text(message),
        selection=parse_selection(_extract_reply_id(message)),
    )


def extract_first_message(payload: Any) -> dict[str, Any] | None:
    """Return the first message dict of a Meta webhook payload, or None.

    Meta payload structure:
    {
      "object": "whatsapp_business_account",
      "entry": [{
        "changes": [{
          "value": {
            "metadata": {"phone_number_id": "..."},
            "messages": [{"from": "PHONE", "id": "MSG_ID", "type": "text", ...}]
          },
          "field": "messages"
        }]
      }]
    }

    Status-only deliveries (``value.statuses``) have no messages and yield None.
    """
    try:
        entry = payload.get("entry") or []
        changes = entry[0].get("changes") or []
        value = changes[0].get("value") or {}
        messages = value.get("messages") or []
        message = messages[0]
    except (AttributeError, IndexError, KeyError, TypeError):
        return None
    return message if isinstance(message, dict) else None


def _extract_text(message: dict[str, Any]) -> str | None:
    text_obj = message.get("text")
    if not isinstance(text_obj, dict):
        return None
    body = text_obj.get("body")
    if not isinstance(body, str):
        return None
    return body.strip().lower()


def _extract_reply_id(message: dict[str, Any]) -> str | None:
    interactive = message.get("interactive")
    if not isinstance(interactive, dict):
        return None
    for reply_key in ("list_reply", "button_reply"):
        reply = interactive.get(reply_key)
        if isinstance(reply, dict) and isinstance(reply.get("id"), str):
            return reply["id"]
    return None
