"""Correlation ID tracking shared by requests and the background tasks they spawn."""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

# Survives asyncio.create_task() because tasks copy the current context
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def get_correlation_id() -> str:
    """Return the correlation ID bound to the current context ("" if none)."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    Generates a fresh ID when none is given. The HTTP middleware opens one
    scope per request.
    """
    value = cid or generate_correlation_id()
    token = set_correlation_id(value)
    try:
        yield value
    finally:
        reset_correlation_id(token)
