"""WhatsApp inbound message models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SelectionTag(str, Enum):
    """Namespace of an interactive reply id."""

    CATEGORY = "CAT_"
    OPTION = "OPT_"


@dataclass(frozen=True)
class Selection:
    """Interactive reply decoded into its namespace and raw id.

    ``raw_id`` is the full id as sent in the menu (e.g. ``CAT_FITNESS``);
    catalog lookups use it unchanged.
    """

    tag: SelectionTag
    raw_id: str


def parse_selection(raw_id: str | None) -> Selection | None:
    """Decode an interactive reply id. Unknown namespaces yield None."""
    if not raw_id or not isinstance(raw_id, str):
        return None
    for tag in SelectionTag:
        if raw_id.startswith(tag.value) and len(raw_id) > len(tag.value):
            return Selection(tag=tag, raw_id=raw_id)
    return None


@dataclass(frozen=True)
class InboundMessage:
    """One message delivery from Meta, normalized.

    Transient: lives only for the duration of one dispatch and is never
    persisted. ``sender`` and ``text`` are PII and must not be logged.
    """

    message_id: str
    sender: str
    kind: str  # "text", "interactive", "image", ...
    received_at: datetime
    text: str | None = None  # lower-cased and trimmed
    selection: Selection | None = None
