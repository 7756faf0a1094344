"""Conversation events derived from inbound messages."""

from dataclasses import dataclass
from typing import Union

from goodchoice.whatsapp.models import InboundMessage, SelectionTag

GREETINGS = frozenset({"hi", "hello", "start"})


@dataclass(frozen=True)
class Greeting:
    pass


@dataclass(frozen=True)
class CategorySelected:
    category_id: str


@dataclass(frozen=True)
class OptionSelected:
    option_id: str


@dataclass(frozen=True)
class Unrecognized:
    pass


ConversationEvent = Union[Greeting, CategorySelected, OptionSelected, Unrecognized]


def classify(message: InboundMessage) -> ConversationEvent:
    """Map a message to exactly one event. Never raises.

    Priority: greeting text, then category selection, then option selection.
    Anything else is Unrecognized.
    """
    text = (message.text or "").strip().lower()
    if text in GREETINGS:
        return Greeting()

    selection = message.selection
    if selection is not None:
        if selection.tag is SelectionTag.CATEGORY:
            return CategorySelected(category_id=selection.raw_id)
        if selection.tag is SelectionTag.OPTION:
            return OptionSelected(option_id=selection.raw_id)

    return Unrecognized()


def event_name(event: ConversationEvent) -> str:
    """Short name for logs."""
    return type(event).__name__
