"""Conversation router: classify an inbound message and act on it.

No per-sender state is kept. Every event is handled on its own, whatever
the user saw before (a stale option tap still generates an exhibit).
"""

from typing import Protocol

from goodchoice.catalog.menu import MenuCatalog, MenuCategory
from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import hash_identifier, id_prefix, safe_log_context
from goodchoice.whatsapp.models import InboundMessage

from .events import (
    CategorySelected,
    ConversationEvent,
    Greeting,
    OptionSelected,
    Unrecognized,
    classify,
    event_name,
)
from .fulfillment import FulfillmentPipeline

logger = get_logger(__name__)


class MenuSender(Protocol):
    async def send_welcome_menu(self, to: str, catalog: MenuCatalog) -> bool:
        ...

    async def send_category_options(self, to: str, category: MenuCategory) -> bool:
        ...


class ConversationRouter:
    def __init__(
        self,
        *,
        catalog: MenuCatalog,
        sender: MenuSender,
        pipeline: FulfillmentPipeline,
    ) -> None:
        self.catalog = catalog
        self.sender = sender
        self.pipeline = pipeline

    async def handle(self, message: InboundMessage) -> ConversationEvent:
        """Classify and dispatch one message. Returns the event handled."""
        event = classify(message)
        logger.info(
            "inbound message classified",
            extra={
                "extra_fields": safe_log_context(
                    message_id_prefix=id_prefix(message.message_id),
                    kind=message.kind,
                    event=event_name(event),
                )
            },
        )
        await self.dispatch(event, message.sender)
        return event

    async def dispatch(self, event: ConversationEvent, sender: str) -> None:
        if isinstance(event, Greeting):
            await self.sender.send_welcome_menu(sender, self.catalog)
        elif isinstance(event, CategorySelected):
            category = self.catalog.category(event.category_id)
            if category is None:
                logger.warning(
                    "category not found",
                    extra={
                        "extra_fields": safe_log_context(
                            category_id=event.category_id,
                            to_hash=hash_identifier(sender),
                        )
                    },
                )
                return
            await self.sender.send_category_options(sender, category)
        elif isinstance(event, OptionSelected):
            await self.pipeline.fulfill(sender, event.option_id)
        elif isinstance(event, Unrecognized):
            logger.debug(
                "unrecognized message ignored",
                extra={"extra_fields": safe_log_context(to_hash=hash_identifier(sender))},
            )
