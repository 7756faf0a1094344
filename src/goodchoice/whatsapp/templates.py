"""Outbound WhatsApp payload builders.

Static copy lives here; builders only fill in recipients, menu rows and
links. Payloads follow the Cloud API ``/messages`` schema.
"""

from typing import Any

from goodchoice.catalog.menu import MenuCatalog, MenuCategory

WELCOME_TEXT = (
    "👋 Welcome to *The Good Choice Archive*\n"
    "India’s first museum of better habits ✨\n\n"
    "What kind of good choice are you making today?"
)
CATEGORY_BUTTON = "Choose Category"
CATEGORY_SECTION_TITLE = "Categories"
OPTION_BUTTON = "Choose Habit"
OPTION_SECTION_TITLE = "Habits"
IMAGE_CAPTION = "🖼️ Your Good Choice Exhibit"
LINK_TEXT = (
    "✨ Your exhibit is ready!\n\n"
    "A small habit.\nA meaningful moment.\n\n"
    "👉 View here:\n{link}"
)

# Cloud API limits for list rows
_ROW_TITLE_MAX = 24
_ROW_DESCRIPTION_MAX = 72


def _envelope(to: str, message_type: str, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": message_type,
        message_type: body,
    }


def _list_message(
    to: str, *, text: str, button: str, section_title: str, rows: list[dict[str, str]]
) -> dict[str, Any]:
    return _envelope(
        to,
        "interactive",
        {
            "type": "list",
            "body": {"text": text},
            "action": {
                "button": button,
                "sections": [{"title": section_title, "rows": rows}],
            },
        },
    )


def welcome_menu(to: str, catalog: MenuCatalog) -> dict[str, Any]:
    """Interactive list with one row per category."""
    rows = [
        {"id": category.id, "title": category.title[:_ROW_TITLE_MAX]}
        for category in catalog.categories
    ]
    return _list_message(
        to,
        text=WELCOME_TEXT,
        button=CATEGORY_BUTTON,
        section_title=CATEGORY_SECTION_TITLE,
        rows=rows,
    )


def category_options(to: str, category: MenuCategory) -> dict[str, Any]:
    """Interactive list with the habits of one category."""
    rows = []
    for option in category.options:
        row = {"id": option.id, "title": option.title[:_ROW_TITLE_MAX]}
        if option.description:
            row["description"] = option.description[:_ROW_DESCRIPTION_MAX]
        rows.append(row)
    return _list_message(
        to,
        text=category.intro,
        button=OPTION_BUTTON,
        section_title=OPTION_SECTION_TITLE,
        rows=rows,
    )


def image_by_media_id(to: str, media_id: str, caption: str = IMAGE_CAPTION) -> dict[str, Any]:
    """Image message referencing an already uploaded media handle."""
    return _envelope(to, "image", {"id": media_id, "caption": caption})


def text_message(to: str, body: str) -> dict[str, Any]:
    return _envelope(to, "text", {"preview_url": True, "body": body})


def link_text(link: str) -> str:
    """Body of the final reply carrying the shareable artifact link."""
    return LINK_TEXT.format(link=link)
