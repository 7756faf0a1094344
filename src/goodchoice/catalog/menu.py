"""Static menu: categories, their habit options, and the prompt behind each option.

The catalog is built once at process start and never mutated. Ids carry the
selection namespaces used in interactive replies (``CAT_`` for categories,
``OPT_`` for options).
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import safe_log_context

logger = get_logger(__name__)


class CatalogError(Exception):
    """Raised when a catalog file is malformed."""


@dataclass(frozen=True)
class MenuOption:
    id: str
    title: str
    description: str
    prompt: str


@dataclass(frozen=True)
class MenuCategory:
    id: str
    title: str
    intro: str
    options: tuple[MenuOption, ...]


class MenuCatalog:
    """Ordered, read-only lookup over categories and options."""

    def __init__(self, categories: list[MenuCategory] | tuple[MenuCategory, ...]) -> None:
        self._categories = tuple(categories)
        self._by_category: dict[str, MenuCategory] = {}
        self._by_option: dict[str, MenuOption] = {}

        for category in self._categories:
            if category.id in self._by_category:
                raise CatalogError(f"duplicate category id: {category.id}")
            self._by_category[category.id] = category
            for option in category.options:
                if option.id in self._by_option:
                    raise CatalogError(f"duplicate option id: {option.id}")
                self._by_option[option.id] = option

    @property
    def categories(self) -> tuple[MenuCategory, ...]:
        return self._categories

    def category(self, category_id: str) -> MenuCategory | None:
        return self._by_category.get(category_id)

    def option(self, option_id: str) -> MenuOption | None:
        return self._by_option.get(option_id)

    def prompt_for(self, option_id: str) -> str | None:
        """Canonical prompt for an option, or None when the id is unknown."""
        option = self.option(option_id)
        return option.prompt if option else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MenuCatalog":
        """Build a catalog from its JSON representation.

        Expected shape::

            {"categories": [{"id": "CAT_X", "title": "...", "intro": "...",
                             "options": [{"id": "OPT_Y", "title": "...",
                                          "description": "...", "prompt": "..."}]}]}
        """
        try:
            categories = [
                MenuCategory(
                    id=raw["id"],
                    title=raw["title"],
                    intro=raw.get("intro", raw["title"]),
                    options=tuple(
                        MenuOption(
                            id=opt["id"],
                            title=opt["title"],
                            description=opt.get("description", ""),
                            prompt=opt["prompt"],
                        )
                        for opt in raw["options"]
                    ),
                )
                for raw in data["categories"]
            ]
        except (KeyError, TypeError) as exc:
            raise CatalogError(f"malformed catalog: {exc}") from exc
        return cls(categories)


DEFAULT_CATEGORIES: tuple[MenuCategory, ...] = (
    MenuCategory(
        id="CAT_SELFCARE",
        title="🧘 Self-Care",
        intro="💛 *Self-Care* — choose one habit 👇",
        options=(
            MenuOption("OPT_WATER", "💧 Drink Water", "Drink a full glass of water",
                       "Drinking a full glass of water"),
            MenuOption("OPT_NO_SCREEN", "📵 No Screens", "Avoid screens before sleeping",
                       "Avoiding screens before sleep"),
            MenuOption("OPT_JOURNAL", "✍️ Journal", "Write one journal line",
                       "Writing in a journal"),
            MenuOption("OPT_HOBBY", "🎨 Hobby Time", "Spend 5 minutes on a hobby",
                       "Doing a creative hobby"),
        ),
    ),
    MenuCategory(
        id="CAT_FITNESS",
        title="🏃 Fitness",
        intro="🏃 *Fitness* — pick one habit 👇",
        options=(
            MenuOption("OPT_WALK", "🚶 Walk", "10-minute walk", "Walking for fitness"),
            MenuOption("OPT_STRETCH", "🤸 Stretch", "Stretching exercise", "Stretching exercise"),
            MenuOption("OPT_PUSHUPS", "💪 Push-ups", "10 push-ups", "Doing push-ups"),
        ),
    ),
    MenuCategory(
        id="CAT_MINDFUL",
        title="🧠 Mindfulness",
        intro="🧠 *Mindfulness* — choose one 👇",
        options=(
            MenuOption("OPT_BREATH", "🌬️ Breathing", "2 minutes deep breathing",
                       "Practicing deep breathing"),
            MenuOption("OPT_GRAT", "🙏 Gratitude", "Think of one grateful moment",
                       "Feeling gratitude"),
        ),
    ),
    MenuCategory(
        id="CAT_PRODUCT",
        title="🚀 Productivity",
        intro="🚀 *Productivity* — choose one 👇",
        options=(
            MenuOption("OPT_TODO", "📝 To-Do", "Write today’s top task", "Planning tasks"),
            MenuOption("OPT_FOCUS", "⏱️ Focus", "10 minutes focused work", "Focused work session"),
        ),
    ),
    MenuCategory(
        id="CAT_NUTRITION",
        title="🥗 Nutrition",
        intro="🥗 *Nutrition* — choose one 👇",
        options=(
            MenuOption("OPT_FRUIT", "🍎 Fruit", "Eat one fruit", "Eating a fruit"),
            MenuOption("OPT_WATER2", "💧 Hydration", "Drink extra water", "Staying hydrated"),
        ),
    ),
)


def load_catalog(path: str | None = None) -> MenuCatalog:
    """Load the catalog from MENU_CATALOG_PATH, or the built-in default.

    Raises:
        CatalogError: If the configured file is unreadable or malformed.
    """
    path = path if path is not None else os.environ.get("MENU_CATALOG_PATH", "")
    if not path:
        return MenuCatalog(DEFAULT_CATEGORIES)

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"cannot read catalog file {path}: {exc}") from exc

    catalog = MenuCatalog.from_dict(data)
    logger.info(
        "menu catalog loaded from file",
        extra={"extra_fields": safe_log_context(categories=len(catalog.categories))},
    )
    return catalog
