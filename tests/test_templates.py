"""Tests for outbound payload builders."""

from goodchoice.whatsapp import templates


def test_welcome_menu_lists_every_category(catalog):
    payload = templates.welcome_menu("919800000001", catalog)

    assert payload["messaging_product"] == "whatsapp"
    assert payload["to"] == "919800000001"
    assert payload["type"] == "interactive"
    interactive = payload["interactive"]
    assert interactive["type"] == "list"
    assert "Good Choice Archive" in interactive["body"]["text"]
    assert interactive["action"]["button"] == "Choose Category"
    rows = interactive["action"]["sections"][0]["rows"]
    assert [r["id"] for r in rows] == [c.id for c in catalog.categories]
    assert all(r["title"] for r in rows)


def test_category_options_rows(catalog):
    category = catalog.category("CAT_FITNESS")
    payload = templates.category_options("919800000001", category)

    interactive = payload["interactive"]
    assert interactive["body"]["text"] == category.intro
    assert interactive["action"]["button"] == "Choose Habit"
    rows = interactive["action"]["sections"][0]["rows"]
    assert [r["id"] for r in rows] == ["OPT_WALK", "OPT_STRETCH", "OPT_PUSHUPS"]
    assert rows[0]["description"] == "10-minute walk"


def test_row_titles_respect_cloud_api_limit(catalog):
    for category in catalog.categories:
        payload = templates.category_options("1", category)
        for row in payload["interactive"]["action"]["sections"][0]["rows"]:
            assert len(row["title"]) <= 24


def test_image_by_media_id():
    payload = templates.image_by_media_id("1", "MEDIA_9")
    assert payload["type"] == "image"
    assert payload["image"] == {"id": "MEDIA_9", "caption": templates.IMAGE_CAPTION}


def test_link_text_contains_link():
    body = templates.link_text("https://x.test/?arId=abc123")
    assert body.endswith("https://x.test/?arId=abc123")
    assert "exhibit is ready" in body
