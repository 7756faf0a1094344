"""Shared pytest fixtures."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from goodchoice.api.factory import create_app  # noqa: E402
from goodchoice.catalog.menu import MenuCatalog, DEFAULT_CATEGORIES  # noqa: E402
from goodchoice.dedup.window import InMemoryDedupWindow  # noqa: E402
from goodchoice.infra.media_storage import MediaStorage  # noqa: E402
from goodchoice.services import Services  # noqa: E402
from goodchoice.tasks.client import TasksClient  # noqa: E402

from tests.helpers import (  # noqa: E402
    FRONTEND_URL,
    VERIFY_TOKEN,
    FakeGenerator,
    FakeSender,
    InMemoryArtifactStore,
)


@pytest.fixture(autouse=True)
def _meta_env(monkeypatch):
    """Known webhook secrets; signature checks off unless a test enables them."""
    monkeypatch.setenv("META_VERIFY_TOKEN", VERIFY_TOKEN)
    monkeypatch.delenv("META_APP_SECRET", raising=False)


@pytest.fixture
def catalog():
    return MenuCatalog(DEFAULT_CATEGORIES)


@pytest.fixture
def media(tmp_path):
    return MediaStorage(tmp_path / "media")


@pytest.fixture
def fake_sender():
    return FakeSender()


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def store():
    return InMemoryArtifactStore()


@pytest.fixture
def services(catalog, media, fake_sender, fake_generator, store):
    return Services(
        catalog=catalog,
        dedup=InMemoryDedupWindow(),
        tasks=TasksClient(default_timeout=5),
        store=store,
        media=media,
        generator=fake_generator,
        sender=fake_sender,
        frontend_base_url=FRONTEND_URL,
        generation_timeout=5,
    )


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    return TestClient(app)
