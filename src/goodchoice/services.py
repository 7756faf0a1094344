"""Process-wide collaborators, wired from environment variables.

Each collaborator is built on first use so that the app starts (and serves
/health) even when, say, Meta credentials are not configured. Tests pass
fakes to the constructor instead.
"""

import os

from goodchoice.artifacts.store import ArtifactStore, PostgresArtifactStore
from goodchoice.catalog.menu import MenuCatalog, load_catalog
from goodchoice.conversation.fulfillment import DEFAULT_GENERATION_TIMEOUT, FulfillmentPipeline
from goodchoice.conversation.router import ConversationRouter
from goodchoice.dedup.window import DedupWindow, build_dedup_window
from goodchoice.generation.base import ContentGenerator
from goodchoice.generation.openai_generator import OpenAIImageGenerator
from goodchoice.infra.media_storage import MediaStorage
from goodchoice.tasks.client import TasksClient
from goodchoice.whatsapp.meta_sender import MetaSender

DEFAULT_FRONTEND_URL = "http://localhost:5173"


class Services:
    def __init__(
        self,
        *,
        catalog: MenuCatalog | None = None,
        dedup: DedupWindow | None = None,
        tasks: TasksClient | None = None,
        store: ArtifactStore | None = None,
        media: MediaStorage | None = None,
        generator: ContentGenerator | None = None,
        sender: MetaSender | None = None,
        frontend_base_url: str | None = None,
        generation_timeout: float = DEFAULT_GENERATION_TIMEOUT,
    ) -> None:
        self._catalog = catalog
        self._dedup = dedup
        self._tasks = tasks
        self._store = store
        self._media = media
        self._generator = generator
        self._sender = sender
        self._router: ConversationRouter | None = None
        self.frontend_base_url = frontend_base_url or os.environ.get(
            "AR_FRONTEND_URL", DEFAULT_FRONTEND_URL
        )
        self.generation_timeout = generation_timeout

    @property
    def catalog(self) -> MenuCatalog:
        if self._catalog is None:
            self._catalog = load_catalog()
        return self._catalog

    @property
    def dedup(self) -> DedupWindow:
        if self._dedup is None:
            self._dedup = build_dedup_window()
        return self._dedup

    @property
    def tasks(self) -> TasksClient:
        if self._tasks is None:
            self._tasks = TasksClient()
        return self._tasks

    @property
    def store(self) -> ArtifactStore:
        if self._store is None:
            self._store = PostgresArtifactStore()
        return self._store

    @property
    def media(self) -> MediaStorage:
        if self._media is None:
            self._media = MediaStorage.from_env()
        return self._media

    @property
    def generator(self) -> ContentGenerator:
        if self._generator is None:
            self._generator = OpenAIImageGenerator()
        return self._generator

    @property
    def sender(self) -> MetaSender:
        """Raises MetaConfigError when Meta credentials are missing."""
        if self._sender is None:
            self._sender = MetaSender.from_env()
        return self._sender

    @property
    def router(self) -> ConversationRouter:
        if self._router is None:
            pipeline = FulfillmentPipeline(
                catalog=self.catalog,
                generator=self.generator,
                store=self.store,
                media=self.media,
                sender=self.sender,
                frontend_base_url=self.frontend_base_url,
                generation_timeout=self.generation_timeout,
            )
            self._router = ConversationRouter(
                catalog=self.catalog, sender=self.sender, pipeline=pipeline
            )
        return self._router

    async def aclose(self) -> None:
        if self._tasks is not None:
            await self._tasks.shutdown()
        if self._sender is not None:
            await self._sender.aclose()
