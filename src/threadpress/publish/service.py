"""Generate and remove thread pages and keep the site index current."""

import httpx
from loguru import logger

from threadpress.build.context import BuildContext
from threadpress.build.index import build_index_page
from threadpress.build.page import build_thread_page
from threadpress.build.templates import Templates, ensure_static_assets, load_templates
from threadpress.config import Config
from threadpress.gateway.base import ChatGateway, GatewayError
from threadpress.models import Message, PageMeta, Thread
from threadpress.publish.checks import is_publishable_thread
from threadpress.publish.notices import (
    Actor,
    Notifier,
    format_generated_notice,
    format_removed_notice,
)
from threadpress.publish.queue import DebouncedRebuild, SerialQueue
from threadpress.storage.meta import MetadataStore, delete_thread_output
from threadpress.storage.paths import is_safe_thread_id, local_thread_ids


class ThreadPublisher:
    """Owns the metadata store and runs page builds one at a time.

    generate() and remove() are safe to call directly when the caller already
    serializes work; the event entry points (handle_reaction_change,
    rebuild_all) go through the shared FIFO queue themselves.
    """

    def __init__(
        self,
        config: Config,
        gateway: ChatGateway,
        client: httpx.AsyncClient,
        templates: Templates | None = None,
        store: MetadataStore | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._client = client
        self._templates = templates or load_templates(config.site.templates_dir)
        self._store = store or MetadataStore(config.site.output_dir)
        self._notifier = notifier
        self._queue = SerialQueue()
        self._index_rebuild = DebouncedRebuild(
            self.rebuild_index, config.build.index_debounce_seconds
        )

    @property
    def store(self) -> MetadataStore:
        return self._store

    @property
    def queue(self) -> SerialQueue:
        return self._queue

    async def start(self) -> int:
        """Prepare the output dir and rehydrate the index from sidecars.

        Returns:
            The number of published threads found on disk.
        """
        output_dir = self._config.site.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        ensure_static_assets(output_dir, self._templates)
        count = self._store.load()
        if count:
            self._write_index()
            logger.info("Index rebuilt from local metadata: {} threads", count)
        return count

    def _write_index(self) -> None:
        build_index_page(
            self._config.site.output_dir,
            self._store.items(),
            self._templates,
            self._config.site,
        )

    async def rebuild_index(self) -> None:
        """Write the index page from the current store, in queue order."""

        async def task() -> None:
            self._write_index()
            logger.info("Index updated ({} threads)", len(self._store))

        await self._queue.run(task)

    def schedule_index_rebuild(self) -> None:
        self._index_rebuild.schedule()

    async def flush(self) -> None:
        """Wait for any scheduled index rebuild to finish."""
        await self._index_rebuild.flush()

    async def _notify(self, text: str, actor: Actor | None) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send(text, actor)
        except Exception as e:
            logger.warning("Notification failed: {}", e)

    async def generate(
        self,
        thread: Thread,
        messages: list[Message] | None = None,
        *,
        actor: Actor | None = None,
        notify: bool = True,
    ) -> PageMeta | None:
        """Render (or re-render) a thread page and record it in the index.

        Any failure is logged with the thread id and leaves the previously
        published page and the index untouched.

        Returns:
            The new page metadata, or None when nothing was written.
        """
        if not is_safe_thread_id(thread.id):
            logger.warning("Invalid thread id, skipping: {!r}", thread.id)
            return None
        logger.info("Generate thread {}", thread.id)
        try:
            if messages is None:
                messages = await self._gateway.fetch_messages(thread)
            if not messages:
                logger.warning("Thread has no messages, skipping: {}", thread.id)
                return None
            ctx = BuildContext.create(self._config, self._gateway, self._client)
            meta = await build_thread_page(thread, messages, ctx, self._templates)
        except Exception:
            logger.exception("Thread generation failed: {}", thread.id)
            return None

        self._store.put(meta)
        logger.info("Thread generated: {}", thread.id)
        if notify:
            notice = format_generated_notice(thread, meta, self._config.site.base_url, actor)
            await self._notify(notice, actor)
        self.schedule_index_rebuild()
        return meta

    async def remove(
        self,
        thread_id: str,
        *,
        title: str | None = None,
        url: str | None = None,
        actor: Actor | None = None,
        notify: bool = True,
    ) -> None:
        """Delete a thread's page and assets. Unknown threads are a no-op."""
        if not is_safe_thread_id(thread_id):
            logger.warning("Invalid thread id, nothing to remove: {!r}", thread_id)
            return
        logger.info("Thread removed: {}", thread_id)
        delete_thread_output(self._config.site.output_dir, thread_id)
        previous = self._store.remove(thread_id)
        if notify:
            notice = format_removed_notice(
                thread_id, title or (previous.title if previous else None), url, actor
            )
            await self._notify(notice, actor)
        self.schedule_index_rebuild()

    async def handle_reaction_change(self, thread: Thread, actor: Actor | None = None) -> None:
        """Publish or unpublish a thread after its publish reaction changed."""

        async def task() -> None:
            try:
                publishable = await is_publishable_thread(
                    thread, self._gateway, self._config.publish
                )
            except Exception:
                logger.exception("Publish check failed: {}", thread.id)
                return
            if publishable:
                await self.generate(thread, actor=actor)
            else:
                await self.remove(thread.id, title=thread.name, url=thread.url, actor=actor)

        await self._queue.run(task)

    async def rebuild_all(self) -> int:
        """Regenerate every thread that currently has a page.

        Returns:
            The number of threads regenerated.
        """
        thread_ids = local_thread_ids(self._config.site.output_dir)
        logger.info("Rebuilding {} threads", len(thread_ids))
        rebuilt = 0
        for thread_id in thread_ids:
            try:
                thread = await self._gateway.fetch_thread(thread_id)
            except GatewayError as e:
                logger.warning("Failed to fetch thread {}: {}", thread_id, e)
                continue
            except Exception:
                logger.exception("Failed to fetch thread {}", thread_id)
                continue
            if thread is None:
                logger.warning("Thread not found: {}", thread_id)
                continue
            resolved = thread

            async def task() -> PageMeta | None:
                return await self.generate(resolved, notify=False)

            if await self._queue.run(task):
                rebuilt += 1
        logger.info("Rebuild done: {}/{} threads", rebuilt, len(thread_ids))
        return rebuilt
