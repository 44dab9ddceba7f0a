"""Embeddings retrieval: cache-first codebase search.

Completion latency must not wait on a codebase search, so `fetch` only ever
answers from the cache. The cache holds the latest ranking per file; every
fetch also starts a background search with the current query, so the
ranking served on the next keystroke follows what is being typed.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from collections import OrderedDict
from pathlib import Path

from autocontext.context.models import EMBEDDINGS_SOURCE, AssemblyRequest, ReferenceSnippet
from autocontext.search.base import CodebaseContext, RetrievalSource
from autocontext.search.local import last_lines

logger = logging.getLogger("autocontext.search")


def _normalize(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


def _is_same_file(current_file: str, file_name: str, root: str | Path | None = None) -> bool:
    """Whether a search hit `file_name` is the file being edited.

    Relative hit names are resolved against `root` only when `current_file`
    is absolute; without a root such a pair never matches.
    """
    if not current_file or not file_name:
        return False
    current = _normalize(current_file)
    other = _normalize(file_name)
    if posixpath.isabs(current) and not posixpath.isabs(other):
        if root is None:
            return False
        other = _normalize(posixpath.join(Path(root).as_posix(), other))
    return current == other


class EmbeddingsContextSource(RetrievalSource):
    """Serves codebase search results from a per-file LRU cache refreshed in the background.

    The search query is the last `query_lines` lines of the request prefix.
    At most one background search per file is in flight. Results from the
    current file itself are dropped since the prompt already contains it.
    """

    name = EMBEDDINGS_SOURCE

    def __init__(
        self,
        max_results: int = 5,
        query_lines: int = 20,
        cache_size: int = 50,
        root: str | Path | None = None,
    ) -> None:
        self.max_results = max_results
        self.query_lines = query_lines
        self.cache_size = cache_size
        self.root = root
        self._cache: OrderedDict[str, list[ReferenceSnippet]] = OrderedDict()
        self._pending: dict[str, asyncio.Task] = {}

    async def fetch(self, request: AssemblyRequest) -> list[ReferenceSnippet]:
        codebase = request.codebase_context
        if codebase is None:
            return []

        key = request.current_file
        self._schedule_refresh(key, self._query(request), codebase)

        cached = self._cache.get(key)
        if cached is None:
            return []
        self._cache.move_to_end(key)
        return list(cached)

    async def refresh(self, request: AssemblyRequest) -> list[ReferenceSnippet]:
        """Search with the current query now and cache the result.

        Search errors propagate to the caller.
        """
        codebase = request.codebase_context
        if codebase is None:
            return []
        key = request.current_file
        await self._search_and_store(key, self._query(request), codebase)
        return list(self._cache[key])

    async def wait_for_refreshes(self) -> None:
        """Wait until all background refreshes have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()), return_exceptions=True)
            await asyncio.sleep(0)

    async def aclose(self) -> None:
        """Cancel background refreshes."""
        tasks = list(self._pending.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    @property
    def pending_refreshes(self) -> int:
        return len(self._pending)

    def cached(self, current_file: str) -> list[ReferenceSnippet] | None:
        """Return the cached ranking for a file without touching LRU order."""
        entry = self._cache.get(current_file)
        return list(entry) if entry is not None else None

    def clear_cache(self) -> None:
        self._cache.clear()

    def _query(self, request: AssemblyRequest) -> str:
        return last_lines(request.prefix, self.query_lines)

    def _schedule_refresh(self, key: str, query: str, codebase: CodebaseContext) -> None:
        if key in self._pending:
            return
        task = asyncio.create_task(self._background_refresh(key, query, codebase))
        self._pending[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    async def _background_refresh(self, key: str, query: str, codebase: CodebaseContext) -> None:
        try:
            await self._search_and_store(key, query, codebase)
        except Exception as e:
            # Nobody awaits this task; the previous ranking stays cached.
            logger.warning("Embeddings refresh failed for %s: %s", key or "<untitled>", e)

    async def _search_and_store(self, key: str, query: str, codebase: CodebaseContext) -> None:
        results = await codebase.search(query, self.max_results)
        snippets = [
            r.to_snippet() for r in results
            if not _is_same_file(key, r.file_name, self.root)
        ]
        self._cache[key] = snippets
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        logger.debug("Cached %d embeddings match(es) for %s", len(snippets), key or "<untitled>")
