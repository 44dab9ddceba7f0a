"""Completion context assembly.

Merges the ranked output of two retrieval sources into a single context
that fits a character budget:

  1. Embeddings matches are considered first, then local editor matches,
     each in the order its source returned them.
  2. A file contributes at most one snippet. The first time a file is seen
     it is marked as used, even if the snippet is then dropped for not
     fitting, so a later copy of the same file can never take its place.
  3. A snippet that does not fit the remaining budget is dropped whole and
     the scan moves on; a smaller snippet further down may still fit.

The merge is a pure function over materialised sequences. The assembler
only decides which sources to call and what to do when one of them fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from autocontext.context.models import (
    EMBEDDINGS_SOURCE,
    LOCAL_SOURCE,
    AssemblyRequest,
    AssemblyResult,
    ReferenceSnippet,
)
from autocontext.exceptions import ConfigError, RetrievalError

if TYPE_CHECKING:
    from autocontext.search.base import RetrievalSource

logger = logging.getLogger("autocontext.context")

_SOURCE_ERROR_POLICIES = ("raise", "skip")


def merge_matches(
    embeddings_matches: Iterable[ReferenceSnippet],
    local_matches: Iterable[ReferenceSnippet],
    max_chars: int,
) -> AssemblyResult:
    """Select snippets from both sources under `max_chars`.

    Args:
        embeddings_matches: Embeddings source output, best first.
        local_matches: Local source output, best first.
        max_chars: Total characters all accepted snippets may use.

    Returns:
        The accepted snippets in acceptance order and a summary holding the
        number accepted per source (sources with none are omitted).
    """
    used_file_names: set[str] = set()
    context: list[ReferenceSnippet] = []
    total_chars = 0

    def add_match(match: ReferenceSnippet) -> bool:
        nonlocal total_chars
        if match.file_name in used_file_names:
            return False
        used_file_names.add(match.file_name)

        if total_chars + len(match.content) > max_chars:
            return False
        context.append(match)
        total_chars += len(match.content)
        return True

    included_embeddings = sum(1 for m in embeddings_matches if add_match(m))
    included_local = sum(1 for m in local_matches if add_match(m))

    log_summary: dict[str, int] = {}
    if included_embeddings:
        log_summary[EMBEDDINGS_SOURCE] = included_embeddings
    if included_local:
        log_summary[LOCAL_SOURCE] = included_local

    return AssemblyResult(context=context, log_summary=log_summary)


class ContextAssembler:
    """Builds the reference context for a completion request.

    Stateless across calls: every request gets its own merge state, so one
    assembler can serve concurrent requests.

    Usage:
        assembler = ContextAssembler(embeddings_source, local_source)
        result = await assembler.assemble(request)
        prompt_context = result.render()
    """

    def __init__(
        self,
        embeddings_source: RetrievalSource,
        local_source: RetrievalSource,
        on_source_error: str = "raise",
    ) -> None:
        if on_source_error not in _SOURCE_ERROR_POLICIES:
            raise ConfigError(
                f"Unknown source error policy: '{on_source_error}'. "
                f"Supported policies: {', '.join(_SOURCE_ERROR_POLICIES)}"
            )
        self.embeddings_source = embeddings_source
        self.local_source = local_source
        self.on_source_error = on_source_error

    async def assemble(self, request: AssemblyRequest) -> AssemblyResult:
        """Fetch candidates from the retrieval sources and merge them.

        The embeddings source is only called when the request enables it.
        Both calls are independent, so they run concurrently.

        Raises:
            RetrievalError: A source failed and the policy is "raise".
        """
        if request.embeddings_enabled:
            outcomes = await asyncio.gather(
                self.embeddings_source.fetch(request),
                self.local_source.fetch(request),
                return_exceptions=True,
            )
            embeddings_matches = self._resolve(EMBEDDINGS_SOURCE, outcomes[0])
            local_matches = self._resolve(LOCAL_SOURCE, outcomes[1])
        else:
            try:
                outcome = await self.local_source.fetch(request)
            except Exception as e:
                outcome = e
            embeddings_matches = []
            local_matches = self._resolve(LOCAL_SOURCE, outcome)

        result = merge_matches(embeddings_matches, local_matches, request.max_chars)
        logger.debug(
            "Assembled %d snippet(s), %d/%d chars, summary=%s",
            len(result.context), result.total_chars, request.max_chars, result.log_summary,
        )
        return result

    def _resolve(
        self, source: str, outcome: list[ReferenceSnippet] | BaseException
    ) -> list[ReferenceSnippet]:
        """Turn a source outcome into matches, applying the error policy."""
        if not isinstance(outcome, BaseException):
            return list(outcome)
        if not isinstance(outcome, Exception):
            # CancelledError and friends always propagate.
            raise outcome
        if self.on_source_error == "raise":
            raise RetrievalError(source, outcome) from outcome
        logger.warning("Retrieval source '%s' failed, continuing without it: %s", source, outcome)
        return []
