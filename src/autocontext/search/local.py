"""Local retrieval: best Jaccard-similarity window from recently viewed files."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from autocontext.context.models import LOCAL_SOURCE, AssemblyRequest, ReferenceSnippet
from autocontext.search.base import RetrievalSource

_WORD_RE = re.compile(r"\w+")


@dataclass
class JaccardMatch:
    """The best-scoring window of a document."""

    score: float
    content: str
    start_line: int
    end_line: int


def _words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def last_lines(text: str, n: int) -> str:
    """Return the last `n` lines of `text`."""
    lines = text.splitlines()
    return "\n".join(lines[-n:]) if n > 0 else ""


def best_jaccard_match(target_text: str, match_text: str, window_size: int) -> JaccardMatch | None:
    """Slide a `window_size`-line window over `match_text` and keep the best one.

    Windows are scored by Jaccard similarity between their word set and the
    word set of `target_text`. The window is updated incrementally, one line
    in and one line out per step. Ties keep the earliest window.

    Returns:
        The best window, or None when either text has no words.
    """
    target_words = set(_words(target_text))
    lines = match_text.splitlines()
    if not target_words or not lines:
        return None

    line_words = [_words(line) for line in lines]
    size = min(window_size, len(lines))
    window: Counter[str] = Counter()
    intersection = 0

    def add_line(i: int) -> None:
        nonlocal intersection
        for word in line_words[i]:
            if window[word] == 0 and word in target_words:
                intersection += 1
            window[word] += 1

    def remove_line(i: int) -> None:
        nonlocal intersection
        for word in line_words[i]:
            window[word] -= 1
            if window[word] == 0:
                del window[word]
                if word in target_words:
                    intersection -= 1

    def score() -> float:
        return intersection / (len(target_words) + len(window) - intersection)

    for i in range(size):
        add_line(i)
    best_score, best_start = score(), 0

    for start in range(1, len(lines) - size + 1):
        remove_line(start - 1)
        add_line(start + size - 1)
        current = score()
        if current > best_score:
            best_score, best_start = current, start

    return JaccardMatch(
        score=best_score,
        content="\n".join(lines[best_start : best_start + size]),
        start_line=best_start + 1,
        end_line=best_start + size,
    )


class LocalContextSource(RetrievalSource):
    """Finds the window most similar to the text before the cursor in each recent file.

    The query is the last `jaccard_window_size` lines of the request prefix.
    Each of the `max_files` most recently viewed documents (excluding the
    current file) contributes its single best window; files with nothing in
    common with the query are dropped. Output is ordered by similarity,
    with ties kept in history order.
    """

    name = LOCAL_SOURCE

    def __init__(self, max_files: int = 10) -> None:
        self.max_files = max_files

    async def fetch(self, request: AssemblyRequest) -> list[ReferenceSnippet]:
        if request.history is None:
            return []

        query = last_lines(request.prefix, request.jaccard_window_size)
        scored: list[tuple[float, ReferenceSnippet]] = []
        for document in request.history.last_n(self.max_files, exclude=request.current_file):
            match = best_jaccard_match(query, document.content, request.jaccard_window_size)
            if match is None or match.score <= 0:
                continue
            scored.append(
                (match.score, ReferenceSnippet(file_name=document.file_name, content=match.content))
            )

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [snippet for _, snippet in scored]
