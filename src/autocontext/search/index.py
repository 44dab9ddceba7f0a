"""In-process codebase index backing the embeddings source.

Builds simple TF-IDF vectors over fixed-size line chunks of every source
file in a directory. No ML models are needed, which keeps indexing fast
enough to run on demand from the CLI.
"""

from __future__ import annotations

import asyncio
import fnmatch
import os
import re
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from autocontext.config import IndexerConfig
from autocontext.exceptions import IndexingError
from autocontext.search.base import CodebaseContext, EmbeddingsSearchResult

_MIN_SIMILARITY = 0.1


@dataclass
class _Chunk:
    file_name: str
    start_line: int
    end_line: int
    content: str


def tokenize(text: str) -> list[str]:
    """Split on non-alphanumerics, camelCase and snake_case; drop 1-letter tokens."""
    text = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    text = text.replace("_", " ").replace(".", " ")
    return re.findall(r"[a-zA-Z]{2,}", text.lower())


class TfidfCodebaseIndex(CodebaseContext):
    """TF-IDF search over line chunks of the files under `root`."""

    def __init__(self, root: Path, config: IndexerConfig | None = None) -> None:
        self.root = root
        self.config = config or IndexerConfig()
        self._chunks: list[_Chunk] = []
        self._vocab: dict[str, int] = {}
        self._idf: np.ndarray | None = None
        self._matrix: np.ndarray | None = None

    @property
    def is_built(self) -> bool:
        return self._matrix is not None

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    def build(self, force: bool = False) -> int:
        """Scan `root` and vectorise every chunk. Returns the number of chunks."""
        if self.is_built and not force:
            return len(self._chunks)
        if not self.root.is_dir():
            raise IndexingError(f"Not a directory: {self.root}")

        chunks: list[_Chunk] = []
        for rel_path in self._iter_files():
            chunks.extend(self._chunk_file(rel_path))

        vocab: dict[str, int] = {}
        token_lists: list[list[str]] = []
        for chunk in chunks:
            tokens = tokenize(chunk.content)
            for token in tokens:
                if token not in vocab:
                    vocab[token] = len(vocab)
            token_lists.append(tokens)

        matrix = np.zeros((len(chunks), len(vocab)))
        for row, tokens in enumerate(token_lists):
            for token in tokens:
                matrix[row, vocab[token]] += 1

        doc_freq = (matrix > 0).sum(axis=0)
        idf = np.log((len(chunks) + 1) / (doc_freq + 1)) + 1.0
        matrix *= idf
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        matrix /= norms

        self._chunks = chunks
        self._vocab = vocab
        self._idf = idf
        self._matrix = matrix
        return len(chunks)

    async def search(self, query: str, n_results: int) -> list[EmbeddingsSearchResult]:
        if not self.is_built:
            await asyncio.to_thread(self.build)
        if n_results <= 0 or not self._chunks:
            return []

        query_vec = np.zeros(len(self._vocab))
        for token in tokenize(query):
            idx = self._vocab.get(token)
            if idx is not None:
                query_vec[idx] += 1
        query_vec *= self._idf
        norm = np.linalg.norm(query_vec)
        if norm == 0:
            return []
        query_vec /= norm

        similarities = self._matrix @ query_vec
        order = np.argsort(-similarities, kind="stable")

        results: list[EmbeddingsSearchResult] = []
        for idx in order:
            score = float(similarities[idx])
            if score < _MIN_SIMILARITY or len(results) >= n_results:
                break
            chunk = self._chunks[idx]
            results.append(
                EmbeddingsSearchResult(
                    file_name=chunk.file_name,
                    start_line=chunk.start_line,
                    end_line=chunk.end_line,
                    content=chunk.content,
                    score=score,
                )
            )
        return results

    def _is_excluded(self, rel_path: str) -> bool:
        parts = Path(rel_path).parts
        for pattern in self.config.exclude_patterns:
            if any(fnmatch.fnmatch(part, pattern) for part in parts):
                return True
        return False

    def _iter_files(self) -> list[str]:
        max_bytes = self.config.max_file_size_kb * 1024
        files = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root)
            dirnames[:] = [
                d for d in dirnames if not self._is_excluded(str(rel_dir / d))
            ]
            for filename in filenames:
                rel_path = (rel_dir / filename).as_posix()
                if self._is_excluded(rel_path):
                    continue
                try:
                    if (self.root / rel_path).stat().st_size > max_bytes:
                        continue
                except OSError:
                    continue
                files.append(rel_path)
        return sorted(files)

    def _chunk_file(self, rel_path: str) -> list[_Chunk]:
        try:
            text = (self.root / rel_path).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return []
        if "\x00" in text:
            return []

        lines = text.splitlines()
        size = self.config.chunk_lines
        chunks = []
        for start in range(0, len(lines), size):
            content = "\n".join(lines[start : start + size])
            if not content.strip():
                continue
            chunks.append(
                _Chunk(
                    file_name=rel_path,
                    start_line=start + 1,
                    end_line=min(start + size, len(lines)),
                    content=content,
                )
            )
        return chunks
