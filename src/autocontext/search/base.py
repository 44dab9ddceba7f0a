"""Base interfaces for retrieval sources and codebase contexts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from autocontext.context.models import AssemblyRequest, ReferenceSnippet


class EmbeddingsSearchResult(BaseModel):
    """A chunk of code returned by a codebase search."""

    file_name: str
    start_line: int = 0
    end_line: int = 0
    content: str
    score: float = 0.0

    def to_snippet(self) -> ReferenceSnippet:
        return ReferenceSnippet(file_name=self.file_name, content=self.content)


class CodebaseContext(ABC):
    """Searchable view of the codebase that backs the embeddings source."""

    @abstractmethod
    async def search(self, query: str, n_results: int) -> list[EmbeddingsSearchResult]:
        """Return up to `n_results` chunks ranked by similarity to `query`."""
        ...


class RetrievalSource(ABC):
    """Produces a ranked sequence of reference snippets for a request."""

    name: str = ""

    @abstractmethod
    async def fetch(self, request: AssemblyRequest) -> list[ReferenceSnippet]:
        """Return candidate snippets, best first."""
        ...
