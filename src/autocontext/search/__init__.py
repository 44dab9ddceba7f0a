"""Retrieval sources: local editor windows and cached codebase search."""

from autocontext.search.base import CodebaseContext, EmbeddingsSearchResult, RetrievalSource
from autocontext.search.embeddings import EmbeddingsContextSource
from autocontext.search.index import TfidfCodebaseIndex
from autocontext.search.local import LocalContextSource, best_jaccard_match

__all__ = [
    "RetrievalSource",
    "CodebaseContext",
    "EmbeddingsSearchResult",
    "EmbeddingsContextSource",
    "LocalContextSource",
    "TfidfCodebaseIndex",
    "best_jaccard_match",
]
