"""Completion context assembly.

Merges ranked reference snippets from the embeddings and local retrieval
sources into a deduplicated context that fits a character budget.

Usage:
    from autocontext.context import AssemblyRequest, ContextAssembler

    assembler = ContextAssembler(embeddings_source, local_source)
    result = await assembler.assemble(AssemblyRequest(prefix=prefix, max_chars=4000))
    print(result.render())
"""

from autocontext.context.engine import ContextAssembler, merge_matches
from autocontext.context.models import (
    EMBEDDINGS_SOURCE,
    LOCAL_SOURCE,
    AssemblyRequest,
    AssemblyResult,
    ReferenceSnippet,
)

__all__ = [
    "ContextAssembler",
    "merge_matches",
    "AssemblyRequest",
    "AssemblyResult",
    "ReferenceSnippet",
    "EMBEDDINGS_SOURCE",
    "LOCAL_SOURCE",
]
