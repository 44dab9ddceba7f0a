"""Data models for completion context assembly."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from autocontext.editor import History

EMBEDDINGS_SOURCE = "embeddings"
LOCAL_SOURCE = "local"


class ReferenceSnippet(BaseModel):
    """One retrievable chunk of source text.

    Keep field names in sync with `EmbeddingsSearchResult`.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    content: str


class AssemblyRequest(BaseModel):
    """Everything the assembler and its retrieval sources need for one completion."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    prefix: str = ""
    suffix: str = ""
    current_file: str = ""
    history: History | None = None
    jaccard_window_size: int = Field(default=50, ge=1)
    max_chars: int = Field(ge=0)
    embeddings_enabled: bool = False
    # Opaque to the assembler; only the embeddings source looks at it.
    codebase_context: Any = None


class AssemblyResult(BaseModel):
    """The bounded, deduplicated context plus per-source counts for telemetry."""

    context: list[ReferenceSnippet] = Field(default_factory=list)
    log_summary: dict[str, int] = Field(default_factory=dict)

    @property
    def total_chars(self) -> int:
        return sum(len(s.content) for s in self.context)

    @property
    def files(self) -> list[str]:
        return [s.file_name for s in self.context]

    def render(self) -> str:
        """Render the snippets as a plain-text block for a completion prompt."""
        sections: list[str] = []
        for snippet in self.context:
            sections.append(f"// Path: {snippet.file_name}")
            sections.append(snippet.content)
            sections.append("")
        return "\n".join(sections)
