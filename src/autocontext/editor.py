"""Editor state handed to the local retrieval source."""

from __future__ import annotations

from pydantic import BaseModel, Field


def split_at_cursor(text: str, line: int | None = None, column: int | None = None) -> tuple[str, str]:
    """Split `text` into (prefix, suffix) at a 1-based line/column.

    A missing line puts the cursor at the end of the text; a missing column
    puts it at the end of the line. Out-of-range positions are clamped.
    """
    if line is None:
        return text, ""

    lines = text.splitlines(keepends=True)
    line_idx = min(max(line, 1), len(lines) or 1) - 1
    offset = sum(len(ln) for ln in lines[:line_idx])
    current = lines[line_idx].rstrip("\r\n") if lines else ""
    col_idx = len(current) if column is None else min(max(column, 1) - 1, len(current))
    offset += col_idx
    return text[:offset], text[offset:]


class EditorDocument(BaseModel):
    """A document open in the editor."""

    file_name: str
    content: str = ""
    language: str = ""


class TextEditor(BaseModel):
    """The active document and the cursor position in it (1-based)."""

    document: EditorDocument
    line: int | None = None
    column: int | None = None

    @property
    def file_name(self) -> str:
        return self.document.file_name

    def split(self) -> tuple[str, str]:
        """Return the (prefix, suffix) around the cursor."""
        return split_at_cursor(self.document.content, self.line, self.column)


class History(BaseModel):
    """Recently viewed documents, most recent first.

    Viewing a document that is already tracked moves it to the front
    instead of adding a second entry for the same file.
    """

    documents: list[EditorDocument] = Field(default_factory=list)
    max_size: int = 50

    def add(self, document: EditorDocument) -> None:
        self.documents = [d for d in self.documents if d.file_name != document.file_name]
        self.documents.insert(0, document)
        del self.documents[self.max_size :]

    def last_n(self, n: int, exclude: str = "") -> list[EditorDocument]:
        """Return up to `n` most recent documents, skipping `exclude`."""
        if n <= 0:
            return []
        docs = [d for d in self.documents if not exclude or d.file_name != exclude]
        return docs[:n]

    def __len__(self) -> int:
        return len(self.documents)
