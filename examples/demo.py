#!/usr/bin/env python3
"""Demo: Using autocontext as a Python library.

Simulates a few keystrokes in an editor and shows how the embeddings cache
warms up between requests while local matches are available immediately.
"""

import asyncio
from pathlib import Path

from autocontext.context import AssemblyRequest, ContextAssembler
from autocontext.editor import EditorDocument, History
from autocontext.search import EmbeddingsContextSource, LocalContextSource, TfidfCodebaseIndex


async def main():
    # Point at any code directory
    project_root = Path(".")
    current = project_root / "src" / "autocontext" / "context" / "engine.py"
    text = current.read_text()

    # 1. Build the codebase index that backs the embeddings source
    print("Indexing codebase...")
    index = TfidfCodebaseIndex(project_root)
    print(f"  Chunks: {index.build()}")

    # 2. Pretend these files were recently viewed
    history = History()
    for name in ("src/autocontext/context/models.py", "src/autocontext/search/base.py"):
        history.add(EditorDocument(file_name=name, content=(project_root / name).read_text()))

    embeddings = EmbeddingsContextSource()
    assembler = ContextAssembler(embeddings, LocalContextSource())

    # 3. Two "keystrokes" at the same position: the first misses the
    #    embeddings cache, the second is served from it.
    request = AssemblyRequest(
        prefix=text[: len(text) // 2],
        suffix=text[len(text) // 2 :],
        current_file="src/autocontext/context/engine.py",
        history=history,
        max_chars=3000,
        embeddings_enabled=True,
        codebase_context=index,
    )
    for keystroke in (1, 2):
        result = await assembler.assemble(request)
        print(f"\n--- Keystroke {keystroke}: {result.log_summary} ---")
        for snippet in result.context:
            print(f"  {snippet.file_name} ({len(snippet.content)} chars)")
        await embeddings.wait_for_refreshes()

    await embeddings.aclose()


if __name__ == "__main__":
    asyncio.run(main())
