"""Command-line interface for autocontext."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from autocontext import __version__
from autocontext.config import (
    ProjectConfig,
    find_project_root,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from autocontext.exceptions import AutocontextError
from autocontext.ui.console import Console

console = Console()

path_option = click.option("--path", "-p", default=None, help="Path to the project root.")


def _fail(message: str) -> NoReturn:
    console.error(message)
    sys.exit(1)


def _open_project(path: str | None) -> tuple[Path, ProjectConfig]:
    """Resolve the project root from --path or the working directory and load its config."""
    if path:
        root = Path(path).resolve()
        if not root.is_dir():
            _fail(f"Not a directory: {path}")
    else:
        root = find_project_root()
        if root is None:
            _fail("No .autocontext/ here or above. Run 'autocontext init' or pass --path.")
    try:
        return root, load_config(root)
    except AutocontextError as e:
        _fail(str(e))


def _display_name(file_path: Path, root: Path) -> str:
    """Repo-relative name for files under `root`, absolute otherwise."""
    resolved = file_path.resolve()
    try:
        return resolved.relative_to(root).as_posix()
    except ValueError:
        return str(resolved)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


@click.group()
@click.version_option(version=__version__, prog_name="autocontext")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """autocontext - reference snippets for code completion within a character budget."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
            stream=sys.stderr,
        )


@main.command()
@path_option
@click.option("--budget", "-b", default=None, type=click.IntRange(min=0),
              help="Default character budget.")
@click.option("--embeddings/--no-embeddings", default=None,
              help="Enable the embeddings retrieval source by default.")
def init(path: str | None, budget: int | None, embeddings: bool | None):
    """Initialize autocontext for a repository."""
    root, config = _open_project(path or ".")
    console.banner()
    console.info(f"Initializing autocontext for: {root}")

    config.name = root.name
    config.root_path = str(root)
    if budget is not None:
        config.completion.max_chars = budget
    if embeddings is not None:
        config.completion.embeddings_enabled = embeddings

    save_config(root, config)
    console.success("Configuration saved to .autocontext/")


# =========================================================================
# Context assembly
# =========================================================================

@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--line", "-l", default=None, type=int, help="1-based cursor line (default: end of file).")
@click.option("--column", "-c", default=None, type=int, help="1-based cursor column (default: end of line).")
@click.option("--budget", "-b", default=None, type=click.IntRange(min=0),
              help="Character budget (default: from config).")
@click.option("--embeddings/--no-embeddings", default=None,
              help="Use the embeddings retrieval source (default: from config).")
@click.option("--open", "-o", "open_files", multiple=True,
              type=click.Path(exists=True, dir_okay=False),
              help="Recently viewed file, most recent last (can specify multiple).")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@path_option
def assemble(
    file: str, line: int | None, column: int | None, budget: int | None,
    embeddings: bool | None, open_files: tuple[str, ...], as_json: bool, path: str | None,
):
    """Assemble the reference context for a cursor position in FILE.

    The text before the cursor drives both retrieval sources. Files passed
    with --open form the editor history searched by the local source; the
    embeddings source searches the whole project.

    Examples:

        autocontext assemble src/app.py --line 42 --open src/models.py

        autocontext assemble src/app.py -l 10 -c 5 --budget 2000 --embeddings
    """
    root, config = _open_project(path)

    from autocontext.context.engine import ContextAssembler
    from autocontext.context.models import AssemblyRequest
    from autocontext.editor import EditorDocument, History, TextEditor
    from autocontext.search.embeddings import EmbeddingsContextSource
    from autocontext.search.index import TfidfCodebaseIndex
    from autocontext.search.local import LocalContextSource

    completion = config.completion
    file_path = Path(file)
    editor = TextEditor(
        document=EditorDocument(file_name=_display_name(file_path, root), content=_read(file_path)),
        line=line,
        column=column,
    )
    prefix, suffix = editor.split()

    history = History()
    for open_file in open_files:
        open_path = Path(open_file)
        history.add(EditorDocument(
            file_name=_display_name(open_path, root),
            content=_read(open_path),
        ))

    embeddings_enabled = completion.embeddings_enabled if embeddings is None else embeddings
    request = AssemblyRequest(
        prefix=prefix,
        suffix=suffix,
        current_file=editor.file_name,
        history=history,
        jaccard_window_size=completion.jaccard_window_size,
        max_chars=completion.max_chars if budget is None else budget,
        embeddings_enabled=embeddings_enabled,
        codebase_context=TfidfCodebaseIndex(root, config.indexer) if embeddings_enabled else None,
    )

    embeddings_source = EmbeddingsContextSource(
        max_results=config.embeddings.max_results,
        query_lines=config.embeddings.query_lines,
        cache_size=config.embeddings.cache_size,
        root=root,
    )
    assembler = ContextAssembler(
        embeddings_source,
        LocalContextSource(max_files=completion.history_files),
        on_source_error=completion.on_source_error,
    )

    async def run():
        try:
            # A one-shot run has no earlier keystroke to warm the cache.
            if request.embeddings_enabled:
                await embeddings_source.refresh(request)
            return await assembler.assemble(request)
        finally:
            await embeddings_source.aclose()

    try:
        result = asyncio.run(run())
    except AutocontextError as e:
        _fail(str(e))

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    console.console.print()
    console.show_summary(result, request.max_chars)
    if not result.context:
        console.warning(
            "No reference snippets fit. Pass recently viewed files with --open, "
            "enable --embeddings, or raise --budget."
        )
        return
    console.console.print()
    console.show_context(result)


# =========================================================================
# Config Management
# =========================================================================

@main.group("config")
def config_group():
    """Inspect and edit .autocontext/config.json."""


@config_group.command("show")
@path_option
def config_show(path: str | None):
    """Print the whole configuration."""
    _, config = _open_project(path)
    console.console.print_json(config.model_dump_json())


@config_group.command("get")
@click.argument("key")
@path_option
def config_get(key: str, path: str | None):
    """Print one setting, e.g. completion.max_chars."""
    _, config = _open_project(path)
    try:
        value = get_config_value(config, key)
    except KeyError:
        _fail(f"Unknown config key: {key}")
    console.console.print(f"{key} = {value}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@path_option
def config_set(key: str, value: str, path: str | None):
    """Change one setting. VALUE is read as JSON when it parses, else as a string."""
    root, config = _open_project(path)
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    try:
        config = set_config_value(config, key, parsed)
    except KeyError:
        _fail(f"Unknown config key: {key}")
    except AutocontextError as e:
        _fail(str(e))
    save_config(root, config)
    console.success(f"Set {key} = {parsed!r}")


if __name__ == "__main__":
    main()
