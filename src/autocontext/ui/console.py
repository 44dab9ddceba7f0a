"""Rich-powered console output for autocontext."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from autocontext import __version__
from autocontext.context.models import EMBEDDINGS_SOURCE, LOCAL_SOURCE, AssemblyResult


class Console:
    """Terminal output for autocontext using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold cyan]autocontext[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Reference snippets for code completion[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_summary(self, result: AssemblyResult, max_chars: int) -> None:
        """Display per-source counts and budget usage."""
        table = Table(title="Completion Context", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="cyan")

        pct = (result.total_chars / max_chars * 100) if max_chars else 0.0
        table.add_row("Snippets", str(len(result.context)))
        table.add_row("Characters", f"{result.total_chars:,} / {max_chars:,} ({pct:.0f}%)")
        table.add_section()
        for source in (EMBEDDINGS_SOURCE, LOCAL_SOURCE):
            table.add_row(f"  {source} matches", str(result.log_summary.get(source, 0)))

        self.console.print(table)

    def show_context(self, result: AssemblyResult) -> None:
        """Display every accepted snippet under its file name."""
        for snippet in result.context:
            lexer = Syntax.guess_lexer(snippet.file_name, code=snippet.content)
            self.console.print(
                Panel(
                    Syntax(snippet.content, lexer, theme="monokai"),
                    title=f"[bold]{snippet.file_name}[/bold]",
                    title_align="left",
                    border_style="dim",
                )
            )
