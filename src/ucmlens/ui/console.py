"""Rich-powered console output for ucmlens."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ucmlens import __version__
from ucmlens.models import LibInfo, ResolvedDefinition
from ucmlens.naming.libinfo import get_display_name, get_version_badge
from ucmlens.providers.base import CompletionItemKind, CompletionList, Hover


class Console:
    """Terminal output for ucmlens using Rich."""

    def __init__(self, stderr: bool = False) -> None:
        self.console = RichConsole(stderr=stderr)

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold magenta]ucmlens[/bold magenta] [dim]v{__version__}[/dim]\n"
                "[dim]Editor intelligence for Unison scratch files[/dim]",
                border_style="magenta",
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

    def show_lib_info(self, fqn: str, info: LibInfo | None) -> None:
        """Display how a library FQN decomposes."""
        if info is None:
            self.info(f"[bold]{fqn}[/bold] is not a library dependency")
            return

        table = Table(title=fqn, border_style="magenta", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value", style="cyan")
        table.add_row("Library", info.lib_name)
        table.add_row("Version", info.version or "-")
        table.add_row("Semantic version", "yes" if info.is_semantic_version else "no")
        table.add_row("Path in library", info.path_in_lib or "-")
        table.add_row("Raw segment", info.raw_lib_segment)
        self.console.print(table)

    def show_resolved(self, resolved: ResolvedDefinition) -> None:
        """Display a resolved definition."""
        lines = [
            f"[bold]Name:[/bold] {resolved.fqn}",
            f"[bold]Display name:[/bold] {get_display_name(resolved)}",
            f"[bold]Type:[/bold] {resolved.type.value}",
            f"[bold]Hash:[/bold] [dim]{resolved.hash}[/dim]",
        ]
        if resolved.lib_info:
            badge = get_version_badge(resolved)
            lib = resolved.lib_info.lib_name + (f" [cyan]{badge}[/cyan]" if badge else "")
            lines.append(f"[bold]Library:[/bold] {lib}")

        self.console.print(
            Panel("\n".join(lines), title="[bold]Definition[/bold]", border_style="green")
        )

    def show_completions(self, completion: CompletionList) -> None:
        """Display completion candidates."""
        if not completion.items:
            self.warning("No completions")
            return

        table = Table(border_style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Kind")
        table.add_column("Insert", style="cyan")
        for item in completion.items:
            kind = "term" if item.kind == CompletionItemKind.FUNCTION else "type"
            table.add_row(item.label, kind, item.insert_text or item.label)
        self.console.print(table)

        if completion.is_incomplete:
            self.console.print("[dim]... more results available; refine the query[/dim]")

    def show_hover(self, hover: Hover) -> None:
        """Render hover contents as markdown."""
        self.console.print(
            Panel(Markdown(hover.markdown), border_style="blue", padding=(0, 1))
        )
