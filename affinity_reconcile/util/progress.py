"""
Rich progress and summary output for batch commands.
"""

from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from typing import TypeVar

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

console = Console()

T = TypeVar("T")


def track_items(description: str, items: Sequence[T]) -> Iterator[T]:
    """
    Yield ``items`` one by one behind a transient progress bar.

    Usage:
        for workload, plan in track_items("Submitting relocations", plans):
            executor.execute(workload, plan)
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=len(items))
        for item in items:
            yield item
            progress.advance(task)


def status_counts(results: Iterable) -> dict[str, int]:
    """Count results by ``status`` value, in first-seen order."""
    return dict(Counter(result.status.value for result in results))


def show_summary(title: str, counts: dict[str, int], out: Console | None = None) -> None:
    """Print ``counts`` as a two-column panel."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")
    for status, count in counts.items():
        table.add_row(status, str(count))

    (out or console).print(Panel(table, title=f"[bold]{title}[/bold]", border_style="blue"))
