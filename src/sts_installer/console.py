"""Rich console utilities for styled terminal output.

This module provides a consistent interface for all CLI output using the
Rich library, including the per-step lifecycle lines and the final summary
printed by the install command.
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from sts_installer.models import StepEvent, StepRecord, StepStatus, Summary

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Shared console instance
console = Console(theme=_THEME)

_STATUS_STYLES = {
    StepStatus.SUCCEEDED: "[success]✓ succeeded[/success]",
    StepStatus.SKIPPED: "[muted]⏭ skipped[/muted]",
    StepStatus.FAILED: "[error]✗ failed[/error]",
}

# Leading marker and its theme style for each kind of one-line message
_MARKERS = {
    "info": ("info", "ℹ"),
    "success": ("success", "✓"),
    "warning": ("warning", "⚠"),
    "error": ("error", "✗"),
    "action": ("info", "→"),
    "step": ("muted", "•"),
}


def _say(kind: str, message: str) -> None:
    style, marker = _MARKERS[kind]
    console.print(f"[{style}]{marker}[/{style}] {message}")


def info(message: str) -> None:
    """Print an informational message."""
    _say("info", message)


def success(message: str) -> None:
    """Print a line reporting something that finished."""
    _say("success", message)


def warning(message: str) -> None:
    """Print a non-fatal problem the operator should look at."""
    _say("warning", message)


def error(message: str) -> None:
    """Print a failure."""
    _say("error", message)


def action(message: str) -> None:
    """Print a line announcing a long-running operation."""
    _say("action", message)


def step(message: str) -> None:
    """Print a detail line under the current installation step."""
    _say("step", message)


def highlight(text: str) -> str:
    """Wrap a path, name or value in highlight markup."""
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Show a spinner while a captured command runs.

    Args:
        message: Status text shown next to the spinner.

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def report_step_event(event: StepEvent, number: int, name: str, detail: str | None = None) -> None:
    """Print one pipeline lifecycle event.

    Args:
        event: The lifecycle event.
        number: Step number in the catalog.
        name: Step name.
        detail: Error detail for failures.

    """
    label = f"[Step {number}] {name}"
    match event:
        case StepEvent.SKIPPED:
            console.print(f"[muted]⏭  Skipping {label} (already completed)[/muted]")
        case StepEvent.DECLINED:
            console.print(f"[muted]⏭  Skipping {label} (user choice)[/muted]")
        case StepEvent.STARTED:
            console.rule(f"[bold]{label}[/bold]", style="cyan")
        case StepEvent.COMPLETED:
            success(f"{label} completed")
        case StepEvent.FAILED:
            error(f"{label} failed" + (f": {detail}" if detail else ""))


def _record_note(record: StepRecord) -> str:
    if record.skip_reason is not None:
        return record.skip_reason.value
    return record.error or ""


def print_summary(summary: Summary) -> None:
    """Print a table with one row per step record plus totals.

    Args:
        summary: The pipeline summary.

    """
    table = Table(title="Installation Summary", title_style="bold")
    table.add_column("Step", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Details", style="muted", overflow="fold")

    for record in summary.records:
        table.add_row(str(record.number), record.name, _STATUS_STYLES[record.status], _record_note(record))

    console.print(table)
    console.print(
        f"[success]{len(summary.succeeded)} succeeded[/success], "
        f"[muted]{len(summary.skipped)} skipped[/muted], "
        f"[error]{len(summary.failed)} failed[/error]"
    )


def print_catalog(entries: list[tuple[int, str]]) -> None:
    """Print the numbered list of installation steps."""
    table = Table(title="Installation Steps", title_style="bold")
    table.add_column("Step", justify="right", style="highlight")
    table.add_column("Name")
    for number, name in entries:
        table.add_row(str(number), name)
    console.print(table)


def summary_panel(title: str, items: dict[str, str | None]) -> None:
    """Print the settings a run is about to use.

    Args:
        title: Panel title.
        items: Setting name to value; empty values are shown as "-".

    """
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold", justify="right")
    grid.add_column(style="highlight")
    for name, value in items.items():
        grid.add_row(name, value or "-")

    console.print(Panel(grid, title=f"[bold]{title}[/bold]", border_style="cyan", expand=False))


def newline() -> None:
    console.print()
