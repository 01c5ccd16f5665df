"""
Rich console utilities for dual-mode CLI output.

Provides readable terminal output for humans and structured JSON for agents.
All output functions adapt to the global output_mode setting.

This module provides:
- OutputMode: Class to manage output format (text/json/quiet)
- spinner(): Context manager for long-running steps
- Output functions: success(), error(), warning(), info()
- Display functions: print_metrics_table(), print_final_summary()

Human Mode (--format text):
    - Rich spinners and colored tables
    - ANSI colors and Unicode symbols

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners

Quiet Mode (--quiet):
    - Tab-separated values, no decorations

Examples:
    >>> output_mode.format = "text"
    >>> with spinner("Extracting answers..."):
    ...     report = run_analysis(answers, config)
    >>> print_metrics_table(report.overall)

    >>> output_mode.format = "json"
    >>> success("Analysis complete")  # Buffers to JSON
    >>> output_mode.flush_json()       # Outputs JSON to stdout
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from ..aggregator.metrics import ScopeSummary


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        quiet: If True, suppress non-essential output
        _json_buffer: Internal buffer for JSON output in agent mode

    Examples:
        >>> mode = OutputMode()
        >>> mode.is_human()
        True
        >>> mode.format = "json"
        >>> mode.is_agent()
        True
    """

    def __init__(self, format_type: str = "text", quiet: bool = False):
        """
        Initialize output mode.

        Raises:
            ValueError: If format_type is not "text" or "json"
        """
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self.quiet = quiet
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """
        Add key-value pair to JSON buffer.

        Example:
            >>> mode = OutputMode(format_type="json")
            >>> mode.add_json("status", "success")
            >>> mode.flush_json()
            {"status": "success"}
        """
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """Output buffered JSON to stdout and clear the buffer (agent mode only)."""
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2, default=str)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """
    Show a spinner during an operation in human mode; silent otherwise.

    Examples:
        >>> with spinner("Loading answers..."):
        ...     answers = load_answer_records(path)
    """
    if output_mode.is_human() and not output_mode.quiet:
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """
    Print a success message.

    Human mode: Green checkmark with message
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """
    Print an error message.

    Human mode: Red X with message to stderr
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """
    Print a warning message.

    Human mode: Yellow warning symbol with message
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """Print an info message in human mode; silent for agents and quiet mode."""
    if output_mode.is_human() and not output_mode.quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def _format_rank(rank: int, change: int) -> str:
    if change > 0:
        return f"{rank} [green]↑{change}[/green]"
    if change < 0:
        return f"{rank} [red]↓{-change}[/red]"
    return str(rank)


def print_metrics_table(summary: ScopeSummary) -> None:
    """
    Print one scope's metric rows.

    Human mode: Rich table, primary brands highlighted
    Agent mode: Silent (rows are emitted by the caller as JSON)
    Quiet mode: One tab-separated line per brand
        (brand, visibility, share of voice, avg position, citation share, sentiment)

    Args:
        summary: ScopeSummary from MetricsAggregator.summarize
    """
    if output_mode.is_agent():
        return

    if output_mode.quiet:
        for row in summary.rows:
            print(
                f"{row.brand}\t{row.visibility_score:.2f}\t{row.share_of_voice:.2f}\t"
                f"{row.avg_position:.2f}\t{row.citation_share:.2f}\t{row.sentiment_score:.2f}"
            )
        return

    title = f"Metrics: {summary.scope}={summary.scope_value} ({summary.total_answers} answers)"
    table = Table(title=title, box=box.ROUNDED)

    table.add_column("Brand", style="cyan", no_wrap=True)
    table.add_column("Visibility", justify="right")
    table.add_column("95% CI", justify="right", style="dim")
    table.add_column("SOV %", justify="right")
    table.add_column("Avg Pos", justify="right")
    table.add_column("Depth", justify="right")
    table.add_column("Citations %", justify="right")
    table.add_column("Sentiment", justify="right")
    table.add_column("Rank", justify="center")

    for row in summary.rows:
        brand = f"[bold]{row.brand}[/bold] ★" if row.is_primary else row.brand
        low, high = row.visibility_confidence_interval
        table.add_row(
            brand,
            f"{row.visibility_score:.1f}",
            f"{low:.1f}-{high:.1f}",
            f"{row.share_of_voice:.1f}",
            f"{row.avg_position:.2f}" if row.answers_with_mention else "-",
            f"{row.depth_of_mention:.2f}",
            f"{row.citation_share:.1f}",
            f"{row.sentiment_score:.1f}",
            _format_rank(row.visibility_rank, row.visibility_rank_change),
        )

    console.print(table)

    if summary.low_sample:
        warning(
            f"Low sample: {summary.total_answers} answers in scope; "
            f"scores are smoothed toward an even split"
        )
    if summary.high_variance:
        warning(
            "High variance across brands: " + ", ".join(summary.high_variance_metrics)
        )


def print_final_summary(
    analysis_id: str, output_dir: str | None, successful: int, total: int
) -> None:
    """
    Print final summary with analysis statistics.

    Human mode: Rich panel (green if every answer extracted)
    Agent mode: Flush all buffered JSON including these final stats
    Quiet mode: Tab-separated values
    """
    if output_mode.is_agent():
        output_mode.add_json("analysis_id", analysis_id)
        output_mode.add_json("output_dir", output_dir)
        output_mode.add_json("extracted_answers", successful)
        output_mode.add_json("total_answers", total)
        output_mode.flush_json()
        return

    if output_mode.quiet:
        print(f"{analysis_id}\t{output_dir or '-'}\t{successful}\t{total}")
        return

    success_rate = (successful / total * 100) if total > 0 else 0.0
    lines = [
        f"[bold]Analysis ID:[/bold] {analysis_id}",
        f"[bold]Answers:[/bold] {successful}/{total} extracted ({success_rate:.1f}%)",
    ]
    if output_dir:
        lines.insert(1, f"[bold]Output Directory:[/bold] {output_dir}")

    if successful == total:
        border_style = "green"
        title = "[bold green]✓ Analysis Completed Successfully[/bold green]"
    elif successful > 0:
        border_style = "yellow"
        title = "[bold yellow]⚠ Analysis Completed with Partial Failures[/bold yellow]"
    else:
        border_style = "red"
        title = "[bold red]✗ Analysis Failed[/bold red]"

    console.print(
        Panel("\n".join(lines), title=title, border_style=border_style, box=box.ROUNDED)
    )
