"""
CLI entrypoint for LLM Answer Metrics.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich spinners, tables, colored text
- Agent-friendly output: Structured JSON for automation
- Quiet mode: Tab-separated minimal output for shell scripts

Commands:
    analyze: Extract facts from collected answers and aggregate metrics
    validate: Validate configuration without analyzing anything

Exit codes:
    0: Success - every answer extracted
    1: Configuration or input error (invalid YAML, malformed answers file)
    3: Partial failure (some answers failed extraction)
    4: Complete failure (no answer could be extracted)

Examples:
    # Human-friendly output
    llm-answer-metrics analyze --config metrics.config.yaml --answers answers.jsonl

    # Agent-friendly JSON output (no spinners, no colors)
    llm-answer-metrics analyze -c metrics.config.yaml -a answers.jsonl --format json

    # Write artifacts and compare ranks against an earlier analysis
    llm-answer-metrics analyze -c metrics.config.yaml -a answers.jsonl \\
        --output-dir ./output --previous ./output/<id>/aggregated_metrics.json
"""

from pathlib import Path

import typer
from rich.traceback import install as install_rich_traceback

from llm_answer_metrics.config.loader import load_config
from llm_answer_metrics.exceptions import (
    AnswerFileError,
    ConfigFileNotFoundError,
    ConfigValidationError,
)
from llm_answer_metrics.models import SCOPES
from llm_answer_metrics.pipeline import run_analysis
from llm_answer_metrics.storage.reader import (
    load_aggregated_metrics,
    load_answer_records,
)
from llm_answer_metrics.storage.writer import scope_summary_to_dict, write_analysis_report
from llm_answer_metrics.utils.console import (
    error,
    info,
    output_mode,
    print_final_summary,
    print_metrics_table,
    spinner,
    success,
    warning,
)
from llm_answer_metrics.utils.logging import setup_logging

install_rich_traceback(show_locals=False)

# Exit codes
EXIT_SUCCESS = 0  # Every answer extracted
EXIT_CONFIG_ERROR = 1  # Config or answers file invalid
EXIT_PARTIAL_FAILURE = 3  # Some answers failed
EXIT_COMPLETE_FAILURE = 4  # All answers failed

# Scopes with per-value tables; overall is always printed
TABLE_SCOPES = tuple(s for s in SCOPES if s != "overall")


def _validate_scope(value: str | None) -> str | None:
    if value is not None and value not in TABLE_SCOPES:
        raise typer.BadParameter(f"must be one of {', '.join(TABLE_SCOPES)}, got {value!r}")
    return value


app = typer.Typer(
    name="llm-answer-metrics",
    help="Measure how LLM answers mention, cite and rank your brand vs competitors",
    add_completion=False,
)


@app.command()
def analyze(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    answers: Path = typer.Option(
        ...,
        "--answers",
        "-a",
        help="Path to answers file (JSON array, {'answers': [...]} or JSONL)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    output_dir: Path = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Write extraction results and metrics under this directory",
    ),
    previous: Path = typer.Option(
        None,
        "--previous",
        "-p",
        help="aggregated_metrics.json of an earlier analysis, for rank changes",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Extraction worker threads",
    ),
    scope: str = typer.Option(
        None,
        "--scope",
        help="Also print tables for this scope (platform, topic or persona)",
        callback=_validate_scope,
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output (tab-separated values)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Extract brand facts from answers and aggregate per-scope metrics.

    This command will:
    1. Load your configuration (brands, engine thresholds)
    2. Load the collected answers
    3. Extract mentions, citations and sentiment from every answer
    4. Aggregate visibility, share of voice, position, depth, citation
       share and sentiment per scope (overall, platform, topic, persona)
    5. Optionally write JSON artifacts

    Exit codes:
      0: Every answer extracted
      1: Configuration or input error
      3: Partial failure (some answers failed)
      4: Complete failure (all answers failed)
    """
    output_mode.format = format
    output_mode.quiet = quiet

    # Suppress JSON logs in human mode (unless verbose=True)
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())

    try:
        with spinner("Loading configuration..."):
            analysis_config = load_config(config)
        brands = analysis_config.brand_set()
        info(f"Loaded {len(brands)} brands")
    except ConfigFileNotFoundError as e:
        error(f"Configuration file not found: {e}")
        output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except ConfigValidationError as e:
        error(f"Configuration validation failed: {e}")
        output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)

    try:
        with spinner("Loading answers..."):
            answer_records = load_answer_records(answers)
            previous_rows = load_aggregated_metrics(previous) if previous else []
        info(f"Loaded {len(answer_records)} answers")
    except AnswerFileError as e:
        error(f"Invalid input: {e}")
        output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)

    with spinner(f"Analyzing {len(answer_records)} answers..."):
        report = run_analysis(
            answer_records, analysis_config, previous=previous_rows, max_workers=workers
        )

    for failure in report.failures:
        warning(f"Extraction failed for {failure.prompt_id} on {failure.platform}: {failure.error}")

    written_dir = None
    if output_dir is not None:
        try:
            written_dir = write_analysis_report(str(output_dir), report)
        except OSError as e:
            error(f"Failed to write analysis artifacts: {e}")
            output_mode.flush_json()
            raise typer.Exit(EXIT_CONFIG_ERROR)
        success(f"Wrote analysis artifacts to {written_dir}")

    if output_mode.is_agent():
        output_mode.add_json(
            "scopes", [scope_summary_to_dict(s) for s in report.summaries.values()]
        )
        output_mode.add_json(
            "failures",
            [
                {"prompt_id": f.prompt_id, "platform": f.platform, "error": f.error}
                for f in report.failures
            ],
        )
    else:
        print_metrics_table(report.overall)
        if scope:
            for (name, _), summary in report.summaries.items():
                if name == scope:
                    print_metrics_table(summary)

    total = len(report.results) + len(report.failures)
    print_final_summary(
        analysis_id=report.analysis_id,
        output_dir=written_dir,
        successful=len(report.results),
        total=total,
    )

    if total and not report.results:
        raise typer.Exit(EXIT_COMPLETE_FAILURE)
    if report.failures:
        raise typer.Exit(EXIT_PARTIAL_FAILURE)
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def validate(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
):
    """
    Validate configuration file without analyzing answers.

    Checks:
    - YAML syntax is valid
    - At least one primary brand, no duplicate brand names
    - Engine thresholds are in range and consistently ordered

    Exit codes:
      0: Configuration is valid
      1: Configuration is invalid
    """
    output_mode.format = format

    try:
        with spinner("Validating configuration..."):
            analysis_config = load_config(config)
    except ConfigFileNotFoundError as e:
        error(f"Configuration file not found: {e}")
        if output_mode.is_agent():
            output_mode.add_json("valid", False)
            output_mode.add_json("error_type", "file_not_found")
            output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except ConfigValidationError as e:
        error(f"Validation failed: {e}")
        if output_mode.is_agent():
            output_mode.add_json("valid", False)
            output_mode.add_json("error_type", "validation_error")
            output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)

    success("Configuration is valid")
    info(f"Brands (mine): {len(analysis_config.brands.mine)}")
    info(f"Brands (competitors): {len(analysis_config.brands.competitors)}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("my_brands_count", len(analysis_config.brands.mine))
        output_mode.add_json(
            "competitor_brands_count", len(analysis_config.brands.competitors)
        )
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    LLM Answer Metrics - Brand visibility metrics from LLM answers.

    Use 'llm-answer-metrics COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        console = Console()
        console.print(
            f"[bold cyan]llm-answer-metrics[/bold cyan] version {_read_version()}"
        )
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        console = Console()
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Commands:")
        console.print("  analyze   Extract facts from answers and aggregate metrics")
        console.print("  validate  Validate configuration without analyzing")


def _read_version() -> str:
    """Read version from package metadata (pyproject.toml)."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("llm-answer-metrics")
    except PackageNotFoundError:
        return "0.1.0"


if __name__ == "__main__":
    app()
