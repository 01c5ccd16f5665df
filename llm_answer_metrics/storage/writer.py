"""
File writing utilities for LLM Answer Metrics.

This module handles all file I/O for analysis artifacts. Output structure:

    output/
        {analysis_id}/
            analysis_meta.json
            extraction_results.json
            aggregated_metrics.json

Key features:
- UTF-8 encoding for all text files
- Pretty-printed JSON (indent=2), trailing newline
- Graceful error handling (permissions, disk full)
- Rows grouped by scope with their variance statistics

Example:
    >>> analysis_dir = create_analysis_directory("./output", "2025-11-02T08-00-00Z")
    >>> write_analysis_report(analysis_dir, report)
"""

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING

from ..aggregator.metrics import ScopeSummary
from ..models import ExtractionResult

if TYPE_CHECKING:
    from ..pipeline import AnalysisReport

logger = logging.getLogger(__name__)

ANALYSIS_META_FILENAME = "analysis_meta.json"
EXTRACTION_RESULTS_FILENAME = "extraction_results.json"
AGGREGATED_METRICS_FILENAME = "aggregated_metrics.json"


def create_analysis_directory(output_dir: str, analysis_id: str) -> str:
    """
    Create the output directory of one analysis.

    Args:
        output_dir: Base output directory (e.g., "./output")
        analysis_id: Analysis identifier (timestamp like "2025-11-02T08-00-00Z")

    Returns:
        Full path to the created directory

    Raises:
        PermissionError: If insufficient permissions to create directory
        OSError: If directory cannot be created (disk full, invalid path)
    """
    analysis_dir = os.path.join(output_dir, analysis_id)

    try:
        Path(analysis_dir).mkdir(parents=True, exist_ok=True)
        logger.info(f"Created analysis directory: {analysis_dir}")
        return analysis_dir
    except PermissionError as e:
        logger.error(f"Permission denied creating directory: {analysis_dir}", exc_info=True)
        raise PermissionError(
            f"Cannot create analysis directory '{analysis_dir}': Permission denied. "
            f"Check directory permissions."
        ) from e
    except OSError as e:
        logger.error(f"Failed to create directory: {analysis_dir}", exc_info=True)
        raise OSError(
            f"Cannot create analysis directory '{analysis_dir}': {e}. "
            f"Check disk space and permissions."
        ) from e


def write_json(filepath: str, data: dict | list) -> None:
    """
    Write data to a JSON file with UTF-8 encoding.

    Raises:
        TypeError: If data is not JSON-serializable
        OSError: If file cannot be written (permissions, disk full)
    """
    try:
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        logger.debug(f"Wrote JSON file: {filepath}")
    except TypeError as e:
        logger.error(f"Cannot serialize data to JSON: {e}", exc_info=True)
        raise TypeError(
            f"Cannot write JSON to '{filepath}': Data is not JSON-serializable. {e}"
        ) from e
    except OSError as e:
        logger.error(f"Failed to write JSON file: {filepath}", exc_info=True)
        raise OSError(
            f"Cannot write JSON file '{filepath}': {e}. "
            f"Check disk space and permissions."
        ) from e


def extraction_result_to_dict(result: ExtractionResult) -> dict:
    return asdict(result)


def scope_summary_to_dict(summary: ScopeSummary) -> dict:
    """
    Serialize one scope: its statistics, then its rows.

    Example:
        >>> scope_summary_to_dict(summary)["high_variance"]
        False
    """
    return {
        "scope": summary.scope,
        "scope_value": summary.scope_value,
        "total_answers": summary.total_answers,
        "total_mentions": summary.total_mentions,
        "total_citations": summary.total_citations,
        "low_sample": summary.low_sample,
        "high_variance": summary.high_variance,
        "high_variance_metrics": list(summary.high_variance_metrics),
        "coefficient_of_variation": dict(summary.coefficient_of_variation),
        "rows": [asdict(row) for row in summary.rows],
    }


def write_extraction_results(
    analysis_dir: str, results: list[ExtractionResult]
) -> str:
    """Write every extraction result to extraction_results.json."""
    filepath = os.path.join(analysis_dir, EXTRACTION_RESULTS_FILENAME)
    write_json(filepath, [extraction_result_to_dict(r) for r in results])
    logger.info(f"Wrote {len(results)} extraction results: {filepath}")
    return filepath


def write_aggregated_metrics(analysis_dir: str, summaries: list[ScopeSummary]) -> str:
    """Write every scope summary to aggregated_metrics.json."""
    filepath = os.path.join(analysis_dir, AGGREGATED_METRICS_FILENAME)
    write_json(filepath, [scope_summary_to_dict(s) for s in summaries])
    logger.info(f"Wrote aggregated metrics for {len(summaries)} scopes: {filepath}")
    return filepath


def build_analysis_meta(report: "AnalysisReport") -> dict:
    """
    Summarize an analysis for analysis_meta.json.

    Contains counts and failures, not per-answer data.
    """
    return {
        "analysis_id": report.analysis_id,
        "generated_at": report.generated_at,
        "total_answers": len(report.results) + len(report.failures),
        "extracted_answers": len(report.results),
        "failed_answers": len(report.failures),
        "scopes": [
            {"scope": scope, "scope_value": value} for scope, value in report.summaries
        ],
        "failures": [asdict(failure) for failure in report.failures],
    }


def write_analysis_report(output_dir: str, report: "AnalysisReport") -> str:
    """
    Write every artifact of an analysis into its own directory.

    Args:
        output_dir: Base output directory
        report: Result of pipeline.run_analysis

    Returns:
        Path to the analysis directory
    """
    analysis_dir = create_analysis_directory(output_dir, report.analysis_id)
    write_extraction_results(analysis_dir, report.results)
    write_aggregated_metrics(analysis_dir, list(report.summaries.values()))
    write_json(os.path.join(analysis_dir, ANALYSIS_META_FILENAME), build_analysis_meta(report))
    logger.info(f"Wrote analysis report: {analysis_dir}")
    return analysis_dir
