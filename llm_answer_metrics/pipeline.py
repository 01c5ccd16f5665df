"""
Analysis orchestration for LLM Answer Metrics.

The extractor and aggregator are pure and never isolate failures
themselves. This module is the boundary where that happens:

- extract_batch runs extraction over many answers, optionally with a
  thread pool, and records a failed answer instead of aborting the batch.
  InvariantViolationError is never isolated: it signals a programming
  error and propagates.
- discover_scopes lists every (scope, scope_value) present in the results.
- run_analysis extracts a batch and aggregates every discovered scope
  independently into an AnalysisReport.

Example:
    >>> config = load_config("metrics.config.yaml")
    >>> answers = load_answer_records("answers.jsonl")
    >>> report = run_analysis(answers, config)
    >>> [row.brand for row in report.overall.rows]
    ['Acme Rewards', 'Zenith Card']
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .aggregator.metrics import AggregatedMetric, MetricsAggregator, ScopeSummary
from .config.schema import AnalysisConfig
from .exceptions import InvariantViolationError
from .extractor.parser import MetricsExtractor
from .models import OVERALL_SCOPE_VALUE, AnswerRecord, ExtractionResult
from .utils.logging import log_with_context
from .utils.time import analysis_id_from_timestamp, format_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionFailure:
    """One answer whose extraction failed, isolated from the rest of the batch."""

    prompt_id: str
    platform: str
    error_type: str
    error: str


@dataclass
class BatchExtraction:
    """
    Outcome of extract_batch.

    Attributes:
        results: Successful results, in input order
        failures: Failed answers, in input order
    """

    results: list[ExtractionResult] = field(default_factory=list)
    failures: list[ExtractionFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results) + len(self.failures)


@dataclass
class AnalysisReport:
    """
    Everything produced by one run_analysis call.

    Attributes:
        analysis_id: Filesystem-safe UTC timestamp slug
        generated_at: ISO 8601 UTC timestamp
        results: Successful extraction results
        failures: Isolated extraction failures
        summaries: ScopeSummary per (scope, scope_value), overall first
    """

    analysis_id: str
    generated_at: str
    results: list[ExtractionResult]
    failures: list[ExtractionFailure]
    summaries: dict[tuple[str, str], ScopeSummary]

    @property
    def overall(self) -> ScopeSummary:
        return self.summaries[("overall", OVERALL_SCOPE_VALUE)]

    @property
    def rows(self) -> list[AggregatedMetric]:
        return [row for summary in self.summaries.values() for row in summary.rows]


def _extract_one(
    extractor: MetricsExtractor, answer: AnswerRecord
) -> ExtractionResult | ExtractionFailure:
    try:
        return extractor.extract(answer)
    except InvariantViolationError:
        raise
    except Exception as e:
        logger.warning(
            f"Extraction failed for answer {answer.prompt_id} on {answer.platform}: {e}",
            exc_info=True,
        )
        return ExtractionFailure(
            prompt_id=answer.prompt_id,
            platform=answer.platform,
            error_type=type(e).__name__,
            error=str(e),
        )


def extract_batch(
    answers: Iterable[AnswerRecord],
    extractor: MetricsExtractor,
    max_workers: int = 1,
) -> BatchExtraction:
    """
    Extract many answers, isolating per-answer failures.

    Args:
        answers: Answers to extract
        extractor: Shared extractor (its expansion cache is read-only by now)
        max_workers: Thread pool size; 1 runs sequentially

    Returns:
        BatchExtraction with results and failures in input order

    Raises:
        InvariantViolationError: Never isolated; aborts the batch
    """
    answers = list(answers)
    if max_workers > 1 and len(answers) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(lambda a: _extract_one(extractor, a), answers))
    else:
        outcomes = [_extract_one(extractor, answer) for answer in answers]

    batch = BatchExtraction()
    for outcome in outcomes:
        if isinstance(outcome, ExtractionFailure):
            batch.failures.append(outcome)
        else:
            batch.results.append(outcome)
    return batch


def discover_scopes(results: Sequence[ExtractionResult]) -> list[tuple[str, str]]:
    """
    List every (scope, scope_value) present in results.

    Overall comes first, then platform, topic and persona values, each
    sorted. Missing (None) or blank tags are skipped.

    Example:
        >>> discover_scopes(results)
        [('overall', 'all'), ('platform', 'gemini'), ('platform', 'openai'), ('topic', 'travel')]
    """
    scopes = [("overall", OVERALL_SCOPE_VALUE)]
    for scope in ("platform", "topic", "persona"):
        values = {r.scope_value(scope) for r in results}
        scopes.extend(
            (scope, value) for value in sorted(v for v in values if v and v.strip())
        )
    return scopes


def run_analysis(
    answers: Iterable[AnswerRecord],
    config: AnalysisConfig,
    previous: Iterable[AggregatedMetric] | None = None,
    max_workers: int = 1,
) -> AnalysisReport:
    """
    Extract every answer and aggregate every discovered scope.

    Args:
        answers: Answers of the analysis
        config: Brands and engine thresholds
        previous: Rows of an earlier analysis, for rank changes
        max_workers: Extraction thread pool size

    Returns:
        AnalysisReport
    """
    started = utc_now()
    analysis_id = analysis_id_from_timestamp(started)
    brands = config.brand_set()

    extractor = MetricsExtractor(brands, config.engine)
    batch = extract_batch(answers, extractor, max_workers=max_workers)

    aggregator = MetricsAggregator(brands, config.engine)
    previous_rows = list(previous or ())
    summaries = {
        (scope, value): aggregator.summarize(batch.results, scope, value, previous_rows)
        for scope, value in discover_scopes(batch.results)
    }

    log_with_context(
        logger,
        logging.INFO,
        "Analysis complete",
        context={
            "answers": batch.total,
            "extracted": len(batch.results),
            "failed": len(batch.failures),
            "scopes": len(summaries),
            "brands": len(brands),
        },
        analysis_id=analysis_id,
    )

    return AnalysisReport(
        analysis_id=analysis_id,
        generated_at=format_utc(started),
        results=batch.results,
        failures=batch.failures,
        summaries=summaries,
    )
