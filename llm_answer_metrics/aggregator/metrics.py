"""
Per-scope, per-brand metric aggregation.

MetricsAggregator reduces many ExtractionResults to one AggregatedMetric row
per brand for a single (scope, scope_value), e.g. ("platform", "openai") or
("overall", "all"). Rows are rebuilt from the facts on every call, never
patched incrementally, so re-running on the same facts yields equal rows.

Metrics (N = answers in scope, B = brands in the brand set):

    visibility_score   Σ confidence of detections >= match_threshold / N,
                       smoothed toward 100/B when N < min_sample_size,
                       with a binomial 95% confidence interval
    share_of_voice     brand mentions / all brand mentions * 100
    avg_position       mean first sentence position over detected answers
    depth_of_mention   Σ word_count * exp(-position / answer_sentences)
                       / Σ answer words * 100
    citation_share     type- and confidence-weighted citation credit / total
                       weighted citations * 100, smoothed when citations are
                       fewer than min_citation_sample
    sentiment_score    mean brand polarity over answers mentioning the brand,
                       mapped from [-1, 1] to [0, 100]
    sentiment_share    answers labeled positive / answers mentioning the
                       brand * 100
    word_count         words of the brand's matched sentences / Σ answer
                       words * 100

Smoothing applies to every brand of a small sample, including brands with no
qualifying detection, so a single weak detection cannot swing a score from 0
to the prior. An empty scope yields zero-valued rows. NaN is never emitted.

Each ranked metric (RANKED_METRICS, which also ranks total mentions and the
1st/2nd/3rd place counts) is ranked 1..N (see ranking.assign_ranks). The
coefficient of variation across brands is reported per score metric; metrics
above variance_threshold flag the scope as high-variance.

Example:
    >>> aggregator = MetricsAggregator(brands)
    >>> rows = aggregator.aggregate(results, "platform", "openai")
    >>> round(sum(row.share_of_voice for row in rows))
    100
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..config.schema import EngineConfig
from ..exceptions import AggregationError
from ..models import OVERALL_SCOPE_VALUE, SCOPES, BrandSet, ExtractionResult
from .ranking import RankEntry, assign_ranks, coefficient_of_variation, rank_change

logger = logging.getLogger(__name__)

# (metric field, rank field prefix, higher_is_better)
RANKED_METRICS: tuple[tuple[str, str, bool], ...] = (
    ("visibility_score", "visibility", True),
    ("share_of_voice", "share_of_voice", True),
    ("avg_position", "avg_position", False),
    ("depth_of_mention", "depth_of_mention", True),
    ("citation_share", "citation_share", True),
    ("sentiment_score", "sentiment", True),
    ("total_mentions", "mention", True),
    ("word_count", "word_count", True),
    ("count_1st", "first_place", True),
    ("count_2nd", "second_place", True),
    ("count_3rd", "third_place", True),
)

# Metrics whose coefficient of variation is reported per scope
VARIANCE_METRICS: tuple[str, ...] = (
    "visibility_score",
    "share_of_voice",
    "avg_position",
    "depth_of_mention",
    "citation_share",
    "sentiment_score",
)

_SCORE_FIELDS = (
    "visibility_score",
    "share_of_voice",
    "depth_of_mention",
    "citation_share",
    "sentiment_score",
    "sentiment_share",
    "word_count",
)


@dataclass(frozen=True)
class AggregatedMetric:
    """
    One brand's metrics within one (scope, scope_value).

    Every score field is within [0, 100]. avg_position is a 1-indexed
    sentence position (0 when the brand was never detected) and is not a
    percentage. Each ranked metric has a <name>_rank in 1..N and a
    <name>_rank_change (previous rank - current rank, 0 without history).
    """

    scope: str
    scope_value: str
    brand: str
    is_primary: bool

    visibility_score: float
    visibility_confidence_interval: tuple[float, float]
    share_of_voice: float
    avg_position: float
    depth_of_mention: float
    citation_share: float
    citation_confidence_interval: tuple[float, float]
    sentiment_score: float
    sentiment_polarity: float
    sentiment_share: float
    word_count: float

    total_answers: int
    answers_with_mention: int
    total_mentions: int
    brand_citations: int
    earned_citations: int
    social_citations: int
    count_1st: int
    count_2nd: int
    count_3rd: int
    sentiment_positive: int
    sentiment_neutral: int
    sentiment_negative: int
    sentiment_mixed: int
    total_word_count_raw: int

    low_sample: bool
    low_citation_sample: bool
    high_variance: bool

    visibility_rank: int
    visibility_rank_change: int
    share_of_voice_rank: int
    share_of_voice_rank_change: int
    avg_position_rank: int
    avg_position_rank_change: int
    depth_of_mention_rank: int
    depth_of_mention_rank_change: int
    citation_share_rank: int
    citation_share_rank_change: int
    sentiment_rank: int
    sentiment_rank_change: int
    mention_rank: int
    mention_rank_change: int
    word_count_rank: int
    word_count_rank_change: int
    first_place_rank: int
    first_place_rank_change: int
    second_place_rank: int
    second_place_rank_change: int
    third_place_rank: int
    third_place_rank_change: int

    def __post_init__(self):
        for name in _SCORE_FIELDS:
            value = getattr(self, name)
            if not math.isfinite(value) or not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be in [0, 100], got: {value}")
        if not math.isfinite(self.avg_position) or self.avg_position < 0:
            raise ValueError(f"avg_position must be >= 0, got: {self.avg_position}")
        if not -1.0 <= self.sentiment_polarity <= 1.0:
            raise ValueError(
                f"sentiment_polarity must be in [-1, 1], got: {self.sentiment_polarity}"
            )
        for name in ("visibility_confidence_interval", "citation_confidence_interval"):
            low, high = getattr(self, name)
            if not 0.0 <= low <= high <= 100.0:
                raise ValueError(f"{name} must satisfy 0 <= low <= high <= 100")


@dataclass(frozen=True)
class ScopeSummary:
    """
    All rows of one (scope, scope_value) plus scope-level statistics.

    Attributes:
        rows: One AggregatedMetric per brand, in brand-set order
        total_answers: Answers in scope
        total_mentions: Mentions of all brands in scope
        total_citations: Valid citations in scope
        coefficient_of_variation: Per VARIANCE_METRICS entry, across brands
        high_variance_metrics: Metrics whose CV exceeds the threshold
        low_sample: True when total_answers < min_sample_size
    """

    scope: str
    scope_value: str
    rows: tuple[AggregatedMetric, ...]
    total_answers: int
    total_mentions: int
    total_citations: int
    coefficient_of_variation: dict[str, float]
    high_variance_metrics: tuple[str, ...]
    low_sample: bool

    @property
    def high_variance(self) -> bool:
        return bool(self.high_variance_metrics)


@dataclass
class _BrandTotals:
    confidence_sum: float = 0.0
    answers_with_mention: int = 0
    mentions: int = 0
    position_sum: int = 0
    depth_sum: float = 0.0
    citation_credit: float = 0.0
    brand_citations: int = 0
    earned_citations: int = 0
    social_citations: int = 0
    polarity_sum: float = 0.0
    polarity_count: int = 0
    count_1st: int = 0
    count_2nd: int = 0
    count_3rd: int = 0
    word_count_raw: int = 0
    sentiment_counts: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(("positive", "neutral", "negative", "mixed"), 0)
    )


def _round(value: float, digits: int = 2) -> float:
    # 0.0 instead of -0.0 keeps serialized rows stable
    return round(value, digits) + 0.0


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


class MetricsAggregator:
    """
    Aggregates extraction results into per-brand metric rows.

    Holds no state between calls: each scope computation is independent and
    may run in parallel with others.

    Args:
        brands: Closed brand set of the analysis
        config: Engine thresholds (aggregation settings and citation type
            weights are used)
    """

    def __init__(self, brands: BrandSet, config: EngineConfig | None = None):
        self.brands = brands
        self.config = config or EngineConfig()
        self.settings = self.config.aggregation
        self.type_weights = self.config.citation.type_weights

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def filter_scope(
        self, results: Iterable[ExtractionResult], scope: str, scope_value: str
    ) -> list[ExtractionResult]:
        """
        Keep the results that belong to (scope, scope_value).

        Raises:
            AggregationError: If scope is not overall/platform/topic/persona
        """
        if scope not in SCOPES:
            raise AggregationError(f"Unknown scope {scope!r}; expected one of {SCOPES}")
        if scope == "overall":
            return list(results)
        return [r for r in results if r.scope_value(scope) == scope_value]

    def aggregate(
        self,
        results: Iterable[ExtractionResult],
        scope: str = "overall",
        scope_value: str = OVERALL_SCOPE_VALUE,
        previous: Iterable[AggregatedMetric] | None = None,
    ) -> list[AggregatedMetric]:
        """
        Compute one AggregatedMetric per brand for (scope, scope_value).

        Args:
            results: Extraction results (any scope; filtered here)
            scope: overall, platform, topic or persona
            scope_value: Tag value for the scope (ignored for overall)
            previous: Earlier rows; rows of the same scope, value and brand
                provide the rank_change baseline

        Returns:
            Rows in brand-set order
        """
        return list(self.summarize(results, scope, scope_value, previous).rows)

    def summarize(
        self,
        results: Iterable[ExtractionResult],
        scope: str = "overall",
        scope_value: str = OVERALL_SCOPE_VALUE,
        previous: Iterable[AggregatedMetric] | None = None,
    ) -> ScopeSummary:
        """Like aggregate(), but returns the rows with scope-level statistics."""
        if scope == "overall":
            scope_value = OVERALL_SCOPE_VALUE
        scoped = self.filter_scope(results, scope, scope_value)
        totals = self._collect(scoped)

        total_answers = len(scoped)
        total_mentions = sum(t.mentions for t in totals.values())
        total_words = sum(r.total_words for r in scoped)
        total_citations = sum(len(r.citation_facts) for r in scoped)
        total_weight = sum(
            self.type_weights[fact.type] * fact.confidence
            for r in scoped
            for fact in r.citation_facts
        )

        prior = 1.0 / len(self.brands)
        metrics: dict[str, dict] = {}
        for profile in self.brands:
            t = totals[profile.display_name]
            visibility, visibility_ci, low_sample = self._smoothed_share(
                t.confidence_sum,
                total_answers,
                self.settings.min_sample_size,
                prior,
            )
            citation, citation_ci, low_citation_sample = self._smoothed_share(
                t.citation_credit * total_citations / total_weight if total_weight else 0.0,
                total_citations,
                self.settings.min_citation_sample,
                prior,
            )
            polarity = t.polarity_sum / t.polarity_count if t.polarity_count else 0.0
            polarity = max(-1.0, min(1.0, polarity))

            metrics[profile.display_name] = {
                "scope": scope,
                "scope_value": scope_value,
                "brand": profile.display_name,
                "is_primary": profile.is_primary,
                "visibility_score": visibility,
                "visibility_confidence_interval": visibility_ci,
                "share_of_voice": _round(t.mentions / total_mentions * 100)
                if total_mentions
                else 0.0,
                "avg_position": _round(t.position_sum / t.answers_with_mention)
                if t.answers_with_mention
                else 0.0,
                "depth_of_mention": _round(
                    _clamp_score(t.depth_sum / total_words * 100), 4
                )
                if total_words
                else 0.0,
                "citation_share": citation,
                "citation_confidence_interval": citation_ci,
                "sentiment_score": _round(_clamp_score((polarity + 1) * 50))
                if t.polarity_count
                else 0.0,
                "sentiment_polarity": _round(polarity, 4),
                "sentiment_share": _round(
                    t.sentiment_counts["positive"] / t.answers_with_mention * 100
                )
                if t.answers_with_mention
                else 0.0,
                "word_count": _round(_clamp_score(t.word_count_raw / total_words * 100), 4)
                if total_words
                else 0.0,
                "total_answers": total_answers,
                "answers_with_mention": t.answers_with_mention,
                "total_mentions": t.mentions,
                "brand_citations": t.brand_citations,
                "earned_citations": t.earned_citations,
                "social_citations": t.social_citations,
                "count_1st": t.count_1st,
                "count_2nd": t.count_2nd,
                "count_3rd": t.count_3rd,
                "sentiment_positive": t.sentiment_counts["positive"],
                "sentiment_neutral": t.sentiment_counts["neutral"],
                "sentiment_negative": t.sentiment_counts["negative"],
                "sentiment_mixed": t.sentiment_counts["mixed"],
                "total_word_count_raw": t.word_count_raw,
                "low_sample": low_sample,
                "low_citation_sample": low_citation_sample,
            }

        cv, high_variance_metrics = self._variance(metrics)
        previous_ranks = self._previous_ranks(previous, scope, scope_value)

        for metric, prefix, higher_is_better in RANKED_METRICS:
            entries = [
                RankEntry(
                    brand=name,
                    value=values[metric],
                    mentions=values["total_mentions"],
                    has_value=higher_is_better or values["answers_with_mention"] > 0,
                )
                for name, values in metrics.items()
            ]
            ranks = assign_ranks(entries, higher_is_better)
            for name, values in metrics.items():
                values[f"{prefix}_rank"] = ranks[name]
                values[f"{prefix}_rank_change"] = rank_change(
                    previous_ranks.get((name, prefix)), ranks[name]
                )

        # Build every row before publishing any of them
        rows = tuple(
            AggregatedMetric(high_variance=bool(high_variance_metrics), **values)
            for values in metrics.values()
        )

        summary = ScopeSummary(
            scope=scope,
            scope_value=scope_value,
            rows=rows,
            total_answers=total_answers,
            total_mentions=total_mentions,
            total_citations=total_citations,
            coefficient_of_variation=cv,
            high_variance_metrics=high_variance_metrics,
            low_sample=total_answers < self.settings.min_sample_size,
        )

        logger.info(
            f"Aggregated scope {scope}={scope_value}",
            extra={
                "context": {
                    "answers": total_answers,
                    "mentions": total_mentions,
                    "citations": total_citations,
                    "low_sample": summary.low_sample,
                    "high_variance_metrics": list(high_variance_metrics),
                }
            },
        )
        return summary

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _collect(self, scoped: list[ExtractionResult]) -> dict[str, _BrandTotals]:
        totals = {name: _BrandTotals() for name in self.brands.names}
        threshold = self.settings.match_threshold

        for result in scoped:
            for fact in result.mention_facts:
                self.brands.require(fact.brand)

            detected = []
            for profile in self.brands:
                fact = result.mention_for(profile.display_name)
                if fact is None or not fact.detected:
                    continue
                t = totals[profile.display_name]
                detected.append(fact)

                t.answers_with_mention += 1
                t.mentions += fact.mention_count
                t.position_sum += fact.first_sentence_position
                if fact.confidence >= threshold:
                    t.confidence_sum += fact.confidence

                sentence_total = fact.answer_sentence_count or result.total_sentences
                t.sentiment_counts[result.sentiment_fact.label] += 1
                for match in fact.sentences:
                    t.word_count_raw += match.word_count
                    t.depth_sum += match.word_count * math.exp(
                        -match.position / sentence_total
                    )

                polarity = result.sentiment_fact.polarity_for(fact.brand)
                if polarity is None:
                    polarity = result.sentiment_fact.polarity
                t.polarity_sum += polarity
                t.polarity_count += 1

            # Order of appearance within the answer, brand-set order on ties
            ordered = sorted(
                detected,
                key=lambda f: (f.first_sentence_position, self.brands.index(f.brand)),
            )
            for place, fact in enumerate(ordered[:3], start=1):
                t = totals[fact.brand]
                if place == 1:
                    t.count_1st += 1
                elif place == 2:
                    t.count_2nd += 1
                else:
                    t.count_3rd += 1

            detected_names = [f.brand for f in detected]
            for citation in result.citation_facts:
                weight = self.type_weights[citation.type] * citation.confidence
                if citation.type == "brand":
                    owner = self.brands.require(citation.attributed_brand).display_name
                    totals[owner].citation_credit += weight
                    totals[owner].brand_citations += 1
                    continue
                if not detected_names:
                    continue
                share = weight / len(detected_names)
                for name in detected_names:
                    totals[name].citation_credit += share
                    if citation.type == "earned":
                        totals[name].earned_citations += 1
                    else:
                        totals[name].social_citations += 1

        return totals

    def _smoothed_share(
        self, successes: float, trials: int, min_sample: int, prior: float
    ) -> tuple[float, tuple[float, float], bool]:
        """
        Return (score, (ci_low, ci_high), low_sample) on a 0-100 scale.

        successes may be fractional (confidence-weighted). The interval is
        centered on the raw proportion; the score is smoothed toward prior
        by (min_sample - trials) / min_sample when trials < min_sample,
        whether or not there were any successes.
        """
        low_sample = trials < min_sample
        if trials <= 0:
            return 0.0, (0.0, 0.0), low_sample

        raw = min(1.0, successes / trials)
        score = raw
        if low_sample:
            prior_weight = (min_sample - trials) / min_sample
            score = raw * (1 - prior_weight) + prior * prior_weight

        margin = self.settings.z_score * math.sqrt(raw * (1 - raw) / trials)
        interval = (
            _round(_clamp_score((raw - margin) * 100)),
            _round(_clamp_score((raw + margin) * 100)),
        )
        return _round(_clamp_score(score * 100)), interval, low_sample

    def _variance(self, metrics: dict[str, dict]) -> tuple[dict[str, float], tuple[str, ...]]:
        cv = {}
        for metric in VARIANCE_METRICS:
            values = [values[metric] for values in metrics.values()]
            cv[metric] = _round(coefficient_of_variation(values), 4)
        flagged = tuple(
            metric for metric, value in cv.items() if value > self.settings.variance_threshold
        )
        return cv, flagged

    def _previous_ranks(
        self,
        previous: Iterable[AggregatedMetric] | None,
        scope: str,
        scope_value: str,
    ) -> dict[tuple[str, str], int]:
        ranks: dict[tuple[str, str], int] = {}
        for row in previous or ():
            if row.scope != scope or row.scope_value != scope_value:
                continue
            for _, prefix, _ in RANKED_METRICS:
                ranks[(row.brand, prefix)] = getattr(row, f"{prefix}_rank")
        return ranks
