"""
Per-answer extraction orchestration for LLM Answer Metrics.

MetricsExtractor ties together segmentation, brand matching, citation
classification and sentiment scoring into one pure function of an
AnswerRecord and the closed brand set. It produces an ExtractionResult
with exactly one MentionFact per brand, one CitationFact per valid cited
URL and one SentimentFact.

Key features:
- Single entry point (extract) for all per-answer logic
- Text is segmented once; every brand is matched against every sentence
- Brand expansions come from a shared ExpansionCache (computed once per
  brand per analysis)
- No I/O, no randomness: re-running on the same input yields an equal result
- Closed-set invariant asserted before returning: a failure here is a
  programming error and raises InvariantViolationError

Example:
    >>> brands = BrandSet([BrandProfile("Acme Rewards Card"), BrandProfile("Zenith Card")])
    >>> answer = AnswerRecord(
    ...     prompt_id="p-1",
    ...     platform="openai",
    ...     topic="travel cards",
    ...     raw_text="Acme Rewards Card is excellent. Zenith Card is fine.",
    ...     cited_urls=("https://www.acmerewardscard.com/terms",),
    ... )
    >>> result = extract(answer, brands)
    >>> result.mention_for("Acme Rewards Card").method
    'exact'
    >>> result.citation_facts[0].attributed_brand
    'Acme Rewards Card'
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from ..config.schema import EngineConfig
from ..exceptions import InvariantViolationError
from ..models import (
    AnswerRecord,
    BrandProfile,
    BrandSet,
    CitationFact,
    ExtractionResult,
    MentionFact,
    SentenceMatch,
)
from .brand_matcher import BrandMatcher
from .citation_classifier import CitationClassifier
from .name_expander import BrandExpansion, BrandNameExpander, ExpansionCache
from .sentiment import SentimentScorer
from .text_segmenter import count_words, split_sentences

logger = logging.getLogger(__name__)


def _without_other_brand_names(
    expansion: BrandExpansion, expansions: Iterable[BrandExpansion]
) -> BrandExpansion:
    """
    Drop short forms that spell another brand's full name.

    With both "Acme Rewards Card" and "Acme" in the brand set, "acme" is
    evidence for Acme only, so it is removed from the longer brand's
    abbreviations and significant words before matching.
    """
    reserved = {
        name
        for other in expansions
        if other.display_name != expansion.display_name
        for name in (other.normalized_name, other.compact_name)
    }
    if not reserved.intersection(expansion.abbreviations + expansion.significant_words):
        return expansion
    return replace(
        expansion,
        abbreviations=tuple(f for f in expansion.abbreviations if f not in reserved),
        acronyms=tuple(f for f in expansion.acronyms if f not in reserved),
        significant_words=tuple(w for w in expansion.significant_words if w not in reserved),
    )


class MetricsExtractor:
    """
    Extracts mention, citation and sentiment facts from single answers.

    Build one extractor per analysis and reuse it for every answer: it owns
    the matcher, classifier and scorer, all configured from one EngineConfig,
    and shares one ExpansionCache between them. The extractor holds no
    mutable state besides that cache, so one instance can serve concurrent
    workers.

    Args:
        brands: Closed brand set of the analysis
        config: Engine thresholds (defaults to EngineConfig())
        cache: ExpansionCache to share; created from config if omitted
    """

    def __init__(
        self,
        brands: BrandSet,
        config: EngineConfig | None = None,
        cache: ExpansionCache | None = None,
    ):
        self.brands = brands
        self.config = config or EngineConfig()
        self.cache = cache or ExpansionCache(BrandNameExpander(self.config.expansion))
        self.matcher = BrandMatcher(self.config.matcher, self.cache)
        self.classifier = CitationClassifier(
            self.config.citation, self.cache, self.config.matcher
        )
        self.scorer = SentimentScorer(self.config.sentiment)

        # Populate the cache up front so workers only ever read it
        expansions = [self.cache.get(profile) for profile in self.brands]
        self._match_expansions = {
            expansion.display_name: _without_other_brand_names(expansion, expansions)
            for expansion in expansions
        }

    def extract(self, answer: AnswerRecord) -> ExtractionResult:
        """
        Extract all facts from one answer.

        Args:
            answer: The AnswerRecord to analyze. Non-string raw_text is
                treated as empty text.

        Returns:
            ExtractionResult for the answer

        Raises:
            InvariantViolationError: If a fact references a brand outside
                the closed brand set (programming error)
        """
        sentences = split_sentences(answer.raw_text)
        word_counts = [count_words(sentence) for sentence in sentences]
        total_words = sum(word_counts)

        mention_facts = tuple(
            self._mention_fact(profile, sentences, word_counts, total_words)
            for profile in self.brands
        )
        citation_facts = self._citation_facts(answer.cited_urls)
        sentiment_fact = self.scorer.score_answer(sentences, mention_facts)

        self._check_closed_set(mention_facts, citation_facts)

        result = ExtractionResult(
            prompt_id=answer.prompt_id,
            platform=answer.platform,
            topic=answer.topic,
            persona=answer.persona,
            timestamp=answer.timestamp,
            mention_facts=mention_facts,
            citation_facts=citation_facts,
            sentiment_fact=sentiment_fact,
            total_sentences=len(sentences),
            total_words=total_words,
        )

        logger.debug(
            f"Extracted answer {answer.prompt_id} on {answer.platform}",
            extra={
                "context": {
                    "sentences": len(sentences),
                    "brands_detected": list(result.detected_brands),
                    "citations": len(citation_facts),
                    "dropped_citations": len(answer.cited_urls) - len(citation_facts),
                    "sentiment": sentiment_fact.label,
                }
            },
        )
        return result

    def _mention_fact(
        self,
        profile: BrandProfile,
        sentences: list[str],
        word_counts: list[int],
        total_words: int,
    ) -> MentionFact:
        expansion = self._match_expansions[profile.display_name]
        matches = []

        for position, (sentence, words) in enumerate(zip(sentences, word_counts), start=1):
            result = self.matcher.match(sentence, profile, expansion)
            if result.detected:
                matches.append(
                    SentenceMatch(
                        text=sentence,
                        position=position,
                        word_count=words,
                        confidence=result.confidence,
                        method=result.method,
                    )
                )

        if not matches:
            return MentionFact.not_detected(profile.display_name, len(sentences), total_words)

        # max() keeps the first maximal element: earliest sentence wins ties
        best = max(matches, key=lambda m: m.confidence)
        return MentionFact(
            brand=profile.display_name,
            detected=True,
            confidence=best.confidence,
            method=best.method,
            first_sentence_position=matches[0].position,
            mention_count=len(matches),
            sentences=tuple(matches),
            total_word_count=sum(m.word_count for m in matches),
            answer_sentence_count=len(sentences),
            answer_word_count=total_words,
        )

    def _citation_facts(self, cited_urls: Iterable[object]) -> tuple[CitationFact, ...]:
        facts: list[CitationFact] = []
        seen: set[str] = set()
        for url in cited_urls:
            fact = self.classifier.classify(url, self.brands)
            if fact is None or fact.url in seen:
                continue
            seen.add(fact.url)
            facts.append(fact)
        return tuple(facts)

    def _check_closed_set(
        self,
        mention_facts: tuple[MentionFact, ...],
        citation_facts: tuple[CitationFact, ...],
    ) -> None:
        if tuple(fact.brand for fact in mention_facts) != self.brands.names:
            raise InvariantViolationError(
                "Mention facts must cover exactly the analysis brand set, in order"
            )
        for fact in citation_facts:
            if fact.type == "brand":
                self.brands.require(fact.attributed_brand)


def extract(
    answer: AnswerRecord,
    brands: BrandSet | Iterable[BrandProfile],
    config: EngineConfig | None = None,
) -> ExtractionResult:
    """
    Extract facts from one answer with a throwaway MetricsExtractor.

    Convenient for single calls and audits. Batch callers should build one
    MetricsExtractor and reuse it so brand expansions are computed once.
    """
    if not isinstance(brands, BrandSet):
        brands = BrandSet(brands)
    return MetricsExtractor(brands, config).extract(answer)
