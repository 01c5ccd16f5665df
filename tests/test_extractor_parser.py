"""
Tests for extractor.parser module.

This test suite validates the per-answer extraction orchestration layer:
- MetricsExtractor.extract() main entry point (segment, match, classify, score)
- One MentionFact per brand, in brand-set order (closed brand set)
- Best-sentence confidence/method and first-position bookkeeping
- Citation cleaning, invalid-URL dropping and de-duplication
- Malformed answers (None / non-string raw_text) treated as empty text
- Determinism: re-running on the same answer yields an equal result
- Module-level extract() convenience wrapper

Test coverage targets:
- MetricsExtractor - orchestration and shared expansion cache
- extract() - throwaway extractor over plain profile lists
- Closed-set invariant violations raising InvariantViolationError
"""

import pytest

from llm_answer_metrics.config.schema import EngineConfig, MatcherSettings
from llm_answer_metrics.exceptions import InvariantViolationError
from llm_answer_metrics.extractor.parser import MetricsExtractor, extract
from llm_answer_metrics.models import AnswerRecord, BrandProfile, BrandSet, MentionFact

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def brands() -> BrandSet:
    """Primary brand followed by one competitor."""
    return BrandSet(
        [
            BrandProfile("Acme Rewards Card", is_primary=True),
            BrandProfile("Zenith Card"),
        ]
    )


@pytest.fixture
def extractor(brands) -> MetricsExtractor:
    """Extractor with default engine settings."""
    return MetricsExtractor(brands)


@pytest.fixture
def answer() -> AnswerRecord:
    """Three-sentence answer with one brand, one earned and one duplicate URL."""
    return AnswerRecord(
        prompt_id="p-1",
        platform="openai",
        topic="travel cards",
        persona="student",
        raw_text=(
            "Acme Rewards Card is excellent. Zenith Card has high fees. "
            "Many travelers still pick Acme."
        ),
        cited_urls=(
            "https://www.acmerewardscard.com/terms",
            "citation_2",
            "https://www.nerdwallet.com/reviews",
            "https://www.acmerewardscard.com/terms",
        ),
        timestamp="2025-11-01T08:00:00Z",
    )


def _answer(text, urls=()) -> AnswerRecord:
    return AnswerRecord(prompt_id="p-x", platform="perplexity", raw_text=text, cited_urls=urls)


# ============================================================================
# Mention extraction
# ============================================================================


class TestMentionExtraction:
    """Test suite for mention facts produced by MetricsExtractor.extract()."""

    def test_one_fact_per_brand_in_order(self, extractor, answer, brands):
        """Every brand gets exactly one MentionFact, in brand-set order."""
        result = extractor.extract(answer)

        assert tuple(fact.brand for fact in result.mention_facts) == brands.names

    def test_exact_match(self, extractor, answer):
        """A verbatim brand name is detected with method exact at 1.0."""
        fact = extractor.extract(answer).mention_for("Acme Rewards Card")

        assert fact.detected is True
        assert fact.method == "exact"
        assert fact.confidence == 1.0

    def test_abbreviation_only(self, extractor):
        """A sentence naming only "Acme" is an abbreviation match."""
        fact = extractor.extract(_answer("Acme is a solid choice.")).mention_for(
            "Acme Rewards Card"
        )

        assert fact.detected is True
        assert fact.method == "abbreviation"
        assert fact.confidence == 0.9

    def test_abbreviation_naming_another_brand_is_skipped(self):
        """A bare "Acme" is evidence for the Acme profile only, not Acme Rewards Card."""
        brands = BrandSet([BrandProfile("Acme Rewards Card"), BrandProfile("Acme")])
        result = MetricsExtractor(brands).extract(_answer("Acme is a solid choice."))

        assert result.mention_for("Acme").method == "exact"
        assert result.mention_for("Acme Rewards Card").detected is False
        assert result.detected_brands == ("Acme",)

    def test_other_brand_names_leave_cache_untouched(self):
        """Reserved forms are removed for matching only; cached expansions keep them."""
        brands = BrandSet([BrandProfile("Acme Rewards Card"), BrandProfile("Acme")])
        extractor = MetricsExtractor(brands)

        assert "acme" in extractor.cache.get(brands.require("Acme Rewards Card")).abbreviations

    def test_mention_count_counts_sentences(self, extractor, answer):
        """mention_count is the number of distinct matching sentences."""
        fact = extractor.extract(answer).mention_for("Acme Rewards Card")

        assert fact.mention_count == 2
        assert [match.position for match in fact.sentences] == [1, 3]
        assert [match.method for match in fact.sentences] == ["exact", "abbreviation"]

    def test_word_counts(self, extractor, answer):
        """Word totals cover matching sentences and the whole answer."""
        result = extractor.extract(answer)
        fact = result.mention_for("Acme Rewards Card")

        assert fact.total_word_count == 10
        assert fact.answer_sentence_count == 3
        assert fact.answer_word_count == 15
        assert result.total_sentences == 3
        assert result.total_words == 15

    def test_first_position(self, extractor, answer):
        """first_sentence_position is the 1-indexed first matching sentence."""
        result = extractor.extract(answer)

        assert result.mention_for("Acme Rewards Card").first_sentence_position == 1
        assert result.mention_for("Zenith Card").first_sentence_position == 2

    def test_best_sentence_wins_over_first(self, extractor):
        """The highest-confidence sentence sets method, not the earliest one."""
        fact = extractor.extract(
            _answer("Try Acme today. Acme Rewards Card is top.")
        ).mention_for("Acme Rewards Card")

        assert fact.first_sentence_position == 1
        assert fact.method == "exact"
        assert fact.confidence == 1.0

    def test_undetected_brand(self, extractor):
        """Brands absent from the answer are reported as not detected."""
        fact = extractor.extract(_answer("Acme Rewards Card is excellent.")).mention_for(
            "Zenith Card"
        )

        assert fact.detected is False
        assert fact.confidence == 0.0
        assert fact.method is None
        assert fact.first_sentence_position is None
        assert fact.answer_sentence_count == 1

    def test_text_mentions_never_add_brands(self, extractor):
        """Unconfigured brands in the text do not create new facts."""
        result = extractor.extract(_answer("Globex Platinum beats everyone."))

        assert result.detected_brands == ()
        assert len(result.mention_facts) == 2

    def test_matcher_settings_are_applied(self, brands):
        """Engine matcher settings reach the matcher."""
        config = EngineConfig(matcher=MatcherSettings(min_abbreviation_length=5))
        fact = MetricsExtractor(brands, config).extract(
            _answer("Acme is a solid choice.")
        ).mention_for("Acme Rewards Card")

        assert fact.detected is False


# ============================================================================
# Citation extraction
# ============================================================================


class TestCitationExtraction:
    """Test suite for citation facts produced by MetricsExtractor.extract()."""

    def test_invalid_and_duplicate_urls_dropped(self, extractor, answer):
        """Placeholders are dropped and repeated URLs are counted once."""
        facts = extractor.extract(answer).citation_facts

        assert [fact.domain for fact in facts] == ["acmerewardscard.com", "nerdwallet.com"]

    def test_brand_citation(self, extractor, answer):
        """The brand's own domain is attributed to the brand."""
        fact = extractor.extract(answer).citation_facts[0]

        assert fact.type == "brand"
        assert fact.attributed_brand == "Acme Rewards Card"
        assert fact.confidence == 0.95

    def test_earned_citation(self, extractor, answer):
        """Review sites are earned media without a brand."""
        fact = extractor.extract(answer).citation_facts[1]

        assert fact.type == "earned"
        assert fact.attributed_brand is None

    def test_same_url_depends_on_brand_set(self):
        """A domain is only brand-owned for the brand it belongs to."""
        url = "www.acmerewards.com/blog"

        owned = extract(_answer("", [url]), [BrandProfile("Acme Rewards")])
        other = extract(_answer("", [url]), [BrandProfile("Zenith Card")])

        assert owned.citation_facts[0].type == "brand"
        assert owned.citation_facts[0].confidence >= 0.85
        assert other.citation_facts[0].type in ("earned", "social")
        assert other.citation_facts[0].attributed_brand is None


# ============================================================================
# Sentiment
# ============================================================================


class TestSentimentExtraction:
    """Test suite for the sentiment fact produced by MetricsExtractor.extract()."""

    def test_mixed_answer(self, extractor, answer):
        """Praise and criticism averaging to neutral is labelled mixed."""
        fact = extractor.extract(answer).sentiment_fact

        assert fact.label == "mixed"
        assert fact.positive_sentences == 1
        assert fact.negative_sentences == 1
        assert fact.neutral_sentences == 1

    def test_brand_polarity(self, extractor, answer):
        """Per-brand polarity covers the sentences mentioning that brand."""
        fact = extractor.extract(answer).sentiment_fact

        assert fact.polarity_for("Acme Rewards Card") == 0.2
        assert fact.polarity_for("Zenith Card") == -0.5


# ============================================================================
# Malformed input and determinism
# ============================================================================


class TestEdgeCases:
    """Test suite for malformed answers and determinism."""

    @pytest.mark.parametrize("raw_text", [None, 42, "", "   ", {"text": "Acme"}])
    def test_non_string_text_is_empty(self, extractor, raw_text):
        """Non-string or blank raw_text yields an all-undetected result."""
        result = extractor.extract(_answer(raw_text))

        assert result.detected_brands == ()
        assert result.total_sentences == 0
        assert result.total_words == 0
        assert result.sentiment_fact.label == "neutral"
        assert all(fact.answer_sentence_count == 0 for fact in result.mention_facts)

    def test_scope_tags_copied(self, extractor, answer):
        """Scope tags and timestamp are carried onto the result."""
        result = extractor.extract(answer)

        assert (result.prompt_id, result.platform) == ("p-1", "openai")
        assert (result.topic, result.persona) == ("travel cards", "student")
        assert result.timestamp == "2025-11-01T08:00:00Z"

    def test_deterministic(self, extractor, answer):
        """Extracting the same answer twice yields equal results."""
        assert extractor.extract(answer) == extractor.extract(answer)

    def test_fresh_extractor_is_deterministic(self, brands, answer):
        """Independent extractors agree on the same answer."""
        assert MetricsExtractor(brands).extract(answer) == MetricsExtractor(brands).extract(
            answer
        )

    def test_cache_populated_up_front(self, extractor, brands):
        """Every brand is expanded when the extractor is built."""
        assert len(extractor.cache) == len(brands)

    def test_closed_set_violation_raises(self, extractor):
        """Facts that do not cover the brand set are a programming error."""
        facts = (MentionFact.not_detected("Globex"), MentionFact.not_detected("Zenith Card"))

        with pytest.raises(InvariantViolationError):
            extractor._check_closed_set(facts, ())


class TestExtractFunction:
    """Test suite for the module-level extract() wrapper."""

    def test_accepts_profile_list(self, answer):
        """A plain list of profiles is wrapped in a BrandSet."""
        result = extract(answer, [BrandProfile("Zenith Card")])

        assert [fact.brand for fact in result.mention_facts] == ["Zenith Card"]
        assert result.mention_for("Zenith Card").method == "exact"

    def test_empty_profile_list_rejected(self, answer):
        """An empty brand set is invalid."""
        with pytest.raises(ValueError, match="at least one brand"):
            extract(answer, [])
