"""
Tests for models module.

Tests cover:
- normalize_domain() host extraction
- BrandProfile / BrandSet validation and closed-set lookups
- AnswerRecord required fields and cited_urls coercion
- Fact validation (MentionFact, CitationFact, SentimentFact, SentenceMatch)
- ExtractionResult scope helpers
"""

import pytest

from llm_answer_metrics.exceptions import InvariantViolationError
from llm_answer_metrics.models import (
    AnswerRecord,
    BrandProfile,
    BrandSet,
    CitationFact,
    ExtractionResult,
    MentionFact,
    SentenceMatch,
    SentimentFact,
    normalize_domain,
)


class TestNormalizeDomain:
    """Test suite for normalize_domain()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("https://www.AcmeRewards.com/blog?x=1", "acmerewards.com"),
            ("acme.io", "acme.io"),
            ("http://user@acme.io:8080/path", "acme.io"),
            ("www.acme.io.", "acme.io"),
        ],
    )
    def test_hosts(self, value, expected):
        """Scheme, credentials, port, path and www are stripped."""
        assert normalize_domain(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", 42])
    def test_empty(self, value):
        """Blank or non-string values yield None."""
        assert normalize_domain(value) is None


class TestBrandProfile:
    """Test suite for BrandProfile."""

    def test_strips_name_and_normalizes_domain(self):
        """Display names are stripped and domains normalized."""
        profile = BrandProfile("  Acme Rewards ", "https://www.acmerewards.com/")

        assert profile.display_name == "Acme Rewards"
        assert profile.canonical_domain == "acmerewards.com"
        assert profile.is_primary is False

    def test_rejects_empty_name(self):
        """Empty display names are rejected."""
        with pytest.raises(ValueError, match="display_name"):
            BrandProfile("   ")


class TestBrandSet:
    """Test suite for BrandSet."""

    @pytest.fixture
    def brands(self):
        """Two brands in configured order."""
        return BrandSet([BrandProfile("Zenith Card"), BrandProfile("Acme Rewards")])

    def test_order_preserved(self, brands):
        """Names keep configured order."""
        assert brands.names == ("Zenith Card", "Acme Rewards")
        assert brands.index("Acme Rewards") == 1
        assert len(brands) == 2

    def test_membership(self, brands):
        """Lookups are exact."""
        assert "Zenith Card" in brands
        assert "zenith card" not in brands
        assert brands.get("Globex") is None

    def test_require_outside_set(self, brands):
        """Requiring an unknown brand is an invariant violation."""
        with pytest.raises(InvariantViolationError, match="Globex"):
            brands.require("Globex")

    def test_require_none(self, brands):
        """None is never part of the brand set."""
        with pytest.raises(InvariantViolationError):
            brands.require(None)

    def test_rejects_empty(self):
        """A brand set needs at least one brand."""
        with pytest.raises(ValueError, match="at least one brand"):
            BrandSet([])

    def test_rejects_case_insensitive_duplicates(self):
        """Display names must be unique regardless of case."""
        with pytest.raises(ValueError, match="Duplicate brand"):
            BrandSet([BrandProfile("Acme"), BrandProfile("ACME")])

    def test_rejects_non_profiles(self):
        """Only BrandProfile instances are accepted."""
        with pytest.raises(ValueError, match="Expected BrandProfile"):
            BrandSet(["Acme"])


class TestAnswerRecord:
    """Test suite for AnswerRecord."""

    def test_cited_urls_coerced_to_tuple(self):
        """Lists become tuples and a bare string becomes a 1-tuple."""
        assert AnswerRecord("p-1", "openai", "", cited_urls=["a", "b"]).cited_urls == ("a", "b")
        assert AnswerRecord("p-1", "openai", "", cited_urls="a").cited_urls == ("a",)
        assert AnswerRecord("p-1", "openai", "", cited_urls=None).cited_urls == ()

    @pytest.mark.parametrize(("prompt_id", "platform"), [("", "openai"), ("p-1", "  ")])
    def test_required_fields(self, prompt_id, platform):
        """prompt_id and platform cannot be blank."""
        with pytest.raises(ValueError, match="cannot be empty"):
            AnswerRecord(prompt_id, platform, "text")

    def test_raw_text_any_type(self):
        """raw_text is accepted as-is, whatever its type."""
        assert AnswerRecord("p-1", "openai", None).raw_text is None


class TestFacts:
    """Test suite for fact validation."""

    def _match(self, **overrides):
        values = {"text": "Acme", "position": 1, "word_count": 1, "confidence": 1.0, "method": "exact"}
        values.update(overrides)
        return SentenceMatch(**values)

    def test_sentence_match_validation(self):
        """Positions start at 1 and methods are from the closed set."""
        with pytest.raises(ValueError, match="position"):
            self._match(position=0)
        with pytest.raises(ValueError, match="Unknown match method"):
            self._match(method="semantic")
        with pytest.raises(ValueError, match="confidence"):
            self._match(confidence=0.0)

    def test_detected_mention_needs_sentences(self):
        """A detected mention must carry its sentences and method."""
        with pytest.raises(ValueError, match="at least one matching sentence"):
            MentionFact(brand="Acme", detected=True, confidence=1.0, method="exact")

    def test_mention_count_matches_sentences(self):
        """mention_count equals the number of matching sentences."""
        with pytest.raises(ValueError, match="mention_count"):
            MentionFact(
                brand="Acme",
                detected=True,
                confidence=1.0,
                method="exact",
                first_sentence_position=1,
                mention_count=2,
                sentences=(self._match(),),
            )

    def test_undetected_mention_is_empty(self):
        """An undetected mention carries no confidence or sentences."""
        with pytest.raises(ValueError, match="Undetected"):
            MentionFact(brand="Acme", detected=False, confidence=0.5)
        assert MentionFact.not_detected("Acme", 3, 12).answer_word_count == 12

    def test_brand_citation_needs_brand(self):
        """Only brand citations carry an attributed brand."""
        with pytest.raises(InvariantViolationError):
            CitationFact("https://acme.com", "acme.com", "brand", None, 0.95)
        with pytest.raises(InvariantViolationError):
            CitationFact("https://news.com", "news.com", "earned", "Acme", 0.85)

    def test_citation_type_closed(self):
        """Citation types are brand, earned or social."""
        with pytest.raises(ValueError, match="Unknown citation type"):
            CitationFact("https://acme.com", "acme.com", "paid", None, 0.5)

    def test_sentiment_bounds(self):
        """Polarity stays within [-1, 1] and labels are from the closed set."""
        with pytest.raises(ValueError, match="polarity"):
            SentimentFact(polarity=1.5, label="positive")
        with pytest.raises(ValueError, match="Unknown sentiment label"):
            SentimentFact(polarity=0.0, label="angry")
        with pytest.raises(ValueError, match="polarity for Acme"):
            SentimentFact(polarity=0.0, label="neutral", brand_polarity=(("Acme", -2.0),))


class TestExtractionResult:
    """Test suite for ExtractionResult helpers."""

    @pytest.fixture
    def result(self):
        """Result tagged with platform and topic but no persona."""
        return ExtractionResult(
            prompt_id="p-1",
            platform="openai",
            topic="travel",
            persona=None,
            timestamp="",
            mention_facts=(MentionFact.not_detected("Acme"),),
            citation_facts=(),
            sentiment_fact=SentimentFact(polarity=0.0, label="neutral"),
        )

    def test_scope_value(self, result):
        """Scope values map to the result's tags."""
        assert result.scope_value("overall") == "all"
        assert result.scope_value("platform") == "openai"
        assert result.scope_value("topic") == "travel"
        assert result.scope_value("persona") is None

    def test_unknown_scope(self, result):
        """Unknown scopes raise ValueError."""
        with pytest.raises(ValueError, match="Unknown scope"):
            result.scope_value("region")

    def test_mention_lookup(self, result):
        """mention_for finds facts by brand; detected_brands lists detections."""
        assert result.mention_for("Acme").detected is False
        assert result.mention_for("Globex") is None
        assert result.detected_brands == ()
