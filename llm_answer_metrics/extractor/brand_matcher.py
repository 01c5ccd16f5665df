"""
Graded-confidence brand matching for single sentences.

BrandMatcher runs an ordered list of strategy objects against a sentence
and returns the verdict of the first strategy that succeeds:

    1. ExactMatchStrategy         full display name, word boundaries   1.0
    2. AbbreviationMatchStrategy  generated abbreviation forms          0.85-0.9
    3. PartialMatchStrategy       long, non-generic brand words         0.6-0.75
    4. FuzzyMatchStrategy         Levenshtein similarity on a window    < 0.6

Because confidences are graded instead of yes/no, aggregation can weight
and smooth detections rather than swing between all and nothing.

Key features:
- Word-boundary, case-insensitive regex matching (re.escape on every form)
- Generic category words ("bank", "card", ...) never count as evidence alone
- Fuzzy comparison is bounded: first few words and two-word phrases only,
  strings capped in length, early exit when lengths differ by more than half
- Adding a strategy is additive: implement attempt() and insert it in order

Example:
    >>> matcher = BrandMatcher()
    >>> result = matcher.match("Acme Rewards Card has no annual fee", BrandProfile("Acme Rewards Card"))
    >>> (result.detected, result.method, result.confidence)
    (True, 'exact', 1.0)
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from rapidfuzz.distance import Levenshtein

from ..config.schema import MatcherSettings
from ..models import BrandProfile, MatchMethod
from .name_expander import BrandExpansion, ExpansionCache

_WORD_PATTERN = re.compile(r"[\w'&\-]+")


@dataclass(frozen=True)
class MatchResult:
    """
    Detection verdict for one (sentence, brand) pair.

    Attributes:
        detected: True if a strategy matched
        confidence: Strategy confidence, 0.0 when not detected
        method: Matching strategy name, None when not detected
        matched_text: The form that matched (for debugging and reports)
    """

    detected: bool
    confidence: float
    method: MatchMethod | None
    matched_text: str | None = None

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got: {self.confidence}")


NO_MATCH = MatchResult(detected=False, confidence=0.0, method=None)


@lru_cache(maxsize=4096)
def create_form_pattern(form: str) -> re.Pattern:
    """
    Create a word-boundary, case-insensitive pattern for a name form.

    Boundaries use lookarounds instead of \\b so that forms starting or
    ending with punctuation ("Warmly.io", "AT&T") still match whole words.

    Raises:
        ValueError: If form is empty or whitespace

    Example:
        >>> bool(create_form_pattern("HubSpot").search("I recommend HubSpot"))
        True
        >>> bool(create_form_pattern("hub").search("I use GitHub"))
        False
    """
    if not form or form.isspace():
        raise ValueError("Brand form cannot be empty or whitespace")

    # SECURITY: Escape special regex characters before adding boundaries
    escaped = re.escape(form.strip())
    escaped = re.sub(r"(\\ )+", r"\\s+", escaped)
    return re.compile(r"(?<!\w)" + escaped + r"(?!\w)", re.IGNORECASE)


class MatchStrategy(Protocol):
    """
    Interface of a brand matching strategy.

    attempt() returns a MatchResult on success and None when the strategy
    does not apply, letting the matcher fall through to the next strategy.
    """

    method: MatchMethod

    def attempt(
        self, sentence: str, profile: BrandProfile, expansion: BrandExpansion
    ) -> MatchResult | None: ...


class ExactMatchStrategy:
    """Full display name on word boundaries."""

    method: MatchMethod = "exact"

    def __init__(self, settings: MatcherSettings):
        self.settings = settings

    def attempt(
        self, sentence: str, profile: BrandProfile, expansion: BrandExpansion
    ) -> MatchResult | None:
        if create_form_pattern(profile.display_name).search(sentence):
            return MatchResult(True, 1.0, self.method, profile.display_name)
        return None


class AbbreviationMatchStrategy:
    """
    Any generated abbreviation on word boundaries.

    Forms shorter than min_abbreviation_length and generic category words
    are never tried. Acronyms score acronym_confidence, every other form
    abbreviation_confidence.
    """

    method: MatchMethod = "abbreviation"

    def __init__(self, settings: MatcherSettings):
        self.settings = settings
        self._generic = frozenset(settings.generic_words)

    def eligible_forms(self, expansion: BrandExpansion) -> list[str]:
        return [
            form
            for form in expansion.abbreviations
            if len(form) >= self.settings.min_abbreviation_length
            and form not in self._generic
        ]

    def attempt(
        self, sentence: str, profile: BrandProfile, expansion: BrandExpansion
    ) -> MatchResult | None:
        acronyms = set(expansion.acronyms)
        best: MatchResult | None = None

        for form in self.eligible_forms(expansion):
            if not create_form_pattern(form).search(sentence):
                continue
            confidence = (
                self.settings.acronym_confidence
                if form in acronyms
                else self.settings.abbreviation_confidence
            )
            if best is None or confidence > best.confidence:
                best = MatchResult(True, confidence, self.method, form)

        return best


class PartialMatchStrategy:
    """
    Significant brand words long enough to be distinctive.

    Confidence grows linearly with the share of eligible brand words found
    in the sentence, from partial_min_confidence (one of many) up to
    partial_max_confidence (all of them).
    """

    method: MatchMethod = "partial"

    def __init__(self, settings: MatcherSettings):
        self.settings = settings
        self._generic = frozenset(settings.generic_words)

    def eligible_words(self, expansion: BrandExpansion) -> list[str]:
        return [
            word
            for word in expansion.significant_words
            if len(word) >= self.settings.partial_min_word_length
            and word not in self._generic
        ]

    def attempt(
        self, sentence: str, profile: BrandProfile, expansion: BrandExpansion
    ) -> MatchResult | None:
        eligible = self.eligible_words(expansion)
        if not eligible:
            return None

        matched = [w for w in eligible if create_form_pattern(w).search(sentence)]
        if not matched:
            return None

        span = self.settings.partial_max_confidence - self.settings.partial_min_confidence
        confidence = self.settings.partial_min_confidence + span * (
            len(matched) / len(eligible)
        )
        return MatchResult(True, round(confidence, 4), self.method, " ".join(matched))


def bounded_similarity(left: str, right: str, max_length: int) -> float:
    """
    Normalized Levenshtein similarity with cost bounds.

    Returns 0.0 without computing the distance when either string is empty
    or longer than max_length, or when the shorter string is less than half
    as long as the longer one.

    Example:
        >>> round(bounded_similarity("acme", "acne", 50), 2)
        0.75
        >>> bounded_similarity("acme", "acmerewardscard", 50)
        0.0
    """
    if not left or not right:
        return 0.0
    if len(left) > max_length or len(right) > max_length:
        return 0.0
    shorter, longer = sorted((len(left), len(right)))
    if shorter / longer < 0.5:
        return 0.0
    return Levenshtein.normalized_similarity(left, right)


class FuzzyMatchStrategy:
    """
    Levenshtein similarity against the start of the sentence.

    Compares the brand name and its eligible words with the first
    fuzzy_window_words words and the first fuzzy_window_phrases two-word
    phrases of the sentence. Confidence is similarity scaled by
    fuzzy_confidence_scale, which keeps every fuzzy match below any
    partial match.
    """

    method: MatchMethod = "fuzzy"

    def __init__(self, settings: MatcherSettings):
        self.settings = settings
        self._generic = frozenset(settings.generic_words)

    def targets(self, expansion: BrandExpansion) -> list[str]:
        targets = [expansion.normalized_name]
        targets.extend(
            word
            for word in expansion.significant_words
            if len(word) >= self.settings.partial_min_word_length
            and word not in self._generic
        )
        return list(dict.fromkeys(targets))

    def candidates(self, sentence: str) -> list[str]:
        words = [w.lower() for w in _WORD_PATTERN.findall(sentence)]
        window = words[: self.settings.fuzzy_window_words]
        phrases = [
            f"{words[i]} {words[i + 1]}"
            for i in range(min(self.settings.fuzzy_window_phrases, len(words) - 1))
        ]
        return list(dict.fromkeys(window + phrases))

    def attempt(
        self, sentence: str, profile: BrandProfile, expansion: BrandExpansion
    ) -> MatchResult | None:
        best_similarity = 0.0
        best_candidate = None

        for target in self.targets(expansion):
            for candidate in self.candidates(sentence):
                similarity = bounded_similarity(
                    target, candidate, self.settings.fuzzy_max_length
                )
                if similarity > best_similarity:
                    best_similarity = similarity
                    best_candidate = candidate

        if best_candidate is None or best_similarity < self.settings.fuzzy_threshold:
            return None

        confidence = round(best_similarity * self.settings.fuzzy_confidence_scale, 4)
        return MatchResult(True, confidence, self.method, best_candidate)


def default_strategies(settings: MatcherSettings) -> list[MatchStrategy]:
    """Return the standard strategy order: exact, abbreviation, partial, fuzzy."""
    return [
        ExactMatchStrategy(settings),
        AbbreviationMatchStrategy(settings),
        PartialMatchStrategy(settings),
        FuzzyMatchStrategy(settings),
    ]


class BrandMatcher:
    """
    Matches one sentence against one brand with ordered strategies.

    Args:
        settings: Matching thresholds (defaults to MatcherSettings())
        cache: Shared ExpansionCache; a private one is created if omitted
        strategies: Custom strategy order (defaults to default_strategies())

    Example:
        >>> matcher = BrandMatcher()
        >>> matcher.match("Try Acme today", BrandProfile("Acme Rewards Card")).method
        'abbreviation'
        >>> matcher.match("Nothing here", BrandProfile("Acme Rewards Card")).detected
        False
    """

    def __init__(
        self,
        settings: MatcherSettings | None = None,
        cache: ExpansionCache | None = None,
        strategies: list[MatchStrategy] | None = None,
    ):
        self.settings = settings or MatcherSettings()
        self.cache = cache or ExpansionCache()
        self.strategies = (
            strategies if strategies is not None else default_strategies(self.settings)
        )

    def match(
        self,
        sentence: str,
        profile: BrandProfile,
        expansion: BrandExpansion | None = None,
    ) -> MatchResult:
        """
        Return the verdict of the first strategy that matches.

        Non-string or blank sentences never match.
        """
        if not isinstance(sentence, str) or not sentence.strip():
            return NO_MATCH

        if expansion is None:
            expansion = self.cache.get(profile)

        for strategy in self.strategies:
            result = strategy.attempt(sentence, profile, expansion)
            if result is not None:
                return result

        return NO_MATCH
