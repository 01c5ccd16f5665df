"""
Core data model for LLM Answer Metrics.

Every record that flows through the engine is an explicit, frozen dataclass
with validated fields. Facts are never mutated after construction: when
extraction logic changes they are recomputed wholesale.

Types:
    BrandProfile: One brand under analysis (display name + optional domain)
    BrandSet: The closed, ordered set of BrandProfiles for one analysis
    AnswerRecord: One LLM answer to one prompt on one platform
    SentenceMatch: One sentence in which a brand was detected
    MentionFact: Per (answer, brand) detection summary
    CitationFact: Per cited URL classification
    SentimentFact: Per answer polarity, with per-brand breakdown
    ExtractionResult: Everything extracted from one AnswerRecord

Example:
    >>> brands = BrandSet([BrandProfile("Acme Rewards"), BrandProfile("Zenith Card")])
    >>> "Acme Rewards" in brands
    True
    >>> brands.require("Globex")
    Traceback (most recent call last):
    ...
    InvariantViolationError: Brand 'Globex' is not part of the analysis brand set
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Literal

from .exceptions import InvariantViolationError

MatchMethod = Literal["exact", "abbreviation", "partial", "fuzzy"]
CitationType = Literal["brand", "earned", "social"]
SentimentLabel = Literal["positive", "negative", "neutral", "mixed"]
Scope = Literal["overall", "platform", "topic", "persona"]

MATCH_METHODS: tuple[str, ...] = ("exact", "abbreviation", "partial", "fuzzy")
CITATION_TYPES: tuple[str, ...] = ("brand", "earned", "social")
SCOPES: tuple[str, ...] = ("overall", "platform", "topic", "persona")

OVERALL_SCOPE_VALUE = "all"

_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*://")


def normalize_domain(value: str | None) -> str | None:
    """
    Normalize a domain or URL to a bare lowercase host.

    Strips scheme, credentials, port, path, query, fragment and a leading
    "www.". Returns None when nothing host-like is left.

    Examples:
        >>> normalize_domain("https://www.AcmeRewards.com/blog")
        'acmerewards.com'
        >>> normalize_domain("acme.io")
        'acme.io'
        >>> normalize_domain("   ") is None
        True
    """
    if not value or not isinstance(value, str):
        return None

    host = _SCHEME_PATTERN.sub("", value.strip().lower())
    host = re.split(r"[/?#]", host, maxsplit=1)[0]
    host = host.rsplit("@", 1)[-1].split(":", 1)[0]
    host = host.strip(".")
    host = host.removeprefix("www.")

    return host or None


@dataclass(frozen=True)
class BrandProfile:
    """
    An entity under analysis: the user's brand or a selected competitor.

    Attributes:
        display_name: Name as it should appear in text (e.g., "Acme Rewards")
        canonical_domain: Known website host (e.g., "acmerewards.com"), if any.
            Normalized to a bare lowercase host without "www.".
        is_primary: True for the user's own brand(s), False for competitors.
            Informational only; metrics treat every brand the same way.
    """

    display_name: str
    canonical_domain: str | None = None
    is_primary: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.display_name, str) or not self.display_name.strip():
            raise ValueError("display_name cannot be empty")
        object.__setattr__(self, "display_name", self.display_name.strip())
        object.__setattr__(
            self, "canonical_domain", normalize_domain(self.canonical_domain)
        )


class BrandSet:
    """
    The closed, ordered set of BrandProfiles for one analysis.

    Fixed before extraction begins: no brand can be introduced by appearing
    in answer text. Order is significant and is used as the final
    deterministic tie-break wherever two brands are otherwise equal.

    Raises:
        ValueError: If the set is empty or display names are duplicated
            (case-insensitive).
    """

    def __init__(self, profiles: Iterable[BrandProfile]):
        profiles = tuple(profiles)
        if not profiles:
            raise ValueError("Brand set must contain at least one brand")

        seen: set[str] = set()
        for profile in profiles:
            if not isinstance(profile, BrandProfile):
                raise ValueError(f"Expected BrandProfile, got {type(profile).__name__}")
            key = profile.display_name.lower()
            if key in seen:
                raise ValueError(f"Duplicate brand in brand set: {profile.display_name}")
            seen.add(key)

        self._profiles = profiles
        self._by_name = {profile.display_name: profile for profile in profiles}

    @property
    def profiles(self) -> tuple[BrandProfile, ...]:
        return self._profiles

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(profile.display_name for profile in self._profiles)

    def get(self, name: str) -> BrandProfile | None:
        return self._by_name.get(name)

    def require(self, name: str | None) -> BrandProfile:
        """Return the profile for name, or fail loudly if it is outside the set."""
        profile = self._by_name.get(name) if name is not None else None
        if profile is None:
            raise InvariantViolationError(
                f"Brand {name!r} is not part of the analysis brand set"
            )
        return profile

    def index(self, name: str) -> int:
        self.require(name)
        return self.names.index(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[BrandProfile]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __repr__(self) -> str:
        return f"BrandSet({list(self.names)!r})"


@dataclass(frozen=True)
class AnswerRecord:
    """
    One LLM answer to one prompt on one platform.

    raw_text is typed loosely on purpose: upstream exports sometimes carry
    null or structured payloads, and the extractor treats any non-string as
    empty text instead of failing.

    Attributes:
        prompt_id: Identifier of the prompt that produced the answer
        platform: LLM platform / provider tag (e.g., "openai", "perplexity")
        topic: Topic scope tag, if known
        persona: Persona scope tag, if known
        raw_text: Answer text as returned by the provider
        cited_urls: Ordered cited URLs (stored as a tuple)
        timestamp: ISO 8601 UTC timestamp of the answer
    """

    prompt_id: str
    platform: str
    raw_text: Any
    topic: str | None = None
    persona: str | None = None
    cited_urls: tuple[str, ...] = ()
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.prompt_id or not str(self.prompt_id).strip():
            raise ValueError("prompt_id cannot be empty")
        if not self.platform or not str(self.platform).strip():
            raise ValueError("platform cannot be empty")
        urls = self.cited_urls
        if urls is None:
            urls = ()
        elif isinstance(urls, str):
            urls = (urls,)
        object.__setattr__(self, "cited_urls", tuple(urls))


@dataclass(frozen=True)
class SentenceMatch:
    """
    One sentence of an answer in which a brand was detected.

    Attributes:
        text: Sentence text (whitespace collapsed)
        position: 1-indexed sentence position within the answer
        word_count: Number of words in the sentence
        confidence: Confidence of the winning strategy for this sentence
        method: Winning strategy for this sentence
    """

    text: str
    position: int
    word_count: int
    confidence: float
    method: MatchMethod

    def __post_init__(self) -> None:
        if self.position < 1:
            raise ValueError(f"position must be >= 1, got: {self.position}")
        if self.word_count < 0:
            raise ValueError(f"word_count must be >= 0, got: {self.word_count}")
        if not 0.0 < self.confidence <= 1.0:
            raise ValueError(f"confidence must be in (0, 1], got: {self.confidence}")
        if self.method not in MATCH_METHODS:
            raise ValueError(f"Unknown match method: {self.method}")


@dataclass(frozen=True)
class MentionFact:
    """
    Detection summary for one (answer, brand) pair.

    mention_count counts distinct matching sentences, whichever strategy
    matched each of them. confidence and method describe the single best
    sentence (highest confidence, earliest sentence on ties).

    Attributes:
        brand: Display name of the brand
        detected: True if at least one sentence matched
        confidence: Best sentence confidence, 0.0 when not detected
        method: Strategy of the best sentence, None when not detected
        first_sentence_position: 1-indexed position of the first match
        mention_count: Number of distinct matching sentences
        sentences: Every matching sentence, in answer order
        total_word_count: Words across the matching sentences
        answer_sentence_count: Sentences in the whole answer
        answer_word_count: Words in the whole answer
    """

    brand: str
    detected: bool
    confidence: float = 0.0
    method: MatchMethod | None = None
    first_sentence_position: int | None = None
    mention_count: int = 0
    sentences: tuple[SentenceMatch, ...] = ()
    total_word_count: int = 0
    answer_sentence_count: int = 0
    answer_word_count: int = 0

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got: {self.confidence}")
        if self.detected:
            if self.method not in MATCH_METHODS:
                raise ValueError(f"Detected mention needs a match method, got: {self.method}")
            if not self.sentences or self.first_sentence_position is None:
                raise ValueError("Detected mention needs at least one matching sentence")
            if self.mention_count != len(self.sentences):
                raise ValueError("mention_count must equal the number of matching sentences")
        elif self.confidence or self.mention_count or self.sentences:
            raise ValueError("Undetected mention cannot carry confidence or sentences")

    @classmethod
    def not_detected(
        cls, brand: str, answer_sentence_count: int = 0, answer_word_count: int = 0
    ) -> "MentionFact":
        return cls(
            brand=brand,
            detected=False,
            answer_sentence_count=answer_sentence_count,
            answer_word_count=answer_word_count,
        )


@dataclass(frozen=True)
class CitationFact:
    """
    Classification of one cited URL.

    Attributes:
        url: Cleaned URL (scheme added for bare domains)
        domain: Lowercase host without "www."
        type: "brand", "earned" or "social"
        attributed_brand: Owning brand for "brand" citations, None otherwise
        confidence: Classification confidence in [0, 1]
        label: Name of the rule that classified the URL
    """

    url: str
    domain: str
    type: CitationType
    attributed_brand: str | None
    confidence: float
    label: str = ""

    def __post_init__(self) -> None:
        if self.type not in CITATION_TYPES:
            raise ValueError(f"Unknown citation type: {self.type}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got: {self.confidence}")
        if (self.type == "brand") != (self.attributed_brand is not None):
            raise InvariantViolationError(
                f"Citation {self.url} of type {self.type!r} has attributed_brand="
                f"{self.attributed_brand!r}; only brand citations carry a brand"
            )


@dataclass(frozen=True)
class SentimentFact:
    """
    Rule-based sentiment of one answer.

    Attributes:
        polarity: Mean sentence polarity, in [-1, 1]
        label: positive, negative, neutral or mixed
        positive_sentences: Sentences scored positive
        negative_sentences: Sentences scored negative
        neutral_sentences: Sentences scored neutral
        brand_polarity: (brand, polarity) over the sentences mentioning each
            detected brand, in brand-set order
    """

    polarity: float
    label: SentimentLabel
    positive_sentences: int = 0
    negative_sentences: int = 0
    neutral_sentences: int = 0
    brand_polarity: tuple[tuple[str, float], ...] = ()

    def __post_init__(self) -> None:
        if not -1.0 <= self.polarity <= 1.0:
            raise ValueError(f"polarity must be in [-1, 1], got: {self.polarity}")
        if self.label not in ("positive", "negative", "neutral", "mixed"):
            raise ValueError(f"Unknown sentiment label: {self.label}")
        for brand, polarity in self.brand_polarity:
            if not -1.0 <= polarity <= 1.0:
                raise ValueError(
                    f"polarity for {brand} must be in [-1, 1], got: {polarity}"
                )

    def polarity_for(self, brand: str) -> float | None:
        for name, polarity in self.brand_polarity:
            if name == brand:
                return polarity
        return None


@dataclass(frozen=True)
class ExtractionResult:
    """
    Everything extracted from one AnswerRecord.

    mention_facts holds exactly one MentionFact per brand in the brand set,
    in brand-set order. citation_facts follows cited-URL order with invalid
    URLs dropped.
    """

    prompt_id: str
    platform: str
    topic: str | None
    persona: str | None
    timestamp: str
    mention_facts: tuple[MentionFact, ...]
    citation_facts: tuple[CitationFact, ...]
    sentiment_fact: SentimentFact
    total_sentences: int = 0
    total_words: int = 0

    def mention_for(self, brand: str) -> MentionFact | None:
        for fact in self.mention_facts:
            if fact.brand == brand:
                return fact
        return None

    def scope_value(self, scope: str) -> str | None:
        """Return this result's tag for a scope ("overall" matches everything)."""
        if scope == "overall":
            return OVERALL_SCOPE_VALUE
        if scope in ("platform", "topic", "persona"):
            return getattr(self, scope)
        raise ValueError(f"Unknown scope: {scope}")

    @property
    def detected_brands(self) -> tuple[str, ...]:
        return tuple(fact.brand for fact in self.mention_facts if fact.detected)
