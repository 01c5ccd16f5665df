"""
Configuration schema models for LLM Answer Metrics.

This module defines Pydantic models for validating and parsing the
metrics.config.yaml file. Every tunable threshold of the engine lives here,
in one immutable EngineConfig that is passed explicitly into the matcher,
classifier and aggregator constructors. Nothing reads thresholds from
module-level state.

Models:
    MatcherSettings: Brand matching strategy thresholds and confidences
    ExpansionSettings: Abbreviation / domain variant generation settings
    CitationSettings: Citation classification thresholds and type weights
    AggregationSettings: Smoothing, sample-size and variance thresholds
    SentimentSettings: Sentiment keyword weights and label thresholds
    EngineConfig: Bundle of the five settings models
    BrandEntry: One configured brand (name + optional domain)
    Brands: Brand collections (mine vs competitors)
    AnalysisConfig: Root configuration model (validates entire YAML)
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ..models import BrandProfile, BrandSet
from .constants import (
    COMMON_NAME_WORDS,
    GENERIC_BRAND_WORDS,
    GENERIC_TLDS,
    SOCIAL_DOMAINS,
)


def _validate_unit_interval(name: str, value: float) -> float:
    if not 0.0 < value <= 1.0:
        raise ValueError(f"{name} must be in (0, 1], got: {value}")
    return value


def _normalize_words(words: tuple[str, ...]) -> tuple[str, ...]:
    # Lowercase, strip, drop empties, keep first occurrence order
    return tuple(dict.fromkeys(w.strip().lower() for w in words if w and w.strip()))


class MatcherSettings(BaseModel):
    """
    Thresholds for the brand matching strategies.

    Confidences must stay strictly ordered so that, for the same sentence and
    brand, an exact match always outranks an abbreviation match, which
    outranks a partial match, which outranks a fuzzy match:

        1.0 > abbreviation_confidence >= acronym_confidence
            > partial_max_confidence >= partial_min_confidence
            > fuzzy_confidence_scale

    Attributes:
        min_abbreviation_length: Shortest abbreviation matched in text
        abbreviation_confidence: Confidence of a word-form abbreviation match
        acronym_confidence: Confidence of a pure acronym match (e.g., "ARC")
        partial_min_word_length: Shortest brand word usable for a partial match
        partial_min_confidence: Confidence when one of many brand words matched
        partial_max_confidence: Confidence when every eligible word matched
        fuzzy_threshold: Minimum normalized Levenshtein similarity
        fuzzy_window_words: Leading sentence words compared individually
        fuzzy_window_phrases: Leading two-word phrases compared
        fuzzy_max_length: Longest string compared (longer strings are skipped)
        fuzzy_confidence_scale: Fuzzy confidence = similarity * scale
        generic_words: Category words never accepted as brand evidence alone
    """

    model_config = ConfigDict(frozen=True)

    min_abbreviation_length: int = 3
    abbreviation_confidence: float = 0.9
    acronym_confidence: float = 0.85
    partial_min_word_length: int = 5
    partial_min_confidence: float = 0.6
    partial_max_confidence: float = 0.75
    fuzzy_threshold: float = 0.7
    fuzzy_window_words: int = 5
    fuzzy_window_phrases: int = 3
    fuzzy_max_length: int = 50
    fuzzy_confidence_scale: float = 0.55
    generic_words: tuple[str, ...] = GENERIC_BRAND_WORDS

    @field_validator(
        "min_abbreviation_length",
        "partial_min_word_length",
        "fuzzy_window_words",
        "fuzzy_max_length",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate length/window settings are at least 1."""
        if v < 1:
            raise ValueError(f"Value must be >= 1, got: {v}")
        return v

    @field_validator("fuzzy_window_phrases")
    @classmethod
    def validate_phrase_window(cls, v: int) -> int:
        """Validate phrase window is non-negative (0 disables phrases)."""
        if v < 0:
            raise ValueError(f"fuzzy_window_phrases must be >= 0, got: {v}")
        return v

    @field_validator(
        "abbreviation_confidence",
        "acronym_confidence",
        "partial_min_confidence",
        "partial_max_confidence",
        "fuzzy_threshold",
        "fuzzy_confidence_scale",
    )
    @classmethod
    def validate_confidence(cls, v: float, info: ValidationInfo) -> float:
        """Validate confidences and similarity thresholds are in (0, 1]."""
        return _validate_unit_interval(info.field_name, v)

    @field_validator("generic_words")
    @classmethod
    def validate_generic_words(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Normalize generic words to lowercase, deduplicated."""
        return _normalize_words(v)

    @model_validator(mode="after")
    def validate_confidence_ordering(self) -> "MatcherSettings":
        """Validate exact > abbreviation >= acronym > partial >= partial_min > fuzzy."""
        if not 1.0 > self.abbreviation_confidence:
            raise ValueError("abbreviation_confidence must be below exact confidence (1.0)")
        if not self.abbreviation_confidence >= self.acronym_confidence:
            raise ValueError("acronym_confidence must not exceed abbreviation_confidence")
        if not self.acronym_confidence > self.partial_max_confidence:
            raise ValueError(
                "partial_max_confidence must be below acronym_confidence"
            )
        if not self.partial_max_confidence >= self.partial_min_confidence:
            raise ValueError(
                "partial_min_confidence must not exceed partial_max_confidence"
            )
        if not self.partial_min_confidence > self.fuzzy_confidence_scale:
            raise ValueError(
                "fuzzy_confidence_scale must be below partial_min_confidence "
                "(fuzzy matches must never outrank partial matches)"
            )
        return self


class ExpansionSettings(BaseModel):
    """
    Settings for abbreviation and domain variant generation.

    Attributes:
        max_domain_variants: Cap on generated domain variants per brand
        max_domain_base_length: Longest abbreviation reused as a domain base
        tlds: Generic top-level domains combined with base forms
        common_words: Words stripped from names before abbreviating
    """

    model_config = ConfigDict(frozen=True)

    max_domain_variants: int = 40
    max_domain_base_length: int = 15
    tlds: tuple[str, ...] = GENERIC_TLDS
    common_words: tuple[str, ...] = COMMON_NAME_WORDS

    @field_validator("max_domain_variants", "max_domain_base_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate caps are positive."""
        if v < 1:
            raise ValueError(f"Value must be >= 1, got: {v}")
        return v

    @field_validator("tlds")
    @classmethod
    def validate_tlds(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Normalize TLDs (lowercase, no leading dot) and require at least one."""
        tlds = _normalize_words(tuple(t.strip().lstrip(".") for t in v))
        if not tlds:
            raise ValueError("tlds must contain at least one top-level domain")
        return tlds

    @field_validator("common_words")
    @classmethod
    def validate_common_words(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Normalize common words to lowercase, deduplicated."""
        return _normalize_words(v)


class CitationSettings(BaseModel):
    """
    Settings for cited URL classification.

    Attributes:
        min_variant_length: Shortest domain base usable for starts-with /
            contains matching against a cited domain
        min_contains_ratio: Share of the domain label a contained base must
            cover for a "contains" match
        fuzzy_threshold: Minimum label similarity for a fuzzy brand match
        fuzzy_confidence_scale: Fuzzy brand confidence = similarity * scale
        type_weights: Aggregation weight per citation type
        extra_social_domains: Additional social platform hosts
    """

    model_config = ConfigDict(frozen=True)

    min_variant_length: int = 5
    min_contains_ratio: float = 0.5
    fuzzy_threshold: float = 0.7
    fuzzy_confidence_scale: float = 0.85
    type_weights: dict[str, float] = {"brand": 1.0, "earned": 0.9, "social": 0.8}
    extra_social_domains: tuple[str, ...] = ()

    @field_validator("min_variant_length")
    @classmethod
    def validate_min_variant_length(cls, v: int) -> int:
        """Validate min_variant_length is at least 2."""
        if v < 2:
            raise ValueError(f"min_variant_length must be >= 2, got: {v}")
        return v

    @field_validator("min_contains_ratio", "fuzzy_threshold", "fuzzy_confidence_scale")
    @classmethod
    def validate_ratio(cls, v: float, info: ValidationInfo) -> float:
        """Validate ratios are in (0, 1]."""
        return _validate_unit_interval(info.field_name, v)

    @field_validator("type_weights")
    @classmethod
    def validate_type_weights(cls, v: dict[str, float]) -> dict[str, float]:
        """Validate weights cover exactly brand/earned/social and are in (0, 1]."""
        expected = {"brand", "earned", "social"}
        if set(v) != expected:
            raise ValueError(
                f"type_weights must define exactly {sorted(expected)}, got: {sorted(v)}"
            )
        for key, weight in v.items():
            _validate_unit_interval(f"type_weights.{key}", weight)
        return v

    @field_validator("extra_social_domains")
    @classmethod
    def validate_extra_social_domains(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Normalize extra social hosts (lowercase, no 'www.')."""
        return _normalize_words(tuple(d.strip().lower().removeprefix("www.") for d in v))

    @property
    def social_domains(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(SOCIAL_DOMAINS + self.extra_social_domains))


class SentimentSettings(BaseModel):
    """
    Weights and thresholds of the rule-based sentiment scorer.

    Attributes:
        keyword_weight: Score added per positive (subtracted per negative) word
        phrase_weight: Score added per positive (subtracted per negative) phrase
        negation_window: Tokens before a keyword searched for a negation
        label_threshold: |score| above which a sentence or answer is labeled
            positive / negative instead of neutral
        extra_positive_words: Additional positive keywords
        extra_negative_words: Additional negative keywords
    """

    model_config = ConfigDict(frozen=True)

    keyword_weight: float = 0.4
    phrase_weight: float = 0.5
    negation_window: int = 3
    label_threshold: float = 0.1
    extra_positive_words: tuple[str, ...] = ()
    extra_negative_words: tuple[str, ...] = ()

    @field_validator("keyword_weight", "phrase_weight")
    @classmethod
    def validate_weight(cls, v: float, info: ValidationInfo) -> float:
        """Validate weights are in (0, 1]."""
        return _validate_unit_interval(info.field_name, v)

    @field_validator("negation_window")
    @classmethod
    def validate_negation_window(cls, v: int) -> int:
        """Validate negation_window is non-negative (0 disables negation)."""
        if v < 0:
            raise ValueError(f"negation_window must be >= 0, got: {v}")
        return v

    @field_validator("label_threshold")
    @classmethod
    def validate_label_threshold(cls, v: float) -> float:
        """Validate label_threshold is in [0, 1)."""
        if not 0.0 <= v < 1.0:
            raise ValueError(f"label_threshold must be in [0, 1), got: {v}")
        return v

    @field_validator("extra_positive_words", "extra_negative_words")
    @classmethod
    def validate_extra_words(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Normalize extra keywords to lowercase, deduplicated."""
        return _normalize_words(v)


class AggregationSettings(BaseModel):
    """
    Statistical settings for aggregation.

    Attributes:
        match_threshold: Minimum mention confidence counted toward visibility
        min_sample_size: Answers below which visibility is smoothed
        min_citation_sample: Citations below which citation share is smoothed
        z_score: z value of the reported confidence intervals (1.96 = 95%)
        variance_threshold: Coefficient of variation above which a metric is
            flagged high-variance
    """

    model_config = ConfigDict(frozen=True)

    match_threshold: float = 0.5
    min_sample_size: int = 20
    min_citation_sample: int = 10
    z_score: float = 1.96
    variance_threshold: float = 1.0

    @field_validator("match_threshold")
    @classmethod
    def validate_match_threshold(cls, v: float) -> float:
        """Validate match_threshold is in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"match_threshold must be in [0, 1], got: {v}")
        return v

    @field_validator("min_sample_size", "min_citation_sample")
    @classmethod
    def validate_sample_size(cls, v: int) -> int:
        """Validate sample sizes are non-negative (0 disables smoothing)."""
        if v < 0:
            raise ValueError(f"Sample size must be >= 0, got: {v}")
        return v

    @field_validator("z_score", "variance_threshold")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        """Validate z_score and variance_threshold are positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v


class EngineConfig(BaseModel):
    """
    Immutable bundle of every tunable threshold of the engine.

    Example:
        >>> config = EngineConfig()
        >>> config.aggregation.min_sample_size
        20
        >>> EngineConfig(matcher={"fuzzy_threshold": 0.8}).matcher.fuzzy_threshold
        0.8
    """

    model_config = ConfigDict(frozen=True)

    matcher: MatcherSettings = MatcherSettings()
    expansion: ExpansionSettings = ExpansionSettings()
    citation: CitationSettings = CitationSettings()
    sentiment: SentimentSettings = SentimentSettings()
    aggregation: AggregationSettings = AggregationSettings()


class BrandEntry(BaseModel):
    """
    One configured brand.

    Accepts either a plain string or a mapping:

        brands:
          mine:
            - "Acme Rewards"
          competitors:
            - name: "Zenith Card"
              domain: "zenithcard.com"
    """

    model_config = ConfigDict(frozen=True)

    name: str
    domain: str | None = None

    @model_validator(mode="before")
    @classmethod
    def coerce_plain_name(cls, data: Any) -> Any:
        """Allow a bare string as shorthand for {name: ...}."""
        if isinstance(data, str):
            return {"name": data}
        return data

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name is non-empty."""
        if not v or v.isspace():
            raise ValueError("Brand name cannot be empty")
        return v.strip()


class Brands(BaseModel):
    """
    Brand collections for the analysis.

    Together, mine and competitors form the closed brand set: no brand
    outside this list can ever be attributed a mention or a citation.
    Order is preserved (mine first, then competitors) and is the final
    tie-break in rankings.

    Attributes:
        mine: The user's own brand(s) (required, min 1)
        competitors: Competitor brands (optional)
    """

    model_config = ConfigDict(frozen=True)

    mine: tuple[BrandEntry, ...]
    competitors: tuple[BrandEntry, ...] = ()

    @field_validator("mine")
    @classmethod
    def validate_mine(cls, v: tuple[BrandEntry, ...]) -> tuple[BrandEntry, ...]:
        """Validate at least one own brand is configured."""
        if not v:
            raise ValueError("brands.mine must contain at least one brand")
        return v

    @model_validator(mode="after")
    def validate_unique_names(self) -> "Brands":
        """Validate brand names are unique across mine and competitors."""
        seen: set[str] = set()
        for entry in self.mine + self.competitors:
            key = entry.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate brand name: {entry.name}")
            seen.add(key)
        return self


class AnalysisConfig(BaseModel):
    """
    Root configuration model for metrics.config.yaml.

    Example YAML:
        brands:
          mine:
            - name: "Acme Rewards"
              domain: "acmerewards.com"
          competitors:
            - "Zenith Card"
        engine:
          aggregation:
            min_sample_size: 30
    """

    model_config = ConfigDict(frozen=True)

    brands: Brands
    engine: EngineConfig = EngineConfig()

    def brand_set(self) -> BrandSet:
        """Build the closed BrandSet, own brands first."""
        profiles = [
            BrandProfile(entry.name, entry.domain, is_primary=True)
            for entry in self.brands.mine
        ]
        profiles.extend(
            BrandProfile(entry.name, entry.domain) for entry in self.brands.competitors
        )
        return BrandSet(profiles)
