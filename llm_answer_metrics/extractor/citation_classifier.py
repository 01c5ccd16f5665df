"""
Cited URL classification: brand-owned, earned or social media.

Each cited URL is cleaned and validated first; URLs that cannot be turned
into a routable http(s) address are dropped (clean_url returns None) and
never become zero-confidence facts.

Valid URLs are then checked in order:

1. Brand: each brand is compared ONLY against its own domain bases and
   variants (from BrandNameExpander). The best-scoring brand wins, ties go
   to the earlier brand in the brand set. A domain is never attributed to a
   brand whose expansion it does not match, even if it overlaps another
   brand's name.
2. Social: membership in the maintained social platform list, including
   mobile / regional subdomains and shortener hosts.
3. Earned: generic pattern families (news media, review sites, industry
   publications) with a 0.7 baseline for any other third-party site.

Example:
    >>> classifier = CitationClassifier()
    >>> brands = BrandSet([BrandProfile("Acme Rewards")])
    >>> fact = classifier.classify("www.acmerewards.com/blog", brands)
    >>> (fact.type, fact.attributed_brand, fact.confidence)
    ('brand', 'Acme Rewards', 0.95)
"""

import ipaddress
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..config.constants import (
    EARNED_DEFAULT_CONFIDENCE,
    EARNED_INDUSTRY_CONFIDENCE,
    EARNED_NEWS_CONFIDENCE,
    EARNED_REVIEW_CONFIDENCE,
    INDUSTRY_PUBLICATION_PATTERN,
    NEWS_MEDIA_PATTERN,
    REVIEW_SITE_PATTERN,
    SOCIAL_SHORTENERS,
)
from ..config.schema import CitationSettings, MatcherSettings
from ..models import BrandProfile, BrandSet, CitationFact
from .brand_matcher import bounded_similarity
from .name_expander import BrandExpansion, ExpansionCache

logger = logging.getLogger(__name__)

_TRAILING_PUNCTUATION = ")]}.,;:!?'\""
_LEADING_PUNCTUATION = "([{<'\""
_BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}
_CITATION_MARKER_PATTERN = re.compile(r"^\[?citation[_\-]?\d*\]?$", re.IGNORECASE)
_BARE_DOMAIN_PATTERN = re.compile(
    r"^[a-z0-9][a-z0-9\-]*(\.[a-z0-9\-]+)+(:\d+)?([/?#].*)?$", re.IGNORECASE
)
_HOST_LABEL_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9\-]*[a-z0-9])?$")
_TLD_PATTERN = re.compile(r"^[a-z][a-z0-9]{1,62}$")

_NEWS_RE = re.compile(NEWS_MEDIA_PATTERN)
_REVIEW_RE = re.compile(REVIEW_SITE_PATTERN)
_INDUSTRY_RE = re.compile(INDUSTRY_PUBLICATION_PATTERN)

# Second-level labels of common two-part public suffixes (acme.co.uk)
_SECOND_LEVEL_SUFFIXES = frozenset({"co", "com", "org", "net", "ac", "gov", "edu"})


@dataclass(frozen=True)
class CleanedUrl:
    """A validated URL and its normalized domain."""

    url: str
    domain: str

    @property
    def label(self) -> str:
        """Registrable label of the domain ("acmerewards" for blog.acmerewards.co.uk)."""
        return registrable_label(self.domain)


def registrable_label(domain: str) -> str:
    """
    Return the label in front of the public suffix.

    Example:
        >>> registrable_label("blog.acmerewards.com")
        'acmerewards'
        >>> registrable_label("acme.co.uk")
        'acme'
    """
    parts = domain.split(".")
    if len(parts) >= 3 and parts[-2] in _SECOND_LEVEL_SUFFIXES and len(parts[-1]) == 2:
        return parts[-3]
    if len(parts) >= 2:
        return parts[-2]
    return parts[0]


def registrable_domain(domain: str) -> str:
    """
    Return the domain without subdomains.

    Example:
        >>> registrable_domain("m.facebook.com")
        'facebook.com'
        >>> registrable_domain("news.bbc.co.uk")
        'bbc.co.uk'
    """
    parts = domain.split(".")
    if len(parts) >= 3 and parts[-2] in _SECOND_LEVEL_SUFFIXES and len(parts[-1]) == 2:
        return ".".join(parts[-3:])
    return ".".join(parts[-2:])


def _is_routable_ip(host: str) -> bool | None:
    """True/False for IP literals, None when host is not an IP address."""
    try:
        address = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return None
    return not (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_reserved
        or address.is_unspecified
        or (address.version == 4 and str(address) == "255.255.255.255")
        or (address.version == 4 and address in ipaddress.ip_network("0.0.0.0/8"))
    )


def _strip_trailing_punctuation(value: str) -> str:
    # A closing bracket stays when it balances an opening one (wiki/Foo_(bar))
    while value and value[-1] in _TRAILING_PUNCTUATION:
        opening = _BRACKET_PAIRS.get(value[-1])
        if opening and value.count(opening) >= value.count(value[-1]):
            break
        value = value[:-1]
    return value


def clean_url(raw: object) -> CleanedUrl | None:
    """
    Clean and validate a cited URL.

    - Strips whitespace, wrapping quotes/brackets and trailing punctuation,
      keeping closing brackets that are balanced inside the URL
    - Rejects placeholder markers such as "citation_3"
    - Adds "https://" to bare domains ("acme.com/blog")
    - Accepts only http and https
    - Rejects localhost, malformed hosts and private or non-routable IP
      addresses
    - Normalizes the domain to lowercase without "www."

    Returns:
        CleanedUrl, or None when the value is not a usable URL

    Example:
        >>> clean_url("(https://www.Acme.com/blog).")
        CleanedUrl(url='https://www.Acme.com/blog', domain='acme.com')
        >>> clean_url("citation_3") is None
        True
        >>> clean_url("http://127.0.0.1/admin") is None
        True
    """
    if not isinstance(raw, str):
        return None

    value = _strip_trailing_punctuation(raw.strip().lstrip(_LEADING_PUNCTUATION)).strip()
    if not value or _CITATION_MARKER_PATTERN.match(value):
        return None

    if "://" not in value:
        if not _BARE_DOMAIN_PATTERN.match(value):
            return None
        value = f"https://{value}"

    try:
        parts = urlsplit(value)
        host = parts.hostname
    except ValueError:
        return None

    if parts.scheme.lower() not in ("http", "https") or not host:
        return None

    host = host.lower().rstrip(".")
    if host == "localhost" or host.endswith(".localhost"):
        return None

    routable = _is_routable_ip(host)
    if routable is False:
        return None
    if routable is None:
        labels = host.split(".")
        if len(labels) < 2 or ".." in host or host.startswith("."):
            return None
        if not all(_HOST_LABEL_PATTERN.match(label) for label in labels):
            return None
        if not _TLD_PATTERN.match(labels[-1]):
            return None

    return CleanedUrl(url=value, domain=host.removeprefix("www."))


class CitationClassifier:
    """
    Classifies cited URLs against the closed brand set.

    Args:
        settings: Citation thresholds (defaults to CitationSettings())
        cache: Shared ExpansionCache; a private one is created if omitted
        matcher_settings: Supplies the generic word list used to reject
            category-only domain matches
    """

    def __init__(
        self,
        settings: CitationSettings | None = None,
        cache: ExpansionCache | None = None,
        matcher_settings: MatcherSettings | None = None,
    ):
        self.settings = settings or CitationSettings()
        self.cache = cache or ExpansionCache()
        self._generic = frozenset((matcher_settings or MatcherSettings()).generic_words)
        self._social = frozenset(self.settings.social_domains)

    def classify(self, url: object, brands: BrandSet) -> CitationFact | None:
        """
        Classify one cited URL.

        Returns:
            CitationFact, or None when the URL is invalid and must be dropped
        """
        cleaned = clean_url(url)
        if cleaned is None:
            logger.debug(f"Dropped invalid cited URL: {url!r}")
            return None

        brand_match = self.match_brand(cleaned, brands)
        if brand_match is not None:
            profile, confidence, label = brand_match
            return CitationFact(
                url=cleaned.url,
                domain=cleaned.domain,
                type="brand",
                attributed_brand=brands.require(profile.display_name).display_name,
                confidence=confidence,
                label=label,
            )

        social = self.match_social(cleaned)
        if social is not None:
            confidence, label = social
            return CitationFact(cleaned.url, cleaned.domain, "social", None, confidence, label)

        confidence, label = self.classify_earned(cleaned)
        return CitationFact(cleaned.url, cleaned.domain, "earned", None, confidence, label)

    # ------------------------------------------------------------------
    # Brand check
    # ------------------------------------------------------------------

    def match_brand(
        self, cleaned: CleanedUrl, brands: BrandSet
    ) -> tuple[BrandProfile, float, str] | None:
        """Return (profile, confidence, label) of the best brand match, if any."""
        best: tuple[BrandProfile, float, str] | None = None
        for profile in brands:
            result = self.score_brand_domain(cleaned, self.cache.get(profile))
            if result is None:
                continue
            confidence, label = result
            # Strictly greater: ties keep the earlier brand
            if best is None or confidence > best[1]:
                best = (profile, confidence, label)
        return best

    def _split_bases(self, expansion: BrandExpansion) -> tuple[list[str], list[str]]:
        # Name bases identify the brand on their own. Abbreviation bases are
        # weaker evidence and need at least four characters. Generic
        # category words are never usable, except the brand's own full name
        # or known domain label.
        always = {expansion.compact_name}
        if expansion.canonical_domain:
            always.add(registrable_label(expansion.canonical_domain))
        abbreviations = set(expansion.abbreviations)

        name_bases: list[str] = []
        abbreviation_bases: list[str] = []
        for base in expansion.domain_bases:
            if base in always:
                name_bases.append(base)
            elif base in self._generic or len(base) < 3:
                continue
            elif base in abbreviations:
                if len(base) >= 4:
                    abbreviation_bases.append(base)
            else:
                name_bases.append(base)
        return name_bases, abbreviation_bases

    def score_brand_domain(
        self, cleaned: CleanedUrl, expansion: BrandExpansion
    ) -> tuple[float, str] | None:
        """
        Score a domain against one brand's own expansion.

        Rules are evaluated in this order, first hit wins:
            owned domain (canonical, or a generated
            name-base variant on a configured TLD)          0.95
            domain label starts with a long name base       0.9
            subdomain of an owned domain                    0.85
            abbreviation base + TLD                         0.8
            label contains a long name base (>= 50%)        0.75
            fuzzy label similarity >= threshold             0.7-0.85

        Returns:
            (confidence, label) or None when the domain is not this brand's
        """
        domain = cleaned.domain
        label = cleaned.label
        is_root = domain == registrable_domain(domain)
        stem = domain.rsplit(".", 1)[0]
        canonical = expansion.canonical_domain
        name_bases, abbreviation_bases = self._split_bases(expansion)
        long_bases = [
            b
            for b in name_bases
            if len(b) >= self.settings.min_variant_length and "." not in b and "_" not in b
        ]

        if canonical and domain == canonical:
            return 0.95, "brand_owned_domain"
        # Name bases on other TLDs fall through to the weaker rules
        if stem in name_bases and domain in expansion.domain_variants:
            return 0.95, "brand_owned_domain"

        for base in long_bases:
            if label != base and label.startswith(base):
                return 0.9, "brand_domain_prefix"

        if (not is_root and label in name_bases) or (
            canonical and domain.endswith("." + canonical)
        ):
            return 0.85, "brand_subdomain"

        if is_root and label in abbreviation_bases:
            return 0.8, "brand_abbreviation_domain"

        for base in long_bases:
            if base in label and len(base) / len(label) >= self.settings.min_contains_ratio:
                return 0.75, "brand_domain_contains"

        best_similarity = 0.0
        for base in long_bases:
            similarity = bounded_similarity(
                base.replace("-", ""), label.replace("-", ""), 63
            )
            best_similarity = max(best_similarity, similarity)
        if best_similarity >= self.settings.fuzzy_threshold:
            confidence = best_similarity * self.settings.fuzzy_confidence_scale
            confidence = min(0.85, max(0.7, confidence))
            return round(confidence, 4), "brand_domain_fuzzy"

        return None

    # ------------------------------------------------------------------
    # Social / earned checks
    # ------------------------------------------------------------------

    def match_social(self, cleaned: CleanedUrl) -> tuple[float, str] | None:
        """Return (confidence, label) when the domain is a social platform."""
        domain = cleaned.domain
        if domain in self._social:
            if domain in SOCIAL_SHORTENERS:
                return 0.9, "social_media_shortener"
            return 0.95, "social_media_platform"

        root = registrable_domain(domain)
        if root in self._social:
            return 0.9, "social_media_subdomain"

        # Regional variants such as facebook.co.uk
        label = registrable_label(domain)
        if any(s.split(".")[0] == label and len(label) > 2 for s in self._social):
            return 0.9, "social_media_regional"

        return None

    def classify_earned(self, cleaned: CleanedUrl) -> tuple[float, str]:
        """Return (confidence, label) for a third-party editorial domain."""
        domain = cleaned.domain
        if _NEWS_RE.search(domain):
            return EARNED_NEWS_CONFIDENCE, "news_media_outlet"
        if _REVIEW_RE.search(domain):
            return EARNED_REVIEW_CONFIDENCE, "review_comparison_site"
        if _INDUSTRY_RE.search(domain):
            return EARNED_INDUSTRY_CONFIDENCE, "industry_publication"
        return EARNED_DEFAULT_CONFIDENCE, "third_party_editorial"
