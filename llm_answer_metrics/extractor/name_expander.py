"""
Brand name expansion: abbreviations and domain variants.

Given only a brand's display name (and optional known domain), generates
the forms under which the brand plausibly appears in answer text and in
cited URLs. There is no brand-specific lookup table anywhere: every form is
derived from the name itself.

Key features:
- Common words (articles, prepositions, corporate suffixes) are stripped
  before abbreviating
- Acronyms, vowel-boundary syllable prefixes, first-word and first-two-word
  forms, letter + partial-word combinations
- Domain bases (separator variants + abbreviations) and a capped list of
  concrete domain variants over generic TLDs
- Deterministic, insertion-ordered output (no sets in public fields)
- ExpansionCache computes each brand once per analysis and shares the
  result read-only between extraction workers

Example:
    >>> expander = BrandNameExpander()
    >>> expansion = expander.expand(BrandProfile("Acme Rewards Card"))
    >>> "acme" in expansion.abbreviations
    True
    >>> "acmerewardscard" in expansion.domain_bases
    True
    >>> "acmerewardscard.com" in expansion.domain_variants
    True
"""

import itertools
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from ..config.schema import ExpansionSettings
from ..models import BrandProfile

logger = logging.getLogger(__name__)

_NON_WORD_PATTERN = re.compile(r"[^\w\s]")
_HOST_PATTERN = re.compile(r"^[a-z0-9]+(?:[.\-][a-z0-9]+)*$")
_VOWELS = "aeiouy"
_DOMAIN_SEPARATORS = ("", "-", ".", "_")


@dataclass(frozen=True)
class BrandExpansion:
    """
    Derived name forms of one brand.

    Attributes:
        display_name: Brand display name the expansion was built from
        words: Lowercase words of the name, punctuation removed
        significant_words: words minus common words (falls back to words)
        abbreviations: Ordered, deduplicated abbreviation forms
        acronyms: The subset of abbreviations that are initial-letter acronyms
        domain_bases: Host labels a brand-owned domain may be built from
        domain_variants: Concrete hosts (base + TLD, with and without "www.")
        canonical_domain: Known domain from the BrandProfile, if any
    """

    display_name: str
    words: tuple[str, ...]
    significant_words: tuple[str, ...]
    abbreviations: tuple[str, ...]
    acronyms: tuple[str, ...]
    domain_bases: tuple[str, ...]
    domain_variants: tuple[str, ...]
    canonical_domain: str | None = None

    @property
    def normalized_name(self) -> str:
        return " ".join(self.words)

    @property
    def compact_name(self) -> str:
        return "".join(self.words)


def clean_name_words(name: str) -> list[str]:
    """
    Lowercase a name, drop punctuation and split into words.

    Example:
        >>> clean_name_words("AT&T Wireless, Inc.")
        ['att', 'wireless', 'inc']
    """
    cleaned = _NON_WORD_PATTERN.sub("", name.lower()).replace("_", " ")
    return cleaned.split()


def extract_significant_words(words: list[str], common_words: tuple[str, ...]) -> list[str]:
    """
    Drop common words and words of two characters or fewer.

    Falls back to every word longer than two characters, then to every word,
    so that names made only of short or common words still expand.
    """
    common = set(common_words)
    significant = [w for w in words if len(w) > 2 and w not in common]
    if not significant:
        significant = [w for w in words if len(w) > 2]
    if not significant:
        significant = list(words)
    return significant


def extract_syllable_prefixes(word: str, max_prefixes: int = 2) -> list[str]:
    """
    Return word prefixes that end on a vowel boundary.

    Only words longer than six characters are split. Prefixes shorter than
    two characters are skipped.

    Example:
        >>> extract_syllable_prefixes("rewards")
        ['re', 'rewa']
        >>> extract_syllable_prefixes("zenith")
        []
    """
    if len(word) <= 6:
        return []

    prefixes = []
    for index, char in enumerate(word):
        if char not in _VOWELS:
            continue
        prefix = word[: index + 1]
        if len(prefix) >= 2:
            prefixes.append(prefix)
            if len(prefixes) == max_prefixes:
                break
    return prefixes


def generate_abbreviations(
    words: list[str], significant: list[str]
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """
    Generate abbreviation forms for a brand name.

    Returns (abbreviations, acronyms), both insertion-ordered. The full name
    itself (spaced or compact) is never returned as an abbreviation.

    Example:
        >>> abbreviations, acronyms = generate_abbreviations(
        ...     ["acme", "rewards", "card"], ["acme", "rewards", "card"]
        ... )
        >>> acronyms
        ('arc', 'ar')
        >>> abbreviations[:4]
        ('arc', 'ar', 're', 'rewa')
    """
    full_forms = {" ".join(words), "".join(words)}
    forms: dict[str, None] = {}
    acronym_forms: list[str] = []

    def add(form: str) -> bool:
        if len(form) < 2 or form in full_forms or form in forms:
            return False
        forms[form] = None
        return True

    # Acronyms of the significant words
    if len(significant) >= 2:
        acronym = "".join(w[0] for w in significant)
        if add(acronym):
            acronym_forms.append(acronym)
        if len(significant) > 2:
            two_word = significant[0][0] + significant[1][0]
            if add(two_word):
                acronym_forms.append(two_word)

    # Syllable prefixes
    for word in significant:
        for prefix in extract_syllable_prefixes(word):
            if 2 <= len(prefix) <= 4:
                add(prefix)

    if len(significant) > 1:
        first = significant[0]

        # First word alone and first-two-word concatenation
        if len(first) >= 3:
            add(first)
        joined = first + significant[1]
        add(joined)
        if len(joined) > 8:
            add(joined[:8])

        # First word + last word initial
        add(first + significant[-1][0])

        # First letter + leading part of later words
        for word in significant[1:]:
            if len(word) >= 4:
                for length in range(3, 6):
                    add(first[0] + word[:length])

    return tuple(forms), tuple(acronym_forms)


class BrandNameExpander:
    """
    Builds BrandExpansion objects from BrandProfiles.

    Stateless apart from its settings; use ExpansionCache to avoid
    recomputing expansions for every sentence and citation.
    """

    def __init__(self, settings: ExpansionSettings | None = None):
        self.settings = settings or ExpansionSettings()

    def expand(self, profile: BrandProfile) -> BrandExpansion:
        words = clean_name_words(profile.display_name)
        if not words:
            # Names made only of punctuation: keep the stripped name as one word
            words = [profile.display_name.lower().strip()]

        significant = extract_significant_words(words, self.settings.common_words)
        abbreviations, acronyms = generate_abbreviations(words, significant)
        domain_bases = self._domain_bases(
            words, significant, abbreviations, profile.canonical_domain
        )
        domain_variants = tuple(
            itertools.islice(
                self._iter_domain_variants(domain_bases, profile.canonical_domain),
                self.settings.max_domain_variants,
            )
        )

        expansion = BrandExpansion(
            display_name=profile.display_name,
            words=tuple(words),
            significant_words=tuple(significant),
            abbreviations=abbreviations,
            acronyms=acronyms,
            domain_bases=domain_bases,
            domain_variants=domain_variants,
            canonical_domain=profile.canonical_domain,
        )

        logger.debug(
            f"Expanded brand {profile.display_name!r}",
            extra={
                "context": {
                    "abbreviations": len(abbreviations),
                    "domain_bases": len(domain_bases),
                    "domain_variants": len(domain_variants),
                }
            },
        )
        return expansion

    def _domain_bases(
        self,
        words: list[str],
        significant: list[str],
        abbreviations: tuple[str, ...],
        canonical_domain: str | None,
    ) -> tuple[str, ...]:
        bases: dict[str, None] = {}

        def add(base: str) -> None:
            if len(base) >= 2:
                bases.setdefault(base, None)

        if canonical_domain:
            add(canonical_domain.split(".", 1)[0])

        for word_list in (words, significant):
            for separator in _DOMAIN_SEPARATORS:
                add(separator.join(word_list))

        if significant:
            add(significant[0])
        if len(significant) > 1:
            add(significant[0] + significant[1])
            add(significant[0] + "-" + significant[1])

        for abbreviation in abbreviations:
            if len(abbreviation) <= self.settings.max_domain_base_length:
                add(abbreviation)

        return tuple(bases)

    def _iter_domain_variants(
        self, bases: tuple[str, ...], canonical_domain: str | None
    ) -> Iterator[str]:
        seen: set[str] = set()
        candidates = []
        if canonical_domain:
            candidates.extend([canonical_domain, f"www.{canonical_domain}"])
        for base in bases:
            if not _HOST_PATTERN.match(base):
                continue
            for tld in self.settings.tlds:
                candidates.extend([f"{base}.{tld}", f"www.{base}.{tld}"])

        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                yield candidate


class ExpansionCache:
    """
    Per-analysis cache of BrandExpansions keyed by brand display name.

    Populated lazily on first use and never invalidated while an analysis
    runs. Expansions are immutable and depend only on the profile, so the
    cache can be shared read-only by concurrent extraction workers: two
    workers racing on the same brand compute identical values and the first
    stored value wins.

    Example:
        >>> cache = ExpansionCache(BrandNameExpander())
        >>> first = cache.get(BrandProfile("Acme Rewards"))
        >>> cache.get(BrandProfile("Acme Rewards")) is first
        True
    """

    def __init__(self, expander: BrandNameExpander | None = None):
        self.expander = expander or BrandNameExpander()
        self._entries: dict[str, BrandExpansion] = {}

    def get(self, profile: BrandProfile) -> BrandExpansion:
        expansion = self._entries.get(profile.display_name)
        if expansion is None:
            expansion = self._entries.setdefault(
                profile.display_name, self.expander.expand(profile)
            )
        return expansion

    def clear(self) -> None:
        """Drop every cached expansion (call only between analyses)."""
        self._entries.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
