"""
Tests for extractor.citation_classifier module.

Tests cover:
- URL cleaning and validation (invalid URLs are dropped, never scored 0)
- Brand attribution only against each brand's own expansion
- Brand rule confidences (owned, prefix, subdomain, abbreviation, contains, fuzzy)
- Social platform, subdomain, shortener and regional detection
- Earned media pattern families
"""

import pytest

from llm_answer_metrics.config.schema import CitationSettings, ExpansionSettings
from llm_answer_metrics.extractor.citation_classifier import (
    CitationClassifier,
    CleanedUrl,
    clean_url,
    registrable_domain,
    registrable_label,
)
from llm_answer_metrics.extractor.name_expander import BrandNameExpander, ExpansionCache
from llm_answer_metrics.models import BrandProfile, BrandSet


@pytest.fixture
def classifier():
    """Return a classifier with default settings."""
    return CitationClassifier()


@pytest.fixture
def acme_rewards():
    """Return a brand set holding only Acme Rewards."""
    return BrandSet([BrandProfile("Acme Rewards")])


class TestCleanUrl:
    """Test suite for clean_url()."""

    def test_strips_wrapping_punctuation(self):
        """Brackets, quotes and trailing punctuation are removed."""
        assert clean_url("(https://www.Acme.com/blog).") == CleanedUrl(
            url="https://www.Acme.com/blog", domain="acme.com"
        )

    def test_bare_domain_gets_scheme(self):
        """Bare domains are promoted to https URLs."""
        cleaned = clean_url("acmerewards.com/blog")
        assert cleaned.url == "https://acmerewards.com/blog"
        assert cleaned.domain == "acmerewards.com"

    def test_strips_www(self):
        """The domain never carries a leading 'www.'."""
        assert clean_url("https://WWW.AcmeRewards.com").domain == "acmerewards.com"

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            42,
            "",
            "   ",
            "citation_3",
            "[citation]",
            "not a url",
            "ftp://acme.com/file",
            "mailto:info@acme.com",
            "https://acme",
            "https://exa mple.com",
            "http://localhost:8000/admin",
            "http://127.0.0.1/admin",
            "http://[::1]/",
            "http://0.0.0.0/",
            "http://10.0.0.1/intranet",
            "http://192.168.1.1/router",
            "http://172.16.4.2/",
            "http://[fd00::1]/",
        ],
    )
    def test_invalid_urls_dropped(self, raw):
        """Anything that is not a routable http(s) URL yields None."""
        assert clean_url(raw) is None

    def test_balanced_parentheses_kept(self):
        """A closing parenthesis that belongs to the URL path survives cleaning."""
        cleaned = clean_url("https://en.wikipedia.org/wiki/Acme_(company)")

        assert cleaned.url == "https://en.wikipedia.org/wiki/Acme_(company)"

    def test_wrapped_url_with_parentheses(self):
        """Only the unbalanced wrapping bracket and punctuation are stripped."""
        cleaned = clean_url("(https://en.wikipedia.org/wiki/Acme_(company)).")

        assert cleaned.url == "https://en.wikipedia.org/wiki/Acme_(company)"
        assert cleaned.domain == "en.wikipedia.org"

    def test_public_ip_accepted(self):
        """Routable IP literals are valid URLs."""
        assert clean_url("http://8.8.8.8/dns").domain == "8.8.8.8"


class TestRegistrableDomain:
    """Test suite for registrable_label() and registrable_domain()."""

    def test_simple_domain(self):
        """The label before the TLD is the registrable label."""
        assert registrable_label("blog.acmerewards.com") == "acmerewards"
        assert registrable_domain("blog.acmerewards.com") == "acmerewards.com"

    def test_two_part_suffix(self):
        """Two-part public suffixes such as co.uk are handled."""
        assert registrable_label("acme.co.uk") == "acme"
        assert registrable_domain("news.bbc.co.uk") == "bbc.co.uk"


class TestBrandCitations:
    """Test suite for brand-owned citation attribution."""

    def test_owned_domain(self, classifier, acme_rewards):
        """A www URL on the brand's compact name is brand-owned."""
        fact = classifier.classify("www.acmerewards.com/blog", acme_rewards)

        assert fact.type == "brand"
        assert fact.attributed_brand == "Acme Rewards"
        assert fact.confidence >= 0.85
        assert fact.label == "brand_owned_domain"

    def test_same_url_other_brand_is_never_brand(self, classifier):
        """A domain is never attributed to a brand it does not match."""
        brands = BrandSet([BrandProfile("Zenith Card")])
        fact = classifier.classify("www.acmerewards.com/blog", brands)

        assert fact.type in ("earned", "social")
        assert fact.attributed_brand is None

    def test_name_on_unlisted_tld_is_not_owned(self, classifier, acme_rewards):
        """The brand name on a TLD outside the variant list scores below owned."""
        fact = classifier.classify("https://acmerewards.xyz/", acme_rewards)

        assert fact.type == "brand"
        assert fact.attributed_brand == "Acme Rewards"
        assert fact.confidence < 0.95
        assert fact.label != "brand_owned_domain"

    def test_configured_tlds_extend_owned_domains(self, acme_rewards):
        """Adding a TLD to the expansion settings makes that domain owned."""
        expander = BrandNameExpander(ExpansionSettings(tlds=("com", "xyz")))
        classifier = CitationClassifier(cache=ExpansionCache(expander))
        fact = classifier.classify("https://acmerewards.xyz/", acme_rewards)

        assert fact.confidence == 0.95
        assert fact.label == "brand_owned_domain"

    def test_canonical_domain(self, classifier):
        """A configured domain is owned even when unrelated to the name."""
        brands = BrandSet([BrandProfile("Acme Rewards", canonical_domain="arx.io")])
        fact = classifier.classify("https://arx.io/apply", brands)

        assert fact.attributed_brand == "Acme Rewards"
        assert fact.confidence == 0.95

    def test_canonical_subdomain(self, classifier):
        """Subdomains of a configured domain are brand subdomains."""
        brands = BrandSet([BrandProfile("Acme Rewards", canonical_domain="arx.io")])
        fact = classifier.classify("https://help.arx.io/faq", brands)

        assert fact.confidence == 0.85
        assert fact.label == "brand_subdomain"

    def test_subdomain(self, classifier, acme_rewards):
        """A subdomain of the brand's own domain scores 0.85."""
        fact = classifier.classify("https://blog.acmerewards.com/post", acme_rewards)

        assert fact.type == "brand"
        assert fact.confidence == 0.85
        assert fact.label == "brand_subdomain"

    def test_prefix(self, classifier, acme_rewards):
        """A label starting with the brand's full name scores 0.9."""
        fact = classifier.classify("https://acmerewardsblog.com", acme_rewards)

        assert fact.confidence == 0.9
        assert fact.label == "brand_domain_prefix"

    def test_abbreviation_domain(self, classifier, acme_rewards):
        """An abbreviation-only root domain scores 0.8."""
        fact = classifier.classify("https://acme.com", acme_rewards)

        assert fact.type == "brand"
        assert fact.confidence == 0.8
        assert fact.label == "brand_abbreviation_domain"

    def test_contains(self, classifier, acme_rewards):
        """A label that contains the full name scores 0.75."""
        fact = classifier.classify("https://getacmerewards.com", acme_rewards)

        assert fact.confidence == 0.75
        assert fact.label == "brand_domain_contains"

    def test_fuzzy(self, classifier, acme_rewards):
        """A near-miss label is a fuzzy brand match within [0.7, 0.85]."""
        fact = classifier.classify("https://acmereward.com", acme_rewards)

        assert fact.type == "brand"
        assert fact.label == "brand_domain_fuzzy"
        assert 0.7 <= fact.confidence <= 0.85

    def test_best_brand_wins(self, classifier):
        """The highest-scoring brand is attributed, regardless of order."""
        brands = BrandSet([BrandProfile("Acme Labs"), BrandProfile("Acme")])
        fact = classifier.classify("https://acme.com", brands)

        assert fact.attributed_brand == "Acme"
        assert fact.confidence == 0.95

    def test_generic_domain_not_attributed(self, classifier):
        """A category-only domain is not brand evidence."""
        brands = BrandSet([BrandProfile("Acme Rewards Card")])
        fact = classifier.classify("https://creditcards.com/best", brands)

        assert fact.type == "earned"
        assert fact.attributed_brand is None

    def test_stricter_fuzzy_threshold(self, acme_rewards):
        """Raising the fuzzy threshold disables near-miss attribution."""
        classifier = CitationClassifier(CitationSettings(fuzzy_threshold=0.95))
        fact = classifier.classify("https://acmereward.com", acme_rewards)
        assert fact.type == "earned"


class TestSocialCitations:
    """Test suite for social platform classification."""

    def test_platform(self, classifier, acme_rewards):
        """Known platforms score 0.95."""
        fact = classifier.classify("https://twitter.com/acmerewards", acme_rewards)

        assert fact.type == "social"
        assert fact.attributed_brand is None
        assert fact.confidence == 0.95
        assert fact.label == "social_media_platform"

    def test_mobile_subdomain(self, classifier, acme_rewards):
        """Subdomains of platforms are social."""
        fact = classifier.classify("https://m.facebook.com/acme", acme_rewards)

        assert fact.type == "social"
        assert fact.label == "social_media_subdomain"

    def test_shortener(self, classifier, acme_rewards):
        """Shortener hosts are social at 0.9."""
        fact = classifier.classify("https://t.co/abc123", acme_rewards)

        assert fact.type == "social"
        assert fact.confidence == 0.9
        assert fact.label == "social_media_shortener"

    def test_regional_variant(self, classifier, acme_rewards):
        """Regional platform domains are social."""
        fact = classifier.classify("https://facebook.co.uk/acme", acme_rewards)
        assert fact.label == "social_media_regional"

    def test_extra_social_domains(self, acme_rewards):
        """Configured extra domains are treated as social platforms."""
        classifier = CitationClassifier(
            CitationSettings(extra_social_domains=("forum.example.com",))
        )
        fact = classifier.classify("https://forum.example.com/t/1", acme_rewards)
        assert fact.type == "social"


class TestEarnedCitations:
    """Test suite for earned media classification."""

    @pytest.mark.parametrize(
        ("url", "confidence", "label"),
        [
            ("https://www.nytimes.com/2025/cards", 0.85, "news_media_outlet"),
            ("https://www.nerdwallet.com/reviews", 0.8, "review_comparison_site"),
            ("https://www.industryweek.com/x", 0.75, "industry_publication"),
            ("https://consumers.org/guide", 0.75, "industry_publication"),
            ("https://someblog.net/post", 0.7, "third_party_editorial"),
        ],
    )
    def test_pattern_families(self, classifier, acme_rewards, url, confidence, label):
        """Each pattern family has its own confidence."""
        fact = classifier.classify(url, acme_rewards)

        assert fact.type == "earned"
        assert fact.attributed_brand is None
        assert fact.confidence == confidence
        assert fact.label == label

    def test_invalid_url_returns_none(self, classifier, acme_rewards):
        """Invalid URLs are dropped instead of scored."""
        assert classifier.classify("citation_1", acme_rewards) is None
