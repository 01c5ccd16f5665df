"""
Extractor module for turning raw LLM answers into structured facts.

This module segments answer text, matches brands with graded confidence,
classifies cited URLs and scores sentiment, producing one ExtractionResult
per answer.

Public API:
    - MetricsExtractor: Per-analysis extractor (build once, reuse per answer)
    - extract: One-shot extraction of a single answer
    - BrandMatcher / MatchResult: Ordered-strategy brand matching
    - BrandNameExpander / BrandExpansion / ExpansionCache: Name expansion
    - CitationClassifier / clean_url: Cited URL validation and classification
    - SentimentScorer: Rule-based polarity scoring
    - split_sentences / count_words: Text segmentation
"""

from llm_answer_metrics.extractor.brand_matcher import (
    AbbreviationMatchStrategy,
    BrandMatcher,
    ExactMatchStrategy,
    FuzzyMatchStrategy,
    MatchResult,
    MatchStrategy,
    PartialMatchStrategy,
)
from llm_answer_metrics.extractor.citation_classifier import (
    CitationClassifier,
    CleanedUrl,
    clean_url,
)
from llm_answer_metrics.extractor.name_expander import (
    BrandExpansion,
    BrandNameExpander,
    ExpansionCache,
)
from llm_answer_metrics.extractor.parser import MetricsExtractor, extract
from llm_answer_metrics.extractor.sentiment import SentimentScorer
from llm_answer_metrics.extractor.text_segmenter import (
    count_words,
    iter_sentences,
    split_sentences,
)

__all__ = [
    "AbbreviationMatchStrategy",
    "BrandExpansion",
    "BrandMatcher",
    "BrandNameExpander",
    "CitationClassifier",
    "CleanedUrl",
    "ExactMatchStrategy",
    "ExpansionCache",
    "FuzzyMatchStrategy",
    "MatchResult",
    "MatchStrategy",
    "MetricsExtractor",
    "PartialMatchStrategy",
    "SentimentScorer",
    "clean_url",
    "count_words",
    "extract",
    "iter_sentences",
    "split_sentences",
]
