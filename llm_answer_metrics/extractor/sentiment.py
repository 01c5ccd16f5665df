"""
Rule-based sentiment scoring.

Keyword and phrase polarity with simple negation handling. No model is
called: identical text always yields the identical score.

Scoring per sentence:
- Each negative phrase subtracts phrase_weight, each positive phrase adds it.
  Matched phrases are blanked out so their words are not counted again.
- Each positive keyword adds keyword_weight, each negative keyword
  subtracts it. A negation word within negation_window tokens before a
  keyword flips its sign at half weight ("not reliable" = -0.2).
- The sum is clamped to [-1, 1].

An answer's polarity is the mean of its sentence scores. A brand's polarity
within an answer is the mean over the sentences that mention it.

Example:
    >>> scorer = SentimentScorer()
    >>> scorer.score_sentence("Acme is an excellent and reliable card")
    0.8
    >>> scorer.score_sentence("Zenith is not reliable")
    -0.2
"""

import re
from collections.abc import Iterable

from ..config.constants import (
    NEGATION_WORDS,
    NEGATIVE_PHRASES,
    NEGATIVE_WORDS,
    POSITIVE_PHRASES,
    POSITIVE_WORDS,
)
from ..config.schema import SentimentSettings
from ..models import MentionFact, SentimentFact
from .text_segmenter import split_sentences

_TOKEN_PATTERN = re.compile(r"[a-z]+(?:'[a-z]+)?")


def _phrase_pattern(phrases: Iterable[str]) -> re.Pattern | None:
    # Longest first so that "highly recommended" wins over "recommended"
    ordered = sorted({p.lower() for p in phrases if p.strip()}, key=lambda p: (-len(p), p))
    if not ordered:
        return None
    return re.compile(r"(?<!\w)(?:" + "|".join(re.escape(p) for p in ordered) + r")(?!\w)")


def _clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class SentimentScorer:
    """
    Keyword / phrase polarity scorer.

    Args:
        settings: Weights and thresholds (defaults to SentimentSettings())
    """

    def __init__(self, settings: SentimentSettings | None = None):
        self.settings = settings or SentimentSettings()
        self.positive_words = frozenset(POSITIVE_WORDS + self.settings.extra_positive_words)
        self.negative_words = frozenset(NEGATIVE_WORDS + self.settings.extra_negative_words)
        self.negation_words = frozenset(NEGATION_WORDS)
        self._negative_phrases = _phrase_pattern(NEGATIVE_PHRASES)
        self._positive_phrases = _phrase_pattern(POSITIVE_PHRASES)

    def score_sentence(self, sentence: object) -> float:
        """Score one sentence in [-1, 1]; non-strings score 0.0."""
        if not isinstance(sentence, str) or not sentence.strip():
            return 0.0

        text = sentence.lower()
        score = 0.0

        for pattern, sign in ((self._negative_phrases, -1), (self._positive_phrases, 1)):
            if pattern is None:
                continue
            hits = len(pattern.findall(text))
            score += sign * hits * self.settings.phrase_weight
            text = pattern.sub(" ", text)

        tokens = _TOKEN_PATTERN.findall(text)
        window = self.settings.negation_window
        for index, token in enumerate(tokens):
            if token in self.positive_words:
                weight = self.settings.keyword_weight
            elif token in self.negative_words:
                weight = -self.settings.keyword_weight
            else:
                continue
            preceding = tokens[max(0, index - window) : index] if window else []
            if any(t in self.negation_words for t in preceding):
                weight = -weight / 2
            score += weight

        return round(_clamp(score), 4)

    def score_text(self, text: object) -> float:
        """Mean sentence score of a whole text (0.0 for empty text)."""
        scores = [self.score_sentence(s) for s in split_sentences(text)]
        if not scores:
            return 0.0
        return round(_clamp(sum(scores) / len(scores)), 4)

    def label(self, score: float) -> str:
        """positive / negative / neutral for a single score."""
        if score > self.settings.label_threshold:
            return "positive"
        if score < -self.settings.label_threshold:
            return "negative"
        return "neutral"

    def score_answer(
        self, sentences: list[str], mentions: Iterable[MentionFact] = ()
    ) -> SentimentFact:
        """
        Build the SentimentFact of one answer.

        Args:
            sentences: The answer's sentences, as produced by split_sentences
            mentions: MentionFacts of the answer; detected ones get a
                per-brand polarity over their matching sentences

        The answer label is positive / negative when the mean passes the
        label threshold, mixed when it does not but both positive and
        negative sentences exist, and neutral otherwise.
        """
        scores = [self.score_sentence(s) for s in sentences]
        labels = [self.label(s) for s in scores]
        positive = labels.count("positive")
        negative = labels.count("negative")
        neutral = labels.count("neutral")

        polarity = round(_clamp(sum(scores) / len(scores)), 4) if scores else 0.0
        answer_label = self.label(polarity)
        if answer_label == "neutral" and positive and negative:
            answer_label = "mixed"

        brand_polarity = []
        for fact in mentions:
            if not fact.detected:
                continue
            brand_scores = [
                scores[match.position - 1]
                for match in fact.sentences
                if 0 < match.position <= len(scores)
            ]
            if brand_scores:
                brand_polarity.append(
                    (fact.brand, round(_clamp(sum(brand_scores) / len(brand_scores)), 4))
                )

        return SentimentFact(
            polarity=polarity,
            label=answer_label,
            positive_sentences=positive,
            negative_sentences=negative,
            neutral_sentences=neutral,
            brand_polarity=tuple(brand_polarity),
        )
