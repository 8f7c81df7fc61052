"""
Sentiment Analyzer
Rule-based polarity scoring for reviews, forum posts and market commentary
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List


class SentimentClass(str, Enum):
    VERY_POSITIVE = "very_positive"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    VERY_NEGATIVE = "very_negative"


def classify_score(score: float) -> SentimentClass:
    """Map a score in [-1, 1] to a five-level class"""
    if score > 0.6:
        return SentimentClass.VERY_POSITIVE
    if score > 0.2:
        return SentimentClass.POSITIVE
    if score > -0.2:
        return SentimentClass.NEUTRAL
    if score > -0.6:
        return SentimentClass.NEGATIVE
    return SentimentClass.VERY_NEGATIVE


@dataclass
class SentimentResult:
    """Result of sentiment analysis"""
    classification: SentimentClass
    score: float  # -1.0 to 1.0
    magnitude: float  # 0.0 to 1.0, share of opinionated words
    confidence: float  # 0.0 to 1.0
    matched_indicators: List[str]


class SentimentAnalyzer:
    """
    Simple rule-based sentiment analyzer.
    Deterministic: identical text always yields an identical result.
    """

    POSITIVE_WORDS = [
        # Strong positive
        "excellent", "outstanding", "exceptional", "amazing", "love", "perfect",
        "awesome", "fantastic", "best", "impressive",
        # Moderate positive
        "good", "great", "reliable", "effective", "useful", "helpful",
        "intuitive", "easy to use", "recommended", "worth it", "affordable",
        # Mild positive
        "nice", "decent", "solid", "handy",
    ]

    NEGATIVE_WORDS = [
        # Strong negative
        "terrible", "awful", "worst", "hate", "horrible", "broken", "scam",
        # Moderate negative
        "bad", "poor", "disappointing", "frustrating", "unreliable", "expensive",
        "overpriced", "slow", "buggy", "difficult", "confusing", "useless",
        # Mild negative
        "limited", "lacking", "mediocre", "annoying", "hard to find",
    ]

    STRONG_POSITIVE = {"excellent", "outstanding", "exceptional", "amazing", "love", "perfect", "best"}
    STRONG_NEGATIVE = {"terrible", "awful", "worst", "hate", "horrible", "broken", "scam"}

    # Negation words that flip sentiment
    NEGATION_WORDS = ["not", "no", "never", "hardly", "barely", "doesn't", "don't", "isn't", "wasn't", "aren't"]

    def __init__(self):
        self._positive_pattern = self._build_pattern(self.POSITIVE_WORDS)
        self._negative_pattern = self._build_pattern(self.NEGATIVE_WORDS)
        self._negation_pattern = self._build_pattern(self.NEGATION_WORDS)

    def _build_pattern(self, words: List[str]) -> re.Pattern:
        """Build regex pattern from word list"""
        escaped = [re.escape(w) for w in words]
        pattern = r'\b(' + '|'.join(escaped) + r')\b'
        return re.compile(pattern, re.IGNORECASE)

    def _check_negation(self, text: str, match_start: int, window: int = 20) -> bool:
        """Check if there's a negation word shortly before the match"""
        context_start = max(0, match_start - window)
        context = text[context_start:match_start]
        return bool(self._negation_pattern.search(context))

    def _weight(self, word: str, strong: set) -> float:
        return 1.5 if word in strong else 1.0

    def analyze(self, text: str) -> SentimentResult:
        """
        Analyze sentiment of text.

        Args:
            text: Text to analyze

        Returns:
            SentimentResult with score, class and confidence
        """
        if not text or not text.strip():
            return SentimentResult(
                classification=SentimentClass.NEUTRAL,
                score=0.0,
                magnitude=0.0,
                confidence=0.0,
                matched_indicators=[],
            )

        text_lower = text.lower()
        positive_score = 0.0
        negative_score = 0.0
        matched_indicators = []

        for match in self._positive_pattern.finditer(text_lower):
            word = match.group()
            if self._check_negation(text_lower, match.start()):
                negative_score += 0.5  # "not good" reads as mildly negative
                matched_indicators.append(f"NOT {word}")
            else:
                positive_score += self._weight(word, self.STRONG_POSITIVE)
                matched_indicators.append(word)

        for match in self._negative_pattern.finditer(text_lower):
            word = match.group()
            if self._check_negation(text_lower, match.start()):
                positive_score += 0.3
                matched_indicators.append(f"NOT {word}")
            else:
                negative_score += self._weight(word, self.STRONG_NEGATIVE)
                matched_indicators.append(word)

        total = positive_score + negative_score
        if total == 0:
            score = 0.0
            confidence = 0.0
        else:
            score = max(-1.0, min(1.0, (positive_score - negative_score) / total))
            confidence = min(1.0, len(matched_indicators) / 5.0)

        word_count = max(len(text_lower.split()), 1)
        magnitude = min(1.0, len(matched_indicators) * 5 / word_count)

        return SentimentResult(
            classification=classify_score(score),
            score=round(score, 4),
            magnitude=round(magnitude, 4),
            confidence=round(confidence, 4),
            matched_indicators=matched_indicators,
        )

    def analyze_many(self, texts: Iterable[str]) -> List[SentimentResult]:
        return [self.analyze(text) for text in texts]
