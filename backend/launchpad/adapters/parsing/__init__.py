"""
Text parsing adapters
"""

from .sentiment_analyzer import SentimentAnalyzer, SentimentResult, SentimentClass, classify_score

__all__ = [
    "SentimentAnalyzer",
    "SentimentResult",
    "SentimentClass",
    "classify_score",
]
