"""Classifier Service: automatic text/TTS categorisation of observations.

Scores the tester's chosen tags and free-text description against two
fixed policies and picks the stronger one. The result is stored with the
observation at creation time and never recomputed.
"""

from .config import (
    ClassifierConfig,
    TEXT_TAGS,
    TTS_TAGS,
    TEXT_KEYWORDS,
    TTS_KEYWORDS,
)
from .classifier import (
    IssueClassifier,
    ClassificationResult,
    classify,
    get_classifier,
    REASON_TAGS_TIED,
    REASON_NO_SIGNAL,
)

__all__ = [
    "ClassifierConfig",
    "TEXT_TAGS",
    "TTS_TAGS",
    "TEXT_KEYWORDS",
    "TTS_KEYWORDS",
    "IssueClassifier",
    "ClassificationResult",
    "classify",
    "get_classifier",
    "REASON_TAGS_TIED",
    "REASON_NO_SIGNAL",
]
