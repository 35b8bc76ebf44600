"""Issue classifier - tag and keyword scoring.

Assigns each observation draft to the ``text`` or ``tts`` category.
The classifier is a pure function of the draft: no clock, no randomness,
and it never raises, even for an empty draft.

Scoring:
- Tag match: each draft tag found in a canonical set (weight 2)
- Keyword match: each keyword found in description + tags (weight 1)
- Tie: text only if a text tag was chosen, otherwise tts
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from ttsfeedback.shared.models import Category, ObservationDraft
from .config import ClassifierConfig

logger = logging.getLogger(__name__)

REASON_TAGS_TIED = "tag scores tied, defaulting to text"
REASON_NO_SIGNAL = "no clear signal, defaulting to tts"


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying a draft, with the full score breakdown."""
    category: Category
    reason: str
    text_tag_score: int = 0
    tts_tag_score: int = 0
    text_keyword_score: int = 0
    tts_keyword_score: int = 0
    text_score: int = 0
    tts_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "category": self.category.value,
            "reason": self.reason,
            "text_score": self.text_score,
            "tts_score": self.tts_score,
            "text_tag_score": self.text_tag_score,
            "tts_tag_score": self.tts_tag_score,
            "text_keyword_score": self.text_keyword_score,
            "tts_keyword_score": self.tts_keyword_score,
        }


class IssueClassifier:
    """Deterministic text/TTS classifier for observation drafts."""

    def __init__(self, config: Optional[ClassifierConfig] = None):
        """Initialize classifier with a scoring policy.

        Args:
            config: Tag sets, keywords and weights (production defaults if None)
        """
        self.config = config or ClassifierConfig()

        logger.info(
            "ISSUE_CLASSIFIER_INITIALIZED",
            extra={
                "policy_version": self.config.policy_version,
                "text_tag_count": len(self.config.text_tags),
                "tts_tag_count": len(self.config.tts_tags),
                "text_keyword_count": len(self.config.text_keywords),
                "tts_keyword_count": len(self.config.tts_keywords),
            }
        )

    def classify(self, draft: ObservationDraft) -> ClassificationResult:
        """Classify a draft as a text or TTS issue.

        Args:
            draft: Observation draft (may be empty)

        Returns:
            ClassificationResult with category, reason and sub-scores
        """
        tags = list(draft.tags or [])
        text_tag_score = sum(1 for tag in tags if tag in self.config.text_tags)
        tts_tag_score = sum(1 for tag in tags if tag in self.config.tts_tags)

        scan_text = " ".join([draft.issue_description or "", " ".join(tags)]).lower()
        text_keyword_score = self._match_score(scan_text, self.config.text_keywords)
        tts_keyword_score = self._match_score(scan_text, self.config.tts_keywords)

        text_score = (
            text_tag_score * self.config.tag_weight
            + text_keyword_score * self.config.keyword_weight
        )
        tts_score = (
            tts_tag_score * self.config.tag_weight
            + tts_keyword_score * self.config.keyword_weight
        )

        if text_score > tts_score:
            category = Category.TEXT
            reason = (
                f"text score {text_score} "
                f"(tags {text_tag_score}, keywords {text_keyword_score})"
            )
        elif tts_score > text_score:
            category = Category.TTS
            reason = (
                f"tts score {tts_score} "
                f"(tags {tts_tag_score}, keywords {tts_keyword_score})"
            )
        elif text_tag_score > 0:
            category = Category.TEXT
            reason = REASON_TAGS_TIED
        else:
            category = Category.TTS
            reason = REASON_NO_SIGNAL

        logger.debug(
            "ISSUE_CLASSIFIED",
            extra={
                "category": category.value,
                "text_score": text_score,
                "tts_score": tts_score,
                "text_tag_score": text_tag_score,
                "tts_tag_score": tts_tag_score,
                "text_keyword_score": text_keyword_score,
                "tts_keyword_score": tts_keyword_score,
            }
        )

        return ClassificationResult(
            category=category,
            reason=reason,
            text_tag_score=text_tag_score,
            tts_tag_score=tts_tag_score,
            text_keyword_score=text_keyword_score,
            tts_keyword_score=tts_keyword_score,
            text_score=text_score,
            tts_score=tts_score,
        )

    @staticmethod
    def _match_score(text: str, keywords: Iterable[str]) -> int:
        """Count keywords that occur anywhere in text (each at most once)."""
        return sum(1 for keyword in keywords if keyword in text)


_default_classifier: Optional[IssueClassifier] = None


def get_classifier() -> IssueClassifier:
    """Get or create the shared classifier with the production policy."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = IssueClassifier()
    return _default_classifier


def classify(draft: ObservationDraft) -> ClassificationResult:
    """Classify a draft using the production policy."""
    return get_classifier().classify(draft)
