"""Classification policy: canonical tags, keywords and weights.

The text and TTS tag sets both contain the literal "other". They are kept
as independent sets, so a draft tagged "other" scores once for each.
"""
from dataclasses import dataclass
from typing import FrozenSet, Tuple


TEXT_TAGS: Tuple[str, ...] = (
    "over-praising density",
    "feedback-intensity imbalance",
    "unnatural colloquialism",
    "awkward phrasing",
    "other",
)

TTS_TAGS: Tuple[str, ...] = (
    "mispronunciation",
    "unnatural pause/segmentation",
    "abnormal stress",
    "elision/slurred-reading",
    "abnormal speaking rate",
    "noise/glitch",
    "other",
)

# Lowercase substrings matched against description + tags. Each canonical
# tag hits a fixed number of its own keywords and none of the other set.
TEXT_KEYWORDS: Tuple[str, ...] = (
    "prais",        # praise, praising
    "numb",         # "numb to the praise"
    "feedback",
    "strategy",
    "colloquial",
    "colloquialism",  # with "colloquial", two hits for the tag
    "phrasing",
    "overdone",
)

TTS_KEYWORDS: Tuple[str, ...] = (
    "pronunciation",
    "segmentation",
    "pause",
    "stress",
    "elision",
    "slurred",
    "speaking rate",
    "noise",
    "glitch",
    "pronounce",
)

TAG_WEIGHT = 2
KEYWORD_WEIGHT = 1


@dataclass(frozen=True)
class ClassifierConfig:
    """Scoring policy for the issue classifier.

    Defaults reproduce the production policy. Tests and experiments can
    pass a different instance to IssueClassifier.
    """
    text_tags: FrozenSet[str] = frozenset(TEXT_TAGS)
    tts_tags: FrozenSet[str] = frozenset(TTS_TAGS)
    text_keywords: Tuple[str, ...] = TEXT_KEYWORDS
    tts_keywords: Tuple[str, ...] = TTS_KEYWORDS
    tag_weight: int = TAG_WEIGHT
    keyword_weight: int = KEYWORD_WEIGHT
    policy_version: str = "2024.07.01"
