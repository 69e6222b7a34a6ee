"""
Authenticity scoring for AI image verification.

The vision model answers in free text; these helpers pull a 0-100 score out
of that text and map it to a verdict. Both are pure so prompt changes never
touch the calling code.
"""

import re
from enum import Enum
from typing import Optional

from reliefwatch.core.constants import (
    FAKE_SCORE_MAX,
    MAX_SCORE,
    NEUTRAL_SCORE,
    VERIFIED_SCORE_MIN,
)


class VerificationVerdict(str, Enum):
    """Outcome of an image authenticity check."""
    VERIFIED = "verified"
    FAKE = "fake"
    UNCERTAIN = "uncertain"


# "85/100", "Score: 42", "score 17", "63%"
SCORE_PATTERN = re.compile(
    r"(\d{1,3})/100|score:?\s*(\d{1,3})|(\d{1,3})%",
    re.IGNORECASE,
)


def parse_score(text: Optional[str]) -> Optional[int]:
    """
    Extract an authenticity score from model output.

    Args:
        text: Free-text model answer

    Returns:
        First score found, capped at 100, or None when the text has none
    """
    if not text:
        return None

    match = SCORE_PATTERN.search(text)
    if match is None:
        return None

    raw = next(group for group in match.groups() if group is not None)
    return min(int(raw), MAX_SCORE)


def score_or_default(text: Optional[str], default: int = NEUTRAL_SCORE) -> int:
    """Parsed score, or the neutral midpoint when nothing matched."""
    score = parse_score(text)
    return default if score is None else score


def classify_score(score: int) -> VerificationVerdict:
    """
    Map a 0-100 score to a verdict.

    70 and above is verified, 30 and below is fake, anything between is
    uncertain.
    """
    if score >= VERIFIED_SCORE_MIN:
        return VerificationVerdict.VERIFIED
    if score <= FAKE_SCORE_MAX:
        return VerificationVerdict.FAKE
    return VerificationVerdict.UNCERTAIN
