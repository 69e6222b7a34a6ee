"""
ReliefWatch - ML Module
Interpretation of generative-model output.
"""

from reliefwatch.ml.authenticity import (
    VerificationVerdict,
    parse_score,
    score_or_default,
    classify_score,
)

__all__ = [
    "VerificationVerdict",
    "parse_score",
    "score_or_default",
    "classify_score",
]
