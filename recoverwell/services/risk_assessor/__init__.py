"""Risk Assessor - relapse/crisis risk scoring and pattern mining.

Five stateless detectors (temporal, emotional, behavioral,
environmental, physiological) feed a weighted 0-100 risk score.
Internal failures produce a conservative medium-risk assessment.
"""

from .assessor import RiskAssessor, SAFE_DEFAULT_FACTOR
from .config import RiskPolicy, ScoreBands
from .detectors import RiskSnapshot, DETECTORS

__all__ = [
    "RiskAssessor",
    "SAFE_DEFAULT_FACTOR",
    "RiskPolicy",
    "ScoreBands",
    "RiskSnapshot",
    "DETECTORS",
]
