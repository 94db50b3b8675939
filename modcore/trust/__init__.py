"""User trust engine: weighted scores, penalty deductions and trust levels."""

from modcore.trust.engine import TrustEngine
from modcore.trust.models import TrustLevel, TrustScore, adjusted_score, derive_level, weighted_score

__all__ = ["TrustEngine", "TrustLevel", "TrustScore", "adjusted_score", "derive_level", "weighted_score"]
