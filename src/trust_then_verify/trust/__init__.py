"""Trust classification and transaction gating.

Registry scores (0 – 100) map to one of five tiers (Unverified through
Highly Trusted). The transaction gate combines a score with a transfer
amount to decide whether a payment should go ahead.
"""
from __future__ import annotations

from trust_then_verify.registry.models import RiskLevel
from trust_then_verify.trust.gate import (
    TransactionRecommendation,
    TransactionRiskGate,
    evaluate,
    is_trusted,
)
from trust_then_verify.trust.policy import GatePolicy
from trust_then_verify.trust.tier import TIER_THRESHOLDS, Tier, TrustTier, classify, derive_tier

__all__ = [
    "GatePolicy",
    "RiskLevel",
    "TIER_THRESHOLDS",
    "Tier",
    "TransactionRecommendation",
    "TransactionRiskGate",
    "TrustTier",
    "classify",
    "derive_tier",
    "evaluate",
    "is_trusted",
]
