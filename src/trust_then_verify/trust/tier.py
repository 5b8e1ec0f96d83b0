"""TrustTier enumeration and tier classification from registry scores.

Five tiers are defined. Tier boundaries are inclusive lower bounds evaluated
from the highest threshold down, so every real-valued score maps to exactly
one tier. Scores outside 0 – 100 fall into the nearest boundary tier.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class TrustTier(IntEnum):
    """Ordered trust bands for a registry agent.

    Values are ordered so that higher integers represent higher trust.

    UNVERIFIED (0):
        No meaningful reputation on record.
    NEW_LIMITED (1):
        Recently registered or sparse history.
    MODERATE (2):
        Some reputation, not yet considered safe to transact with.
    TRUSTED (3):
        Established reputation, safe for ordinary transactions.
    HIGHLY_TRUSTED (4):
        Strong reputation across the registry's dimensions.
    """

    UNVERIFIED = 0
    NEW_LIMITED = 1
    MODERATE = 2
    TRUSTED = 3
    HIGHLY_TRUSTED = 4


@dataclass(frozen=True)
class Tier:
    """Display form of a trust tier.

    Parameters
    ----------
    level:
        The ordinal TrustTier.
    label:
        Human-readable tier name (e.g. ``"Highly Trusted"``).
    badge:
        Glyph used when rendering the tier. Cosmetic only.
    safe:
        Whether agents in this tier are considered safe to transact with.
    """

    level: TrustTier
    label: str
    badge: str
    safe: bool

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {"label": self.label, "badge": self.badge, "safe": self.safe}


# Minimum score required to reach each tier.
# Scores below TIER_THRESHOLDS[NEW_LIMITED] map to UNVERIFIED.
TIER_THRESHOLDS: dict[TrustTier, float] = {
    TrustTier.HIGHLY_TRUSTED: 80.0,
    TrustTier.TRUSTED: 60.0,
    TrustTier.MODERATE: 40.0,
    TrustTier.NEW_LIMITED: 20.0,
    TrustTier.UNVERIFIED: float("-inf"),
}

TIERS: dict[TrustTier, Tier] = {
    TrustTier.HIGHLY_TRUSTED: Tier(TrustTier.HIGHLY_TRUSTED, "Highly Trusted", "\U0001f3c6", True),
    TrustTier.TRUSTED: Tier(TrustTier.TRUSTED, "Trusted", "✅", True),
    TrustTier.MODERATE: Tier(TrustTier.MODERATE, "Moderate", "\U0001f535", False),
    TrustTier.NEW_LIMITED: Tier(TrustTier.NEW_LIMITED, "New/Limited", "\U0001f7e1", False),
    TrustTier.UNVERIFIED: Tier(TrustTier.UNVERIFIED, "Unverified", "⚪", False),
}


def derive_tier(score: float) -> TrustTier:
    """Map a registry trust score to a TrustTier.

    The first tier (highest threshold first) whose threshold does not
    exceed *score* is returned.

    Parameters
    ----------
    score:
        Trust score, nominally 0 – 100. Not required to be clamped.

    Returns
    -------
    TrustTier
        The corresponding tier.
    """
    for candidate, threshold in TIER_THRESHOLDS.items():
        if score >= threshold:
            return candidate
    # NaN compares false against every threshold.
    return TrustTier.UNVERIFIED


def classify(score: float) -> Tier:
    """Return the display Tier (label, badge, safe) for *score*."""
    return TIERS[derive_tier(score)]
