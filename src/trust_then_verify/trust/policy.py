"""GatePolicy — amount bands and score thresholds for the transaction gate.

Larger transfers demand more trust. The defaults require a score of 20 for
up to 1,000 sats, 40 for up to 10,000 sats and 60 above that.
"""
from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class GatePolicy(BaseModel):
    """Configurable transaction gate policy.

    Parameters
    ----------
    small_amount_max:
        Largest amount (inclusive, in sats) that only needs ``small_amount_score``.
    medium_amount_max:
        Largest amount (inclusive, in sats) that only needs ``medium_amount_score``.
        Anything above it needs ``large_amount_score``.
    small_amount_score:
        Minimum trust score for small transfers.
    medium_amount_score:
        Minimum trust score for medium transfers.
    large_amount_score:
        Minimum trust score for large transfers.
    high_risk_below:
        Denied agents scoring below this are reported as high risk,
        otherwise medium risk.
    """

    small_amount_max: int = Field(default=1_000, ge=0)
    medium_amount_max: int = Field(default=10_000, ge=0)
    small_amount_score: int = Field(default=20, ge=0, le=100)
    medium_amount_score: int = Field(default=40, ge=0, le=100)
    large_amount_score: int = Field(default=60, ge=0, le=100)
    high_risk_below: int = Field(default=20, ge=0, le=100)

    @model_validator(mode="after")
    def _check_bands(self) -> "GatePolicy":
        if self.medium_amount_max <= self.small_amount_max:
            raise ValueError(
                "medium_amount_max must be greater than small_amount_max, got "
                f"{self.medium_amount_max} <= {self.small_amount_max}"
            )
        return self

    def required_score(self, amount_sats: int) -> int:
        """Return the minimum trust score needed to send *amount_sats*.

        Band upper bounds are inclusive: exactly ``small_amount_max`` is a
        small transfer, exactly ``medium_amount_max`` a medium one.
        """
        if amount_sats > self.medium_amount_max:
            return self.large_amount_score
        if amount_sats > self.small_amount_max:
            return self.medium_amount_score
        return self.small_amount_score
