"""Pydantic models for records returned by the trust registry.

These are pass-through records owned by the registry. Only the declared
fields are validated; anything else the registry sends is kept as an extra
attribute so newer server fields survive a round trip.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RiskLevel(str, Enum):
    """Coarse risk assessment attached to a counterparty."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "RiskLevel":
        """Return the matching level, or UNKNOWN for anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


def clamp_score(value: float) -> int:
    """Round *value* to an integer score inside 0 – 100.

    NaN is treated as untrusted and maps to 0.
    """
    if math.isnan(value):
        return 0
    return int(round(max(0.0, min(100.0, value))))


class _RegistryRecord(BaseModel):
    """Base for records owned by the registry.

    Declared fields sent as ``null`` fall back to their defaults, and
    undeclared fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()
                if value is not None or key not in cls.model_fields
            }
        return data


class TrustDimension(_RegistryRecord):
    """A single named sub-score reported by the registry."""

    score: float = 0.0
    max: float = 0.0


class TrustDimensions(_RegistryRecord):
    """The fixed set of dimensions the registry scores an agent on."""

    identity: TrustDimension = Field(default_factory=TrustDimension)
    economic: TrustDimension = Field(default_factory=TrustDimension)
    social: TrustDimension = Field(default_factory=TrustDimension)
    behavioral: TrustDimension = Field(default_factory=TrustDimension)

    def items(self) -> list[tuple[str, TrustDimension]]:
        """Return ``(name, dimension)`` pairs in declaration order."""
        return [
            ("identity", self.identity),
            ("economic", self.economic),
            ("social", self.social),
            ("behavioral", self.behavioral),
        ]


class TrustScore(_RegistryRecord):
    """Trust score for an agent as computed by the registry.

    ``total`` is opaque input and may be fractional or outside 0 – 100.
    Use :attr:`clamped_total` when making decisions. The remaining fields
    are informational: an unrecognised ``risk_level`` reads as
    ``RiskLevel.UNKNOWN`` rather than failing the whole lookup.
    """

    total: float = 0.0
    confidence: float = 0.0
    dimensions: TrustDimensions = Field(default_factory=TrustDimensions)
    risk_flags: list[str] = Field(default_factory=list)
    safe_to_transact: bool = False
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    evidence_summary: str = ""

    @field_validator("risk_level", mode="before")
    @classmethod
    def _lenient_risk_level(cls, value: Any) -> RiskLevel:
        return RiskLevel.parse(value)

    @field_validator("risk_flags", mode="before")
    @classmethod
    def _flags_as_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(flag) for flag in value if flag is not None]
        if isinstance(value, str):
            return [value]
        return value

    @property
    def clamped_total(self) -> int:
        """``total`` rounded and clamped to the inclusive range 0 – 100."""
        return clamp_score(self.total)


class Agent(_RegistryRecord):
    """An agent record as stored by the registry."""

    id: str
    name: str
    description: Optional[str] = None
    contact: Optional[str] = None
    trust_score: Optional[float] = None
    trust_tier: Optional[float] = None
    capabilities: list[str] = Field(default_factory=list)
    lightning_pubkey: Optional[str] = None
    nostr_npub: Optional[str] = None
    x_handle: Optional[str] = None
    website: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("trust_score", "trust_tier", mode="before")
    @classmethod
    def _numeric_or_none(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return value
        try:
            return float(value)
        except (TypeError, ValueError):
            return None


class TrustLookup(_RegistryRecord):
    """Response body for ``GET /v1/trust/{id}``.

    Only ``trust_score`` is required; the gate never reads the agent record.
    """

    agent: Optional[Agent] = None
    trust_score: TrustScore


class PaginatedAgents(BaseModel):
    """One page of the registry's agent listing."""

    agents: list[Agent] = Field(default_factory=list)
    page: int = 1
    limit: int = 50
    total: int = 0
    total_pages: int = 0


class NextStep(BaseModel):
    """A suggested action for raising a freshly registered agent's score."""

    model_config = ConfigDict(extra="allow")

    action: str
    points: str


class RegisterResponse(BaseModel):
    """Response body for ``POST /register``."""

    model_config = ConfigDict(extra="allow")

    agent_id: str
    trust_score: float = 0.0
    badge: str = ""
    next_steps: list[NextStep] = Field(default_factory=list)


class ReviewResponse(BaseModel):
    """Response body for ``POST /registry/review``."""

    model_config = ConfigDict(extra="allow")

    success: bool
    review_id: Optional[str] = None
    error: Optional[str] = None


class MutationResponse(BaseModel):
    """Response body for agent update and delete requests."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    message: Optional[str] = None
    error: Optional[str] = None


__all__ = [
    "Agent",
    "MutationResponse",
    "NextStep",
    "PaginatedAgents",
    "RegisterResponse",
    "ReviewResponse",
    "RiskLevel",
    "TrustDimension",
    "TrustDimensions",
    "TrustLookup",
    "TrustScore",
    "clamp_score",
]
