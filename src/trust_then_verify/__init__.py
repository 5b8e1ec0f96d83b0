"""trust-then-verify — trust tiers and pre-transaction checks for registry agents.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import trust_then_verify
>>> trust_then_verify.__version__
'0.1.0'

Quick start
-----------
::

    from trust_then_verify import TrustClient, TransactionRiskGate, classify

    classify(72).label          # "Trusted"

    async with TrustClient() as client:
        gate = TransactionRiskGate(client)
        check = await gate.check("target-agent", 5_000)
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Trust subsystem
# ------------------------------------------------------------------
from trust_then_verify.trust.gate import (
    TransactionRecommendation,
    TransactionRiskGate,
    evaluate,
)
from trust_then_verify.trust.policy import GatePolicy
from trust_then_verify.trust.tier import TIER_THRESHOLDS, Tier, TrustTier, classify, derive_tier

# ------------------------------------------------------------------
# Registry subsystem
# ------------------------------------------------------------------
from trust_then_verify.config import ClientConfig
from trust_then_verify.registry.client import TrustClient
from trust_then_verify.registry.errors import (
    RegistryError,
    RegistryOperationError,
    RegistryUnavailableError,
)
from trust_then_verify.registry.models import (
    Agent,
    PaginatedAgents,
    RegisterResponse,
    ReviewResponse,
    RiskLevel,
    TrustLookup,
    TrustScore,
)
from trust_then_verify.registry.service import RegistryService

# ------------------------------------------------------------------
# Convenience helpers over a shared default client
# ------------------------------------------------------------------
from trust_then_verify.convenience import (
    badge_url,
    check_before_transaction,
    delete_agent,
    ensure_registered,
    is_trusted,
    list_agents,
    lookup,
    register,
    review,
    update_agent,
)

__all__ = [
    # version
    "__version__",
    # trust
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
    # registry
    "Agent",
    "ClientConfig",
    "PaginatedAgents",
    "RegisterResponse",
    "RegistryError",
    "RegistryOperationError",
    "RegistryService",
    "RegistryUnavailableError",
    "ReviewResponse",
    "TrustClient",
    "TrustLookup",
    "TrustScore",
    # convenience
    "badge_url",
    "check_before_transaction",
    "delete_agent",
    "ensure_registered",
    "is_trusted",
    "list_agents",
    "lookup",
    "register",
    "review",
    "update_agent",
]
