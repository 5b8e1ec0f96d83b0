"""Trust registry collaborator.

Provides the RegistryService contract used by the transaction gate, the
httpx-based TrustClient implementing it, and the pydantic models for the
records the registry returns.

Quick start
-----------
::

    from trust_then_verify.registry import TrustClient

    async with TrustClient() as client:
        page = await client.list_agents(limit=10)
        for agent in page.agents:
            print(agent.name, client.badge_url(agent.id))
"""
from __future__ import annotations

from trust_then_verify.registry.client import TrustClient
from trust_then_verify.registry.errors import (
    RegistryError,
    RegistryOperationError,
    RegistryUnavailableError,
)
from trust_then_verify.registry.models import (
    Agent,
    MutationResponse,
    NextStep,
    PaginatedAgents,
    RegisterResponse,
    ReviewResponse,
    RiskLevel,
    TrustDimension,
    TrustDimensions,
    TrustLookup,
    TrustScore,
)
from trust_then_verify.registry.service import RegistryService

__all__ = [
    "Agent",
    "MutationResponse",
    "NextStep",
    "PaginatedAgents",
    "RegisterResponse",
    "RegistryError",
    "RegistryOperationError",
    "RegistryService",
    "RegistryUnavailableError",
    "ReviewResponse",
    "RiskLevel",
    "TrustClient",
    "TrustDimension",
    "TrustDimensions",
    "TrustLookup",
    "TrustScore",
]
