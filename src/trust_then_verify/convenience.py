"""Convenience API for trust-then-verify — one-call helpers.

Every helper here runs against a shared default :class:`TrustClient`,
created on first use. Code that needs its own configuration, or wants to
swap the registry out in tests, should build a TrustClient and a
TransactionRiskGate directly instead.

Example
-------
::

    from trust_then_verify import check_before_transaction

    check = await check_before_transaction("target-agent", 1000)
    if check.proceed:
        await pay_agent("target-agent", 1000)
    else:
        print("Risk:", check.reason)

"""
from __future__ import annotations

import logging
import time
from typing import Any

from trust_then_verify.registry.client import TrustClient
from trust_then_verify.registry.models import (
    MutationResponse,
    PaginatedAgents,
    RegisterResponse,
    ReviewResponse,
    TrustLookup,
)
from trust_then_verify.trust.gate import TransactionRecommendation, TransactionRiskGate

logger = logging.getLogger(__name__)

_default_client: TrustClient | None = None

# How many agents ensure_registered() scans for an existing name.
ENSURE_REGISTERED_SCAN_LIMIT: int = 50


def get_default_client() -> TrustClient:
    """Return or create the shared default client."""
    global _default_client
    if _default_client is None:
        _default_client = TrustClient()
    return _default_client


def set_default_client(client: TrustClient | None) -> None:
    """Replace the shared default client. ``None`` resets it to lazy creation."""
    global _default_client
    _default_client = client


async def lookup(agent_id: str) -> TrustLookup | None:
    """Look up an agent's trust score on the default client."""
    return await get_default_client().lookup(agent_id)


async def register(name: str, contact: str, **options: Any) -> RegisterResponse:
    """Register a new agent on the default client."""
    return await get_default_client().register(name, contact, **options)


async def review(agent_id: str, rating: int, comment: str, **options: Any) -> ReviewResponse:
    """Submit a review for an agent on the default client."""
    return await get_default_client().review(agent_id, rating, comment, **options)


async def list_agents(page: int | None = None, limit: int | None = None) -> PaginatedAgents:
    """List registered agents on the default client."""
    return await get_default_client().list_agents(page=page, limit=limit)


async def update_agent(
    agent_id: str, updates: dict[str, Any], auth_secret: str
) -> MutationResponse:
    """Update an agent's editable fields on the default client."""
    return await get_default_client().update_agent(agent_id, updates, auth_secret)


async def delete_agent(agent_id: str, auth_secret: str) -> MutationResponse:
    """Soft-delete an agent on the default client."""
    return await get_default_client().delete_agent(agent_id, auth_secret)


async def is_trusted(agent_id: str) -> bool:
    """Return True if the agent scores in the Trusted tier or above."""
    return await get_default_client().is_trusted(agent_id)


def badge_url(agent_id: str) -> str:
    """Return the embeddable badge URL for an agent."""
    return get_default_client().badge_url(agent_id)


async def check_before_transaction(agent_id: str, amount_sats: int) -> TransactionRecommendation:
    """Run the transaction gate against the default client.

    Raises
    ------
    RegistryUnavailableError
        If the registry is offline. An unknown agent is a denial, not an error.
    """
    gate = TransactionRiskGate(get_default_client())
    return await gate.check(agent_id, amount_sats)


async def ensure_registered(
    name: str,
    contact: str | None = None,
    npub: str | None = None,
    lightning_pubkey: str | None = None,
    description: str | None = None,
) -> str:
    """Return the calling agent's registry ID, registering it if needed.

    The first page of agents (up to 50) is searched for a case-insensitive
    name match. If none is found the agent is registered, with a generated
    ``sdk-auto-<epoch ms>`` contact when *contact* is not given.
    """
    client = get_default_client()
    page = await client.list_agents(limit=ENSURE_REGISTERED_SCAN_LIMIT)
    wanted = name.lower()
    for agent in page.agents:
        if agent.name.lower() == wanted:
            logger.debug("Agent %r already registered as %s", name, agent.id)
            return agent.id

    result = await client.register(
        name,
        contact or f"sdk-auto-{int(time.time() * 1000)}",
        description=description,
        nostr_npub=npub,
        lightning_pubkey=lightning_pubkey,
    )
    return result.agent_id
