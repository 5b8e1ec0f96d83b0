"""RegistryService — the read contract the transaction gate depends on.

The gate only ever needs one operation from the registry: fetch the
current trust score for an agent. Keeping that behind an abstract base
class lets the gate be driven by the HTTP client in production and by an
in-memory fake in tests.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from trust_then_verify.registry.models import TrustScore


class RegistryService(ABC):
    """Abstract source of registry trust scores."""

    @abstractmethod
    async def fetch_trust_score(self, agent_id: str) -> TrustScore | None:
        """Fetch the current trust score for an agent.

        Parameters
        ----------
        agent_id:
            The registry identifier of the agent.

        Returns
        -------
        TrustScore | None
            The agent's trust score, or ``None`` if the registry has no
            record of the agent.

        Raises
        ------
        RegistryUnavailableError
            If the registry could not be reached or reported a
            gateway-class error. Implementations must not report an
            outage as ``None``.
        """
