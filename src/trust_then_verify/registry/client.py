"""TrustClient — asynchronous HTTP client for the trust registry.

Wraps a single ``httpx.AsyncClient``. Every request goes through one
transport wrapper that turns connection failures, timeouts and gateway
status codes (502 / 503 / 504) into :class:`RegistryUnavailableError`, so
callers can always tell "the registry is down" apart from "the agent does
not exist".

Usage::

    async with TrustClient() as client:
        result = await client.lookup("agent-123")
        if result is not None:
            print(result.trust_score.total)
"""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from types import TracebackType
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from trust_then_verify.config import ClientConfig
from trust_then_verify.registry.errors import (
    RegistryError,
    RegistryOperationError,
    RegistryUnavailableError,
)
from trust_then_verify.registry.models import (
    Agent,
    MutationResponse,
    PaginatedAgents,
    RegisterResponse,
    ReviewResponse,
    TrustLookup,
    TrustScore,
)
from trust_then_verify.registry.service import RegistryService

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

# Status codes that mean the registry itself is offline.
OFFLINE_STATUS_CODES: frozenset[int] = frozenset({502, 503, 504})

# Fields an agent owner may change through update_agent().
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"description", "capabilities", "lightning_pubkey", "x_handle", "website", "contact"}
)

AUTH_HEADER: str = "X-Agent-Secret"


class TrustClient(RegistryService):
    """Client for the trust registry's read and write endpoints.

    Parameters
    ----------
    base_url:
        Registry root URL. Overrides ``config.base_url`` when given.
    config:
        Connection settings. Defaults to :class:`ClientConfig` defaults.
    transport:
        Optional ``httpx`` transport, used to plug in a mock transport.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = config if config is not None else ClientConfig()
        if base_url is not None:
            config = config.model_copy(update={"base_url": base_url.rstrip("/")})
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def base_url(self) -> str:
        """The registry root URL, without a trailing slash."""
        return self._config.base_url

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        client, self._client, self._loop = self._client, None, None
        if client is not None:
            await client.aclose()

    async def __aenter__(self) -> "TrustClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def lookup(self, agent_id: str) -> TrustLookup | None:
        """Look up an agent together with its trust score.

        Returns
        -------
        TrustLookup | None
            The agent record and trust score, or ``None`` if the registry
            answered with any other non-success status.

        Raises
        ------
        RegistryUnavailableError
            If the registry is unreachable or returned 502 / 503 / 504.
        """
        response = await self._request("GET", f"/v1/trust/{_quote(agent_id)}")
        if not response.is_success:
            return None
        return _parse(TrustLookup, response)

    async def fetch_trust_score(self, agent_id: str) -> TrustScore | None:
        """Return just the trust score from :meth:`lookup`."""
        result = await self.lookup(agent_id)
        return result.trust_score if result is not None else None

    async def get_agent(self, agent_id: str) -> Agent | None:
        """Fetch an agent record by ID, or ``None`` if it is not found."""
        response = await self._request("GET", f"/registry/agent/{_quote(agent_id)}")
        if not response.is_success:
            return None
        return _parse(Agent, response)

    async def list_agents(
        self,
        page: int | None = None,
        limit: int | None = None,
    ) -> PaginatedAgents:
        """List registered agents one page at a time.

        ``page`` and ``limit`` are only sent when set. A non-success answer
        yields an empty first page rather than an error.
        """
        params: dict[str, str] = {}
        if page:
            params["page"] = str(page)
        if limit:
            params["limit"] = str(limit)

        response = await self._request("GET", "/registry/agents", params=params or None)
        if not response.is_success:
            return PaginatedAgents()

        data = _json_object(response)
        return _parse_model(
            PaginatedAgents,
            {
                "agents": data.get("agents") or [],
                "page": data.get("page") or 1,
                "limit": data.get("limit") or 50,
                "total": data.get("total") or 0,
                "total_pages": data.get("total_pages") or 0,
            },
        )

    async def is_trusted(self, agent_id: str) -> bool:
        """Return True if the agent exists and scores in the Trusted tier or above."""
        from trust_then_verify.trust.gate import is_trusted

        return await is_trusted(self, agent_id)

    def badge_url(self, agent_id: str) -> str:
        """Return the embeddable badge URL for an agent. No request is made."""
        return build_badge_url(self.base_url, agent_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def register(
        self,
        name: str,
        contact: str,
        *,
        description: str | None = None,
        capabilities: list[str] | None = None,
        lightning_pubkey: str | None = None,
        nostr_npub: str | None = None,
        x_handle: str | None = None,
        website: str | None = None,
    ) -> RegisterResponse:
        """Register a new agent.

        Raises
        ------
        RegistryOperationError
            If the registry rejected the registration.
        RegistryUnavailableError
            If the registry is unreachable or returned 502 / 503 / 504.
        """
        body = _drop_unset(
            {
                "name": name,
                "contact": contact,
                "description": description,
                "capabilities": capabilities,
                "lightning_pubkey": lightning_pubkey,
                "nostr_npub": nostr_npub,
                "x_handle": x_handle,
                "website": website,
            }
        )
        response = await self._request("POST", "/register", json=body)
        if not response.is_success:
            raise _operation_error(response, "Registration failed")
        logger.info("Registered agent %r", name)
        return _parse(RegisterResponse, response)

    async def review(
        self,
        agent_id: str,
        rating: int,
        comment: str,
        *,
        reviewer_pubkey: str | None = None,
        service_used: str | None = None,
        proof_of_payment: str | None = None,
    ) -> ReviewResponse:
        """Submit a review for an agent.

        Raises
        ------
        RegistryOperationError
            If the registry rejected the review.
        RegistryUnavailableError
            If the registry is unreachable or returned 502 / 503 / 504.
        """
        body = _drop_unset(
            {
                "agent_id": agent_id,
                "rating": rating,
                "comment": comment,
                "reviewer_pubkey": reviewer_pubkey,
                "service_used": service_used,
                "proof_of_payment": proof_of_payment,
            }
        )
        response = await self._request("POST", "/registry/review", json=body)
        if not response.is_success:
            raise _operation_error(response, "Review failed")
        return _parse(ReviewResponse, response)

    async def update_agent(
        self,
        agent_id: str,
        updates: dict[str, Any],
        auth_secret: str,
    ) -> MutationResponse:
        """Update an agent's editable fields.

        The registry authenticates the change with *auth_secret*, which is
        passed through unmodified. The server's answer is returned as-is,
        including ``success=False`` answers.

        Raises
        ------
        ValueError
            If *updates* names a field that cannot be edited.
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(
                f"Cannot update field(s) {sorted(unknown)}. "
                f"Editable fields are {sorted(UPDATABLE_FIELDS)}."
            )
        response = await self._request(
            "PATCH",
            f"/registry/agent/{_quote(agent_id)}",
            json=updates,
            headers={AUTH_HEADER: auth_secret},
        )
        return _mutation_result(response, "Update failed")

    async def delete_agent(self, agent_id: str, auth_secret: str) -> MutationResponse:
        """Soft-delete an agent. The server's answer is returned as-is."""
        response = await self._request(
            "DELETE",
            f"/registry/agent/{_quote(agent_id)}",
            headers={AUTH_HEADER: auth_secret},
        )
        return _mutation_result(response, "Delete failed")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _http(self) -> httpx.AsyncClient:
        """Return the HTTP client for the running event loop.

        Pooled connections belong to the loop that opened them, so a client
        reused under a new loop (for example across ``asyncio.run`` calls)
        gets a fresh pool. The previous loop is gone and its pool cannot be
        closed from here.
        """
        loop = asyncio.get_running_loop()
        if self._client is None or self._loop is not loop:
            if self._client is not None:
                logger.debug("Event loop changed; opening a new connection pool")
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers={"User-Agent": self._config.user_agent},
                transport=self._transport,
            )
            self._loop = loop
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = await self._http().request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.TransportError as exc:
            logger.warning("Registry unreachable at %s: %r", url, exc)
            raise RegistryUnavailableError(
                f"Registry unreachable: {str(exc) or 'network error'}"
            ) from exc

        if response.status_code in OFFLINE_STATUS_CODES:
            logger.warning("Registry returned %d for %s %s", response.status_code, method, url)
            raise RegistryUnavailableError(f"Registry returned {response.status_code}")
        return response


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def build_badge_url(base_url: str, agent_id: str) -> str:
    """Return the badge URL for *agent_id* under *base_url*."""
    return f"{base_url.rstrip('/')}/badge/{_quote(agent_id)}"


def _quote(agent_id: str) -> str:
    return urllib.parse.quote(agent_id, safe="")


def _drop_unset(body: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in body.items() if value is not None}


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, or raise RegistryError."""
    try:
        data = response.json()
    except ValueError as exc:
        raise RegistryError(
            f"Registry returned a non-JSON body ({response.status_code})"
        ) from exc
    if not isinstance(data, dict):
        raise RegistryError(
            f"Registry returned unexpected JSON ({type(data).__name__})"
        )
    return data


def _parse_model(model: type[_ModelT], data: dict[str, Any]) -> _ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RegistryError(f"Malformed {model.__name__} from registry: {exc}") from exc


def _parse(model: type[_ModelT], response: httpx.Response) -> _ModelT:
    return _parse_model(model, _json_object(response))


def _operation_error(response: httpx.Response, action: str) -> RegistryOperationError:
    """Build the error for a rejected write, preferring the server's message."""
    message = f"{action} ({response.status_code})"
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        message = str(data["error"])
    logger.info("%s: %s", action, message)
    return RegistryOperationError(message, status_code=response.status_code)


def _mutation_result(response: httpx.Response, action: str) -> MutationResponse:
    try:
        data = response.json()
    except ValueError:
        raise _operation_error(response, action) from None
    if not isinstance(data, dict):
        raise _operation_error(response, action)
    return _parse_model(MutationResponse, data)
