"""Tests for trust_then_verify.registry.client — all HTTP calls go through httpx.MockTransport."""
from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import pytest

from trust_then_verify.config import ClientConfig
from trust_then_verify.registry.client import (
    AUTH_HEADER,
    TrustClient,
    build_badge_url,
)
from trust_then_verify.registry.errors import (
    RegistryError,
    RegistryOperationError,
    RegistryUnavailableError,
)
from trust_then_verify.registry.models import RiskLevel
from trust_then_verify.trust.gate import TransactionRecommendation, TransactionRiskGate

BASE_URL = "https://registry.test"

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _lookup_payload(agent_id: str = "agent-1", total: float = 72) -> dict[str, Any]:
    return {
        "agent": {"id": agent_id, "name": "Scout", "capabilities": ["search"]},
        "trust_score": {
            "total": total,
            "confidence": 0.8,
            "dimensions": {
                "identity": {"score": 20, "max": 25},
                "economic": {"score": 18, "max": 25},
                "social": {"score": 17, "max": 25},
                "behavioral": {"score": 17, "max": 25},
            },
            "risk_flags": [],
            "safe_to_transact": True,
            "risk_level": "low",
            "evidence_summary": "Verified lightning node",
        },
    }


def _run(handler: Handler, call: Callable[[TrustClient], Awaitable[Any]]) -> Any:
    async def go() -> Any:
        async with TrustClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
            return await call(client)

    return asyncio.run(go())


def _status(code: int, body: Any = None) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(code)
        return httpx.Response(code, json=body)

    return handler


class Recorder:
    """Handler that records requests and replies with a fixed response."""

    def __init__(self, code: int = 200, body: Any = None) -> None:
        self.code = code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.code, json=self.body if self.body is not None else {})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict[str, Any]:
        return json.loads(self.last.content)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestTrustClientConstruction:
    def test_default_base_url(self) -> None:
        client = TrustClient()
        assert client.base_url == "https://trustthenverify.com"
        asyncio.run(client.aclose())

    def test_trailing_slash_stripped(self) -> None:
        client = TrustClient("https://registry.test/")
        assert client.base_url == "https://registry.test"
        asyncio.run(client.aclose())

    def test_base_url_overrides_config(self) -> None:
        config = ClientConfig(base_url="https://from-config.test", timeout=3.0)
        client = TrustClient("https://explicit.test", config=config)
        assert client.base_url == "https://explicit.test"
        asyncio.run(client.aclose())

    def test_config_base_url_used(self) -> None:
        client = TrustClient(config=ClientConfig(base_url="https://from-config.test/"))
        assert client.base_url == "https://from-config.test"
        asyncio.run(client.aclose())

    def test_reusable_across_event_loops(self) -> None:
        recorder = Recorder(200, _lookup_payload())
        client = TrustClient(BASE_URL, transport=httpx.MockTransport(recorder))
        assert asyncio.run(client.lookup("agent-1")) is not None
        assert asyncio.run(client.lookup("agent-1")) is not None
        assert len(recorder.requests) == 2

    def test_usable_after_aclose(self) -> None:
        recorder = Recorder(200, _lookup_payload())
        client = TrustClient(BASE_URL, transport=httpx.MockTransport(recorder))

        async def go() -> None:
            async with client:
                await client.lookup("agent-1")
            await client.lookup("agent-1")
            await client.aclose()

        asyncio.run(go())
        assert len(recorder.requests) == 2


# ---------------------------------------------------------------------------
# lookup / fetch_trust_score
# ---------------------------------------------------------------------------


class TestLookup:
    def test_lookup_parses_agent_and_score(self) -> None:
        recorder = Recorder(200, _lookup_payload())
        result = _run(recorder, lambda c: c.lookup("agent-1"))
        assert result is not None
        assert result.agent.name == "Scout"
        assert result.trust_score.total == 72
        assert result.trust_score.risk_level == RiskLevel.LOW
        assert result.trust_score.dimensions.identity.max == 25

    def test_lookup_hits_trust_endpoint(self) -> None:
        recorder = Recorder(200, _lookup_payload())
        _run(recorder, lambda c: c.lookup("agent-1"))
        assert recorder.last.method == "GET"
        assert str(recorder.last.url) == f"{BASE_URL}/v1/trust/agent-1"

    def test_lookup_quotes_agent_id(self) -> None:
        recorder = Recorder(200, _lookup_payload())
        _run(recorder, lambda c: c.lookup("a/b c"))
        assert recorder.last.url.raw_path == b"/v1/trust/a%2Fb%20c"

    def test_lookup_not_found_returns_none(self) -> None:
        assert _run(_status(404, {"error": "not found"}), lambda c: c.lookup("ghost")) is None

    def test_lookup_other_client_error_returns_none(self) -> None:
        assert _run(_status(400), lambda c: c.lookup("bad")) is None

    def test_lookup_internal_error_returns_none(self) -> None:
        assert _run(_status(500), lambda c: c.lookup("agent-1")) is None

    def test_fetch_trust_score_returns_score(self) -> None:
        score = _run(Recorder(200, _lookup_payload(total=33)), lambda c: c.fetch_trust_score("a"))
        assert score is not None
        assert score.total == 33

    def test_fetch_trust_score_not_found(self) -> None:
        assert _run(_status(404), lambda c: c.fetch_trust_score("ghost")) is None

    def test_extra_fields_preserved(self) -> None:
        payload = _lookup_payload()
        payload["trust_score"]["percentile"] = 91
        result = _run(Recorder(200, payload), lambda c: c.lookup("agent-1"))
        assert result.trust_score.model_extra == {"percentile": 91}

    def test_malformed_body_raises_registry_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(RegistryError):
            _run(handler, lambda c: c.lookup("agent-1"))

    def test_missing_trust_score_raises_registry_error(self) -> None:
        with pytest.raises(RegistryError):
            _run(Recorder(200, {"agent": {"id": "a", "name": "A"}}), lambda c: c.lookup("a"))

    def test_missing_agent_record_tolerated(self) -> None:
        result = _run(Recorder(200, {"trust_score": {"total": 50}}), lambda c: c.lookup("agent-1"))
        assert result is not None
        assert result.agent is None
        assert result.trust_score.total == 50


# ---------------------------------------------------------------------------
# Inconsistent registry records
# ---------------------------------------------------------------------------


def _gate_check(payload: dict[str, Any], amount: int = 500) -> TransactionRecommendation:
    async def go() -> TransactionRecommendation:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        async with TrustClient(BASE_URL, transport=transport) as client:
            return await TransactionRiskGate(client).check("agent-1", amount)

    return asyncio.run(go())


class TestInconsistentRecords:
    def test_unrecognised_risk_level_still_decides(self) -> None:
        payload = _lookup_payload(total=85)
        payload["trust_score"]["risk_level"] = "critical"
        result = _gate_check(payload)
        assert result.proceed is True
        assert result.risk_level == RiskLevel.LOW

    def test_unrecognised_risk_level_reads_as_unknown(self) -> None:
        payload = _lookup_payload()
        payload["trust_score"]["risk_level"] = "critical"
        result = _run(Recorder(200, payload), lambda c: c.lookup("agent-1"))
        assert result.trust_score.risk_level == RiskLevel.UNKNOWN

    @pytest.mark.parametrize(
        "field", ["evidence_summary", "risk_flags", "risk_level", "confidence", "dimensions"]
    )
    def test_null_score_fields_fall_back_to_defaults(self, field: str) -> None:
        payload = _lookup_payload(total=85)
        payload["trust_score"][field] = None
        assert _gate_check(payload).proceed is True

    def test_null_capabilities_on_agent(self) -> None:
        payload = _lookup_payload(total=85)
        payload["agent"]["capabilities"] = None
        result = _run(Recorder(200, payload), lambda c: c.lookup("agent-1"))
        assert result.agent.capabilities == []
        assert _gate_check(payload).proceed is True

    def test_fractional_total_is_rounded(self) -> None:
        result = _gate_check(_lookup_payload(total=72.4), amount=15_000)
        assert result.proceed is True
        assert result.score == 72
        assert result.reason == "Trusted agent with score 72/100"

    def test_fractional_total_below_threshold(self) -> None:
        result = _gate_check(_lookup_payload(total=59.4), amount=15_000)
        assert result.proceed is False
        assert result.score == 59

    def test_out_of_range_total_is_clamped(self) -> None:
        result = _gate_check(_lookup_payload(total=250))
        assert result.score == 100


# ---------------------------------------------------------------------------
# Unavailability
# ---------------------------------------------------------------------------


class TestRegistryUnavailable:
    @pytest.mark.parametrize("code", [502, 503, 504])
    def test_gateway_status_raises(self, code: int) -> None:
        with pytest.raises(RegistryUnavailableError, match=f"Registry returned {code}"):
            _run(_status(code), lambda c: c.lookup("agent-1"))

    def test_connection_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RegistryUnavailableError, match="Registry unreachable: connection refused"):
            _run(handler, lambda c: c.lookup("agent-1"))

    def test_timeout_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RegistryUnavailableError):
            _run(handler, lambda c: c.fetch_trust_score("agent-1"))

    def test_unavailable_applies_to_writes(self) -> None:
        with pytest.raises(RegistryUnavailableError):
            _run(_status(503), lambda c: c.register("Scout", "scout@example.com"))

    def test_unavailable_applies_to_list(self) -> None:
        with pytest.raises(RegistryUnavailableError):
            _run(_status(502), lambda c: c.list_agents())

    def test_unavailable_is_registry_error(self) -> None:
        assert issubclass(RegistryUnavailableError, RegistryError)

    def test_default_message(self) -> None:
        assert str(RegistryUnavailableError()) == "Trust registry is temporarily offline"


# ---------------------------------------------------------------------------
# get_agent / list_agents
# ---------------------------------------------------------------------------


class TestGetAgent:
    def test_get_agent(self) -> None:
        recorder = Recorder(200, {"id": "agent-1", "name": "Scout", "website": "https://scout.ai"})
        agent = _run(recorder, lambda c: c.get_agent("agent-1"))
        assert agent.website == "https://scout.ai"
        assert recorder.last.url.path == "/registry/agent/agent-1"

    def test_get_agent_not_found(self) -> None:
        assert _run(_status(404), lambda c: c.get_agent("ghost")) is None


class TestListAgents:
    def test_list_without_params_sends_none(self) -> None:
        recorder = Recorder(200, {"agents": [], "page": 1, "limit": 50, "total": 0, "total_pages": 0})
        _run(recorder, lambda c: c.list_agents())
        assert recorder.last.url.path == "/registry/agents"
        assert recorder.last.url.query == b""

    def test_list_with_page_and_limit(self) -> None:
        recorder = Recorder(200, {"agents": []})
        _run(recorder, lambda c: c.list_agents(page=2, limit=10))
        assert recorder.last.url.params["page"] == "2"
        assert recorder.last.url.params["limit"] == "10"

    def test_list_parses_agents(self) -> None:
        body = {
            "agents": [{"id": "a", "name": "Alpha"}, {"id": "b", "name": "Beta", "trust_score": 64}],
            "page": 3,
            "limit": 2,
            "total": 6,
            "total_pages": 3,
        }
        result = _run(Recorder(200, body), lambda c: c.list_agents(page=3, limit=2))
        assert [a.name for a in result.agents] == ["Alpha", "Beta"]
        assert result.agents[1].trust_score == 64
        assert (result.page, result.limit, result.total, result.total_pages) == (3, 2, 6, 3)

    def test_list_missing_fields_use_defaults(self) -> None:
        result = _run(Recorder(200, {"agents": None}), lambda c: c.list_agents())
        assert result.agents == []
        assert (result.page, result.limit, result.total, result.total_pages) == (1, 50, 0, 0)

    def test_list_failure_returns_empty_page(self) -> None:
        result = _run(_status(500), lambda c: c.list_agents(page=4))
        assert result.agents == []
        assert result.page == 1
        assert result.limit == 50


# ---------------------------------------------------------------------------
# register / review
# ---------------------------------------------------------------------------


class TestRegister:
    def test_register_sends_body_without_unset_options(self) -> None:
        recorder = Recorder(200, {"agent_id": "new-1", "trust_score": 10, "badge": "b", "next_steps": []})
        _run(recorder, lambda c: c.register("Scout", "scout@example.com", description="Finds things"))
        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/register"
        assert recorder.last_json() == {
            "name": "Scout",
            "contact": "scout@example.com",
            "description": "Finds things",
        }

    def test_register_parses_response(self) -> None:
        body = {
            "agent_id": "new-1",
            "trust_score": 10,
            "badge": "https://registry.test/badge/new-1",
            "next_steps": [{"action": "Add lightning pubkey", "points": "+15"}],
        }
        response = _run(Recorder(200, body), lambda c: c.register("Scout", "scout@example.com"))
        assert response.agent_id == "new-1"
        assert response.next_steps[0].points == "+15"

    def test_register_failure_uses_server_message(self) -> None:
        with pytest.raises(RegistryOperationError, match="Name already taken") as info:
            _run(_status(409, {"error": "Name already taken"}), lambda c: c.register("Scout", "x"))
        assert info.value.status_code == 409

    def test_register_failure_without_body_uses_template(self) -> None:
        with pytest.raises(RegistryOperationError, match=r"Registration failed \(400\)"):
            _run(_status(400), lambda c: c.register("Scout", "x"))

    def test_register_failure_with_non_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(RegistryOperationError, match=r"Registration failed \(500\)"):
            _run(handler, lambda c: c.register("Scout", "x"))


class TestReview:
    def test_review_sends_body(self) -> None:
        recorder = Recorder(200, {"success": True, "review_id": "r-1"})
        response = _run(
            recorder,
            lambda c: c.review("agent-1", 5, "Fast and accurate", service_used="search"),
        )
        assert response.success is True
        assert response.review_id == "r-1"
        assert recorder.last.url.path == "/registry/review"
        assert recorder.last_json() == {
            "agent_id": "agent-1",
            "rating": 5,
            "comment": "Fast and accurate",
            "service_used": "search",
        }

    def test_review_failure_uses_server_message(self) -> None:
        with pytest.raises(RegistryOperationError, match="Rating must be 1-5"):
            _run(_status(422, {"error": "Rating must be 1-5"}), lambda c: c.review("a", 9, "x"))

    def test_review_failure_without_message_uses_template(self) -> None:
        with pytest.raises(RegistryOperationError, match=r"Review failed \(404\)"):
            _run(_status(404, {}), lambda c: c.review("ghost", 4, "x"))


# ---------------------------------------------------------------------------
# update_agent / delete_agent
# ---------------------------------------------------------------------------


class TestUpdateAgent:
    def test_update_sends_patch_with_secret(self) -> None:
        recorder = Recorder(200, {"success": True, "message": "Updated"})
        response = _run(
            recorder,
            lambda c: c.update_agent("agent-1", {"website": "https://scout.ai"}, "s3cret"),
        )
        assert response.success is True
        assert recorder.last.method == "PATCH"
        assert recorder.last.headers[AUTH_HEADER] == "s3cret"
        assert recorder.last_json() == {"website": "https://scout.ai"}

    def test_update_rejected_field_raises_value_error(self) -> None:
        recorder = Recorder(200, {"success": True})
        with pytest.raises(ValueError, match="name"):
            _run(recorder, lambda c: c.update_agent("agent-1", {"name": "Other"}, "s3cret"))
        assert recorder.requests == []

    def test_update_failure_body_returned_as_is(self) -> None:
        response = _run(
            _status(403, {"success": False, "error": "Invalid secret"}),
            lambda c: c.update_agent("agent-1", {"description": "x"}, "wrong"),
        )
        assert response.success is False
        assert response.error == "Invalid secret"

    def test_update_non_json_failure_raises(self) -> None:
        with pytest.raises(RegistryOperationError, match=r"Update failed \(401\)"):
            _run(_status(401), lambda c: c.update_agent("agent-1", {"contact": "x"}, "s"))


class TestDeleteAgent:
    def test_delete_sends_secret(self) -> None:
        recorder = Recorder(200, {"success": True, "message": "Deleted"})
        response = _run(recorder, lambda c: c.delete_agent("agent-1", "s3cret"))
        assert response.message == "Deleted"
        assert recorder.last.method == "DELETE"
        assert recorder.last.headers[AUTH_HEADER] == "s3cret"


# ---------------------------------------------------------------------------
# badge_url / is_trusted
# ---------------------------------------------------------------------------


class TestBadgeUrl:
    def test_badge_url(self) -> None:
        client = TrustClient("https://registry.test/")
        assert client.badge_url("agent-1") == "https://registry.test/badge/agent-1"
        asyncio.run(client.aclose())

    def test_build_badge_url_strips_slash(self) -> None:
        assert build_badge_url("https://r.test/", "x") == "https://r.test/badge/x"


class TestIsTrusted:
    def test_trusted_at_sixty(self) -> None:
        assert _run(Recorder(200, _lookup_payload(total=60)), lambda c: c.is_trusted("a")) is True

    def test_not_trusted_below_sixty(self) -> None:
        assert _run(Recorder(200, _lookup_payload(total=59)), lambda c: c.is_trusted("a")) is False

    def test_not_found_is_not_trusted(self) -> None:
        assert _run(_status(404), lambda c: c.is_trusted("ghost")) is False

    def test_outage_propagates(self) -> None:
        with pytest.raises(RegistryUnavailableError):
            _run(_status(504), lambda c: c.is_trusted("a"))
