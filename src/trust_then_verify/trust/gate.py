"""TransactionRiskGate — pre-payment trust check for a counterparty agent.

The gate fetches the agent's trust score from an injected RegistryService,
picks the score required for the transfer amount, and returns a
TransactionRecommendation. Exactly one registry read is made per check;
there are no retries and nothing is cached.

An agent missing from the registry is a normal outcome (a denial with
``RiskLevel.UNKNOWN``). An unreachable registry is not: the
RegistryUnavailableError raised by the service propagates to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from trust_then_verify.registry.models import RiskLevel, clamp_score
from trust_then_verify.registry.service import RegistryService
from trust_then_verify.trust.policy import GatePolicy
from trust_then_verify.trust.tier import TIER_THRESHOLDS, TrustTier, classify

logger = logging.getLogger(__name__)

NOT_FOUND_REASON: str = "Agent not found in registry. Unverified counterparty."

_DEFAULT_POLICY = GatePolicy()


@dataclass(frozen=True)
class TransactionRecommendation:
    """Outcome of a pre-transaction trust check.

    Parameters
    ----------
    proceed:
        Whether the transaction should go ahead.
    score:
        The agent's trust score used for the decision (0 if not found).
    reason:
        Human-readable explanation of the decision.
    risk_level:
        Coarse risk of transacting with the agent.
    """

    proceed: bool
    score: int
    reason: str
    risk_level: RiskLevel

    def to_dict(self) -> dict[str, object]:
        """Serialize to the camelCase wire form used by other SDKs."""
        return {
            "proceed": self.proceed,
            "score": self.score,
            "reason": self.reason,
            "riskLevel": self.risk_level.value,
        }


def not_found_recommendation() -> TransactionRecommendation:
    """Recommendation for an agent the registry has no record of."""
    return TransactionRecommendation(
        proceed=False,
        score=0,
        reason=NOT_FOUND_REASON,
        risk_level=RiskLevel.UNKNOWN,
    )


def evaluate(
    score: float,
    amount_sats: int,
    policy: GatePolicy | None = None,
) -> TransactionRecommendation:
    """Decide whether to send *amount_sats* to an agent scoring *score*.

    Pure function, never raises. *score* is rounded and clamped to 0 – 100
    first, so fractional or out-of-range registry totals are tolerated.

    On approval the risk level follows the tier's ``safe`` flag. On denial
    it depends only on the raw score (below ``policy.high_risk_below`` is
    high, anything else medium) and the tier is not consulted.
    """
    policy = policy if policy is not None else _DEFAULT_POLICY
    score = clamp_score(score)
    required = policy.required_score(amount_sats)

    if score >= required:
        tier = classify(score)
        return TransactionRecommendation(
            proceed=True,
            score=score,
            reason=f"{tier.label} agent with score {score}/100",
            risk_level=RiskLevel.LOW if tier.safe else RiskLevel.MEDIUM,
        )

    return TransactionRecommendation(
        proceed=False,
        score=score,
        reason=(
            f"Score {score}/100 below threshold {required} "
            f"for {amount_sats} sats transaction"
        ),
        risk_level=RiskLevel.HIGH if score < policy.high_risk_below else RiskLevel.MEDIUM,
    )


class TransactionRiskGate:
    """Trust gate run before paying another agent.

    Parameters
    ----------
    registry:
        Source of trust scores. Usually a TrustClient; any RegistryService
        implementation works.
    policy:
        Amount bands and thresholds. Defaults to :class:`GatePolicy` defaults.

    Example
    -------
    ::

        async with TrustClient() as client:
            gate = TransactionRiskGate(client)
            check = await gate.check("target-agent", 1000)
            if check.proceed:
                ...
    """

    def __init__(
        self,
        registry: RegistryService,
        policy: GatePolicy | None = None,
    ) -> None:
        self._registry = registry
        self._policy = policy if policy is not None else _DEFAULT_POLICY

    @property
    def policy(self) -> GatePolicy:
        """The policy applied by this gate."""
        return self._policy

    async def check(self, agent_id: str, amount_sats: int) -> TransactionRecommendation:
        """Check an agent's trust before a transfer of *amount_sats*.

        Raises
        ------
        RegistryUnavailableError
            If the registry could not be reached. This is never turned
            into a denial.
        """
        trust_score = await self._registry.fetch_trust_score(agent_id)
        if trust_score is None:
            logger.info("Agent %r not found in registry; denying %d sats", agent_id, amount_sats)
            return not_found_recommendation()

        recommendation = evaluate(trust_score.total, amount_sats, self._policy)
        logger.debug(
            "Gate decision for %r (%d sats): proceed=%s risk=%s",
            agent_id,
            amount_sats,
            recommendation.proceed,
            recommendation.risk_level.value,
        )
        return recommendation


async def is_trusted(
    registry: RegistryService,
    agent_id: str,
    min_score: float = TIER_THRESHOLDS[TrustTier.TRUSTED],
) -> bool:
    """Return True if the agent exists and its score is at least *min_score*."""
    trust_score = await registry.fetch_trust_score(agent_id)
    if trust_score is None:
        return False
    return trust_score.clamped_total >= min_score
