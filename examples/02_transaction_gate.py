#!/usr/bin/env python3
"""Example: Pre-transaction trust check

Looks up a counterparty in the live registry before paying it, and
treats a registry outage differently from an unknown agent.

Usage:
    python examples/02_transaction_gate.py AGENT_ID AMOUNT_SATS

Requirements:
    pip install trust-then-verify
"""
from __future__ import annotations

import asyncio
import sys

from trust_then_verify import RegistryUnavailableError, TransactionRiskGate, TrustClient


async def run(agent_id: str, amount_sats: int) -> int:
    async with TrustClient() as client:
        gate = TransactionRiskGate(client)
        try:
            recommendation = await gate.check(agent_id, amount_sats)
        except RegistryUnavailableError as exc:
            print(f"Registry unavailable, not paying: {exc}")
            return 3

    print(f"proceed={recommendation.proceed} score={recommendation.score}")
    print(f"risk={recommendation.risk_level.value} reason={recommendation.reason}")
    return 0 if recommendation.proceed else 1


def main() -> None:
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(run(sys.argv[1], int(sys.argv[2]))))


if __name__ == "__main__":
    main()
