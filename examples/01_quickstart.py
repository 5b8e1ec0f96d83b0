#!/usr/bin/env python3
"""Example: Quickstart

Classifies a few trust scores into tiers and runs the pure risk gate
against different transaction sizes. No network access is needed.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install trust-then-verify
"""
from __future__ import annotations

import trust_then_verify
from trust_then_verify import classify, evaluate


def main() -> None:
    print(f"trust-then-verify version: {trust_then_verify.__version__}")

    # Step 1: Tiers
    for score in (95, 72, 45, 25, 5):
        tier = classify(score)
        print(f"  {score:>3} -> {tier.badge} {tier.label} (safe={tier.safe})")

    # Step 2: Gate decisions for one agent across amounts
    for amount in (500, 5_000, 50_000):
        recommendation = evaluate(45, amount)
        verdict = "PROCEED" if recommendation.proceed else "DENY"
        print(f"  {amount:>6} sats: {verdict} [{recommendation.risk_level.value}] {recommendation.reason}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
