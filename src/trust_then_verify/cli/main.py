"""CLI entry point for trust-then-verify.

Invoked as::

    trust-then-verify [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m trust_then_verify.cli.main

Commands
--------
tier       Show the trust tier for a score
check      Run the pre-transaction trust gate for an agent
lookup     Show an agent's trust score breakdown
agents     List registered agents
register   Register a new agent
review     Submit a review for an agent
badge      Print an agent's badge URL

Exit codes: 0 on success / approval, 1 on denial or a failed operation,
3 when the registry is unavailable (2 is left to click usage errors).
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from trust_then_verify.config import ENV_REGISTRY_URL, ENV_TIMEOUT, ClientConfig
from trust_then_verify.registry.client import TrustClient, build_badge_url
from trust_then_verify.registry.errors import RegistryError, RegistryUnavailableError
from trust_then_verify.registry.models import RiskLevel

console = Console()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNAVAILABLE = 3

_T = TypeVar("_T")

_RISK_STYLES: dict[RiskLevel, str] = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.UNKNOWN: "magenta",
}


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="trust-then-verify")
@click.option(
    "--registry-url",
    envvar=ENV_REGISTRY_URL,
    default=None,
    help="Trust registry root URL.",
)
@click.option(
    "--timeout",
    envvar=ENV_TIMEOUT,
    type=float,
    default=None,
    help="Per-request timeout in seconds.",
)
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    registry_url: str | None,
    timeout: float | None,
    log_level: str,
) -> None:
    """Trust tiers and pre-transaction checks for registry agents"""
    logging.basicConfig(level=getattr(logging, log_level.upper()))

    values: dict[str, object] = {}
    if registry_url:
        values["base_url"] = registry_url
    if timeout is not None:
        values["timeout"] = timeout
    try:
        config = ClientConfig.model_validate(values)
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint="--timeout") from exc

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from trust_then_verify import __version__

    console.print(f"[bold]trust-then-verify[/bold] v{__version__}")


# ------------------------------------------------------------------
# tier
# ------------------------------------------------------------------


@cli.command(name="tier")
@click.argument("score", type=float)
def tier_command(score: float) -> None:
    """Show the trust tier for SCORE (0-100)."""
    from trust_then_verify.trust.tier import classify

    tier = classify(score)
    safe_str = "[green]yes[/green]" if tier.safe else "[red]no[/red]"
    console.print(f"{tier.badge} [bold]{tier.label}[/bold]")
    console.print(f"  Score: {score:g}")
    console.print(f"  Safe:  {safe_str}")


# ------------------------------------------------------------------
# check
# ------------------------------------------------------------------


@cli.command(name="check")
@click.argument("agent_id")
@click.argument("amount", type=click.IntRange(min=0))
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON.")
@click.pass_context
def check_command(ctx: click.Context, agent_id: str, amount: int, as_json: bool) -> None:
    """Check whether to send AMOUNT sats to AGENT_ID.

    Exits 0 when the transaction may proceed, 1 when it is denied and 3
    when the registry could not be reached.
    """
    from trust_then_verify.trust.gate import TransactionRiskGate

    recommendation = _call_registry(
        ctx, lambda client: TransactionRiskGate(client).check(agent_id, amount)
    )

    if as_json:
        click.echo(json.dumps(recommendation.to_dict(), indent=2))
    else:
        style = _RISK_STYLES[recommendation.risk_level]
        verdict = "[green]PROCEED[/green]" if recommendation.proceed else "[red]DENY[/red]"
        console.print(f"{verdict}  {escape(agent_id)} for {amount} sats")
        console.print(f"  Score:  {recommendation.score}/100")
        console.print(f"  Risk:   [{style}]{recommendation.risk_level.value}[/{style}]")
        console.print(f"  Reason: {escape(recommendation.reason)}")

    sys.exit(EXIT_OK if recommendation.proceed else EXIT_FAILURE)


# ------------------------------------------------------------------
# lookup
# ------------------------------------------------------------------


@cli.command(name="lookup")
@click.argument("agent_id")
@click.pass_context
def lookup_command(ctx: click.Context, agent_id: str) -> None:
    """Show the trust score breakdown for AGENT_ID."""
    from trust_then_verify.trust.tier import classify

    result = _call_registry(ctx, lambda client: client.lookup(agent_id))
    if result is None:
        console.print(f"[yellow]Agent {escape(agent_id)!r} not found in registry.[/yellow]")
        sys.exit(EXIT_FAILURE)

    trust_score = result.trust_score
    tier = classify(trust_score.clamped_total)

    name = result.agent.name if result.agent is not None else agent_id
    table = Table(title=f"Trust Score — {escape(name)}", show_header=True)
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Max", justify="right")
    for name, dimension in trust_score.dimensions.items():
        table.add_row(name.capitalize(), f"{dimension.score:g}", f"{dimension.max:g}")

    console.print(table)
    console.print(f"\n  Total:      [bold]{trust_score.total:g}/100[/bold]")
    console.print(f"  Tier:       {tier.badge} {tier.label}")
    console.print(f"  Confidence: {trust_score.confidence:g}")
    console.print(f"  Risk:       {trust_score.risk_level.value}")
    if trust_score.risk_flags:
        console.print(f"  Flags:      {escape(', '.join(trust_score.risk_flags))}")
    if trust_score.evidence_summary:
        console.print(f"  Evidence:   {escape(trust_score.evidence_summary)}")


# ------------------------------------------------------------------
# agents
# ------------------------------------------------------------------


@cli.command(name="agents")
@click.option("--page", type=click.IntRange(min=1), default=None, help="Page number.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Agents per page.")
@click.pass_context
def agents_command(ctx: click.Context, page: int | None, limit: int | None) -> None:
    """List registered agents."""
    result = _call_registry(ctx, lambda client: client.list_agents(page=page, limit=limit))

    if not result.agents:
        console.print("[yellow]No agents found.[/yellow]")
        return

    table = Table(title="Registered Agents", show_header=True)
    table.add_column("Agent ID", style="cyan")
    table.add_column("Name")
    table.add_column("Score", justify="right")
    table.add_column("Capabilities")

    for agent in result.agents:
        score = f"{agent.trust_score:g}" if agent.trust_score is not None else "-"
        caps = ", ".join(agent.capabilities) or "(none)"
        table.add_row(escape(agent.id), escape(agent.name), score, escape(caps))

    console.print(table)
    console.print(
        f"\nPage {result.page} of {result.total_pages} ({result.total} agent(s) total)"
    )


# ------------------------------------------------------------------
# register
# ------------------------------------------------------------------


@cli.command(name="register")
@click.argument("name")
@click.argument("contact")
@click.option("--description", "-d", default=None, help="Short description of the agent.")
@click.option(
    "--capability",
    "-c",
    multiple=True,
    help="Capability string (repeatable, e.g. -c search -c translate).",
)
@click.option("--lightning-pubkey", default=None, help="Lightning node public key.")
@click.option("--nostr-npub", default=None, help="Nostr npub.")
@click.option("--website", default=None, help="Agent website.")
@click.pass_context
def register_command(
    ctx: click.Context,
    name: str,
    contact: str,
    description: str | None,
    capability: tuple[str, ...],
    lightning_pubkey: str | None,
    nostr_npub: str | None,
    website: str | None,
) -> None:
    """Register a new agent NAME reachable at CONTACT."""
    response = _call_registry(
        ctx,
        lambda client: client.register(
            name,
            contact,
            description=description,
            capabilities=list(capability) or None,
            lightning_pubkey=lightning_pubkey,
            nostr_npub=nostr_npub,
            website=website,
        ),
    )

    console.print(f"[green]Registered[/green] agent [bold]{escape(name)}[/bold]")
    console.print(f"  Agent ID:    {escape(response.agent_id)}")
    console.print(f"  Trust score: {response.trust_score:g}")
    if response.badge:
        console.print(f"  Badge:       {escape(response.badge)}")
    for step in response.next_steps:
        console.print(f"  - {escape(step.action)} ({escape(step.points)})")


# ------------------------------------------------------------------
# review
# ------------------------------------------------------------------


@cli.command(name="review")
@click.argument("agent_id")
@click.argument("rating", type=click.IntRange(min=1, max=5))
@click.argument("comment")
@click.option("--service-used", default=None, help="Service the review refers to.")
@click.option("--proof-of-payment", default=None, help="Payment proof (e.g. preimage).")
@click.pass_context
def review_command(
    ctx: click.Context,
    agent_id: str,
    rating: int,
    comment: str,
    service_used: str | None,
    proof_of_payment: str | None,
) -> None:
    """Submit a RATING (1-5) and COMMENT for AGENT_ID."""
    response = _call_registry(
        ctx,
        lambda client: client.review(
            agent_id,
            rating,
            comment,
            service_used=service_used,
            proof_of_payment=proof_of_payment,
        ),
    )

    if not response.success:
        console.print(f"[red]Review rejected:[/red] {escape(response.error or 'unknown error')}")
        sys.exit(EXIT_FAILURE)
    console.print(f"[green]Review submitted[/green] for [bold]{escape(agent_id)}[/bold]")
    if response.review_id:
        console.print(f"  Review ID: {escape(response.review_id)}")


# ------------------------------------------------------------------
# badge
# ------------------------------------------------------------------


@cli.command(name="badge")
@click.argument("agent_id")
@click.pass_context
def badge_command(ctx: click.Context, agent_id: str) -> None:
    """Print the embeddable badge URL for AGENT_ID."""
    config: ClientConfig = ctx.obj["config"]
    click.echo(build_badge_url(config.base_url, agent_id))


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _build_client(config: ClientConfig) -> TrustClient:
    """Return the client used by registry commands."""
    return TrustClient(config=config)


async def _with_client(
    config: ClientConfig,
    call: Callable[[TrustClient], Awaitable[_T]],
) -> _T:
    async with _build_client(config) as client:
        return await call(client)


def _call_registry(
    ctx: click.Context,
    call: Callable[[TrustClient], Awaitable[_T]],
) -> _T:
    """Run *call* against a fresh client, mapping registry errors to exit codes."""
    config: ClientConfig = ctx.obj["config"]
    try:
        return asyncio.run(_with_client(config, call))
    except RegistryUnavailableError as exc:
        console.print(f"[red]Registry unavailable:[/red] {escape(str(exc))}")
        console.print("  The counterparty was not evaluated. Retry later.")
        sys.exit(EXIT_UNAVAILABLE)
    except RegistryError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    cli()
