#!/usr/bin/env python3
"""
nftgov Scenario Runner

Runs the governance scenario catalogue on a fresh local ledger and reports
whether each proposal ended the way the governor rules say it should.

Usage:
    nftgov-scenarios [--config PATH] [--scenario NAME]... [--json]
    nftgov-scenarios --list

Exit status is 0 when every scenario matched its expectation, 1 otherwise.
"""

import json
import sys
from typing import Optional, Tuple

import click

from nftgov import __version__
from nftgov.config import load_config
from nftgov.exceptions import ConfigurationError
from nftgov.harness import (
    SCENARIOS,
    ScenarioResult,
    UnknownScenarioError,
    run_scenarios,
    scenario_names,
)


def format_amount(amount: int, decimals: int = 18) -> str:
    """Format base units for display (1000 × 10^18 → ``1000``)."""
    whole, frac = divmod(amount, 10 ** decimals)
    if not frac:
        return str(whole)
    return f"{whole}.{str(frac).rjust(decimals, '0').rstrip('0')}"


def echo_result(result: ScenarioResult):
    mark = click.style("✓", fg="green") if result.passed else click.style("✗", fg="red")
    outcome = result.outcome
    if outcome.executed:
        detail = f"executed, receiver +{format_amount(outcome.balance_delta)}"
    else:
        detail = f"reverted: {outcome.revert_reason}"

    click.echo(f"{mark} {result.scenario.name:<20} {result.state.label:<10} {detail}")
    click.echo(click.style(f"    {result.scenario.title}", dim=True))
    for problem in result.problems:
        click.echo(click.style(f"    ! {problem}", fg="red"))


@click.command("nftgov-scenarios")
@click.version_option(version=__version__, prog_name="nftgov-scenarios")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    help="TOML config file (default: $NFTGOV_CONFIG or ./config.toml)"
)
@click.option(
    "--scenario", "-s",
    "names",
    multiple=True,
    help="Scenario to run; repeatable (default: all)"
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--list", "list_only", is_flag=True, help="List scenario names and exit")
def main(config_path: Optional[str], names: Tuple[str, ...], as_json: bool, list_only: bool):
    """Run governance voting scenarios against a local ledger.

    Examples:

        nftgov-scenarios

        nftgov-scenarios -s success -s quorum-unmet --json
    """
    if list_only:
        for scenario in SCENARIOS:
            click.echo(f"{scenario.name:<20} {scenario.title}")
        return

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    try:
        results = run_scenarios(names or None, config)
    except UnknownScenarioError as e:
        raise click.BadParameter(
            f"{e} (try one of: {', '.join(scenario_names())})", param_hint="--scenario"
        )

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        click.echo()
        click.echo(click.style("═══════════════════════════════════════", fg="cyan"))
        click.echo(click.style("        Governance Voting Scenarios      ", fg="cyan", bold=True))
        click.echo(click.style("═══════════════════════════════════════", fg="cyan"))
        click.echo()
        for result in results:
            echo_result(result)
        click.echo()
        passed = sum(r.passed for r in results)
        color = "green" if passed == len(results) else "red"
        click.echo(click.style(f"{passed}/{len(results)} scenarios passed", fg=color, bold=True))

    if not all(r.passed for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
