"""CLI entry point for the vcheck tool."""

import dataclasses
import logging
import sys

import click

from vcheck.config import ConfigError, load_config, validate_timeout, validate_workers
from vcheck.orchestrator import run, select_targets
from vcheck.output import FORMATS, render
from vcheck.progress import ProbeProgress
from vcheck.roster import resolve_roster

logger = logging.getLogger(__name__)


@click.command()
@click.option("--testnet", is_flag=True, help="Check the testnet roster instead of mainnet.")
@click.option(
    "--only",
    default=None,
    metavar="NAME",
    help="Check a single validator (case-insensitive).",
)
@click.option(
    "--output",
    "-o",
    "output_format",
    default="human",
    type=click.Choice(FORMATS, case_sensitive=False),
    show_default=True,
    help="Output format.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to YAML settings file (default: ~/.vcheck/config.yaml).",
)
@click.option(
    "--roster",
    "-r",
    "roster_path",
    default=None,
    type=click.Path(exists=False),
    help="Roster JSON to use instead of the bundled one.",
)
@click.option("--timeout", type=float, default=None, help="Per-probe timeout in seconds.")
@click.option("--workers", type=int, default=None, help="Validators probed concurrently.")
@click.option("--no-progress", is_flag=True, help="Don't show the progress bar.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(
    testnet: bool,
    only: str | None,
    output_format: str,
    config_path: str | None,
    roster_path: str | None,
    timeout: float | None,
    workers: int | None,
    no_progress: bool,
    verbose: bool,
) -> None:
    """Check that validators expose healthy core, data-node, REST and GraphQL APIs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        cfg = load_config(config_path)
        overrides: dict[str, object] = {}
        if timeout is not None:
            overrides["timeout_seconds"] = validate_timeout(timeout)
        if workers is not None:
            overrides["workers"] = validate_workers(workers)
        cfg = dataclasses.replace(cfg, **overrides)

        roster = resolve_roster(cfg, testnet=testnet, path=roster_path)
        # Fail on an unknown --only before the progress bar appears.
        select_targets(roster, only)
    except (ConfigError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    logger.debug("Config loaded: %s", cfg)

    with ProbeProgress(enabled=not no_progress) as progress:
        results = run(roster, cfg, only=only, progress=progress)

    render(results, output_format.lower())
