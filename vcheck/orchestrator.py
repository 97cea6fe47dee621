"""Probe orchestrator: filter the roster and probe each validator in order."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from vcheck.aggregator import probe_validator
from vcheck.config import CheckerConfig, ConfigError
from vcheck.models import API_ORDER, ResultSet, ValidatorResult, ValidatorTarget
from vcheck.progress import ProbeProgress

logger = logging.getLogger(__name__)

PROBES_PER_VALIDATOR = len(API_ORDER)


def select_targets(
    roster: Sequence[ValidatorTarget], only: str | None = None
) -> list[ValidatorTarget]:
    """Return the validators to probe, in roster order.

    Args:
        roster: All validators from the roster.
        only: Optional validator name, matched case-insensitively.

    Raises:
        ConfigError: If *only* matches no validator.
    """
    if not only:
        return list(roster)

    wanted = only.lower()
    selected = [t for t in roster if t.name.lower() == wanted]
    if not selected:
        known = ", ".join(t.name for t in roster) or "none"
        raise ConfigError(f"No validator named {only!r} in roster (known: {known})")
    return selected


def expected_ticks(targets: Sequence[ValidatorTarget]) -> int:
    """Number of probes a run over *targets* performs."""
    return PROBES_PER_VALIDATOR * len(targets)


def run(
    roster: Sequence[ValidatorTarget],
    config: CheckerConfig,
    *,
    only: str | None = None,
    progress: ProbeProgress | None = None,
) -> ResultSet:
    """Probe every selected validator and collect the results.

    The filter is checked before anything is probed.  With
    ``config.workers > 1`` validators are probed concurrently, one worker
    per validator; the four probes of a validator still run one after the
    other and results keep roster order.

    Args:
        roster: All validators from the roster.
        config: Run settings.
        only: Optional case-insensitive validator name filter.
        progress: Ticked once after every probe.

    Returns:
        One ``ValidatorResult`` per selected validator, in roster order.

    Raises:
        ConfigError: If *only* matches no validator.
    """
    targets = select_targets(roster, only)
    logger.info(
        "Probing %d validator(s) with a %.1fs timeout",
        len(targets),
        config.timeout_seconds,
    )

    if progress is not None:
        progress.start(expected_ticks(targets))

    def _tick(_target: ValidatorTarget, _outcome: object) -> None:
        if progress is not None:
            progress.advance()

    def _probe(target: ValidatorTarget) -> ValidatorResult:
        return probe_validator(target, config, on_probe=_tick)

    workers = min(config.workers, len(targets))
    if workers <= 1:
        return [_probe(target) for target in targets]

    # map() yields in submission order, not completion order.
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_probe, targets))
