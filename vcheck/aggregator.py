"""Aggregator: run every probe for a validator and normalise the outcomes."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from vcheck.config import CheckerConfig
from vcheck.models import API_ORDER, ProbeOutcome, ValidatorResult, ValidatorTarget
from vcheck.probes import Probe, ProbeError, get_probes

logger = logging.getLogger(__name__)

ProbeCallback = Callable[[ValidatorTarget, ProbeOutcome], None]


def probe_validator(
    target: ValidatorTarget,
    config: CheckerConfig,
    *,
    probes: Sequence[Probe] | None = None,
    on_probe: ProbeCallback | None = None,
) -> ValidatorResult:
    """Run the core, datanode, rest and gql probes against *target*.

    Every probe runs even if an earlier one failed, and each failure is
    recorded as an outcome rather than raised, so the result always holds
    one outcome per api kind in ``API_ORDER``.

    Args:
        target: Validator to probe.
        config: Run settings; supplies the per-probe timeout.
        probes: Probes to run, in order.  Defaults to the registry's
            fixed-order list.
        on_probe: Called after each probe with its outcome, whether it
            succeeded or not.

    Returns:
        A ``ValidatorResult`` for *target*.
    """
    if probes is None:
        probes = get_probes()

    result = ValidatorResult(name=target.name)
    for probe in probes:
        try:
            duration = probe.run(target, config.timeout_seconds)
            outcome = ProbeOutcome(api=probe.api, duration=duration)
        except ProbeError as exc:
            outcome = ProbeOutcome(api=probe.api, duration=exc.duration, error=str(exc))

        result.outcomes.append(outcome)
        if on_probe is not None:
            on_probe(target, outcome)

    logger.debug(
        "%s: %d/%d probes failed",
        target.name,
        len(result.failures),
        len(result.outcomes),
    )
    return result


@dataclass
class FailureSummary:
    """Failure counts across a whole result set.

    Attributes:
        validators: Number of validators probed.
        probes: Number of probes run.
        failed: Number of probes that failed.
        by_api: ``api -> failed count`` for every api kind, in ``API_ORDER``.
    """

    validators: int = 0
    probes: int = 0
    failed: int = 0
    by_api: dict[str, int] = field(default_factory=dict)


def summarize(results: Sequence[ValidatorResult]) -> FailureSummary:
    """Count failed probes in *results*, overall and per api kind."""
    by_api = {api: 0 for api in API_ORDER}
    probes = 0
    failed = 0

    for result in results:
        for outcome in result.outcomes:
            probes += 1
            if not outcome.ok:
                failed += 1
                by_api[outcome.api] = by_api.get(outcome.api, 0) + 1

    return FailureSummary(
        validators=len(results),
        probes=probes,
        failed=failed,
        by_api=by_api,
    )
