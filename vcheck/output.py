"""Output renderer: rich timing/error tables, JSON formatter, mode dispatch."""

import json
import logging
import sys
from collections.abc import Sequence
from io import StringIO

from rich.console import Console
from rich.table import Table
from rich.text import Text

from vcheck.aggregator import summarize
from vcheck.models import API_ORDER, ProbeOutcome, ValidatorResult

logger = logging.getLogger(__name__)

FORMATS = ("human", "json")

# Timing table columns: (header, api kind).
_TIMING_COLUMNS = [
    ("core", "core"),
    ("datanode", "datanode"),
    ("rest", "rest"),
    ("graphql", "gql"),
]


def render(
    results: Sequence[ValidatorResult],
    fmt: str,
    *,
    file: object | None = None,
    width: int | None = None,
) -> None:
    """Dispatch output to the appropriate formatter.

    Args:
        results: Per-validator results in roster order.
        fmt: Output format, ``"human"`` or ``"json"``.
        file: Writable file object for output (default: ``sys.stdout``).
        width: Explicit console width (default: auto-detect).

    Raises:
        ValueError: If *fmt* is not ``"human"`` or ``"json"``.
    """
    if fmt == "human":
        render_table(results, file=file, width=width)
    elif fmt == "json":
        render_json(results, file=file)
    else:
        raise ValueError(f"Unknown output format: {fmt!r}")


# ---------------------------------------------------------------------------
# Human (rich) formatter
# ---------------------------------------------------------------------------


def render_table(
    results: Sequence[ValidatorResult],
    *,
    file: object | None = None,
    width: int | None = None,
) -> None:
    """Render *results* as two ``rich`` tables plus a summary line.

    The first table holds one row per validator with the duration of each
    probe, green on success and red on failure.  The second lists only the
    failed probes with their error messages.

    Args:
        results: Per-validator results in roster order.
        file: Writable file object (default: ``sys.stdout``).
        width: Explicit console width (default: auto-detect).
    """
    out = file or sys.stdout
    console = Console(file=out, highlight=False, width=width)

    console.print(_timing_table(results))

    errors = _error_table(results)
    if errors.row_count:
        console.print(errors)
    else:
        console.print("  All probes succeeded.")

    summary = summarize(results)
    line = (
        f"  {summary.validators} validator(s), "
        f"{summary.failed} of {summary.probes} probes failed"
    )
    if summary.failed:
        per_api = ", ".join(f"{api} {count}" for api, count in summary.by_api.items())
        line += f" ({per_api})"
    console.print(line)


def _timing_table(results: Sequence[ValidatorResult]) -> Table:
    table = Table(title="Endpoint latency")
    table.add_column("validator")
    for header, _ in _TIMING_COLUMNS:
        table.add_column(header, justify="right")

    for result in results:
        cells = [_duration_cell(_find(result, api)) for _, api in _TIMING_COLUMNS]
        table.add_row(Text(result.name), *cells)
    return table


def _error_table(results: Sequence[ValidatorResult]) -> Table:
    table = Table(title="Errors")
    table.add_column("validator")
    table.add_column("api")
    table.add_column("error")

    for result in results:
        for outcome in result.failures:
            table.add_row(Text(result.name), outcome.api, Text(outcome.error or ""))
    return table


def _duration_cell(outcome: ProbeOutcome | None) -> Text:
    """Coloured duration for one probe; a dash if the probe is missing."""
    if outcome is None:
        return Text("—")
    style = "green" if outcome.ok else "red"
    return Text(format_duration(outcome.duration), style=style)


def _find(result: ValidatorResult, api: str) -> ProbeOutcome | None:
    try:
        return result.outcome(api)  # type: ignore[arg-type]
    except KeyError:
        logger.warning("No %s outcome recorded for %s", api, result.name)
        return None


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------


def render_json(results: Sequence[ValidatorResult], *, file: object | None = None) -> None:
    """Render *results* as a JSON array to *file*.

    Each element is ``{"name": ..., "api_results": [{"api": ...,
    "time_taken": <seconds>, "error": ...}]}``; ``error`` is omitted for
    successful probes.

    Args:
        results: Per-validator results in roster order.
        file: Writable file object (default: ``sys.stdout``).
    """
    out = file or sys.stdout
    json.dump(results_to_dicts(results), out, indent=2)
    out.write("\n")  # type: ignore[union-attr]


def results_to_dicts(results: Sequence[ValidatorResult]) -> list[dict]:
    """Convert results to the plain structure emitted by ``render_json``."""
    payload = []
    for result in results:
        api_results = []
        for outcome in result.outcomes:
            entry: dict[str, object] = {
                "api": outcome.api,
                "time_taken": outcome.duration,
            }
            if outcome.error is not None:
                entry["error"] = outcome.error
            api_results.append(entry)
        payload.append({"name": result.name, "api_results": api_results})
    return payload


def results_from_dicts(data: object) -> list[ValidatorResult]:
    """Rebuild ``ValidatorResult`` objects from ``render_json`` output.

    Raises:
        ValueError: If *data* doesn't have the emitted shape.
    """
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of validator results")

    results = []
    for item in data:
        if (
            not isinstance(item, dict)
            or not isinstance(item.get("name"), str)
            or not isinstance(item.get("api_results"), list)
        ):
            raise ValueError(f"Malformed validator result: {item!r}")
        outcomes = []
        for entry in item["api_results"]:
            api = entry.get("api")
            if api not in API_ORDER:
                raise ValueError(f"Unknown api {api!r}")
            outcomes.append(
                ProbeOutcome(
                    api=api,
                    duration=float(entry["time_taken"]),
                    error=entry.get("error"),
                )
            )
        results.append(ValidatorResult(name=item["name"], outcomes=outcomes))
    return results


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration for table display.

    Zero becomes ``"0s"``, sub-second values are shown in milliseconds and
    anything longer in seconds.
    """
    if seconds <= 0:
        return "0s"
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.2f}s"


def render_to_string(
    results: Sequence[ValidatorResult], fmt: str, *, width: int = 200
) -> str:
    """Render to a string instead of stdout, useful for testing.

    Args:
        results: Per-validator results in roster order.
        fmt: Output format, ``"human"`` or ``"json"``.
        width: Console width for table rendering (default: 200).

    Returns:
        The rendered output as a string.
    """
    buf = StringIO()
    render(results, fmt, file=buf, width=width)
    return buf.getvalue()
