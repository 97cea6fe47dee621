"""Validator roster loading: bundled testnet/mainnet files or a custom JSON."""

import json
import logging
from pathlib import Path

from vcheck.config import CheckerConfig, ConfigError
from vcheck.models import ValidatorTarget

logger = logging.getLogger(__name__)

ROSTER_DIR = Path(__file__).parent / "rosters"
MAINNET_ROSTER = ROSTER_DIR / "mainnet.json"
TESTNET_ROSTER = ROSTER_DIR / "testnet.json"

# Roster JSON keys -> ValidatorTarget fields.
_ENTRY_KEYS: dict[str, str] = {
    "name": "name",
    "grpc": "grpc_address",
    "rest": "rest_address",
    "gql": "graphql_address",
}


class RosterError(ConfigError):
    """Raised when a roster file is unreadable or malformed."""


def load_roster(path: Path | str) -> list[ValidatorTarget]:
    """Load a roster JSON file.

    The expected document is ``{"validators": [{"name": ..., "grpc": ...,
    "rest": ..., "gql": ...}, ...]}``.

    Args:
        path: Path to the roster file.

    Returns:
        Validators in file order.

    Raises:
        RosterError: If the file is missing, isn't valid JSON, or doesn't
            match the expected shape.
    """
    p = Path(path).expanduser()
    logger.debug("Loading roster from %s", p)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise RosterError(f"Cannot read roster {p}: {exc}") from exc
    return parse_roster(text, source=str(p))


def parse_roster(text: str, source: str = "<string>") -> list[ValidatorTarget]:
    """Parse roster JSON *text* into ``ValidatorTarget`` objects.

    Raises:
        RosterError: On invalid JSON, a bad structure, or duplicate names.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RosterError(f"Invalid JSON in roster {source}: {exc}") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("validators"), list):
        raise RosterError(f"Roster {source} must contain a 'validators' list")

    targets: list[ValidatorTarget] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw["validators"]):
        target = _build_target(entry, index, source)
        key = target.name.lower()
        if key in seen:
            raise RosterError(f"Duplicate validator name {target.name!r} in {source}")
        seen.add(key)
        targets.append(target)

    logger.debug("Loaded %d validator(s) from %s", len(targets), source)
    return targets


def bundled_roster_path(testnet: bool) -> Path:
    """Return the path of the roster shipped with the package."""
    return TESTNET_ROSTER if testnet else MAINNET_ROSTER


def resolve_roster(
    cfg: CheckerConfig,
    *,
    testnet: bool = False,
    path: Path | str | None = None,
) -> list[ValidatorTarget]:
    """Pick and load the roster for this run.

    Precedence: explicit *path*, then the override from *cfg* for the
    selected network, then the bundled file.
    """
    if path is None:
        path = cfg.testnet_roster if testnet else cfg.mainnet_roster
    if path is None:
        path = bundled_roster_path(testnet)
    return load_roster(path)


def _build_target(entry: object, index: int, source: str) -> ValidatorTarget:
    if not isinstance(entry, dict):
        raise RosterError(f"Validator #{index} in {source} is not an object")

    kwargs: dict[str, str] = {}
    for key, field_name in _ENTRY_KEYS.items():
        value = entry.get(key)
        if not isinstance(value, str):
            raise RosterError(
                f"Validator #{index} in {source}: '{key}' must be a string"
            )
        kwargs[field_name] = value

    if not kwargs["name"].strip():
        raise RosterError(f"Validator #{index} in {source} has an empty name")

    return ValidatorTarget(**kwargs)
