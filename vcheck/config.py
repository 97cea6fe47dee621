"""YAML settings file loading."""

import logging
import math
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".vcheck"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class CheckerConfig:
    """Run-wide settings for the checker.

    Built once at start-up and handed to the orchestrator; every field has a
    default so the tool runs without a settings file.

    Attributes:
        timeout_seconds: Per-probe timeout, measured from request dispatch.
        workers: Number of validators probed at the same time.  ``1`` keeps
            the run strictly sequential.
        mainnet_roster: Path to a roster JSON replacing the bundled mainnet
            roster, or None.
        testnet_roster: Path to a roster JSON replacing the bundled testnet
            roster, or None.
    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    workers: int = 1
    mainnet_roster: str | None = None
    testnet_roster: str | None = None


class ConfigError(Exception):
    """Raised when configuration is malformed or names something missing."""


def load_config(path: Path | str | None = None) -> CheckerConfig:
    """Load settings from a YAML file.

    The file's top-level keys are the ``CheckerConfig`` field names.  With no
    *path*, ``~/.vcheck/config.yaml`` is read if it exists; otherwise every
    setting keeps its default.

    Raises:
        FileNotFoundError: If an explicit *path* was given but doesn't exist.
        ConfigError: If the file is not a YAML mapping or holds out-of-range
            values.
    """
    source = _find_config_file(path)
    if source is None:
        logger.debug("No config file at %s; using defaults", DEFAULT_CONFIG_PATH)
        return CheckerConfig()

    logger.debug("Loading config from %s", source)
    return _build_config(_read_mapping(source), source=source)


def validate_timeout(value: object) -> float:
    """Return *value* as a positive, finite float timeout.

    Raises:
        ConfigError: If *value* is not a positive finite number.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"timeout must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"timeout must be a positive finite number, got {value!r}")
    return float(value)


def validate_workers(value: object) -> int:
    """Return *value* as a positive worker count.

    Raises:
        ConfigError: If *value* is not a positive integer.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"workers must be a positive integer, got {value!r}")
    return value


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _find_config_file(path: Path | str | None) -> Path | None:
    if path is None:
        candidate = DEFAULT_CONFIG_PATH.expanduser()
        return candidate if candidate.is_file() else None

    candidate = Path(path).expanduser()
    if not candidate.is_file():
        raise FileNotFoundError(f"Config file not found: {candidate}")
    return candidate


def _read_mapping(source: Path) -> dict:
    """Parse *source* as YAML; an empty document reads as an empty mapping."""
    try:
        doc = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source}: {exc}") from exc

    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ConfigError(
            f"Expected a YAML mapping at the top level in {source}, "
            f"got {type(doc).__name__}"
        )
    return doc


_FIELD_NAMES = frozenset(f.name for f in fields(CheckerConfig))


def _build_config(raw: dict, source: Path) -> CheckerConfig:
    """Map raw YAML dict to a ``CheckerConfig``, ignoring unknown keys."""
    unknown = set(raw) - _FIELD_NAMES
    if unknown:
        logger.warning(
            "Ignoring unknown config keys in %s: %s",
            source,
            ", ".join(sorted(map(str, unknown))),
        )
    kwargs = {key: value for key, value in raw.items() if key in _FIELD_NAMES}

    if "timeout_seconds" in kwargs:
        kwargs["timeout_seconds"] = validate_timeout(kwargs["timeout_seconds"])
    if "workers" in kwargs:
        kwargs["workers"] = validate_workers(kwargs["workers"])
    for key in ("mainnet_roster", "testnet_roster"):
        value = kwargs.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"{key} must be a path string in {source}")

    return CheckerConfig(**kwargs)
