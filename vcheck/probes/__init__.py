"""Probe registry, abstract Probe base class and probe errors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from vcheck.models import API_ORDER

if TYPE_CHECKING:
    from vcheck.models import ApiKind, ValidatorTarget


class ProbeError(Exception):
    """A probe failed to get a successful response.

    Attributes:
        duration: Seconds elapsed from dispatch until the failure.  Zero if
            the probe failed before dispatching its request.
    """

    def __init__(self, message: str, duration: float = 0.0) -> None:
        super().__init__(message)
        self.duration = duration


class UnexpectedStatusError(ProbeError):
    """An HTTP endpoint answered with a status other than 200."""

    def __init__(self, status_code: int, duration: float) -> None:
        super().__init__(f"unexpected status {status_code}", duration)
        self.status_code = status_code


class Probe(ABC):
    """Abstract base class for all endpoint probes.

    Each API a validator exposes has a concrete subclass that knows which
    roster address to use and how to issue its single canned request.
    """

    api: ApiKind

    @abstractmethod
    def address_for(self, target: ValidatorTarget) -> str:
        """Return the address of *target* this probe talks to."""

    @abstractmethod
    def check(self, address: str, timeout: float) -> float:
        """Issue one request to *address*, bounded by *timeout* seconds.

        Returns:
            Seconds elapsed between dispatch and a successful response.

        Raises:
            ProbeError: On any failure, carrying the elapsed time.
        """

    def run(self, target: ValidatorTarget, timeout: float) -> float:
        """Probe the matching endpoint of *target*."""
        return self.check(self.address_for(target), timeout)


def _build_registry() -> dict[str, type[Probe]]:
    """Build the api-kind → Probe-class mapping.

    Imports are deferred to avoid circular imports and to keep the
    registry definition in one place.
    """
    from vcheck.probes.core import CoreProbe
    from vcheck.probes.datanode import DataNodeProbe
    from vcheck.probes.graphql import GraphQLProbe
    from vcheck.probes.rest import RESTProbe

    return {
        "core": CoreProbe,
        "datanode": DataNodeProbe,
        "rest": RESTProbe,
        "gql": GraphQLProbe,
    }


def get_probe(api: str) -> Probe:
    """Look up and instantiate the probe for *api*.

    Raises:
        ValueError: If *api* is not in the registry.
    """
    registry = _build_registry()
    probe_cls = registry.get(api)
    if probe_cls is None:
        known = ", ".join(API_ORDER)
        raise ValueError(f"Unknown api {api!r}. Known apis: {known}")
    return probe_cls()


def get_probes() -> list[Probe]:
    """Return one probe per api kind, in the fixed reporting order."""
    return [get_probe(api) for api in API_ORDER]


def registered_apis() -> list[str]:
    """Return the registered api kinds in reporting order."""
    registry = _build_registry()
    return [api for api in API_ORDER if api in registry]
