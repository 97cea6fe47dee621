"""Data models: ValidatorTarget, ProbeOutcome, ValidatorResult dataclasses."""

from dataclasses import dataclass, field
from typing import Literal

ApiKind = Literal["core", "datanode", "rest", "gql"]

# Fixed order in which probes run and outcomes are reported.
API_ORDER: tuple[ApiKind, ...] = ("core", "datanode", "rest", "gql")

TLS_PREFIX = "tls://"


@dataclass(frozen=True)
class ValidatorTarget:
    """A validator from the roster and the addresses of its four APIs.

    Attributes:
        name: Validator name as it appears in the roster.
        grpc_address: ``host:port`` shared by the core and data-node gRPC
            services, optionally prefixed with ``tls://``.
        rest_address: Base URL of the REST gateway.
        graphql_address: Full URL of the GraphQL endpoint.
    """

    name: str
    grpc_address: str
    rest_address: str
    graphql_address: str


@dataclass
class ProbeOutcome:
    """Outcome of a single probe.

    Attributes:
        api: Which API was probed.
        duration: Elapsed wall time in seconds.  Zero when the probe failed
            before the request was dispatched.
        error: Human-readable failure message, or ``None`` on success.
    """

    api: ApiKind
    duration: float
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ValidatorResult:
    """All probe outcomes for one validator, in ``API_ORDER``."""

    name: str
    outcomes: list[ProbeOutcome] = field(default_factory=list)

    def outcome(self, api: ApiKind) -> ProbeOutcome:
        """Return the outcome recorded for *api*.

        Raises:
            KeyError: If no outcome exists for *api*.
        """
        for outcome in self.outcomes:
            if outcome.api == api:
                return outcome
        raise KeyError(api)

    @property
    def failures(self) -> list[ProbeOutcome]:
        return [o for o in self.outcomes if not o.ok]


ResultSet = list[ValidatorResult]


def split_tls(address: str) -> tuple[str, bool]:
    """Strip the ``tls://`` marker from *address*.

    Returns:
        ``(network_address, use_tls)``.
    """
    if address.startswith(TLS_PREFIX):
        return address[len(TLS_PREFIX):], True
    return address, False
