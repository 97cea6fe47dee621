"""Shared HTTP probing: URL validation, path joining, timed request."""

import logging
import threading
import time
from abc import abstractmethod
from urllib.parse import urlsplit

import requests

from vcheck.probes import Probe, ProbeError, UnexpectedStatusError

logger = logging.getLogger(__name__)


def validate_url(address: str) -> str:
    """Return *address* if it is an absolute http(s) URL.

    Raises:
        ProbeError: With zero duration if *address* is malformed.
    """
    try:
        parts = urlsplit(address)
        # Out-of-range or non-numeric ports only surface on access.
        parts.port
    except ValueError as exc:
        raise ProbeError(f"invalid URL {address!r}: {exc}", 0.0) from exc
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ProbeError(f"invalid URL {address!r}", 0.0)
    return address


def join_url(base: str, path: str) -> str:
    """Join *path* onto *base* with exactly one slash between them."""
    base = validate_url(base)
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


class _Exchange:
    """One request running on a daemon thread, awaited against a deadline.

    requests only bounds each socket operation, so a server that keeps
    trickling bytes never trips its timeout.  The caller waits on the
    thread instead and walks away once the deadline passes; a response
    that arrives after that is closed by the thread itself.
    """

    def __init__(self, send, url: str, timeout: float) -> None:
        self.response: requests.Response | None = None
        self.error: BaseException | None = None
        self._abandoned = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(send, url, timeout), daemon=True
        )

    def _run(self, send, url: str, timeout: float) -> None:
        try:
            response = send(url, timeout)
        except Exception as exc:
            self.error = exc
            return
        if self._abandoned.is_set():
            response.close()
        else:
            self.response = response

    def wait(self, deadline: float) -> bool:
        """Start the request and wait up to *deadline* seconds for it."""
        self._thread.start()
        self._thread.join(deadline)
        if self._thread.is_alive():
            self._abandoned.set()
            return False
        return True


class HTTPProbe(Probe):
    """Base for probes that send one HTTP request and expect a 200.

    The response body is never read; success is decided on the status code
    alone.  The whole exchange, including connecting and receiving the
    headers, has to finish within *timeout* seconds of dispatch.
    """

    @abstractmethod
    def build_url(self, address: str) -> str:
        """Return the request URL for *address*, raising ``ProbeError``."""

    @abstractmethod
    def send(self, url: str, timeout: float) -> requests.Response:
        """Send the canned request to *url*."""

    def check(self, address: str, timeout: float) -> float:
        url = self.build_url(address)

        exchange = _Exchange(self.send, url, timeout)
        t0 = time.monotonic()
        finished = exchange.wait(timeout)
        elapsed = time.monotonic() - t0

        if not finished:
            logger.debug("%s %s still pending after %.3fs", self.api, url, elapsed)
            raise ProbeError(f"deadline exceeded after {timeout:g}s", elapsed)

        if exchange.error is not None:
            if not isinstance(exchange.error, requests.RequestException):
                raise exchange.error
            logger.debug(
                "%s %s failed after %.3fs: %s", self.api, url, elapsed, exchange.error
            )
            raise ProbeError(str(exchange.error), elapsed) from exchange.error

        response = exchange.response
        assert response is not None
        response.close()

        if response.status_code != requests.codes.ok:
            logger.debug("%s %s returned %d", self.api, url, response.status_code)
            raise UnexpectedStatusError(response.status_code, elapsed)

        logger.debug("%s %s answered in %.3fs", self.api, url, elapsed)
        return elapsed
