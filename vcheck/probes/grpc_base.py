"""Shared gRPC probing: TLS selection, channel dialing, timed unary call."""

import logging
import time

import grpc

from vcheck.models import ValidatorTarget, split_tls
from vcheck.probes import Probe, ProbeError

logger = logging.getLogger(__name__)

# Both canned requests are empty protobuf messages, which encode to no bytes.
EMPTY_REQUEST = b""


def dial(address: str) -> grpc.Channel:
    """Open a channel to *address*.

    A ``tls://`` prefix selects TLS with the system trust store; anything
    else is dialed in plaintext.

    Raises:
        ProbeError: With zero duration if no channel can be created.
    """
    target, use_tls = split_tls(address)
    if not target:
        raise ProbeError("empty gRPC address", 0.0)

    if use_tls:
        logger.debug("Dialing %s with TLS", target)
        return grpc.secure_channel(target, grpc.ssl_channel_credentials())
    logger.debug("Dialing %s in plaintext", target)
    return grpc.insecure_channel(target)


def describe_rpc_error(exc: grpc.RpcError) -> str:
    """Render a ``grpc.RpcError`` as ``rpc error: code = ... desc = ...``."""
    code = exc.code() if isinstance(exc, grpc.Call) else None
    details = exc.details() if isinstance(exc, grpc.Call) else None
    name = code.name if code is not None else "UNKNOWN"
    return f"rpc error: code = {name} desc = {details or ''}".rstrip()


class GRPCProbe(Probe):
    """Base for probes that call one unary method on the validator's gRPC port.

    Subclasses set ``api`` and ``method`` (the full ``/package.Service/Method``
    path).  The method is invoked with an empty request and the response
    bytes are discarded.
    """

    method: str

    def address_for(self, target: ValidatorTarget) -> str:
        return target.grpc_address

    def check(self, address: str, timeout: float) -> float:
        channel = dial(address)
        with channel:
            call = channel.unary_unary(self.method)
            t0 = time.monotonic()
            try:
                call(EMPTY_REQUEST, timeout=timeout)
            except grpc.RpcError as exc:
                elapsed = time.monotonic() - t0
                message = describe_rpc_error(exc)
                logger.debug(
                    "%s %s failed after %.3fs: %s", self.method, address, elapsed, message
                )
                raise ProbeError(message, elapsed) from exc
            elapsed = time.monotonic() - t0

        logger.debug("%s %s answered in %.3fs", self.method, address, elapsed)
        return elapsed
