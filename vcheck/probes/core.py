"""Core node probe: CoreService.Statistics over gRPC."""

from vcheck.probes.grpc_base import GRPCProbe


class CoreProbe(GRPCProbe):
    """Probe for the validator's core gRPC API.

    Calls ``vega.api.v1.CoreService/Statistics`` on the roster's gRPC
    address.
    """

    api = "core"
    method = "/vega.api.v1.CoreService/Statistics"
