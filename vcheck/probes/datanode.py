"""Data-node probe: TradingDataService.Info over gRPC."""

from vcheck.probes.grpc_base import GRPCProbe


class DataNodeProbe(GRPCProbe):
    """Probe for the data-node gRPC API.

    The data node listens behind the same address as the core node, so
    this probe reuses the roster's gRPC address and calls
    ``datanode.api.v2.TradingDataService/Info``.
    """

    api = "datanode"
    method = "/datanode.api.v2.TradingDataService/Info"
