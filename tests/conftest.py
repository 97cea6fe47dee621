"""Shared fixtures: loopback HTTP and gRPC servers, fake probes."""

import socket
import threading
import time
from collections.abc import Callable, Generator
from concurrent import futures
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch

import grpc
import pytest

from vcheck.models import API_ORDER, ValidatorTarget
from vcheck.probes import Probe, ProbeError

CORE_METHOD = "/vega.api.v1.CoreService/Statistics"
DATANODE_METHOD = "/datanode.api.v2.TradingDataService/Info"


@pytest.fixture(autouse=True)
def _no_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep requests and grpc from routing loopback traffic through a proxy."""
    for var in (
        "HTTP_PROXY",
        "HTTPS_PROXY",
        "ALL_PROXY",
        "http_proxy",
        "https_proxy",
        "all_proxy",
        "grpc_proxy",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")


# -- HTTP --------------------------------------------------------------------


class _CannedHandler(BaseHTTPRequestHandler):
    """Answers from ``server.routes``: ``(method, path) -> (status, delay)``."""

    def _respond(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.server.requests.append(  # type: ignore[attr-defined]
            {
                "method": self.command,
                "path": self.path,
                "content_type": self.headers.get("Content-Type"),
                "body": body,
            }
        )
        status, delay = self.server.routes.get(  # type: ignore[attr-defined]
            (self.command, self.path), (404, 0.0)
        )
        if delay:
            time.sleep(delay)

        payload = b"{}"
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _respond
    do_POST = _respond

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        pass


@pytest.fixture
def http_server() -> Generator[ThreadingHTTPServer, None, None]:
    """Threaded HTTP server on a random loopback port.

    Set ``http_server.routes[("GET", "/path")] = (status, delay)``; unknown
    routes get a 404.  ``http_server.url`` is the base URL and
    ``http_server.requests`` records what was received.
    """
    server = ThreadingHTTPServer(("127.0.0.1", 0), _CannedHandler)
    server.routes = {}  # type: ignore[attr-defined]
    server.requests = []  # type: ignore[attr-defined]
    server.url = f"http://127.0.0.1:{server.server_address[1]}"  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


# -- gRPC --------------------------------------------------------------------

GrpcBehaviour = Callable[[bytes, grpc.ServicerContext], bytes]


def respond_after(delay: float) -> GrpcBehaviour:
    """gRPC handler that sleeps *delay* seconds then returns an empty message."""

    def _handler(request: bytes, context: grpc.ServicerContext) -> bytes:
        time.sleep(delay)
        return b""

    return _handler


@pytest.fixture
def grpc_server() -> Generator[Callable[[dict[str, GrpcBehaviour]], str], None, None]:
    """Factory starting a plaintext gRPC server with generic byte handlers.

    Call it with ``{"/pkg.Service/Method": handler}`` and it returns the
    ``host:port`` address.  Methods not listed answer UNIMPLEMENTED.
    """
    servers: list[grpc.Server] = []

    def _start(handlers: dict[str, GrpcBehaviour]) -> str:
        by_service: dict[str, dict[str, grpc.RpcMethodHandler]] = {}
        for path, fn in handlers.items():
            service, method = path.lstrip("/").rsplit("/", 1)
            by_service.setdefault(service, {})[method] = (
                grpc.unary_unary_rpc_method_handler(fn)
            )

        server = grpc.server(futures.ThreadPoolExecutor(max_workers=4))
        server.add_generic_rpc_handlers(
            tuple(
                grpc.method_handlers_generic_handler(service, methods)
                for service, methods in by_service.items()
            )
        )
        port = server.add_insecure_port("127.0.0.1:0")
        server.start()
        servers.append(server)
        return f"127.0.0.1:{port}"

    yield _start
    for server in servers:
        server.stop(None)


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def dribbling_server() -> Generator[str, None, None]:
    """Loopback server that starts a 200 response and never finishes it.

    After the status line it sends one header line every 0.2s, so no single
    socket read ever waits long.  Yields the base URL.
    """
    stop = threading.Event()
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen()
    listener.settimeout(0.1)

    def _trickle(conn: socket.socket) -> None:
        with conn:
            try:
                conn.recv(65536)
                conn.sendall(b"HTTP/1.1 200 OK\r\n")
                while not stop.wait(0.2):
                    conn.sendall(b"X-Padding: 1\r\n")
            except OSError:
                pass

    def _accept() -> None:
        while not stop.is_set():
            try:
                conn, _ = listener.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            threading.Thread(target=_trickle, args=(conn,), daemon=True).start()

    thread = threading.Thread(target=_accept, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{listener.getsockname()[1]}"
    stop.set()
    thread.join(1.0)
    listener.close()


# -- Fakes -------------------------------------------------------------------


class FakeProbe(Probe):
    """Probe that returns a canned duration or raises a canned error."""

    def __init__(self, api: str, duration: float = 0.01, error: str | None = None) -> None:
        self.api = api  # type: ignore[assignment]
        self.duration = duration
        self.error = error
        self.calls: list[tuple[str, float]] = []

    def address_for(self, target: ValidatorTarget) -> str:
        return target.name

    def check(self, address: str, timeout: float) -> float:
        self.calls.append((address, timeout))
        if self.error is not None:
            raise ProbeError(self.error, self.duration)
        return self.duration


def make_target(name: str = "n01", **overrides: str) -> ValidatorTarget:
    """Create a ValidatorTarget with placeholder addresses, overridable."""
    defaults = {
        "name": name,
        "grpc_address": "127.0.0.1:3007",
        "rest_address": "http://127.0.0.1:3008",
        "graphql_address": "http://127.0.0.1:3008/graphql",
    }
    defaults.update(overrides)
    return ValidatorTarget(**defaults)


@pytest.fixture
def fake_probes() -> Generator[list[FakeProbe], None, None]:
    """Replace the registry's probes with successful fakes, one per api."""
    probes = [FakeProbe(api) for api in API_ORDER]
    with patch("vcheck.aggregator.get_probes", return_value=probes):
        yield probes
