"""
HTTP exposition server.

Serves the metrics path through prometheus_client's WSGI app and a small
landing page on "/". Requests are handled in parallel threads, each one
running its own collection pass.
"""

import html
import socket
import threading
from collections.abc import Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app as make_metrics_app
from prometheus_client.exposition import ThreadingWSGIServer

from .const import APP_NAME, APP_VERSION
from .logging import Loggers

logger = Loggers.server()

StartResponse = Callable[..., object]

INDEX_TEMPLATE = """<html>
<head><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p><a href="{path}">Metrics</a></p>
<p>Version {version}</p>
</body>
</html>
"""


def render_index(metrics_path: str) -> bytes:
    """Render the landing page linking to the metrics path."""
    return INDEX_TEMPLATE.format(
        title=html.escape(APP_NAME),
        path=html.escape(metrics_path, quote=True),
        version=html.escape(APP_VERSION),
    ).encode("utf-8")


def make_wsgi_app(registry: CollectorRegistry, metrics_path: str = "/metrics"):
    """
    Build the exporter WSGI application.

    Args:
        registry: Registry holding the exporter collector
        metrics_path: URL path serving the exposition

    Returns:
        WSGI callable
    """
    metrics_app = make_metrics_app(registry)
    index = render_index(metrics_path)

    def app(environ: dict, start_response: StartResponse) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/") or "/"

        if path == metrics_path:
            return metrics_app(environ, start_response)

        if path == "/":
            start_response(
                "200 OK",
                [("Content-Type", "text/html; charset=utf-8"), ("Content-Length", str(len(index)))],
            )
            return [index]

        body = b"404 page not found\n"
        start_response(
            "404 Not Found",
            [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(body)))],
        )
        return [body]

    return app


class ExporterWSGIServer(ThreadingWSGIServer):
    """Thread-per-request WSGI server."""

    daemon_threads = True


class ExporterWSGIServerV6(ExporterWSGIServer):
    address_family = socket.AF_INET6


class ExporterWSGIServerDualStack(ExporterWSGIServerV6):
    """Binds "::" and also accepts IPv4 clients (v4-mapped addresses)."""

    def server_bind(self) -> None:
        self.socket.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        super().server_bind()


class LoggingRequestHandler(WSGIRequestHandler):
    """Request handler writing access lines to the server logger."""

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"{self.address_string()} - {format % args}")


class MetricsServer:
    """
    Threaded HTTP server for the exporter.

    Args:
        host: Address to bind ("" for all interfaces)
        port: TCP port
        app: WSGI application
    """

    def __init__(self, host: str, port: int, app):
        self.host = host
        self.port = port
        self.app = app
        self._server = None
        self._thread: threading.Thread | None = None

    def _bind(self, host: str, server_class: type[ExporterWSGIServer]):
        return make_server(
            host,
            self.port,
            self.app,
            server_class=server_class,
            handler_class=LoggingRequestHandler,
        )

    def start(self) -> None:
        """
        Bind the socket and serve in a background thread.

        An empty host listens on all interfaces, IPv6 and IPv4 together
        where the kernel supports it, otherwise IPv4 only.
        """
        if not self.host:
            try:
                self._server = self._bind("::", ExporterWSGIServerDualStack)
            except OSError as e:
                logger.debug(f"Dual-stack bind unavailable, listening on IPv4 only: {e}")
                self._server = self._bind("", ExporterWSGIServer)
        elif ":" in self.host:
            self._server = self._bind(self.host, ExporterWSGIServerV6)
        else:
            self._server = self._bind(self.host, ExporterWSGIServer)

        # Port 0 binds an ephemeral port
        self.port = self._server.server_port
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="metrics-server",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Listening on {self.url}")

    def stop(self) -> None:
        """Stop serving and close the socket."""
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None
        logger.info("HTTP server stopped")

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def url(self) -> str:
        host = self.host or "0.0.0.0"
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{self.port}"
