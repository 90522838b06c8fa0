"""HTTP server exposing the watchdog store as JSON plus a static page."""

from __future__ import annotations

import errno
import json
import logging
import threading
import time
from collections import deque
from dataclasses import asdict
from functools import partial
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, ClassVar, Deque, Optional

from kernel_watchdog.core.config import CONFIG, SecurityConfig, VERSION
from kernel_watchdog.runtime import Watchdog

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"
MAX_PORT_ATTEMPTS = 10

logger = logging.getLogger(__name__)


def current_payload(watchdog: Watchdog) -> dict[str, Any]:
    data = asdict(watchdog.store.snapshot())
    data["alert_count"] = watchdog.store.alert_count()
    data["last_scan"] = watchdog.auditor.last_scan
    data["version"] = VERSION
    return data


def diagnostics_payload(watchdog: Watchdog) -> dict[str, Any]:
    data = watchdog.assistant.result().to_dict()
    data["busy"] = watchdog.assistant.busy
    data["collector"] = watchdog.collector.diagnostics()
    data["kmsg"] = watchdog.auditor.reader.state.value
    return data


class WatchdogRequestHandler(SimpleHTTPRequestHandler):
    """Serves the static dashboard and the JSON API."""

    server_version: ClassVar[str] = f"KernelWatchdog/{VERSION}"
    _rate_lock: ClassVar[threading.Lock] = threading.Lock()
    _request_log: ClassVar[dict[str, Deque[float]]] = {}

    def __init__(
        self,
        *args: Any,
        watchdog: Watchdog,
        security_config: SecurityConfig = CONFIG.security,
        **kwargs: Any,
    ) -> None:
        self._watchdog = watchdog
        self._security = security_config
        self._response_origin: Optional[str] = None
        super().__init__(*args, directory=str(STATIC_DIR), **kwargs)

    def do_GET(self) -> None:  # noqa: N802
        self._response_origin = None
        routes = {
            "/api/current": lambda: current_payload(self._watchdog),
            "/api/history": self._watchdog.store.history,
            "/api/alerts": lambda: [entry.to_dict() for entry in self._watchdog.store.alerts()],
            "/api/diagnostics": lambda: diagnostics_payload(self._watchdog),
        }
        route = routes.get(self.path)
        if route is None:
            super().do_GET()
            return
        if not self._prepare_api_request():
            return
        self._send_json(route())

    def do_POST(self) -> None:  # noqa: N802
        self._response_origin = None
        if self.path == "/api/scan":
            if not self._prepare_api_request():
                return
            admitted = self._watchdog.scan_now()
            self._send_json({"admitted": admitted, "alert_count": self._watchdog.store.alert_count()})
            return
        if self.path == "/api/analyze":
            if not self._prepare_api_request():
                return
            accepted = self._watchdog.analyze_now()
            status = HTTPStatus.ACCEPTED if accepted else HTTPStatus.CONFLICT
            self._send_json({"accepted": accepted, "busy": self._watchdog.assistant.busy}, status)
            return
        self.send_error(HTTPStatus.NOT_FOUND)

    def do_OPTIONS(self) -> None:  # noqa: N802
        allowed, origin = self._resolve_origin()
        if not allowed:
            return
        self._response_origin = origin
        self.send_response(HTTPStatus.NO_CONTENT)
        self._apply_cors_headers(origin)
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Max-Age", "600")
        self.end_headers()

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A003 - parity with BaseHTTPRequestHandler
        logger.debug("%s - %s", self.client_address[0], format % args)

    def _send_json(self, payload: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self._apply_cors_headers(self._response_origin)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _prepare_api_request(self) -> bool:
        allowed, origin = self._resolve_origin()
        if not allowed:
            return False
        self._response_origin = origin
        return self._enforce_rate_limit()

    def _resolve_origin(self) -> tuple[bool, Optional[str]]:
        origin = self.headers.get("Origin")
        allowed = self._security.allowed_origins
        if origin:
            if "*" in allowed:
                return True, "*"
            if origin in allowed:
                return True, origin
            self._respond_forbidden("Origin no autorizado")
            return False, None
        if "*" in allowed:
            return True, "*"
        return True, None

    def _apply_cors_headers(self, origin: Optional[str]) -> None:
        if origin:
            self.send_header("Access-Control-Allow-Origin", origin)
        self.send_header("Vary", "Origin")

    def _enforce_rate_limit(self) -> bool:
        if not self._security.enable_rate_limit:
            return True
        client_ip = self.client_address[0]
        now = time.monotonic()
        window = max(1, self._security.rate_limit_window_seconds)
        max_requests = max(1, self._security.rate_limit_requests)
        with self._rate_lock:
            self._prune_request_log(now, window)
            bucket = self._request_log.setdefault(client_ip, deque())
            while bucket and now - bucket[0] > window:
                bucket.popleft()
            if len(bucket) >= max_requests:
                self._too_many_requests()
                return False
            bucket.append(now)
        return True

    @classmethod
    def _prune_request_log(cls, now: float, window: float) -> None:
        """Drop clients with no request inside the window. Caller holds ``_rate_lock``."""

        stale = [ip for ip, bucket in cls._request_log.items() if not bucket or now - bucket[-1] > window]
        for client_ip in stale:
            del cls._request_log[client_ip]

    def _too_many_requests(self) -> None:
        retry_after = str(self._security.rate_limit_window_seconds)
        body = json.dumps({"error": "rate_limit", "retry_after": retry_after}).encode("utf-8")
        logger.warning("Rate limit excedido para %s", self.client_address[0])
        self.send_response(HTTPStatus.TOO_MANY_REQUESTS)
        self._apply_cors_headers(self._response_origin)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Retry-After", retry_after)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _respond_forbidden(self, message: str) -> None:
        logger.warning("Solicitud bloqueada por CORS desde %s: %s", self.client_address[0], message)
        body = json.dumps({"error": "forbidden", "message": message}).encode("utf-8")
        self.send_response(HTTPStatus.FORBIDDEN)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class WatchdogServer:
    """Wraps the HTTP server around a running :class:`Watchdog`.

    When the requested port is busy the next ones are tried.
    """

    def __init__(
        self,
        watchdog: Watchdog,
        host: str = "127.0.0.1",
        port: int = 8080,
        security_config: SecurityConfig | None = None,
    ) -> None:
        self._watchdog = watchdog
        handler = partial(
            WatchdogRequestHandler,
            watchdog=watchdog,
            security_config=security_config or watchdog.config.security,
        )

        for attempt in range(MAX_PORT_ATTEMPTS):
            try:
                self._httpd = ThreadingHTTPServer((host, port + attempt), handler)
            except OSError as exc:
                if exc.errno == errno.EADDRINUSE and attempt < MAX_PORT_ATTEMPTS - 1:
                    continue
                raise
            break
        self.host, self.port = self._httpd.server_address[:2]

    @property
    def watchdog(self) -> Watchdog:
        return self._watchdog

    def serve_forever(self) -> None:
        self._watchdog.start()
        try:
            self._httpd.serve_forever()
        finally:
            self.close()

    def shutdown(self) -> None:
        """Stop ``serve_forever`` from another thread."""

        self._httpd.shutdown()

    def close(self) -> None:
        try:
            self._httpd.server_close()
        except OSError as exc:
            logger.warning("Error al cerrar el socket: %s", exc)
        finally:
            self._watchdog.stop()

    def server_address(self) -> str:
        return f"http://{self.host}:{self.port}"


def create_app(
    host: str = "127.0.0.1",
    port: int = 8080,
    watchdog: Watchdog | None = None,
) -> WatchdogServer:
    """Factory helper used by the CLI and tests."""

    return WatchdogServer(watchdog or Watchdog(), host=host, port=port)
