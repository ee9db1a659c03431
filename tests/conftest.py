"""Test fixtures and utilities."""

import json
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

import pytest

from form3_client import Account, AccountAttributes, AccountData, Form3Client

ACCOUNT_ID = "ad27e265-9605-4b4b-a0e5-3003ea9cc4dc"
ORGANISATION_ID = "eb0bd6f5-c3f5-44b2-b677-acd23cdde73c"

# Wire form of a GB account as the API returns it
SAMPLE_ACCOUNT_JSON = {
    "data": {
        "type": "accounts",
        "id": ACCOUNT_ID,
        "organisation_id": ORGANISATION_ID,
        "version": 0,
        "attributes": {
            "country": "GB",
            "base_currency": "GBP",
            "bank_id": "400300",
            "bank_id_code": "GBDSC",
            "bic": "NWBKGB22",
            "name": ["Samantha Holder"],
            "alternative_names": ["Sam Holder"],
            "account_classification": "Personal",
            "secondary_identification": "A1B2C3D4",
            "status": "confirmed",
        },
        "created_on": "2024-11-18T09:12:44.123Z",
        "modified_on": "2024-11-18T09:12:44.123Z",
    }
}


def make_account(account_id: str = ACCOUNT_ID, version: int = 0) -> Account:
    """GB account as a client would send it (no server timestamps)."""
    return Account(
        data=AccountData(
            id=account_id,
            organisation_id=ORGANISATION_ID,
            version=version,
            attributes=AccountAttributes(
                country="GB",
                base_currency="GBP",
                bank_id="400300",
                bank_id_code="GBDSC",
                bic="NWBKGB22",
                name=["Samantha Holder"],
                alternative_names=["Sam Holder"],
                account_classification="Personal",
                secondary_identification="A1B2C3D4",
            ),
        )
    )


@pytest.fixture
def sample_account() -> Account:
    return make_account()


@pytest.fixture
def account_factory() -> Callable[..., Account]:
    return make_account


@pytest.fixture
def sample_account_json() -> dict:
    return json.loads(json.dumps(SAMPLE_ACCOUNT_JSON))


@dataclass
class RecordedRequest:
    """What the stub server saw for one request."""

    method: str
    path: str
    query: dict[str, list[str]]
    headers: dict[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)


# A route handler gets the recorded request and returns (status, body).
# Bodies may be bytes, str, JSON-able objects or None for an empty body.
RouteHandler = Callable[[RecordedRequest], tuple[int, Any]]


class _StubHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    block_on_close = False


@dataclass
class StubAPIServer:
    """Ephemeral HTTP server bound to a random local port.

    Routes are matched on method and path only; the query string is
    available on the recorded request.
    """

    routes: dict[tuple[str, str], RouteHandler] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    _httpd: _StubHTTPServer | None = None
    _thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}"

    def route(self, method: str, path: str, handler: RouteHandler) -> None:
        self.routes[(method, path)] = handler

    def respond(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.route(method, path, lambda _request: (status, body))

    def start(self) -> None:
        self._httpd = _StubHTTPServer(("127.0.0.1", 0), _handler_for(self))
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)


def _encode_body(body: Any) -> bytes:
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


def _handler_for(stub: StubAPIServer) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def _dispatch(self) -> None:
            parsed = urlsplit(self.path)
            length = int(self.headers.get("Content-Length") or 0)
            recorded = RecordedRequest(
                method=self.command,
                path=parsed.path,
                query=parse_qs(parsed.query, keep_blank_values=True),
                headers=dict(self.headers.items()),
                body=self.rfile.read(length) if length else b"",
            )
            stub.requests.append(recorded)

            handler = stub.routes.get((self.command, parsed.path))
            if handler is None:
                status, body = 404, "404 page not found\n"
            else:
                status, body = handler(recorded)

            payload = _encode_body(body)
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if payload:
                self.wfile.write(payload)

        do_GET = _dispatch
        do_POST = _dispatch
        do_DELETE = _dispatch

        def log_message(self, format, *args):  # noqa: A002
            pass

    return Handler


@pytest.fixture
def api_server():
    """A fresh stub server per test, torn down afterwards."""
    server = StubAPIServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def server_client(api_server):
    """Client pointed at this test's stub server."""
    client = Form3Client(api_server.url, timeout=5)
    try:
        yield client
    finally:
        client.close()
