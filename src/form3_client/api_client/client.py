"""
Form3 API transport implementation.
"""

import json
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Mapping, TypeVar
from urllib.parse import urljoin, urlsplit

import requests
from requests.adapters import HTTPAdapter

from ..accounts.service import AccountsService
from ..cancellation import CancellationError, CancellationToken
from ..config import (
    DEFAULT_TIMEOUT,
    ClientConfig,
    ConfigurationError,
    Form3Error,
    config_from_environment,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

APPLICATION_JSON = "application/json; charset=utf-8"


class RequestConstructionError(Form3Error):
    """Request could not be built; nothing was sent."""

    pass


class TransportError(Form3Error):
    """The request could not be delivered or no response arrived."""

    pass


class ResponseError(Form3Error):
    """API answered with a status code outside 200-299."""

    def __init__(
        self,
        status_code: int,
        method: str,
        url: str,
        message: str = "",
        response: requests.Response | None = None,
    ):
        self.status_code = status_code
        self.method = method
        self.url = url
        self.message = message
        self.response = response
        super().__init__(f"{method} {url}: {status_code} {message}".rstrip())


class DecodeError(Form3Error):
    """Successful response whose body did not match the expected shape.

    The response is kept so callers can still look at status and headers.
    """

    def __init__(self, message: str, response: requests.Response):
        self.message = message
        self.response = response
        super().__init__(f"Failed to decode response from {response.url}: {message}")


def _error_message(body: bytes) -> str:
    """Extract ``error_message`` from an error body.

    Bodies that are not the JSON error envelope are returned as raw text.
    """
    if not body:
        return ""

    raw = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(body)
    except ValueError:
        return raw

    if payload is None:
        return ""
    if isinstance(payload, dict):
        message = payload.get("error_message")
        if message is None:
            return ""
        if isinstance(message, str):
            return message
    return raw


def check_response(response: requests.Response) -> None:
    """
    Raise ``ResponseError`` unless the status code is in the 200 range.

    API error responses are expected to have either no body or a JSON body
    with an ``error_message`` field. Any other body becomes the message as is.
    """
    status = response.status_code
    if 200 <= status <= 299:
        return

    request = response.request
    method = request.method if request is not None else ""
    url = request.url if request is not None else response.url

    raise ResponseError(
        status_code=status,
        method=method or "",
        url=url or "",
        message=_error_message(response.content),
        response=response,
    )


def _discard_response(future: Future) -> None:
    """Close the response of a request whose caller already gave up on it."""
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class Form3Client:
    """
    Client for the Form3 API.

    Features:
    - Build JSON requests relative to the versioned base URL
    - Execute them with cancellation support
    - Map non-2xx responses to ResponseError

    One instance can be shared between threads.
    """

    DEFAULT_TIMEOUT = DEFAULT_TIMEOUT
    # How often an in-flight request checks its cancellation token (seconds)
    CANCEL_POLL_INTERVAL = 0.05

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        verify: bool | str | None = None,
        pool_connections: int = 10,
        pool_maxsize: int = 10,
    ):
        """
        Initialize Form3 client.

        Args:
            base_url: Service URL (e.g., "http://localhost:8080"); "v1/" is appended if missing
            session: Optional preconfigured requests session (TLS, proxies, adapters)
            timeout: Request timeout in seconds
            verify: TLS verification flag or CA bundle path; None keeps the session's own setting
            pool_connections: Connection pools kept by the default adapter
            pool_maxsize: Connections per pool for the default adapter

        Raises:
            ConfigurationError: If base_url is missing or not an http(s) URL
        """
        config = ClientConfig(
            base_url=base_url or "",
            timeout=timeout,
            verify=verify,
            pool_connections=pool_connections,
            pool_maxsize=pool_maxsize,
        )
        config.ensure_valid()

        self._config = config
        self._base_url = config.api_url

        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=config.pool_connections,
                pool_maxsize=config.pool_maxsize,
            )
            session.mount("http://", adapter)
            session.mount("https://", adapter)
            if config.verify is not None:
                session.verify = config.verify
        self.session = session

        self.accounts = AccountsService(self)

    @classmethod
    def from_config(cls, config: ClientConfig, session: requests.Session | None = None) -> "Form3Client":
        return cls(
            config.base_url,
            session,
            timeout=config.timeout,
            verify=config.verify,
            pool_connections=config.pool_connections,
            pool_maxsize=config.pool_maxsize,
        )

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "Form3Client":
        """Create a client from FORM3_BASE_URL using the default session."""
        return cls.from_config(config_from_environment(environ))

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "Form3Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def build_request(self, method: str, path: str, body: Any = None) -> requests.PreparedRequest:
        """
        Create an API request.

        ``path`` is resolved relative to the base URL and must not start with
        a slash. If ``body`` is given it is JSON encoded (objects providing
        ``to_dict()`` are converted first) and sent as the request payload.

        Raises:
            RequestConstructionError: If the path or body is unusable
        """
        if not isinstance(path, str):
            raise RequestConstructionError(f"Path must be a string, got {type(path).__name__}")
        if path.startswith("/"):
            raise RequestConstructionError(f"Path must be relative to the base URL: '{path}'")
        try:
            if urlsplit(path).scheme:
                raise RequestConstructionError(f"Path must not be an absolute URL: '{path}'")
            url = urljoin(self._base_url, path)
        except ValueError as e:
            raise RequestConstructionError(f"Invalid path '{path}': {e}") from e

        headers = {"Accept": APPLICATION_JSON}
        data = None
        if body is not None:
            if hasattr(body, "to_dict"):
                body = body.to_dict()
            try:
                data = json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise RequestConstructionError(f"Request body is not JSON serializable: {e}") from e
            headers["Content-Type"] = APPLICATION_JSON

        try:
            return self.session.prepare_request(
                requests.Request(method=method.upper(), url=url, data=data, headers=headers)
            )
        except (ValueError, requests.exceptions.RequestException) as e:
            raise RequestConstructionError(f"Failed to build {method} {url}: {e}") from e

    def execute(
        self,
        request: requests.PreparedRequest,
        decode: Callable[[Any], T] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> tuple[requests.Response, T | None]:
        """
        Send a request and interpret the response.

        Args:
            request: Request from ``build_request``
            decode: Called with the parsed JSON body of a successful response
            cancellation: Token checked before sending and while in flight

        Returns:
            Tuple of (response, decoded value or None)

        Raises:
            CancellationError: Token fired before or during the call
            TransportError: Network failure unrelated to cancellation
            ResponseError: Status code outside 200-299
            DecodeError: Success status but the body did not decode
        """
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        logger.debug(f"API Request: {request.method} {request.url}")

        response = self._send(request, cancellation)
        try:
            logger.debug(f"Response status: {response.status_code}")
            check_response(response)

            if decode is None:
                return response, None

            try:
                value = decode(json.loads(response.content))
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                raise DecodeError(str(e), response) from e
            return response, value
        finally:
            response.close()

    def _send(
        self,
        request: requests.PreparedRequest,
        cancellation: CancellationToken | None,
    ) -> requests.Response:
        timeout = self._config.timeout
        if cancellation is not None:
            remaining = cancellation.remaining()
            if remaining is not None and (timeout is None or remaining < timeout):
                # urllib3 rejects a zero timeout; the poll loop below reports the expiry.
                timeout = max(remaining, 0.001)

        kwargs: dict[str, Any] = {"timeout": timeout}
        if not self._owns_session and self._config.verify is not None:
            kwargs["verify"] = self._config.verify

        if cancellation is None:
            try:
                return self.session.send(request, **kwargs)
            except requests.exceptions.RequestException as e:
                raise TransportError(f"{request.method} {request.url} failed: {e}") from e

        future = self._submit(request, kwargs)
        while True:
            try:
                return future.result(timeout=self.CANCEL_POLL_INTERVAL)
            except FuturesTimeout:
                if cancellation.cancelled:
                    future.cancel()
                    future.add_done_callback(_discard_response)
                    raise CancellationError(cancellation.reason) from None
            except requests.exceptions.RequestException as e:
                # The token is the more useful explanation when both apply.
                if cancellation.cancelled:
                    raise CancellationError(cancellation.reason) from e
                raise TransportError(f"{request.method} {request.url} failed: {e}") from e

    def _submit(self, request: requests.PreparedRequest, kwargs: dict[str, Any]) -> Future:
        """
        Send on a daemon thread of its own and return a future for the response.

        A caller that gives up leaves the send running until the server answers
        or the timeout fires; with ``timeout=None`` that may be never. Such a
        thread holds one connection but does not delay later requests.
        """
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.session.send(request, **kwargs))
            except BaseException as e:
                future.set_exception(e)

        threading.Thread(target=run, name="form3-request", daemon=True).start()
        return future


__all__ = [
    "APPLICATION_JSON",
    "CancellationError",
    "ConfigurationError",
    "DecodeError",
    "Form3Client",
    "Form3Error",
    "RequestConstructionError",
    "ResponseError",
    "TransportError",
    "check_response",
]
