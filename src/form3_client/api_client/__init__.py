"""
Form3 API transport.

Provides:
- Build JSON requests relative to the versioned base URL
- Execute them with cancellation support
- Map non-2xx responses to ResponseError, keeping method/URL/status/message

Treats every failure as an exception; nothing is retried.
"""

from .client import (
    APPLICATION_JSON,
    CancellationError,
    ConfigurationError,
    DecodeError,
    Form3Client,
    Form3Error,
    RequestConstructionError,
    ResponseError,
    TransportError,
    check_response,
)

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
