"""
Form3 API client.

A small, typed client for the organisation accounts resource: it builds JSON
requests, decodes ``{"data": ...}`` envelopes into dataclasses and turns
non-2xx responses into ``ResponseError``.

    client = Form3Client.from_environment()
    created = client.accounts.create(account)
    fetched = client.accounts.fetch(created.data.id)
    page = client.accounts.list(0, 100)
    client.accounts.delete(created.data.id, created.data.version)
"""

from .accounts import ACCOUNTS_PATH, AccountOperations, AccountsService
from .api_client import (
    APPLICATION_JSON,
    DecodeError,
    Form3Client,
    RequestConstructionError,
    ResponseError,
    TransportError,
    check_response,
)
from .cancellation import CancellationError, CancellationToken
from .config import (
    ClientConfig,
    ConfigurationError,
    Form3Error,
    config_from_environment,
    load_config,
    normalize_base_url,
)
from .schemas import Account, AccountAttributes, AccountData, AccountList

__version__ = "0.1.0"

__all__ = [
    "ACCOUNTS_PATH",
    "APPLICATION_JSON",
    "Account",
    "AccountAttributes",
    "AccountData",
    "AccountList",
    "AccountOperations",
    "AccountsService",
    "CancellationError",
    "CancellationToken",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "Form3Client",
    "Form3Error",
    "RequestConstructionError",
    "ResponseError",
    "TransportError",
    "check_response",
    "config_from_environment",
    "load_config",
    "normalize_base_url",
]
