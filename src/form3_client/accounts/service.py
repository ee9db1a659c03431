"""
Account resource operations.

API docs: https://api-docs.form3.tech/api.html?http#organisation-accounts
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote, urlencode

import requests

from ..cancellation import CancellationToken
from ..schemas.account import Account, AccountList

if TYPE_CHECKING:
    from ..api_client.client import Form3Client

ACCOUNTS_PATH = "organisation/accounts"


class AccountOperations(Protocol):
    """Contract for account resource implementations."""

    def create(self, account: Account, cancellation: CancellationToken | None = None) -> Account:
        """Register an account."""
        ...

    def fetch(self, account_id: str, cancellation: CancellationToken | None = None) -> Account:
        """Get a single account by ID."""
        ...

    def list(
        self,
        page_number: int,
        page_size: int,
        cancellation: CancellationToken | None = None,
    ) -> AccountList:
        """List one page of accounts."""
        ...

    def delete(
        self,
        account_id: str,
        version: int,
        cancellation: CancellationToken | None = None,
    ) -> requests.Response:
        """Delete an account at the given version."""
        ...


def _account_path(account_id: str) -> str:
    return f"{ACCOUNTS_PATH}/{quote(str(account_id), safe='')}"


class AccountsService:
    """
    Account related calls of the Form3 API.

    Each method is a single request; errors from the transport propagate
    unchanged (see ``Form3Client.execute``).
    """

    def __init__(self, client: Form3Client):
        self._client = client

    def create(self, account: Account, cancellation: CancellationToken | None = None) -> Account:
        """
        Register an existing bank account or create a new one.

        The country attribute must be set as a minimum. Depending on the
        country other attributes such as bank_id and bic are mandatory; the
        server checks this.

        Returns:
            The account as stored by the server (id, version, timestamps)
        """
        request = self._client.build_request("POST", ACCOUNTS_PATH, account)
        _, created = self._client.execute(request, Account.from_dict, cancellation)
        return created

    def fetch(self, account_id: str, cancellation: CancellationToken | None = None) -> Account:
        """
        Get a single account by ID.

        An unknown ID surfaces as ``ResponseError`` with status_code 404.
        """
        request = self._client.build_request("GET", _account_path(account_id))
        _, account = self._client.execute(request, Account.from_dict, cancellation)
        return account

    def list(
        self,
        page_number: int,
        page_size: int,
        cancellation: CancellationToken | None = None,
    ) -> AccountList:
        """
        List accounts, one page at a time.

        Page values are passed through untouched; the server decides what
        0 or out-of-range values mean.
        """
        query = urlencode({"page[number]": page_number, "page[size]": page_size})
        request = self._client.build_request("GET", f"{ACCOUNTS_PATH}?{query}")
        _, accounts = self._client.execute(request, AccountList.from_dict, cancellation)
        return accounts

    def delete(
        self,
        account_id: str,
        version: int,
        cancellation: CancellationToken | None = None,
    ) -> requests.Response:
        """
        Delete an account by ID and version.

        The version must match the server's current one, otherwise the server
        rejects the call (typically 404 or 409). The response body is ignored.
        """
        query = urlencode({"version": version})
        request = self._client.build_request("DELETE", f"{_account_path(account_id)}?{query}")
        response, _ = self._client.execute(request, None, cancellation)
        return response
