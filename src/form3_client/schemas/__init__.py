"""
Typed payloads for the account resource.

Provides:
- AccountAttributes: banking details
- AccountData: one account record
- Account / AccountList: the ``{"data": ...}`` envelopes
"""

from .account import (
    ACCOUNT_TYPE,
    Account,
    AccountAttributes,
    AccountData,
    AccountList,
)

__all__ = [
    "ACCOUNT_TYPE",
    "Account",
    "AccountAttributes",
    "AccountData",
    "AccountList",
]
