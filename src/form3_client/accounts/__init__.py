"""
Account resource operations: create, fetch, list, delete.
"""

from .service import ACCOUNTS_PATH, AccountOperations, AccountsService

__all__ = [
    "ACCOUNTS_PATH",
    "AccountOperations",
    "AccountsService",
]
