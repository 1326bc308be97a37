"""Reference account and group stores.

A host application normally supplies its own user and group management.
These SQL backed stores let the bridge run standalone and back the admin CLI.
"""

from .entity import Account
from .repository import SqlAccountStore, SqlGroup, SqlGroupStore
from .table import AccountTable, GroupMembershipTable, LocalGroupTable

__all__ = [
    "Account",
    "AccountTable",
    "GroupMembershipTable",
    "LocalGroupTable",
    "SqlAccountStore",
    "SqlGroup",
    "SqlGroupStore",
]
