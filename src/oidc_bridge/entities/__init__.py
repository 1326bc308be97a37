"""Entities organized by business concept.

Each entity package holds:
- entity.py: domain model returned to callers
- table.py: database persistence model
- repository.py: data access layer
"""

from .account import (
    Account,
    AccountTable,
    GroupMembershipTable,
    LocalGroupTable,
    SqlAccountStore,
    SqlGroupStore,
)
from .app_value import AppValueRepository, AppValueTable
from .group_mapping import GroupMapping, GroupMappingRepository, GroupMappingTable
from .identity import Identity, IdentityRepository, IdentityTable

__all__ = [
    "Account",
    "AccountTable",
    "AppValueRepository",
    "AppValueTable",
    "GroupMapping",
    "GroupMappingRepository",
    "GroupMappingTable",
    "GroupMembershipTable",
    "Identity",
    "IdentityRepository",
    "IdentityTable",
    "LocalGroupTable",
    "SqlAccountStore",
    "SqlGroupStore",
]
