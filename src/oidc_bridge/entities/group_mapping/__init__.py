"""External group UUID to local group mappings."""

from .entity import GroupMapping
from .repository import GroupMappingRepository
from .table import GroupMappingTable

__all__ = ["GroupMapping", "GroupMappingRepository", "GroupMappingTable"]
