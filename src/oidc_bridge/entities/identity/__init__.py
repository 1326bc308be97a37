"""Legacy external user to local account mappings."""

from .entity import Identity
from .repository import IdentityRepository
from .table import IdentityTable

__all__ = ["Identity", "IdentityRepository", "IdentityTable"]
