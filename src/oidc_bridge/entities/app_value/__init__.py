"""Per-deployment key/value configuration slot."""

from .repository import AppValueRepository
from .table import AppValueTable

__all__ = ["AppValueRepository", "AppValueTable"]
