from .claims import Claims, ClaimValue

__all__ = ["Claims", "ClaimValue"]
