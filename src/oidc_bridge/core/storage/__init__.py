from .session_storage import AuthSession, InMemorySessionStorage, SessionStorage

__all__ = ["AuthSession", "InMemorySessionStorage", "SessionStorage"]
