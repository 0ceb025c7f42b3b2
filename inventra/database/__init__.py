from inventra.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from inventra.database.engine import async_session, engine
from inventra.database.session import get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
]
