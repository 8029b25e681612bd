from __future__ import annotations

from typing import Any, AsyncIterator, Mapping, Optional

from databases import Database

from db.config import get_database_url


class DatabaseNotConfigured(RuntimeError):
    pass


class _NullDatabase:
    """
    Stand-in used when no database URL is configured.

    Connecting succeeds so the app can boot; every statement fails, which the
    driver reports as a submission error.
    """

    url = ""

    async def connect(self) -> None:  # noqa: D401
        return None

    async def disconnect(self) -> None:  # noqa: D401
        return None

    async def execute(self, _query: str, _values: Optional[Mapping[str, Any]] = None) -> Any:
        raise DatabaseNotConfigured("DATABASE_URL / DB_SERVER is not configured")

    async def iterate(self, _query: str, _values: Optional[Mapping[str, Any]] = None) -> AsyncIterator[Any]:
        raise DatabaseNotConfigured("DATABASE_URL / DB_SERVER is not configured")
        yield  # pragma: no cover


def build_database(url: Optional[str] = None) -> Any:
    """
    Build the single `databases.Database` shared by every request.

    `databases` binds a connection to the calling task, so statements issued
    from the driver's one worker task all run on one connection.
    """
    url = (url if url is not None else get_database_url()).strip()
    if not url:
        return _NullDatabase()
    return Database(url)
