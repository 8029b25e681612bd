"""
Database configuration

Reads the connection URL and statement timeout from environment variables.
"""
import math
import os
from typing import Optional
from urllib.parse import quote


def get_database_url() -> str:
    """
    Return the `databases` URL, or "" when nothing is configured.

    DATABASE_URL wins; otherwise the URL is assembled from the DB_* parts.
    """
    url = (os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url

    server = (os.getenv("DB_SERVER") or "").strip()
    if not server:
        return ""

    scheme = (os.getenv("DB_SCHEME") or "postgresql").strip()
    database = (os.getenv("DB_DATABASE") or "").strip()
    user = os.getenv("DB_USER_NAME") or ""
    password = os.getenv("DB_PASSWORD") or ""
    port = (os.getenv("DB_PORT") or "").strip()

    auth = ""
    if user:
        auth = quote(user, safe="")
        if password:
            auth += ":" + quote(password, safe="")
        auth += "@"

    host = f"{server}:{port}" if port else server
    return f"{scheme}://{auth}{host}/{database}"


def get_statement_timeout() -> Optional[float]:
    """Seconds to wait for a statement; None (wait forever) when unset or invalid."""
    try:
        timeout = float(os.getenv("DB_STATEMENT_TIMEOUT", ""))
    except Exception:
        return None
    if not math.isfinite(timeout) or timeout <= 0:
        return None
    return timeout
