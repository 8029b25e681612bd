"""
Credential Verifier

Resolves whether a supplied password hash matches the one stored for a
username. Every non-match (unknown user, wrong hash, duplicate rows, database
failure) resolves to False; the cause is only visible in the logs.
"""
from __future__ import annotations

import hmac
import logging
from typing import Any

from db.errors import AmbiguousResult, EmptyResult, QueryError
from models.query import Query, ResultSet
from services.query_executor import QueryExecutor

logger = logging.getLogger(__name__)

STORED_HASH_SQL = """
    SELECT password_hash
    FROM users_pass
    WHERE users_id = (SELECT id FROM users WHERE username = :username)
"""


def hashes_match(stored: Any, supplied: str) -> bool:
    """Exact, case-sensitive comparison; a NULL stored hash never matches."""
    if not isinstance(stored, str) or not isinstance(supplied, str):
        return False
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


class CredentialVerifier:
    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def verify(self, username: str, supplied_hash: str) -> bool:
        try:
            result = await self.executor.execute(
                Query(STORED_HASH_SQL, {"username": username})
            )
            stored = self._stored_hash(result)
        except QueryError as e:
            logger.info("login.rejected", extra={"reason": e.kind})
            return False

        if not hashes_match(stored, supplied_hash):
            logger.info("login.rejected", extra={"reason": "hash_mismatch"})
            return False
        logger.info("login.verify", extra={"outcome": "accepted"})
        return True

    @staticmethod
    def _stored_hash(result: ResultSet) -> Any:
        """The single stored hash; zero or several rows are rejected."""
        if result.is_empty():
            raise EmptyResult("no stored hash for username")
        if len(result) > 1:
            raise AmbiguousResult(f"{len(result)} stored hashes for username")
        row = result.first() or (None,)
        return row[0]
