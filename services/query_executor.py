"""
Query Executor

Bridges the driver's event callbacks (rows, completion, error) into one
awaitable result. Each call resolves exactly once: to a ResultSet when the
completion event fires, or to a raised QueryError when the error event fires
first. Retrying is left to callers.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from db.driver import StatementDriver
from db.errors import StatementTimeout, SubmissionFailure
from models.query import Column, Query, ResultSet
from services.row_collector import RowCollector

logger = logging.getLogger(__name__)


class _PendingQuery:
    """One in-flight query: its collector and the one-shot future it settles."""

    def __init__(self, query: Query, future: asyncio.Future):
        self.query = query
        self.future = future
        self.collector = RowCollector()
        self.settled = False

    def on_row(self, columns: List[Column]) -> None:
        if self.settled:
            self._late("row")
            return
        self.collector.on_row(columns)

    def on_done(self, row_count: Optional[int]) -> None:
        if self.settled:
            self._late("done")
            return
        self.settled = True
        if not self.future.done():
            self.future.set_result(self.collector.finalize(row_count))

    def on_error(self, exc: BaseException) -> None:
        if self.settled:
            self._late("error")
            return
        self.settled = True
        if isinstance(exc, SubmissionFailure):
            failure = exc
        else:
            failure = SubmissionFailure(str(exc) or exc.__class__.__name__)
            failure.__cause__ = exc
        if not self.future.done():
            self.future.set_exception(failure)

    def _late(self, event: str) -> None:
        logger.debug("query.late_event", extra={"event": event, "sql": self.query.sql})


class QueryExecutor:
    def __init__(self, driver: StatementDriver, timeout: Optional[float] = None):
        self.driver = driver
        self.timeout = timeout

    async def execute(self, query: Query) -> ResultSet:
        """
        Submit `query` and wait for its outcome.

        Returns the (possibly empty) ResultSet. Raises SubmissionFailure when
        the driver reports an error, StatementTimeout when a timeout is set
        and exceeded.
        """
        loop = asyncio.get_running_loop()
        pending = _PendingQuery(query, loop.create_future())

        logger.debug("query.submitted", extra={"sql": query.sql})
        try:
            self.driver.submit(query, pending.on_row, pending.on_done, pending.on_error)
        except Exception as exc:
            pending.on_error(exc)

        try:
            if self.timeout is None:
                return await pending.future
            return await asyncio.wait_for(pending.future, self.timeout)
        except asyncio.TimeoutError as exc:
            pending.settled = True
            logger.warning("query.timeout", extra={"sql": query.sql, "timeout": self.timeout})
            raise StatementTimeout(f"statement exceeded {self.timeout}s") from exc
        except SubmissionFailure as exc:
            logger.warning("query.failed", extra={"sql": query.sql, "reason": str(exc)})
            raise
