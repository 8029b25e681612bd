"""
Statement driver

The query layer talks to the database through one event protocol:

    submit(query, on_row, on_done, on_error)

`on_row(columns)` fires once per returned row, then exactly one of
`on_done(row_count)` or `on_error(exc)`. `DatabaseDriver` implements it on top
of a `databases.Database`, running statements one at a time on a single
worker task so the shared connection is the explicit serialization point.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from db.errors import SubmissionFailure
from models.query import Column, Query

logger = logging.getLogger(__name__)

RowCallback = Callable[[List[Column]], None]
DoneCallback = Callable[[Optional[int]], None]
ErrorCallback = Callable[[BaseException], None]


class StatementDriver:
    """Interface shared by the real driver and test fakes."""

    def submit(
        self,
        query: Query,
        on_row: RowCallback,
        on_done: DoneCallback,
        on_error: ErrorCallback,
    ) -> None:
        raise NotImplementedError

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None


@dataclass
class _Statement:
    query: Query
    on_row: RowCallback
    on_done: DoneCallback
    on_error: ErrorCallback


def _record_columns(record: Any) -> List[Column]:
    mapping = getattr(record, "_mapping", record)
    return [Column(str(name), value) for name, value in mapping.items()]


class DatabaseDriver(StatementDriver):
    def __init__(self, database: Any):
        self.database = database
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        await self.database.connect()
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(self._queue))
        url = getattr(self.database, "url", "")
        logger.info(
            "driver.started",
            extra={"database": getattr(url, "obscure_password", None) or str(url)},
        )

    async def stop(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass

        queue, self._queue = self._queue, None
        pending = 0
        while queue is not None and not queue.empty():
            stmt = queue.get_nowait()
            stmt.on_error(SubmissionFailure("driver stopped"))
            pending += 1

        await self.database.disconnect()
        logger.info("driver.stopped", extra={"failed_pending": pending})

    def submit(
        self,
        query: Query,
        on_row: RowCallback,
        on_done: DoneCallback,
        on_error: ErrorCallback,
    ) -> None:
        if self._queue is None or not self.running:
            on_error(SubmissionFailure("driver not started"))
            return
        self._queue.put_nowait(_Statement(query, on_row, on_done, on_error))

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            stmt = await queue.get()
            try:
                await self._run_statement(stmt)
            except asyncio.CancelledError:
                stmt.on_error(SubmissionFailure("driver stopped"))
                raise
            finally:
                queue.task_done()

    async def _run_statement(self, stmt: _Statement) -> None:
        query = stmt.query
        values = dict(query.params)
        try:
            if query.returns_rows:
                count = 0
                async for record in self.database.iterate(query.sql, values):
                    stmt.on_row(_record_columns(record))
                    count += 1
                row_count: Optional[int] = count
            else:
                await self.database.execute(query.sql, values)
                row_count = None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            stmt.on_error(exc)
            return
        stmt.on_done(row_count)
