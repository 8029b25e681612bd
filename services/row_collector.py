from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from models.query import Column, ResultSet, Row


class RowCollector:
    """
    Accumulates row events for one query.

    One collector per query; it is not shared across requests and not
    thread-safe. `finalize()` freezes the result, later rows are an error.
    """

    def __init__(self) -> None:
        self._rows: List[Row] = []
        self._columns: Tuple[str, ...] = ()
        self._result: Optional[ResultSet] = None

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def finalized(self) -> bool:
        return self._result is not None

    def on_row(self, columns: Iterable[Column]) -> None:
        if self._result is not None:
            raise RuntimeError("row received after the result set was finalized")
        cols = list(columns)
        if not self._rows:
            self._columns = tuple(c.name for c in cols)
        self._rows.append(tuple(c.value for c in cols))

    def finalize(self, row_count: Optional[int] = None) -> ResultSet:
        if self._result is None:
            self._result = ResultSet(
                rows=tuple(self._rows),
                columns=self._columns,
                row_count=row_count,
            )
        return self._result
