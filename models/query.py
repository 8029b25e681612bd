from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, NamedTuple, Optional, Tuple


class Column(NamedTuple):
    """One column of one row, as emitted by the driver's row event."""

    name: str
    value: Any


Row = Tuple[Any, ...]


@dataclass(frozen=True)
class Query:
    """
    SQL text plus named bind parameters.

    Caller-supplied values always travel in `params` (`:name` placeholders),
    never in `sql`. `returns_rows=False` marks write statements.
    """

    sql: str
    params: Mapping[str, Any] = field(default_factory=dict)
    returns_rows: bool = True


@dataclass(frozen=True)
class ResultSet:
    """Rows of one query in the order the driver delivered them."""

    rows: Tuple[Row, ...] = ()
    columns: Tuple[str, ...] = ()
    row_count: Optional[int] = None

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def first(self) -> Optional[Row]:
        return self.rows[0] if self.rows else None

    def is_empty(self) -> bool:
        return not self.rows

    def as_lists(self) -> List[List[Any]]:
        """Wire shape of the read endpoints: a list of ordered value lists."""
        return [list(r) for r in self.rows]
