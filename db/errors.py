"""Error kinds raised or logged by the query layer."""

from __future__ import annotations


class QueryError(Exception):
    """Base class; handlers flatten every subclass to an empty response."""

    kind = "query_error"


class SubmissionFailure(QueryError):
    """The driver rejected the statement (bad SQL, lost connection, ...)."""

    kind = "submission_failure"


class StatementTimeout(QueryError):
    kind = "statement_timeout"


class EmptyResult(QueryError):
    """Zero rows where one was expected. Not raised by the executor."""

    kind = "empty_result"


class AmbiguousResult(QueryError):
    """More than one row where at most one was expected."""

    kind = "ambiguous_result"
