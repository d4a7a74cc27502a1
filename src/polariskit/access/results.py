"""
Result types produced by the access aggregator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, Optional, Tuple, TypeVar

from polariskit.models.grants import Grant

T = TypeVar('T')


class QueryStatus(str, Enum):
    """Lifecycle of an aggregated query."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """
    Outcome of an aggregated query.

    A PARTIAL result carries usable data plus the sub-queries that failed and
    were excluded. An ERROR result carries no data.
    """

    status: QueryStatus
    data: Optional[T] = None
    errors: Tuple[str, ...] = ()

    @classmethod
    def idle(cls) -> "QueryResult[T]":
        return cls(QueryStatus.IDLE)

    @classmethod
    def loading(cls) -> "QueryResult[T]":
        return cls(QueryStatus.LOADING)

    @classmethod
    def success(cls, data: T, errors: Iterable[str] = ()) -> "QueryResult[T]":
        errors = tuple(errors)
        status = QueryStatus.PARTIAL if errors else QueryStatus.SUCCESS
        return cls(status, data, errors)

    @classmethod
    def failure(cls, error: str) -> "QueryResult[T]":
        return cls(QueryStatus.ERROR, None, (error,))

    @property
    def ok(self) -> bool:
        return self.status in (QueryStatus.SUCCESS, QueryStatus.PARTIAL)

    @property
    def partial(self) -> bool:
        return self.status == QueryStatus.PARTIAL

    @property
    def settled(self) -> bool:
        return self.status not in (QueryStatus.IDLE, QueryStatus.LOADING)


@dataclass(frozen=True)
class GrantPath:
    """One way a principal reaches a grant."""
    principal_role: str
    catalog_role: str


@dataclass(frozen=True)
class EffectiveGrant:
    """A grant a principal holds, with every role path that confers it."""
    catalog: str
    grant: Grant
    paths: Tuple[GrantPath, ...]
