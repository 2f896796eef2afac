"""Explicit outcome of a single accessor operation.

The CRUD methods of :class:`~tabledao.accessor.TableAccessor` keep the
degraded-success contract (zero or empty on failure). Callers that need to
tell "legitimately zero" apart from "the operation failed" use
:meth:`TableAccessor.run`, which returns an :class:`OperationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

V = TypeVar("V")


class FailureKind(str, Enum):
    """Canonical failure categories reported by :class:`OperationResult`."""

    INTEGRITY = "integrity"
    DATABASE = "database"
    CLOSED = "closed"
    REENTRANT = "reentrant"
    INVALID_ARGUMENT = "invalid_argument"
    MAPPING = "mapping"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class OperationFailure:
    kind: FailureKind
    detail: str
    error: BaseException | None = None


@dataclass(frozen=True, slots=True)
class OperationResult(Generic[V]):
    """``success(value) | failure(kind, detail)`` union."""

    value: V | None = None
    failure: OperationFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def value_or(self, default: V) -> V:
        """Return the value on success, ``default`` otherwise."""

        if self.failure is not None or self.value is None:
            return default
        return self.value

    @classmethod
    def success(cls, value: V) -> OperationResult[V]:
        return cls(value=value)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        detail: str,
        *,
        error: BaseException | None = None,
    ) -> OperationResult[V]:
        return cls(failure=OperationFailure(kind=kind, detail=detail, error=error))
