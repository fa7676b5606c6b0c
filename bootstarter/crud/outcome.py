"""
Outcome envelope returned by every orchestrator operation.

An ``Outcome`` is immutable and produced exactly once per call. Transport
adapters translate its ``kind`` into their own status vocabulary (see
``bootstarter.api.router``).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    SUCCEEDED_EMPTY = "succeeded_empty"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION_FAILED = "validation_failed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Operation(str, Enum):
    CREATE = "create"
    GET = "get"
    GET_BY_UUID = "get_by_uuid"
    LIST = "list"
    PAGE = "page"
    UPDATE = "update"
    PATCH = "patch"
    DELETE = "delete"


_SUCCESS_KINDS = frozenset({OutcomeKind.SUCCEEDED, OutcomeKind.SUCCEEDED_EMPTY})


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    operation: Operation
    value: Any = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind in _SUCCESS_KINDS

    @property
    def has_value(self) -> bool:
        return self.kind is OutcomeKind.SUCCEEDED

    @classmethod
    def succeeded(cls, operation: Operation, value: Any) -> "Outcome":
        return cls(OutcomeKind.SUCCEEDED, operation, value=value)

    @classmethod
    def succeeded_empty(cls, operation: Operation, message: Optional[str] = None) -> "Outcome":
        return cls(OutcomeKind.SUCCEEDED_EMPTY, operation, message=message)

    @classmethod
    def not_found(cls, operation: Operation, message: str = "Not found") -> "Outcome":
        return cls(OutcomeKind.NOT_FOUND, operation, message=message)

    @classmethod
    def conflict(cls, operation: Operation, message: str) -> "Outcome":
        return cls(OutcomeKind.CONFLICT, operation, message=message)

    @classmethod
    def validation_failed(cls, operation: Operation, message: str) -> "Outcome":
        return cls(OutcomeKind.VALIDATION_FAILED, operation, message=message)

    @classmethod
    def failed(cls, operation: Operation, message: str) -> "Outcome":
        return cls(OutcomeKind.FAILED, operation, message=message)

    @classmethod
    def cancelled(cls, operation: Operation, message: str = "Operation cancelled") -> "Outcome":
        return cls(OutcomeKind.CANCELLED, operation, message=message)


__all__ = ["Outcome", "OutcomeKind", "Operation"]
