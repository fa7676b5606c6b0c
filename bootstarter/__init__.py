"""
crud-bootstarter: uniform CRUD orchestration over pluggable persistence
services, with a structural object mapper for entity/DTO projection.
"""

from bootstarter.crud import (
    AsyncCrudOrchestrator,
    CrudOrchestrator,
    Operation,
    Outcome,
    OutcomeKind,
)
from bootstarter.errors import InvalidInputError, InvalidStateError, OperationCancelledError
from bootstarter.mapping import DocumentPatcher, apply_non_null_to, copy, copy_list, parse, parse_list

__version__ = "0.1.0"

__all__ = [
    "AsyncCrudOrchestrator",
    "CrudOrchestrator",
    "Operation",
    "Outcome",
    "OutcomeKind",
    "InvalidInputError",
    "InvalidStateError",
    "OperationCancelledError",
    "DocumentPatcher",
    "apply_non_null_to",
    "copy",
    "copy_list",
    "parse",
    "parse_list",
]
