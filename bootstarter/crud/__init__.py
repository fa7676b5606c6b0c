"""CRUD orchestration: outcome envelope plus sync and async orchestrators."""

from .async_orchestrator import AsyncCrudOrchestrator
from .orchestrator import BaseCrudOrchestrator, CrudOrchestrator
from .outcome import Operation, Outcome, OutcomeKind

__all__ = [
    "AsyncCrudOrchestrator",
    "BaseCrudOrchestrator",
    "CrudOrchestrator",
    "Operation",
    "Outcome",
    "OutcomeKind",
]
