import dataclasses

import pytest

from bootstarter.crud.outcome import Operation, Outcome, OutcomeKind


def test_succeeded_carries_value():
    outcome = Outcome.succeeded(Operation.GET, {"id": 1})

    assert outcome.kind is OutcomeKind.SUCCEEDED
    assert outcome.value == {"id": 1}
    assert outcome.ok
    assert outcome.has_value


def test_succeeded_empty_is_ok_without_value():
    outcome = Outcome.succeeded_empty(Operation.LIST, "No content")

    assert outcome.ok
    assert not outcome.has_value
    assert outcome.value is None
    assert outcome.message == "No content"


@pytest.mark.parametrize(
    "factory,kind",
    [
        (lambda: Outcome.not_found(Operation.GET), OutcomeKind.NOT_FOUND),
        (lambda: Outcome.conflict(Operation.CREATE, "exists"), OutcomeKind.CONFLICT),
        (lambda: Outcome.validation_failed(Operation.GET, "Invalid id!"), OutcomeKind.VALIDATION_FAILED),
        (lambda: Outcome.failed(Operation.DELETE, "boom"), OutcomeKind.FAILED),
        (lambda: Outcome.cancelled(Operation.PAGE), OutcomeKind.CANCELLED),
    ],
)
def test_error_outcomes_are_not_ok(factory, kind):
    outcome = factory()

    assert outcome.kind is kind
    assert not outcome.ok
    assert not outcome.has_value
    assert outcome.message


def test_outcome_is_immutable():
    outcome = Outcome.succeeded(Operation.GET, 1)

    with pytest.raises(dataclasses.FrozenInstanceError):
        outcome.value = 2
