import pytest

from exam_api.models.attempts import Attempt
from exam_api.models.enums import AttemptStatus as S
from exam_api.services.attempt_state import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    transition,
)
from exam_api.services.errors import InvalidStateError


@pytest.mark.parametrize(
    "current,target",
    [
        (S.NOT_STARTED, S.IN_PROGRESS),
        (S.IN_PROGRESS, S.LOCKED),
        (S.LOCKED, S.IN_PROGRESS),
        (S.IN_PROGRESS, S.SUBMITTED),
        (S.SUBMITTED, S.SCORED),
    ],
)
def test_forward_transitions_are_allowed(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.LOCKED, S.SUBMITTED),
        (S.SUBMITTED, S.IN_PROGRESS),
        (S.SCORED, S.SUBMITTED),
        (S.NOT_STARTED, S.LOCKED),
        (S.IN_PROGRESS, S.SCORED),
        (S.ABORTED, S.IN_PROGRESS),
    ],
)
def test_backward_or_skipping_transitions_are_rejected(current, target):
    assert not can_transition(current, target)


def test_abort_is_reachable_from_every_non_terminal_status():
    for status in S:
        if status in TERMINAL_STATUSES:
            assert ALLOWED_TRANSITIONS[status] == frozenset()
        else:
            assert can_transition(status, S.ABORTED)


def test_transition_returns_previous_status():
    attempt = Attempt(id=7, status=S.IN_PROGRESS)

    previous = transition(attempt, S.LOCKED)

    assert previous == S.IN_PROGRESS
    assert attempt.status == S.LOCKED


def test_rejected_transition_leaves_status_untouched():
    attempt = Attempt(id=7, status=S.LOCKED)

    with pytest.raises(InvalidStateError) as exc:
        transition(attempt, S.SUBMITTED)

    assert attempt.status == S.LOCKED
    assert exc.value.code == "invalid_state"
    assert exc.value.current == S.LOCKED
