from datetime import datetime, timezone

import pytest

from app.domain.errors import InvalidTransitionError, ValidationError
from app.domain.lifecycle import (
    QUOTATION_TRANSITIONS,
    QuotationStatus,
    QuoteRequestStatus,
    is_terminal,
    status_side_effects,
    validate_request_transition,
    validate_transition,
)

S = QuotationStatus
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

ALLOWED = {
    (S.DRAFT, S.SENT),
    (S.DRAFT, S.DRAFT),
    (S.SENT, S.ACCEPTED),
    (S.SENT, S.REJECTED),
    (S.SENT, S.EXPIRED),
    (S.SENT, S.SENT),
    (S.ACCEPTED, S.CONVERTED),
}


@pytest.mark.parametrize("current", list(S))
@pytest.mark.parametrize("target", list(S))
def test_transition_matrix(current, target):
    if (current, target) in ALLOWED:
        assert validate_transition(current.value, target.value) is target
    else:
        with pytest.raises(InvalidTransitionError) as exc:
            validate_transition(current.value, target.value)
        assert exc.value.current == current.value
        assert exc.value.target == target.value
        assert exc.value.meta == {"current": current.value, "target": target.value}
        assert exc.value.status_code == 409


def test_table_matches_allowed_set():
    flat = {(cur, nxt) for cur, targets in QUOTATION_TRANSITIONS.items() for nxt in targets}
    assert flat == ALLOWED


@pytest.mark.parametrize("status", [S.REJECTED, S.EXPIRED, S.CONVERTED])
def test_terminal_states(status):
    assert is_terminal(status)


@pytest.mark.parametrize("status", [S.DRAFT, S.SENT, S.ACCEPTED])
def test_open_states(status):
    assert not is_terminal(status)


def test_status_is_case_insensitive():
    assert validate_transition("draft", "sent") is S.SENT


def test_unknown_status_is_validation_error():
    with pytest.raises(ValidationError) as exc:
        validate_transition("DRAFT", "ARCHIVED")
    assert exc.value.code == "UNKNOWN_STATUS"


def test_side_effects_sent_records_approver():
    fields = status_side_effects(S.SENT, NOW, actor_id="u1")
    assert fields == {"status": "SENT", "sent_at": NOW, "approved_by": "u1"}


def test_side_effects_rejected_has_no_approver():
    assert status_side_effects(S.REJECTED, NOW, actor_id="u1") == {"status": "REJECTED", "rejected_at": NOW}


def test_side_effects_converted_keeps_existing_acceptance():
    earlier = datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert status_side_effects(S.CONVERTED, NOW, accepted_at=earlier)["accepted_at"] == earlier
    assert status_side_effects(S.CONVERTED, NOW)["accepted_at"] == NOW


def test_side_effects_without_actor():
    assert "approved_by" not in status_side_effects(S.ACCEPTED, NOW)


R = QuoteRequestStatus


@pytest.mark.parametrize(
    "current,target",
    [
        (R.PENDING, R.SENT),
        (R.PENDING, R.RECEIVED),
        (R.PENDING, R.DECLINED),
        (R.SENT, R.RECEIVED),
        (R.SENT, R.EXPIRED),
        (R.RECEIVED, R.RECEIVED),
    ],
)
def test_request_transitions_allowed(current, target):
    assert validate_request_transition(current, target) is target


@pytest.mark.parametrize(
    "current,target",
    [
        (R.SENT, R.PENDING),
        (R.RECEIVED, R.DECLINED),
        (R.DECLINED, R.SENT),
        (R.EXPIRED, R.RECEIVED),
    ],
)
def test_request_transitions_rejected(current, target):
    with pytest.raises(InvalidTransitionError):
        validate_request_transition(current, target)
