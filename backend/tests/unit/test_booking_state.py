"""Unit tests for the booking lifecycle state machine."""

import itertools

import pytest

from resort_core.models import BookingStatus, ErrorCode, InvalidStatus, InvalidTransition
from resort_core.services.booking_state import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    assert_bookkeeping_update,
    assert_cancellable,
    assert_modifiable,
    assert_transition,
    can_transition,
    is_terminal,
)

S = BookingStatus


class TestTransitions:
    @pytest.mark.parametrize(
        "current,requested",
        [
            (S.PENDING, S.CONFIRMED),
            (S.PENDING, S.CANCELLED),
            (S.CONFIRMED, S.CHECKED_IN),
            (S.CONFIRMED, S.CANCELLED),
            (S.CONFIRMED, S.NO_SHOW),
            (S.CHECKED_IN, S.CHECKED_OUT),
        ],
    )
    def test_allowed(self, current: BookingStatus, requested: BookingStatus) -> None:
        assert can_transition(current, requested)
        assert_transition(current, requested)

    @pytest.mark.parametrize(
        "current,requested",
        [
            (current, requested)
            for current, requested in itertools.product(S, S)
            if requested not in TRANSITIONS[current]
        ],
    )
    def test_rejected(self, current: BookingStatus, requested: BookingStatus) -> None:
        assert not can_transition(current, requested)
        with pytest.raises(InvalidTransition) as exc_info:
            assert_transition(current, requested)

        assert exc_info.value.code == ErrorCode.INVALID_TRANSITION
        assert exc_info.value.details["current_status"] == current.value

    def test_every_pair_is_covered(self) -> None:
        allowed = sum(len(targets) for targets in TRANSITIONS.values())

        assert allowed == 6
        assert len(list(itertools.product(S, S))) - allowed == 30

    def test_terminal_statuses(self) -> None:
        assert TERMINAL_STATUSES == {S.CHECKED_OUT, S.CANCELLED, S.NO_SHOW}
        assert is_terminal(S.CANCELLED)
        assert not is_terminal(S.CONFIRMED)


class TestCancellable:
    @pytest.mark.parametrize("status", [S.PENDING, S.CONFIRMED])
    def test_cancellable(self, status: BookingStatus) -> None:
        assert_cancellable(status)

    @pytest.mark.parametrize("status", [S.CHECKED_IN, S.CHECKED_OUT, S.CANCELLED, S.NO_SHOW])
    def test_not_cancellable(self, status: BookingStatus) -> None:
        with pytest.raises(InvalidStatus) as exc_info:
            assert_cancellable(status)

        assert exc_info.value.code == ErrorCode.BOOKING_NOT_CANCELLABLE
        assert exc_info.value.details == {"current_status": status.value}


class TestModifiable:
    def test_pending_and_confirmed(self) -> None:
        assert_modifiable(S.PENDING)
        assert_modifiable(S.CONFIRMED)

    @pytest.mark.parametrize("status", [S.CHECKED_IN, S.CHECKED_OUT, S.CANCELLED, S.NO_SHOW])
    def test_others_rejected(self, status: BookingStatus) -> None:
        with pytest.raises(InvalidStatus) as exc_info:
            assert_modifiable(status)

        assert exc_info.value.code == ErrorCode.INVALID_STATUS


class TestBookkeepingUpdate:
    def test_refund_outcome_on_cancelled_booking(self) -> None:
        assert_bookkeeping_update(
            S.CANCELLED, {"refund_status": "succeeded", "payment_status": "refunded"}
        )

    def test_other_fields_on_terminal_booking(self) -> None:
        with pytest.raises(InvalidStatus) as exc_info:
            assert_bookkeeping_update(S.CANCELLED, {"refund_status": "succeeded", "check_in": None})

        assert exc_info.value.details["fields"] == "check_in"

    def test_active_booking_is_unrestricted(self) -> None:
        assert_bookkeeping_update(S.CONFIRMED, {"check_in": None})
