"""
Test suite for the session lifecycle state machine.

System role: Verification of status transitions
"""

import pytest

from tutordesk.core.exceptions import InvalidTransitionError
from tutordesk.core.lifecycle import (
    can_transition,
    ensure_transition,
    is_student_locked,
    status_after_message,
)
from tutordesk.models.enums import SenderRole, SessionStatus


class TestStatusAfterMessage:
    @pytest.mark.parametrize(
        "current, sender, expected",
        [
            (SessionStatus.ACTIVE, SenderRole.STUDENT, SessionStatus.WAITING_FOR_STAFF),
            (SessionStatus.WAITING_FOR_STAFF, SenderRole.STUDENT, SessionStatus.WAITING_FOR_STAFF),
            (SessionStatus.WAITING_FOR_STAFF, SenderRole.STAFF, SessionStatus.ACTIVE),
            (SessionStatus.ACTIVE, SenderRole.STAFF, SessionStatus.ACTIVE),
            (SessionStatus.ACTIVE, SenderRole.SYSTEM, SessionStatus.ACTIVE),
        ],
    )
    def test_messages_cycle_between_active_and_waiting(self, current, sender, expected) -> None:
        assert status_after_message(current, sender) == expected

    @pytest.mark.parametrize("current", [SessionStatus.CLOSED, SessionStatus.COMPLETED])
    def test_staff_message_keeps_locked_status(self, current) -> None:
        assert status_after_message(current, SenderRole.STAFF) == current

    def test_message_on_deleted_session_rejected(self) -> None:
        with pytest.raises(InvalidTransitionError):
            status_after_message(SessionStatus.DELETED, SenderRole.STAFF)


class TestTransitions:
    @pytest.mark.parametrize("current", [SessionStatus.ACTIVE, SessionStatus.WAITING_FOR_STAFF])
    def test_open_sessions_can_close(self, current) -> None:
        assert can_transition(current, SessionStatus.CLOSED)

    def test_closing_closed_session_is_allowed_noop(self) -> None:
        assert can_transition(SessionStatus.CLOSED, SessionStatus.CLOSED)

    @pytest.mark.parametrize(
        "current",
        [
            SessionStatus.ACTIVE,
            SessionStatus.WAITING_FOR_STAFF,
            SessionStatus.CLOSED,
            SessionStatus.COMPLETED,
        ],
    )
    def test_any_live_status_can_be_deleted(self, current) -> None:
        assert can_transition(current, SessionStatus.DELETED)

    @pytest.mark.parametrize("target", list(SessionStatus))
    def test_deleted_is_terminal(self, target) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(SessionStatus.DELETED, target)

        assert exc_info.value.details["current"] == "DELETED"

    def test_completed_cannot_reopen_or_close(self) -> None:
        assert not can_transition(SessionStatus.COMPLETED, SessionStatus.ACTIVE)
        assert not can_transition(SessionStatus.COMPLETED, SessionStatus.CLOSED)

    def test_closed_cannot_reopen(self) -> None:
        with pytest.raises(InvalidTransitionError):
            ensure_transition(SessionStatus.CLOSED, SessionStatus.ACTIVE)


class TestStudentLock:
    def test_locked_statuses(self) -> None:
        assert is_student_locked(SessionStatus.CLOSED)
        assert is_student_locked(SessionStatus.COMPLETED)
        assert is_student_locked(SessionStatus.DELETED)
        assert not is_student_locked(SessionStatus.ACTIVE)
        assert not is_student_locked(SessionStatus.WAITING_FOR_STAFF)
