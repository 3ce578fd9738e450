"""
Unit tests for the auction and tournament state machines.
Tests all state transitions, guards, and helper methods.
"""
import pytest
from shared.state_machine import (
    AuctionAction,
    AuctionStateMachine,
    AuctionStatus,
    TournamentStateMachine,
    TournamentState,
    TransitionError,
    min_teams_guard,
    all_matches_complete_guard
)


class TestStateEnums:
    """Tests for the status enums."""

    def test_auction_statuses_exist(self):
        """All auction statuses should exist."""
        assert {s.value for s in AuctionStatus} == {
            "AVAILABLE", "SOLD", "UNSOLD", "REJECTED", "APPROVED"
        }

    def test_tournament_states_exist(self):
        assert TournamentState.UPCOMING.value == "UPCOMING"
        assert TournamentState.REGISTRATION_OPEN.value == "REGISTRATION_OPEN"
        assert TournamentState.REGISTRATION_CLOSED.value == "REGISTRATION_CLOSED"
        assert TournamentState.ONGOING.value == "ONGOING"
        assert TournamentState.COMPLETED.value == "COMPLETED"
        assert TournamentState.CANCELLED.value == "CANCELLED"

    def test_state_is_string_enum(self):
        """States should compare equal to their stored strings."""
        assert AuctionStatus.SOLD == "SOLD"
        assert isinstance(TournamentState.ONGOING.value, str)


class TestTransitionError:
    """Tests for TransitionError exception."""

    def test_error_attributes(self):
        error = TransitionError("SOLD", "SOLD")
        assert error.from_state == "SOLD"
        assert error.to_state == "SOLD"

    def test_default_reason(self):
        """Default reason should name both states."""
        error = TransitionError("UPCOMING", "ONGOING")
        assert "UPCOMING" in str(error)
        assert "ONGOING" in str(error)

    def test_custom_reason(self):
        error = TransitionError("UPCOMING", "ONGOING", "Custom error message")
        assert str(error) == "Custom error message"


class TestFromStateString:
    """Tests for building a machine from a stored status."""

    def test_auction_default_is_available(self):
        sm = AuctionStateMachine()
        assert sm.state == AuctionStatus.AVAILABLE
        assert sm.get_history() == []

    def test_valid_string(self):
        sm = AuctionStateMachine.from_state_string("SOLD")
        assert sm.state == AuctionStatus.SOLD

    def test_invalid_string_defaults(self):
        """Unknown strings fall back to the initial state."""
        assert AuctionStateMachine.from_state_string("bogus").state == AuctionStatus.AVAILABLE
        assert TournamentStateMachine.from_state_string("").state == TournamentState.UPCOMING


class TestAuctionTransitions:
    """Tests for the auction player transition table."""

    @pytest.mark.parametrize("start", [AuctionStatus.AVAILABLE, AuctionStatus.APPROVED, AuctionStatus.UNSOLD])
    def test_sellable_states(self, start):
        sm = AuctionStateMachine(start)
        assert sm.transition(AuctionAction.MARK_SOLD.value) == AuctionStatus.SOLD

    def test_sold_cannot_be_sold_again(self):
        """A sold player must be released before another sale."""
        sm = AuctionStateMachine(AuctionStatus.SOLD)
        with pytest.raises(TransitionError):
            sm.transition(AuctionAction.MARK_SOLD.value)
        assert sm.state == AuctionStatus.SOLD

    def test_sold_can_be_released(self):
        assert AuctionStateMachine(AuctionStatus.SOLD).next_state("MARK_AVAILABLE") == AuctionStatus.AVAILABLE
        assert AuctionStateMachine(AuctionStatus.SOLD).next_state("MARK_UNSOLD") == AuctionStatus.UNSOLD

    def test_rejected_cannot_be_sold(self):
        sm = AuctionStateMachine(AuctionStatus.REJECTED)
        assert sm.can_transition("MARK_SOLD") is False
        assert sm.can_transition("APPROVE") is True

    def test_next_state_does_not_apply(self):
        sm = AuctionStateMachine(AuctionStatus.AVAILABLE)
        assert sm.next_state("REJECT") == AuctionStatus.REJECTED
        assert sm.state == AuctionStatus.AVAILABLE
        assert sm.get_history() == []

    def test_unknown_action(self):
        with pytest.raises(TransitionError) as exc_info:
            AuctionStateMachine().next_state("AUCTION_OFF")
        assert "AUCTION_OFF" in exc_info.value.reason

    def test_only_sold_holds_team(self):
        assert AuctionStateMachine.HOLDS_TEAM == {AuctionStatus.SOLD}


class TestTournamentTransitions:
    """Tests for tournament lifecycle transitions."""

    def test_open_registration(self):
        sm = TournamentStateMachine(TournamentState.UPCOMING)
        new_state = sm.transition("open_registration")
        assert new_state == TournamentState.REGISTRATION_OPEN
        assert sm.state == TournamentState.REGISTRATION_OPEN

    def test_close_and_reopen(self):
        sm = TournamentStateMachine(TournamentState.REGISTRATION_OPEN)
        sm.transition("close_registration")
        assert sm.transition("reopen") == TournamentState.REGISTRATION_OPEN

    def test_start_with_enough_teams(self):
        sm = TournamentStateMachine(TournamentState.REGISTRATION_CLOSED)
        assert sm.transition("start", guard_context={"team_count": 2}) == TournamentState.ONGOING

    def test_start_guard_fails(self):
        """start needs at least two teams."""
        sm = TournamentStateMachine(TournamentState.REGISTRATION_CLOSED)
        with pytest.raises(TransitionError) as exc_info:
            sm.transition("start", guard_context={"team_count": 1})
        assert "Guard condition failed" in str(exc_info.value)
        assert sm.state == TournamentState.REGISTRATION_CLOSED

    def test_complete_requires_finished_matches(self):
        sm = TournamentStateMachine(TournamentState.ONGOING)
        with pytest.raises(TransitionError):
            sm.transition("complete", guard_context={"matches": [{"status": "SCHEDULED"}]})
        assert sm.transition("complete", guard_context={"matches": [{"status": "COMPLETED"}]}) == \
            TournamentState.COMPLETED

    @pytest.mark.parametrize("state", [
        TournamentState.UPCOMING,
        TournamentState.REGISTRATION_OPEN,
        TournamentState.REGISTRATION_CLOSED,
        TournamentState.ONGOING,
    ])
    def test_cancel_from_active_states(self, state):
        assert TournamentStateMachine(state).transition("cancel") == TournamentState.CANCELLED

    def test_no_transitions_from_terminal_states(self):
        for state in (TournamentState.COMPLETED, TournamentState.CANCELLED):
            sm = TournamentStateMachine(state)
            assert sm.allowed_actions == []
            for action in ["open_registration", "start", "complete", "cancel", "reopen"]:
                with pytest.raises(TransitionError):
                    sm.transition(action)


class TestCanPerform:
    """Tests for can_perform method."""

    def test_registration_only_while_open(self):
        assert TournamentStateMachine(TournamentState.REGISTRATION_OPEN).can_perform("register_team") is True
        assert TournamentStateMachine(TournamentState.REGISTRATION_OPEN).can_perform("register_owner") is True
        assert TournamentStateMachine(TournamentState.UPCOMING).can_perform("register_team") is False
        assert TournamentStateMachine(TournamentState.REGISTRATION_CLOSED).can_perform("register_team") is False

    def test_editing(self):
        assert TournamentStateMachine(TournamentState.UPCOMING).can_perform("edit") is True
        assert TournamentStateMachine(TournamentState.ONGOING).can_perform("edit") is False

    def test_match_actions(self):
        assert TournamentStateMachine(TournamentState.REGISTRATION_CLOSED).can_perform("schedule_match") is True
        assert TournamentStateMachine(TournamentState.REGISTRATION_CLOSED).can_perform("record_result") is False
        assert TournamentStateMachine(TournamentState.ONGOING).can_perform("record_result") is True
        assert TournamentStateMachine(TournamentState.COMPLETED).can_perform("record_result") is False


class TestHistory:
    """Tests for transition history tracking."""

    def test_history_records_transitions(self):
        sm = TournamentStateMachine(TournamentState.UPCOMING)
        sm.transition("open_registration")

        history = sm.get_history()
        assert history == [
            (TournamentState.UPCOMING, "open_registration", TournamentState.REGISTRATION_OPEN)
        ]

    def test_history_returns_copy(self):
        sm = TournamentStateMachine(TournamentState.UPCOMING)
        sm.transition("open_registration")

        history = sm.get_history()
        history.clear()

        # Original should still have entry
        assert len(sm.get_history()) == 1

    def test_failed_transition_not_recorded(self):
        sm = TournamentStateMachine(TournamentState.UPCOMING)
        with pytest.raises(TransitionError):
            sm.transition("start")

        assert len(sm.get_history()) == 0


class TestGuards:
    """Tests for guard functions."""

    def test_min_teams_guard(self):
        guard = min_teams_guard(4)
        assert guard({"team_count": 4}) is True
        assert guard({"team_count": 3}) is False
        assert guard({}) is False

    def test_all_matches_complete_guard(self):
        assert all_matches_complete_guard({"matches": [
            {"status": "COMPLETED"},
            {"status": "CANCELLED"},
        ]}) is True
        assert all_matches_complete_guard({"matches": [{"status": "LIVE"}]}) is False

    def test_all_matches_complete_guard_empty(self):
        """No matches means nothing is left to play."""
        assert all_matches_complete_guard({"matches": []}) is True
