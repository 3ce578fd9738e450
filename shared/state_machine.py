from enum import Enum
from typing import Optional, Callable, List
from dataclasses import dataclass


class AuctionStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"
    UNSOLD = "UNSOLD"
    REJECTED = "REJECTED"
    APPROVED = "APPROVED"


class AuctionAction(str, Enum):
    MARK_SOLD = "MARK_SOLD"
    MARK_UNSOLD = "MARK_UNSOLD"
    MARK_AVAILABLE = "MARK_AVAILABLE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class TournamentState(str, Enum):
    UPCOMING = "UPCOMING"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: Enum
    to_state: Enum
    action: str
    guard: Optional[Callable] = None


class StateMachine:
    """
    Table-driven state machine. Subclasses provide TRANSITIONS and the
    state enum; every call site goes through transition() so the table is
    the only place the allowed moves are written down.
    """
    STATES = None
    INITIAL_STATE = None
    TRANSITIONS: List[Transition] = []

    def __init__(self, initial_state=None):
        self._state = initial_state or self.INITIAL_STATE
        self._history: List[tuple] = []

    @property
    def state(self):
        return self._state

    @property
    def allowed_actions(self) -> List[str]:
        return [t.action for t in self.TRANSITIONS if t.from_state == self._state]

    def can_transition(self, action: str) -> bool:
        return self._find(action) is not None

    def next_state(self, action: str):
        """Return the state `action` would lead to without applying it."""
        t = self._find(action)
        if t is None:
            raise TransitionError(
                self._state.value,
                "unknown",
                f"No valid transition for action '{action}' from state '{self._state.value}'"
            )
        return t.to_state

    def transition(self, action: str, guard_context: dict = None):
        t = self._find(action)
        if t is None:
            raise TransitionError(
                self._state.value,
                "unknown",
                f"No valid transition for action '{action}' from state '{self._state.value}'"
            )

        if t.guard and guard_context is not None:
            if not t.guard(guard_context):
                raise TransitionError(
                    self._state.value,
                    t.to_state.value,
                    f"Guard condition failed for action '{action}'"
                )

        old_state = self._state
        self._state = t.to_state
        self._history.append((old_state, action, self._state))
        return self._state

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    def _find(self, action: str) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                return t
        return None

    @classmethod
    def from_state_string(cls, state_str: str):
        try:
            state = cls.STATES(state_str)
        except ValueError:
            state = cls.INITIAL_STATE
        return cls(initial_state=state)


class AuctionStateMachine(StateMachine):
    STATES = AuctionStatus
    INITIAL_STATE = AuctionStatus.AVAILABLE

    TRANSITIONS = [
        Transition(AuctionStatus.AVAILABLE, AuctionStatus.SOLD, AuctionAction.MARK_SOLD.value),
        Transition(AuctionStatus.AVAILABLE, AuctionStatus.UNSOLD, AuctionAction.MARK_UNSOLD.value),
        Transition(AuctionStatus.AVAILABLE, AuctionStatus.AVAILABLE, AuctionAction.MARK_AVAILABLE.value),
        Transition(AuctionStatus.AVAILABLE, AuctionStatus.APPROVED, AuctionAction.APPROVE.value),
        Transition(AuctionStatus.AVAILABLE, AuctionStatus.REJECTED, AuctionAction.REJECT.value),

        Transition(AuctionStatus.APPROVED, AuctionStatus.SOLD, AuctionAction.MARK_SOLD.value),
        Transition(AuctionStatus.APPROVED, AuctionStatus.UNSOLD, AuctionAction.MARK_UNSOLD.value),
        Transition(AuctionStatus.APPROVED, AuctionStatus.AVAILABLE, AuctionAction.MARK_AVAILABLE.value),
        Transition(AuctionStatus.APPROVED, AuctionStatus.REJECTED, AuctionAction.REJECT.value),

        # A sold player goes back to the pool before it can be sold again
        Transition(AuctionStatus.SOLD, AuctionStatus.UNSOLD, AuctionAction.MARK_UNSOLD.value),
        Transition(AuctionStatus.SOLD, AuctionStatus.AVAILABLE, AuctionAction.MARK_AVAILABLE.value),

        Transition(AuctionStatus.UNSOLD, AuctionStatus.SOLD, AuctionAction.MARK_SOLD.value),
        Transition(AuctionStatus.UNSOLD, AuctionStatus.AVAILABLE, AuctionAction.MARK_AVAILABLE.value),

        Transition(AuctionStatus.REJECTED, AuctionStatus.AVAILABLE, AuctionAction.MARK_AVAILABLE.value),
        Transition(AuctionStatus.REJECTED, AuctionStatus.APPROVED, AuctionAction.APPROVE.value),
    ]

    # Statuses in which the player holds a team slot and a price
    HOLDS_TEAM = {AuctionStatus.SOLD}


def min_teams_guard(min_count: int = 2):
    def guard(context: dict) -> bool:
        return context.get("team_count", 0) >= min_count
    return guard


def all_matches_complete_guard(context: dict) -> bool:
    matches = context.get("matches", [])
    return all(m.get("status") in ["COMPLETED", "CANCELLED"] for m in matches)


class TournamentStateMachine(StateMachine):
    STATES = TournamentState
    INITIAL_STATE = TournamentState.UPCOMING

    TRANSITIONS = [
        Transition(TournamentState.UPCOMING, TournamentState.REGISTRATION_OPEN, "open_registration"),
        Transition(TournamentState.UPCOMING, TournamentState.CANCELLED, "cancel"),
        Transition(TournamentState.REGISTRATION_OPEN, TournamentState.REGISTRATION_CLOSED, "close_registration"),
        Transition(TournamentState.REGISTRATION_OPEN, TournamentState.CANCELLED, "cancel"),
        Transition(TournamentState.REGISTRATION_CLOSED, TournamentState.REGISTRATION_OPEN, "reopen"),
        Transition(TournamentState.REGISTRATION_CLOSED, TournamentState.ONGOING, "start", min_teams_guard(2)),
        Transition(TournamentState.REGISTRATION_CLOSED, TournamentState.CANCELLED, "cancel"),
        Transition(TournamentState.ONGOING, TournamentState.COMPLETED, "complete", all_matches_complete_guard),
        Transition(TournamentState.ONGOING, TournamentState.CANCELLED, "cancel"),
    ]

    ALLOWED_ACTIONS = {
        TournamentState.UPCOMING: ["edit"],
        TournamentState.REGISTRATION_OPEN: ["edit", "register_team", "register_owner"],
        TournamentState.REGISTRATION_CLOSED: ["edit", "schedule_match"],
        TournamentState.ONGOING: ["schedule_match", "record_result"],
        TournamentState.COMPLETED: [],
        TournamentState.CANCELLED: [],
    }

    def can_perform(self, action: str) -> bool:
        return action in self.ALLOWED_ACTIONS.get(self._state, [])
