from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
import json


class EventType(str, Enum):
    # Tournament lifecycle
    STATE_CHANGED = "state.changed"

    # Registrations
    TEAM_REGISTERED = "team.registered"
    OWNER_REGISTERED = "owner.registered"
    PLAYER_REGISTERED = "player.registered"

    # Auction floor
    PLAYER_SOLD = "auction.player_sold"
    PLAYER_UNSOLD = "auction.player_unsold"
    PLAYER_RETURNED = "auction.player_returned"
    PLAYER_REVIEWED = "auction.player_reviewed"
    BUDGET_CHANGED = "auction.budget_changed"


@dataclass
class Event:
    """One auction-floor or lifecycle event, as carried on a tournament's live channel."""
    type: EventType
    tournament_id: int
    timestamp: str = None
    data: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"

    def to_dict(self) -> dict:
        return {
            "type": EventType(self.type).value,
            "tournament_id": self.tournament_id,
            "timestamp": self.timestamp,
            "data": self.data
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_json(cls, payload: str) -> "Event":
        raw = json.loads(payload)
        return cls(
            type=EventType(raw["type"]),
            tournament_id=raw["tournament_id"],
            timestamp=raw.get("timestamp"),
            data=raw.get("data") or {}
        )


def state_changed_event(tournament_id: int, from_state: str, to_state: str) -> Event:
    return Event(
        type=EventType.STATE_CHANGED,
        tournament_id=tournament_id,
        data={
            "from_state": from_state,
            "to_state": to_state
        }
    )


def auction_event(tournament_id: int, action: str, player: dict, team: dict = None) -> Event:
    """Build the live-feed event for an auction status change."""
    event_type = {
        "MARK_SOLD": EventType.PLAYER_SOLD,
        "MARK_UNSOLD": EventType.PLAYER_UNSOLD,
        "MARK_AVAILABLE": EventType.PLAYER_RETURNED,
    }.get(action, EventType.PLAYER_REVIEWED)

    return Event(
        type=event_type,
        tournament_id=tournament_id,
        data={
            "action": action,
            "player_id": player.get("id"),
            "player_name": player.get("name"),
            "status": player.get("status"),
            "sold_price": player.get("sold_price"),
            "team": team,
        }
    )


def budget_changed_event(tournament_id: int, team_id: int, remaining_budget: int) -> Event:
    return Event(
        type=EventType.BUDGET_CHANGED,
        tournament_id=tournament_id,
        data={
            "team_id": team_id,
            "remaining_budget": remaining_budget
        }
    )


def registration_event(tournament_id: int, kind: EventType, record_id: int, name: str) -> Event:
    return Event(
        type=kind,
        tournament_id=tournament_id,
        data={
            "id": record_id,
            "name": name
        }
    )
