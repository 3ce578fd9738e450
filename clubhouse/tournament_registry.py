import logging
from typing import Dict, List, Optional

from sqlalchemy import func

from .errors import NotFound, ValidationFailed
from .models import (
    db, AuctionPlayer, Match, Team, TeamOwner, TeamRegistration, Tournament, TournamentImage,
)
from shared.events import state_changed_event
from shared.pubsub import LiveFeed
from shared.state_machine import TournamentStateMachine, TournamentState

logger = logging.getLogger(__name__)

# Fields that decide how teams and purses were set up; frozen once fixtures exist
STRUCTURAL_FIELDS = ('is_auction_based', 'auction_budget', 'max_teams', 'team_size')


class TournamentRegistry:
    """
    Manages tournament records and lifecycle:
    - Create/update/delete tournaments
    - Move tournaments through registration, play and completion
    - Tournament images
    - Admin dashboard statistics
    """

    def __init__(self, feed: LiveFeed = None):
        self.feed = feed or LiveFeed()

    def create_tournament(self, **values) -> Tournament:
        """Create a new tournament in UPCOMING state."""
        values.setdefault('tournament_type', 'LEAGUE')
        tournament = Tournament(status=TournamentState.UPCOMING.value, **values)
        if tournament.is_auction_based and tournament.tournament_type == 'LEAGUE':
            tournament.tournament_type = 'AUCTION'

        db.session.add(tournament)
        db.session.commit()
        logger.info(f"Tournament {tournament.id} '{tournament.name}' created")
        return tournament

    def get_tournament(self, tournament_id: int) -> Optional[Tournament]:
        return db.session.get(Tournament, tournament_id)

    def require_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            raise NotFound('Tournament not found')
        return tournament

    def list_tournaments(
        self,
        status: str = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Tournament]:
        """List tournaments with optional filtering."""
        query = Tournament.query

        if status:
            query = query.filter_by(status=status)

        query = query.order_by(Tournament.start_date.desc(), Tournament.created_at.desc())
        return query.offset(offset).limit(limit).all()

    def update_tournament(self, tournament_id: int, **values) -> Tournament:
        tournament = self.require_tournament(tournament_id)

        sm = TournamentStateMachine.from_state_string(tournament.status)
        if not sm.can_perform('edit'):
            raise ValidationFailed(f"Cannot edit a tournament in {tournament.status} state")

        has_matches = Match.query.filter_by(tournament_id=tournament.id).first() is not None
        if has_matches:
            locked = [
                field for field in STRUCTURAL_FIELDS
                if field in values and values[field] != getattr(tournament, field)
            ]
            if locked:
                raise ValidationFailed(
                    f"Cannot change {', '.join(locked)} after matches have been scheduled"
                )

        for field, value in values.items():
            setattr(tournament, field, value)
        db.session.commit()
        return tournament

    def delete_tournament(self, tournament_id: int):
        """Delete a tournament with its teams, registrations, auction records and matches."""
        tournament = self.require_tournament(tournament_id)
        db.session.delete(tournament)
        db.session.commit()
        logger.info(f"Tournament {tournament_id} deleted")

    # ==================== Lifecycle ====================

    def team_count(self, tournament: Tournament) -> int:
        if tournament.is_auction_based:
            return TeamOwner.query.filter_by(tournament_id=tournament.id).count()
        return TeamRegistration.query.filter_by(
            tournament_id=tournament.id, status='CONFIRMED'
        ).count()

    def change_state(self, tournament_id: int, action: str) -> Tournament:
        """Apply a lifecycle action (open_registration, start, complete, ...)."""
        tournament = self.require_tournament(tournament_id)
        sm = TournamentStateMachine.from_state_string(tournament.status)

        context = {
            'team_count': self.team_count(tournament),
            'matches': [{'status': m.status} for m in tournament.matches],
        }
        old_state = sm.state.value
        new_state = sm.transition(action, guard_context=context)

        tournament.status = new_state.value
        db.session.commit()

        logger.info(f"Tournament {tournament.id}: {old_state} -> {new_state.value}")
        self.feed.publish(state_changed_event(tournament.id, old_state, new_state.value))
        return tournament

    # ==================== Images ====================

    def list_images(self, tournament_id: int) -> List[TournamentImage]:
        tournament = self.require_tournament(tournament_id)
        return TournamentImage.query.filter_by(tournament_id=tournament.id).order_by(
            TournamentImage.is_primary.desc(), TournamentImage.created_at.desc()
        ).all()

    def add_image(self, tournament_id: int, image_url: str, caption: str = None,
                  is_primary: bool = False) -> TournamentImage:
        tournament = self.require_tournament(tournament_id)
        if is_primary:
            TournamentImage.query.filter_by(tournament_id=tournament.id, is_primary=True).update(
                {'is_primary': False}
            )
        image = TournamentImage(
            tournament_id=tournament.id,
            image_url=image_url,
            caption=caption,
            is_primary=is_primary,
        )
        db.session.add(image)
        db.session.commit()
        return image

    def delete_image(self, tournament_id: int, image_id: int):
        image = TournamentImage.query.filter_by(id=image_id, tournament_id=tournament_id).first()
        if not image:
            raise NotFound('Image not found')
        db.session.delete(image)
        db.session.commit()

    # ==================== Statistics ====================

    def statistics(self) -> Dict:
        by_status = dict(
            db.session.query(Tournament.status, func.count(Tournament.id))
            .group_by(Tournament.status).all()
        )
        auction_by_status = dict(
            db.session.query(AuctionPlayer.status, func.count(AuctionPlayer.id))
            .group_by(AuctionPlayer.status).all()
        )
        auction_spend = db.session.query(
            func.coalesce(func.sum(AuctionPlayer.sold_price), 0)
        ).filter(AuctionPlayer.status == 'SOLD').scalar()

        recent = Tournament.query.order_by(Tournament.created_at.desc()).limit(5).all()

        return {
            'overview': {
                'total_tournaments': sum(by_status.values()),
                'total_teams': Team.query.count(),
                'total_team_owners': TeamOwner.query.count(),
                'total_auction_players': sum(auction_by_status.values()),
                'pending_registrations': TeamRegistration.query.filter_by(status='PENDING').count(),
            },
            'tournaments_by_status': {s.value: by_status.get(s.value, 0) for s in TournamentState},
            'auction_players_by_status': auction_by_status,
            'total_auction_spend': int(auction_spend),
            'recent_tournaments': [
                {'id': t.id, 'name': t.name, 'status': t.status,
                 'start_date': t.start_date.isoformat() if t.start_date else None}
                for t in recent
            ],
        }
