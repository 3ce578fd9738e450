import logging
from typing import List

from .errors import NotFound, ValidationFailed
from .models import db, Match, Team, Tournament
from shared.state_machine import TournamentStateMachine

logger = logging.getLogger(__name__)


class MatchSchedule:
    """Fixtures and results for a tournament's registered teams."""

    def _tournament(self, tournament_id: int) -> Tournament:
        tournament = db.session.get(Tournament, tournament_id)
        if not tournament:
            raise NotFound('Tournament not found')
        return tournament

    def _team(self, tournament: Tournament, team_id: int) -> Team:
        team = Team.query.filter_by(id=team_id, tournament_id=tournament.id).first()
        if not team:
            raise ValidationFailed(f"Team {team_id} is not registered in this tournament")
        return team

    def get_match(self, match_id: int) -> Match:
        match = db.session.get(Match, match_id)
        if not match:
            raise NotFound('Match not found')
        return match

    def list_matches(self, tournament_id: int, status: str = None) -> List[Match]:
        tournament = self._tournament(tournament_id)
        query = Match.query.filter_by(tournament_id=tournament.id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(Match.match_date.asc(), Match.id.asc()).all()

    def schedule(self, tournament_id: int, home_team_id: int, away_team_id: int,
                 match_date=None, venue: str = None) -> Match:
        tournament = self._tournament(tournament_id)

        sm = TournamentStateMachine.from_state_string(tournament.status)
        if not sm.can_perform('schedule_match'):
            raise ValidationFailed(f"Cannot schedule matches in {tournament.status} state")

        if home_team_id == away_team_id:
            raise ValidationFailed('A team cannot play itself')
        home = self._team(tournament, home_team_id)
        away = self._team(tournament, away_team_id)

        match = Match(
            tournament_id=tournament.id,
            home_team_id=home.id,
            away_team_id=away.id,
            match_date=match_date,
            venue=venue or tournament.venue,
        )
        db.session.add(match)
        db.session.commit()
        logger.info(f"Match {match.id} scheduled: {home.name} vs {away.name}")
        return match

    def update(self, match_id: int, **values) -> Match:
        match = self.get_match(match_id)

        recording = values.get('status') == 'COMPLETED' or values.get('winner_team_id') is not None
        if recording:
            sm = TournamentStateMachine.from_state_string(match.tournament.status)
            if not sm.can_perform('record_result'):
                raise ValidationFailed(
                    f"Cannot record results in {match.tournament.status} state"
                )

        winner = values.get('winner_team_id')
        if winner is not None and winner not in (match.home_team_id, match.away_team_id):
            raise ValidationFailed('Winner must be one of the two teams in the match')

        for field, value in values.items():
            setattr(match, field, value)
        db.session.commit()
        return match

    def delete(self, match_id: int):
        match = self.get_match(match_id)
        db.session.delete(match)
        db.session.commit()
