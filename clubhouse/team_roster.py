import logging
from typing import List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from .errors import Conflict, NotFound, ValidationFailed
from .models import db, Match, Player, Team, normalize_email, normalize_key, normalize_phone

logger = logging.getLogger(__name__)


class TeamRoster:
    """
    Admin maintenance of registered teams and their players after intake:
    - Edit or remove a team
    - Add, edit and remove individual players

    Players beyond the tournament's team size are kept as substitutes.
    """

    def get_team(self, team_id: int) -> Team:
        team = db.session.get(Team, team_id)
        if not team:
            raise NotFound('Team not found')
        return team

    def _lock_team(self, team_id: int) -> Team:
        team = (
            db.session.query(Team)
            .filter(Team.id == team_id)
            .with_for_update()
            .first()
        )
        if not team:
            raise NotFound('Team not found')
        return team

    @staticmethod
    def _require_values(values: dict, fields):
        empty = [field for field in fields if field in values and values[field] is None]
        if empty:
            raise ValidationFailed(f"{', '.join(empty)} cannot be empty")

    def update_team(self, team_id: int, **values) -> Team:
        team = self.get_team(team_id)
        self._require_values(values, ('name', 'captain_name'))

        if 'name' in values:
            name_key = normalize_key(values['name'])
            clash = Team.query.filter(
                Team.tournament_id == team.tournament_id,
                Team.name_key == name_key,
                Team.id != team.id
            ).first()
            if clash:
                raise Conflict(f"A team named '{values['name']}' is already registered for this tournament")
            team.name = ' '.join(values.pop('name').split())
            team.name_key = name_key

        if 'captain_phone' in values:
            values['captain_phone'] = normalize_phone(values['captain_phone'])
        if 'captain_email' in values:
            values['captain_email'] = normalize_email(values['captain_email'])

        for field, value in values.items():
            setattr(team, field, value)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict('A team with this name is already registered for this tournament')
        return team

    def delete_team(self, team_id: int):
        """Remove a team with its players and registration. Teams on the fixture list stay."""
        team = self.get_team(team_id)

        fixtures = Match.query.filter(
            or_(Match.home_team_id == team.id, Match.away_team_id == team.id)
        ).count()
        if fixtures:
            raise ValidationFailed(
                f"Cannot delete team. Team is scheduled in {fixtures} match(es)"
            )

        db.session.delete(team)
        db.session.commit()
        logger.info(f"Team {team_id} '{team.name}' deleted")

    # ==================== Players ====================

    def list_players(self, team_id: int) -> List[Player]:
        return list(self.get_team(team_id).players)

    def get_player(self, player_id: int) -> Player:
        player = db.session.get(Player, player_id)
        if not player:
            raise NotFound('Player not found')
        return player

    def add_player(self, team_id: int, **values) -> Player:
        """
        Add a player to an existing team.

        The team row is locked while players are counted, so two concurrent
        additions cannot both take the last starting place.
        """
        try:
            team = self._lock_team(team_id)
            starters = Player.query.filter_by(team_id=team.id, is_substitute=False).count()
            player = Player(
                team_id=team.id,
                name=values['name'],
                age=values.get('age'),
                phone=normalize_phone(values.get('phone')),
                email=normalize_email(values.get('email')),
                position=values.get('position') or 'BATSMAN',
                experience=values.get('experience'),
                jersey_number=values.get('jersey_number'),
                is_substitute=starters >= team.tournament.team_size,
            )
            db.session.add(player)
            db.session.commit()
        except NotFound:
            db.session.rollback()
            raise

        logger.info(
            f"Player '{player.name}' added to team {team.id}"
            f"{' as substitute' if player.is_substitute else ''}"
        )
        return player

    def update_player(self, player_id: int, **values) -> Player:
        player = self.get_player(player_id)
        self._require_values(values, ('name', 'position', 'is_substitute'))

        if values.get('is_substitute') is False and player.is_substitute:
            team = self._lock_team(player.team_id)
            starters = Player.query.filter_by(team_id=team.id, is_substitute=False).count()
            if starters >= team.tournament.team_size:
                db.session.rollback()
                raise ValidationFailed(
                    f"Team already has {team.tournament.team_size} starting players"
                )

        if 'phone' in values:
            values['phone'] = normalize_phone(values['phone'])
        if 'email' in values:
            values['email'] = normalize_email(values['email'])

        for field, value in values.items():
            setattr(player, field, value)
        db.session.commit()
        return player

    def delete_player(self, player_id: int):
        player = self.get_player(player_id)
        db.session.delete(player)
        db.session.commit()
        logger.info(f"Player {player_id} removed from team {player.team_id}")
