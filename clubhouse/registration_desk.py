import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from .errors import Conflict, NotFound, ValidationFailed
from .models import (
    db, Admin, AuctionPlayer, Player, Team, TeamOwner, TeamRegistration, Tournament,
    normalize_email, normalize_key, normalize_phone,
)
from shared.events import EventType, registration_event
from shared.pubsub import LiveFeed
from shared.state_machine import TournamentStateMachine

logger = logging.getLogger(__name__)


class RegistrationDesk:
    """
    Public and admin registration intake:
    - Teams with their players (league and knockout tournaments)
    - Auction team owners
    - Auction players
    - Admin review of team registrations

    Every intake locks the tournament row for the length of its transaction so
    capacity checks and inserts cannot interleave.
    """

    def __init__(self, notifier=None, feed: LiveFeed = None):
        self.notifier = notifier
        self.feed = feed or LiveFeed()

    def _lock_tournament(self, tournament_id: int) -> Tournament:
        tournament = (
            db.session.query(Tournament)
            .filter(Tournament.id == tournament_id)
            .with_for_update()
            .first()
        )
        if not tournament:
            raise NotFound('Tournament not found')
        return tournament

    def _check_window(self, tournament: Tournament, action: str):
        sm = TournamentStateMachine.from_state_string(tournament.status)
        if not sm.can_perform(action):
            raise ValidationFailed(
                f"Registration is not open for this tournament (status {tournament.status})"
            )
        if tournament.registration_closed():
            raise ValidationFailed('Registration deadline has passed')

    def active_registration_count(self, tournament_id: int) -> int:
        return db.session.query(func.count(TeamRegistration.id)).filter(
            TeamRegistration.tournament_id == tournament_id,
            TeamRegistration.status != 'REJECTED'
        ).scalar()

    def _commit(self, duplicate_message: str):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict(duplicate_message)

    # ==================== Teams ====================

    def register_team(self, tournament_id: int, body, admin: Optional[Admin] = None) -> TeamRegistration:
        """
        Create a team, its players and its registration in one transaction.

        Admin registrations skip the window and deadline checks and are
        confirmed immediately; capacity still applies.
        """
        is_admin = body.registration_type == 'ADMIN'
        if is_admin and admin is None:
            raise ValidationFailed('Admin registrations require an admin session')

        try:
            tournament = self._lock_tournament(tournament_id)
            if not is_admin:
                self._check_window(tournament, 'register_team')

            if tournament.max_teams and self.active_registration_count(tournament.id) >= tournament.max_teams:
                raise ValidationFailed(f"Tournament is full ({tournament.max_teams} teams)")

            name_key = normalize_key(body.team_name)
            if Team.query.filter_by(tournament_id=tournament.id, name_key=name_key).first():
                raise Conflict(f"A team named '{body.team_name}' is already registered for this tournament")

            team = Team(
                tournament_id=tournament.id,
                name=' '.join(body.team_name.split()),
                name_key=name_key,
                captain_name=body.captain_name,
                captain_phone=normalize_phone(body.captain_phone),
                captain_email=normalize_email(body.captain_email),
                city=body.city,
                home_ground=body.home_ground,
            )
            for index, entry in enumerate(body.players):
                team.players.append(Player(
                    name=entry.name,
                    age=entry.age,
                    phone=normalize_phone(entry.phone),
                    email=normalize_email(entry.email),
                    position=entry.position,
                    experience=entry.experience,
                    jersey_number=entry.jersey_number,
                    is_substitute=index >= tournament.team_size,
                ))

            registration = TeamRegistration(
                tournament=tournament,
                team=team,
                registration_type=body.registration_type,
                status='CONFIRMED' if is_admin else 'PENDING',
                payment_method=body.payment_method,
                payment_amount=tournament.entry_fee or None,
                contact_email=team.captain_email,
                contact_phone=team.captain_phone,
                special_requests=body.special_requests,
            )
            db.session.add(team)
            db.session.add(registration)
            self._commit(f"A team named '{body.team_name}' is already registered for this tournament")
        except (ValidationFailed, Conflict, NotFound):
            db.session.rollback()
            raise

        logger.info(
            f"Team '{team.name}' registered for tournament {tournament_id} "
            f"({registration.registration_type}, {len(team.players)} players)"
        )
        self.feed.publish(registration_event(tournament_id, EventType.TEAM_REGISTERED, team.id, team.name))

        if self.notifier and not is_admin:
            context = dict(team=team, tournament=tournament, registration=registration)
            self.notifier.notify('team_registration_received', team.captain_email, **context)
            self.notifier.notify_admins('team_registration_admin', **context)
        return registration

    def list_registrations(self, tournament_id: int, status: str = None) -> List[TeamRegistration]:
        if not db.session.get(Tournament, tournament_id):
            raise NotFound('Tournament not found')
        query = TeamRegistration.query.filter_by(tournament_id=tournament_id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(TeamRegistration.registered_at.desc(), TeamRegistration.id.desc()).all()

    def update_registration(self, registration_id: int, body) -> TeamRegistration:
        registration = db.session.get(TeamRegistration, registration_id)
        if not registration:
            raise NotFound('Registration not found')

        previous_status = registration.status
        try:
            tournament = self._lock_tournament(registration.tournament_id)
            readmitting = previous_status == 'REJECTED' and body.status in ('PENDING', 'CONFIRMED')
            if readmitting and tournament.max_teams:
                if self.active_registration_count(tournament.id) >= tournament.max_teams:
                    raise ValidationFailed(f"Tournament is full ({tournament.max_teams} teams)")

            if body.status:
                registration.status = body.status
            if body.payment_status:
                registration.payment_status = body.payment_status
            if body.payment_method is not None:
                registration.payment_method = body.payment_method
            if body.payment_amount is not None:
                registration.payment_amount = body.payment_amount
            db.session.commit()
        except ValidationFailed:
            db.session.rollback()
            raise

        logger.info(f"Registration {registration.id}: {previous_status} -> {registration.status}")

        if self.notifier and body.status and body.status != previous_status:
            template = {
                'CONFIRMED': 'registration_confirmed',
                'REJECTED': 'registration_rejected',
            }.get(body.status)
            if template:
                self.notifier.notify(
                    template,
                    registration.contact_email,
                    team=registration.team,
                    tournament=registration.tournament,
                    registration=registration,
                    reason=body.reason,
                )
        return registration

    # ==================== Auction owners and players ====================

    def register_owner(self, tournament_id: int, body) -> TeamOwner:
        """Register an auction team owner. The purse starts at the tournament's auction budget."""
        try:
            tournament = self._lock_tournament(tournament_id)
            if not tournament.is_auction_based:
                raise ValidationFailed('This tournament does not run a player auction')
            self._check_window(tournament, 'register_owner')

            owner_count = TeamOwner.query.filter_by(tournament_id=tournament.id).count()
            if tournament.auction_team_count and owner_count >= tournament.auction_team_count:
                raise ValidationFailed(f"All {tournament.auction_team_count} auction team slots are taken")

            team_key = normalize_key(body.team_name)
            email = normalize_email(body.owner_email)
            phone = normalize_phone(body.owner_phone)

            if TeamOwner.query.filter_by(tournament_id=tournament.id, team_key=team_key).first():
                raise Conflict(f"A team named '{body.team_name}' is already registered for this auction")
            if TeamOwner.query.filter_by(tournament_id=tournament.id, owner_email=email).first():
                raise Conflict('This email is already registered as a team owner in this tournament')
            if TeamOwner.query.filter_by(tournament_id=tournament.id, owner_phone=phone).first():
                raise Conflict('This phone number is already registered as a team owner in this tournament')

            budget = tournament.auction_budget or 0
            owner = TeamOwner(
                tournament_id=tournament.id,
                team_name=' '.join(body.team_name.split()),
                team_key=team_key,
                team_index=owner_count + 1,
                owner_name=body.owner_name,
                owner_phone=phone,
                owner_email=email,
                owner_city=body.owner_city,
                sponsor_name=body.sponsor_name,
                sponsor_contact=body.sponsor_contact,
                total_budget=budget,
                remaining_budget=budget,
            )
            db.session.add(owner)
            self._commit('This team or owner is already registered for this auction')
        except (ValidationFailed, Conflict, NotFound):
            db.session.rollback()
            raise

        logger.info(f"Team owner '{owner.team_name}' registered for tournament {tournament_id}")
        self.feed.publish(registration_event(tournament_id, EventType.OWNER_REGISTERED, owner.id, owner.team_name))

        if self.notifier:
            self.notifier.notify('owner_registered', owner.owner_email, team=owner, tournament=tournament)
            self.notifier.notify_admins('owner_registered_admin', team=owner, tournament=tournament)
        return owner

    def register_auction_player(self, tournament_id: int, body) -> AuctionPlayer:
        try:
            tournament = self._lock_tournament(tournament_id)
            if not tournament.is_auction_based:
                raise ValidationFailed('This tournament does not run a player auction')
            if tournament.registration_closed():
                raise ValidationFailed('Registration deadline has passed')

            phone = normalize_phone(body.phone)
            email = normalize_email(body.email)
            if AuctionPlayer.query.filter_by(tournament_id=tournament.id, phone=phone).first():
                raise Conflict('A player with this phone number is already registered for this auction')
            if email and AuctionPlayer.query.filter_by(tournament_id=tournament.id, email=email).first():
                raise Conflict('A player with this email is already registered for this auction')

            base_price = body.base_price
            if base_price is None:
                base_price = tournament.min_player_points or 0

            player = AuctionPlayer(
                tournament_id=tournament.id,
                name=body.name,
                age=body.age,
                phone=phone,
                email=email,
                city=body.city,
                position=body.position,
                batting_style=body.batting_style,
                bowling_style=body.bowling_style,
                experience=body.experience,
                base_price=base_price,
                status='AVAILABLE',
            )
            db.session.add(player)
            self._commit('This player is already registered for this auction')
        except (ValidationFailed, Conflict, NotFound):
            db.session.rollback()
            raise

        logger.info(f"Auction player '{player.name}' registered for tournament {tournament_id}")
        self.feed.publish(registration_event(tournament_id, EventType.PLAYER_REGISTERED, player.id, player.name))

        if self.notifier and player.email:
            self.notifier.notify('auction_player_registered', player.email, player=player, tournament=tournament)
        return player
