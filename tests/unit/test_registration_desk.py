"""
Unit tests for RegistrationDesk.
Tests: register_team, update_registration, register_owner, register_auction_player
"""
from datetime import datetime, timedelta

import pytest

from clubhouse.errors import Conflict, NotFound, ValidationFailed
from clubhouse.models import db, EmailLog, Team, TeamOwner, TeamRegistration, Tournament
from clubhouse.registration_desk import RegistrationDesk
from clubhouse.schemas import (
    AuctionPlayerCreate, RegistrationUpdate, TeamOwnerCreate, TeamRegistrationCreate,
)


def team_body(name='Royal Strikers', players=11, **overrides):
    data = {
        'team_name': name,
        'captain_name': 'Arjun Mehta',
        'captain_phone': '+91 98765 43210',
        'captain_email': 'Captain@Example.org',
        'city': 'Pune',
        'players': [{'name': f'Player {i + 1}', 'position': 'BATSMAN'} for i in range(players)],
    }
    data.update(overrides)
    return TeamRegistrationCreate(**data)


def owner_body(team_name='Royal Strikers', email='owner@example.org', phone='9876543210'):
    return TeamOwnerCreate(
        team_name=team_name,
        owner_name='Vikram Rao',
        owner_phone=phone,
        owner_email=email,
    )


@pytest.fixture
def desk():
    return RegistrationDesk()


class TestRegisterTeam:
    """Tests for register_team method."""

    def test_register_team(self, app, desk, sample_tournament):
        registration = desk.register_team(sample_tournament.id, team_body())

        assert registration.status == 'PENDING'
        assert registration.registration_type == 'PUBLIC'
        assert registration.payment_amount == 1500
        assert registration.team.name == 'Royal Strikers'
        assert registration.team.captain_email == 'captain@example.org'
        assert registration.team.captain_phone == '+919876543210'
        assert len(registration.team.players) == 11

    def test_extra_players_are_substitutes(self, app, desk, sample_tournament):
        registration = desk.register_team(sample_tournament.id, team_body(players=13))

        flags = [p.is_substitute for p in registration.team.players]
        assert flags.count(True) == 2
        assert flags[-2:] == [True, True]

    def test_unknown_tournament(self, app, desk, db_session):
        with pytest.raises(NotFound):
            desk.register_team(9999, team_body())

    def test_registration_not_open(self, app, desk, sample_tournament):
        sample_tournament.status = 'UPCOMING'
        db.session.commit()

        with pytest.raises(ValidationFailed) as exc_info:
            desk.register_team(sample_tournament.id, team_body())
        assert 'not open' in exc_info.value.message

    def test_deadline_passed(self, app, desk, sample_tournament):
        sample_tournament.registration_deadline = datetime.utcnow() - timedelta(hours=1)
        db.session.commit()

        with pytest.raises(ValidationFailed) as exc_info:
            desk.register_team(sample_tournament.id, team_body())
        assert exc_info.value.message == 'Registration deadline has passed'
        assert TeamRegistration.query.count() == 0

    def test_capacity(self, app, desk, sample_tournament):
        """max_teams is 4: the fifth registration is turned away."""
        for i in range(4):
            desk.register_team(sample_tournament.id, team_body(name=f'Team {i}'))

        with pytest.raises(ValidationFailed) as exc_info:
            desk.register_team(sample_tournament.id, team_body(name='Late Comers'))

        assert 'full' in exc_info.value.message
        assert Team.query.filter_by(tournament_id=sample_tournament.id).count() == 4

    def test_rejected_registrations_free_capacity(self, app, desk, sample_tournament):
        registrations = [desk.register_team(sample_tournament.id, team_body(name=f'Team {i}')) for i in range(4)]
        desk.update_registration(registrations[0].id, RegistrationUpdate(status='REJECTED'))

        desk.register_team(sample_tournament.id, team_body(name='Late Comers'))
        assert desk.active_registration_count(sample_tournament.id) == 4

    @pytest.mark.parametrize('duplicate', ['royal strikers', '  Royal   Strikers ', 'ROYAL STRIKERS'])
    def test_duplicate_team_name(self, app, desk, sample_tournament, duplicate):
        desk.register_team(sample_tournament.id, team_body(name='Royal Strikers'))

        with pytest.raises(Conflict):
            desk.register_team(sample_tournament.id, team_body(name=duplicate))
        assert Team.query.count() == 1

    def test_same_name_in_other_tournament(self, app, desk, sample_tournament):
        other = Tournament(name='Winter League', status='REGISTRATION_OPEN', max_teams=4)
        db.session.add(other)
        db.session.commit()

        desk.register_team(sample_tournament.id, team_body(name='Royal Strikers'))
        registration = desk.register_team(other.id, team_body(name='royal strikers'))

        assert registration.tournament_id == other.id

    def test_admin_registration(self, app, desk, sample_tournament, admin):
        """Admin registrations skip the window and are confirmed at once."""
        sample_tournament.status = 'REGISTRATION_CLOSED'
        db.session.commit()

        registration = desk.register_team(
            sample_tournament.id, team_body(registration_type='ADMIN'), admin=admin
        )
        assert registration.status == 'CONFIRMED'

    def test_admin_registration_needs_admin(self, app, desk, sample_tournament):
        with pytest.raises(ValidationFailed):
            desk.register_team(sample_tournament.id, team_body(registration_type='ADMIN'))

    def test_notifications_sent(self, app, mocker, sample_tournament):
        notifier = mocker.MagicMock()
        desk = RegistrationDesk(notifier=notifier)

        desk.register_team(sample_tournament.id, team_body())

        notifier.notify.assert_called_once()
        assert notifier.notify.call_args.args == ('team_registration_received', 'captain@example.org')
        notifier.notify_admins.assert_called_once()
        assert notifier.notify_admins.call_args.args == ('team_registration_admin',)

    def test_unconfigured_email_does_not_fail_registration(self, app, sample_tournament):
        """With no SMTP settings the registration still succeeds and the attempt is logged."""
        registration = app.registrations.register_team(sample_tournament.id, team_body())

        assert registration.id is not None
        logs = EmailLog.query.all()
        assert {log.status for log in logs} == {'FAILED'}
        assert {log.recipient for log in logs} == {'captain@example.org', 'committee@example.org'}


class TestUpdateRegistration:
    """Tests for update_registration method."""

    def test_confirm_and_mark_paid(self, app, desk, sample_tournament):
        registration = desk.register_team(sample_tournament.id, team_body())

        updated = desk.update_registration(
            registration.id, RegistrationUpdate(status='CONFIRMED', payment_status='PAID', payment_method='UPI')
        )

        assert updated.status == 'CONFIRMED'
        assert updated.payment_status == 'PAID'
        assert updated.payment_method == 'UPI'

    def test_unknown_registration(self, app, desk, db_session):
        with pytest.raises(NotFound):
            desk.update_registration(9999, RegistrationUpdate(status='CONFIRMED'))

    @pytest.mark.parametrize('status', ['PENDING', 'CONFIRMED'])
    def test_readmit_rejected_when_full(self, app, desk, sample_tournament, status):
        registrations = [desk.register_team(sample_tournament.id, team_body(name=f'Team {i}')) for i in range(4)]
        desk.update_registration(registrations[0].id, RegistrationUpdate(status='REJECTED'))
        desk.register_team(sample_tournament.id, team_body(name='Late Comers'))

        with pytest.raises(ValidationFailed):
            desk.update_registration(registrations[0].id, RegistrationUpdate(status=status))
        assert db.session.get(TeamRegistration, registrations[0].id).status == 'REJECTED'
        assert desk.active_registration_count(sample_tournament.id) == 4

    def test_readmit_rejected_with_room(self, app, desk, sample_tournament):
        registration = desk.register_team(sample_tournament.id, team_body())
        desk.update_registration(registration.id, RegistrationUpdate(status='REJECTED'))

        updated = desk.update_registration(registration.id, RegistrationUpdate(status='PENDING'))
        assert updated.status == 'PENDING'

    def test_rejection_email(self, app, mocker, sample_tournament):
        notifier = mocker.MagicMock()
        desk = RegistrationDesk(notifier=notifier)
        registration = desk.register_team(sample_tournament.id, team_body())
        notifier.reset_mock()

        desk.update_registration(registration.id, RegistrationUpdate(status='REJECTED', reason='Squad incomplete'))

        args, kwargs = notifier.notify.call_args
        assert args == ('registration_rejected', 'captain@example.org')
        assert kwargs['reason'] == 'Squad incomplete'

    def test_list_registrations(self, app, desk, sample_tournament):
        first = desk.register_team(sample_tournament.id, team_body(name='Team A'))
        desk.register_team(sample_tournament.id, team_body(name='Team B'))
        desk.update_registration(first.id, RegistrationUpdate(status='CONFIRMED'))

        assert len(desk.list_registrations(sample_tournament.id)) == 2
        assert [r.id for r in desk.list_registrations(sample_tournament.id, status='CONFIRMED')] == [first.id]


class TestRegisterOwner:
    """Tests for register_owner method."""

    def test_register_owner(self, app, desk, auction_tournament):
        owner = desk.register_owner(auction_tournament.id, owner_body())

        assert owner.total_budget == 50000
        assert owner.remaining_budget == 50000
        assert owner.team_index == 1
        assert owner.verified is False
        assert owner.auction_token is None

    def test_not_auction_based(self, app, desk, sample_tournament):
        with pytest.raises(ValidationFailed):
            desk.register_owner(sample_tournament.id, owner_body())

    def test_duplicate_team_name(self, app, desk, auction_tournament):
        desk.register_owner(auction_tournament.id, owner_body())
        with pytest.raises(Conflict):
            desk.register_owner(auction_tournament.id, owner_body(
                team_name=' ROYAL strikers', email='other@example.org', phone='9000000000'
            ))

    def test_duplicate_email(self, app, desk, auction_tournament):
        desk.register_owner(auction_tournament.id, owner_body())
        with pytest.raises(Conflict) as exc_info:
            desk.register_owner(auction_tournament.id, owner_body(
                team_name='Thunder Kings', email='OWNER@example.org', phone='9000000000'
            ))
        assert 'email' in exc_info.value.message

    def test_duplicate_phone(self, app, desk, auction_tournament):
        desk.register_owner(auction_tournament.id, owner_body())
        with pytest.raises(Conflict) as exc_info:
            desk.register_owner(auction_tournament.id, owner_body(
                team_name='Thunder Kings', email='other@example.org', phone='98765-43210'
            ))
        assert 'phone' in exc_info.value.message

    def test_team_slots(self, app, desk, auction_tournament):
        for i in range(4):
            desk.register_owner(auction_tournament.id, owner_body(
                team_name=f'Team {i}', email=f'owner{i}@example.org', phone=f'900000000{i}'
            ))

        with pytest.raises(ValidationFailed):
            desk.register_owner(auction_tournament.id, owner_body(
                team_name='Team 5', email='owner5@example.org', phone='9000000005'
            ))
        assert TeamOwner.query.count() == 4


class TestRegisterAuctionPlayer:
    """Tests for register_auction_player method."""

    def test_base_price_defaults_to_min_points(self, app, desk, auction_tournament):
        player = desk.register_auction_player(auction_tournament.id, AuctionPlayerCreate(
            name='Rohit Sen', phone='9123456780', position='BOWLER'
        ))

        assert player.status == 'AVAILABLE'
        assert player.base_price == 1000
        assert player.auction_team_id is None

    def test_duplicate_phone(self, app, desk, auction_tournament):
        desk.register_auction_player(auction_tournament.id, AuctionPlayerCreate(name='Rohit Sen', phone='9123456780'))
        with pytest.raises(Conflict):
            desk.register_auction_player(auction_tournament.id, AuctionPlayerCreate(
                name='Rohit S', phone='91234 56780'
            ))

    def test_deadline_passed(self, app, desk, auction_tournament):
        auction_tournament.registration_deadline = datetime.utcnow() - timedelta(days=1)
        db.session.commit()

        with pytest.raises(ValidationFailed):
            desk.register_auction_player(auction_tournament.id, AuctionPlayerCreate(
                name='Rohit Sen', phone='9123456780'
            ))
