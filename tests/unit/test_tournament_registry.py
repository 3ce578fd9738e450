"""
Unit tests for TournamentRegistry class.
Tests: create_tournament, list_tournaments, update_tournament, delete_tournament,
       change_state, images, statistics
"""
from datetime import datetime

import pytest
from shared.state_machine import TransitionError
from clubhouse.errors import NotFound, ValidationFailed
from clubhouse.models import (
    db, AuctionPlayer, Match, Team, TeamOwner, TeamRegistration, Tournament, TournamentImage,
)
from clubhouse.tournament_registry import TournamentRegistry


def add_confirmed_team(tournament, name):
    team = Team(tournament_id=tournament.id, name=name, name_key=name.lower(), captain_name='Captain')
    db.session.add(team)
    db.session.add(TeamRegistration(tournament_id=tournament.id, team=team, status='CONFIRMED'))
    db.session.commit()
    return team


@pytest.fixture
def registry():
    return TournamentRegistry()


class TestCreateTournament:
    """Tests for create_tournament method."""

    def test_create_league(self, app, registry, db_session):
        tournament = registry.create_tournament(name='Summer League', max_teams=8)

        assert tournament.id is not None
        assert tournament.status == 'UPCOMING'
        assert tournament.tournament_type == 'LEAGUE'
        assert tournament.team_size == 11

    def test_auction_based_league_becomes_auction(self, app, registry, db_session):
        tournament = registry.create_tournament(name='Auction Cup', is_auction_based=True, auction_budget=50000)
        assert tournament.tournament_type == 'AUCTION'

    def test_knockout_keeps_type(self, app, registry, db_session):
        tournament = registry.create_tournament(name='Cup', tournament_type='KNOCKOUT', is_auction_based=True)
        assert tournament.tournament_type == 'KNOCKOUT'


class TestListTournaments:
    """Tests for list_tournaments method."""

    def test_filter_and_paginate(self, app, registry, db_session):
        for i in range(3):
            registry.create_tournament(name=f'League {i}', start_date=datetime(2025, 1 + i, 1))
        registry.change_state(registry.list_tournaments()[0].id, 'open_registration')

        assert len(registry.list_tournaments()) == 3
        assert [t.name for t in registry.list_tournaments(status='REGISTRATION_OPEN')] == ['League 2']
        assert [t.name for t in registry.list_tournaments(limit=1, offset=1)] == ['League 1']

    def test_get_unknown(self, app, registry, db_session):
        assert registry.get_tournament(9999) is None
        with pytest.raises(NotFound):
            registry.require_tournament(9999)


class TestUpdateTournament:
    """Tests for update_tournament method."""

    def test_update_fields(self, app, registry, sample_tournament):
        tournament = registry.update_tournament(sample_tournament.id, venue='Hilltop Oval', max_teams=6)
        assert tournament.venue == 'Hilltop Oval'
        assert tournament.max_teams == 6

    def test_no_edits_once_ongoing(self, app, registry, sample_tournament):
        sample_tournament.status = 'ONGOING'
        db.session.commit()

        with pytest.raises(ValidationFailed):
            registry.update_tournament(sample_tournament.id, venue='Elsewhere')

    def test_structure_locked_after_matches(self, app, registry, sample_tournament):
        home = add_confirmed_team(sample_tournament, 'Home XI')
        away = add_confirmed_team(sample_tournament, 'Away XI')
        db.session.add(Match(tournament_id=sample_tournament.id, home_team_id=home.id, away_team_id=away.id))
        db.session.commit()

        with pytest.raises(ValidationFailed) as exc_info:
            registry.update_tournament(sample_tournament.id, max_teams=10, venue='Elsewhere')
        assert 'max_teams' in exc_info.value.message

        # Unchanged structural values and other fields still go through
        tournament = registry.update_tournament(sample_tournament.id, max_teams=4, venue='Elsewhere')
        assert tournament.venue == 'Elsewhere'


class TestDeleteTournament:
    """Tests for delete_tournament method."""

    def test_delete_cascades(self, app, registry, auction_tournament, sample_owners, sample_players):
        registry.delete_tournament(auction_tournament.id)

        assert Tournament.query.count() == 0
        assert TeamOwner.query.count() == 0
        assert AuctionPlayer.query.count() == 0

    def test_delete_unknown(self, app, registry, db_session):
        with pytest.raises(NotFound):
            registry.delete_tournament(9999)


class TestLifecycle:
    """Tests for change_state method."""

    def test_open_close_start(self, app, registry, sample_tournament):
        add_confirmed_team(sample_tournament, 'Home XI')
        add_confirmed_team(sample_tournament, 'Away XI')

        registry.change_state(sample_tournament.id, 'close_registration')
        tournament = registry.change_state(sample_tournament.id, 'start')

        assert tournament.status == 'ONGOING'

    def test_start_needs_two_teams(self, app, registry, sample_tournament):
        add_confirmed_team(sample_tournament, 'Home XI')
        registry.change_state(sample_tournament.id, 'close_registration')

        with pytest.raises(TransitionError):
            registry.change_state(sample_tournament.id, 'start')
        assert registry.get_tournament(sample_tournament.id).status == 'REGISTRATION_CLOSED'

    def test_auction_teams_are_owners(self, app, registry, auction_tournament, sample_owners):
        assert registry.team_count(auction_tournament) == 2

    def test_complete_needs_finished_matches(self, app, registry, sample_tournament):
        home = add_confirmed_team(sample_tournament, 'Home XI')
        away = add_confirmed_team(sample_tournament, 'Away XI')
        registry.change_state(sample_tournament.id, 'close_registration')
        registry.change_state(sample_tournament.id, 'start')
        match = Match(tournament_id=sample_tournament.id, home_team_id=home.id, away_team_id=away.id)
        db.session.add(match)
        db.session.commit()

        with pytest.raises(TransitionError):
            registry.change_state(sample_tournament.id, 'complete')

        match.status = 'COMPLETED'
        db.session.commit()
        assert registry.change_state(sample_tournament.id, 'complete').status == 'COMPLETED'

    def test_state_change_published(self, app, mocker, sample_tournament):
        feed = mocker.MagicMock()
        TournamentRegistry(feed=feed).change_state(sample_tournament.id, 'cancel')

        event = feed.publish.call_args.args[0]
        assert event.data == {'from_state': 'REGISTRATION_OPEN', 'to_state': 'CANCELLED'}


class TestImages:
    """Tests for tournament images."""

    def test_single_primary_image(self, app, registry, sample_tournament):
        first = registry.add_image(sample_tournament.id, 'https://example.org/a.jpg', is_primary=True)
        second = registry.add_image(sample_tournament.id, 'https://example.org/b.jpg', is_primary=True)

        images = registry.list_images(sample_tournament.id)
        assert images[0].id == second.id
        assert [i.is_primary for i in images].count(True) == 1
        assert db.session.get(TournamentImage, first.id).is_primary is False

    def test_delete_image(self, app, registry, sample_tournament):
        image = registry.add_image(sample_tournament.id, 'https://example.org/a.jpg')
        registry.delete_image(sample_tournament.id, image.id)
        assert registry.list_images(sample_tournament.id) == []


class TestStatistics:
    """Tests for statistics method."""

    def test_counts(self, app, registry, auction_tournament, sample_owners, sample_players):
        sample_players[0].status = 'SOLD'
        sample_players[0].sold_price = 9000
        sample_players[0].auction_team_id = sample_owners[0].id
        db.session.commit()

        stats = registry.statistics()

        assert stats['overview']['total_tournaments'] == 1
        assert stats['overview']['total_team_owners'] == 2
        assert stats['overview']['total_auction_players'] == 4
        assert stats['tournaments_by_status']['REGISTRATION_OPEN'] == 1
        assert stats['tournaments_by_status']['COMPLETED'] == 0
        assert stats['auction_players_by_status'] == {'AVAILABLE': 3, 'SOLD': 1}
        assert stats['total_auction_spend'] == 9000
