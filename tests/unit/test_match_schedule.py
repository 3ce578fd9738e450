"""
Unit tests for MatchSchedule.
"""
import pytest

from clubhouse.errors import NotFound, ValidationFailed
from clubhouse.match_schedule import MatchSchedule
from clubhouse.models import db, Team, Tournament


@pytest.fixture
def schedule():
    return MatchSchedule()


@pytest.fixture
def league_teams(app, sample_tournament):
    teams = []
    for name in ('Home XI', 'Away XI', 'Third XI'):
        team = Team(tournament_id=sample_tournament.id, name=name, name_key=name.lower(), captain_name='Captain')
        db.session.add(team)
        teams.append(team)
    sample_tournament.status = 'REGISTRATION_CLOSED'
    db.session.commit()
    return teams


class TestSchedule:
    """Tests for schedule method."""

    def test_schedule_match(self, app, schedule, sample_tournament, league_teams):
        match = schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[1].id)

        assert match.status == 'SCHEDULED'
        assert match.venue == 'Riverside Ground'
        assert match.to_dict()['home_team'] == 'Home XI'

    def test_not_while_registration_open(self, app, schedule, sample_tournament, league_teams):
        sample_tournament.status = 'REGISTRATION_OPEN'
        db.session.commit()

        with pytest.raises(ValidationFailed):
            schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[1].id)

    def test_team_cannot_play_itself(self, app, schedule, sample_tournament, league_teams):
        with pytest.raises(ValidationFailed):
            schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[0].id)

    def test_team_from_other_tournament(self, app, schedule, sample_tournament, league_teams):
        other = Tournament(name='Winter League', status='REGISTRATION_OPEN')
        db.session.add(other)
        db.session.commit()
        outsider = Team(tournament_id=other.id, name='Visitors', name_key='visitors', captain_name='Captain')
        db.session.add(outsider)
        db.session.commit()

        with pytest.raises(ValidationFailed):
            schedule.schedule(sample_tournament.id, league_teams[0].id, outsider.id)

    def test_unknown_tournament(self, app, schedule, db_session):
        with pytest.raises(NotFound):
            schedule.list_matches(9999)


class TestResults:
    """Tests for update method."""

    def test_result_needs_ongoing_tournament(self, app, schedule, sample_tournament, league_teams):
        match = schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[1].id)

        with pytest.raises(ValidationFailed):
            schedule.update(match.id, status='COMPLETED', winner_team_id=league_teams[0].id)

        # Rescheduling is still allowed
        assert schedule.update(match.id, venue='Hilltop Oval').venue == 'Hilltop Oval'

    def test_record_result(self, app, schedule, sample_tournament, league_teams):
        match = schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[1].id)
        sample_tournament.status = 'ONGOING'
        db.session.commit()

        match = schedule.update(match.id, status='COMPLETED', result='Home XI won by 12 runs',
                                winner_team_id=league_teams[0].id)

        assert match.status == 'COMPLETED'
        assert match.winner_team_id == league_teams[0].id

    def test_winner_must_have_played(self, app, schedule, sample_tournament, league_teams):
        match = schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[1].id)
        sample_tournament.status = 'ONGOING'
        db.session.commit()

        with pytest.raises(ValidationFailed):
            schedule.update(match.id, status='COMPLETED', winner_team_id=league_teams[2].id)

    def test_list_and_delete(self, app, schedule, sample_tournament, league_teams):
        first = schedule.schedule(sample_tournament.id, league_teams[0].id, league_teams[1].id)
        schedule.schedule(sample_tournament.id, league_teams[1].id, league_teams[2].id)

        assert len(schedule.list_matches(sample_tournament.id)) == 2
        schedule.delete(first.id)
        assert len(schedule.list_matches(sample_tournament.id, status='SCHEDULED')) == 1
        with pytest.raises(NotFound):
            schedule.get_match(first.id)
