"""
Pytest configuration and fixtures for club service tests.
"""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from clubhouse.app import create_app
from clubhouse.models import db, Admin, AuctionPlayer, TeamOwner, Tournament


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        # Clear all tables before each test
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def sample_tournament(app, db_session):
    """A league tournament with registration open."""
    tournament = Tournament(
        name='Summer League',
        tournament_type='LEAGUE',
        status='REGISTRATION_OPEN',
        venue='Riverside Ground',
        max_teams=4,
        team_size=11,
        entry_fee=1500
    )
    db.session.add(tournament)
    db.session.commit()
    return tournament


@pytest.fixture
def auction_tournament(app, db_session):
    """An auction-based tournament with a 50000 point purse per team."""
    tournament = Tournament(
        name='Premier Auction Cup',
        tournament_type='AUCTION',
        status='REGISTRATION_OPEN',
        max_teams=8,
        is_auction_based=True,
        auction_budget=50000,
        auction_team_count=4,
        min_player_points=1000
    )
    db.session.add(tournament)
    db.session.commit()
    return tournament


@pytest.fixture
def sample_owners(app, db_session, auction_tournament):
    """Two verified team owners holding the full auction budget."""
    owners = []
    for i, name in enumerate(['Royal Strikers', 'Thunder Kings']):
        owner = TeamOwner(
            tournament_id=auction_tournament.id,
            team_name=name,
            team_key=name.lower(),
            team_index=i + 1,
            owner_name=f'Owner {i + 1}',
            owner_phone=f'98765432{i}0',
            owner_email=f'owner{i + 1}@example.org',
            total_budget=50000,
            remaining_budget=50000,
            verified=True,
            auction_token=f'token-{i + 1}'
        )
        db.session.add(owner)
        owners.append(owner)
    db.session.commit()
    return owners


@pytest.fixture
def sample_players(app, db_session, auction_tournament):
    """Four available auction players."""
    players = []
    for i, position in enumerate(['BATSMAN', 'BOWLER', 'ALL_ROUNDER', 'WICKET_KEEPER']):
        player = AuctionPlayer(
            tournament_id=auction_tournament.id,
            name=f'Player {i + 1}',
            phone=f'91234567{i}0',
            position=position,
            base_price=1000,
            status='AVAILABLE'
        )
        db.session.add(player)
        players.append(player)
    db.session.commit()
    return players


@pytest.fixture
def admin(app, db_session):
    """An active ADMIN account with password 'wicket-keeper'."""
    user = Admin(username='scorer', email='scorer@example.org', name='Club Scorer', role='ADMIN')
    user.set_password('wicket-keeper')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def superadmin(app, db_session):
    user = Admin(username='chair', email='chair@example.org', name='Committee Chair', role='SUPERADMIN')
    user.set_password('long-boundary')
    db.session.add(user)
    db.session.commit()
    return user


def _login(app, username, password):
    client = app.test_client()
    response = client.post('/api/v1/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200
    return client


@pytest.fixture
def admin_client(app, admin):
    """Test client holding an ADMIN session cookie."""
    return _login(app, 'scorer', 'wicket-keeper')


@pytest.fixture
def superadmin_client(app, superadmin):
    return _login(app, 'chair', 'long-boundary')


@pytest.fixture
def mock_smtp(mocker):
    """Mock the SMTP transport used by the notifier."""
    return mocker.patch('clubhouse.notifier.smtplib.SMTP')


@pytest.fixture
def smtp_settings(app, db_session):
    """Store an active SMTP configuration."""
    return app.notifier.save_settings(
        smtp_host='smtp.example.org',
        smtp_port=587,
        smtp_user='mailer@example.org',
        smtp_password='app-password',
        from_email='mailer@example.org',
        from_name='Riverside Cricket Club'
    )
