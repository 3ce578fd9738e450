import os
import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .config import config
from .models import db
from .auth import jwt
from .errors import ClubError
from .auction_engine import AuctionEngine
from .landing_content import LandingContent
from .match_schedule import MatchSchedule
from .notifier import Notifier
from .owner_manager import OwnerManager
from .payment_book import PaymentBook
from .registration_desk import RegistrationDesk
from .team_roster import TeamRoster
from .tournament_registry import TournamentRegistry
from shared.pubsub import LiveFeed
from shared.state_machine import TransitionError

logger = logging.getLogger(__name__)

migrate = Migrate()


def create_app(config_name: str = None) -> Flask:
    """Application factory for the club service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__, template_folder='templates')
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # Initialize services
    feed = LiveFeed.from_url(app.config.get('REDIS_URL'))
    notifier = Notifier()
    auction = AuctionEngine(feed=feed, notifier=notifier)

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.feed = feed
    app.notifier = notifier
    app.auction = auction
    app.registry = TournamentRegistry(feed=feed)
    app.registrations = RegistrationDesk(notifier=notifier, feed=feed)
    app.teams = TeamRoster()
    app.owners = OwnerManager(auction, notifier=notifier)
    app.payments = PaymentBook()
    app.landing = LandingContent()
    app.matches = MatchSchedule()

    register_blueprints(app)
    register_error_handlers(app)
    register_health(app)

    from .commands import register_commands
    register_commands(app)

    return app


def register_blueprints(app: Flask):
    from .routes import (
        admin, auction, auth, landing, matches, media, owners, payments, registrations, teams, tournaments,
    )

    for module in (auth, tournaments, teams, matches, registrations, owners, auction, payments, landing, admin, media):
        app.register_blueprint(module.bp)


def register_error_handlers(app: Flask):
    """Turn service errors into JSON responses."""

    @app.errorhandler(ClubError)
    def handle_club_error(e: ClubError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return jsonify({
            'error': 'Invalid request body',
            'details': e.errors(include_url=False, include_context=False, include_input=False)
        }), 400

    @app.errorhandler(TransitionError)
    def handle_transition_error(e: TransitionError):
        return jsonify({'error': e.reason, 'state': e.from_state}), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e: IntegrityError):
        db.session.rollback()
        logger.warning(f"Integrity error: {e.orig}")
        return jsonify({'error': 'Request conflicts with existing data'}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify({'error': 'Internal server error'}), 500


def register_health(app: Flask):

    @app.route('/health')
    @app.route('/api/v1/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except Exception:
            logger.exception("Database health check failed")
            db_ok = False

        redis_state = 'disabled'
        if app.feed.enabled:
            redis_state = 'connected' if app.feed.ping() else 'disconnected'

        status = 'healthy' if db_ok else 'unhealthy'
        code = 200 if db_ok else 503

        return jsonify({
            'status': status,
            'database': 'connected' if db_ok else 'disconnected',
            'redis': redis_state
        }), code
