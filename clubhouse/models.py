from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from cryptography.fernet import Fernet
from werkzeug.security import generate_password_hash, check_password_hash
import os
import re
import base64
import hashlib

db = SQLAlchemy()


def get_encryption_key():
    """Derive the Fernet key from SECRET_KEY."""
    secret = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')
    key = hashlib.sha256(secret.encode()).digest()
    return base64.urlsafe_b64encode(key)


def encrypt_secret(value: str) -> str:
    """Encrypt a credential for storage."""
    f = Fernet(get_encryption_key())
    return f.encrypt(value.encode()).decode()


def decrypt_secret(encrypted: str) -> str:
    """Decrypt a stored credential."""
    f = Fernet(get_encryption_key())
    return f.decrypt(encrypted.encode()).decode()


def normalize_key(value: str) -> str:
    """
    Comparison key for names: trimmed, inner whitespace collapsed, case-folded.
    Every duplicate check goes through this so "Royal  Strikers " and
    "royal strikers" collide.
    """
    if value is None:
        return ''
    return re.sub(r'\s+', ' ', value.strip()).casefold()


def normalize_email(value: str) -> str:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def normalize_phone(value: str) -> str:
    """Digits only, keeping a leading '+'."""
    if value is None:
        return None
    value = value.strip()
    digits = re.sub(r'\D', '', value)
    return f"+{digits}" if value.startswith('+') else digits


def _iso(value):
    return value.isoformat() if value else None


class Admin(UserMixin, db.Model):
    __tablename__ = 'admins'

    ROLES = ('ADMIN', 'SUPERADMIN')

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(200), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='ADMIN')
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    sessions = db.relationship('UserSession', back_populates='admin', cascade='all, delete-orphan')

    def get_id(self):
        return str(self.id)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def has_role(self, role: str) -> bool:
        """SUPERADMIN satisfies every role check."""
        if role is None or self.role == 'SUPERADMIN':
            return True
        return self.role == role

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'is_active': self.is_active,
            'last_login': _iso(self.last_login),
            'created_at': _iso(self.created_at),
        }


class UserSession(db.Model):
    __tablename__ = 'user_sessions'

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('admins.id', ondelete='CASCADE'), nullable=False)
    jti = db.Column(db.String(64), unique=True, nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(300), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    admin = db.relationship('Admin', back_populates='sessions')

    def is_valid(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        return self.expires_at > now and self.admin is not None and self.admin.is_active


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    tournament_type = db.Column(db.String(20), nullable=False, default='LEAGUE')  # LEAGUE, KNOCKOUT, AUCTION
    status = db.Column(db.String(30), nullable=False, default='UPCOMING')
    venue = db.Column(db.String(200), nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True)
    registration_deadline = db.Column(db.DateTime, nullable=True)
    max_teams = db.Column(db.Integer, nullable=True)
    team_size = db.Column(db.Integer, nullable=False, default=11)
    entry_fee = db.Column(db.Integer, nullable=False, default=0)

    # Auction settings
    is_auction_based = db.Column(db.Boolean, nullable=False, default=False)
    auction_budget = db.Column(db.Integer, nullable=True)
    auction_date = db.Column(db.DateTime, nullable=True)
    auction_team_count = db.Column(db.Integer, nullable=True)
    min_player_points = db.Column(db.Integer, nullable=True)
    player_entry_fee = db.Column(db.Integer, nullable=True)
    team_entry_fee = db.Column(db.Integer, nullable=True)
    min_players_per_team = db.Column(db.Integer, nullable=True)
    max_players_per_team = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    teams = db.relationship('Team', back_populates='tournament', cascade='all, delete-orphan')
    registrations = db.relationship('TeamRegistration', back_populates='tournament', cascade='all, delete-orphan')
    matches = db.relationship('Match', back_populates='tournament', cascade='all, delete-orphan')
    team_owners = db.relationship('TeamOwner', back_populates='tournament', cascade='all, delete-orphan')
    auction_players = db.relationship('AuctionPlayer', back_populates='tournament', cascade='all, delete-orphan')
    images = db.relationship('TournamentImage', back_populates='tournament', cascade='all, delete-orphan')
    payment_methods = db.relationship('TournamentPaymentMethod', back_populates='tournament', cascade='all, delete-orphan')

    def registration_closed(self, now: datetime = None) -> bool:
        """True once the registration deadline has passed."""
        if self.registration_deadline is None:
            return False
        return (now or datetime.utcnow()) > self.registration_deadline

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'tournament_type': self.tournament_type,
            'status': self.status,
            'venue': self.venue,
            'start_date': _iso(self.start_date),
            'end_date': _iso(self.end_date),
            'registration_deadline': _iso(self.registration_deadline),
            'max_teams': self.max_teams,
            'team_size': self.team_size,
            'entry_fee': self.entry_fee,
            'is_auction_based': self.is_auction_based,
            'auction_budget': self.auction_budget,
            'auction_date': _iso(self.auction_date),
            'auction_team_count': self.auction_team_count,
            'min_player_points': self.min_player_points,
            'player_entry_fee': self.player_entry_fee,
            'team_entry_fee': self.team_entry_fee,
            'min_players_per_team': self.min_players_per_team,
            'max_players_per_team': self.max_players_per_team,
            'team_count': len(self.teams),
            'created_at': _iso(self.created_at),
        }


class Team(db.Model):
    __tablename__ = 'teams'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    name_key = db.Column(db.String(100), nullable=False)
    captain_name = db.Column(db.String(100), nullable=False)
    captain_phone = db.Column(db.String(30), nullable=True)
    captain_email = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    home_ground = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='teams')
    players = db.relationship('Player', back_populates='team', cascade='all, delete-orphan',
                              order_by='Player.id')
    registration = db.relationship('TeamRegistration', back_populates='team', uselist=False,
                                   cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'name_key', name='unique_team_name_per_tournament'),
    )

    def to_dict(self, include_players: bool = False):
        data = {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'name': self.name,
            'captain_name': self.captain_name,
            'captain_phone': self.captain_phone,
            'captain_email': self.captain_email,
            'city': self.city,
            'home_ground': self.home_ground,
            'player_count': len(self.players),
        }
        if include_players:
            data['players'] = [p.to_dict() for p in self.players]
        return data


class Player(db.Model):
    __tablename__ = 'players'

    POSITIONS = ('BATSMAN', 'BOWLER', 'ALL_ROUNDER', 'WICKET_KEEPER')
    EXPERIENCE = ('BEGINNER', 'INTERMEDIATE', 'ADVANCED', 'PROFESSIONAL')

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    email = db.Column(db.String(200), nullable=True)
    position = db.Column(db.String(20), nullable=False, default='BATSMAN')
    experience = db.Column(db.String(20), nullable=True)
    jersey_number = db.Column(db.Integer, nullable=True)
    is_substitute = db.Column(db.Boolean, nullable=False, default=False)

    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'team_id': self.team_id,
            'name': self.name,
            'age': self.age,
            'phone': self.phone,
            'email': self.email,
            'position': self.position,
            'experience': self.experience,
            'jersey_number': self.jersey_number,
            'is_substitute': self.is_substitute,
        }


class TeamRegistration(db.Model):
    __tablename__ = 'team_registrations'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False, unique=True)
    registration_type = db.Column(db.String(10), nullable=False, default='PUBLIC')  # PUBLIC, ADMIN
    status = db.Column(db.String(20), nullable=False, default='PENDING')  # PENDING, CONFIRMED, REJECTED
    payment_status = db.Column(db.String(20), nullable=False, default='PENDING')  # PENDING, PAID
    payment_method = db.Column(db.String(50), nullable=True)
    payment_amount = db.Column(db.Integer, nullable=True)
    contact_email = db.Column(db.String(200), nullable=True)
    contact_phone = db.Column(db.String(30), nullable=True)
    special_requests = db.Column(db.Text, nullable=True)
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='registrations')
    team = db.relationship('Team', back_populates='registration')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'registration_type': self.registration_type,
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'payment_amount': self.payment_amount,
            'contact_email': self.contact_email,
            'contact_phone': self.contact_phone,
            'special_requests': self.special_requests,
            'registered_at': _iso(self.registered_at),
            'team': self.team.to_dict(include_players=True) if self.team else None,
        }


class TeamOwner(db.Model):
    """An auction team: its owner, sponsor and purse."""
    __tablename__ = 'team_owners'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    team_name = db.Column(db.String(100), nullable=False)
    team_key = db.Column(db.String(100), nullable=False)
    team_index = db.Column(db.Integer, nullable=False, default=1)
    owner_name = db.Column(db.String(100), nullable=False)
    owner_phone = db.Column(db.String(30), nullable=False)
    owner_email = db.Column(db.String(200), nullable=False)
    owner_city = db.Column(db.String(100), nullable=True)
    sponsor_name = db.Column(db.String(100), nullable=True)
    sponsor_contact = db.Column(db.String(100), nullable=True)
    total_budget = db.Column(db.Integer, nullable=False, default=0)
    remaining_budget = db.Column(db.Integer, nullable=False, default=0)
    verified = db.Column(db.Boolean, nullable=False, default=False)
    entry_fee_paid = db.Column(db.Boolean, nullable=False, default=False)
    auction_token = db.Column(db.String(64), unique=True, nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='team_owners')
    players = db.relationship('AuctionPlayer', back_populates='auction_team')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'team_key', name='unique_owner_team_per_tournament'),
        db.UniqueConstraint('tournament_id', 'owner_email', name='unique_owner_email_per_tournament'),
        db.UniqueConstraint('tournament_id', 'owner_phone', name='unique_owner_phone_per_tournament'),
        db.CheckConstraint('remaining_budget >= 0', name='remaining_budget_non_negative'),
        db.CheckConstraint('remaining_budget <= total_budget', name='remaining_budget_within_total'),
    )

    def to_dict(self, include_token: bool = False):
        data = {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'team_name': self.team_name,
            'team_index': self.team_index,
            'owner_name': self.owner_name,
            'owner_phone': self.owner_phone,
            'owner_email': self.owner_email,
            'owner_city': self.owner_city,
            'sponsor_name': self.sponsor_name,
            'sponsor_contact': self.sponsor_contact,
            'total_budget': self.total_budget,
            'remaining_budget': self.remaining_budget,
            'verified': self.verified,
            'entry_fee_paid': self.entry_fee_paid,
            'created_at': _iso(self.created_at),
        }
        if include_token:
            data['auction_token'] = self.auction_token
        return data

    def summary(self):
        return {'id': self.id, 'team_name': self.team_name, 'owner_name': self.owner_name}


class AuctionPlayer(db.Model):
    __tablename__ = 'auction_players'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    auction_team_id = db.Column(db.Integer, db.ForeignKey('team_owners.id', ondelete='SET NULL'), nullable=True)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=True)
    phone = db.Column(db.String(30), nullable=False)
    email = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    position = db.Column(db.String(20), nullable=False, default='BATSMAN')
    batting_style = db.Column(db.String(50), nullable=True)
    bowling_style = db.Column(db.String(50), nullable=True)
    experience = db.Column(db.String(20), nullable=True)
    base_price = db.Column(db.Integer, nullable=False, default=0)
    sold_price = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='AVAILABLE')
    entry_fee_paid = db.Column(db.Boolean, nullable=False, default=False)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='auction_players')
    auction_team = db.relationship('TeamOwner', back_populates='players')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'phone', name='unique_auction_phone_per_tournament'),
        db.UniqueConstraint('tournament_id', 'email', name='unique_auction_email_per_tournament'),
        db.CheckConstraint('sold_price IS NULL OR sold_price >= 0', name='sold_price_non_negative'),
    )
    __mapper_args__ = {'version_id_col': version}

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'name': self.name,
            'age': self.age,
            'phone': self.phone,
            'email': self.email,
            'city': self.city,
            'position': self.position,
            'batting_style': self.batting_style,
            'bowling_style': self.bowling_style,
            'experience': self.experience,
            'base_price': self.base_price,
            'sold_price': self.sold_price,
            'status': self.status,
            'entry_fee_paid': self.entry_fee_paid,
            'auction_team_id': self.auction_team_id,
            'auction_team': self.auction_team.summary() if self.auction_team else None,
            'updated_at': _iso(self.updated_at),
        }


class Match(db.Model):
    __tablename__ = 'matches'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True)
    away_team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True)
    match_date = db.Column(db.DateTime, nullable=True)
    venue = db.Column(db.String(200), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='SCHEDULED')  # SCHEDULED, LIVE, COMPLETED, CANCELLED
    result = db.Column(db.Text, nullable=True)
    winner_team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='matches')
    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'home_team': self.home_team.name if self.home_team else None,
            'away_team': self.away_team.name if self.away_team else None,
            'home_team_id': self.home_team_id,
            'away_team_id': self.away_team_id,
            'match_date': _iso(self.match_date),
            'venue': self.venue,
            'status': self.status,
            'result': self.result,
            'winner_team_id': self.winner_team_id,
        }


class PaymentSettings(db.Model):
    __tablename__ = 'payment_settings'

    id = db.Column(db.Integer, primary_key=True)
    upi_id = db.Column(db.String(100), nullable=True)
    upi_name = db.Column(db.String(100), nullable=True)
    qr_code_url = db.Column(db.String(500), nullable=True)
    bank_name = db.Column(db.String(100), nullable=True)
    account_number = db.Column(db.String(50), nullable=True)
    ifsc_code = db.Column(db.String(20), nullable=True)
    account_holder = db.Column(db.String(100), nullable=True)
    instructions = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    FIELDS = ('upi_id', 'upi_name', 'qr_code_url', 'bank_name', 'account_number',
              'ifsc_code', 'account_holder', 'instructions')

    def to_dict(self):
        data = {field: getattr(self, field) for field in self.FIELDS}
        data['id'] = self.id
        data['is_active'] = self.is_active
        return data


class TournamentPaymentMethod(db.Model):
    __tablename__ = 'tournament_payment_methods'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    method_name = db.Column(db.String(100), nullable=False)
    upi_id = db.Column(db.String(100), nullable=True)
    upi_name = db.Column(db.String(100), nullable=True)
    qr_code_url = db.Column(db.String(500), nullable=True)
    bank_name = db.Column(db.String(100), nullable=True)
    account_number = db.Column(db.String(50), nullable=True)
    ifsc_code = db.Column(db.String(20), nullable=True)
    account_holder = db.Column(db.String(100), nullable=True)
    amount = db.Column(db.Integer, nullable=True)
    instructions = db.Column(db.Text, nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='payment_methods')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'method_name': self.method_name,
            'upi_id': self.upi_id,
            'upi_name': self.upi_name,
            'qr_code_url': self.qr_code_url,
            'bank_name': self.bank_name,
            'account_number': self.account_number,
            'ifsc_code': self.ifsc_code,
            'account_holder': self.account_holder,
            'amount': self.amount,
            'instructions': self.instructions,
            'display_order': self.display_order,
            'is_active': self.is_active,
        }


class EmailConfiguration(db.Model):
    __tablename__ = 'email_configurations'

    id = db.Column(db.Integer, primary_key=True)
    smtp_host = db.Column(db.String(200), nullable=False)
    smtp_port = db.Column(db.Integer, nullable=False, default=587)
    smtp_user = db.Column(db.String(200), nullable=False)
    smtp_password_encrypted = db.Column(db.String(500), nullable=False)
    from_email = db.Column(db.String(200), nullable=False)
    from_name = db.Column(db.String(100), nullable=True)
    use_ssl = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def smtp_password(self) -> str:
        return decrypt_secret(self.smtp_password_encrypted)

    @smtp_password.setter
    def smtp_password(self, value: str):
        self.smtp_password_encrypted = encrypt_secret(value)

    def to_dict(self):
        return {
            'id': self.id,
            'smtp_host': self.smtp_host,
            'smtp_port': self.smtp_port,
            'smtp_user': self.smtp_user,
            'from_email': self.from_email,
            'from_name': self.from_name,
            'use_ssl': self.use_ssl,
            'is_active': self.is_active,
            'password_set': bool(self.smtp_password_encrypted),
            'updated_at': _iso(self.updated_at),
        }


class EmailLog(db.Model):
    __tablename__ = 'email_logs'

    id = db.Column(db.Integer, primary_key=True)
    recipient = db.Column(db.String(200), nullable=False, index=True)
    subject = db.Column(db.String(300), nullable=False)
    template_key = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(10), nullable=False)  # SENT, FAILED
    error = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'recipient': self.recipient,
            'subject': self.subject,
            'template_key': self.template_key,
            'status': self.status,
            'error': self.error,
            'created_at': _iso(self.created_at),
        }


class LandingPageSection(db.Model):
    __tablename__ = 'landing_page_sections'

    id = db.Column(db.Integer, primary_key=True)
    section_type = db.Column(db.String(50), unique=True, nullable=False)
    title = db.Column(db.String(200), nullable=False)
    subtitle = db.Column(db.String(300), nullable=True)
    content = db.Column(db.Text, nullable=True)
    background_color = db.Column(db.String(30), nullable=True)
    text_color = db.Column(db.String(30), nullable=True)
    layout = db.Column(db.String(30), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    people = db.relationship('Person', back_populates='section', cascade='all, delete-orphan',
                             order_by='Person.sort_order')
    images = db.relationship('SectionImage', back_populates='section', cascade='all, delete-orphan',
                             order_by='SectionImage.sort_order')

    def to_dict(self, active_only: bool = False):
        people = [p for p in self.people if p.is_visible()] if active_only else self.people
        images = [i for i in self.images if i.is_active] if active_only else self.images
        return {
            'id': self.id,
            'section_type': self.section_type,
            'title': self.title,
            'subtitle': self.subtitle,
            'content': self.content,
            'background_color': self.background_color,
            'text_color': self.text_color,
            'layout': self.layout,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
            'people': [p.to_dict() for p in people],
            'images': [i.to_dict() for i in images],
        }


class Person(db.Model):
    __tablename__ = 'people'

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(db.Integer, db.ForeignKey('landing_page_sections.id', ondelete='CASCADE'), nullable=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(100), nullable=False)
    designation = db.Column(db.String(100), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    email = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(30), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    show_on_landing = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    section = db.relationship('LandingPageSection', back_populates='people')

    def is_visible(self) -> bool:
        return self.is_active and self.show_on_landing

    def to_dict(self):
        return {
            'id': self.id,
            'section_id': self.section_id,
            'name': self.name,
            'role': self.role,
            'designation': self.designation,
            'bio': self.bio,
            'image_url': self.image_url,
            'email': self.email,
            'phone': self.phone,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
            'show_on_landing': self.show_on_landing,
        }


class SectionImage(db.Model):
    __tablename__ = 'section_images'

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(db.Integer, db.ForeignKey('landing_page_sections.id', ondelete='CASCADE'), nullable=False)
    image_url = db.Column(db.String(500), nullable=False)
    caption = db.Column(db.String(300), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    section = db.relationship('LandingPageSection', back_populates='images')

    def to_dict(self):
        return {
            'id': self.id,
            'section_id': self.section_id,
            'image_url': self.image_url,
            'caption': self.caption,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
        }


class TournamentImage(db.Model):
    __tablename__ = 'tournament_images'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    image_url = db.Column(db.String(500), nullable=False)
    caption = db.Column(db.String(300), nullable=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='images')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'image_url': self.image_url,
            'caption': self.caption,
            'is_primary': self.is_primary,
            'created_at': _iso(self.created_at),
        }
