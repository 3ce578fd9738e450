"""
Admin authentication.

Admins log in with a username (or email) and password and receive a JWT,
delivered both in the response body and as the HTTP-only `auth-token` cookie.
Each token's `jti` is stored as a UserSession row; a token is only honoured
while its session row exists, has not expired and belongs to an active admin,
so logout and deactivation take effect immediately.
"""
import logging
from datetime import datetime
from functools import wraps
from typing import Optional, Tuple

from flask import jsonify, request
from flask_jwt_extended import (
    JWTManager, create_access_token, decode_token, get_current_user, get_jwt, verify_jwt_in_request,
)

from .errors import Forbidden, Unauthorized
from .models import db, Admin, UserSession

logger = logging.getLogger(__name__)

jwt = JWTManager()


@jwt.user_identity_loader
def _identity(admin):
    return str(admin.id) if isinstance(admin, Admin) else str(admin)


@jwt.user_lookup_loader
def _load_admin(jwt_header, jwt_data):
    return db.session.get(Admin, int(jwt_data['sub']))


@jwt.token_in_blocklist_loader
def _session_revoked(jwt_header, jwt_payload) -> bool:
    session = UserSession.query.filter_by(jti=jwt_payload['jti']).first()
    return session is None or not session.is_valid()


@jwt.unauthorized_loader
def _missing_token(reason):
    return jsonify({'error': 'Authentication required'}), 401


@jwt.invalid_token_loader
def _invalid_token(reason):
    return jsonify({'error': 'Invalid token'}), 401


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({'error': 'Session expired'}), 401


@jwt.revoked_token_loader
def _revoked_token(jwt_header, jwt_payload):
    return jsonify({'error': 'Session is no longer valid'}), 401


@jwt.user_lookup_error_loader
def _unknown_admin(jwt_header, jwt_payload):
    return jsonify({'error': 'Account not found'}), 401


def authenticate(username: str, password: str) -> Admin:
    """Return the active admin matching the credentials or raise Unauthorized."""
    login = username.strip()
    admin = Admin.query.filter(
        (Admin.username == login) | (Admin.email == login.lower())
    ).first()
    if not admin or not admin.is_active or not admin.check_password(password):
        logger.info(f"Failed login for '{login}'")
        raise Unauthorized('Invalid username or password')
    return admin


def issue_session(admin: Admin, ip_address: str = None, user_agent: str = None) -> Tuple[str, UserSession]:
    token = create_access_token(
        identity=admin,
        additional_claims={'role': admin.role, 'username': admin.username}
    )
    claims = decode_token(token)
    session = UserSession(
        admin_id=admin.id,
        jti=claims['jti'],
        expires_at=datetime.utcfromtimestamp(claims['exp']),
        ip_address=ip_address,
        user_agent=(user_agent or '')[:300] or None,
    )
    admin.last_login = datetime.utcnow()
    db.session.add(session)
    db.session.commit()
    logger.info(f"Admin {admin.username} logged in")
    return token, session


def revoke_current_session():
    jti = get_jwt().get('jti')
    if jti:
        UserSession.query.filter_by(jti=jti).delete()
        db.session.commit()


def purge_expired_sessions() -> int:
    count = UserSession.query.filter(UserSession.expires_at <= datetime.utcnow()).delete()
    db.session.commit()
    return count


def admin_required(role: str = None):
    """
    Require a valid admin session. With `role`, also require that role
    (SUPERADMIN passes every role check).
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not get_current_user().has_role(role):
                raise Forbidden('Insufficient permissions')
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def optional_admin() -> Optional[Admin]:
    """The admin behind the request's token, or None when there is no token."""
    if verify_jwt_in_request(optional=True) is None:
        return None
    return get_current_user()


def client_details() -> Tuple[Optional[str], Optional[str]]:
    forwarded = request.headers.get('X-Forwarded-For', '')
    ip_address = forwarded.split(',')[0].strip() if forwarded else request.remote_addr
    return ip_address, request.headers.get('User-Agent')
