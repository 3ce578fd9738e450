from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_current_user, jwt_required, set_access_cookies, unset_jwt_cookies

from ..auth import admin_required, authenticate, client_details, issue_session, revoke_current_session
from ..schemas import LoginRequest, parse

bp = Blueprint('auth', __name__, url_prefix='/api/v1/auth')


@bp.route('/login', methods=['POST'])
def login():
    """Log an admin in and set the session cookie."""
    body = parse(LoginRequest, request.get_json(silent=True))
    admin = authenticate(body.username, body.password)

    ip_address, user_agent = client_details()
    token, session = issue_session(admin, ip_address=ip_address, user_agent=user_agent)

    response = jsonify({
        'success': True,
        'admin': admin.to_dict(),
        'token': token,
        'expires_at': session.expires_at.isoformat(),
    })
    set_access_cookies(response, token, max_age=int(current_app.config['JWT_ACCESS_TOKEN_EXPIRES'].total_seconds()))
    return response


@bp.route('/verify', methods=['GET'])
@admin_required()
def verify():
    return jsonify({'success': True, 'admin': get_current_user().to_dict()})


@bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    revoke_current_session()
    response = jsonify({'success': True, 'message': 'Logged out'})
    unset_jwt_cookies(response)
    return response
