from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required, optional_admin
from ..errors import NotFound
from ..models import db, TeamRegistration
from ..schemas import RegistrationUpdate, TeamRegistrationCreate, parse

bp = Blueprint('registrations', __name__, url_prefix='/api/v1')


@bp.route('/tournaments/<int:tournament_id>/team-registration', methods=['POST'])
def register_team(tournament_id: int):
    """Register a team and its players for a tournament."""
    body = parse(TeamRegistrationCreate, request.get_json(silent=True))
    admin = optional_admin() if body.registration_type == 'ADMIN' else None

    registration = current_app.registrations.register_team(tournament_id, body, admin=admin)
    return jsonify({
        'success': True,
        'message': 'Team registered successfully',
        'registration': registration.to_dict()
    }), 201


@bp.route('/tournaments/<int:tournament_id>/registrations', methods=['GET'])
@admin_required()
def list_registrations(tournament_id: int):
    registrations = current_app.registrations.list_registrations(
        tournament_id, status=request.args.get('status')
    )
    return jsonify({
        'registrations': [r.to_dict() for r in registrations],
        'count': len(registrations)
    })


@bp.route('/registrations/<int:registration_id>', methods=['GET'])
@admin_required()
def get_registration(registration_id: int):
    registration = db.session.get(TeamRegistration, registration_id)
    if not registration:
        raise NotFound('Registration not found')
    return jsonify(registration.to_dict())


@bp.route('/registrations/<int:registration_id>', methods=['PATCH'])
@admin_required()
def update_registration(registration_id: int):
    body = parse(RegistrationUpdate, request.get_json(silent=True))
    registration = current_app.registrations.update_registration(registration_id, body)
    return jsonify({
        'success': True,
        'message': 'Registration updated',
        'registration': registration.to_dict()
    })
