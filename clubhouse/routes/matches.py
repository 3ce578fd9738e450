from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..schemas import MatchCreate, MatchUpdate, parse

bp = Blueprint('matches', __name__, url_prefix='/api/v1')


@bp.route('/tournaments/<int:tournament_id>/matches', methods=['GET'])
def list_matches(tournament_id: int):
    matches = current_app.matches.list_matches(tournament_id, status=request.args.get('status'))
    return jsonify({'matches': [m.to_dict() for m in matches], 'count': len(matches)})


@bp.route('/tournaments/<int:tournament_id>/matches', methods=['POST'])
@admin_required()
def schedule_match(tournament_id: int):
    body = parse(MatchCreate, request.get_json(silent=True))
    match = current_app.matches.schedule(tournament_id, **body.model_dump())
    return jsonify({'message': 'Match scheduled', 'match': match.to_dict()}), 201


@bp.route('/matches/<int:match_id>', methods=['GET'])
def get_match(match_id: int):
    return jsonify(current_app.matches.get_match(match_id).to_dict())


@bp.route('/matches/<int:match_id>', methods=['PATCH', 'PUT'])
@admin_required()
def update_match(match_id: int):
    body = parse(MatchUpdate, request.get_json(silent=True))
    match = current_app.matches.update(match_id, **body.model_dump(exclude_unset=True))
    return jsonify({'message': 'Match updated', 'match': match.to_dict()})


@bp.route('/matches/<int:match_id>', methods=['DELETE'])
@admin_required()
def delete_match(match_id: int):
    current_app.matches.delete(match_id)
    return jsonify({'message': 'Match deleted'})
