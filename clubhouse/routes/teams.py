from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..schemas import PlayerEntry, PlayerUpdate, TeamUpdate, parse

bp = Blueprint('teams', __name__, url_prefix='/api/v1')


@bp.route('/teams/<int:team_id>', methods=['GET'])
def get_team(team_id: int):
    team = current_app.teams.get_team(team_id)
    return jsonify(team.to_dict(include_players=True))


@bp.route('/teams/<int:team_id>', methods=['PATCH', 'PUT'])
@admin_required()
def update_team(team_id: int):
    body = parse(TeamUpdate, request.get_json(silent=True))
    team = current_app.teams.update_team(team_id, **body.model_dump(exclude_unset=True))
    return jsonify({'message': 'Team updated', 'team': team.to_dict(include_players=True)})


@bp.route('/teams/<int:team_id>', methods=['DELETE'])
@admin_required()
def delete_team(team_id: int):
    current_app.teams.delete_team(team_id)
    return jsonify({'message': 'Team deleted'})


# ==================== Players ====================

@bp.route('/teams/<int:team_id>/players', methods=['GET'])
def list_players(team_id: int):
    players = current_app.teams.list_players(team_id)
    return jsonify({'players': [p.to_dict() for p in players], 'count': len(players)})


@bp.route('/teams/<int:team_id>/players', methods=['POST'])
@admin_required()
def add_player(team_id: int):
    body = parse(PlayerEntry, request.get_json(silent=True))
    player = current_app.teams.add_player(team_id, **body.model_dump())
    return jsonify({'message': 'Player added', 'player': player.to_dict()}), 201


@bp.route('/players/<int:player_id>', methods=['GET'])
def get_player(player_id: int):
    return jsonify(current_app.teams.get_player(player_id).to_dict())


@bp.route('/players/<int:player_id>', methods=['PATCH', 'PUT'])
@admin_required()
def update_player(player_id: int):
    body = parse(PlayerUpdate, request.get_json(silent=True))
    player = current_app.teams.update_player(player_id, **body.model_dump(exclude_unset=True))
    return jsonify({'message': 'Player updated', 'player': player.to_dict()})


@bp.route('/players/<int:player_id>', methods=['DELETE'])
@admin_required()
def delete_player(player_id: int):
    current_app.teams.delete_player(player_id)
    return jsonify({'message': 'Player deleted'})
