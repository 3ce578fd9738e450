from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..schemas import TournamentCreate, TournamentImageCreate, TournamentUpdate, parse

bp = Blueprint('tournaments', __name__, url_prefix='/api/v1/tournaments')

LIFECYCLE_ACTIONS = '"open-registration", "close-registration", start, complete, cancel, reopen'


@bp.route('', methods=['GET'])
def list_tournaments():
    """List tournaments with optional filtering."""
    status = request.args.get('status')
    limit = min(request.args.get('limit', 50, type=int), 200)
    offset = request.args.get('offset', 0, type=int)

    tournaments = current_app.registry.list_tournaments(
        status=status,
        limit=limit,
        offset=offset
    )

    return jsonify({
        'tournaments': [t.to_dict() for t in tournaments],
        'count': len(tournaments),
        'limit': limit,
        'offset': offset
    })


@bp.route('', methods=['POST'])
@admin_required()
def create_tournament():
    body = parse(TournamentCreate, request.get_json(silent=True))
    tournament = current_app.registry.create_tournament(**body.model_dump())
    return jsonify({
        'message': 'Tournament created',
        'tournament': tournament.to_dict()
    }), 201


@bp.route('/<int:tournament_id>', methods=['GET'])
def get_tournament(tournament_id: int):
    tournament = current_app.registry.require_tournament(tournament_id)
    return jsonify(tournament.to_dict())


@bp.route('/<int:tournament_id>', methods=['PUT', 'PATCH'])
@admin_required()
def update_tournament(tournament_id: int):
    body = parse(TournamentUpdate, request.get_json(silent=True))
    tournament = current_app.registry.update_tournament(
        tournament_id, **body.model_dump(exclude_unset=True)
    )
    return jsonify({
        'message': 'Tournament updated',
        'tournament': tournament.to_dict()
    })


@bp.route('/<int:tournament_id>', methods=['DELETE'])
@admin_required()
def delete_tournament(tournament_id: int):
    current_app.registry.delete_tournament(tournament_id)
    return jsonify({'message': 'Tournament deleted'})


@bp.route(f'/<int:tournament_id>/<any({LIFECYCLE_ACTIONS}):action>', methods=['POST'])
@admin_required()
def change_state(tournament_id: int, action: str):
    """Move a tournament through its lifecycle."""
    tournament = current_app.registry.change_state(tournament_id, action.replace('-', '_'))
    return jsonify({
        'message': f"Tournament is now {tournament.status}",
        'tournament': tournament.to_dict()
    })


@bp.route('/<int:tournament_id>/teams', methods=['GET'])
def list_teams(tournament_id: int):
    tournament = current_app.registry.require_tournament(tournament_id)
    teams = [
        team.to_dict() for team in tournament.teams
        if team.registration is None or team.registration.status == 'CONFIRMED'
    ]
    return jsonify({'teams': teams, 'count': len(teams)})


# ==================== Images ====================

@bp.route('/<int:tournament_id>/images', methods=['GET'])
def list_images(tournament_id: int):
    images = current_app.registry.list_images(tournament_id)
    return jsonify({'images': [i.to_dict() for i in images]})


@bp.route('/<int:tournament_id>/images', methods=['POST'])
@admin_required()
def add_image(tournament_id: int):
    body = parse(TournamentImageCreate, request.get_json(silent=True))
    image = current_app.registry.add_image(tournament_id, **body.model_dump())
    return jsonify({'message': 'Image added', 'image': image.to_dict()}), 201


@bp.route('/<int:tournament_id>/images/<int:image_id>', methods=['DELETE'])
@admin_required()
def delete_image(tournament_id: int, image_id: int):
    current_app.registry.delete_image(tournament_id, image_id)
    return jsonify({'message': 'Image deleted'})
