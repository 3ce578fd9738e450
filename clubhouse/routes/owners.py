from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..schemas import BudgetUpdate, OwnerAction, TeamOwnerCreate, parse

bp = Blueprint('owners', __name__, url_prefix='/api/v1/tournaments/<int:tournament_id>/team-owners')


@bp.route('', methods=['POST'])
def register_owner(tournament_id: int):
    """Public registration of an auction team owner."""
    body = parse(TeamOwnerCreate, request.get_json(silent=True))
    owner = current_app.registrations.register_owner(tournament_id, body)
    return jsonify({
        'success': True,
        'message': 'Team owner registered successfully',
        'team_owner': owner.to_dict()
    }), 201


@bp.route('', methods=['GET'])
@admin_required()
def list_owners(tournament_id: int):
    owners = current_app.owners.list_owners(tournament_id)
    return jsonify({'team_owners': owners, 'count': len(owners)})


@bp.route('/<int:owner_id>', methods=['PATCH'])
@admin_required()
def update_owner(tournament_id: int, owner_id: int):
    body = parse(OwnerAction, request.get_json(silent=True))
    owner = current_app.owners.apply(tournament_id, owner_id, body.action, reason=body.reason)
    return jsonify({
        'success': True,
        'message': f"{body.action} applied",
        'team_owner': owner.to_dict(include_token=True)
    })


@bp.route('/<int:owner_id>/budget', methods=['PUT'])
@admin_required()
def set_budget(tournament_id: int, owner_id: int):
    body = parse(BudgetUpdate, request.get_json(silent=True))
    owner = current_app.auction.set_team_budget(tournament_id, owner_id, body.total_budget)
    return jsonify({
        'success': True,
        'team_owner': owner.to_dict(),
        'budget': current_app.auction.budget_summary(owner)
    })
