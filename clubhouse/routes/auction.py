from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context
from flask_jwt_extended import verify_jwt_in_request

from ..auth import admin_required
from ..errors import ClubError, Forbidden
from ..schemas import AuctionPlayerCreate, auction_update_adapter, parse

bp = Blueprint('auction', __name__, url_prefix='/api/v1')


@bp.route('/tournaments/<int:tournament_id>/auction', methods=['GET'])
@admin_required()
def auction_overview(tournament_id: int):
    """Budgets per team and player counts per status."""
    return jsonify(current_app.auction.overview(tournament_id))


@bp.route('/tournaments/<int:tournament_id>/auction/live')
def auction_live(tournament_id: int):
    """SSE stream of auction-floor events."""
    feed = current_app.feed
    if not feed.enabled:
        raise ClubError('Live auction feed is not configured', status_code=503)

    return Response(stream_with_context(feed.stream(tournament_id)), mimetype='text/event-stream', headers={
        'Cache-Control': 'no-cache',
        'X-Accel-Buffering': 'no'
    })


@bp.route('/tournaments/<int:tournament_id>/auction/events', methods=['GET'])
def auction_events(tournament_id: int):
    """Most recent auction events, newest first, for screens joining mid-auction."""
    count = min(request.args.get('count', 50, type=int), 200)
    events = current_app.feed.recent_events(tournament_id, count=count)
    return jsonify({'events': [e.to_dict() for e in events], 'live': current_app.feed.enabled})


@bp.route('/tournaments/<int:tournament_id>/auction-players', methods=['GET'])
def list_auction_players(tournament_id: int):
    current_app.registry.require_tournament(tournament_id)
    players = current_app.auction.list_players(tournament_id, status=request.args.get('status'))
    return jsonify({'players': [p.to_dict() for p in players], 'count': len(players)})


@bp.route('/tournaments/<int:tournament_id>/auction-players', methods=['POST'])
def register_auction_player(tournament_id: int):
    """Public registration of a player for the auction pool."""
    body = parse(AuctionPlayerCreate, request.get_json(silent=True))
    player = current_app.registrations.register_auction_player(tournament_id, body)
    return jsonify({
        'success': True,
        'message': 'Player registered for the auction',
        'player': player.to_dict()
    }), 201


@bp.route('/tournaments/<int:tournament_id>/players/<int:player_id>', methods=['PATCH'])
@admin_required()
def update_auction_player(tournament_id: int, player_id: int):
    """Mark a player sold, unsold or available, or approve/reject their registration."""
    command = parse(auction_update_adapter, request.get_json(silent=True))
    player = current_app.auction.update_player(tournament_id, player_id, command)
    return jsonify({
        'success': True,
        'message': f"Player {player.name} is now {player.status}",
        'player': player.to_dict()
    })


@bp.route('/tournaments/<int:tournament_id>/team-owners/<int:owner_id>/dashboard', methods=['GET'])
def owner_dashboard(tournament_id: int, owner_id: int):
    """Team dashboard for admins, or for the owner holding the team's private token."""
    token = request.args.get('token')
    if token:
        owner = current_app.auction.owner_by_token(token)
        if owner.id != owner_id or owner.tournament_id != tournament_id:
            raise Forbidden('This link belongs to a different team')
    else:
        verify_jwt_in_request()

    return jsonify(current_app.auction.owner_dashboard(tournament_id, owner_id))


@bp.route('/owner-portal/<token>', methods=['GET'])
def owner_portal(token: str):
    owner = current_app.auction.owner_by_token(token)
    return jsonify(current_app.auction.owner_dashboard(owner.tournament_id, owner.id))
