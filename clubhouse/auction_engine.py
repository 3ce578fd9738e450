import logging
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from .errors import BudgetExceeded, Conflict, NotFound, ValidationFailed
from .models import db, AuctionPlayer, TeamOwner, Tournament
from shared.events import auction_event, budget_changed_event
from shared.pubsub import LiveFeed
from shared.state_machine import AuctionAction, AuctionStateMachine, AuctionStatus

logger = logging.getLogger(__name__)

SOLD = AuctionStatus.SOLD.value
HOLDING_STATUSES = sorted(s.value for s in AuctionStateMachine.HOLDS_TEAM)

RELEASING_ACTIONS = {AuctionAction.MARK_UNSOLD.value, AuctionAction.MARK_AVAILABLE.value}

NOTIFY_TEMPLATES = {
    AuctionAction.MARK_SOLD.value: 'player_sold',
    AuctionAction.MARK_UNSOLD.value: 'player_unsold',
    AuctionAction.APPROVE.value: 'player_approved',
    AuctionAction.REJECT.value: 'player_rejected',
}


class AuctionEngine:
    """
    Auction-floor bookkeeping:
    - Apply admin status changes to auction players through the transition table
    - Keep each team's stored remaining budget in step with its purchases
    - Report and repair budget drift
    - Build the owner dashboard and auction overview
    """

    def __init__(self, feed: LiveFeed = None, notifier=None):
        self.feed = feed or LiveFeed()
        self.notifier = notifier

    # ==================== Lookups ====================

    def get_player(self, tournament_id: int, player_id: int) -> AuctionPlayer:
        player = AuctionPlayer.query.filter_by(id=player_id, tournament_id=tournament_id).first()
        if not player:
            raise NotFound('Player not found')
        return player

    def get_owner(self, tournament_id: int, owner_id: int) -> TeamOwner:
        owner = TeamOwner.query.filter_by(id=owner_id, tournament_id=tournament_id).first()
        if not owner:
            raise NotFound('Team not found')
        return owner

    def list_players(self, tournament_id: int, status: str = None) -> List[AuctionPlayer]:
        query = AuctionPlayer.query.filter_by(tournament_id=tournament_id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(AuctionPlayer.created_at.asc(), AuctionPlayer.id.asc()).all()

    # ==================== Status changes ====================

    def update_player(self, tournament_id: int, player_id: int, command) -> AuctionPlayer:
        """
        Apply one auction action to a player.

        `command` is a validated body from schemas.AuctionPlayerUpdate. Budget
        changes and the player row are written in one transaction; the player's
        version column turns a concurrent edit into a Conflict.
        """
        player = self.get_player(tournament_id, player_id)
        action = command.action

        sm = AuctionStateMachine.from_state_string(player.status)
        new_status = sm.next_state(action)

        holds_team = sm.state in AuctionStateMachine.HOLDS_TEAM
        previous_team_id = player.auction_team_id if holds_team else None
        previous_price = player.sold_price or 0
        buyer = None

        try:
            if action == AuctionAction.MARK_SOLD.value:
                buyer = self._lock_owner(tournament_id, command.auction_team_id)
                self._check_roster(player.tournament, buyer)
                reserve = self._reserve_for(player.tournament, buyer)
                self._debit(buyer, command.sold_price, reserve)
                player.auction_team_id = buyer.id
                player.sold_price = command.sold_price
            elif action in RELEASING_ACTIONS:
                if previous_team_id is not None:
                    self._credit(previous_team_id, previous_price)
                player.auction_team_id = None
                player.sold_price = None

            player.status = new_status.value
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            logger.warning(f"Concurrent update rejected for auction player {player_id}")
            raise Conflict('Player was modified by another request; reload and try again')
        except IntegrityError as e:
            db.session.rollback()
            logger.warning(f"Auction update for player {player_id} violated a constraint: {e.orig}")
            raise Conflict('Update conflicts with the current auction state')
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            f"Auction player {player.id} in tournament {tournament_id}: {action} -> {player.status}"
        )
        self._after_update(player, action, buyer, previous_team_id)
        return player

    def _lock_owner(self, tournament_id: int, owner_id: int) -> TeamOwner:
        """Load the buying team with a row lock; roster counts and the debit run under it."""
        owner = (
            db.session.query(TeamOwner)
            .filter(TeamOwner.id == owner_id, TeamOwner.tournament_id == tournament_id)
            .with_for_update()
            .first()
        )
        if not owner:
            raise NotFound('Team not found')
        return owner

    def _check_roster(self, tournament: Tournament, team: TeamOwner):
        if not tournament.max_players_per_team:
            return
        if self._roster_size(team.id) >= tournament.max_players_per_team:
            raise ValidationFailed(
                f"{team.team_name} already has the maximum of "
                f"{tournament.max_players_per_team} players"
            )

    def _reserve_for(self, tournament: Tournament, team: TeamOwner) -> int:
        """Points a team must keep back to still afford its minimum squad after this purchase."""
        if not tournament.min_players_per_team or not tournament.min_player_points:
            return 0
        still_needed = tournament.min_players_per_team - (self._roster_size(team.id) + 1)
        return max(0, still_needed) * tournament.min_player_points

    def _roster_size(self, team_id: int) -> int:
        return AuctionPlayer.query.filter(
            AuctionPlayer.auction_team_id == team_id,
            AuctionPlayer.status.in_(HOLDING_STATUSES)
        ).count()

    def _debit(self, team: TeamOwner, amount: int, reserve: int = 0):
        result = db.session.execute(
            update(TeamOwner)
            .where(TeamOwner.id == team.id)
            .where(TeamOwner.remaining_budget >= amount + reserve)
            .values(remaining_budget=TeamOwner.remaining_budget - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.session.refresh(team)
            if reserve and team.remaining_budget >= amount:
                raise BudgetExceeded(
                    f"{team.team_name} must keep {reserve} points for the rest of the squad; "
                    f"remaining budget is {team.remaining_budget}"
                )
            raise BudgetExceeded(
                f"Insufficient budget: {team.team_name} has {team.remaining_budget} remaining"
            )

    def _credit(self, team_id: int, amount: int):
        result = db.session.execute(
            update(TeamOwner)
            .where(TeamOwner.id == team_id)
            .where(TeamOwner.remaining_budget + amount <= TeamOwner.total_budget)
            .values(remaining_budget=TeamOwner.remaining_budget + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.error(f"Refund of {amount} to team {team_id} would exceed its total budget")
            raise Conflict('Team budget is out of sync; run budget reconciliation')

    def _after_update(self, player: AuctionPlayer, action: str, buyer: Optional[TeamOwner],
                      previous_team_id: Optional[int]):
        team = buyer.summary() if buyer else None
        self.feed.publish(auction_event(player.tournament_id, action, player.to_dict(), team))
        for team_id in {t for t in (buyer.id if buyer else None, previous_team_id) if t}:
            owner = db.session.get(TeamOwner, team_id)
            self.feed.publish(budget_changed_event(player.tournament_id, owner.id, owner.remaining_budget))

        template = NOTIFY_TEMPLATES.get(action)
        if not template or not self.notifier or not player.email:
            return
        self.notifier.notify(
            template,
            player.email,
            player=player,
            team=buyer,
            tournament=player.tournament
        )

    # ==================== Budgets ====================

    def budget_summary(self, team: TeamOwner) -> Dict:
        spent, count = db.session.query(
            func.coalesce(func.sum(AuctionPlayer.sold_price), 0),
            func.count(AuctionPlayer.id)
        ).filter(
            AuctionPlayer.auction_team_id == team.id,
            AuctionPlayer.status == SOLD
        ).one()
        computed_remaining = team.total_budget - spent
        return {
            'team_id': team.id,
            'team_name': team.team_name,
            'total_budget': team.total_budget,
            'spent': int(spent),
            'remaining_budget': team.remaining_budget,
            'computed_remaining': int(computed_remaining),
            'drift': int(team.remaining_budget - computed_remaining),
            'player_count': count,
        }

    def reconcile_budgets(self, tournament_id: int = None) -> List[Dict]:
        """Rewrite stored remaining budgets from the sum of sold prices. Returns the fixes made."""
        query = TeamOwner.query
        if tournament_id is not None:
            query = query.filter_by(tournament_id=tournament_id)

        fixes = []
        for team in query.order_by(TeamOwner.id).all():
            summary = self.budget_summary(team)
            if summary['drift'] == 0:
                continue
            target = summary['computed_remaining']
            if target < 0:
                logger.error(
                    f"Team {team.id} has spent {summary['spent']} of {team.total_budget}; "
                    f"raising total budget to match"
                )
                team.total_budget = summary['spent']
                target = 0
            fixes.append({
                'team_id': team.id,
                'team_name': team.team_name,
                'before': team.remaining_budget,
                'after': target,
            })
            team.remaining_budget = target

        db.session.commit()
        for fix in fixes:
            logger.info(f"Reconciled team {fix['team_id']}: {fix['before']} -> {fix['after']}")
        return fixes

    def set_team_budget(self, tournament_id: int, owner_id: int, total_budget: int) -> TeamOwner:
        owner = self.get_owner(tournament_id, owner_id)
        spent = self.budget_summary(owner)['spent']
        if total_budget < spent:
            raise ValidationFailed(
                f"Total budget cannot be below the {spent} points already spent"
            )
        owner.total_budget = total_budget
        owner.remaining_budget = total_budget - spent
        db.session.commit()
        self.feed.publish(budget_changed_event(tournament_id, owner.id, owner.remaining_budget))
        return owner

    # ==================== Read models ====================

    def owner_dashboard(self, tournament_id: int, owner_id: int) -> Dict:
        owner = self.get_owner(tournament_id, owner_id)
        tournament = owner.tournament

        roster = AuctionPlayer.query.filter_by(
            auction_team_id=owner.id, status=SOLD
        ).order_by(AuctionPlayer.updated_at.desc(), AuctionPlayer.id.desc()).all()

        recent_sales = AuctionPlayer.query.filter_by(
            tournament_id=tournament_id, status=SOLD
        ).order_by(AuctionPlayer.updated_at.desc(), AuctionPlayer.id.desc()).limit(10).all()

        total_spent = sum(p.sold_price or 0 for p in roster)
        average_price = round(total_spent / len(roster), 2) if roster else 0
        utilization = round(total_spent / owner.total_budget * 100, 2) if owner.total_budget else 0
        players_needed = max(0, (tournament.min_players_per_team or 0) - len(roster))

        return {
            'owner': owner.to_dict(),
            'tournament': {
                'id': tournament.id,
                'name': tournament.name,
                'status': tournament.status,
                'auction_date': tournament.auction_date.isoformat() if tournament.auction_date else None,
                'min_players_per_team': tournament.min_players_per_team,
                'max_players_per_team': tournament.max_players_per_team,
                'min_player_points': tournament.min_player_points,
            },
            'players': [p.to_dict() for p in roster],
            'recent_sales': [p.to_dict() for p in recent_sales],
            'statistics': {
                'total_players': len(roster),
                'total_spent': total_spent,
                'remaining_budget': owner.remaining_budget,
                'average_price': average_price,
                'position_breakdown': dict(Counter(p.position for p in roster)),
                'players_needed': players_needed,
                'budget_utilization': utilization,
            },
        }

    def owner_by_token(self, token: str) -> TeamOwner:
        owner = TeamOwner.query.filter_by(auction_token=token).first() if token else None
        if not owner or not owner.verified:
            raise NotFound('Invalid or expired auction link')
        return owner

    def overview(self, tournament_id: int) -> Dict:
        tournament = db.session.get(Tournament, tournament_id)
        if not tournament:
            raise NotFound('Tournament not found')

        counts = dict(
            db.session.query(AuctionPlayer.status, func.count(AuctionPlayer.id))
            .filter(AuctionPlayer.tournament_id == tournament_id)
            .group_by(AuctionPlayer.status)
            .all()
        )
        status_counts = {s.value: counts.get(s.value, 0) for s in AuctionStatus}

        teams = [
            dict(owner.to_dict(), budget=self.budget_summary(owner))
            for owner in TeamOwner.query.filter_by(tournament_id=tournament_id)
            .order_by(TeamOwner.team_index, TeamOwner.id).all()
        ]

        return {
            'tournament_id': tournament_id,
            'auction_budget': tournament.auction_budget,
            'teams': teams,
            'status_counts': status_counts,
            'total_spent': sum(t['budget']['spent'] for t in teams),
        }
