import logging
import secrets
from typing import Dict, List

from flask import current_app

from .errors import NotFound, ValidationFailed
from .models import db, TeamOwner, Tournament

logger = logging.getLogger(__name__)


class OwnerManager:
    """
    Manages auction team owners after registration.
    Verification issues the private dashboard token that owners use instead
    of an admin login.
    """

    ACTIONS = ('VERIFY', 'MARK_PAID', 'UNMARK_PAID', 'REJECT', 'REGENERATE_TOKEN')

    def __init__(self, auction_engine, notifier=None):
        self.auction = auction_engine
        self.notifier = notifier

    @staticmethod
    def new_token() -> str:
        return secrets.token_urlsafe(32)

    @staticmethod
    def portal_url(token: str) -> str:
        base = current_app.config.get('PUBLIC_BASE_URL', '').rstrip('/')
        return f"{base}/api/v1/owner-portal/{token}"

    def list_owners(self, tournament_id: int) -> List[Dict]:
        if not db.session.get(Tournament, tournament_id):
            raise NotFound('Tournament not found')
        owners = TeamOwner.query.filter_by(tournament_id=tournament_id).order_by(
            TeamOwner.team_index, TeamOwner.id
        ).all()
        return [
            dict(owner.to_dict(include_token=True), budget=self.auction.budget_summary(owner))
            for owner in owners
        ]

    def apply(self, tournament_id: int, owner_id: int, action: str, reason: str = None) -> TeamOwner:
        """Apply an admin action to a team owner and send the matching email."""
        owner = TeamOwner.query.filter_by(id=owner_id, tournament_id=tournament_id).first()
        if not owner:
            raise NotFound('Team owner not found')
        if action not in self.ACTIONS:
            raise ValidationFailed(f"Unknown action '{action}'")

        template = None
        if action == 'VERIFY':
            owner.verified = True
            if not owner.auction_token:
                owner.auction_token = self.new_token()
            template = 'owner_verified'
        elif action == 'MARK_PAID':
            owner.entry_fee_paid = True
            template = 'owner_payment_received'
        elif action == 'UNMARK_PAID':
            owner.entry_fee_paid = False
        elif action == 'REJECT':
            owner.verified = False
            owner.entry_fee_paid = False
            owner.auction_token = None
            template = 'owner_rejected'
        elif action == 'REGENERATE_TOKEN':
            if not owner.verified:
                raise ValidationFailed('Only verified owners have a dashboard link')
            owner.auction_token = self.new_token()
            template = 'owner_verified'

        db.session.commit()
        logger.info(f"Team owner {owner.id} ({owner.team_name}): {action}")

        if template and self.notifier:
            self.notifier.notify(
                template,
                owner.owner_email,
                team=owner,
                tournament=owner.tournament,
                portal_url=self.portal_url(owner.auction_token) if owner.auction_token else None,
                reason=reason,
            )
        return owner
