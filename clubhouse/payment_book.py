import logging
from typing import Dict, List

from .errors import NotFound
from .models import db, PaymentSettings, Tournament, TournamentPaymentMethod

logger = logging.getLogger(__name__)


class PaymentBook:
    """Where registrants send entry fees: club-wide settings and per-tournament methods."""

    def active_settings(self) -> PaymentSettings:
        return PaymentSettings.query.filter_by(is_active=True).order_by(PaymentSettings.id.desc()).first()

    def settings_dict(self) -> Dict:
        settings = self.active_settings()
        if settings:
            return settings.to_dict()
        data = {field: '' for field in PaymentSettings.FIELDS}
        data['id'] = None
        data['is_active'] = False
        return data

    def save_settings(self, **values) -> PaymentSettings:
        """Deactivate the current settings row and store a new active one."""
        PaymentSettings.query.filter_by(is_active=True).update({'is_active': False})
        settings = PaymentSettings(is_active=True, **{
            field: values.get(field) for field in PaymentSettings.FIELDS
        })
        db.session.add(settings)
        db.session.commit()
        logger.info("Payment settings updated")
        return settings

    # ==================== Tournament methods ====================

    def _tournament(self, tournament_id: int) -> Tournament:
        tournament = db.session.get(Tournament, tournament_id)
        if not tournament:
            raise NotFound('Tournament not found')
        return tournament

    def methods_for(self, tournament_id: int) -> List[Dict]:
        """
        Active payment methods in display order. A tournament without its own
        methods gets one entry built from the club-wide settings.
        """
        tournament = self._tournament(tournament_id)
        methods = TournamentPaymentMethod.query.filter_by(
            tournament_id=tournament.id, is_active=True
        ).order_by(TournamentPaymentMethod.display_order, TournamentPaymentMethod.id).all()
        if methods:
            return [m.to_dict() for m in methods]

        settings = self.active_settings()
        if not settings:
            return []
        fallback = settings.to_dict()
        fallback.update({
            'id': None,
            'tournament_id': tournament.id,
            'method_name': 'General Registration',
            'amount': tournament.entry_fee or None,
            'display_order': 0,
        })
        return [fallback]

    def add_method(self, tournament_id: int, **values) -> TournamentPaymentMethod:
        tournament = self._tournament(tournament_id)
        method = TournamentPaymentMethod(tournament_id=tournament.id, **values)
        db.session.add(method)
        db.session.commit()
        return method

    def _method(self, tournament_id: int, method_id: int) -> TournamentPaymentMethod:
        method = TournamentPaymentMethod.query.filter_by(id=method_id, tournament_id=tournament_id).first()
        if not method:
            raise NotFound('Payment method not found')
        return method

    def update_method(self, tournament_id: int, method_id: int, **values) -> TournamentPaymentMethod:
        method = self._method(tournament_id, method_id)
        for field, value in values.items():
            setattr(method, field, value)
        db.session.commit()
        return method

    def delete_method(self, tournament_id: int, method_id: int):
        method = self._method(tournament_id, method_id)
        db.session.delete(method)
        db.session.commit()
