from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..schemas import PaymentMethodCreate, PaymentMethodUpdate, PaymentSettingsUpdate, parse

bp = Blueprint('payments', __name__, url_prefix='/api/v1')


@bp.route('/settings/payment', methods=['GET'])
def get_payment_settings():
    return jsonify({'success': True, 'settings': current_app.payments.settings_dict()})


@bp.route('/settings/payment', methods=['PUT', 'POST'])
@admin_required()
def save_payment_settings():
    body = parse(PaymentSettingsUpdate, request.get_json(silent=True))
    settings = current_app.payments.save_settings(**body.model_dump())
    return jsonify({
        'success': True,
        'message': 'Payment settings saved',
        'settings': settings.to_dict()
    })


@bp.route('/tournaments/<int:tournament_id>/payment-methods', methods=['GET'])
def list_payment_methods(tournament_id: int):
    methods = current_app.payments.methods_for(tournament_id)
    return jsonify({'success': True, 'payment_methods': methods})


@bp.route('/tournaments/<int:tournament_id>/payment-methods', methods=['POST'])
@admin_required()
def add_payment_method(tournament_id: int):
    body = parse(PaymentMethodCreate, request.get_json(silent=True))
    method = current_app.payments.add_method(tournament_id, **body.model_dump())
    return jsonify({'success': True, 'payment_method': method.to_dict()}), 201


@bp.route('/tournaments/<int:tournament_id>/payment-methods/<int:method_id>', methods=['PATCH', 'PUT'])
@admin_required()
def update_payment_method(tournament_id: int, method_id: int):
    body = parse(PaymentMethodUpdate, request.get_json(silent=True))
    method = current_app.payments.update_method(
        tournament_id, method_id, **body.model_dump(exclude_unset=True)
    )
    return jsonify({'success': True, 'payment_method': method.to_dict()})


@bp.route('/tournaments/<int:tournament_id>/payment-methods/<int:method_id>', methods=['DELETE'])
@admin_required()
def delete_payment_method(tournament_id: int, method_id: int):
    current_app.payments.delete_method(tournament_id, method_id)
    return jsonify({'success': True, 'message': 'Payment method deleted'})
