from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..errors import Conflict, NotFound
from ..models import db, Admin
from ..schemas import AdminCreate, AdminUpdate, EmailSettingsUpdate, EmailTest, parse

bp = Blueprint('admin', __name__, url_prefix='/api/v1/admin')


@bp.route('/statistics', methods=['GET'])
@admin_required()
def statistics():
    return jsonify({'success': True, 'statistics': current_app.registry.statistics()})


# ==================== Users ====================

@bp.route('/users', methods=['GET'])
@admin_required('SUPERADMIN')
def list_users():
    admins = Admin.query.order_by(Admin.created_at.asc()).all()
    return jsonify({'success': True, 'users': [a.to_dict() for a in admins]})


@bp.route('/users', methods=['POST'])
@admin_required('SUPERADMIN')
def create_user():
    body = parse(AdminCreate, request.get_json(silent=True))
    email = body.email.lower()
    if Admin.query.filter((Admin.username == body.username) | (Admin.email == email)).first():
        raise Conflict('An admin with this username or email already exists')

    admin = Admin(username=body.username, email=email, name=body.name, role=body.role)
    admin.set_password(body.password)
    db.session.add(admin)
    db.session.commit()
    return jsonify({'success': True, 'user': admin.to_dict()}), 201


@bp.route('/users/<int:admin_id>', methods=['PATCH'])
@admin_required('SUPERADMIN')
def update_user(admin_id: int):
    admin = db.session.get(Admin, admin_id)
    if not admin:
        raise NotFound('User not found')

    body = parse(AdminUpdate, request.get_json(silent=True))
    if body.name is not None:
        admin.name = body.name
    if body.role is not None:
        admin.role = body.role
    if body.is_active is not None:
        admin.is_active = body.is_active
    if body.password:
        admin.set_password(body.password)
    db.session.commit()
    return jsonify({'success': True, 'user': admin.to_dict()})


# ==================== Email ====================

@bp.route('/email-settings', methods=['GET'])
@admin_required('SUPERADMIN')
def get_email_settings():
    settings = current_app.notifier.get_settings()
    return jsonify({'success': True, 'settings': settings.to_dict() if settings else None})


@bp.route('/email-settings', methods=['PUT', 'POST'])
@admin_required('SUPERADMIN')
def save_email_settings():
    body = parse(EmailSettingsUpdate, request.get_json(silent=True))
    settings = current_app.notifier.save_settings(**body.model_dump())
    return jsonify({'success': True, 'settings': settings.to_dict()})


@bp.route('/email-settings/test', methods=['POST'])
@admin_required('SUPERADMIN')
def send_test_email():
    body = parse(EmailTest, request.get_json(silent=True))
    result = current_app.notifier.notify('test_email', body.to, sent_at=datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC'))
    status = 200 if result.delivered else 502
    return jsonify({'success': result.delivered, 'error': result.error}), status


@bp.route('/email-logs', methods=['GET'])
@admin_required()
def email_logs():
    logs = current_app.notifier.recent_logs(
        limit=min(request.args.get('limit', 50, type=int), 200),
        offset=request.args.get('offset', 0, type=int),
        status=request.args.get('status')
    )
    return jsonify({'success': True, 'logs': [log.to_dict() for log in logs]})
