from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required
from ..schemas import (
    PersonCreate, PersonUpdate, SectionCreate, SectionImageCreate, SectionUpdate, parse,
)

bp = Blueprint('landing', __name__, url_prefix='/api/v1/landing')


def _flag(name: str) -> bool:
    return request.args.get(name, '').lower() == 'true'


# ==================== Sections ====================

@bp.route('/sections', methods=['GET'])
def list_sections():
    sections = current_app.landing.list_sections(
        section_type=request.args.get('section_type'),
        active_only=_flag('active_only')
    )
    return jsonify({'success': True, 'sections': sections})


@bp.route('/sections', methods=['POST'])
@admin_required()
def create_section():
    body = parse(SectionCreate, request.get_json(silent=True))
    section = current_app.landing.create_section(**body.model_dump())
    return jsonify({'success': True, 'section': section.to_dict()}), 201


@bp.route('/sections/<int:section_id>', methods=['GET'])
def get_section(section_id: int):
    section = current_app.landing.get_section(section_id)
    return jsonify({'success': True, 'section': section.to_dict()})


@bp.route('/sections/<int:section_id>', methods=['PATCH', 'PUT'])
@admin_required()
def update_section(section_id: int):
    body = parse(SectionUpdate, request.get_json(silent=True))
    section = current_app.landing.update_section(section_id, **body.model_dump(exclude_unset=True))
    return jsonify({'success': True, 'section': section.to_dict()})


@bp.route('/sections/<int:section_id>', methods=['DELETE'])
@admin_required()
def delete_section(section_id: int):
    current_app.landing.delete_section(section_id)
    return jsonify({'success': True, 'message': 'Section deleted'})


@bp.route('/sections/<int:section_id>/images', methods=['POST'])
@admin_required()
def add_section_image(section_id: int):
    body = parse(SectionImageCreate, request.get_json(silent=True))
    image = current_app.landing.add_image(section_id, **body.model_dump())
    return jsonify({'success': True, 'image': image.to_dict()}), 201


@bp.route('/sections/<int:section_id>/images/<int:image_id>', methods=['DELETE'])
@admin_required()
def delete_section_image(section_id: int, image_id: int):
    current_app.landing.delete_image(section_id, image_id)
    return jsonify({'success': True, 'message': 'Image deleted'})


# ==================== People ====================

@bp.route('/people', methods=['GET'])
def list_people():
    people = current_app.landing.list_people(
        section_id=request.args.get('section_id', type=int),
        role=request.args.get('role'),
        active_only=_flag('active_only')
    )
    return jsonify({'success': True, 'people': [p.to_dict() for p in people]})


@bp.route('/people', methods=['POST'])
@admin_required()
def create_person():
    body = parse(PersonCreate, request.get_json(silent=True))
    person = current_app.landing.create_person(**body.model_dump())
    return jsonify({'success': True, 'person': person.to_dict()}), 201


@bp.route('/people/<int:person_id>', methods=['GET'])
def get_person(person_id: int):
    return jsonify({'success': True, 'person': current_app.landing.get_person(person_id).to_dict()})


@bp.route('/people/<int:person_id>', methods=['PATCH', 'PUT'])
@admin_required()
def update_person(person_id: int):
    body = parse(PersonUpdate, request.get_json(silent=True))
    person = current_app.landing.update_person(person_id, **body.model_dump(exclude_unset=True))
    return jsonify({'success': True, 'person': person.to_dict()})


@bp.route('/people/<int:person_id>', methods=['DELETE'])
@admin_required()
def delete_person(person_id: int):
    current_app.landing.delete_person(person_id)
    return jsonify({'success': True, 'message': 'Person deleted'})
