import logging
from typing import List

from .errors import Conflict, NotFound
from .models import db, LandingPageSection, Person, SectionImage

logger = logging.getLogger(__name__)


class LandingContent:
    """CMS behind the public landing page: sections, the people shown in them, and section images."""

    # ==================== Sections ====================

    def list_sections(self, section_type: str = None, active_only: bool = False) -> List[dict]:
        query = LandingPageSection.query
        if section_type and section_type != 'ALL':
            query = query.filter_by(section_type=section_type)
        if active_only:
            query = query.filter_by(is_active=True)
        sections = query.order_by(LandingPageSection.sort_order, LandingPageSection.id).all()
        return [s.to_dict(active_only=active_only) for s in sections]

    def get_section(self, section_id: int) -> LandingPageSection:
        section = db.session.get(LandingPageSection, section_id)
        if not section:
            raise NotFound('Section not found')
        return section

    def create_section(self, **values) -> LandingPageSection:
        if LandingPageSection.query.filter_by(section_type=values['section_type']).first():
            raise Conflict('Section already exists for this type')
        section = LandingPageSection(**values)
        db.session.add(section)
        db.session.commit()
        logger.info(f"Landing section '{section.section_type}' created")
        return section

    def update_section(self, section_id: int, **values) -> LandingPageSection:
        section = self.get_section(section_id)
        for field, value in values.items():
            setattr(section, field, value)
        db.session.commit()
        return section

    def delete_section(self, section_id: int):
        section = self.get_section(section_id)
        db.session.delete(section)
        db.session.commit()
        logger.info(f"Landing section '{section.section_type}' deleted")

    # ==================== People ====================

    def list_people(self, section_id: int = None, role: str = None, active_only: bool = False) -> List[Person]:
        query = Person.query
        if section_id:
            query = query.filter_by(section_id=section_id)
        if role:
            query = query.filter(Person.role.ilike(f"%{role}%"))
        if active_only:
            query = query.filter_by(is_active=True, show_on_landing=True)
        return query.order_by(Person.sort_order, Person.name).all()

    def get_person(self, person_id: int) -> Person:
        person = db.session.get(Person, person_id)
        if not person:
            raise NotFound('Person not found')
        return person

    def create_person(self, **values) -> Person:
        if values.get('section_id'):
            self.get_section(values['section_id'])
        person = Person(**values)
        db.session.add(person)
        db.session.commit()
        return person

    def update_person(self, person_id: int, **values) -> Person:
        person = self.get_person(person_id)
        if values.get('section_id'):
            self.get_section(values['section_id'])
        for field, value in values.items():
            setattr(person, field, value)
        db.session.commit()
        return person

    def delete_person(self, person_id: int):
        person = self.get_person(person_id)
        db.session.delete(person)
        db.session.commit()

    # ==================== Section images ====================

    def add_image(self, section_id: int, **values) -> SectionImage:
        section = self.get_section(section_id)
        image = SectionImage(section_id=section.id, **values)
        db.session.add(image)
        db.session.commit()
        return image

    def delete_image(self, section_id: int, image_id: int):
        image = SectionImage.query.filter_by(id=image_id, section_id=section_id).first()
        if not image:
            raise NotFound('Image not found')
        db.session.delete(image)
        db.session.commit()
