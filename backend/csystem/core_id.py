# backend/csystem/core_id.py

import logging
from typing import Optional

from sqlalchemy.orm import Session

from csystem import models
from csystem.enums import ROLE_CODES, Role

logger = logging.getLogger(__name__)

PLACEHOLDER_CITY = "0000"


def _role_code(role: str) -> str:
    return ROLE_CODES.get(Role(role), ROLE_CODES[Role.ATHLETE])


def generate_core_id(db: Session, role: str, city_id: Optional[str]) -> str:
    """Next free ``<role code>.<city>.<seq>`` id for the role and city."""
    city = city_id or PLACEHOLDER_CITY
    prefix = f"{_role_code(role)}.{city}."

    sequence = db.query(models.Person).filter(
        models.Person.role == role,
        models.Person.core_id.like(f"{prefix}%"),
    ).count() + 1

    core_id = f"{prefix}{sequence:04d}"
    while db.query(models.Person).filter(models.Person.core_id == core_id).first():
        sequence += 1
        core_id = f"{prefix}{sequence:04d}"
    return core_id


def city_segment(core_id: Optional[str]) -> Optional[str]:
    if not core_id:
        return None
    parts = core_id.split(".")
    return parts[1] if len(parts) == 3 else None


def needs_reissue(core_id: Optional[str], new_city_id: Optional[str]) -> bool:
    """True when the city is set for a placeholder id or differs from the id's city."""
    if not new_city_id:
        return False
    current = city_segment(core_id)
    return current is None or current == PLACEHOLDER_CITY or current != new_city_id


def reissue_if_needed(db: Session, person: models.Person, new_city_id: Optional[str]) -> bool:
    if person.role == Role.SUPER_ADMIN.value or not needs_reissue(person.core_id, new_city_id):
        return False
    old = person.core_id
    person.core_id = generate_core_id(db, person.role, new_city_id)
    logger.info(f"Core ID re-issued for person {person.id}: {old} -> {person.core_id}")
    return True


def generate_module_core_id(db: Session) -> str:
    count = db.query(models.CustomModule).count()
    return f"CM.{count // 10000 + 1:04d}.{count % 10000 + 1:04d}"
