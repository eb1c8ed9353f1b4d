# csystem/routers/modules.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from csystem import auth, core_id, field_types, models, schemas
from csystem.db import get_db
from csystem.enums import ModuleStatus, Role
from csystem.exceptions import (
    CustomModuleNotFoundError, DuplicateFieldNameError, FieldNotFoundError, MissingOptionsError
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/modules",
    tags=["Modules"]
)

EDITORS = [Role.SUPER_ADMIN.value]


# --- Helpers ---
def _visible_to(module: models.CustomModule, person: models.Person) -> bool:
    if auth.is_admin(person):
        return True
    return module.status == ModuleStatus.ACTIVE.value and person.role in (module.allowed_roles or [])


def _get_module(db: Session, module_id: str) -> models.CustomModule:
    module = db.query(models.CustomModule).filter(models.CustomModule.id == module_id).first()
    if not module:
        raise CustomModuleNotFoundError(module_id)
    return module


def _get_field(db: Session, module_id: str, field_id: str) -> models.ModuleField:
    field = db.query(models.ModuleField).filter(
        models.ModuleField.id == field_id,
        models.ModuleField.module_id == module_id
    ).first()
    if not field:
        raise FieldNotFoundError(field_id)
    return field


def _get_or_create_section(db: Session, module: models.CustomModule, name: str) -> models.ModuleSection:
    name = name.strip()
    section = db.query(models.ModuleSection).filter(
        models.ModuleSection.module_id == module.id,
        models.ModuleSection.name == name
    ).first()
    if section:
        return section
    last = db.query(func.max(models.ModuleSection.position)).filter(
        models.ModuleSection.module_id == module.id
    ).scalar()
    section = models.ModuleSection(module_id=module.id, name=name, position=0 if last is None else last + 1)
    db.add(section)
    db.flush()
    return section


def _drop_if_empty(db: Session, section: models.ModuleSection) -> None:
    remaining = db.query(models.ModuleField).filter(models.ModuleField.section_id == section.id).count()
    if remaining == 0:
        db.delete(section)


def _check_unique_name(db: Session, module_id: str, field_name: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(models.ModuleField).filter(
        models.ModuleField.module_id == module_id,
        models.ModuleField.field_name == field_name
    )
    if exclude_id:
        query = query.filter(models.ModuleField.id != exclude_id)
    if query.first():
        logger.warning(f"Rejected duplicate field name '{field_name}' in module {module_id}")
        raise DuplicateFieldNameError(field_name)


def _check_options(field_type: field_types.FieldType, options) -> None:
    if field_types.requires_options(field_type) and not options:
        raise MissingOptionsError(field_type.value)


def _dump_options(options):
    if options is None:
        return None
    return [option.model_dump() for option in options]


# --- Field type catalog ---
@router.get("/field-types", response_model=List[schemas.FieldTypeCategoryOut])
def list_field_types(current_user=Depends(auth.get_current_user)):
    return field_types.catalog()


# --- List modules ---
@router.get("", response_model=List[schemas.ModuleOut])
def list_modules(
    status: Optional[ModuleStatus] = Query(None),
    category: Optional[str] = Query(None),
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0)
):
    query = db.query(models.CustomModule)
    if status:
        query = query.filter(models.CustomModule.status == status.value)
    if category:
        query = query.filter(models.CustomModule.menu_category == category)
    modules = query.order_by(models.CustomModule.created_at.desc(), models.CustomModule.name).all()
    visible = [m for m in modules if _visible_to(m, current_user)]
    return visible[offset:offset + limit]


# --- Get module with sections and fields ---
@router.get("/{module_id}", response_model=schemas.ModuleDetailOut)
def get_module(
    module_id: str,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    module = _get_module(db, module_id)
    if not _visible_to(module, current_user):
        raise CustomModuleNotFoundError(module_id)
    return module


# --- Create module (admin only) ---
@router.post("", response_model=schemas.ModuleDetailOut, status_code=201)
def create_module(
    payload: schemas.ModuleCreate,
    current_user=Depends(auth.require_role(EDITORS)),
    db: Session = Depends(get_db)
):
    new_module = models.CustomModule(
        core_id=core_id.generate_module_core_id(db),
        name=payload.name,
        description=payload.description,
        icon=payload.icon or "clipboard",
        status=ModuleStatus.DRAFT.value,
        allowed_roles=[role.value for role in payload.allowed_roles],
        show_in_menu=payload.show_in_menu,
        menu_category=payload.menu_category,
        created_by=current_user.id
    )
    db.add(new_module)
    db.commit()
    db.refresh(new_module)
    logger.info(f"Module {new_module.core_id} '{new_module.name}' created by {current_user.core_id}")
    return new_module


# --- Update module (admin only) ---
@router.put("/{module_id}", response_model=schemas.ModuleDetailOut)
def update_module(
    module_id: str,
    payload: schemas.ModuleUpdate,
    current_user=Depends(auth.require_role(EDITORS)),
    db: Session = Depends(get_db)
):
    module = _get_module(db, module_id)
    changes = payload.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is not None:
        changes["status"] = changes["status"].value
    if "allowed_roles" in changes and changes["allowed_roles"] is not None:
        changes["allowed_roles"] = [role.value for role in changes["allowed_roles"]]
    for key, value in changes.items():
        if key in ("name", "status") and value is None:
            continue
        setattr(module, key, value)
    db.commit()
    db.refresh(module)
    logger.info(f"Module {module.core_id} updated ({', '.join(changes) or 'no changes'})")
    return module


# --- Archive module (admin only) ---
@router.delete("/{module_id}")
def delete_module(
    module_id: str,
    current_user=Depends(auth.require_role(EDITORS)),
    db: Session = Depends(get_db)
):
    module = _get_module(db, module_id)
    module.status = ModuleStatus.ARCHIVED.value
    db.commit()
    logger.info(f"Module {module.core_id} archived by {current_user.core_id}")
    return {"message": f"Module {module_id} archived successfully"}


# --- Add field (admin only) ---
@router.post("/{module_id}/fields", response_model=schemas.FieldOut, status_code=201)
def add_field(
    module_id: str,
    payload: schemas.FieldCreate,
    current_user=Depends(auth.require_role(EDITORS)),
    db: Session = Depends(get_db)
):
    module = _get_module(db, module_id)
    field_type = field_types.parse_field_type(payload.field_type)
    _check_options(field_type, payload.options)
    _check_unique_name(db, module.id, payload.field_name)

    section = _get_or_create_section(db, module, payload.section_name)
    sort_order = payload.sort_order
    if sort_order is None:
        sort_order = db.query(models.ModuleField).filter(models.ModuleField.section_id == section.id).count()

    new_field = models.ModuleField(
        module_id=module.id,
        section_id=section.id,
        field_name=payload.field_name,
        field_type=field_type.value,
        label=payload.label,
        placeholder=payload.placeholder,
        help_text=payload.help_text,
        is_required=payload.is_required,
        is_scored=payload.is_scored,
        max_score=payload.max_score if payload.is_scored else 0,
        feedback_good=payload.feedback_good,
        feedback_bad=payload.feedback_bad,
        options=_dump_options(payload.options),
        min_value=payload.min_value,
        max_value=payload.max_value,
        sort_order=sort_order
    )
    db.add(new_field)
    db.commit()
    db.refresh(new_field)
    logger.info(f"Field '{new_field.field_name}' ({new_field.field_type}) added to {module.core_id}/{section.name}")
    return new_field


# --- Update field (admin only) ---
@router.put("/{module_id}/fields/{field_id}", response_model=schemas.FieldOut)
def update_field(
    module_id: str,
    field_id: str,
    payload: schemas.FieldUpdate,
    current_user=Depends(auth.require_role(EDITORS)),
    db: Session = Depends(get_db)
):
    module = _get_module(db, module_id)
    field = _get_field(db, module.id, field_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("field_name") and changes["field_name"] != field.field_name:
        _check_unique_name(db, module.id, changes["field_name"], exclude_id=field.id)

    field_type = field_types.parse_field_type(changes.get("field_type") or field.field_type)
    options = payload.options if "options" in changes else field.options
    _check_options(field_type, options)
    changes["field_type"] = field_type.value
    if "options" in changes:
        changes["options"] = _dump_options(payload.options)

    old_section = None
    section_name = changes.pop("section_name", None)
    if section_name and section_name.strip() != field.section.name:
        old_section = field.section
        field.section = _get_or_create_section(db, module, section_name)

    for key, value in changes.items():
        if key in ("field_name", "label") and not value:
            continue
        setattr(field, key, value)
    if not field.is_scored:
        field.max_score = 0
    elif field.max_score is None:
        field.max_score = 0

    db.flush()
    if old_section is not None:
        _drop_if_empty(db, old_section)
    db.commit()
    db.refresh(field)
    logger.info(f"Field '{field.field_name}' updated in {module.core_id}")
    return field


# --- Delete field (admin only) ---
@router.delete("/{module_id}/fields/{field_id}")
def delete_field(
    module_id: str,
    field_id: str,
    current_user=Depends(auth.require_role(EDITORS)),
    db: Session = Depends(get_db)
):
    module = _get_module(db, module_id)
    field = _get_field(db, module.id, field_id)
    section = field.section
    db.delete(field)
    db.flush()
    _drop_if_empty(db, section)
    db.commit()
    logger.info(f"Field {field_id} deleted from {module.core_id}")
    return {"message": f"Field {field_id} deleted successfully"}
