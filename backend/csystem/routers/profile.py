# csystem/routers/profile.py

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from csystem import affiliation, auth, core_id, models, schemas
from csystem.db import get_db
from csystem.enums import AffiliationStatus, ParentLinkStatus, Role
from csystem.exceptions import (
    AuthorizationError, ClubNotFoundError, ConflictError, PersonNotFoundError,
    ResourceNotFoundError, ValidationError
)
from csystem.validation import (
    ROOT_IDENTITY_FIELDS, age_category, calculate_age, is_guardian_required, validate_profile
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/profile",
    tags=["Profile"]
)

ROLE_EXTENSIONS = {
    "athlete_data": (models.AthleteData, Role.ATHLETE),
    "club_data": (models.ClubData, Role.CLUB),
    "school_data": (models.SchoolData, Role.SCHOOL),
    "judge_data": (models.JudgeData, Role.JUDGE),
    "coach_data": (models.CoachData, Role.COACH),
}

_HIDDEN_COLUMNS = {"id", "person_id", "created_at", "updated_at"}


# --- Helpers ---
def _plain(value):
    return value.value if isinstance(value, Enum) else value


def _now():
    return datetime.now(timezone.utc)


def _columns(obj) -> dict:
    if obj is None:
        return {}
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns if c.name not in _HIDDEN_COLUMNS}


def _role_extension(person: models.Person):
    for attr, (_, role) in ROLE_EXTENSIONS.items():
        if person.role == role.value:
            return getattr(person, attr)
    return None


def build_profile(person: models.Person) -> dict:
    role_data = _columns(_role_extension(person))
    values = {name: getattr(person, name) for name in ROOT_IDENTITY_FIELDS}
    values["is_student"] = person.is_student
    errors = validate_profile(person.role, values, role_data)
    age = calculate_age(person.date_of_birth)
    return {
        "person": person,
        "role_data": role_data or None,
        "age": age,
        "age_category": age_category(age),
        "completeness": {"is_complete": not errors, "errors": errors},
    }


def _apply_root_identity(db: Session, person: models.Person, changes: dict) -> None:
    if "name" in changes and not changes["name"]:
        raise ValidationError("Name cannot be empty", field="name")
    if "city_id" in changes:
        core_id.reissue_if_needed(db, person, changes["city_id"])
    for key, value in changes.items():
        setattr(person, key, _plain(value))


def _upsert_extension(db: Session, person: models.Person, attr: str, changes: dict) -> None:
    model, _ = ROLE_EXTENSIONS[attr]
    extension = getattr(person, attr)
    if extension is None:
        # Created lazily on the first save
        extension = model(person_id=person.id)
        if model is models.ClubData:
            extension.name = changes.get("name") or person.name
        db.add(extension)
        setattr(person, attr, extension)
    for key, value in changes.items():
        if model is models.ClubData and key == "name" and not value:
            continue
        setattr(extension, key, _plain(value))


def _save_profile(db: Session, person: models.Person, payload, sections) -> None:
    data = payload.model_dump(exclude_unset=True)
    root_changes = {k: v for k, v in data.items() if k not in ROLE_EXTENSIONS}
    _apply_root_identity(db, person, root_changes)
    for attr in sections:
        section = getattr(payload, attr, None)
        if section is not None:
            _upsert_extension(db, person, attr, section.model_dump(exclude_unset=True))


def _approved_link(db: Session, parent_id: str, athlete_id: str) -> Optional[models.ParentLink]:
    return db.query(models.ParentLink).filter(
        models.ParentLink.parent_id == parent_id,
        models.ParentLink.athlete_id == athlete_id,
        models.ParentLink.status == ParentLinkStatus.APPROVED.value
    ).first()


def resolve_athlete(db: Session, current_user: models.Person, athlete_id: Optional[str]) -> models.Person:
    """The athlete a club action applies to: the caller or a child they guard."""
    if not athlete_id or athlete_id == current_user.id:
        if current_user.role != Role.ATHLETE.value:
            raise AuthorizationError("Only athletes can manage their own club membership")
        return current_user

    athlete = db.query(models.Person).filter(
        models.Person.id == athlete_id,
        models.Person.role == Role.ATHLETE.value
    ).first()
    if not athlete:
        raise PersonNotFoundError(athlete_id)
    if not auth.is_admin(current_user) and not _approved_link(db, current_user.id, athlete_id):
        raise AuthorizationError("You are not an approved guardian of this athlete")
    return athlete


def _approved_children(db: Session, parent: models.Person) -> List[models.Person]:
    links = db.query(models.ParentLink).filter(
        models.ParentLink.parent_id == parent.id,
        models.ParentLink.status == ParentLinkStatus.APPROVED.value
    ).all()
    return [link.athlete for link in links]


# --- Own profile ---
@router.get("", response_model=schemas.ProfileOut)
def get_profile(current_user=Depends(auth.get_current_user)):
    return build_profile(current_user)


@router.put("", response_model=schemas.ProfileOut)
def update_profile(
    payload: schemas.ProfileUpdate,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    _save_profile(db, current_user, payload, ROLE_EXTENSIONS.keys())
    db.commit()
    db.refresh(current_user)
    logger.info(f"Profile updated for {current_user.core_id}")
    return build_profile(current_user)


@router.post("/avatar", response_model=schemas.PersonOut)
def update_avatar(
    payload: schemas.AvatarUpdate,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    current_user.avatar_url = payload.avatar_url
    db.commit()
    db.refresh(current_user)
    return current_user


# --- Guardian links ---
@router.post("/link-child", response_model=schemas.ParentLinkOut, status_code=201)
def link_child(
    payload: schemas.LinkChildRequest,
    current_user=Depends(auth.require_role([Role.PARENT.value])),
    db: Session = Depends(get_db)
):
    child = db.query(models.Person).filter(
        models.Person.core_id == payload.child_core_id,
        models.Person.role == Role.ATHLETE.value
    ).first()
    if not child:
        raise PersonNotFoundError(payload.child_core_id)

    existing = db.query(models.ParentLink).filter(
        models.ParentLink.parent_id == current_user.id,
        models.ParentLink.athlete_id == child.id
    ).first()
    if existing and existing.status != ParentLinkStatus.REJECTED.value:
        raise ConflictError("This athlete is already linked or awaiting approval", code="LINK_EXISTS")

    if existing:
        existing.status = ParentLinkStatus.PENDING.value
        existing.responded_at = None
        link = existing
    else:
        link = models.ParentLink(parent_id=current_user.id, athlete_id=child.id)
        db.add(link)
    db.commit()
    db.refresh(link)
    logger.info(f"Parent {current_user.core_id} requested link to {child.core_id}")
    return link


@router.get("/integration-requests", response_model=List[schemas.ParentLinkOut])
def list_integration_requests(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    return db.query(models.ParentLink).filter(
        models.ParentLink.athlete_id == current_user.id,
        models.ParentLink.status == ParentLinkStatus.PENDING.value
    ).all()


@router.post("/respond-integration", response_model=schemas.ParentLinkOut)
def respond_integration(
    payload: schemas.RespondIntegrationRequest,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    link = db.query(models.ParentLink).filter(
        models.ParentLink.id == payload.link_id,
        models.ParentLink.athlete_id == current_user.id
    ).first()
    if not link:
        raise ResourceNotFoundError("ParentLink", payload.link_id)
    if link.status != ParentLinkStatus.PENDING.value:
        raise ConflictError("This request was already answered", code="LINK_ALREADY_ANSWERED")

    link.status = (ParentLinkStatus.APPROVED if payload.approve else ParentLinkStatus.REJECTED).value
    link.responded_at = _now()
    if payload.approve:
        athlete_data = current_user.athlete_data
        if athlete_data is None:
            athlete_data = models.AthleteData(person_id=current_user.id)
            db.add(athlete_data)
        athlete_data.parent_id = link.parent_id
    db.commit()
    db.refresh(link)
    logger.info(f"Athlete {current_user.core_id} answered link {link.id}: {link.status}")
    return link


@router.get("/children", response_model=List[schemas.ChildOut])
def list_children(
    current_user=Depends(auth.require_role([Role.PARENT.value])),
    db: Session = Depends(get_db)
):
    children = []
    for child in _approved_children(db, current_user):
        age = calculate_age(child.date_of_birth)
        children.append({
            "id": child.id,
            "core_id": child.core_id,
            "name": child.name,
            "date_of_birth": child.date_of_birth,
            "age": age,
            "is_minor": is_guardian_required(age),
        })
    return children


@router.put("/child/{athlete_id}", response_model=schemas.ProfileOut)
def update_child(
    athlete_id: str,
    payload: schemas.ChildProfileUpdate,
    current_user=Depends(auth.require_role([Role.PARENT.value])),
    db: Session = Depends(get_db)
):
    child = resolve_athlete(db, current_user, athlete_id)
    if not is_guardian_required(calculate_age(child.date_of_birth)):
        raise AuthorizationError("Guardians can only edit the profile of a minor")
    _save_profile(db, child, payload, ["athlete_data"])
    db.commit()
    db.refresh(child)
    logger.info(f"Guardian {current_user.core_id} updated profile of {child.core_id}")
    return build_profile(child)


# --- Club affiliation ---
@router.get("/club-status", response_model=List[schemas.ClubStatusOut])
def club_status(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    if current_user.role == Role.PARENT.value:
        athletes = _approved_children(db, current_user)
    elif current_user.role == Role.ATHLETE.value:
        athletes = [current_user]
    else:
        athletes = []
    return [
        affiliation.status_for(db, a, is_guardian_required(calculate_age(a.date_of_birth)))
        for a in athletes
    ]


@router.post("/join-club", response_model=schemas.ClubStatusOut)
def join_club(
    payload: schemas.JoinClubRequest,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    athlete = resolve_athlete(db, current_user, payload.athlete_id)
    club = db.query(models.ClubData).filter(models.ClubData.id == payload.club_id).first()
    if not club:
        raise ClubNotFoundError(payload.club_id)

    try:
        existing = affiliation.check_join(affiliation.records_for(db, athlete.id), club.id)
    except ConflictError as exc:
        logger.warning(f"Join request for {athlete.core_id} rejected: {exc.details.get('reason')}")
        raise

    if existing is None:
        db.add(models.ClubAffiliation(
            athlete_id=athlete.id,
            club_id=club.id,
            status=AffiliationStatus.PENDING.value,
            requested_by=current_user.id,
            notes=payload.notes,
            requested_at=_now()
        ))
        db.commit()
        logger.info(f"Join request {athlete.core_id} -> {club.name} by {current_user.core_id}")

    return affiliation.status_for(db, athlete, is_guardian_required(calculate_age(athlete.date_of_birth)))


@router.post("/leave-club", response_model=schemas.ClubStatusOut)
def leave_club(
    payload: schemas.LeaveClubRequest,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    athlete = resolve_athlete(db, current_user, payload.athlete_id)
    membership = affiliation.active_membership(affiliation.records_for(db, athlete.id))
    if membership is None:
        raise ConflictError("You are not currently a member of any club", code="NOT_A_MEMBER")

    membership.status = AffiliationStatus.LEFT.value
    membership.left_at = _now()
    membership.notes = payload.reason or "Voluntary resignation"
    db.commit()
    logger.info(f"{athlete.core_id} left club {membership.club_id}")
    return affiliation.status_for(db, athlete, is_guardian_required(calculate_age(athlete.date_of_birth)))


@router.get("/club-history", response_model=List[schemas.AffiliationOut])
def club_history(
    athlete_id: Optional[str] = Query(None),
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    athlete = resolve_athlete(db, current_user, athlete_id)
    return db.query(models.ClubAffiliation).filter(
        models.ClubAffiliation.athlete_id == athlete.id
    ).order_by(models.ClubAffiliation.requested_at.desc()).all()


# --- Admin view (declared last so fixed paths win) ---
@router.get("/{user_id}", response_model=schemas.ProfileOut)
def get_profile_by_id(
    user_id: str,
    current_user=Depends(auth.require_role([Role.SUPER_ADMIN.value])),
    db: Session = Depends(get_db)
):
    person = db.query(models.Person).filter(models.Person.id == user_id).first()
    if not person:
        raise PersonNotFoundError(user_id)
    return build_profile(person)
