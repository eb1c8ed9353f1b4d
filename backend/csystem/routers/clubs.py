# csystem/routers/clubs.py

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from csystem import affiliation, auth, models, schemas
from csystem.db import get_db
from csystem.enums import AffiliationStatus, JoinDecision, Role
from csystem.exceptions import (
    AuthorizationError, ClubNotFoundError, ConflictError, ResourceNotFoundError
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clubs",
    tags=["Clubs"]
)

CLUB_MANAGERS = [Role.CLUB.value, Role.SUPER_ADMIN.value]


def _own_club(db: Session, current_user: models.Person) -> models.ClubData:
    club = db.query(models.ClubData).filter(models.ClubData.person_id == current_user.id).first()
    if not club:
        raise ClubNotFoundError(current_user.id)
    return club


def _check_manages(db: Session, current_user: models.Person, club_id: str) -> None:
    if auth.is_admin(current_user):
        return
    if _own_club(db, current_user).id != club_id:
        raise AuthorizationError("This request belongs to another club")


# --- Pending join requests for the caller's club (or all for admin) ---
@router.get("/requests", response_model=List[schemas.AffiliationOut])
def list_join_requests(
    current_user=Depends(auth.require_role(CLUB_MANAGERS)),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0)
):
    query = db.query(models.ClubAffiliation).filter(
        models.ClubAffiliation.status == AffiliationStatus.PENDING.value
    )
    if not auth.is_admin(current_user):
        query = query.filter(models.ClubAffiliation.club_id == _own_club(db, current_user).id)
    return query.order_by(models.ClubAffiliation.requested_at).offset(offset).limit(limit).all()


# --- Approve / reject a join request ---
@router.post("/requests/{request_id}/decision", response_model=schemas.AffiliationOut)
def decide_join_request(
    request_id: str,
    payload: schemas.JoinDecisionRequest,
    current_user=Depends(auth.require_role(CLUB_MANAGERS)),
    db: Session = Depends(get_db)
):
    record = db.query(models.ClubAffiliation).filter(models.ClubAffiliation.id == request_id).first()
    if not record:
        raise ResourceNotFoundError("JoinRequest", request_id)
    _check_manages(db, current_user, record.club_id)
    if record.status != AffiliationStatus.PENDING.value:
        raise ConflictError("This join request was already decided", code="ALREADY_DECIDED")

    if payload.decision == JoinDecision.APPROVED:
        record.status = AffiliationStatus.MEMBER.value
    else:
        record.status = AffiliationStatus.REJECTED.value
    record.decided_at = datetime.now(timezone.utc)
    record.decided_by = current_user.id
    if payload.notes:
        record.notes = payload.notes
    db.commit()
    db.refresh(record)
    logger.info(f"Join request {record.id} {payload.decision.value} by {current_user.core_id}")
    return record


# --- Club-side termination ---
@router.post("/members/{athlete_id}/remove", response_model=schemas.AffiliationOut)
def remove_member(
    athlete_id: str,
    current_user=Depends(auth.require_role(CLUB_MANAGERS)),
    db: Session = Depends(get_db)
):
    membership = affiliation.active_membership(affiliation.records_for(db, athlete_id))
    if membership is None:
        raise ConflictError("Athlete is not a member of any club", code="NOT_A_MEMBER")
    _check_manages(db, current_user, membership.club_id)

    membership.status = AffiliationStatus.LEFT.value
    membership.left_at = datetime.now(timezone.utc)
    membership.notes = "Removed by club"
    db.commit()
    db.refresh(membership)
    logger.info(f"Athlete {athlete_id} removed from club {membership.club_id} by {current_user.core_id}")
    return membership


# --- Members of the caller's club ---
@router.get("/members", response_model=List[schemas.AffiliationOut])
def list_members(
    current_user=Depends(auth.require_role([Role.CLUB.value])),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0)
):
    club = _own_club(db, current_user)
    return db.query(models.ClubAffiliation).filter(
        models.ClubAffiliation.club_id == club.id,
        models.ClubAffiliation.status == AffiliationStatus.MEMBER.value
    ).offset(offset).limit(limit).all()
