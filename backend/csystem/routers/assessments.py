# csystem/routers/assessments.py

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from csystem import auth, models, schemas
from csystem.db import get_db
from csystem.enums import AssessmentStatus, ParentLinkStatus, Role
from csystem.exceptions import (
    AssessmentNotFoundError, AuthorizationError, CustomModuleNotFoundError, PersonNotFoundError
)
from csystem.scoring import assessment_number, field_feedback, score_assessment

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/assessments",
    tags=["Assessments"]
)

ASSESSORS = [Role.SUPER_ADMIN.value, Role.COACH.value, Role.CLUB.value, Role.SCHOOL.value]


def _can_read(db: Session, record: models.AssessmentRecord, person: models.Person) -> bool:
    if person.role in ASSESSORS or record.athlete_id == person.id:
        return True
    if person.role == Role.PARENT.value:
        return db.query(models.ParentLink).filter(
            models.ParentLink.parent_id == person.id,
            models.ParentLink.athlete_id == record.athlete_id,
            models.ParentLink.status == ParentLinkStatus.APPROVED.value
        ).first() is not None
    return False


# --- Create assessment (coach, club, school or admin) ---
@router.post("", response_model=schemas.AssessmentOut, status_code=201)
def create_assessment(
    payload: schemas.AssessmentCreate,
    current_user=Depends(auth.require_role(ASSESSORS)),
    db: Session = Depends(get_db)
):
    athlete = db.query(models.Person).filter(
        models.Person.id == payload.athlete_id,
        models.Person.role == Role.ATHLETE.value
    ).first()
    if not athlete:
        raise PersonNotFoundError(payload.athlete_id)

    module = db.query(models.CustomModule).filter(models.CustomModule.id == payload.module_id).first()
    if not module:
        raise CustomModuleNotFoundError(payload.module_id)

    assessed_on = payload.assessment_date or date.today()
    section_scores, total = score_assessment(module.fields, payload.field_values)

    new_assessment = models.AssessmentRecord(
        module_id=module.id,
        athlete_id=athlete.id,
        assessor_id=current_user.id,
        assessment_no=assessment_number(assessed_on),
        assessment_type=payload.assessment_type.value,
        assessment_date=assessed_on,
        status=AssessmentStatus.COMPLETED.value,
        field_values=payload.field_values,
        section_scores=section_scores,
        total_score=total,
        feedback=field_feedback(module.fields, payload.field_values),
        notes=payload.notes
    )

    db.add(new_assessment)
    db.commit()
    db.refresh(new_assessment)
    logger.info(f"Assessment {new_assessment.assessment_no} on {module.core_id} for {athlete.core_id}: {total}%")
    return new_assessment


# --- List assessments with optional pagination ---
@router.get("", response_model=List[schemas.AssessmentOut])
def list_assessments(
    athlete_id: Optional[str] = Query(None),
    module_id: Optional[str] = Query(None),
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0)
):
    query = db.query(models.AssessmentRecord)
    if current_user.role == Role.ATHLETE.value:
        query = query.filter(models.AssessmentRecord.athlete_id == current_user.id)
    elif current_user.role not in ASSESSORS:
        if not athlete_id:
            return []
    if athlete_id:
        query = query.filter(models.AssessmentRecord.athlete_id == athlete_id)
    if module_id:
        query = query.filter(models.AssessmentRecord.module_id == module_id)

    records = query.order_by(models.AssessmentRecord.created_at.desc()).offset(offset).limit(limit).all()
    return [r for r in records if _can_read(db, r, current_user)]


# --- Get one assessment ---
@router.get("/{assessment_id}", response_model=schemas.AssessmentOut)
def get_assessment(
    assessment_id: str,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    record = db.query(models.AssessmentRecord).filter(models.AssessmentRecord.id == assessment_id).first()
    if not record:
        raise AssessmentNotFoundError(assessment_id)
    if not _can_read(db, record, current_user):
        raise AuthorizationError("You cannot view this assessment")
    return record
