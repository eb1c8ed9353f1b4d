# csystem/routers/documents.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from csystem import auth, config, models, schemas, storage
from csystem.db import get_db
from csystem.enums import ParentLinkStatus
from csystem.exceptions import AuthorizationError, DocumentNotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/documents",
    tags=["Documents"]
)


def _can_manage(db: Session, core_id: str, person: models.Person) -> bool:
    """Owner of the Core ID, an admin, or an approved guardian of the owner."""
    if auth.is_admin(person) or person.core_id == core_id:
        return True
    return db.query(models.ParentLink).join(
        models.Person, models.ParentLink.athlete_id == models.Person.id
    ).filter(
        models.ParentLink.parent_id == person.id,
        models.ParentLink.status == ParentLinkStatus.APPROVED.value,
        models.Person.core_id == core_id
    ).first() is not None


def _require_access(db: Session, core_id: str, person: models.Person) -> None:
    if not _can_manage(db, core_id, person):
        logger.warning(f"{person.core_id} refused access to documents of {core_id}")
        raise AuthorizationError("You cannot manage documents of this person")


def _get_document(db: Session, document_id: str, person: models.Person) -> models.Document:
    document = db.query(models.Document).filter(models.Document.id == document_id).first()
    if not document:
        raise DocumentNotFoundError(document_id)
    _require_access(db, document.core_id, person)
    return document


# --- Upload a document for a Core ID ---
@router.post("/upload", response_model=schemas.DocumentOut, status_code=201)
def upload_document(
    file: UploadFile = File(...),
    core_id: str = Form(...),
    title: str = Form(...),
    uploaded_by: Optional[str] = Form(None),
    uploaded_by_id: Optional[str] = Form(None),
    category: str = Form("OTHER"),
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    if not title.strip():
        raise ValidationError("Title is required", field="title")
    _require_access(db, core_id, current_user)

    file_url, size = storage.save_upload(file.file, file.filename, max_bytes=config.MAX_UPLOAD_BYTES)

    document = models.Document(
        core_id=core_id,
        title=title.strip(),
        category=(category or "OTHER").upper(),
        file_url=file_url,
        file_type=file.content_type,
        file_size=size,
        uploaded_by=uploaded_by or current_user.name,
        uploaded_by_id=uploaded_by_id or current_user.id
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info(f"Document '{document.title}' uploaded for {core_id} by {current_user.core_id}")
    return document


# --- List documents of a Core ID (newest first) ---
@router.get("/{core_id}", response_model=List[schemas.DocumentOut])
def list_documents(
    core_id: str,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    _require_access(db, core_id, current_user)
    return db.query(models.Document).filter(
        models.Document.core_id == core_id
    ).order_by(models.Document.created_at.desc()).all()


# --- Rename ---
@router.post("/{document_id}/rename", response_model=schemas.DocumentOut)
def rename_document(
    document_id: str,
    payload: schemas.DocumentRename,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    document = _get_document(db, document_id, current_user)
    document.title = payload.title.strip()
    db.commit()
    db.refresh(document)
    return document


# --- Delete (record and stored file) ---
@router.delete("/{document_id}")
def delete_document(
    document_id: str,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    document = _get_document(db, document_id, current_user)
    storage.delete_upload(document.file_url)
    db.delete(document)
    db.commit()
    logger.info(f"Document {document_id} deleted by {current_user.core_id}")
    return {"message": f"Document {document_id} deleted successfully"}
