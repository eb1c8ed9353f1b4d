# backend/csystem/auth.py

import logging
from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from csystem import config, core_id, models, schemas
from csystem.db import get_db
from csystem.enums import ParentLinkStatus, Role
from csystem.exceptions import (
    AuthenticationError, AuthorizationError, EmailAlreadyRegisteredError, PersonNotFoundError
)

logger = logging.getLogger(__name__)

SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = config.ACCESS_TOKEN_EXPIRE_MINUTES

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# -----------------------------
# Password utilities
# -----------------------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# -----------------------------
# JWT utilities
# -----------------------------
def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    if not SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not set in environment variables")
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.Person:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        person_id: str = payload.get("sub")
        if person_id is None:
            raise AuthenticationError()
    except JWTError:
        raise AuthenticationError()

    person = db.query(models.Person).filter(models.Person.id == person_id).first()
    if person is None or not person.is_active:
        raise AuthenticationError()
    return person


# -----------------------------
# Role-based access dependency
# -----------------------------
def require_role(allowed_roles: List[str]):
    def wrapper(current_user: models.Person = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise AuthorizationError()
        return current_user
    return wrapper


def is_admin(person: models.Person) -> bool:
    return person.role == Role.SUPER_ADMIN.value


# -----------------------------
# FastAPI Router
# -----------------------------
router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=schemas.TokenResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    person = db.query(models.Person).filter(models.Person.email == payload.email.lower()).first()
    if not person or not verify_password(payload.password, person.password_hash):
        logger.warning(f"Failed login for {payload.email}")
        raise AuthenticationError("Invalid credentials")
    token = create_access_token({"sub": str(person.id)})
    return {"access_token": token, "token_type": "bearer", "person": person}


@router.post("/register", response_model=schemas.TokenResponse, status_code=201)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing = db.query(models.Person).filter(models.Person.email == email).first()
    if existing:
        logger.warning(f"Registration rejected, email already registered: {email}")
        raise EmailAlreadyRegisteredError(email)

    child = None
    if payload.child_core_id:
        child = db.query(models.Person).filter(
            models.Person.core_id == payload.child_core_id,
            models.Person.role == Role.ATHLETE.value
        ).first()
        if not child:
            raise PersonNotFoundError(payload.child_core_id)

    role = payload.role.value
    new_person = models.Person(
        email=email,
        password_hash=hash_password(payload.password),
        name=payload.name.strip(),
        whatsapp=payload.whatsapp,
        province_id=payload.province_id,
        city_id=payload.city_id,
        date_of_birth=payload.date_of_birth,
        role=role,
        core_id=core_id.generate_core_id(db, role, payload.city_id),
    )
    db.add(new_person)
    db.flush()

    # Clubs must be listable as soon as they exist
    if payload.role == Role.CLUB:
        db.add(models.ClubData(person_id=new_person.id, name=new_person.name))

    if child is not None:
        db.add(models.ParentLink(
            parent_id=new_person.id,
            athlete_id=child.id,
            status=ParentLinkStatus.PENDING.value
        ))

    db.commit()
    db.refresh(new_person)
    logger.info(f"Registered {role} {new_person.core_id} ({email})")

    token = create_access_token({"sub": str(new_person.id)})
    return {"access_token": token, "token_type": "bearer", "person": new_person}


@router.get("/check-email", response_model=schemas.EmailCheckOut)
def check_email(email: str = Query(..., min_length=3), db: Session = Depends(get_db)):
    person = db.query(models.Person).filter(models.Person.email == email.strip().lower()).first()
    if not person:
        return {"exists": False}
    return {"exists": True, "name": person.name, "current_roles": [person.role]}


@router.get("/clubs", response_model=List[schemas.ClubListItem])
def list_clubs(db: Session = Depends(get_db)):
    return db.query(models.ClubData).order_by(models.ClubData.name).all()
