import os
from datetime import date, timedelta

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import httpx
import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from csystem import auth, config, core_id, models
from csystem.client.api import AuthSession, CsystemClient
from csystem.db import Base, get_db
from csystem.main import app

PASSWORD = "password123"
PASSWORD_HASH = auth.hash_password(PASSWORD)


def dob_for_age(age: int, days_after_birthday: int = 30) -> date:
    """Date of birth of someone who turned ``age`` a few days ago."""
    today = date.today()
    try:
        birthday = today.replace(year=today.year - age)
    except ValueError:
        birthday = today.replace(year=today.year - age, day=28)
    return birthday - timedelta(days=days_after_birthday)


def birthday_today(age: int) -> date:
    today = date.today()
    try:
        return today.replace(year=today.year - age)
    except ValueError:
        # 29 February; the birthday has passed once we reach 1 March
        return today.replace(year=today.year - age, day=28)


@pytest.fixture
def fake():
    Faker.seed(1234)
    return Faker()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    session = TestingSessionLocal()
    yield session
    session.close()
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    return tmp_path / "uploads"


@pytest.fixture
async def api_client(db):
    """Client package wired to the real app, no network involved."""
    transport = httpx.ASGITransport(app=app)
    async with CsystemClient("http://testserver", transport=transport) as c:
        yield c


@pytest.fixture
def make_person(db, fake):
    def _make(role="ATHLETE", **overrides):
        values = {
            "email": fake.unique.email(),
            "password_hash": PASSWORD_HASH,
            "name": fake.name(),
            "whatsapp": "081234567890",
            "province_id": "11",
            "city_id": "1101",
            "gender": "MALE",
            "date_of_birth": dob_for_age(25),
            "role": role,
        }
        values.update(overrides)
        if "core_id" not in values:
            values["core_id"] = core_id.generate_core_id(db, role, values.get("city_id"))
        person = models.Person(**values)
        db.add(person)
        db.commit()
        db.refresh(person)
        if role == "CLUB":
            db.add(models.ClubData(person_id=person.id, name=f"{person.name} Archery Club", city="Banda Aceh"))
            db.commit()
            db.refresh(person)
        return person
    return _make


def headers_for(person) -> dict:
    token = auth.create_access_token({"sub": str(person.id)})
    return {"Authorization": f"Bearer {token}"}


def session_for(person) -> AuthSession:
    return AuthSession(
        token=auth.create_access_token({"sub": str(person.id)}),
        person_id=person.id,
        role=person.role,
        core_id=person.core_id,
    )


@pytest.fixture
def admin(make_person):
    return make_person("SUPER_ADMIN", nik="1101010101010001")


@pytest.fixture
def auth_headers():
    return headers_for


@pytest.fixture
def auth_session():
    return session_for


@pytest.fixture
def dob():
    return dob_for_age
