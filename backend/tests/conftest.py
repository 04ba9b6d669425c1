import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("SLOT_TIMEZONE", "Asia/Kolkata")
os.environ.setdefault("SWEEP_ON_STARTUP", "false")

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.core.settings import settings
from app.db.session import get_db
from app.main import app
from app.models import Base, Provider, ProviderKind, ProviderSlot, Role, User
from app.schemas.booking import BookingCreate, PatientDetailsIn


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, *, email: str, role: Role, full_name: str = "") -> User:
    user = User(email=email, role=role, full_name=full_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _make_provider(db, user: User, kind: ProviderKind) -> Provider:
    provider = Provider(user_id=user.id, kind=kind, display_name=user.full_name, is_verified=True)
    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider


@pytest.fixture
def admin(db):
    return _make_user(db, email="admin@example.com", role=Role.admin, full_name="Ada Admin")


@pytest.fixture
def patient(db):
    return _make_user(db, email="patient@example.com", role=Role.patient, full_name="Priya Patient")


@pytest.fixture
def other_patient(db):
    return _make_user(db, email="second@example.com", role=Role.patient, full_name="Sam Second")


@pytest.fixture
def pharmacist_user(db):
    return _make_user(db, email="pharma@example.com", role=Role.pharmacist, full_name="Phil Pharma")


@pytest.fixture
def provider(db, pharmacist_user):
    return _make_provider(db, pharmacist_user, ProviderKind.pharmacist)


@pytest.fixture
def doctor_user(db):
    return _make_user(db, email="doctor@example.com", role=Role.doctor, full_name="Dana Doctor")


@pytest.fixture
def other_provider(db, doctor_user):
    return _make_provider(db, doctor_user, ProviderKind.doctor)


@pytest.fixture
def add_slots(db):
    def _add(provider: Provider, *windows: tuple[date, time, time]) -> list[ProviderSlot]:
        slots = [
            ProviderSlot(slot_date=slot_date, start_time=start, end_time=end)
            for slot_date, start, end in windows
        ]
        provider.slots.extend(slots)
        db.commit()
        return slots

    return _add


@pytest.fixture
def booking_request():
    def _build(
        provider_id: int,
        slot_date: date,
        slot_time: str,
        service_type: str = "full_consultation",
        **details,
    ) -> BookingCreate:
        patient_details = {
            "age": 34,
            "sex": "female",
            "prescription_url": "https://files.example.com/rx/123.pdf",
        }
        patient_details.update(details)
        return BookingCreate(
            provider_id=provider_id,
            slot_date=slot_date,
            slot_time=slot_time,
            service_type=service_type,
            patient_details=PatientDetailsIn(**patient_details),
            payment_id="pay_test_001",
        )

    return _build


@pytest.fixture
def api_client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    client = TestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.clear()
        client.close()


@pytest.fixture
def auth_headers_for():
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(
            subject=str(user.id),
            secret=settings.secret_key,
            alg=settings.jwt_alg,
            expires_minutes=30,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
