import os

# La configuración se lee al importar `app`, antes de cualquier prueba
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MAIL_USERNAME", "test")
os.environ.setdefault("MAIL_PASSWORD", "test")
os.environ.setdefault("MAIL_FROM", "noreply@example.com")
os.environ.setdefault("MAIL_PORT", "587")
os.environ.setdefault("MAIL_SERVER", "localhost")
os.environ.setdefault("MAIL_STARTTLS", "false")
os.environ.setdefault("MAIL_SSL_TLS", "false")
os.environ.setdefault("MAIL_SUPPRESS_SEND", "true")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_PUBLIC_KEY", "pk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("JOB_SECRET", "job-secret")

from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.apis.deps import get_db
from app.models import Tutor, User
from app.schemas.auths.auth_schema import Principal, ROLE_STUDENT, ROLE_TUTOR
from app.services.notifications import booking_email_service
from tests.test_db import build_override_get_db, build_test_engine, build_testing_session, init_test_db


@pytest.fixture
async def engine_test(tmp_path):
    engine = build_test_engine(tmp_path / "test.db")
    await init_test_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine_test):
    return build_testing_session(engine_test)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(session_factory):
    """Un estudiante, otro estudiante, un estudiante suspendido y un docente a 20/h."""
    async with session_factory() as session:
        student = User(first_name="Luis", last_name="Gonzalez", email="luis@test.com")
        other_student = User(first_name="Ana", last_name="Garcia", email="ana@test.com")
        suspended = User(first_name="Pedro", last_name="Lopez", email="pedro@test.com", suspended=True)
        tutor_user = User(first_name="Gurpreet", last_name="Kaur", email="tutor@test.com")
        session.add_all([student, other_student, suspended, tutor_user])
        await session.flush()

        tutor = Tutor(user_id=tutor_user.id, name="Gurpreet Kaur", email="tutor@test.com", hourly_rate=20.0)
        session.add(tutor)
        await session.commit()

        return SimpleNamespace(
            student=Principal(user_id=student.id, email=student.email, role=ROLE_STUDENT),
            other_student=Principal(user_id=other_student.id, email=other_student.email, role=ROLE_STUDENT),
            suspended=Principal(user_id=suspended.id, email=suspended.email, role=ROLE_STUDENT),
            tutor=Principal(user_id=tutor_user.id, email=tutor_user.email, role=ROLE_TUTOR),
            tutor_id=tutor.id,
        )


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Captura los correos en lugar de enviarlos."""
    outbox = []

    async def fake_deliver_email(recipients, subject, body):
        outbox.append({"recipients": recipients, "subject": subject})

    monkeypatch.setattr(booking_email_service, "deliver_email", fake_deliver_email)
    return outbox


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_db] = build_override_get_db(session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client
    app.dependency_overrides.clear()


