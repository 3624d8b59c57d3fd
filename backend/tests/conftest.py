import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient

from jobboard.db.base import Base
from jobboard.db.session import SessionLocal, engine
from jobboard.main import app
from jobboard.models import Job, User
from jobboard.schemas.job import JobCreate
from jobboard.schemas.user import UserRegister
from jobboard.services import accounts, jobs
from jobboard.services.mailer import Mailer, get_mailer

PASSWORD = "Passw0rd!"
ADMIN_EMAIL = "admin@example.com"


class RecordingMailer(Mailer):
    """Keeps the tokens it was asked to send."""

    def __init__(self):
        self.sent = []
        self.verification_tokens = {}
        self.reset_tokens = {}

    def send(self, to_email, subject, body):
        self.sent.append((to_email, subject, body))

    def send_verification_email(self, to_email, token):
        self.verification_tokens[to_email] = token
        super().send_verification_email(to_email, token)

    def send_password_reset_email(self, to_email, token):
        self.reset_tokens[to_email] = token
        super().send_password_reset_email(to_email, token)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(mailer):
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== Service-level builders ==============


def make_user(db, mailer, role="job_seeker", email=None, username=None, verified=True, **profile) -> User:
    username = username or f"{role.replace('_', '')}{db.query(User).count() + 1}"
    data = UserRegister(
        username=username,
        email=email or f"{username}@example.com",
        password=PASSWORD,
        confirm_password=PASSWORD,
        role=role,
        company_name="Acme" if role == "employer" else None,
    )
    user, token = accounts.register(db, data, mailer)
    if verified:
        accounts.verify_email(db, token)
    for field, value in profile.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def make_seeker(db, mailer, **kwargs) -> User:
    kwargs.setdefault("legal_name", "Ada Lovelace")
    kwargs.setdefault("phone", "5550100")
    return make_user(db, mailer, role="job_seeker", **kwargs)


def make_employer(db, mailer, approved=True, **kwargs) -> User:
    user = make_user(db, mailer, role="employer", **kwargs)
    user.is_approved = approved
    db.commit()
    db.refresh(user)
    return user


def make_admin(db) -> User:
    return accounts.ensure_admin(db, ADMIN_EMAIL, PASSWORD)


def job_fields(**overrides) -> dict:
    fields = {
        "title": "Frontend Developer",
        "description": "We are looking for a skilled React developer.",
        "salary": "$80,000 - $120,000",
        "location": "New York, NY",
        "job_type": "full-time",
        "skills_required": "React, TypeScript, Tailwind",
        "experience": "2 years",
    }
    fields.update(overrides)
    return fields


def make_job(db, employer, **overrides) -> Job:
    return jobs.create_job(db, employer, JobCreate(**job_fields(**overrides)))


# ============== HTTP helpers ==============


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client, email, password=PASSWORD) -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]
