# tests/conftest.py
"""
Shared fixtures.

Settings are read at import time, so the environment is pinned before any
``enrollment_portal`` module is imported. Every test gets a fresh in-memory
SQLite database; the API client shares it through a ``get_db`` override.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["PRICE_PER_UNIT"] = "1000"
os.environ["MISCELLANEOUS_FEE"] = "2500"
os.environ["PROGRAM_FEES"] = "{}"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import enrollment_portal.models  # noqa: F401
from enrollment_portal.api.deps.services import get_notifier, get_object_storage
from enrollment_portal.core.db import get_db
from enrollment_portal.core.security import create_token, hash_password
from enrollment_portal.main import create_app
from enrollment_portal.models import (
    Base, User, UserRole, Program, Year, Course, Registration, Student,
)
from enrollment_portal.services.enrollment import EnrollmentService
from enrollment_portal.services.fees import FeeCalculator, FeeSchedule
from enrollment_portal.services.notifications import CredentialsNotifier
from enrollment_portal.services.periods import AcademicPeriod
from enrollment_portal.services.storage import ObjectStorage

FIXED_PERIOD = AcademicPeriod("2025-2026", 1)
SCHEDULE = FeeSchedule(price_per_unit=Decimal("1000.00"), miscellaneous_fee=Decimal("2500.00"))


class FakeNotifier(CredentialsNotifier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def credentials_subject(self) -> str:
        return "Your Student Portal Credentials"

    def send_credentials(self, to_email, temp_password, display_name):
        self.sent.append({"to": to_email, "password": temp_password, "name": display_name})
        if self.fail:
            return {"success": False, "error": "SMTP connection refused"}
        return {"success": True}


class ExplodingNotifier(FakeNotifier):
    def send_credentials(self, to_email, temp_password, display_name):
        raise RuntimeError("mail relay crashed")


class FakeStorage(ObjectStorage):
    def __init__(self):
        self.objects = {}

    def upload(self, path, content, content_type=None):
        self.objects[path] = content
        return None

    def public_url(self, path):
        return f"https://files.example.test/{path}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINT / ROLLBACK behave on pysqlite
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# ---- seed helpers ----

def make_user(db, email, roles, password="correct-horse", full_name="Staff Member"):
    user = User(email=email, full_name=full_name, password_hash=hash_password(password))
    user.set_roles(roles)
    db.add(user)
    db.flush()
    return user


def make_curriculum(db, code="BSCS", semesters=(1,)):
    """Program with year level 1 holding a 3-unit and a 4-unit course per semester."""
    program = Program(program_code=code, program_name=f"{code} Program", total_units=140, years_to_complete=4)
    db.add(program)
    db.flush()
    year = Year(program_id=program.id, year_level=1)
    db.add(year)
    db.flush()
    for sem in semesters:
        db.add_all([
            Course(year_id=year.id, course_code=f"CS10{sem}", course_name="Intro to Computing", units=3, semester=sem),
            Course(year_id=year.id, course_code=f"MATH10{sem}", course_name="Discrete Math", units=4, semester=sem),
        ])
    db.flush()
    return program, year


def make_registration(db, program_id, email="juan@example.com", **extra):
    reg = Registration(
        first_name=extra.pop("first_name", "Juan"),
        last_name=extra.pop("last_name", "Dela Cruz"),
        email=email,
        program_id=program_id,
        year_level=extra.pop("year_level", 1),
        **extra,
    )
    db.add(reg)
    db.flush()
    return reg


def make_student(db, program_id, email="maria@example.com", user_id=None, number="STU-2025-AAAAAA"):
    student = Student(
        student_number=number,
        first_name="Maria",
        last_name="Santos",
        email=email,
        program_id=program_id,
        year_level=1,
        user_id=user_id,
    )
    db.add(student)
    db.flush()
    return student


def fixed_period(today=None):
    return FIXED_PERIOD


def fail_queries_on(monkeypatch, db, table):
    """Make every statement the session runs against ``table`` fail as if the table were missing."""
    real_execute = db.execute

    def execute(statement, *args, **kwargs):
        sql = str(statement)
        if f"FROM {table}" in sql or f"JOIN {table}" in sql:
            raise OperationalError(sql, {}, Exception(f"no such table: {table}"))
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute)


@pytest.fixture
def admin(db):
    return make_user(db, "registrar@example.com", [UserRole.ADMIN.value], full_name="Registrar")


@pytest.fixture
def cashier(db):
    return make_user(db, "cashier@example.com", [UserRole.CASHIER.value], full_name="Cashier")


@pytest.fixture
def curriculum(db):
    return make_curriculum(db)


@pytest.fixture
def enrollment_service(db):
    return EnrollmentService(db, fees=FeeCalculator(db, SCHEDULE), period_policy=fixed_period)


# ---- API ----

@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(session_factory, notifier, storage):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_object_storage] = lambda: storage

    with TestClient(app) as c:
        yield c


def auth_header(user) -> dict:
    token = create_token(sub=str(user.id), roles=user.roles, email=user.email)
    return {"Authorization": f"Bearer {token}"}
