# tests/test_api.py
"""HTTP flows through the FastAPI app with the database, mailer and storage swapped out."""

from types import SimpleNamespace

import pytest
from sqlalchemy import select

from enrollment_portal.models import Enrollment, Payment, Student, UserRole

from tests.conftest import auth_header, make_curriculum, make_user


@pytest.fixture
def seed(session_factory):
    db = session_factory(expire_on_commit=False)
    admin = make_user(db, "registrar@example.com", [UserRole.ADMIN.value], password="admin-pass-1")
    cashier = make_user(db, "cashier@example.com", [UserRole.CASHIER.value])
    # Both semesters priced the same so the current calendar date does not matter
    program, year = make_curriculum(db, semesters=(1, 2))
    data = SimpleNamespace(
        program_id=program.id,
        year_id=year.id,
        admin=auth_header(admin),
        cashier=auth_header(cashier),
    )
    db.commit()
    db.close()
    return data


def query(session_factory, stmt):
    with session_factory() as db:
        return db.execute(stmt).scalars().all()


def register(client, program_id, email="juan@example.com"):
    resp = client.post("/api/registrations", json={
        "first_name": "Juan",
        "last_name": "Dela Cruz",
        "email": email,
        "program_id": program_id,
        "year_level": 1,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_login_and_me(client, seed):
    resp = client.post("/api/auth/login", json={"email": "registrar@example.com", "password": "admin-pass-1"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "registrar@example.com"
    assert me["roles"] == ["ADMIN"]

    bad = client.post("/api/auth/login", json={"email": "registrar@example.com", "password": "nope"})
    assert bad.status_code == 401


def test_requests_without_valid_token_are_refused(client, seed):
    assert client.get("/api/registrations").status_code in (401, 403)
    resp = client.get("/api/registrations", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_approval_then_payment_flow(client, seed, session_factory, notifier):
    reg = register(client, seed.program_id)

    listed = client.get("/api/registrations", params={"status": "Pending"}, headers=seed.admin).json()
    assert [r["id"] for r in listed] == [reg["id"]]

    resp = client.post(f"/api/registrations/{reg['id']}/approve", headers=seed.admin)
    assert resp.status_code == 200, resp.text
    student = resp.json()
    assert student["email"] == "juan@example.com"

    again = client.post(f"/api/registrations/{reg['id']}/approve", headers=seed.admin)
    assert again.status_code == 409
    assert again.json()["detail"]["kind"] == "AlreadyProcessed"
    assert len(query(session_factory, select(Student))) == 1

    # The new student logs in with the mailed temporary password
    temp_password = notifier.sent[0]["password"]
    login = client.post("/api/auth/login", json={"email": "juan@example.com", "password": temp_password}).json()
    assert login["must_change_password"] is True
    student_headers = {"Authorization": f"Bearer {login['access_token']}"}

    enrollments = client.get(f"/api/students/{student['id']}/enrollments", headers=student_headers).json()
    assert len(enrollments) == 1
    enrollment = enrollments[0]
    assert enrollment["total_amount"] == 9500.0
    assert enrollment["payment_status"] == "Unpaid"

    pay = client.post("/api/payments", headers=student_headers, json={
        "enrollment_id": enrollment["id"], "amount": "10000", "payment_method": "GCash",
    })
    assert pay.status_code == 201, pay.text
    receipt = pay.json()
    assert receipt["payment"]["amount"] == 9500.0
    assert receipt["change_due"] == 500.0
    assert receipt["payment_status"] == "Paid"
    assert receipt["balance"] == 0.0

    settled = client.post("/api/payments", headers=seed.cashier, json={
        "enrollment_id": enrollment["id"], "amount": "1", "payment_method": "Cash",
    })
    assert settled.status_code == 400
    assert settled.json()["detail"]["kind"] == "InvalidAmount"

    dashboard = client.get("/api/students/me/dashboard", headers=student_headers).json()
    assert dashboard["registered_enrollments"] == 1
    assert dashboard["upcoming_payments"] == 0

    notifications = client.get("/api/notifications", headers=seed.admin).json()
    assert notifications[0]["status"] == "SENT"


def test_students_cannot_pay_for_others(client, seed, session_factory, notifier):
    ids = {}
    for email in ("a@example.com", "b@example.com"):
        reg = register(client, seed.program_id, email=email)
        ids[email] = client.post(f"/api/registrations/{reg['id']}/approve", headers=seed.admin).json()["id"]

    login = client.post("/api/auth/login", json={
        "email": "a@example.com", "password": notifier.sent[0]["password"],
    }).json()
    a_headers = {"Authorization": f"Bearer {login['access_token']}"}
    b_enrollment = query(
        session_factory, select(Enrollment.id).where(Enrollment.student_id == ids["b@example.com"])
    )[0]

    resp = client.post("/api/payments", headers=a_headers, json={
        "enrollment_id": b_enrollment, "amount": "100", "payment_method": "Cash",
    })
    assert resp.status_code == 403
    assert client.get(f"/api/students/{ids['b@example.com']}", headers=a_headers).status_code == 403
    assert client.get("/api/enrollments", headers=a_headers).status_code == 403

    assert len(client.get("/api/enrollments", headers=seed.cashier).json()) == 2


def test_enrollment_approval_over_http(client, seed, session_factory):
    reg = register(client, seed.program_id)
    client.post(f"/api/registrations/{reg['id']}/approve", headers=seed.admin)
    enrollment_id = query(session_factory, select(Enrollment.id))[0]

    resp = client.put(f"/api/enrollments/{enrollment_id}/status", json={"status": "Approved"}, headers=seed.admin)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["enrollment_status"] == "Approved"
    assert body["amount_paid"] == 0.0

    resp = client.put(f"/api/enrollments/{enrollment_id}/status", json={"status": "Approved"}, headers=seed.admin)
    assert resp.status_code == 200
    placeholders = query(
        session_factory,
        select(Payment).where(Payment.enrollment_id == enrollment_id, Payment.payment_method == "Pending"),
    )
    assert len(placeholders) == 1

    listed = client.get(
        "/api/payments", params={"enrollment_id": enrollment_id, "include_pending": True}, headers=seed.admin
    ).json()
    assert [p["is_placeholder"] for p in listed] == [True]

    bad = client.put(f"/api/enrollments/{enrollment_id}/status", json={"status": "Done"}, headers=seed.admin)
    assert bad.status_code == 400

    forbidden = client.put(f"/api/enrollments/{enrollment_id}/status", json={"status": "Rejected"},
                           headers=seed.cashier)
    assert forbidden.status_code == 403

    missing = client.put("/api/enrollments/9999/status", json={"status": "Approved"}, headers=seed.admin)
    assert missing.status_code == 404
    assert missing.json()["detail"]["kind"] == "EnrollmentNotFound"


def test_document_upload_and_review(client, seed, session_factory, notifier, storage):
    reg = register(client, seed.program_id)
    student = client.post(f"/api/registrations/{reg['id']}/approve", headers=seed.admin).json()
    login = client.post("/api/auth/login", json={
        "email": "juan@example.com", "password": notifier.sent[0]["password"],
    }).json()
    student_headers = {"Authorization": f"Bearer {login['access_token']}"}
    enrollment_id = query(session_factory, select(Enrollment.id).where(Enrollment.student_id == student["id"]))[0]

    resp = client.post(
        f"/api/enrollments/{enrollment_id}/documents",
        headers=student_headers,
        data={"document_type": "Form 138"},
        files={"file": ("card.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert resp.status_code == 201, resp.text
    doc = resp.json()
    assert doc["status"] == "Pending"
    assert len(storage.objects) == 1

    rejected = client.post(
        f"/api/enrollments/{enrollment_id}/documents",
        headers=student_headers,
        data={"document_type": "Form 138"},
        files={"file": ("run.exe", b"MZ", "application/octet-stream")},
    )
    assert rejected.status_code == 400

    review = client.put(f"/api/documents/{doc['id']}/review", json={"status": "Verified"}, headers=seed.admin)
    assert review.status_code == 200
    assert review.json()["status"] == "Verified"

    denied = client.put(f"/api/documents/{doc['id']}/review", json={"status": "Rejected"}, headers=student_headers)
    assert denied.status_code == 403


def test_catalog_and_fee_quote(client, seed):
    programs = client.get("/api/programs").json()
    assert [p["program_code"] for p in programs] == ["BSCS"]

    quote = client.get(
        "/api/fees/quote",
        params={"program_id": seed.program_id, "year_level": 1, "semester": 1},
        headers=seed.cashier,
    ).json()
    assert quote["total_amount"] == 9500.0
    assert quote["total_units"] == 7

    created = client.post("/api/programs", json={"program_code": "BSIT", "program_name": "IT"}, headers=seed.admin)
    assert created.status_code == 201
    denied = client.post("/api/programs", json={"program_code": "BSN", "program_name": "Nursing"},
                         headers=seed.cashier)
    assert denied.status_code == 403

    register(client, seed.program_id)
    in_use = client.delete(f"/api/programs/{seed.program_id}", headers=seed.admin)
    assert in_use.status_code == 409

    assert client.delete(f"/api/programs/{created.json()['id']}", headers=seed.admin).status_code == 204


def test_duplicate_pending_registration(client, seed):
    register(client, seed.program_id)
    dup = client.post("/api/registrations", json={
        "first_name": "Juan", "last_name": "Dela Cruz", "email": "JUAN@example.com",
        "program_id": seed.program_id, "year_level": 1,
    })
    assert dup.status_code == 409


def test_admin_dashboard(client, seed):
    register(client, seed.program_id)
    stats = client.get("/api/dashboard/admin", headers=seed.cashier).json()
    assert stats["pending_registrations"] == 1
    assert stats["courses_count"] == 4


def test_student_sees_courses_once_enrollment_is_approved(client, seed, session_factory, notifier):
    reg = register(client, seed.program_id)
    client.post(f"/api/registrations/{reg['id']}/approve", headers=seed.admin)
    login = client.post("/api/auth/login", json={
        "email": "juan@example.com", "password": notifier.sent[0]["password"],
    }).json()
    student_headers = {"Authorization": f"Bearer {login['access_token']}"}

    draft = client.get("/api/students/me/courses", headers=student_headers).json()
    assert draft["enrolled"] is False
    assert draft["courses"] == []

    enrollment_id = query(session_factory, select(Enrollment.id))[0]
    client.put(f"/api/enrollments/{enrollment_id}/status", json={"status": "Approved"}, headers=seed.admin)

    view = client.get("/api/students/me/courses", headers=student_headers).json()
    assert view["enrolled"] is True
    assert len(view["courses"]) == 2
    assert sum(c["units"] for c in view["courses"]) == 7

    assert client.get("/api/students/me/courses", headers=seed.cashier).status_code == 404
