import logging

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from hrdesk import models
from hrdesk.api.v1 import auth as auth_routes
from hrdesk.schemas import ForgotPasswordRequest, ResetPasswordRequest, SignupRequest
from hrdesk.security import ACCESS_TOKEN_TYPE, RESET_TOKEN_TYPE, create_token, decode_token
from hrdesk.services.employees import ensure_employee_for_account


def _signup(db_session: Session, email: str = "Maria@Example.com", **fields):
    data = {
        "email": email,
        "password": "secret123",
        "confirm_password": "secret123",
        "full_name": "Maria Santos",
        "position": "Recruiter",
        "username": "maria",
    }
    data.update(fields)
    return auth_routes.signup(SignupRequest(**data), db_session)


def test_signup_creates_account_and_employee(db_session: Session):
    token = _signup(db_session)

    account = db_session.query(models.Account).one()
    employee = db_session.query(models.Employee).one()
    assert account.email == "maria@example.com"
    assert account.hashed_password != "secret123"
    assert employee.email == "maria@example.com"
    assert employee.name == "Maria Santos"
    assert employee.position == "Recruiter"
    assert employee.role == "Staff"
    assert employee.account_id == account.id
    assert decode_token(token.access_token)["sub"] == str(account.id)


def test_signup_rejects_duplicates_and_mismatched_passwords(db_session: Session):
    _signup(db_session)

    with pytest.raises(HTTPException) as duplicate:
        _signup(db_session, email="maria@example.com")
    assert duplicate.value.status_code == 409

    with pytest.raises(HTTPException) as mismatch:
        _signup(db_session, email="ana@example.com", confirm_password="different")
    assert mismatch.value.status_code == 400


def test_ensure_employee_is_idempotent_and_links_existing_record(db_session: Session, make_employee):
    existing = make_employee("Jose Rizal", "jose@example.com")
    account = models.Account(email="jose@example.com", hashed_password="x", full_name="Jose P. Rizal")
    db_session.add(account)
    db_session.flush()

    first = ensure_employee_for_account(db_session, account)
    second = ensure_employee_for_account(db_session, account)
    db_session.commit()

    assert first.id == second.id == existing.id
    assert first.name == "Jose Rizal"
    assert first.account_id == account.id
    assert db_session.query(models.Employee).count() == 1


def test_ensure_employee_falls_back_to_email_prefix(db_session: Session):
    account = models.Account(email="ana.cruz@example.com", hashed_password="x")
    db_session.add(account)
    db_session.flush()

    employee = ensure_employee_for_account(db_session, account)

    assert employee.name == "ana.cruz"


def test_login_and_session_over_http(client, db_session: Session):
    _signup(db_session)

    response = client.post("/api/v1/auth/login", json={"email": "maria@example.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    body = me.json()
    assert body["account"]["email"] == "maria@example.com"
    assert body["employee"]["name"] == "Maria Santos"


def test_failed_login_is_audited(client, db_session: Session):
    _signup(db_session)

    response = client.post("/api/v1/auth/login", json={"email": "maria@example.com", "password": "wrong-pass"})

    assert response.status_code == 401
    entry = db_session.query(models.AuditLog).one()
    assert entry.action == "FAILED_LOGIN_ATTEMPT"
    assert entry.new_data == {"email": "maria@example.com"}
    assert entry.ip_address == "testclient"


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/v1/tasks").status_code == 401


def test_reset_token_works_once(db_session: Session):
    _signup(db_session)
    account = db_session.query(models.Account).one()
    token = auth_routes.create_password_reset_token(account)
    request = ResetPasswordRequest(token=token, password="newpass1", confirm_password="newpass1")

    auth_routes.reset_password(request, db_session)

    with pytest.raises(HTTPException) as reused:
        auth_routes.reset_password(request, db_session)
    assert reused.value.status_code == 400


def test_token_types_are_not_interchangeable():
    access = create_token("1")
    reset = create_token("1", token_type=RESET_TOKEN_TYPE)

    assert decode_token(access, ACCESS_TOKEN_TYPE)["sub"] == "1"
    assert decode_token(reset, ACCESS_TOKEN_TYPE) is None
    assert decode_token("not-a-token") is None


def test_forgot_password_never_logs_the_reset_token(db_session: Session, monkeypatch, caplog):
    _signup(db_session)
    issued = []
    deliver = auth_routes.send_password_reset

    def _capture(account, token):
        issued.append(token)
        deliver(account, token)

    monkeypatch.setattr(auth_routes, "send_password_reset", _capture)
    caplog.set_level(logging.DEBUG)

    response = auth_routes.forgot_password(ForgotPasswordRequest(email="maria@example.com"), db_session)

    assert response.message == auth_routes.RESET_REQUESTED_MESSAGE
    assert len(issued) == 1
    assert "Password reset issued for maria@example.com" in caplog.text
    assert issued[0] not in caplog.text


def test_forgot_password_for_unknown_email_issues_nothing(db_session: Session, monkeypatch):
    issued = []
    monkeypatch.setattr(auth_routes, "send_password_reset", lambda account, token: issued.append(token))

    response = auth_routes.forgot_password(ForgotPasswordRequest(email="ghost@example.com"), db_session)

    assert response.message == auth_routes.RESET_REQUESTED_MESSAGE
    assert issued == []
