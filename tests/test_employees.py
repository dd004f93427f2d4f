import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from hrdesk import models
from hrdesk.api.v1 import auth as auth_routes
from hrdesk.api.v1 import comments as comment_routes
from hrdesk.api.v1 import employees as employee_routes
from hrdesk.api.v1 import settings as settings_routes
from hrdesk.dependencies import account_from_token, get_current_employee, require_admin
from hrdesk.schemas import EmployeeCreate, EmployeeUpdate, PasswordChange, ProfileUpdate, SignupRequest
from hrdesk.security import hash_password, verify_password
from hrdesk.services.employees import ensure_employee_for_account, is_admin, names_by_email


def test_directory_search_by_name_email_and_role(db_session: Session, make_employee):
    maria = make_employee("Maria Santos", "maria@example.com")
    make_employee("Jose Rizal", "jose@hr.example.com", role="HR")
    make_employee("Ana Cruz", "ana@example.com", role="Admin")

    assert employee_routes.list_employees("SANTOS", None, maria, db_session)[0].email == "maria@example.com"
    assert [e.name for e in employee_routes.list_employees("hr.example", None, maria, db_session)] == ["Jose Rizal"]
    assert [e.name for e in employee_routes.list_employees(None, "admin", maria, db_session)] == ["Ana Cruz"]
    assert len(employee_routes.list_employees(None, "all", maria, db_session)) == 3


def test_names_by_email_is_case_insensitive(db_session: Session, make_employee):
    make_employee("Maria Santos", "maria@example.com")

    assert names_by_email(db_session, ["Maria@Example.com", "ghost@example.com", None]) == {
        "maria@example.com": "Maria Santos"
    }


def test_admin_roles(make_employee):
    assert is_admin(make_employee("Ana Cruz", "ana@example.com", role="Admin"))
    assert is_admin(make_employee("Jose Rizal", "jose@example.com", role="hr"))

    staff = make_employee("Maria Santos", "maria@example.com")
    with pytest.raises(HTTPException) as exc:
        require_admin(staff)
    assert exc.value.status_code == 403


def test_admin_creates_updates_and_deletes_employees(db_session: Session, make_employee):
    admin = make_employee("Ana Cruz", "ana@example.com", role="Admin")

    created = employee_routes.create_employee(
        EmployeeCreate(name="Maria Santos", email="Maria@Example.com", position="Recruiter"), admin, db_session
    )
    assert created.email == "maria@example.com"

    with pytest.raises(HTTPException) as duplicate:
        employee_routes.create_employee(EmployeeCreate(name="Other", email="maria@example.com"), admin, db_session)
    assert duplicate.value.status_code == 409

    updated = employee_routes.update_employee(created.id, EmployeeUpdate(role="HR", name=None), admin, db_session)
    assert updated.role == "HR"
    assert updated.name == "Maria Santos"

    with pytest.raises(HTTPException) as own_record:
        employee_routes.delete_employee(admin.id, admin, db_session)
    assert own_record.value.status_code == 400

    employee_routes.delete_employee(created.id, admin, db_session)
    assert db_session.query(models.Employee).count() == 1


def test_get_missing_employee_is_404(db_session: Session, make_employee):
    maria = make_employee("Maria Santos", "maria@example.com")
    with pytest.raises(HTTPException) as exc:
        employee_routes.get_employee(999, maria, db_session)
    assert exc.value.status_code == 404


def test_profile_update_keeps_account_name_in_step(db_session: Session, make_employee):
    account = models.Account(email="maria@example.com", hashed_password=hash_password("secret123"), full_name="Maria")
    db_session.add(account)
    db_session.commit()
    employee = make_employee("Maria", "maria@example.com")

    settings_routes.update_profile(
        ProfileUpdate(name="Maria Santos", position="Recruiter"), account, employee, db_session
    )

    assert employee.name == "Maria Santos"
    assert employee.position == "Recruiter"
    assert account.full_name == "Maria Santos"


def test_change_password_checks_current_password(db_session: Session):
    account = models.Account(email="maria@example.com", hashed_password=hash_password("secret123"))
    db_session.add(account)
    db_session.commit()

    with pytest.raises(HTTPException) as wrong:
        settings_routes.change_password(
            PasswordChange(current_password="nope", new_password="newpass1", confirm_password="newpass1"),
            account,
            db_session,
        )
    assert wrong.value.status_code == 400

    settings_routes.change_password(
        PasswordChange(current_password="secret123", new_password="newpass1", confirm_password="newpass1"),
        account,
        db_session,
    )
    assert verify_password("newpass1", account.hashed_password)


def _signed_up_account(db_session: Session, email: str = "maria@example.com"):
    token = auth_routes.signup(
        SignupRequest(email=email, password="secret123", confirm_password="secret123", full_name="Maria Santos"),
        db_session,
    )
    account = db_session.query(models.Account).filter(models.Account.email == email).one()
    return account, token.access_token


def test_deleting_employee_revokes_their_login(db_session: Session, make_employee, make_task):
    admin = make_employee("Ana Cruz", "ana@example.com", role="Admin")
    account, token = _signed_up_account(db_session)
    maria = db_session.query(models.Employee).filter(models.Employee.account_id == account.id).one()
    task = make_task("Audit Q1", admin.email)
    db_session.add(models.TaskComment(task_id=task.id, user_email=maria.email, content="Done"))
    db_session.commit()

    employee_routes.delete_employee(maria.id, admin, db_session)

    assert db_session.query(models.Account).count() == 0
    with pytest.raises(HTTPException) as exc:
        get_current_employee(account_from_token(db_session, token), db_session)
    assert exc.value.status_code == 401

    assert db_session.query(models.Employee).filter(models.Employee.email == "maria@example.com").count() == 0
    comments = comment_routes.get_task_comments(task.id, admin, db_session)
    assert comments[0].author_exists is False
    assert comments[0].author_name == "Deleted User"


def test_changing_employee_email_keeps_login_working(db_session: Session, make_employee):
    admin = make_employee("Ana Cruz", "ana@example.com", role="Admin")
    account, token = _signed_up_account(db_session)
    maria = db_session.query(models.Employee).filter(models.Employee.account_id == account.id).one()

    employee_routes.update_employee(
        maria.id, EmployeeUpdate(email="Maria.Santos@example.com"), admin, db_session
    )

    current = get_current_employee(account_from_token(db_session, token), db_session)
    assert current.id == maria.id
    assert current.email == "maria.santos@example.com"
    assert account.email == "maria.santos@example.com"
    assert db_session.query(models.Employee).count() == 2


def test_email_change_rejected_when_another_account_uses_it(db_session: Session, make_employee):
    admin = make_employee("Ana Cruz", "ana@example.com", role="Admin")
    account, _ = _signed_up_account(db_session)
    maria = db_session.query(models.Employee).filter(models.Employee.account_id == account.id).one()
    db_session.add(models.Account(email="taken@example.com", hashed_password="x"))
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        employee_routes.update_employee(maria.id, EmployeeUpdate(email="taken@example.com"), admin, db_session)
    assert exc.value.status_code == 409


def test_linked_employee_is_found_after_account_email_drift(db_session: Session):
    account = models.Account(email="old@example.com", hashed_password="x")
    db_session.add(account)
    db_session.flush()
    db_session.add(models.Employee(account_id=account.id, name="Maria Santos", email="new@example.com"))
    db_session.commit()

    employee = ensure_employee_for_account(db_session, account)

    assert employee.email == "new@example.com"
    assert db_session.query(models.Employee).count() == 1
