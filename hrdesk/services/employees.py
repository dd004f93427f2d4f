"""Employee directory helpers shared by auth and the admin screens."""
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hrdesk.config import settings
from hrdesk.models import Account, Employee

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_employee_by_email(db: Session, email: str) -> Optional[Employee]:
    return db.query(Employee).filter(Employee.email == normalize_email(email)).first()


def names_by_email(db: Session, emails: Iterable[str]) -> Dict[str, str]:
    """Resolve display names for a batch of emails in one query."""
    wanted = {normalize_email(email) for email in emails if email}
    if not wanted:
        return {}
    rows = db.query(Employee.email, Employee.name).filter(Employee.email.in_(wanted)).all()
    return {email: name for email, name in rows}


def _find_linked_employee(db: Session, account: Account, email: str) -> Optional[Employee]:
    # A renamed employee keeps its account link, so the link is checked before the email.
    if account.id is not None:
        employee = db.query(Employee).filter(Employee.account_id == account.id).first()
        if employee is not None:
            return employee
    return get_employee_by_email(db, email)


def _new_employee(account: Account, email: str) -> Employee:
    metadata = account.user_metadata or {}
    return Employee(
        account_id=account.id,
        name=account.full_name or email.split("@")[0],
        email=email,
        role=settings.DEFAULT_ROLE,
        position=metadata.get("position"),
        username=metadata.get("username"),
        contact_number=metadata.get("contact_number"),
    )


def ensure_employee_for_account(db: Session, account: Account) -> Employee:
    """Return the employee record mirroring ``account``, creating it if missing.

    Signup and sign-in both go through here. The unique email constraint
    decides a race between two concurrent creators: the loser re-reads the
    winner's row instead of failing. The caller owns the commit.
    """
    email = normalize_email(account.email)
    employee = _find_linked_employee(db, account, email)

    if employee is None:
        employee = _new_employee(account, email)
        try:
            with db.begin_nested():
                db.add(employee)
        except IntegrityError:
            existing = _find_linked_employee(db, account, email)
            if existing is None:
                raise
            logger.info("Employee record for %s already created by a concurrent request", email)
            employee = existing
        else:
            logger.info("Created employee record for %s", email)

    if employee.account_id is None:
        employee.account_id = account.id
    return employee


def linked_account(db: Session, employee: Employee) -> Optional[Account]:
    """The login account behind ``employee``, by link or, for unlinked rows, by email."""
    if employee.account_id is not None:
        return db.query(Account).filter(Account.id == employee.account_id).first()
    return (
        db.query(Account)
        .filter(Account.email == normalize_email(employee.email), ~Account.employee.has())
        .first()
    )


def search_employees(db: Session, search: Optional[str] = None, role: Optional[str] = None):
    query = db.query(Employee)
    term = (search or "").strip().lower()
    if term:
        query = query.filter(
            or_(
                func.lower(Employee.name).contains(term, autoescape=True),
                func.lower(Employee.email).contains(term, autoescape=True),
            )
        )
    if role and role != "all":
        query = query.filter(func.lower(Employee.role) == role.lower())
    return query.order_by(Employee.name.asc()).all()


def is_admin(employee: Employee) -> bool:
    return (employee.role or "").lower() in settings.admin_roles
