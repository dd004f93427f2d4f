"""Employee directory endpoints"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee, require_admin
from hrdesk.models import Account, Employee
from hrdesk.schemas import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from hrdesk.services.employees import get_employee_by_email, linked_account, normalize_email, search_employees

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


def _ensure_email_free(db: Session, email: str, employee_id: Optional[int] = None) -> None:
    existing = get_employee_by_email(db, email)
    if existing is not None and existing.id != employee_id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An employee with this email already exists")


@router.get("", response_model=List[EmployeeResponse])
def list_employees(
    search: Optional[str] = Query(None, description="Substring of name or email"),
    role: Optional[str] = Query(None, description="Exact role, or 'all'"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return search_employees(db, search=search, role=role)


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(
    employee_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return _load_employee(db, employee_id)


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
def create_employee(
    employee_data: EmployeeCreate,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    email = normalize_email(employee_data.email)
    _ensure_email_free(db, email)

    employee = Employee(**employee_data.model_dump(exclude={"email"}), email=email)
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info("Employee %s added by %s", email, current_employee.email)
    return employee


@router.patch("/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    update_data: EmployeeUpdate,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    employee = _load_employee(db, employee_id)
    changes = update_data.model_dump(exclude_unset=True)
    account = linked_account(db, employee)
    if changes.get("email"):
        changes["email"] = normalize_email(changes["email"])
        _ensure_email_free(db, changes["email"], employee.id)
        if account is not None and changes["email"] != account.email:
            taken = db.query(Account.id).filter(Account.email == changes["email"], Account.id != account.id).first()
            if taken:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT, detail="An account with this email already exists"
                )
            account.email = changes["email"]

    for field, value in changes.items():
        if value is None and field in ("name", "email", "role"):
            continue
        setattr(employee, field, value)

    if account is not None and employee.account_id is None:
        employee.account_id = account.id
    db.commit()
    db.refresh(employee)
    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(
    employee_id: int,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Remove an employee record and its login account.

    Their tasks and comments stay and show as a deleted user; existing
    tokens stop working because the account is gone.
    """
    employee = _load_employee(db, employee_id)
    if employee.id == current_employee.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own record")
    account = linked_account(db, employee)
    db.delete(employee)
    if account is not None:
        db.delete(account)
    db.commit()
    logger.info("Employee %s removed by %s", employee_id, current_employee.email)
