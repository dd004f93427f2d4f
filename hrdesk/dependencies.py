"""FastAPI dependencies for authentication and authorization"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.models import Account, Employee
from hrdesk.security import decode_token
from hrdesk.services.employees import ensure_employee_for_account, is_admin

bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def account_from_token(db: Session, token: Optional[str]) -> Account:
    payload = decode_token(token) if token else None
    if payload is None:
        raise _credentials_error()
    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise _credentials_error()

    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise _credentials_error()
    return account


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Account:
    return account_from_token(db, credentials.credentials if credentials else None)


def get_current_employee(
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Employee:
    employee = ensure_employee_for_account(db, current_user)
    db.commit()
    return employee


def require_admin(current_employee: Employee = Depends(get_current_employee)) -> Employee:
    if not is_admin(current_employee):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator access required")
    return current_employee
