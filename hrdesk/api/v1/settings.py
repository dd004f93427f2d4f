"""Profile and password settings for the signed-in user"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee, get_current_user
from hrdesk.models import Account, Employee
from hrdesk.schemas import EmployeeResponse, MessageResponse, PasswordChange, ProfileUpdate
from hrdesk.security import hash_password, verify_password

router = APIRouter()


@router.get("/profile", response_model=EmployeeResponse)
def read_profile(current_employee: Employee = Depends(get_current_employee)):
    return current_employee


@router.patch("/profile", response_model=EmployeeResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: Account = Depends(get_current_user),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    changes = profile_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field == "name":
            continue
        setattr(current_employee, field, value)

    if changes.get("name"):
        current_user.full_name = changes["name"]

    db.commit()
    db.refresh(current_employee)
    return current_employee


@router.post("/password", response_model=MessageResponse)
def change_password(
    password_data: PasswordChange,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(password_data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    if password_data.new_password != password_data.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")

    current_user.hashed_password = hash_password(password_data.new_password)
    db.commit()
    return MessageResponse(message="Password updated")
