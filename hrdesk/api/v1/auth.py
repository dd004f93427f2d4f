"""Authentication endpoints"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from hrdesk.config import settings
from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee, get_current_user
from hrdesk.models import Account, Employee
from hrdesk.schemas import (
    EmployeeResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SessionResponse,
    SignupRequest,
    Token,
    AccountResponse,
)
from hrdesk.security import (
    RESET_TOKEN_TYPE,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)
from hrdesk.services.access import client_ip, record_failed_login
from hrdesk.services.employees import ensure_employee_for_account, normalize_email

logger = logging.getLogger(__name__)

router = APIRouter()

RESET_REQUESTED_MESSAGE = "If the email is registered, a password reset link has been sent"


def _issue_token(account: Account) -> Token:
    return Token(
        access_token=create_token(str(account.id)),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def _password_fingerprint(account: Account) -> str:
    # Changes whenever the password does, so a reset token works once.
    return account.hashed_password[-16:]


def create_password_reset_token(account: Account) -> str:
    return create_token(
        str(account.id),
        token_type=RESET_TOKEN_TYPE,
        expires_minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES,
        extra_claims={"fp": _password_fingerprint(account)},
    )


def send_password_reset(account: Account, token: str) -> None:
    """Deliver a reset token to the account owner.

    No mail transport is configured, so only the fact that a reset was issued
    is logged. The token itself is a credential and never reaches the log.
    """
    logger.info("Password reset issued for %s", account.email)


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
def signup(signup_data: SignupRequest, db: Session = Depends(get_db)):
    """Create an account and its employee record."""
    if signup_data.password != signup_data.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")

    email = normalize_email(signup_data.email)
    if db.query(Account.id).filter(Account.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    metadata = {
        key: value
        for key, value in {
            "username": signup_data.username,
            "contact_number": signup_data.contact_number,
            "position": signup_data.position,
        }.items()
        if value
    }
    account = Account(
        email=email,
        hashed_password=hash_password(signup_data.password),
        full_name=signup_data.full_name,
        user_metadata=metadata,
    )
    db.add(account)
    db.flush()

    ensure_employee_for_account(db, account)
    db.commit()
    db.refresh(account)
    logger.info("Account %s registered", email)
    return _issue_token(account)


@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    email = normalize_email(credentials.email)
    account = db.query(Account).filter(Account.email == email).first()
    if account is None or not verify_password(credentials.password, account.hashed_password):
        record_failed_login(db, email, client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    account.last_sign_in_at = datetime.utcnow()
    ensure_employee_for_account(db, account)
    db.commit()
    return _issue_token(account)


@router.get("/me", response_model=SessionResponse)
def read_session(
    current_user: Account = Depends(get_current_user),
    current_employee: Employee = Depends(get_current_employee),
):
    return SessionResponse(
        account=AccountResponse.model_validate(current_user),
        employee=EmployeeResponse.model_validate(current_employee),
    )


@router.post("/refresh", response_model=Token)
def refresh_session(current_user: Account = Depends(get_current_user)):
    return _issue_token(current_user)


@router.post("/logout", response_model=MessageResponse)
def logout(current_user: Account = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy.
    return MessageResponse(message="Signed out")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(request_data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Issue a reset token without revealing whether the email exists."""
    account = db.query(Account).filter(Account.email == normalize_email(request_data.email)).first()
    if account is not None:
        token = create_password_reset_token(account)
        send_password_reset(account, token)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(reset_data: ResetPasswordRequest, db: Session = Depends(get_db)):
    if reset_data.password != reset_data.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")

    invalid = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")
    payload = decode_token(reset_data.token, token_type=RESET_TOKEN_TYPE)
    if payload is None:
        raise invalid

    account = db.query(Account).filter(Account.id == int(payload["sub"])).first()
    if account is None or payload.get("fp") != _password_fingerprint(account):
        raise invalid

    account.hashed_password = hash_password(reset_data.password)
    db.commit()
    logger.info("Password reset for %s", account.email)
    return MessageResponse(message="Password has been reset")
