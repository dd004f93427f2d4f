"""Password hashing and JWT helpers"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from hrdesk.config import settings

ACCESS_TOKEN_TYPE = "access"
RESET_TOKEN_TYPE = "password_reset"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return check_password_hash(hashed_password, password)


def create_token(
    subject: str,
    token_type: str = ACCESS_TOKEN_TYPE,
    expires_minutes: Optional[int] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Create a signed JWT carrying ``sub``, ``type`` and ``exp`` claims."""
    if expires_minutes is None:
        expires_minutes = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "type": token_type, "exp": expire}
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict[str, Any]]:
    """Decode and verify a JWT. Returns the payload, or None when invalid."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type or not payload.get("sub"):
        return None
    return payload
