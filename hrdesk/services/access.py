"""Location and IP based access gate."""
import logging
import math
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from hrdesk.config import settings
from hrdesk.models import AllowedIP, AuditLog
from hrdesk.schemas import IPValidationResponse, LocationCheckResponse

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
ACCESS_GRANTED = "Access granted"
ACCESS_RESTRICTED = "Access to this application is restricted based on location."
IP_NOT_ALLOWED = "Access from this IP address is not allowed."
FAILED_LOGIN_ACTION = "FAILED_LOGIN_ATTEMPT"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def is_ip_allowed(db: Session, ip: Optional[str]) -> bool:
    if not ip:
        return False
    return db.query(AllowedIP.id).filter(AllowedIP.ip_address == ip).first() is not None


def verify_location(
    db: Session,
    latitude: Optional[float],
    longitude: Optional[float],
    ip: Optional[str],
) -> LocationCheckResponse:
    """Allow access when the caller is inside the permitted radius or on an allowed IP."""
    distance = None
    location_verified = False
    if latitude is not None and longitude is not None:
        distance = haversine_km(latitude, longitude, settings.ALLOWED_LATITUDE, settings.ALLOWED_LONGITUDE)
        location_verified = distance <= settings.ALLOWED_RADIUS_KM

    ip_verified = is_ip_allowed(db, ip)
    allowed = location_verified or ip_verified
    if not allowed:
        logger.info("Location check denied for ip=%s distance_km=%s", ip, distance)

    return LocationCheckResponse(
        access_allowed=allowed,
        location_verified=location_verified,
        ip_verified=ip_verified,
        message=ACCESS_GRANTED if allowed else ACCESS_RESTRICTED,
        distance_km=round(distance, 3) if distance is not None else None,
    )


def validate_ip(db: Session, ip: Optional[str]) -> IPValidationResponse:
    """Report whether ``ip`` may use the app. Every IP passes unless enforcement is enabled."""
    if not settings.IP_VALIDATION_ENFORCED:
        return IPValidationResponse(allowed=True, message=ACCESS_GRANTED, ip=ip)

    allowed = is_ip_allowed(db, ip)
    return IPValidationResponse(allowed=allowed, message=ACCESS_GRANTED if allowed else IP_NOT_ALLOWED, ip=ip)


def record_failed_login(db: Session, email: str, ip: Optional[str]) -> AuditLog:
    entry = AuditLog(
        action=FAILED_LOGIN_ACTION,
        table_name="accounts",
        ip_address=ip,
        new_data={"email": email},
    )
    db.add(entry)
    db.commit()
    logger.warning("Failed login attempt for %s from %s", email, ip)
    return entry
