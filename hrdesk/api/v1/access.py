"""Location and IP access gate endpoints"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import require_admin
from hrdesk.models import AllowedIP, Employee
from hrdesk.schemas import (
    AllowedIPCreate,
    AllowedIPResponse,
    FailedLoginReport,
    IPValidationResponse,
    LocationCheckRequest,
    LocationCheckResponse,
    MessageResponse,
)
from hrdesk.services import access as access_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/verify-location", response_model=LocationCheckResponse)
def verify_location(check: LocationCheckRequest, request: Request, db: Session = Depends(get_db)):
    """Check the caller's coordinates and IP against the allowed area and allow-list."""
    ip = check.ip or access_service.client_ip(request)
    try:
        return access_service.verify_location(db, check.latitude, check.longitude, ip)
    except SQLAlchemyError:
        logger.exception("Location verification failed for %s", ip)
        denied = LocationCheckResponse(
            access_allowed=False,
            location_verified=False,
            ip_verified=False,
            message="Location verification is temporarily unavailable",
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=denied.model_dump())


@router.get("/validate-ip", response_model=IPValidationResponse)
def validate_ip(request: Request, db: Session = Depends(get_db)):
    return access_service.validate_ip(db, access_service.client_ip(request))


@router.post("/failed-login", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def report_failed_login(report: FailedLoginReport, request: Request, db: Session = Depends(get_db)):
    access_service.record_failed_login(db, report.email, access_service.client_ip(request))
    return MessageResponse(message="Failed login attempt recorded")


@router.get("/allowed-ips", response_model=List[AllowedIPResponse])
def list_allowed_ips(
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return db.query(AllowedIP).order_by(AllowedIP.ip_address.asc()).all()


@router.post("/allowed-ips", response_model=AllowedIPResponse, status_code=status.HTTP_201_CREATED)
def add_allowed_ip(
    ip_data: AllowedIPCreate,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    allowed_ip = AllowedIP(ip_address=ip_data.ip_address.strip(), description=ip_data.description)
    db.add(allowed_ip)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="IP address is already allowed")
    db.refresh(allowed_ip)
    logger.info("IP %s allowed by %s", allowed_ip.ip_address, current_employee.email)
    return allowed_ip


@router.delete("/allowed-ips/{allowed_ip_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_allowed_ip(
    allowed_ip_id: int,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    allowed_ip = db.query(AllowedIP).filter(AllowedIP.id == allowed_ip_id).first()
    if not allowed_ip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allowed IP not found")
    db.delete(allowed_ip)
    db.commit()
