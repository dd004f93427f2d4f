"""Schemas for the location and IP access gate"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class LocationCheckRequest(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    ip: Optional[str] = None


class LocationCheckResponse(BaseModel):
    access_allowed: bool
    location_verified: bool
    ip_verified: bool
    message: str
    distance_km: Optional[float] = None


class IPValidationResponse(BaseModel):
    allowed: bool
    message: str
    ip: Optional[str] = None


class AllowedIPCreate(BaseModel):
    ip_address: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = Field(None, max_length=255)


class AllowedIPResponse(BaseModel):
    id: int
    ip_address: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class FailedLoginReport(BaseModel):
    email: EmailStr
