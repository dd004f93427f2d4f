"""Schemas for employee records"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class EmployeeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: str = Field("Staff", max_length=50)
    position: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    contact_number: Optional[str] = Field(None, max_length=50)
    birthdate: Optional[date] = None
    username: Optional[str] = Field(None, max_length=100)


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    contact_number: Optional[str] = Field(None, max_length=50)
    birthdate: Optional[date] = None
    username: Optional[str] = Field(None, max_length=100)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    position: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    contact_number: Optional[str] = Field(None, max_length=50)
    birthdate: Optional[date] = None
    username: Optional[str] = Field(None, max_length=100)


class EmployeeResponse(BaseModel):
    id: int
    account_id: Optional[int] = None
    name: str
    email: str
    role: str
    position: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    birthdate: Optional[date] = None
    username: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
