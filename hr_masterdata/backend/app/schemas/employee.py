"""
Employee schemas
"""
from datetime import date
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.utils.ssn import SSN_INPUT_PATTERN, normalize_ssn

Gender = Literal["Male", "Female", "Other", "Prefer not to say"]


def _check_ssn(v: str) -> str:
    v = (v or "").strip()
    if not SSN_INPUT_PATTERN.match(v):
        raise ValueError("SSN must be 10 or 12 digits, or YYMMDD-XXXX / YYYYMMDD-XXXX")
    return normalize_ssn(v)


def _check_hire_date(v: Optional[date]) -> Optional[date]:
    if v is not None and v > date.today():
        raise ValueError("Hire date cannot be in the future")
    return v


def _check_pe3_date(v: Optional[str]) -> Optional[str]:
    """pe3_date holds an important date id; stored in canonical UUID form."""
    if v is None or not v.strip():
        return None
    try:
        return str(UUID(v.strip()))
    except ValueError:
        raise ValueError("PE3 date must reference an important date id")


class EmployeeCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    ssn: str
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=50)
    rank: str = Field(..., min_length=1, max_length=100)
    gender: Gender
    town_district: Optional[str] = Field(None, max_length=255)
    hire_date: date
    stena_date: str = Field(..., min_length=1, max_length=100)
    omc_date: str = Field(..., min_length=1, max_length=100)
    pe3_date: Optional[str] = None
    comments: Optional[str] = None

    @field_validator("ssn")
    @classmethod
    def ssn_format(cls, v: str) -> str:
        return _check_ssn(v)

    @field_validator("hire_date")
    @classmethod
    def hire_date_not_future(cls, v: date) -> date:
        return _check_hire_date(v)

    @field_validator("pe3_date")
    @classmethod
    def pe3_reference(cls, v: Optional[str]) -> Optional[str]:
        return _check_pe3_date(v)

    @field_validator("first_name", "surname", "rank")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v


class EmployeeUpdate(BaseModel):
    """Partial update. At least one field must be present."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    surname: Optional[str] = Field(None, min_length=1, max_length=100)
    ssn: Optional[str] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=50)
    rank: Optional[str] = Field(None, min_length=1, max_length=100)
    gender: Optional[Gender] = None
    town_district: Optional[str] = Field(None, max_length=255)
    hire_date: Optional[date] = None
    stena_date: Optional[str] = Field(None, max_length=100)
    omc_date: Optional[str] = Field(None, max_length=100)
    pe3_date: Optional[str] = None
    comments: Optional[str] = None
    is_terminated: Optional[bool] = None
    is_archived: Optional[bool] = None
    termination_date: Optional[date] = None
    termination_reason: Optional[str] = Field(None, max_length=500)

    @field_validator("ssn")
    @classmethod
    def ssn_format(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_ssn(v)

    @field_validator("hire_date")
    @classmethod
    def hire_date_not_future(cls, v: Optional[date]) -> Optional[date]:
        return _check_hire_date(v)

    @field_validator("pe3_date")
    @classmethod
    def pe3_reference(cls, v: Optional[str]) -> Optional[str]:
        return _check_pe3_date(v)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class TerminateRequest(BaseModel):
    termination_date: date
    termination_reason: str = Field(..., min_length=1, max_length=500)


class EmployeeImportRow(BaseModel):
    """One CSV row. Only name, SSN and hire date are mandatory on import."""
    first_name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    ssn: str
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=50)
    rank: Optional[str] = Field(None, max_length=100)
    gender: Optional[Gender] = None
    town_district: Optional[str] = Field(None, max_length=255)
    hire_date: date
    stena_date: Optional[str] = Field(None, max_length=100)
    omc_date: Optional[str] = Field(None, max_length=100)
    comments: Optional[str] = None

    @field_validator("ssn")
    @classmethod
    def ssn_format(cls, v: str) -> str:
        return _check_ssn(v)

    @field_validator("hire_date")
    @classmethod
    def hire_date_not_future(cls, v: date) -> date:
        return _check_hire_date(v)
