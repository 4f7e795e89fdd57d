"""
User management schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.permission_config import parse_role


class UserCreate(BaseModel):
    """Schema for creating a new user (HR Admin only)"""
    email: EmailStr
    password: Optional[str] = Field(
        None, min_length=8, description="Initial password. Generated when omitted."
    )
    role: str = Field(..., description="One of hr_admin, sodexo, omc, payroll, toplux")
    is_active: bool = True

    @field_validator("role")
    @classmethod
    def role_in_closed_set(cls, v: str) -> str:
        try:
            return parse_role(v).value
        except ValueError:
            raise ValueError(f"Invalid role: {v}")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "payroll.lead@example.com",
                "role": "payroll",
                "is_active": True,
            }
        }


class UserStatusUpdate(BaseModel):
    """Activate / deactivate a user"""
    is_active: bool


class UserResponse(BaseModel):
    id: UUID
    email: str
    role: str
    is_active: bool
    last_active_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreateResponse(UserResponse):
    temporary_password: str
