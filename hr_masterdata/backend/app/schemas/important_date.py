"""
Important date schemas
"""
from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

ImportantDateCategory = Literal["Stena Dates", "ÖMC Dates", "PE3 Dates", "Other"]


class ImportantDateCreate(BaseModel):
    week_number: Optional[int] = Field(None, ge=1, le=53)
    year: int = Field(..., ge=2020, le=2100)
    category: ImportantDateCategory
    date_description: str = Field(..., min_length=1, max_length=500)
    date_value: date
    notes: Optional[str] = None


class ImportantDateUpdate(BaseModel):
    week_number: Optional[int] = Field(None, ge=1, le=53)
    year: Optional[int] = Field(None, ge=2020, le=2100)
    category: Optional[ImportantDateCategory] = None
    date_description: Optional[str] = Field(None, min_length=1, max_length=500)
    date_value: Optional[date] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class ImportantDateImportRow(BaseModel):
    """One CSV row. Historical calendars are accepted, hence the wider year range."""
    week_number: Optional[int] = Field(None, ge=1, le=53)
    year: int = Field(..., ge=1900, le=2100)
    category: ImportantDateCategory
    date_description: str = Field(..., min_length=1, max_length=500)
    date_value: date
    notes: Optional[str] = None


class ImportantDateResponse(BaseModel):
    id: UUID
    week_number: Optional[int] = None
    year: int
    category: str
    date_description: str
    date_value: date
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PE3Option(BaseModel):
    id: UUID
    label: str
    date_value: date
    week_number: Optional[int] = None
    year: int
