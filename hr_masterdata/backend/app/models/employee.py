"""
Employee masterdata model
"""
from sqlalchemy import Column, String, Boolean, Date, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
import uuid
from app.database import Base
from app.models.base import utcnow


class Employee(Base):
    """
    Canonical employee record (masterdata), owned by HR Admin.

    ssn is stored normalised (YYMMDD-XXXX) and is unique.
    termination_date / termination_reason are only set while is_terminated.
    Archived employees are hidden from default listings.
    Display status (Active / Terminated / Archived) is computed at read time.
    """
    __tablename__ = "employees"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    ssn = Column(String(20), nullable=False, unique=True)
    email = Column(String(255))
    mobile = Column(String(50))
    rank = Column(String(100))
    gender = Column(String(30))
    town_district = Column(String(255))
    hire_date = Column(Date, nullable=False)
    stena_date = Column(String(100))
    omc_date = Column(String(100))
    pe3_date = Column(String(64))  # important_dates.id of the assigned PE3 date
    termination_date = Column(Date)
    termination_reason = Column(Text)
    is_terminated = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    comments = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)
