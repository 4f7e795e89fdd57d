"""
Important date model (shared calendar / lookup pool)
"""
from sqlalchemy import Column, String, Integer, Date, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
import uuid
from app.database import Base
from app.models.base import utcnow

IMPORTANT_DATE_CATEGORIES = ("Stena Dates", "ÖMC Dates", "PE3 Dates", "Other")
PE3_CATEGORY = "PE3 Dates"


class ImportantDate(Base):
    """A dated entry in the shared calendar. PE3 dates are assigned to at most one active employee."""
    __tablename__ = "important_dates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    week_number = Column(Integer, nullable=True)
    year = Column(Integer, nullable=False)
    category = Column(String(50), nullable=False)
    date_description = Column(Text, nullable=False)
    date_value = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)
