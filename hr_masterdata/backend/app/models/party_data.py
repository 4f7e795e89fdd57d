"""
External party side tables: one row per employee holding that party's custom column values
"""
from sqlalchemy import Column, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
import uuid
from app.database import Base
from app.models.base import JSONType, utcnow
from app.permission_config import UserRole


class PartyDataMixin:
    """
    data: {column_name: str | int | float | bool | None}

    Rows are created on first write. Removal of the employee is left to the
    database cascade; the application never deletes these rows itself.
    """
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        UUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    data = Column(JSONType, nullable=False, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)


class SodexoData(PartyDataMixin, Base):
    __tablename__ = "sodexo_data"


class OmcData(PartyDataMixin, Base):
    __tablename__ = "omc_data"


class PayrollData(PartyDataMixin, Base):
    __tablename__ = "payroll_data"


class TopluxData(PartyDataMixin, Base):
    __tablename__ = "toplux_data"


PARTY_DATA_MODELS = {
    UserRole.SODEXO: SodexoData,
    UserRole.OMC: OmcData,
    UserRole.PAYROLL: PayrollData,
    UserRole.TOPLUX: TopluxData,
}
