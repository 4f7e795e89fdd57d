"""
Column configuration model (column registry)
"""
from sqlalchemy import Column, String, Boolean, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
import uuid
from app.database import Base
from app.models.base import JSONType, utcnow


class ColumnConfig(Base):
    """
    Metadata and per-role permissions for one employee-table column.

    Masterdata columns map onto Employee attributes. Custom columns hold
    their values in the party side tables; owner_role is set for columns an
    external party created for itself.
    role_permissions: {role: {"view": bool, "edit": bool}} for every role.
    """
    __tablename__ = "column_config"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    column_name = Column(String(100), nullable=False)
    column_type = Column(String(20), nullable=False, default="text")
    is_masterdata = Column(Boolean, nullable=False, default=False)
    category = Column(String(100), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    owner_role = Column(String(20), nullable=True)
    role_permissions = Column(JSONType, nullable=False, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
