"""
Database models for HR Masterdata
"""
from app.database import Base

# Import all models
from .user import User, RevokedToken
from .employee import Employee
from .column_config import ColumnConfig
from .party_data import SodexoData, OmcData, PayrollData, TopluxData, PARTY_DATA_MODELS
from .important_date import ImportantDate, IMPORTANT_DATE_CATEGORIES, PE3_CATEGORY

__all__ = [
    "Base",
    "User",
    "RevokedToken",
    "Employee",
    "ColumnConfig",
    "SodexoData",
    "OmcData",
    "PayrollData",
    "TopluxData",
    "PARTY_DATA_MODELS",
    "ImportantDate",
    "IMPORTANT_DATE_CATEGORIES",
    "PE3_CATEGORY",
]
