"""
Business logic services for HR Masterdata
"""
from .column_service import ColumnService
from .custom_data_service import CustomDataService
from .employee_service import EmployeeService
from .important_date_service import ImportantDateService
from .user_service import UserService

__all__ = [
    "ColumnService",
    "CustomDataService",
    "EmployeeService",
    "ImportantDateService",
    "UserService",
]
