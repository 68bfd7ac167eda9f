from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class EmployeeDomain(BaseModel):
    """
    Pure Domain representation of an Employee.

    Attributes:
        name (str): Full name of the employee.
        email (EmailStr): Work email, unique per employee.
        phone (str): Contact phone number.
        position (str): Job title.
        department (str): Department used to group employees in reports.
        status (bool): Whether the employee is currently active.
        hire_date (date): Date the employee was hired.
        salary (float): Monthly salary, never negative.
    """
    name: str = Field(..., description="Full name of the employee", min_length=1)
    email: EmailStr = Field(..., description="Unique work email")
    phone: str = Field(..., description="Contact phone number", min_length=1)
    position: str = Field(..., description="Job title", min_length=1)
    department: str = Field(..., description="Department name", min_length=1)
    status: bool = Field(True, description="Active flag")
    hire_date: date = Field(..., description="Date the employee was hired")
    salary: float = Field(..., description="Monthly salary", ge=0)

    @field_validator('name', 'phone', 'position', 'department', mode='before')
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """
        Trims whitespace around text fields so department grouping is stable.

        Runs before the length constraint, so blank values are rejected.

        Args:
            v (Any): The raw value.

        Returns:
            Any: The trimmed string, or the untouched value when it is not a string.
        """
        return v.strip() if isinstance(v, str) else v

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Carlos Ruiz",
                "email": "carlos.ruiz@battiolab.co",
                "phone": "+57 311 555 0101",
                "position": "Sales Associate",
                "department": "Sales",
                "status": True,
                "hire_date": "2023-03-15",
                "salary": 2500000
            }
        }
    }

class EmployeeRead(EmployeeDomain):
    """A stored employee as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
