import logging
from datetime import UTC, datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlmodel import Session, col, select

# Data Access
from app.data_access.models import Employee

# Domain Entities
from app.domain.employee import EmployeeDomain, EmployeeRead


logger = logging.getLogger(__name__)

class EmployeeService:
    """Service layer for managing Employees.

    Keeps the employee email unique and exposes the plain CRUD lifecycle
    used by the staff screens and the department report.
    """

    def __init__(self, session: Session) -> None:
        """Initializes the service with a database session.

        Args:
            session (Session): The active SQLModel/SQLAlchemy session.
        """
        self.session = session

    def _map_to_domain(self, db_employee: Employee) -> EmployeeRead:
        return EmployeeRead.model_validate(db_employee)

    def _get_employee_or_404(self, id: int) -> Employee:
        employee = self.session.get(Employee, id)
        if not employee:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Employee with ID {id} not found."
            )
        return employee

    def _check_unique_email(self, email: str, exclude_id: Optional[int] = None) -> None:
        statement = select(Employee).where(Employee.email == email)
        if exclude_id is not None:
            statement = statement.where(Employee.id != exclude_id)
        if self.session.exec(statement).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Employee with that email already exists"
            )

    # --- 1. create_employee ---
    def create_employee(self, employee_in: EmployeeDomain) -> EmployeeRead:
        """Full CRUD: Validates business rules and persists a new employee.

        Args:
            employee_in (EmployeeDomain): Input data from the API.

        Returns:
            EmployeeRead: The created employee.

        Raises:
            HTTPException: 400 status if the email is already registered.
        """
        self._check_unique_email(employee_in.email)
        new_employee = Employee(**employee_in.model_dump())

        try:
            self.session.add(new_employee)
            self.session.commit()
            self.session.refresh(new_employee)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to create employee: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal database error during employee creation."
            )
        logger.info(f"Created employee {new_employee.id}")
        return self._map_to_domain(new_employee)

    # --- 2. get_all_employees ---
    def get_all_employees(self) -> list[EmployeeRead]:
        """Full CRUD: Lists employees, most recently created first."""
        statement = select(Employee).order_by(col(Employee.created_at).desc(), col(Employee.id).desc())
        return [self._map_to_domain(e) for e in self.session.exec(statement).all()]

    # --- 3. get_employee ---
    def get_employee(self, id: int) -> EmployeeRead:
        return self._map_to_domain(self._get_employee_or_404(id))

    # --- 4. update_employee ---
    def update_employee(self, id: int, employee_in: EmployeeDomain) -> EmployeeRead:
        """Full CRUD: Replaces an employee's data.

        Raises:
            HTTPException: 404 status if the employee does not exist.
            HTTPException: 400 status if the new email belongs to someone else.
        """
        db_employee = self._get_employee_or_404(id)
        self._check_unique_email(employee_in.email, exclude_id=id)

        for key, value in employee_in.model_dump().items():
            setattr(db_employee, key, value)
        db_employee.updated_at = datetime.now(UTC)

        try:
            self.session.add(db_employee)
            self.session.commit()
            self.session.refresh(db_employee)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to update employee {id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal database error during employee update."
            )
        return self._map_to_domain(db_employee)

    # --- 5. delete_employee ---
    def delete_employee(self, id: int) -> dict:
        db_employee = self._get_employee_or_404(id)
        self.session.delete(db_employee)
        self.session.commit()
        logger.info(f"Deleted employee {id}")
        return {"detail": f"Employee {id} deleted"}
