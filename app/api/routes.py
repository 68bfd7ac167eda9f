from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

# Security
from app.api.auth import authenticate

# Data Access (Session)
from app.data_access.database import get_session

# Domain Entities (Pydantic models)
from app.domain import (
    ClientDomain,
    ClientGroupsReport,
    ClientRead,
    Dashboard,
    DepartmentSummary,
    EmployeeDomain,
    EmployeeRead,
    LoginRequest,
    ProductDomain,
    ProductRead,
    RegisterRequest,
    SaleDomain,
    SaleRead,
    SalesReport,
    SaleUpdate,
    StockUpdate,
    TimeRange,
    TokenResponse,
    UserPublic,
)

# Services
from app.services.auth_service import AuthService
from app.services.client_service import ClientService
from app.services.employee_service import EmployeeService
from app.services.product_service import ProductService
from app.services.report_service import ReportService
from app.services.sale_service import SaleService
from app.services.seed_service import SeedService


router = APIRouter(prefix="/api")

SessionDep = Annotated[Session, Depends(get_session)]
CurrentUser = Annotated[UserPublic, Depends(authenticate)]

# --- 1. AUTHENTICATION ---
@router.post("/auth/register", tags=["Auth"], status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, session: SessionDep) -> TokenResponse:
    """Creates an operator account and returns a bearer token for it."""
    service = AuthService(session)
    return service.register(data)

@router.post("/auth/login", tags=["Auth"])
def login(data: LoginRequest, session: SessionDep) -> TokenResponse:
    """Exchanges email and password for a bearer token."""
    service = AuthService(session)
    return service.login(data)

# --- 2. ADMIN & SEEDING ---
@router.post("/seed", tags=["Admin"])
def seed_database(session: SessionDep, user: CurrentUser) -> dict[str, str]:
    """Replaces all business data with the bundled demo dataset."""
    service = SeedService(session)
    return service.run_seed_process()

# --- 3. CLIENTS ---
@router.get("/clients/", tags=["Clients"])
def get_all_clients(session: SessionDep, user: CurrentUser) -> list[ClientRead]:
    """Lists every client, newest first."""
    service = ClientService(session)
    return service.get_all_clients()

@router.get("/clients/{id}", tags=["Clients"])
def get_client(id: int, session: SessionDep, user: CurrentUser) -> ClientRead:
    service = ClientService(session)
    return service.get_client_by_id(id)

@router.post("/clients/", tags=["Clients"], status_code=status.HTTP_201_CREATED)
def create_client(data: ClientDomain, session: SessionDep, user: CurrentUser) -> ClientRead:
    """Registers a client; email and document must be unused."""
    service = ClientService(session)
    return service.create_client(data)

@router.put("/clients/{id}", tags=["Clients"])
def update_client(id: int, data: ClientDomain, session: SessionDep, user: CurrentUser) -> ClientRead:
    """Replaces a client's contact data."""
    service = ClientService(session)
    return service.update_client(id, data)

@router.delete("/clients/{id}", tags=["Clients"])
def delete_client(id: int, session: SessionDep, user: CurrentUser) -> dict:
    service = ClientService(session)
    return service.delete_client(id)

# --- 4. EMPLOYEES ---
@router.get("/employees/", tags=["Employees"])
def get_all_employees(session: SessionDep, user: CurrentUser) -> list[EmployeeRead]:
    service = EmployeeService(session)
    return service.get_all_employees()

@router.get("/employees/{id}", tags=["Employees"])
def get_employee(id: int, session: SessionDep, user: CurrentUser) -> EmployeeRead:
    service = EmployeeService(session)
    return service.get_employee(id)

@router.post("/employees/", tags=["Employees"], status_code=status.HTTP_201_CREATED)
def create_employee(data: EmployeeDomain, session: SessionDep, user: CurrentUser) -> EmployeeRead:
    service = EmployeeService(session)
    return service.create_employee(data)

@router.put("/employees/{id}", tags=["Employees"])
def update_employee(id: int, data: EmployeeDomain, session: SessionDep, user: CurrentUser) -> EmployeeRead:
    service = EmployeeService(session)
    return service.update_employee(id, data)

@router.delete("/employees/{id}", tags=["Employees"])
def delete_employee(id: int, session: SessionDep, user: CurrentUser) -> dict:
    service = EmployeeService(session)
    return service.delete_employee(id)

# --- 5. PRODUCTS & INVENTORY ---
@router.get("/products/", tags=["Products"])
def get_all_products(
    session: SessionDep,
    user: CurrentUser,
    category: Annotated[str | None, Query(description="Only products of this category")] = None
) -> list[ProductRead]:
    """Lists the catalogue, newest first, optionally for one category."""
    service = ProductService(session)
    return service.get_all_products(category=category)

@router.get("/products/{id}", tags=["Products"])
def get_product(id: int, session: SessionDep, user: CurrentUser) -> ProductRead:
    service = ProductService(session)
    return service.get_product_by_id(id)

@router.post("/products/", tags=["Products"], status_code=status.HTTP_201_CREATED)
def create_product(data: ProductDomain, session: SessionDep, user: CurrentUser) -> ProductRead:
    """Adds a product; the SKU must be unused."""
    service = ProductService(session)
    return service.create_product(data)

@router.put("/products/{id}", tags=["Products"])
def update_product(id: int, data: ProductDomain, session: SessionDep, user: CurrentUser) -> ProductRead:
    service = ProductService(session)
    return service.update_product(id, data)

@router.patch("/products/{id}/stock", tags=["Products"])
def update_product_stock(id: int, data: StockUpdate, session: SessionDep, user: CurrentUser) -> ProductRead:
    """Sets the units on hand of a product."""
    service = ProductService(session)
    return service.update_stock(id, data.stock)

@router.delete("/products/{id}", tags=["Products"])
def delete_product(id: int, session: SessionDep, user: CurrentUser) -> dict:
    service = ProductService(session)
    return service.delete_product(id)

# --- 6. SALES ---
@router.get("/sales/", tags=["Sales"])
def get_all_sales(session: SessionDep, user: CurrentUser) -> list[SaleRead]:
    """Lists every sale, newest first, with denormalized client and product names."""
    service = SaleService(session)
    return service.get_all_sales()

@router.get("/sales/{id}", tags=["Sales"])
def get_sale(id: int, session: SessionDep, user: CurrentUser) -> SaleRead:
    service = SaleService(session)
    return service.get_sale_by_id(id)

@router.post("/sales/", tags=["Sales"], status_code=status.HTTP_201_CREATED)
def create_sale(data: SaleDomain, session: SessionDep, user: CurrentUser) -> SaleRead:
    """Records a sale; the client and every product must exist."""
    service = SaleService(session)
    return service.create_sale(data)

@router.put("/sales/{id}", tags=["Sales"])
def update_sale(id: int, data: SaleUpdate, session: SessionDep, user: CurrentUser) -> SaleRead:
    """Partially updates a sale; unresolvable references keep the stored values."""
    service = SaleService(session)
    return service.update_sale(id, data)

@router.delete("/sales/{id}", tags=["Sales"])
def delete_sale(id: int, session: SessionDep, user: CurrentUser) -> dict:
    service = SaleService(session)
    return service.delete_sale(id)

# --- 7. REPORTS ---
@router.get("/reports/dashboard", tags=["Reports"])
def get_dashboard(session: SessionDep, user: CurrentUser) -> Dashboard:
    """Counts, low-stock products, the 5 latest sales and the 5 best sellers."""
    service = ReportService(session)
    return service.get_dashboard()

@router.get("/reports/sales", tags=["Reports"])
def get_sales_report(
    session: SessionDep,
    user: CurrentUser,
    time_range: Annotated[TimeRange, Query(description="Window ending now")] = TimeRange.MONTH
) -> SalesReport:
    """Sales metrics over the last day, week, month or all time."""
    service = ReportService(session)
    return service.get_sales_report(time_range)

@router.get("/reports/client-groups", tags=["Reports"])
def get_client_groups(session: SessionDep, user: CurrentUser) -> ClientGroupsReport:
    """Premium, Frequent and Recent cohorts plus per-client purchase profiles."""
    service = ReportService(session)
    return service.get_client_groups()

@router.get("/reports/employees-by-department", tags=["Reports"])
def get_employees_by_department(session: SessionDep, user: CurrentUser) -> list[DepartmentSummary]:
    service = ReportService(session)
    return service.get_employees_by_department()
