# app/domain/__init__.py

# 1. Resource Entities
from .client import ClientDomain, ClientRead
from .employee import EmployeeDomain, EmployeeRead
from .product import ProductDomain, ProductRead, StockUpdate

# 2. Sales
from .sale import (
    SaleClient,
    SaleClientRef,
    SaleDomain,
    SaleItemDomain,
    SaleItemRead,
    SaleRead,
    SaleStatus,
    SaleUpdate,
)

# 3. Authentication
from .user import LoginRequest, RegisterRequest, TokenResponse, UserPublic, UserRole

# 4. Reports
from .reports import (
    ClientCohort,
    ClientGroupsReport,
    ClientPurchaseProfile,
    Dashboard,
    DepartmentSummary,
    SalesMetrics,
    SalesReport,
    TimeRange,
)


__all__ = [
    "ClientCohort",
    "ClientDomain",
    "ClientGroupsReport",
    "ClientPurchaseProfile",
    "ClientRead",
    "Dashboard",
    "DepartmentSummary",
    "EmployeeDomain",
    "EmployeeRead",
    "LoginRequest",
    "ProductDomain",
    "ProductRead",
    "RegisterRequest",
    "SaleClient",
    "SaleClientRef",
    "SaleDomain",
    "SaleItemDomain",
    "SaleItemRead",
    "SaleRead",
    "SaleStatus",
    "SaleUpdate",
    "SalesMetrics",
    "SalesReport",
    "StockUpdate",
    "TimeRange",
    "TokenResponse",
    "UserPublic",
    "UserRole"
]
