from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.client import ClientRead
from app.domain.employee import EmployeeRead
from app.domain.sale import SaleRead


class BaseReportModel(BaseModel):
    """Base config for all read-only report entities."""
    model_config = ConfigDict(from_attributes=True)

class TimeRange(str, Enum):
    ALL = "all"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"

# --- Rankings ---

class ProductRanking(BaseReportModel):
    """Cumulative units sold for one product, named after its first sighting."""
    product_id: int
    name: str
    quantity: int = Field(ge=0)
    revenue: float = 0

class ClientRanking(BaseReportModel):
    """Purchase count and spend of one client within a set of sales."""
    client_id: Optional[int] = None
    name: str = "N/A"
    purchases: int = Field(0, ge=0)
    total: float = 0

class PreferredProduct(BaseReportModel):
    product_id: int
    product_name: str
    quantity: int = Field(ge=0)

# --- Sales Metrics ---

class SalesMetrics(BaseReportModel):
    """Headline figures over a set of sales.

    average_ticket is 0 for an empty set rather than undefined.
    """
    total_sales: int = 0
    total_revenue: float = 0
    average_ticket: float = 0
    completed_sales: int = 0
    pending_sales: int = 0
    top_product: ProductRanking = Field(
        default_factory=lambda: ProductRanking(product_id=0, name="N/A", quantity=0)
    )
    top_client: ClientRanking = Field(default_factory=ClientRanking)

class StatusBreakdown(BaseReportModel):
    completed: int = 0
    pending: int = 0
    cancelled: int = 0

class DailySales(BaseReportModel):
    day: date
    total: float = 0

class SalesReport(BaseReportModel):
    time_range: TimeRange
    metrics: SalesMetrics
    status_breakdown: StatusBreakdown
    sales_by_day: list[DailySales]
    top_products: list[ProductRanking]

# --- Client Segmentation ---

class ClientPurchaseProfile(ClientRead):
    """A client enriched with what its sales add up to.

    last_purchase here is derived from the sales, not the stored counter.
    """
    total_spent: float = 0
    preferred_products: list[PreferredProduct] = Field(default_factory=list)

class ClientProfiles(BaseReportModel):
    """Profiles of clients with at least one purchase, plus the skipped sales."""
    profiles: list[ClientPurchaseProfile]
    top_products: list[ProductRanking]
    orphaned_sales: int = 0

class ClientCohort(BaseReportModel):
    name: str
    description: str
    clients: list[ClientPurchaseProfile]

class ClientGroupsReport(BaseReportModel):
    total_clients: int
    clients_with_purchases: int
    average_purchases: float
    average_spent: float
    cohorts: list[ClientCohort]
    profiles: list[ClientPurchaseProfile]
    top_products: list[ProductRanking]
    orphaned_sales: int = 0

# --- Employees ---

class DepartmentSummary(BaseReportModel):
    name: str
    count: int
    total_salary: float
    average_salary: float
    employees: list[EmployeeRead]

# --- Dashboard ---

class Dashboard(BaseReportModel):
    clients_count: int
    employees_count: int
    products_count: int
    low_stock_count: int
    recent_sales: list[SaleRead]
    top_products: list[ProductRanking]
    metrics: SalesMetrics
    generated_at: Optional[datetime] = None
