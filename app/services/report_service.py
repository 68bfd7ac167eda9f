import logging
from typing import Optional

from sqlmodel import Session

from app.analytics.aggregator import SalesAggregator
from app.core.config import settings
from app.domain.reports import ClientGroupsReport, Dashboard, DepartmentSummary, SalesReport, TimeRange
from app.services.client_service import ClientService
from app.services.employee_service import EmployeeService
from app.services.product_service import ProductService
from app.services.sale_service import SaleService

logger = logging.getLogger(__name__)

class ReportService:
    """Serves the dashboard and report views.

    Each call loads the raw lists it needs through the resource services and
    hands them to the SalesAggregator; nothing is cached between calls.
    """

    def __init__(self, session: Session, aggregator: Optional[SalesAggregator] = None) -> None:
        """Initializes the service with a database session.

        Args:
            session (Session): The active SQLModel/SQLAlchemy session.
            aggregator (Optional[SalesAggregator]): Pre-configured aggregator,
                mainly to pin the reference time in tests.
        """
        self.session = session
        self.aggregator = aggregator or SalesAggregator(low_stock_threshold=settings.LOW_STOCK_THRESHOLD)
        self.clients = ClientService(session)
        self.employees = EmployeeService(session)
        self.products = ProductService(session)
        self.sales = SaleService(session)

    def get_dashboard(self) -> Dashboard:
        """Entity counts, low stock, recent sales, top 5 products and overall metrics."""
        return self.aggregator.dashboard(
            clients=self.clients.get_all_clients(),
            employees=self.employees.get_all_employees(),
            products=self.products.get_all_products(),
            sales=self.sales.get_all_sales(),
        )

    def get_sales_report(self, time_range: TimeRange = TimeRange.MONTH) -> SalesReport:
        """Metrics, status split, daily revenue and top 10 products within a time window."""
        logger.info(f"Building sales report for range '{time_range.value}'")
        return self.aggregator.sales_report(self.sales.get_all_sales(), time_range)

    def get_client_groups(self) -> ClientGroupsReport:
        """Purchase profiles and cohorts of the clients that have bought something."""
        return self.aggregator.client_groups(
            self.clients.get_all_clients(), self.sales.get_all_sales()
        )

    def get_employees_by_department(self) -> list[DepartmentSummary]:
        return self.aggregator.employees_by_department(self.employees.get_all_employees())
