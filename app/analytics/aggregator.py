import calendar
import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Optional

from app.analytics.ranking import group_and_rank, rank
from app.domain.client import ClientRead
from app.domain.employee import EmployeeRead
from app.domain.product import ProductRead
from app.domain.reports import (
    ClientCohort,
    ClientGroupsReport,
    ClientProfiles,
    ClientPurchaseProfile,
    ClientRanking,
    DailySales,
    Dashboard,
    DepartmentSummary,
    PreferredProduct,
    ProductRanking,
    SalesMetrics,
    SalesReport,
    StatusBreakdown,
    TimeRange,
)
from app.domain.sale import UNKNOWN_CLIENT, UNKNOWN_PRODUCT, SaleItemRead, SaleRead, SaleStatus, ensure_utc

logger = logging.getLogger(__name__)

DASHBOARD_TOP_PRODUCTS = 5
REPORT_TOP_PRODUCTS = 10
RECENT_SALES_LIMIT = 5
COHORT_SIZE = 5
PREFERRED_PRODUCTS_LIMIT = 3
SALES_BY_DAY_WINDOW = 7


def one_month_before(moment: datetime) -> datetime:
    """Steps back one calendar month, clamping the day to the target month's length.

    Mar 31 becomes Feb 29 (or 28). This differs from JavaScript's
    ``Date.setMonth(getMonth() - 1)``, which overflows Feb 31 into Mar 2 or 3.
    """
    if moment.month == 1:
        year, month = moment.year - 1, 12
    else:
        year, month = moment.year, moment.month - 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _items_of(sales: Iterable[SaleRead]) -> list[SaleItemRead]:
    return [item for sale in sales for item in sale.items]


def _new_product_bucket(item: SaleItemRead) -> ProductRanking:
    return ProductRanking(
        product_id=item.product_id,
        name=item.product_name or UNKNOWN_PRODUCT,
        quantity=0,
        revenue=0,
    )


def _add_item(bucket: ProductRanking, item: SaleItemRead) -> ProductRanking:
    bucket.quantity += item.quantity
    bucket.revenue += item.price * item.quantity
    return bucket


def _new_client_bucket(sale: SaleRead) -> ClientRanking:
    return ClientRanking(client_id=sale.client.id, name=sale.client.name or UNKNOWN_CLIENT)


def _add_sale(bucket: ClientRanking, sale: SaleRead) -> ClientRanking:
    bucket.purchases += 1
    bucket.total += sale.total
    return bucket


class SalesAggregator:
    """Read-time projections of sales, clients, products and employees.

    Every method is a pure function of its arguments: inputs are never
    mutated and nothing is cached, so each dashboard or report load
    recomputes from the raw lists. The reference time used for time windows
    can be pinned through ``now`` to make results reproducible.
    """

    def __init__(self, now: Optional[datetime] = None, low_stock_threshold: int = 10) -> None:
        self.now = now
        self.low_stock_threshold = low_stock_threshold

    def current_time(self) -> datetime:
        return ensure_utc(self.now) if self.now else datetime.now(UTC)

    # --- Product Rankings ---

    @staticmethod
    def top_products(sales: Iterable[SaleRead], limit: Optional[int] = DASHBOARD_TOP_PRODUCTS) -> list[ProductRanking]:
        """Ranks products by cumulative units sold across all sale lines.

        Args:
            sales (Iterable[SaleRead]): The sales to scan.
            limit (Optional[int]): Number of products to keep; None keeps all.

        Returns:
            list[ProductRanking]: At most ``limit`` products, best sellers first.
        """
        return group_and_rank(
            _items_of(sales),
            key=lambda item: item.product_id,
            create=_new_product_bucket,
            accumulate=_add_item,
            measure=lambda bucket: bucket.quantity,
            limit=limit,
        )

    # --- Sales Lists ---

    @staticmethod
    def recent_sales(sales: Iterable[SaleRead], limit: int = RECENT_SALES_LIMIT) -> list[SaleRead]:
        """Newest sales first, whatever their status."""
        return rank(sales, measure=lambda sale: sale.date.timestamp(), limit=limit)

    def filter_by_time_range(self, sales: Iterable[SaleRead], time_range: TimeRange) -> list[SaleRead]:
        """Keeps the sales made within the window ending now.

        Args:
            sales (Iterable[SaleRead]): The sales to filter.
            time_range (TimeRange): day, week, month or all.

        Returns:
            list[SaleRead]: Sales dated on or after the start of the window.
        """
        now = self.current_time()
        if time_range == TimeRange.DAY:
            start = now - timedelta(days=1)
        elif time_range == TimeRange.WEEK:
            start = now - timedelta(days=7)
        elif time_range == TimeRange.MONTH:
            start = one_month_before(now)
        else:
            return list(sales)
        return [sale for sale in sales if sale.date >= start]

    # --- Metrics ---

    @staticmethod
    def top_client(sales: Iterable[SaleRead]) -> ClientRanking:
        """The client with the most purchases; ties go to the first one seen."""
        ranked = group_and_rank(
            sales,
            key=lambda sale: sale.client.id,
            create=_new_client_bucket,
            accumulate=_add_sale,
            measure=lambda bucket: bucket.purchases,
            limit=1,
        )
        return ranked[0] if ranked else ClientRanking()

    def sales_metrics(self, sales: Sequence[SaleRead]) -> SalesMetrics:
        """Computes the headline sales figures.

        Sale totals are taken as recorded; they are not checked against the
        sum of their line subtotals.

        Args:
            sales (Sequence[SaleRead]): The sales, usually already time-filtered.

        Returns:
            SalesMetrics: Zeroed metrics when ``sales`` is empty.
        """
        if not sales:
            return SalesMetrics()

        total_sales = len(sales)
        total_revenue = sum(sale.total for sale in sales)
        top = self.top_products(sales, limit=1)

        return SalesMetrics(
            total_sales=total_sales,
            total_revenue=total_revenue,
            average_ticket=total_revenue / total_sales,
            completed_sales=sum(1 for sale in sales if sale.status == SaleStatus.COMPLETED),
            pending_sales=sum(1 for sale in sales if sale.status == SaleStatus.PENDING),
            top_product=top[0] if top else SalesMetrics().top_product,
            top_client=self.top_client(sales),
        )

    @staticmethod
    def status_breakdown(sales: Iterable[SaleRead]) -> StatusBreakdown:
        breakdown = StatusBreakdown()
        for sale in sales:
            if sale.status == SaleStatus.COMPLETED:
                breakdown.completed += 1
            elif sale.status == SaleStatus.PENDING:
                breakdown.pending += 1
            elif sale.status == SaleStatus.CANCELLED:
                breakdown.cancelled += 1
        return breakdown

    def sales_by_day(self, sales: Iterable[SaleRead], days: int = SALES_BY_DAY_WINDOW) -> list[DailySales]:
        """Revenue for each of the last ``days`` calendar days, oldest first, zero-filled."""
        today = self.current_time().date()
        totals = {today - timedelta(days=offset): 0.0 for offset in range(days - 1, -1, -1)}
        for sale in sales:
            sale_day = sale.date.date()
            if sale_day in totals:
                totals[sale_day] += sale.total
        return [DailySales(day=day, total=total) for day, total in totals.items()]

    # --- Client Segmentation ---

    def client_profiles(self, clients: Sequence[ClientRead], sales: Iterable[SaleRead]) -> ClientProfiles:
        """Builds the purchase profile of every known client that bought something.

        Sales whose client id matches no known client are left out of every
        figure, including the product ranking, and counted in
        ``orphaned_sales`` instead.

        Args:
            clients (Sequence[ClientRead]): The known clients.
            sales (Iterable[SaleRead]): All sales.

        Returns:
            ClientProfiles: Profiles in client order, the top products of the
            counted sales, and the number of skipped sales.
        """
        purchases: dict[int, list[SaleRead]] = {client.id: [] for client in clients}
        orphaned = 0
        for sale in sales:
            bucket = purchases.get(sale.client.id)
            if bucket is None:
                orphaned += 1
                continue
            bucket.append(sale)

        if orphaned:
            logger.warning(f"Skipped {orphaned} sale(s) referencing unknown clients")

        profiles = []
        for client in clients:
            client_sales = purchases[client.id]
            if not client_sales:
                continue
            last_purchase = None
            for sale in client_sales:
                if last_purchase is None or sale.date > last_purchase:
                    last_purchase = sale.date
            preferred = self.top_products(client_sales, limit=PREFERRED_PRODUCTS_LIMIT)
            profiles.append(
                ClientPurchaseProfile(
                    **client.model_dump(exclude={"total_purchases", "last_purchase"}),
                    total_purchases=len(client_sales),
                    total_spent=sum(sale.total for sale in client_sales),
                    last_purchase=last_purchase,
                    preferred_products=[
                        PreferredProduct(
                            product_id=bucket.product_id,
                            product_name=bucket.name,
                            quantity=bucket.quantity,
                        )
                        for bucket in preferred
                    ],
                )
            )

        counted_sales = [sale for client_sales in purchases.values() for sale in client_sales]
        return ClientProfiles(
            profiles=profiles,
            top_products=self.top_products(counted_sales, limit=REPORT_TOP_PRODUCTS),
            orphaned_sales=orphaned,
        )

    @staticmethod
    def client_cohorts(profiles: Iterable[ClientPurchaseProfile]) -> list[ClientCohort]:
        """Premium, Frequent and Recent cohorts of active clients, five each."""
        active = [profile for profile in profiles if profile.status]
        with_last_purchase = [profile for profile in active if profile.last_purchase]
        return [
            ClientCohort(
                name="Premium",
                description="Clients with the highest total spend",
                clients=rank(active, measure=lambda p: p.total_spent, limit=COHORT_SIZE),
            ),
            ClientCohort(
                name="Frequent",
                description="Clients with the most purchases",
                clients=rank(active, measure=lambda p: p.total_purchases, limit=COHORT_SIZE),
            ),
            ClientCohort(
                name="Recent",
                description="Clients with the most recent purchases",
                clients=rank(
                    with_last_purchase,
                    measure=lambda p: ensure_utc(p.last_purchase).timestamp(),
                    limit=COHORT_SIZE,
                ),
            ),
        ]

    def client_groups(self, clients: Sequence[ClientRead], sales: Iterable[SaleRead]) -> ClientGroupsReport:
        profiled = self.client_profiles(clients, sales)
        profiles = profiled.profiles
        buyers = len(profiles)
        return ClientGroupsReport(
            total_clients=len(clients),
            clients_with_purchases=buyers,
            average_purchases=sum(p.total_purchases for p in profiles) / buyers if buyers else 0,
            average_spent=sum(p.total_spent for p in profiles) / buyers if buyers else 0,
            cohorts=self.client_cohorts(profiles),
            profiles=profiles,
            top_products=profiled.top_products,
            orphaned_sales=profiled.orphaned_sales,
        )

    # --- Inventory & Staff ---

    def low_stock_count(self, products: Iterable[ProductRead]) -> int:
        """Products with some stock left but fewer units than the threshold."""
        return sum(1 for product in products if 0 < product.stock < self.low_stock_threshold)

    @staticmethod
    def employees_by_department(employees: Iterable[EmployeeRead]) -> list[DepartmentSummary]:
        """Headcount and salary totals per department, largest department first."""

        def new_department(employee: EmployeeRead) -> DepartmentSummary:
            return DepartmentSummary(
                name=employee.department, count=0, total_salary=0, average_salary=0, employees=[]
            )

        def add_employee(summary: DepartmentSummary, employee: EmployeeRead) -> DepartmentSummary:
            summary.count += 1
            summary.total_salary += employee.salary
            summary.average_salary = summary.total_salary / summary.count
            summary.employees.append(employee)
            return summary

        summaries = group_and_rank(
            employees,
            key=lambda employee: employee.department,
            create=new_department,
            accumulate=add_employee,
            measure=lambda summary: summary.count,
        )
        for summary in summaries:
            summary.employees = sorted(summary.employees, key=lambda e: e.name.casefold())
        return summaries

    # --- Composite Views ---

    def dashboard(
        self,
        clients: Sequence[ClientRead],
        employees: Sequence[EmployeeRead],
        products: Sequence[ProductRead],
        sales: Sequence[SaleRead],
    ) -> Dashboard:
        return Dashboard(
            clients_count=len(clients),
            employees_count=len(employees),
            products_count=len(products),
            low_stock_count=self.low_stock_count(products),
            recent_sales=self.recent_sales(sales),
            top_products=self.top_products(sales, limit=DASHBOARD_TOP_PRODUCTS),
            metrics=self.sales_metrics(sales),
            generated_at=self.current_time(),
        )

    def sales_report(self, sales: Sequence[SaleRead], time_range: TimeRange = TimeRange.MONTH) -> SalesReport:
        filtered = self.filter_by_time_range(sales, time_range)
        return SalesReport(
            time_range=time_range,
            metrics=self.sales_metrics(filtered),
            status_breakdown=self.status_breakdown(filtered),
            sales_by_day=self.sales_by_day(filtered),
            top_products=self.top_products(filtered, limit=REPORT_TOP_PRODUCTS),
        )
