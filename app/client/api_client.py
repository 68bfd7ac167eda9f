import asyncio
import logging
from types import TracebackType
from typing import Any, Generic, Optional, TypeVar

import httpx
from pydantic import BaseModel

from app.analytics.aggregator import SalesAggregator
from app.domain.client import ClientDomain, ClientRead
from app.domain.employee import EmployeeDomain, EmployeeRead
from app.domain.product import ProductDomain, ProductRead
from app.domain.reports import ClientGroupsReport, Dashboard, SalesReport, TimeRange
from app.domain.sale import SaleDomain, SaleRead, SaleUpdate
from app.domain.user import LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

ReadT = TypeVar("ReadT", bound=BaseModel)
WriteT = TypeVar("WriteT", bound=BaseModel)


class ApiClientError(Exception):
    """Raised for any failed call: transport error or non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ResourceClient(Generic[WriteT, ReadT]):
    """Typed CRUD wrapper around one REST collection."""

    def __init__(self, api: "BattiolabClient", path: str, read_model: type[ReadT]) -> None:
        self.api = api
        self.path = path.rstrip("/")
        self.read_model = read_model

    async def get_all(self, **params: Any) -> list[ReadT]:
        query = {key: value for key, value in params.items() if value is not None}
        data = await self.api.request("GET", f"{self.path}/", params=query)
        return [self.read_model.model_validate(row) for row in data]

    async def get(self, id: int) -> ReadT:
        return self.read_model.model_validate(await self.api.request("GET", f"{self.path}/{id}"))

    async def create(self, payload: WriteT) -> ReadT:
        data = await self.api.request("POST", f"{self.path}/", json=payload.model_dump(mode="json"))
        return self.read_model.model_validate(data)

    async def update(self, id: int, payload: WriteT) -> ReadT:
        body = payload.model_dump(mode="json", exclude_unset=True)
        return self.read_model.model_validate(await self.api.request("PUT", f"{self.path}/{id}", json=body))

    async def delete(self, id: int) -> dict[str, Any]:
        return await self.api.request("DELETE", f"{self.path}/{id}")


class ProductsClient(ResourceClient[ProductDomain, ProductRead]):
    async def update_stock(self, id: int, stock: int) -> ProductRead:
        data = await self.api.request("PATCH", f"{self.path}/{id}/stock", json={"stock": stock})
        return self.read_model.model_validate(data)


class BattiolabClient:
    """HTTP client for the Battiolab API.

    Instances are constructed explicitly and passed to whatever needs them;
    there is no shared module-level client. The ``load_*`` methods fetch the
    raw lists in parallel and aggregate locally once every request has
    succeeded: a single failure raises ApiClientError and nothing is
    computed. Requests are neither retried nor cancelled.

    Args:
        base_url (str): Root URL of the API, e.g. ``http://localhost:3006``.
        token (Optional[str]): Bearer token, if already known.
        transport (Optional[httpx.AsyncBaseTransport]): Custom transport, used by tests.
        timeout (float): Per-request timeout in seconds.
        aggregator (Optional[SalesAggregator]): Aggregator used by the ``load_*`` methods.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        aggregator: Optional[SalesAggregator] = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.aggregator = aggregator or SalesAggregator()
        if token:
            self.set_token(token)

        self.clients: ResourceClient[ClientDomain, ClientRead] = ResourceClient(self, "/api/clients", ClientRead)
        self.employees: ResourceClient[EmployeeDomain, EmployeeRead] = ResourceClient(self, "/api/employees", EmployeeRead)
        self.products = ProductsClient(self, "/api/products", ProductRead)
        self.sales: ResourceClient[SaleDomain | SaleUpdate, SaleRead] = ResourceClient(self, "/api/sales", SaleRead)

    async def __aenter__(self) -> "BattiolabClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: str) -> None:
        self._http.headers["Authorization"] = f"Bearer {token}"

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Sends a request and returns the decoded JSON body.

        Raises:
            ApiClientError: On transport failures and on any non-2xx status,
                carrying the API's ``detail`` message when there is one.
        """
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiClientError(f"Request to {path} failed: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            raise ApiClientError(str(detail), status_code=response.status_code)
        return response.json()

    # --- Authentication ---

    async def register(self, email: str, password: str, site_code: str) -> TokenResponse:
        payload = RegisterRequest(email=email, password=password, site_code=site_code)
        result = TokenResponse.model_validate(
            await self.request("POST", "/api/auth/register", json=payload.model_dump(mode="json"))
        )
        self.set_token(result.token)
        return result

    async def login(self, email: str, password: str) -> TokenResponse:
        payload = LoginRequest(email=email, password=password)
        result = TokenResponse.model_validate(
            await self.request("POST", "/api/auth/login", json=payload.model_dump(mode="json"))
        )
        self.set_token(result.token)
        return result

    # --- Aggregated Views ---

    async def load_dashboard(self) -> Dashboard:
        """Fetches clients, employees, products and sales concurrently, then aggregates."""
        clients, employees, products, sales = await asyncio.gather(
            self.clients.get_all(),
            self.employees.get_all(),
            self.products.get_all(),
            self.sales.get_all(),
        )
        return self.aggregator.dashboard(clients, employees, products, sales)

    async def load_sales_report(self, time_range: TimeRange = TimeRange.MONTH) -> SalesReport:
        sales = await self.sales.get_all()
        return self.aggregator.sales_report(sales, time_range)

    async def load_client_groups(self) -> ClientGroupsReport:
        clients, sales = await asyncio.gather(self.clients.get_all(), self.sales.get_all())
        return self.aggregator.client_groups(clients, sales)
