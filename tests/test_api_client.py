import asyncio
from datetime import UTC, date, datetime
from typing import Any

import httpx
import pytest

from app.analytics.aggregator import SalesAggregator
from app.client.api_client import ApiClientError, BattiolabClient
from app.domain.client import ClientDomain, ClientRead
from app.domain.employee import EmployeeRead
from app.domain.product import ProductRead
from app.domain.reports import TimeRange
from app.domain.sale import SaleClient, SaleItemRead, SaleRead

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


def dataset() -> dict[str, list[dict[str, Any]]]:
    """JSON bodies served by the fake API, keyed by collection path."""
    clients = [
        ClientRead(id=1, name="Laura Gómez", document="1", email="laura@mail.com", phone="1"),
        ClientRead(id=2, name="Solar Andina SAS", document="2", email="pedidos@mail.com", phone="2"),
    ]
    employees = [
        EmployeeRead(
            id=1, name="Carlos Ruiz", email="carlos@battiolab.co", phone="1", position="Seller",
            department="Sales", hire_date=date(2023, 3, 15), salary=2500000,
        ),
    ]
    products = [
        ProductRead(id=1, name="Lithium Battery 18650", sku="BAT-18650", price=18000, stock=4),
        ProductRead(id=2, name="Smart Charger 4-Bay", sku="CHG-4BAY", price=120000, stock=15),
    ]
    sales = [
        SaleRead(
            id=1,
            client=SaleClient(id=1, name="Laura Gómez"),
            items=[SaleItemRead(product_id=1, product_name="Lithium Battery 18650", quantity=4, price=18000, subtotal=72000)],
            total=72000,
            status="completed",
            date=datetime(2024, 5, 9, tzinfo=UTC),
        ),
        SaleRead(
            id=2,
            client=SaleClient(id=2, name="Solar Andina SAS"),
            items=[SaleItemRead(product_id=2, product_name="Smart Charger 4-Bay", quantity=1, price=120000, subtotal=120000)],
            total=120000,
            status="pending",
            date=datetime(2024, 3, 1, tzinfo=UTC),
        ),
    ]
    return {
        "/api/clients/": [c.model_dump(mode="json") for c in clients],
        "/api/employees/": [e.model_dump(mode="json") for e in employees],
        "/api/products/": [p.model_dump(mode="json") for p in products],
        "/api/sales/": [s.model_dump(mode="json") for s in sales],
    }


def fake_api(requests: list[httpx.Request], failing_path: str | None = None) -> httpx.MockTransport:
    bodies = dataset()

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == failing_path:
            return httpx.Response(500, json={"detail": "Internal database error"})
        if request.url.path in bodies:
            return httpx.Response(200, json=bodies[request.url.path])
        return httpx.Response(404, json={"detail": "Not Found"})

    return httpx.MockTransport(handler)


def run(coro_factory):
    """Runs an async scenario that builds its own client inside the event loop."""
    return asyncio.run(coro_factory())


# --- Aggregated Views ---

def test_load_dashboard_fetches_all_lists_and_aggregates() -> None:
    requests: list[httpx.Request] = []

    async def scenario():
        async with BattiolabClient(
            "http://battiolab", token="abc", transport=fake_api(requests),
            aggregator=SalesAggregator(now=NOW),
        ) as api:
            return await api.load_dashboard()

    dashboard = run(scenario)

    assert {r.url.path for r in requests} == {"/api/clients/", "/api/employees/", "/api/products/", "/api/sales/"}
    assert all(r.headers["Authorization"] == "Bearer abc" for r in requests)
    assert dashboard.clients_count == 2
    assert dashboard.low_stock_count == 1
    assert [s.id for s in dashboard.recent_sales] == [1, 2]
    assert dashboard.metrics.total_revenue == 192000


def test_load_sales_report_applies_time_window() -> None:
    async def scenario():
        async with BattiolabClient("http://battiolab", transport=fake_api([]), aggregator=SalesAggregator(now=NOW)) as api:
            return await api.load_sales_report(TimeRange.WEEK)

    report = run(scenario)
    assert report.metrics.total_sales == 1
    assert report.metrics.total_revenue == 72000


def test_load_client_groups() -> None:
    async def scenario():
        async with BattiolabClient("http://battiolab", transport=fake_api([])) as api:
            return await api.load_client_groups()

    groups = run(scenario)
    assert groups.clients_with_purchases == 2
    assert groups.cohorts[0].clients[0].name == "Solar Andina SAS"


def test_one_failed_request_fails_the_whole_load() -> None:
    async def scenario():
        async with BattiolabClient("http://battiolab", transport=fake_api([], failing_path="/api/sales/")) as api:
            return await api.load_dashboard()

    with pytest.raises(ApiClientError) as exc:
        run(scenario)
    assert exc.value.status_code == 500
    assert exc.value.message == "Internal database error"


# --- Error Mapping ---

def test_transport_errors_become_api_client_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        async with BattiolabClient("http://battiolab", transport=httpx.MockTransport(handler)) as api:
            return await api.clients.get_all()

    with pytest.raises(ApiClientError) as exc:
        run(scenario)
    assert exc.value.status_code is None


def test_non_json_error_body_is_kept_as_text() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad gateway"))

    async def scenario():
        async with BattiolabClient("http://battiolab", transport=transport) as api:
            return await api.products.get(1)

    with pytest.raises(ApiClientError) as exc:
        run(scenario)
    assert exc.value.status_code == 502
    assert exc.value.message == "Bad gateway"


# --- Resources & Auth ---

def test_login_stores_token_and_create_posts_payload() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/api/auth/login":
            return httpx.Response(200, json={"token": "jwt-123", "user": {"id": 1, "email": "ops@battiolab.co", "role": "admin"}})
        return httpx.Response(201, json={**dataset()["/api/clients/"][0], "id": 7})

    async def scenario():
        async with BattiolabClient("http://battiolab", transport=httpx.MockTransport(handler)) as api:
            await api.login("ops@battiolab.co", "s3cret")
            return await api.clients.create(
                ClientDomain(name="Laura Gómez", document="1", email="laura@mail.com", phone="1")
            )

    created = run(scenario)
    assert created.id == 7
    assert seen[1].method == "POST"
    assert seen[1].url.path == "/api/clients/"
    assert seen[1].headers["Authorization"] == "Bearer jwt-123"
