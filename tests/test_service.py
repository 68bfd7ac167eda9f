# 1. Standard Library
import shutil
from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi import HTTPException

# 2. Third-Party Libraries
from sqlmodel import Session

# 3. Application Layers
from app.analytics.aggregator import SalesAggregator
from app.core.config import settings
from app.domain.client import ClientDomain, ClientRead
from app.domain.product import ProductDomain, ProductRead
from app.domain.reports import TimeRange
from app.domain.sale import SaleClientRef, SaleDomain, SaleItemDomain, SaleUpdate
from app.services.client_service import ClientService
from app.services.product_service import ProductService
from app.services.report_service import ReportService
from app.services.sale_service import SaleService
from app.services.seed_service import SeedService


# --- Builders ---

def add_client(session: Session, name: str = "Laura Gómez", document: str = "1020304050") -> ClientRead:
    return ClientService(session).create_client(
        ClientDomain(name=name, document=document, email=f"{document}@mail.com", phone="+57 300 123 4567")
    )


def add_product(session: Session, name: str = "Lithium Battery 18650", sku: str = "BAT-18650", price: float = 18000) -> ProductRead:
    return ProductService(session).create_product(ProductDomain(name=name, sku=sku, price=price, stock=20))


def sell(client_id: int, *lines: tuple[int, int, float], total: float | None = None) -> SaleDomain:
    return SaleDomain(
        client=SaleClientRef(id=client_id),
        items=[SaleItemDomain(product_id=pid, quantity=qty, price=price) for pid, qty, price in lines],
        total=total,
        status="completed",
        date=datetime(2024, 5, 2, 15, 30, tzinfo=UTC),
    )


# --- 1. Sales: Denormalized Names ---

def test_create_sale_snapshots_names_and_totals(session: Session) -> None:
    client = add_client(session)
    product = add_product(session)

    sale = SaleService(session).create_sale(sell(client.id, (product.id, 3, 18000)))

    assert sale.client.name == "Laura Gómez"
    assert sale.client.email == client.email
    assert sale.items[0].product_name == "Lithium Battery 18650"
    assert sale.items[0].subtotal == 54000
    assert sale.total == 54000
    assert sale.date == datetime(2024, 5, 2, 15, 30, tzinfo=UTC)


def test_renaming_client_and_product_keeps_sale_history(session: Session) -> None:
    client = add_client(session)
    product = add_product(session)
    service = SaleService(session)
    created = service.create_sale(sell(client.id, (product.id, 1, 18000)))

    ClientService(session).update_client(
        client.id,
        ClientDomain(name="Laura G. Ríos", document=client.document, email="laura.rios@mail.com", phone=client.phone),
    )
    ProductService(session).update_product(
        product.id, ProductDomain(name="Cell 18650 v2", sku=product.sku, price=product.price)
    )

    sale = service.get_sale_by_id(created.id)
    assert sale.client.name == "Laura Gómez"
    assert sale.client.email == "laura.rios@mail.com"
    assert sale.items[0].product_name == "Lithium Battery 18650"


def test_explicit_total_is_stored_as_given(session: Session) -> None:
    client = add_client(session)
    product = add_product(session)

    sale = SaleService(session).create_sale(sell(client.id, (product.id, 2, 10), total=15))

    assert sale.total == 15
    assert sale.items_subtotal() == 20


def test_create_sale_rejects_unknown_references(session: Session) -> None:
    client = add_client(session)
    service = SaleService(session)

    with pytest.raises(HTTPException) as exc:
        service.create_sale(sell(999, (1, 1, 10)))
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        service.create_sale(sell(client.id, (999, 1, 10)))
    assert exc.value.status_code == 404
    assert exc.value.detail == "Product 999 not found"


# --- 2. Sales: Partial Updates ---

def test_update_with_unknown_client_keeps_original(session: Session) -> None:
    client = add_client(session)
    product = add_product(session)
    service = SaleService(session)
    created = service.create_sale(sell(client.id, (product.id, 1, 18000)))

    updated = service.update_sale(created.id, SaleUpdate(client=SaleClientRef(id=999), status="cancelled"))

    assert updated.client.id == client.id
    assert updated.client.name == "Laura Gómez"
    assert updated.status.value == "cancelled"


def test_update_drops_lines_with_unknown_products(session: Session) -> None:
    client = add_client(session)
    battery = add_product(session)
    charger = add_product(session, name="Smart Charger 4-Bay", sku="CHG-4BAY", price=120000)
    service = SaleService(session)
    created = service.create_sale(sell(client.id, (battery.id, 1, 18000)))

    updated = service.update_sale(
        created.id,
        SaleUpdate(items=[
            SaleItemDomain(product_id=charger.id, quantity=2, price=120000),
            SaleItemDomain(product_id=999, quantity=1, price=1),
        ]),
    )

    assert [item.product_name for item in updated.items] == ["Smart Charger 4-Bay"]
    assert updated.total == 18000


def test_update_with_only_unknown_products_keeps_original_lines(session: Session) -> None:
    client = add_client(session)
    product = add_product(session)
    service = SaleService(session)
    created = service.create_sale(sell(client.id, (product.id, 4, 18000)))

    updated = service.update_sale(
        created.id, SaleUpdate(items=[SaleItemDomain(product_id=999, quantity=1, price=1)])
    )

    assert [(i.product_id, i.quantity) for i in updated.items] == [(product.id, 4)]


def test_delete_sale_then_404(session: Session) -> None:
    client = add_client(session)
    product = add_product(session)
    service = SaleService(session)
    created = service.create_sale(sell(client.id, (product.id, 1, 18000)))

    assert service.delete_sale(created.id) == {"detail": f"Sale {created.id} deleted"}
    with pytest.raises(HTTPException) as exc:
        service.get_sale_by_id(created.id)
    assert exc.value.status_code == 404


# --- 3. Resource Rules ---

def test_client_email_and_document_are_unique(session: Session) -> None:
    add_client(session)
    service = ClientService(session)

    with pytest.raises(HTTPException) as exc:
        service.create_client(
            ClientDomain(name="Other", document="1020304050", email="other@mail.com", phone="1")
        )
    assert exc.value.status_code == 400
    assert "document" in exc.value.detail


def test_products_filter_by_category_and_stock_update(session: Session) -> None:
    service = ProductService(session)
    battery = service.create_product(ProductDomain(name="Cell", sku="BAT-1", category="Batteries", price=1))
    service.create_product(ProductDomain(name="Tester", sku="TOOL-1", category="Tools", price=1))

    assert [p.sku for p in service.get_all_products(category="Batteries")] == ["BAT-1"]
    assert service.update_stock(battery.id, 7).stock == 7


# --- 4. Reports ---

def test_deleted_client_sales_show_as_orphans(session: Session) -> None:
    kept = add_client(session)
    gone = add_client(session, name="Julián Castro", document="1032456789")
    product = add_product(session)
    sales = SaleService(session)
    sales.create_sale(sell(kept.id, (product.id, 1, 18000)))
    sales.create_sale(sell(gone.id, (product.id, 5, 18000)))

    ClientService(session).delete_client(gone.id)
    orphan = next(s for s in sales.get_all_sales() if s.client.id == gone.id)
    assert orphan.client.name == "Julián Castro"
    assert orphan.client.email == "N/A"

    groups = ReportService(session).get_client_groups()
    assert groups.orphaned_sales == 1
    assert groups.clients_with_purchases == 1
    assert groups.top_products[0].quantity == 1


# --- 5. Seeding ---

@pytest.fixture(name="seeded")
def seeded_fixture(session: Session) -> Session:
    result = SeedService(session).run_seed_process()
    assert result["status"] == "success", result["message"]
    return session


def test_seed_loads_demo_dataset(seeded: Session) -> None:
    report = ReportService(seeded, SalesAggregator(now=datetime(2024, 5, 10, tzinfo=UTC))).get_dashboard()

    assert report.clients_count == 6
    assert report.employees_count == 5
    assert report.products_count == 8
    assert report.low_stock_count == 3
    assert report.metrics.total_sales == 10
    assert report.metrics.total_revenue == 2562000
    assert report.top_products[0].name == "Lithium Battery 18650"
    assert report.top_products[0].quantity == 28
    assert report.recent_sales[0].date == datetime(2024, 5, 8, 15, 55, tzinfo=UTC)


def test_seed_is_repeatable(seeded: Session) -> None:
    result = SeedService(seeded).run_seed_process()

    assert result["status"] == "success"
    assert len(ClientService(seeded).get_all_clients()) == 6
    assert len(SaleService(seeded).get_all_sales()) == 10


def test_seeded_client_groups(seeded: Session) -> None:
    groups = ReportService(seeded).get_client_groups()
    premium, frequent, recent = groups.cohorts

    assert groups.clients_with_purchases == 6
    assert groups.orphaned_sales == 0
    assert premium.clients[0].name == "Solar Andina SAS"
    assert frequent.clients[0].name == "Laura Gómez"
    assert recent.clients[0].name == "Laura Gómez"
    assert all(c.name != "Julián Castro" for cohort in groups.cohorts for c in cohort.clients)


def test_seeded_departments_and_month_report(seeded: Session) -> None:
    service = ReportService(seeded, SalesAggregator(now=datetime(2024, 5, 10, tzinfo=UTC)))

    departments = service.get_employees_by_department()
    assert departments[0].name == "Sales"
    assert departments[0].count == 2
    assert {d.name for d in departments} == {"Sales", "Laboratory", "Logistics", "Administration"}

    report = service.get_sales_report(TimeRange.MONTH)
    assert report.metrics.total_sales == 8
    assert report.status_breakdown.pending == 3


def copy_seed_dir(tmp_path: Path) -> Path:
    target = tmp_path / "seed"
    shutil.copytree(settings.SEED_DATA_DIR, target)
    return target


def edit_seed_file(seed_dir: Path, file_name: str, old: str, new: str) -> None:
    path = seed_dir / file_name
    path.write_text(path.read_text(encoding="utf-8").replace(old, new, 1), encoding="utf-8")


def test_missing_seed_files_leave_database_untouched(session: Session, tmp_path: Path) -> None:
    add_client(session)

    result = SeedService(session, data_dir=tmp_path).run_seed_process()

    assert result["status"] == "error"
    assert "clients.csv" in result["message"]
    assert [c.name for c in ClientService(session).get_all_clients()] == ["Laura Gómez"]


def test_unknown_client_email_is_reported_before_wiping(session: Session, tmp_path: Path) -> None:
    add_client(session)
    seed_dir = copy_seed_dir(tmp_path)
    edit_seed_file(seed_dir, "sales.csv", "laura.gomez@battiolab.co", "nobody@mail.com")

    result = SeedService(session, data_dir=seed_dir).run_seed_process()

    assert result["status"] == "error"
    assert result["message"] == "sales.csv: sale S-001 references unknown client email 'nobody@mail.com'"
    assert len(ClientService(session).get_all_clients()) == 1
    assert ProductService(session).get_all_products() == []


def test_invalid_seed_row_names_file_and_row(session: Session, tmp_path: Path) -> None:
    seed_dir = copy_seed_dir(tmp_path)
    edit_seed_file(seed_dir, "products.csv", "Heat Shrink Kit", "   ")

    result = SeedService(session, data_dir=seed_dir).run_seed_process()

    assert result["status"] == "error"
    assert result["message"].startswith("products.csv, row 9: name")
    assert ClientService(session).get_all_clients() == []


def test_unknown_product_sku_is_reported(session: Session, tmp_path: Path) -> None:
    seed_dir = copy_seed_dir(tmp_path)
    edit_seed_file(seed_dir, "sale_items.csv", "S-004,ACC-HSK", "S-004,NOPE-1")

    result = SeedService(session, data_dir=seed_dir).run_seed_process()

    assert result["status"] == "error"
    assert "unknown product SKU 'NOPE-1'" in result["message"]
