import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlmodel import Session

from app.core.config import settings
from app.data_access.database import drop_business_tables
from app.domain.client import ClientDomain
from app.domain.employee import EmployeeDomain
from app.domain.product import ProductDomain
from app.domain.sale import SaleClientRef, SaleDomain, SaleItemDomain, SaleStatus
from app.etl.pipeline import DataExtractor, DataTransformer
from app.services.client_service import ClientService
from app.services.employee_service import EmployeeService
from app.services.product_service import ProductService
from app.services.sale_service import SaleService

logger = logging.getLogger(__name__)


class SeedDataError(ValueError):
    """Raised when the seed files are missing, malformed or inconsistent."""


# --- Seed-file Contracts ---

class SeedSaleLine(BaseModel):
    """One row of sale_items.csv; the price defaults to the catalogue price."""
    product_sku: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: Optional[float] = Field(None, ge=0)

class SeedSale(BaseModel):
    """One row of sales.csv together with its lines."""
    sale_ref: str = Field(..., min_length=1)
    client_email: str = Field(..., min_length=1)
    status: SaleStatus = SaleStatus.PENDING
    date: Optional[datetime] = None
    lines: list[SeedSaleLine] = Field(..., min_length=1)

    @field_validator('client_email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

class SeedDataset(BaseModel):
    clients: list[ClientDomain]
    employees: list[EmployeeDomain]
    products: list[ProductDomain]
    sales: list[SeedSale]


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )


class SeedService:
    """Loads the Battiolab demo dataset.

    Reads the CSV files of the seed folder with Polars and validates every
    row, including the email and SKU references between files, before the
    business tables are touched. A bad file therefore leaves the database as
    it was. Rows are then pushed through the resource services, so seeded
    data obeys the same rules as data entered through the API.
    """

    def __init__(self, session: Session, data_dir: Optional[Path] = None) -> None:
        """Initializes the resource services and the source folder."""
        self.session = session
        self.data_dir = Path(data_dir or settings.SEED_DATA_DIR)
        self.clients = ClientService(session)
        self.employees = EmployeeService(session)
        self.products = ProductService(session)
        self.sales = SaleService(session)

    def run_seed_process(self) -> dict[str, str]:
        """Main entry point: validate every file, then wipe and reload the business tables."""
        try:
            dataset = self._read_dataset()
        except Exception as e:
            logger.error(f"Seed aborted, database left untouched: {e!s}")
            return {"status": "error", "message": str(e)}

        try:
            logger.info("Wiping business tables for a fresh seed...")
            drop_business_tables(self.session)
            self._load_dataset(dataset)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Seed failed while loading: {e!s}")
            return {"status": "error", "message": str(e)}

        message = (
            f"Seeded {len(dataset.clients)} clients, {len(dataset.employees)} employees, "
            f"{len(dataset.products)} products and {len(dataset.sales)} sales."
        )
        logger.info(message)
        return {"status": "success", "message": message}

    # --- 1. Extract & Validate ---

    def _records(self, file_name: str) -> list[dict[str, Any]]:
        path = self.data_dir / file_name
        if not path.is_file():
            raise SeedDataError(f"Seed file not found: {path}")
        logger.info(f"Reading {path}")
        return DataTransformer.to_records(DataTransformer.clean(DataExtractor.read_csv(path)))

    def _parse(self, file_name: str, model: type[BaseModel], records: list[dict[str, Any]]) -> list[Any]:
        parsed = []
        # Row 1 is the header line
        for row, record in enumerate(records, start=2):
            try:
                parsed.append(model(**record))
            except ValidationError as e:
                raise SeedDataError(f"{file_name}, row {row}: {_describe(e)}") from e
        return parsed

    @staticmethod
    def _ensure_unique(file_name: str, field: str, values: list[str]) -> None:
        seen = set()
        for value in values:
            if value in seen:
                raise SeedDataError(f"{file_name}: duplicate {field} '{value}'")
            seen.add(value)

    def _read_dataset(self) -> SeedDataset:
        """Reads the five seed files and checks them as a whole.

        Raises:
            SeedDataError: If a file is missing, a row fails validation, a
                business key repeats, or a sale points at an unknown client,
                product or sale reference.
        """
        clients = self._parse("clients.csv", ClientDomain, self._records("clients.csv"))
        employees = self._parse("employees.csv", EmployeeDomain, self._records("employees.csv"))
        products = self._parse("products.csv", ProductDomain, self._records("products.csv"))

        self._ensure_unique("clients.csv", "email", [c.email for c in clients])
        self._ensure_unique("clients.csv", "document", [c.document for c in clients])
        self._ensure_unique("employees.csv", "email", [e.email for e in employees])
        self._ensure_unique("products.csv", "sku", [p.sku for p in products])

        headers = self._records("sales.csv")
        lines_by_ref: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for line in self._records("sale_items.csv"):
            lines_by_ref[line.get("sale_ref", "")].append(line)

        refs = [header.get("sale_ref", "") for header in headers]
        self._ensure_unique("sales.csv", "sale_ref", refs)
        stray = sorted(set(lines_by_ref) - set(refs))
        if stray:
            raise SeedDataError(f"sale_items.csv: lines for unknown sale_ref {', '.join(repr(r) for r in stray)}")

        sales = self._parse(
            "sales.csv",
            SeedSale,
            [{**header, "lines": lines_by_ref.get(header.get("sale_ref", ""), [])} for header in headers],
        )

        emails = {c.email for c in clients}
        skus = {p.sku for p in products}
        for sale in sales:
            if sale.client_email not in emails:
                raise SeedDataError(
                    f"sales.csv: sale {sale.sale_ref} references unknown client email '{sale.client_email}'"
                )
            for line in sale.lines:
                if line.product_sku not in skus:
                    raise SeedDataError(
                        f"sale_items.csv: sale {sale.sale_ref} references unknown product SKU '{line.product_sku}'"
                    )

        return SeedDataset(clients=clients, employees=employees, products=products, sales=sales)

    # --- 2. Load ---

    def _load_dataset(self, dataset: SeedDataset) -> None:
        """Creates every row through the services; clients by email, products by SKU."""
        clients = {c.email: self.clients.create_client(c) for c in dataset.clients}
        for employee in dataset.employees:
            self.employees.create_employee(employee)
        products = {p.sku: self.products.create_product(p) for p in dataset.products}

        for sale in dataset.sales:
            items = []
            for line in sale.lines:
                product = products[line.product_sku]
                items.append(
                    SaleItemDomain(
                        product_id=product.id,
                        quantity=line.quantity,
                        price=line.price if line.price is not None else product.price,
                    )
                )
            self.sales.create_sale(
                SaleDomain(
                    client=SaleClientRef(id=clients[sale.client_email].id),
                    items=items,
                    status=sale.status,
                    date=sale.date,
                )
            )
