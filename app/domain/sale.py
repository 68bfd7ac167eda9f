from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_CLIENT = "Unknown client"
UNKNOWN_PRODUCT = "Unknown product"
NOT_AVAILABLE = "N/A"


def ensure_utc(value: datetime) -> datetime:
    """Returns an aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SaleStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    CANCELLED = "cancelled"

# --- Input Contracts ---

class SaleClientRef(BaseModel):
    """Reference to the buying client; the name is snapshotted onto the sale."""
    id: int = Field(..., description="Client primary key", gt=0)
    name: Optional[str] = Field(None, description="Client name at the time of the sale")

class SaleItemDomain(BaseModel):
    """
    A single line of a sale.

    Attributes:
        product_id (int): The product sold.
        product_name (Optional[str]): Product name snapshot; looked up when omitted.
        quantity (int): Units sold, at least one.
        price (float): Unit price charged.
        subtotal (Optional[float]): Ignored on input, always recomputed as price x quantity.
    """
    product_id: int = Field(..., description="Product primary key", gt=0)
    product_name: Optional[str] = Field(None, description="Product name at the time of the sale")
    quantity: int = Field(..., description="Units sold", ge=1)
    price: float = Field(..., description="Unit price charged", ge=0)
    subtotal: Optional[float] = Field(None, description="price x quantity", ge=0)

class SaleDomain(BaseModel):
    """
    Pure Domain representation of a Sale to be recorded.

    Attributes:
        client (SaleClientRef): The buying client.
        items (list[SaleItemDomain]): Ordered sale lines, at least one.
        total (Optional[float]): Amount charged; defaults to the sum of subtotals.
        status (SaleStatus): completed, pending or cancelled.
        date (Optional[datetime]): When the sale happened; defaults to now.
    """
    client: SaleClientRef
    items: list[SaleItemDomain] = Field(..., min_length=1)
    total: Optional[float] = Field(None, description="Amount charged", ge=0)
    status: SaleStatus = Field(SaleStatus.PENDING, description="Sale status")
    date: Optional[datetime] = Field(None, description="Sale timestamp")

    @field_validator('date')
    @classmethod
    def normalise_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    model_config = {
        "json_schema_extra": {
            "example": {
                "client": {"id": 1, "name": "Laura Gómez"},
                "items": [
                    {"product_id": 3, "quantity": 2, "price": 18000}
                ],
                "status": "completed",
                "date": "2024-05-02T15:30:00Z"
            }
        }
    }

class SaleUpdate(BaseModel):
    """Partial update of a sale; omitted fields keep their stored values."""
    client: Optional[SaleClientRef] = None
    items: Optional[list[SaleItemDomain]] = None
    total: Optional[float] = Field(None, ge=0)
    status: Optional[SaleStatus] = None
    date: Optional[datetime] = None

    @field_validator('date')
    @classmethod
    def normalise_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

# --- Output Contracts ---

class SaleClient(BaseModel):
    id: int
    name: str = UNKNOWN_CLIENT
    email: str = NOT_AVAILABLE
    phone: str = NOT_AVAILABLE

class SaleItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    product_name: str = UNKNOWN_PRODUCT
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    subtotal: float = Field(ge=0)

class SaleRead(BaseModel):
    """
    A stored sale in its API shape.

    Client and product names are the snapshots taken when the sale was
    written, so renaming a client or product does not rewrite history.
    """
    id: int
    client: SaleClient
    items: list[SaleItemRead] = Field(default_factory=list)
    total: float = 0
    status: SaleStatus = SaleStatus.PENDING
    date: datetime

    @field_validator('date')
    @classmethod
    def normalise_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def items_subtotal(self) -> float:
        """Sum of the line subtotals; may legitimately differ from total."""
        return sum(item.subtotal for item in self.items)
