from datetime import UTC, date, datetime
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel


def utc_now() -> datetime:
    return datetime.now(UTC)

# --- Business Tables ---

class Client(SQLModel, table=True):
    __tablename__ = "client"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    document: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    phone: str
    status: bool = True
    # Snapshot counters kept for API compatibility, nothing updates them yet
    last_purchase: Optional[datetime] = None
    total_purchases: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

class Employee(SQLModel, table=True):
    __tablename__ = "employee"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: str
    position: str
    department: str = Field(index=True)
    status: bool = True
    hire_date: date
    salary: float = Field(ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

class Product(SQLModel, table=True):
    __tablename__ = "product"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    sku: str = Field(index=True, unique=True)
    category: Optional[str] = Field(default=None, index=True)
    description: Optional[str] = None
    price: float = Field(ge=0)
    stock: int = 0
    min_stock: int = 0
    image_url: Optional[str] = None
    status: str = "active"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

class Sale(SQLModel, table=True):
    """A sale header.

    client_id carries no foreign key: deleting a client leaves its sales in
    place, and client_name keeps the name the client had when the sale was made.
    """
    __tablename__ = "sale"
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(index=True)
    client_name: str
    total: float = Field(ge=0)
    status: str = Field(default="pending", index=True)
    date: datetime = Field(default_factory=utc_now, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    items: List["SaleItem"] = Relationship(
        back_populates="sale",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "lazy": "selectin",
            "order_by": "SaleItem.id",
        },
    )

class SaleItem(SQLModel, table=True):
    __tablename__ = "sale_item"
    id: Optional[int] = Field(default=None, primary_key=True)
    sale_id: Optional[int] = Field(default=None, foreign_key="sale.id", index=True)
    product_id: int = Field(index=True)
    product_name: str
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    subtotal: float = Field(ge=0)

    sale: Optional[Sale] = Relationship(back_populates="items")

# --- Authentication ---

class User(SQLModel, table=True):
    __tablename__ = "app_user"
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    username: Optional[str] = Field(default=None, index=True, unique=True)
    hashed_password: str
    site_code: str
    role: str = "admin"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
