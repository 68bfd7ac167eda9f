from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductDomain(BaseModel):
    """
    The pure domain representation of a Product.

    This entity acts as the primary contract for inventory data. The SKU is
    the business key and must be unique across the catalogue.

    Attributes:
        name (str): The name of the product.
        sku (str): Unique stock keeping unit.
        category (Optional[str]): Free-text category used for filtering.
        description (Optional[str]): Detailed product description.
        price (float): The unit price of the product (must be non-negative).
        stock (int): Units currently on hand.
        min_stock (int): Reorder level configured for the product.
        image_url (Optional[str]): Link to a product picture.
        status (str): Catalogue status, 'active' by default.
    """

    name: str = Field(..., description="Name of the product", min_length=1)
    sku: str = Field(..., description="Unique Business Key", min_length=1)
    category: Optional[str] = Field(None, description="Product category")
    description: Optional[str] = Field(None, description="Full product description")
    price: float = Field(..., description="Unit price", ge=0)
    stock: int = Field(0, description="Units on hand", ge=0)
    min_stock: int = Field(0, description="Reorder level", ge=0)
    image_url: Optional[str] = Field(None, description="Picture URL")
    status: str = Field("active", description="Catalogue status")

    @field_validator('name', 'sku', mode='before')
    @classmethod
    def clean_strings(cls, v: Any) -> Any:
        """
        Standardizes string inputs by trimming whitespace before validation.

        Args:
            v (Any): The raw input.

        Returns:
            Any: The cleaned string, or the untouched value when it is not a string.
        """
        return v.strip() if isinstance(v, str) else v

    def get_formatted_price(self) -> str:
        """
        Returns the product price as a human-readable currency string.

        Returns:
            str: The price formatted as '$XX.XX'.
        """
        return f"${self.price:,.2f}"

    def is_below_min_stock(self) -> bool:
        """
        Tells whether the product has fallen under its own reorder level.

        Returns:
            bool: True if the stock is strictly lower than min_stock.
        """
        return self.stock < self.min_stock

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Lithium Battery 18650",
                "sku": "BAT-18650",
                "category": "Batteries",
                "description": "3.7V 2600mAh rechargeable cell.",
                "price": 18000,
                "stock": 40,
                "min_stock": 5,
                "status": "active"
            }
        }
    }

class ProductRead(ProductDomain):
    """A stored product as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class StockUpdate(BaseModel):
    """Payload for the stock adjustment endpoint."""

    stock: int = Field(..., description="New stock level", ge=0)
