from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ClientDomain(BaseModel):
    """
    The pure domain representation of a Client.

    This entity acts as the contract for client data entering the system.
    Every contact field is required and trimmed; the email is normalised to
    lowercase so uniqueness checks are case-insensitive.

    Attributes:
        name (str): The full name of the client.
        document (str): The identity document number, unique per client.
        email (EmailStr): A validated email address, unique per client.
        phone (str): Contact phone number.
        status (bool): Whether the client is active.
    """

    name: str = Field(..., description="The full name of the client", min_length=1)
    document: str = Field(..., description="Identity document number", min_length=1)
    email: EmailStr = Field(..., description="The unique email address of the client")
    phone: str = Field(..., description="Contact phone number", min_length=1)
    status: bool = Field(True, description="Active flag; inactive clients are left out of cohorts")

    @field_validator('name', 'phone', mode='before')
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """
        Trims surrounding whitespace from free-text contact fields.

        Args:
            v (Any): The raw value received from the API.

        Returns:
            Any: The trimmed string, or the untouched value when it is not a string.
        """
        return v.strip() if isinstance(v, str) else v

    @field_validator('document', mode='before')
    @classmethod
    def document_as_text(cls, v: Any) -> Any:
        """
        Accepts numeric document numbers and stores them as trimmed text.

        Args:
            v (Any): The raw document value (string or number).

        Returns:
            Any: The document as a trimmed string.
        """
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Laura Gómez",
                "document": "1020304050",
                "email": "laura.gomez@battiolab.co",
                "phone": "+57 300 123 4567",
                "status": True
            }
        }
    }

class ClientRead(ClientDomain):
    """A stored client as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    last_purchase: Optional[datetime] = None
    total_purchases: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
