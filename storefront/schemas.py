from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict
from typing import Optional

from .utils import sanitize_input

# Upper bounds keep line subtotals and order totals inside a 64-bit INTEGER
MAX_QTY = 999
MAX_PRICE = 10 ** 12


class CartLine(BaseModel):
    """Snapshot of a product taken when it was put in the cart."""
    product_id: int
    name: str
    price: int = Field(ge=0, le=MAX_PRICE)
    image: str = ""
    qty: int = Field(default=1, ge=1, le=MAX_QTY)

    model_config = ConfigDict(frozen=True)

    @property
    def subtotal(self) -> int:
        return self.price * self.qty


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(default=0, ge=0, le=MAX_PRICE)
    category_id: Optional[int] = None
    image: str = ""
    description: str = ""
    active: bool = True

    @field_validator("name", "description")
    def clean_text(cls, v: str):
        return sanitize_input(v)

    @field_validator("price", mode="before")
    def empty_price(cls, v):
        # An empty price field means 0
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0
        return v

    @field_validator("category_id", mode="before")
    def empty_category(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    def clean_name(cls, v: str):
        cleaned = sanitize_input(v)
        if not cleaned:
            raise ValueError("name must not be empty")
        return cleaned


class GatewayTransaction(BaseModel):
    status: Optional[str] = None
    reference: Optional[str] = None
    amount: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class GatewayVerifyResponse(BaseModel):
    """Body of `GET /transaction/verify/{reference}`."""
    status: bool
    message: Optional[str] = None
    data: Optional[GatewayTransaction] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def succeeded(self) -> bool:
        return bool(self.status) and self.data is not None and self.data.status == "success"
