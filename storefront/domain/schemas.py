# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime


# --- catalog -----------------------------------------------------------------

class WeightOut(BaseModel):
    """Weight/size variant of a product."""

    id: int
    product_id: int
    weight: str
    price: Decimal
    stock: int
    measurement: str

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: int
    name: str
    weights: List[WeightOut]

    model_config = ConfigDict(from_attributes=True)


# --- cart --------------------------------------------------------------------

class ItemIn(BaseModel):
    """Add a variant to the cart. Missing or non-positive quantity means 1."""

    product_weight_id: int = Field(..., gt=0, description="Product weight (variant) id")
    quantity: Optional[int] = Field(None, description="Quantity to add, defaults to 1")


class QuantityIn(BaseModel):
    quantity: int = Field(..., description="New quantity of the line, must be >= 1")


class CartItemOut(BaseModel):
    product_weight_id: int
    product_id: int
    product_name: str
    weight: str
    measurement: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    created_at: datetime
    updated_at: datetime


class CartOut(BaseModel):
    user_id: int
    items: List[CartItemOut]
    total_price: Decimal


# --- purchase ----------------------------------------------------------------

class PurchaseItemIn(BaseModel):
    """Requested purchase line.

    ``product_name`` and ``product_price`` are tolerated for older clients but
    ignored; names and prices always come from the catalog.
    """

    product_id: int
    product_weight_id: int
    quantity: int
    product_name: Optional[str] = None
    product_price: Optional[Decimal] = None


class PurchaseCreate(BaseModel):
    user_id: int
    address_id: int
    payment_id: int
    items: List[PurchaseItemIn] = Field(default_factory=list)


class PurchaseFromCart(BaseModel):
    user_id: int
    address_id: int
    payment_id: int


class PurchaseCreated(BaseModel):
    purchase_id: int


class PurchaseItemOut(BaseModel):
    product_id: int
    product_name: str
    product_weight_id: int
    weight: str
    measurement: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseOut(BaseModel):
    id: int
    user_id: int
    address_id: int
    payment_id: int
    total_price: Decimal
    status: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[PurchaseItemOut]


# --- order status ------------------------------------------------------------

class OrderStatusIn(BaseModel):
    status: str


class OrderStatusOut(BaseModel):
    purchase_id: int
    status: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
