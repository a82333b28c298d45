"""
Wire schemas (JSON, camelCase) shared by the REST routes and the
real-time event payloads.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from shoplocal.domain.enums import OrderStatus, PaymentMethod, Role


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_payload(self) -> dict:
        """JSON-ready dict, the shape clients receive over REST and Socket.IO."""
        return self.model_dump(mode="json", by_alias=True)


def _not_null(value):
    # Partial updates may leave a field out, but not clear a required one
    if value is None:
        raise ValueError("must not be null")
    return value


# --- Users / Auth ---

class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    phone: Optional[str] = None
    role: Role = Role.CUSTOMER
    language: str = "en"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserOut(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    language: Optional[str] = None


class SessionOut(CamelModel):
    token: str
    user: UserOut


class CustomerDescriptor(CamelModel):
    id: int
    name: str


class ProfileUpdate(CamelModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class ProfileOut(CamelModel):
    id: int
    user_id: int
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# --- Shops / Products ---

class CategoryCreate(CamelModel):
    name: str = Field(min_length=1)
    name_hi: str = Field(min_length=1)
    icon: str = Field(min_length=1)
    color: str = "#FF5722"


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    name_hi: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None

    @field_validator("name", "name_hi", "icon", "color", mode="before")
    @classmethod
    def required_not_null(cls, value):
        return _not_null(value)


class CategoryOut(CamelModel):
    id: int
    name: str
    name_hi: str
    icon: str
    color: str
    created_at: Optional[datetime] = None


class ShopCreate(CamelModel):
    name: str = Field(min_length=1)
    category_id: Optional[int] = None
    description: Optional[str] = None
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: Optional[str] = None
    delivery_available: bool = True
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    open_time: Optional[str] = None
    close_time: Optional[str] = None


class ShopUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[int] = None
    description: Optional[str] = None
    address: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = Field(default=None, min_length=1)
    postal_code: Optional[str] = None
    delivery_available: Optional[bool] = None
    is_open: Optional[bool] = None
    is_approved: Optional[bool] = None  # admin only
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    open_time: Optional[str] = None
    close_time: Optional[str] = None

    @field_validator("name", "address", "city", "state", "delivery_available", "is_open", "is_approved",
                     mode="before")
    @classmethod
    def required_not_null(cls, value):
        return _not_null(value)


class ShopOut(CamelModel):
    id: int
    vendor_id: int
    name: str
    category_id: Optional[int] = None
    description: Optional[str] = None
    address: str
    city: str
    state: str
    postal_code: Optional[str] = None
    is_approved: bool
    is_open: bool
    delivery_available: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    created_at: Optional[datetime] = None


class ProductCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    mrp: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    unit: Optional[str] = None
    is_available: bool = True


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    mrp: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    unit: Optional[str] = None
    is_available: Optional[bool] = None

    @field_validator("name", "mrp", "selling_price", "stock", "is_available", mode="before")
    @classmethod
    def required_not_null(cls, value):
        return _not_null(value)


class ProductOut(CamelModel):
    id: int
    shop_id: int
    name: str
    description: Optional[str] = None
    mrp: float
    selling_price: float
    stock: int
    unit: Optional[str] = None
    is_available: bool
    created_at: Optional[datetime] = None


# --- Orders ---

class OrderItemIn(CamelModel):
    product_id: int
    quantity: int = Field(ge=1)
    price: Optional[float] = Field(default=None, ge=0)


class CreateOrderRequest(CamelModel):
    shop_id: int
    payment_method: PaymentMethod
    payment_status: bool = False
    total_amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = None  # accepted for compatibility, orders always start pending
    delivery_address: Optional[str] = None
    delivery_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    delivery_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    items: List[OrderItemIn] = Field(default_factory=list)


class UpdateStatusRequest(CamelModel):
    status: OrderStatus
    customer_id: Optional[int] = None


class OrderItemOut(CamelModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: float


class OrderOut(CamelModel):
    id: int
    customer_id: int
    shop_id: int
    status: OrderStatus
    total_amount: float
    payment_method: PaymentMethod
    payment_status: bool
    delivery_address: Optional[str] = None
    delivery_latitude: Optional[float] = None
    delivery_longitude: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = Field(default_factory=list)


class NewOrderEvent(CamelModel):
    id: int
    created_at: Optional[datetime] = None
    total_amount: float
    status: OrderStatus
    items: List[OrderItemOut]
    payment_method: PaymentMethod
    payment_status: bool
    customer: CustomerDescriptor


class OrderStatusEvent(CamelModel):
    order_id: int
    status: OrderStatus


# --- Reviews ---

class ReviewCreate(CamelModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    order_id: Optional[int] = None


class ReviewOut(CamelModel):
    id: int
    customer_id: int
    shop_id: int
    order_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


# --- Cart / Checkout ---

class CartItemIn(CamelModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)


class CartQuantityIn(CamelModel):
    quantity: int


class CartLineOut(CamelModel):
    product_id: int
    name: str
    price: float
    quantity: int


class CartOut(CamelModel):
    shop_id: Optional[int] = None
    items: List[CartLineOut] = Field(default_factory=list)
    total: float = 0.0


class CheckoutRequest(CamelModel):
    payment_method: PaymentMethod


class CheckoutOut(CamelModel):
    payment_method: PaymentMethod
    amount: float
    currency: str
    gateway_order_id: Optional[str] = None
    key_id: Optional[str] = None
    client_secret: Optional[str] = None


class CheckoutConfirmRequest(CamelModel):
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    gateway_signature: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    delivery_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
