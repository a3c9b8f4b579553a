"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase keys (``orderNumber``, ``paymentMethod``,
``createdAt``); requests also accept the snake_case field names.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from quickserve.core.config import get_settings
from quickserve.models import MenuCategory, OrderStatus, PaymentMethod, ReservationStatus


def _reservation_slots() -> list[str]:
    """11:00 AM to 8:00 PM in 30 minute steps."""
    slots = []
    current = datetime(2000, 1, 1, 11, 0)
    last = datetime(2000, 1, 1, 20, 0)
    while current <= last:
        hour = current.hour % 12 or 12
        suffix = "AM" if current.hour < 12 else "PM"
        slots.append(f"{hour}:{current.minute:02d} {suffix}")
        current += timedelta(minutes=30)
    return slots


RESERVATION_TIME_SLOTS = _reservation_slots()


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH / USER SCHEMAS
# =============================================================================

class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Alice"])
    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., min_length=6, max_length=128, examples=["secret1"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, examples=["alice@example.com"])
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ProfileUpdateRequest(CamelModel):
    """
    Profile edit. ``name`` and ``email`` are checked in the route so that a
    missing one produces the ``fields`` marker body instead of a generic
    validation error.
    """
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemResponse(CamelModel):
    id: str
    name: str
    description: str
    price: float
    image: str
    category: MenuCategory
    popular: bool
    allergens: List[str]
    preparation_time: str
    created_at: datetime


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItem(CamelModel):
    """Single line of an order (price snapshot, not a menu reference)."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Grilled Salmon"])
    price: float = Field(..., ge=0, examples=[100.0])
    quantity: int = Field(..., ge=1, examples=[2])
    image: Optional[str] = Field(None, max_length=500)


class OrderCreate(CamelModel):
    """Request schema for placing an order. Totals are stored as given."""
    items: List[OrderItem] = Field(..., min_length=1)
    payment_method: PaymentMethod = Field(..., examples=["credit-card"])
    subtotal: float = Field(..., ge=0, examples=[200.0])
    tax: float = Field(..., ge=0, examples=[16.0])
    total: float = Field(..., ge=0, examples=[216.0])


class OrderResponse(CamelModel):
    id: str
    user: str = Field(
        validation_alias=AliasChoices("user_id", "user"),
        serialization_alias="user",
    )
    order_number: str
    items: List[OrderItem]
    subtotal: float
    tax: float
    total: float
    status: OrderStatus
    payment_method: PaymentMethod
    created_at: datetime


# =============================================================================
# RESERVATION SCHEMAS
# =============================================================================

class ReservationCreate(CamelModel):
    date: date
    time: str = Field(..., examples=["7:00 PM"])
    guests: int = Field(..., ge=1, examples=[2])
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("time")
    @classmethod
    def validate_slot(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in RESERVATION_TIME_SLOTS:
            raise ValueError(f"Time must be one of: {', '.join(RESERVATION_TIME_SLOTS)}")
        return v

    @field_validator("guests")
    @classmethod
    def validate_guests(cls, v: int) -> int:
        max_guests = get_settings().reservation_max_guests
        if v > max_guests:
            raise ValueError(f"Online reservations are limited to {max_guests} guests")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: date) -> date:
        today = date.today()
        last = today + timedelta(days=get_settings().reservation_max_days_ahead)
        if v < today:
            raise ValueError("Reservation date cannot be in the past")
        if v > last:
            raise ValueError(f"Reservations can be made up to {last.isoformat()}")
        return v

    @model_validator(mode="after")
    def strip_notes(self) -> "ReservationCreate":
        if self.notes is not None:
            self.notes = self.notes.strip() or None
        return self


class ReservationResponse(CamelModel):
    id: str
    user: str = Field(
        validation_alias=AliasChoices("user_id", "user"),
        serialization_alias="user",
    )
    date: date
    time: str
    guests: int
    notes: Optional[str] = None
    status: ReservationStatus
    created_at: datetime


# =============================================================================
# GENERIC RESPONSES
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    notification_service: str
    timestamp: datetime
