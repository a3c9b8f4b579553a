"""
SQLAlchemy Database Models

Four collections back the storefront:
- User: accounts with bcrypt password hashes
- MenuItem: read-only catalogue, seeded at startup
- Order: self-contained order documents (line items stored as JSON)
- Reservation: table bookings
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)

from quickserve.database import Base


def generate_id() -> str:
    """Opaque 32-char identifier, document-store style."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_column(enum_cls: type[enum.Enum], length: int) -> Enum:
    # Persist the human-readable values ("Ready for Pickup"), not member names
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=length,
        validate_strings=True,
    )


class MenuCategory(str, enum.Enum):
    """Menu sections shown on the storefront."""
    APPETIZERS = "Appetizers"
    MAIN_COURSE = "Main Course"
    SEAFOOD = "Seafood"
    PASTA = "Pasta"
    VEGETARIAN = "Vegetarian"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"


class OrderStatus(str, enum.Enum):
    """Order status values. No transition rules are enforced."""
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY_FOR_PICKUP = "Ready for Pickup"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "credit-card"
    CASH = "cash"


class ReservationStatus(str, enum.Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class User(Base):
    """Customer account. ``password_hash`` never leaves the server."""
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    address = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow, nullable=True)

    def __repr__(self):
        return f"<User {self.id} - {self.email}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    image = Column(String(500), nullable=False)
    category = Column(_enum_column(MenuCategory, 20), nullable=False, index=True)
    popular = Column(Boolean, default=False, nullable=False)
    allergens = Column(JSON, default=list, nullable=False)
    preparation_time = Column(String(30), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.category.value} - {self.price}>"


class Order(Base):
    """
    Order document owned by exactly one user.

    Totals are stored exactly as submitted by the client.
    """
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    order_number = Column(String(20), nullable=False, unique=True, index=True)

    # [{"name", "price", "quantity", "image"}]
    items = Column(JSON, nullable=False)

    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False)
    total = Column(Float, nullable=False)

    status = Column(
        _enum_column(OrderStatus, 20),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    payment_method = Column(_enum_column(PaymentMethod, 20), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Order {self.order_number} - {self.status.value} - {self.total}>"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    time = Column(String(10), nullable=False)
    guests = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(
        _enum_column(ReservationStatus, 20),
        default=ReservationStatus.CONFIRMED,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Reservation {self.date} {self.time} x{self.guests} - {self.status.value}>"
