"""
Order Service

Order-number generation and persistence of new orders.

Order numbers look like ``ORD-202610-0427``: year and month of creation
followed by four random digits. Uniqueness is checked before insert and
enforced by the unique index; a collision that slips through the check is
retried with a fresh number.
"""

import logging
import random
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quickserve.models import Order, OrderStatus, User
from quickserve.schemas import OrderCreate

logger = logging.getLogger(__name__)

ORDER_NUMBER_PATTERN = re.compile(r"^ORD-\d{6}-\d{4}$")

# Fresh numbers drawn per insert attempt before giving up
MAX_NUMBER_DRAWS = 20
MAX_INSERT_ATTEMPTS = 3


class OrderNumberExhausted(RuntimeError):
    """No free order number could be drawn."""


def generate_order_number(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """Build an ``ORD-YYYYMM-RRRR`` order number."""
    now = now or datetime.now(timezone.utc)
    rng = rng or random
    return f"ORD-{now.year}{now.month:02d}-{rng.randrange(10000):04d}"


async def _order_number_taken(db: AsyncSession, order_number: str) -> bool:
    found = await db.scalar(select(Order.id).where(Order.order_number == order_number))
    return found is not None


async def draw_unique_order_number(db: AsyncSession, rng: Optional[random.Random] = None) -> str:
    """Draw order numbers until one is not already stored."""
    for _ in range(MAX_NUMBER_DRAWS):
        candidate = generate_order_number(rng=rng)
        if not await _order_number_taken(db, candidate):
            return candidate
        logger.debug(f"Order number {candidate} already used, drawing again")
    raise OrderNumberExhausted("Could not allocate a unique order number")


async def create_order(db: AsyncSession, user: User, order_data: OrderCreate) -> Order:
    """
    Persist a new Pending order owned by ``user``.

    Items and totals are stored exactly as submitted; nothing is recomputed.
    """
    owner_id = user.id
    items = [item.model_dump() for item in order_data.items]

    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        order = Order(
            user_id=owner_id,
            order_number=await draw_unique_order_number(db),
            items=items,
            subtotal=order_data.subtotal,
            tax=order_data.tax,
            total=order_data.total,
            status=OrderStatus.PENDING,
            payment_method=order_data.payment_method,
        )
        db.add(order)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                f"Order number {order.order_number} collided on insert "
                f"(attempt {attempt}/{MAX_INSERT_ATTEMPTS})"
            )
            continue

        await db.refresh(order)
        return order

    raise OrderNumberExhausted("Could not allocate a unique order number")
