"""
Celery Tasks
Background delivery of order and reservation confirmations.

Tasks receive plain JSON-serializable dicts built by the API after commit.
"""

import logging
import time

from quickserve.celery_worker import celery_app
from quickserve.services.notifications import get_notification_service

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True
)
def send_order_confirmation(self, order_data: dict) -> dict:
    """
    Notify a customer that their order was received.

    Args:
        order_data: orderNumber, customerName, customerEmail, customerPhone,
            total, itemCount, paymentMethod

    Returns:
        dict: Delivery summary
    """
    task_id = self.request.id
    order_number = order_data.get("orderNumber", "unknown")

    logger.info(f"Task {task_id}: confirming order {order_number}")
    start_time = time.time()

    result = get_notification_service().send_order_confirmation(
        order_number=order_number,
        customer_name=order_data["customerName"],
        customer_email=order_data["customerEmail"],
        customer_phone=order_data.get("customerPhone"),
        total=float(order_data["total"]),
        item_count=int(order_data.get("itemCount", 0)),
        payment_method=order_data.get("paymentMethod", ""),
    )

    elapsed = round(time.time() - start_time, 3)
    summary = result.to_dict()
    summary["task_id"] = task_id
    summary["processing_time_seconds"] = elapsed

    if result.success:
        logger.info(f"Task {task_id}: order {order_number} confirmed via {summary['channels']} in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: order {order_number} confirmation not delivered")

    return summary


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True
)
def send_reservation_confirmation(self, reservation_data: dict) -> dict:
    """Notify a customer that their table is booked."""
    task_id = self.request.id

    result = get_notification_service().send_reservation_confirmation(
        customer_name=reservation_data["customerName"],
        customer_email=reservation_data["customerEmail"],
        customer_phone=reservation_data.get("customerPhone"),
        date=reservation_data["date"],
        time=reservation_data["time"],
        guests=int(reservation_data["guests"]),
    )

    summary = result.to_dict()
    summary["task_id"] = task_id

    if result.success:
        logger.info(f"Task {task_id}: reservation {reservation_data.get('id')} confirmed")
    else:
        logger.warning(f"Task {task_id}: reservation {reservation_data.get('id')} confirmation not delivered")

    return summary
