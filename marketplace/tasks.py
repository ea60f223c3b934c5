"""
Marketplace Celery Tasks

- Cancel orders left unpaid past the payment window (stock is restored)
"""

import logging

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(name="marketplace.tasks.cancel_expired_orders_task", queue="marketplace_tasks")
def cancel_expired_orders_task():
    """Cancel pending orders older than ORDER_PAYMENT_TIMEOUT_DAYS."""
    from infrastructure.container import container

    timeout_days = getattr(settings, "ORDER_PAYMENT_TIMEOUT_DAYS", 3)
    logger.info(f"Cancelling pending orders older than {timeout_days} days...")
    try:
        result = container.order_service().cancel_expired_orders(timeout_days)

        if result.ok:
            logger.info(f"Expired order sweep completed: {len(result.value['cancelled'])} cancelled")
            return result.value
        else:
            logger.error(f"Expired order sweep failed: {result.error}")
            return {"error": result.error}

    except Exception as e:
        logger.error(f"Error in cancel_expired_orders_task: {e}", exc_info=True)
        raise
