# storefront/services/notification_service.py
from typing import Any, Dict

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_CREATED = "order.created"
ORDER_AWAITING_SHIPPING_COST = "order.awaiting_shipping_cost"
ORDER_SHIPPING_COST_SET = "order.shipping_cost_set"
ORDER_STATUS_CHANGED = "order.status_changed"


class NotificationService:
    """
    Fire-and-forget notification sink.
    Hands the event to Celery; a broken broker is logged, never raised,
    callers have already committed by the time they notify.
    """

    def notify(self, event: str, payload: Dict[str, Any]) -> None:
        try:
            send_notification_task.delay(event, payload)
        except Exception:
            logger.exception(f"[NOTIFICATION] could not enqueue {event} {payload}")


@celery_app.task(name="storefront.services.notification_service.send_notification_task")
def send_notification_task(event: str, payload: Dict[str, Any]):
    """
    Celery task - customer email / admin alert.
    Only logs, the mail transport is configured per deployment.
    """
    logger.info(f"[NOTIFICATION] {event}: {payload}")
    return {"event": event, "payload": payload, "status": "sent"}
