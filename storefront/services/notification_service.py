# storefront/services/notification_service.py
import requests

from storefront.celery_worker import celery_app
from storefront.utils.retry import http_retry
from storefront.utils.settings import NOTIFICATION_WEBHOOK_URL, NOTIFICATION_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Fire-and-forget purchase notifications.

    The message is built and delivered by a Celery task; enqueueing failures
    are logged and never reach the purchase response.
    """

    def send_purchase_notification(self, user_id: int, purchase_id: int, lines: list[dict]) -> bool:
        try:
            send_purchase_notification_task.delay(user_id, purchase_id, lines)
            return True
        except Exception as e:
            logger.warning(f"Could not enqueue notification for purchase {purchase_id}: {e}")
            return False


def build_message(lines: list[dict]) -> str:
    parts = [f"{line['product_name']} x {line['quantity']}" for line in lines]
    return f"Your order for {', '.join(parts)} has been placed."


@http_retry()
def _post_webhook(url: str, payload: dict) -> None:
    resp = requests.post(url, json=payload, timeout=NOTIFICATION_TIMEOUT_SECONDS)
    resp.raise_for_status()


@celery_app.task(name="storefront.services.notification_service.send_purchase_notification_task")
def send_purchase_notification_task(user_id: int, purchase_id: int, lines: list[dict]):
    """
    Delivers the purchase message to the notification sink.

    Without NOTIFICATION_WEBHOOK_URL the message is only logged.
    """
    destination = f"user:{user_id}"
    message = build_message(lines)

    if not NOTIFICATION_WEBHOOK_URL:
        logger.info(f"[NOTIFICATION] {destination}: {message}")
        return {"purchase_id": purchase_id, "status": "logged"}

    try:
        _post_webhook(
            NOTIFICATION_WEBHOOK_URL,
            {"destination": destination, "message": message, "purchase_id": purchase_id},
        )
    except requests.RequestException as e:
        logger.error(f"Notification for purchase {purchase_id} failed: {e}")
        return {"purchase_id": purchase_id, "status": "failed"}

    logger.info(f"Notification for purchase {purchase_id} sent to {destination}")
    return {"purchase_id": purchase_id, "status": "sent"}
