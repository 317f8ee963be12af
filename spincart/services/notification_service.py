# spincart/services/notification_service.py
from spincart.celery_worker import celery_app
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_PLACED_TASK = "spincart.services.notification_service.send_order_notification_task"


class NotificationService:
    """Kolejkuje powiadomienie "zamowienie zlozone"; wywolywane po commicie."""

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        send_order_notification_task.apply_async(args=(user_id, order_id), retry=False)


def order_placed_message(user_id: int, order_id: int) -> str:
    return f"User {user_id}: your order #{order_id} has been placed and is awaiting confirmation"


@celery_app.task(name=ORDER_PLACED_TASK, ignore_result=False)
def send_order_notification_task(user_id: int, order_id: int):
    # kanal (email/SMS) podpiety pozniej, na razie tylko log
    logger.info(f"[NOTIFICATION] {order_placed_message(user_id, order_id)}")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
