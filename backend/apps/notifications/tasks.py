# apps/notifications/tasks.py
import requests
from celery import shared_task
from celery.utils.log import get_task_logger
from django.conf import settings
from django.utils import timezone

logger = get_task_logger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    queue='high_priority'
)
def send_push_notification(self, notification_id):
    """
    Delivers a persisted Notification through the configured push gateway.
    """
    from .models import Notification

    notification = Notification.objects.select_related("user").filter(id=notification_id).first()
    if notification is None:
        logger.warning(f"Notification {notification_id} no longer exists")
        return "Missing"

    push_url = getattr(settings, "PUSH_PROVIDER_URL", "")
    push_key = getattr(settings, "PUSH_PROVIDER_KEY", "")

    if not push_url:
        logger.info(f"[DEV-PUSH] user={notification.user_id} event={notification.event} title={notification.title}")
        return "Logged"

    try:
        response = requests.post(
            push_url,
            json={
                "user_id": notification.user_id,
                "title": notification.title,
                "body": notification.message,
                "data": {"event": notification.event, "order_id": notification.order_id},
            },
            headers={"Authorization": f"Bearer {push_key}"} if push_key else {},
            timeout=getattr(settings, "PUSH_PROVIDER_TIMEOUT", 10)
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Push Provider Failed: {e}. Retrying...")
        raise self.retry(exc=e)

    Notification.objects.filter(id=notification.id).update(pushed_at=timezone.now())
    return "Sent"
