from celery import Celery
from formflow.core.config import settings

celery_app = Celery(
    "formflow",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["formflow.workers.tasks.webhooks"],
)

celery_app.conf.task_default_queue = "webhooks"
# Webhook dispatch is fire-and-forget: publishing must give up quickly when the broker is down.
celery_app.conf.task_publish_retry_policy = {
    "max_retries": 2,
    "interval_start": 0,
    "interval_step": 0.2,
    "interval_max": 0.5,
}
celery_app.conf.timezone = "America/Sao_Paulo"
