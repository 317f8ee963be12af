# spincart/celery_worker.py
from celery import Celery

from spincart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "spincart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski importowane jawnie, zeby worker je zarejestrowal
celery_app.conf.imports = (
    "spincart.services.notification_service",
)

celery_app.conf.timezone = "UTC"
