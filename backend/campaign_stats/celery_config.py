from celery import Celery

from campaign_stats.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "campaign_stats_tasks",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=["campaign_stats.tasks"]
)

celery_app.conf.update(
    # Change events are acknowledged only after the counters write; a crashed
    # worker's event is redelivered and any double-apply is left to the recompute
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # Events carry plain JSON snapshots
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    # Beat schedule is expressed in UTC
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,  # 1 hour
    broker_connection_retry_on_startup=True,
)
