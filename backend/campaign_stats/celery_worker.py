import asyncio
from celery.signals import worker_process_init
from campaign_stats.celery_config import celery_app
from campaign_stats.db.init import close_db, init_db
import campaign_stats.scheduler  # noqa: F401  registers the beat schedule
import logging

# Entry point for the Celery worker and beat:
#   celery -A campaign_stats.celery_worker.celery worker --loglevel=info
#   celery -A campaign_stats.celery_worker.celery beat --loglevel=info

logger = logging.getLogger(__name__)


@worker_process_init.connect
def on_worker_init(**kwargs):
    """
    Check the database connection when a Celery worker process starts,
    so a misconfigured worker fails before it takes any change events.
    """
    logger.info("Celery worker process initializing...")
    try:
        asyncio.run(init_db())
        logger.info("Database connection verified for Celery worker.")
        # Each task opens its own client on its own event loop
        close_db()
    except Exception as e:
        logger.error(f"Failed to initialize database for Celery worker: {e}", exc_info=True)
        raise


# The 'celery' variable is automatically detected by Celery
# as long as it's an instance of the Celery class.
celery = celery_app
