import logging
from celery.schedules import crontab
from campaign_stats.celery_config import celery_app
from campaign_stats.settings import STATS_RECOMPUTE_HOUR, STATS_RECOMPUTE_MINUTE
from campaign_stats.tasks import recompute_campaign_stats_task

logger = logging.getLogger(__name__)


# Configure periodic tasks
@celery_app.on_after_configure.connect
def setup_periodic_tasks(sender, **kwargs):
    logger.info("Setting up periodic tasks...")

    # Full recompute of the campaign counters, safety net against incremental drift
    sender.add_periodic_task(
        crontab(hour=STATS_RECOMPUTE_HOUR, minute=STATS_RECOMPUTE_MINUTE),
        recompute_campaign_stats_task.s(),
        name="recompute-campaign-stats"
    )

    logger.info("Periodic tasks configured successfully")
