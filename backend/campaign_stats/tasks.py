import asyncio
import logging
from typing import Optional

from campaign_stats.celery_config import celery_app
from campaign_stats.db.init import close_db, init_db

logger = logging.getLogger(__name__)


@celery_app.task(name="campaign_stats.tasks.apply_campaign_change_task", acks_late=True, max_retries=3)
def apply_campaign_change_task(campaign_id: str, before: Optional[dict], after: Optional[dict], actor_uid: Optional[str] = None):
    """
    Celery task consuming one campaign change notification.
    Applies the counters delta; never writes to the campaigns collection.
    """
    from campaign_stats.counters import get_counters_store
    from campaign_stats.services.audit import record_audit
    from campaign_stats.services.change_events import handle_change_event

    async def apply():
        await init_db()
        try:
            logger.info(f"=== APPLY_CAMPAIGN_CHANGE_TASK STARTED ===")
            logger.info(f"Campaign ID: {campaign_id}")
            result = await handle_change_event(
                campaign_id,
                before,
                after,
                store=get_counters_store(),
                audit=record_audit,
                actor_uid=actor_uid,
            )
            logger.info(f"=== APPLY_CAMPAIGN_CHANGE_TASK COMPLETED ===")
            return result
        finally:
            close_db()

    try:
        result = asyncio.run(apply())
        return {"campaign_id": campaign_id, "kind": result["kind"], "delta": result["delta"]}
    except Exception as e:
        logger.error(f"=== APPLY_CAMPAIGN_CHANGE_TASK FAILED ===")
        logger.error(f"Campaign ID: {campaign_id}")
        logger.error(f"Error: {e}", exc_info=True)
        raise


@celery_app.task(name="campaign_stats.tasks.recompute_campaign_stats_task", acks_late=True, max_retries=3)
def recompute_campaign_stats_task():
    """
    Celery task for the scheduled full recompute of stats/campaigns.
    A failure leaves the counters untouched; the next scheduled run retries.
    """
    from campaign_stats.aggregation import recompute_counters
    from campaign_stats.counters import get_campaign_source, get_counters_store

    async def recompute():
        await init_db()
        try:
            logger.info("=== SCHEDULED COUNTERS RECOMPUTE STARTED ===")
            counters = await recompute_counters(get_campaign_source(), get_counters_store())
            logger.info("=== SCHEDULED COUNTERS RECOMPUTE COMPLETED ===")
            return counters
        finally:
            close_db()

    try:
        counters = asyncio.run(recompute())
        return counters.values()
    except Exception as e:
        logger.error(f"=== SCHEDULED COUNTERS RECOMPUTE FAILED ===")
        logger.error(f"Error: {e}", exc_info=True)
        raise
