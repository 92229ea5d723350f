import logging
from typing import Optional

logger = logging.getLogger(__name__)


def dispatch_change(campaign_id: str, before: Optional[dict], after: Optional[dict], actor_uid: Optional[str] = None) -> bool:
    """
    Queue a change notification for the counters worker.
    Returns False when the broker is unreachable; the record write still stands
    and the next recompute picks the change up.
    """
    from campaign_stats.tasks import apply_campaign_change_task

    try:
        apply_campaign_change_task.delay(campaign_id, before, after, actor_uid)
        logger.info(f"[DISPATCH] Change event queued for campaign {campaign_id}")
        return True
    except Exception as e:
        logger.error(f"[DISPATCH] Failed to queue change event for campaign {campaign_id}: {e}", exc_info=True)
        return False


def get_dispatcher():
    return dispatch_change
