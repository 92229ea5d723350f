import logging
from typing import Optional

from campaign_stats.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


async def record_audit(
    action: str,
    campaign_id: Optional[str],
    source: str,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
    actor_uid: Optional[str] = None,
) -> None:
    """Best-effort audit entry; failures are logged and swallowed."""
    try:
        await AuditLog(
            action=action,
            campaign_id=campaign_id,
            before=before,
            after=after,
            actor_uid=actor_uid,
            source=source,
        ).insert()
        logger.info(f"[AUDIT] {action} recorded for campaign {campaign_id}")
    except Exception as e:
        logger.warning(f"[AUDIT] Failed to record {action} for campaign {campaign_id}: {e}")


def get_audit_writer():
    return record_audit
