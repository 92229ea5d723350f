import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from campaign_stats.aggregation import apply_change
from campaign_stats.counters import CountersStore
from campaign_stats.records import CampaignSnapshot

logger = logging.getLogger(__name__)

AuditWriter = Callable[..., Awaitable[None]]


def change_kind(before: Optional[dict], after: Optional[dict]) -> Optional[str]:
    if before is None and after is None:
        return None
    if before is None:
        return "create"
    if after is None:
        return "delete"
    return "update"


async def handle_change_event(
    campaign_id: str,
    before: Optional[dict],
    after: Optional[dict],
    store: CountersStore,
    audit: Optional[AuditWriter] = None,
    actor_uid: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Process one campaign change notification.

    The counters delta is applied first, then create/update events are
    audited; deletes are audited by the handler that performed them.
    """
    kind = change_kind(before, after)
    logger.info(f"[CHANGE] {kind or 'no-op'} event for campaign {campaign_id}")

    if kind is None:
        return {"campaign_id": campaign_id, "kind": None, "delta": {}}

    delta = await apply_change(
        store,
        CampaignSnapshot.from_document(before),
        CampaignSnapshot.from_document(after),
        now=now,
    )

    if kind != "delete" and audit is not None:
        await audit(
            action=kind,
            campaign_id=campaign_id,
            source="task/apply_campaign_change",
            before=before,
            after=after,
            actor_uid=actor_uid,
        )

    return {"campaign_id": campaign_id, "kind": kind, "delta": delta}
