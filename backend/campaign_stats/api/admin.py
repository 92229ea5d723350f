from fastapi import APIRouter, Depends
from campaign_stats.aggregation import recompute_counters
from campaign_stats.auth import Claims, admin_claims
from campaign_stats.counters import get_campaign_source, get_counters_store
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/admin/stats/recompute")
async def recompute_campaign_stats(
    claims: Claims = Depends(admin_claims),
    source=Depends(get_campaign_source),
    store=Depends(get_counters_store),
):
    """
    On-demand full recompute of stats/campaigns. Same code path as the nightly job.
    """
    logger.info(f"[ADMIN] Counters recompute requested by {claims.uid}")
    counters = await recompute_counters(source, store)
    return {"ok": True, "counters": counters.model_dump(mode="json", by_alias=True)}
