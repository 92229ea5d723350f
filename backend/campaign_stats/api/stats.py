from fastapi import APIRouter, Depends
from campaign_stats.auth import Claims, current_claims
from campaign_stats.counters import get_counters_store
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/stats/campaigns")
async def read_campaign_stats(
    claims: Claims = Depends(current_claims),
    store=Depends(get_counters_store),
):
    """Counters document as shown on the dashboard; missing keys read as 0."""
    counters = await store.read()
    return counters.model_dump(mode="json", by_alias=True)
