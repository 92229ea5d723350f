from beanie import Document
from pydantic import Field
from datetime import datetime
from typing import Optional


class CampaignStatsModel(Document):
    """
    The denormalized counters document (stats/campaigns).
    Written only through campaign_stats.counters so increments stay atomic.
    """
    id: str = Field(default="campaigns")
    total: int = 0
    draft: int = 0
    scheduled: int = 0
    active: int = 0
    completed: int = 0
    archived: int = 0
    reach: int = 0
    clicks: int = 0
    likes: int = 0
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    class Settings:
        name = "stats"
