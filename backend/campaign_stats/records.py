import math
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from campaign_stats.status import TimestampLike

# Engagement fields summed into the counters document
NUMERIC_FIELDS = ("reach", "clicks", "likes")

# Fields read by the full scan; everything else on a campaign is irrelevant to the counters
PROJECTION = {
    "_id": 0,
    "is_published": 1,
    "archived": 1,
    "start_at": 1,
    "end_at": 1,
    "reach": 1,
    "clicks": 1,
    "likes": 1,
}

Number = Union[int, float]


def coerce_number(value: Any) -> Number:
    """Missing, non-numeric and non-finite values count as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return value


class CampaignSnapshot(BaseModel):
    """The aggregable view of a campaign as seen by a change event or a scan."""

    model_config = ConfigDict(extra="ignore")

    is_published: bool = False
    archived: bool = False
    start_at: TimestampLike = None
    end_at: TimestampLike = None
    reach: Number = 0
    clicks: Number = 0
    likes: Number = 0

    @field_validator("reach", "clicks", "likes", mode="before")
    @classmethod
    def _coerce_numeric(cls, value):
        return coerce_number(value)

    @field_validator("is_published", "archived", mode="before")
    @classmethod
    def _coerce_flag(cls, value):
        return value is True

    @field_validator("start_at", "end_at", mode="before")
    @classmethod
    def _keep_raw_timestamp(cls, value):
        # Parsing happens at classification time so a bad value cannot reject the snapshot
        if value is None or isinstance(value, (str, datetime)):
            return value
        return str(value)

    @classmethod
    def from_document(cls, data: Optional[dict]) -> Optional["CampaignSnapshot"]:
        if data is None:
            return None
        return cls.model_validate(data)

    def to_event_payload(self) -> dict:
        """JSON-safe dict for the broker."""
        payload = self.model_dump()
        for key in ("start_at", "end_at"):
            value = payload[key]
            if value is not None and not isinstance(value, str):
                payload[key] = value.isoformat()
        return payload
