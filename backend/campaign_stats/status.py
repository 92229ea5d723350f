import logging
from datetime import datetime, timezone
from typing import Literal, Optional, Union

logger = logging.getLogger(__name__)

CampaignStatus = Literal["draft", "scheduled", "active", "completed", "archived"]

# Order matters for display; the set partitions every campaign.
STATUSES = ("draft", "scheduled", "active", "completed", "archived")

TimestampLike = Union[datetime, str, None]


def parse_timestamp(value: TimestampLike) -> Optional[datetime]:
    """
    Normalise a stored start/end value to an aware UTC datetime.

    Empty values return None. Anything that is not a datetime or an
    ISO-8601 string raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise ValueError(f"unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def classify_status(
    published: bool,
    start_at: TimestampLike,
    end_at: TimestampLike,
    now: datetime,
) -> CampaignStatus:
    """Derive the lifecycle status from the publish flag and window."""
    if not published:
        return "draft"

    try:
        start = parse_timestamp(start_at)
        end = parse_timestamp(end_at)
        current = parse_timestamp(now)
    except (TypeError, ValueError) as e:
        logger.warning(f"Unparseable campaign window start={start_at!r} end={end_at!r}: {e}")
        return "draft"

    if start is not None and current < start:
        return "scheduled"
    if end is not None and current > end:
        return "completed"
    return "active"


def snapshot_status(snapshot, now: datetime) -> CampaignStatus:
    """Status bucket for a CampaignSnapshot; the archived flag wins over the window."""
    if snapshot.archived:
        return "archived"
    return classify_status(snapshot.is_published, snapshot.start_at, snapshot.end_at, now)
