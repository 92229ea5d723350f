from beanie import Document
from pydantic import Field
from datetime import datetime, timezone
from typing import Optional, Literal


class AuditLog(Document):
    """
    Append-only trail of campaign writes, used by the dashboard's history view.
    """
    action: Literal["create", "update", "delete", "publish", "unpublish", "campaign_hard_delete"]
    target_type: str = "campaign"
    campaign_id: Optional[str] = Field(default=None, index=True)
    before: Optional[dict] = None
    after: Optional[dict] = None
    actor_uid: Optional[str] = None
    source: str
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "audit_logs"
