from beanie import Document
from pydantic import Field
from typing import Optional, Literal
from datetime import datetime, timezone


class CampaignModel(Document):
    campaign_id: str = Field(..., index=True, example="campaign_1754062199795")
    title: str = Field(..., example="Summer UGC Contest")
    description: Optional[str] = None
    category: str = Field(default="Other", example="UGC")
    visibility: Literal["public", "private"] = "public"
    is_published: bool = False
    archived: bool = False  # moderation flag, overrides the publish window
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    reach: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    created_by_uid: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "campaigns"

    class Config:
        json_schema_extra = {
            "example": {
                "campaign_id": "campaign_1754062199795",
                "title": "Summer UGC Contest",
                "description": "Share your summer look",
                "category": "UGC",
                "visibility": "public",
                "is_published": True,
                "archived": False,
                "start_at": "2025-08-01T00:00:00.000Z",
                "end_at": "2025-08-31T23:59:59.000Z",
                "reach": 0,
                "clicks": 0,
                "likes": 0,
                "created_by_uid": "uid_admin_1",
                "created_at": "2025-07-28T19:30:00.000Z",
                "updated_at": "2025-07-28T19:30:00.000Z"
            }
        }
