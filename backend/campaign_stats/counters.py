from datetime import datetime
from typing import AsyncIterator, Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from campaign_stats.records import NUMERIC_FIELDS, PROJECTION, Number
from campaign_stats.status import STATUSES

STATS_ID = "campaigns"

COUNTER_FIELDS = ("total",) + STATUSES + NUMERIC_FIELDS
UPDATED_AT = "updatedAt"


class CountersSnapshot(BaseModel):
    total: Number = 0
    draft: Number = 0
    scheduled: Number = 0
    active: Number = 0
    completed: Number = 0
    archived: Number = 0
    reach: Number = 0
    clicks: Number = 0
    likes: Number = 0
    updated_at: Optional[datetime] = Field(default=None, alias=UPDATED_AT)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_document(cls, data: Optional[dict]) -> "CountersSnapshot":
        data = dict(data or {})
        data.pop("_id", None)
        return cls.model_validate({k: v for k, v in data.items() if k in COUNTER_FIELDS or k == UPDATED_AT})

    def values(self) -> Dict[str, Number]:
        return {field: getattr(self, field) for field in COUNTER_FIELDS}


class CountersStore(Protocol):
    """Handle on the single counters document."""

    async def increment(self, deltas: Dict[str, Number], updated_at: datetime) -> None: ...

    async def replace(self, values: Dict[str, Number], updated_at: datetime) -> None: ...

    async def read(self) -> CountersSnapshot: ...


class CampaignSource(Protocol):
    """Read access to the campaign record set."""

    async def count(self) -> int: ...

    def scan(self) -> AsyncIterator[dict]: ...


class MongoCountersStore:
    """Counters document backed by a Motor collection."""

    def __init__(self, collection, document_id: str = STATS_ID):
        self.collection = collection
        self.document_id = document_id

    async def increment(self, deltas: Dict[str, Number], updated_at: datetime) -> None:
        update = {"$set": {UPDATED_AT: updated_at}}
        if deltas:
            update["$inc"] = dict(deltas)
        await self.collection.update_one({"_id": self.document_id}, update, upsert=True)

    async def replace(self, values: Dict[str, Number], updated_at: datetime) -> None:
        # $set keeps any unrelated fields on the document
        fields = dict(values)
        fields[UPDATED_AT] = updated_at
        await self.collection.update_one({"_id": self.document_id}, {"$set": fields}, upsert=True)

    async def read(self) -> CountersSnapshot:
        data = await self.collection.find_one({"_id": self.document_id})
        return CountersSnapshot.from_document(data)


class MongoCampaignSource:
    """Campaign records read straight from the Motor collection."""

    def __init__(self, collection):
        self.collection = collection

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def scan(self) -> AsyncIterator[dict]:
        async for document in self.collection.find({}, PROJECTION):
            yield document


def get_counters_store() -> MongoCountersStore:
    from campaign_stats.models.campaign_stats import CampaignStatsModel

    return MongoCountersStore(CampaignStatsModel.get_motor_collection())


def get_campaign_source() -> MongoCampaignSource:
    from campaign_stats.models.campaign import CampaignModel

    return MongoCampaignSource(CampaignModel.get_motor_collection())
