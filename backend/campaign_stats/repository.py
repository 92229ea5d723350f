import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from fastapi.encoders import jsonable_encoder
from pymongo import ReturnDocument

from campaign_stats.models.campaign import CampaignModel

logger = logging.getLogger(__name__)

INTERNAL_FIELDS = ("_id", "id", "revision_id")


def _to_dict(document: Optional[dict]) -> Optional[dict]:
    if document is None:
        return None
    return jsonable_encoder({k: v for k, v in document.items() if k not in INTERNAL_FIELDS})


class CampaignRepository:
    """
    Campaign persistence for the write handlers.
    Returns JSON-safe dicts so callers can hand them straight to the broker.

    Updates and deletes go through single find-and-modify calls, so every
    mutation yields exactly one before/after pair.
    """

    def __init__(self, collection=None):
        self._collection = collection

    @property
    def collection(self):
        if self._collection is None:
            self._collection = CampaignModel.get_motor_collection()
        return self._collection

    async def get(self, campaign_id: str) -> Optional[dict]:
        return _to_dict(await self.collection.find_one({"campaign_id": campaign_id}))

    async def insert(self, data: dict) -> dict:
        campaign = CampaignModel(**data)
        await campaign.insert()
        logger.info(f"Campaign inserted: {campaign.campaign_id}")
        return _to_dict(campaign.model_dump())

    async def update(self, campaign_id: str, changes: dict) -> Optional[Tuple[dict, dict]]:
        fields = dict(changes)
        fields["updated_at"] = datetime.now(timezone.utc)
        before = await self.collection.find_one_and_update(
            {"campaign_id": campaign_id},
            {"$set": fields},
            return_document=ReturnDocument.BEFORE,
        )
        if before is None:
            return None
        # $set of exactly these fields on exactly this document
        after = {**before, **fields}
        return _to_dict(before), _to_dict(after)

    async def delete(self, campaign_id: str) -> Optional[dict]:
        removed = await self.collection.find_one_and_delete({"campaign_id": campaign_id})
        if removed is None:
            return None
        logger.info(f"Campaign deleted: {campaign_id}")
        return _to_dict(removed)


def get_campaign_repository() -> CampaignRepository:
    return CampaignRepository()
