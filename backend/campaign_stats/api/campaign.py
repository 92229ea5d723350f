from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime, timezone
from campaign_stats.auth import Claims, admin_claims, current_claims
from campaign_stats.errors import CampaignStatsError, InvalidArgument, NotFound
from campaign_stats.records import CampaignSnapshot
from campaign_stats.repository import get_campaign_repository
from campaign_stats.services.audit import get_audit_writer
from campaign_stats.services.change_dispatch import get_dispatcher
from campaign_stats.status import parse_timestamp, snapshot_status
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


class CampaignCreate(BaseModel):
    campaign_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: str = "Other"
    visibility: Literal["public", "private"] = "public"
    is_published: bool = False
    archived: bool = False
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    reach: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)


class CampaignUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    visibility: Optional[Literal["public", "private"]] = None
    is_published: Optional[bool] = None
    archived: Optional[bool] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    reach: Optional[int] = Field(default=None, ge=0)
    clicks: Optional[int] = Field(default=None, ge=0)
    likes: Optional[int] = Field(default=None, ge=0)


class PublishRequest(BaseModel):
    publish: bool


def validate_campaign(title: Optional[str], start_at, end_at) -> None:
    if title is not None and len(title.strip()) < 3:
        raise InvalidArgument("Title must be at least 3 characters.")
    try:
        start = parse_timestamp(start_at)
        end = parse_timestamp(end_at)
    except ValueError:
        raise InvalidArgument("Invalid dates.")
    if start and end and end <= start:
        raise InvalidArgument("End must be after start.")


@router.post("/campaigns")
async def create_campaign(
    payload: CampaignCreate,
    claims: Claims = Depends(current_claims),
    repository=Depends(get_campaign_repository),
    dispatch=Depends(get_dispatcher),
):
    """
    Create a campaign. The counters pick it up through the change event.
    """
    logger.info(f"Campaign creation requested by {claims.uid}: {payload.title}")
    validate_campaign(payload.title, payload.start_at, payload.end_at)

    try:
        data = payload.model_dump()
        data["campaign_id"] = data["campaign_id"] or f"campaign_{int(datetime.now(timezone.utc).timestamp() * 1000)}"
        data["created_by_uid"] = claims.uid
        record = await repository.insert(data)
    except CampaignStatsError:
        raise
    except Exception as e:
        logger.error(f"Error creating campaign: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating campaign: {str(e)}")

    dispatch(record["campaign_id"], None, record, claims.uid)
    logger.info(f"Campaign created successfully: {record['campaign_id']}")
    return {
        "message": "Campaign created successfully",
        "campaign_id": record["campaign_id"],
        "campaign": record,
    }


@router.patch("/campaigns/{campaign_id}")
async def update_campaign(
    campaign_id: str,
    payload: CampaignUpdate,
    claims: Claims = Depends(current_claims),
    repository=Depends(get_campaign_repository),
    dispatch=Depends(get_dispatcher),
):
    changes = payload.model_dump(exclude_unset=True)
    existing = await repository.get(campaign_id)
    if not existing:
        raise NotFound("Campaign not found")

    validate_campaign(
        changes.get("title"),
        changes.get("start_at", existing.get("start_at")),
        changes.get("end_at", existing.get("end_at")),
    )

    try:
        result = await repository.update(campaign_id, changes)
    except Exception as e:
        logger.error(f"Error updating campaign {campaign_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating campaign: {str(e)}")
    if result is None:
        raise NotFound("Campaign not found")

    before, after = result
    dispatch(campaign_id, before, after, claims.uid)
    logger.info(f"Campaign {campaign_id} updated by {claims.uid}: {sorted(changes)}")
    return {"message": "Campaign updated successfully", "campaign_id": campaign_id, "campaign": after}


@router.post("/campaigns/{campaign_id}/publish")
async def toggle_publish(
    campaign_id: str,
    payload: PublishRequest,
    claims: Claims = Depends(admin_claims),
    repository=Depends(get_campaign_repository),
    dispatch=Depends(get_dispatcher),
    audit=Depends(get_audit_writer),
):
    """
    Admin-only publish/unpublish. Returns the derived status after the change.
    """
    result = await repository.update(campaign_id, {"is_published": payload.publish})
    if result is None:
        raise NotFound("Campaign not found")

    before, after = result
    dispatch(campaign_id, before, after, claims.uid)

    status = snapshot_status(CampaignSnapshot.from_document(after), datetime.now(timezone.utc))
    await audit(
        action="publish" if payload.publish else "unpublish",
        campaign_id=campaign_id,
        source="api/toggle_publish",
        after={"is_published": payload.publish, "status": status},
        actor_uid=claims.uid,
    )
    logger.info(f"Campaign {campaign_id} {'published' if payload.publish else 'unpublished'} by {claims.uid} -> {status}")
    return {"ok": True, "status": status}


@router.delete("/campaigns/{campaign_id}")
async def hard_delete_campaign(
    campaign_id: str,
    claims: Claims = Depends(current_claims),
    repository=Depends(get_campaign_repository),
    dispatch=Depends(get_dispatcher),
    audit=Depends(get_audit_writer),
):
    """
    Hard delete a campaign. Deleting a missing campaign is not an error.
    """
    campaign_id = campaign_id.strip()
    if not campaign_id:
        raise InvalidArgument("campaign_id is required.")

    try:
        before = await repository.delete(campaign_id)
    except Exception as e:
        logger.error(f"[DELETE] Campaign delete failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Campaign delete failed: {str(e)}")

    if before is None:
        logger.info(f"[DELETE] Campaign {campaign_id} already gone")
        return {"ok": True, "deleted": False}

    dispatch(campaign_id, before, None, claims.uid)
    await audit(
        action="campaign_hard_delete",
        campaign_id=campaign_id,
        source="api/hard_delete_campaign",
        before=before,
        actor_uid=claims.uid,
    )
    return {"ok": True, "deleted": True}


@router.get("/campaigns/{campaign_id}/status")
async def campaign_status(
    campaign_id: str,
    claims: Claims = Depends(current_claims),
    repository=Depends(get_campaign_repository),
):
    record = await repository.get(campaign_id)
    if not record:
        raise NotFound("Campaign not found")
    status = snapshot_status(CampaignSnapshot.from_document(record), datetime.now(timezone.utc))
    return {"campaign_id": campaign_id, "status": status}
