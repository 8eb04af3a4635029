"""Public campaign router - listings, detail, entry and reviews."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import MAX_PAGE, PathId, Principal, get_principal, require_user
from api.serializers import campaign_detail_json, campaign_json, entry_json, review_json
from database import get_db
from database.schemas import ReviewIn
from domain import campaigns, entries, reporting, reviews
from domain.errors import NotFound

logger = logging.getLogger("sampling.campaigns")

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.get("")
async def list_campaigns(
    sort: str | None = Query(None),
    recommend: bool = Query(False),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Campaigns currently open for entries."""
    result = await campaigns.list_active(db, sort=sort, recommend=recommend, page=page, per_page=per_page)
    stats = await reporting.campaign_stats(db, [c.id for c in result.items])
    return result.as_payload("campaigns", lambda c: campaign_json(c, stats[c.id]))


@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: PathId,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    campaign = await campaigns.get(db, campaign_id)
    stats = await reporting.campaign_stats(db, [campaign.id])
    can_apply = await entries.can_apply(db, principal.user_id, campaign)
    return {"campaign": campaign_detail_json(campaign, stats[campaign.id], can_apply)}


@router.post("/{campaign_id}/entry", status_code=201)
async def apply(
    campaign_id: PathId,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await entries.apply(db, principal.user_id, campaign_id)
    logger.info("Entry %d: user=%d campaign=%d", entry.id, principal.user_id, campaign_id)
    return {"entry": entry_json(entry), "message": "応募が完了しました"}


@router.get("/{campaign_id}/entry")
async def get_entry(
    campaign_id: PathId,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's entry for this campaign (entry-done page)."""
    campaign = await campaigns.get(db, campaign_id)
    entry = await entries.find_for_user(db, principal.user_id, campaign_id)
    if entry is None:
        raise NotFound("応募が見つかりません")
    return {"entry": entry_json(entry), "campaign": {"id": campaign.id, "title": campaign.title}}


@router.get("/{campaign_id}/reviews")
async def list_reviews(
    campaign_id: PathId,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await reviews.list_for_campaign(db, campaign_id, page=page, per_page=per_page)
    payload = result.as_payload("reviews", review_json)
    payload["average_rating"] = await reporting.average_rating(db, campaign_id)
    return payload


@router.post("/{campaign_id}/reviews", status_code=201)
async def post_review(
    campaign_id: PathId,
    body: ReviewIn,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    review = await reviews.submit(db, principal.user_id, campaign_id, body.rating, body.comment)
    review = await reviews.get(db, review.id)
    return {"review": review_json(review), "message": "レビューを投稿しました"}
