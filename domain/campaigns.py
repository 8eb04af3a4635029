"""Campaign registry -- the active window and admin CRUD."""

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Campaign, Company, utcnow
from domain.errors import NotFound
from domain.pagination import Page, paginate
from domain.statuses import CampaignStatus, parse_status
from domain.validation import raise_if, require

EDITABLE_FIELDS = ("company_id", "title", "description", "image_url", "start_at", "end_at", "status")
REQUIRED_FIELDS = ["company_id", "title", "description", "start_at", "end_at", "status"]
RECOMMEND_LIMIT = 3


def in_window(campaign: Campaign, now: datetime | None = None) -> bool:
    """Active status and ``start_at <= now <= end_at``."""
    now = now or utcnow()
    return (
        campaign.status == CampaignStatus.ACTIVE.value
        and campaign.start_at <= now <= campaign.end_at
    )


def _active_query(now: datetime):
    return select(Campaign).where(
        Campaign.status == CampaignStatus.ACTIVE.value,
        Campaign.start_at <= now,
        Campaign.end_at >= now,
    )


async def list_active(
    session: AsyncSession,
    sort: str | None = None,
    recommend: bool = False,
    page: int | None = None,
    per_page: int | None = None,
    now: datetime | None = None,
) -> Page:
    """Campaigns currently accepting entries.

    ``sort="new"`` orders newest first; ``recommend`` caps the listing at
    three campaigns for the recommended slot.
    """
    query = _active_query(now or utcnow())
    if sort == "new":
        query = query.order_by(Campaign.created_at.desc(), Campaign.id.desc())
    else:
        query = query.order_by(Campaign.id)
    return await paginate(
        session, query, page, per_page,
        default_per_page=20,
        cap=RECOMMEND_LIMIT if recommend else None,
        options=(selectinload(Campaign.company),),
    )


async def list_all(session: AsyncSession, page: int | None = None, per_page: int | None = None) -> Page:
    query = select(Campaign).order_by(Campaign.created_at.desc(), Campaign.id.desc())
    return await paginate(
        session, query, page, per_page,
        default_per_page=20,
        options=(selectinload(Campaign.company),),
    )


async def get(session: AsyncSession, campaign_id: int) -> Campaign:
    result = await session.execute(
        select(Campaign)
        .options(selectinload(Campaign.company).selectinload(Company.sns_links))
        .where(Campaign.id == campaign_id)
        .execution_options(populate_existing=True)
    )
    campaign = result.scalar_one_or_none()
    if campaign is None:
        raise NotFound("キャンペーンが見つかりません")
    return campaign


async def _validate(session: AsyncSession, values: dict) -> None:
    messages = require(values, REQUIRED_FIELDS)
    company_id = values.get("company_id")
    if company_id is not None and await session.get(Company, company_id) is None:
        messages.append("Company must exist")
    # end_at >= start_at is intentionally not checked; an inverted window never opens
    raise_if(messages)


async def create(session: AsyncSession, fields: dict) -> Campaign:
    values = {k: fields.get(k) for k in EDITABLE_FIELDS}
    if values.get("status") is None:
        values["status"] = CampaignStatus.DRAFT.value
    else:
        values["status"] = parse_status(CampaignStatus, values["status"]).value
    await _validate(session, values)

    campaign = Campaign(**values)
    session.add(campaign)
    await session.commit()
    logger.info("Campaign {} created ({})", campaign.id, campaign.title)
    return await get(session, campaign.id)


async def update(session: AsyncSession, campaign_id: int, fields: dict) -> Campaign:
    campaign = await get(session, campaign_id)
    changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    if "status" in changes and changes["status"] is not None:
        changes["status"] = parse_status(CampaignStatus, changes["status"]).value

    merged = {k: getattr(campaign, k) for k in EDITABLE_FIELDS}
    merged.update(changes)
    await _validate(session, merged)

    for key, value in changes.items():
        setattr(campaign, key, value)
    await session.commit()
    logger.info("Campaign {} updated: {}", campaign_id, sorted(changes))
    session.expire(campaign)
    return await get(session, campaign_id)


async def delete(session: AsyncSession, campaign_id: int) -> None:
    """Delete a campaign together with its entries, shipments and reviews."""
    campaign = await get(session, campaign_id)
    await session.delete(campaign)
    await session.commit()
    logger.info("Campaign {} deleted", campaign_id)
