"""Derived, read-only figures: per-campaign aggregates and the admin dashboard.

Nothing here is cached; every call reads the current rows.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Campaign, Entry, Review
from domain.statuses import CampaignStatus, EntryStatus

RECENT_LIMIT = 5


@dataclass
class CampaignStats:
    entry_count: int = 0
    winner_count: int = 0
    average_rating: float = 0.0


def round_rating(total: int, count: int) -> float:
    """Mean of ``count`` ratings summing to ``total``, half-up to one decimal."""
    if not count:
        return 0.0
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def mean_rating(ratings: Iterable[int]) -> float:
    ratings = list(ratings)
    return round_rating(sum(ratings), len(ratings))


async def entry_count(session: AsyncSession, campaign_id: int) -> int:
    result = await session.execute(
        select(func.count(Entry.id)).where(Entry.campaign_id == campaign_id)
    )
    return result.scalar() or 0


async def winner_count(session: AsyncSession, campaign_id: int) -> int:
    result = await session.execute(
        select(func.count(Entry.id)).where(
            Entry.campaign_id == campaign_id,
            Entry.status == EntryStatus.WINNER.value,
        )
    )
    return result.scalar() or 0


async def average_rating(session: AsyncSession, campaign_id: int) -> float:
    row = (await session.execute(
        select(func.coalesce(func.sum(Review.rating), 0), func.count(Review.id))
        .where(Review.campaign_id == campaign_id)
    )).one()
    return round_rating(row[0], row[1])


async def campaign_stats(session: AsyncSession, campaign_ids: Iterable[int]) -> dict[int, CampaignStats]:
    """Batched entry/winner counts and average rating for a page of campaigns."""
    ids = list(set(campaign_ids))
    stats = {cid: CampaignStats() for cid in ids}
    if not ids:
        return stats

    entry_rows = await session.execute(
        select(
            Entry.campaign_id,
            func.count(Entry.id),
            func.sum(case((Entry.status == EntryStatus.WINNER.value, 1), else_=0)),
        )
        .where(Entry.campaign_id.in_(ids))
        .group_by(Entry.campaign_id)
    )
    for cid, total, winners in entry_rows.all():
        stats[cid].entry_count = total or 0
        stats[cid].winner_count = winners or 0

    review_rows = await session.execute(
        select(Review.campaign_id, func.sum(Review.rating), func.count(Review.id))
        .where(Review.campaign_id.in_(ids))
        .group_by(Review.campaign_id)
    )
    for cid, total, count in review_rows.all():
        stats[cid].average_rating = round_rating(total or 0, count)

    return stats


async def dashboard(session: AsyncSession) -> dict:
    """Admin dashboard counts plus the five newest entries and reviews."""
    campaigns_count = (await session.execute(select(func.count(Campaign.id)))).scalar() or 0
    active_campaigns_count = (await session.execute(
        select(func.count(Campaign.id)).where(Campaign.status == CampaignStatus.ACTIVE.value)
    )).scalar() or 0
    entries_count = (await session.execute(select(func.count(Entry.id)))).scalar() or 0
    reviews_count = (await session.execute(select(func.count(Review.id)))).scalar() or 0

    recent_entries = (await session.execute(
        select(Entry)
        .options(selectinload(Entry.user), selectinload(Entry.campaign))
        .order_by(Entry.created_at.desc(), Entry.id.desc())
        .limit(RECENT_LIMIT)
    )).scalars().all()
    recent_reviews = (await session.execute(
        select(Review)
        .options(
            selectinload(Review.user),
            selectinload(Review.campaign).selectinload(Campaign.company),
        )
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(RECENT_LIMIT)
    )).scalars().all()

    return {
        "campaigns_count": campaigns_count,
        "active_campaigns_count": active_campaigns_count,
        "entries_count": entries_count,
        "reviews_count": reviews_count,
        "recent_entries": list(recent_entries),
        "recent_reviews": list(recent_reviews),
    }
