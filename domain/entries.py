"""Entry lifecycle -- application eligibility, creation and admin status changes.

A user may hold at most one entry per campaign. The pre-check in ``apply`` gives
the friendly error in the common case; the ``uq_entry_user_campaign`` constraint
is what actually stops two concurrent applications.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Campaign, Entry
from domain import campaigns
from domain.errors import AlreadyApplied, NotFound, OutOfWindow, ValidationError
from domain.pagination import Page, paginate
from domain.statuses import ENTRY_TRANSITIONS, EntryStatus, is_expected_transition, parse_status

REVIEWABLE_STATUSES = {EntryStatus.SHIPPED.value, EntryStatus.COMPLETED.value}


def entry_can_review(entry: Entry) -> bool:
    """Fulfilment finished (shipped or completed)."""
    return entry.status in REVIEWABLE_STATUSES


async def find_for_user(session: AsyncSession, user_id: int, campaign_id: int) -> Entry | None:
    result = await session.execute(
        select(Entry).where(Entry.user_id == user_id, Entry.campaign_id == campaign_id)
    )
    return result.scalar_one_or_none()


async def can_apply(
    session: AsyncSession, user_id: int | None, campaign: Campaign, now: datetime | None = None,
) -> bool:
    if user_id is None or not campaigns.in_window(campaign, now):
        return False
    return await find_for_user(session, user_id, campaign.id) is None


async def apply(
    session: AsyncSession, user_id: int, campaign_id: int, now: datetime | None = None,
) -> Entry:
    """Create a pending entry for ``user_id`` on ``campaign_id``.

    Raises:
        NotFound: no such campaign.
        OutOfWindow: campaign not active or outside [start_at, end_at].
        AlreadyApplied: the user already holds an entry, including when a
            concurrent request won the insert race.
    """
    campaign = await campaigns.get(session, campaign_id)
    if not campaigns.in_window(campaign, now):
        raise OutOfWindow()
    if await find_for_user(session, user_id, campaign_id) is not None:
        raise AlreadyApplied()

    entry = Entry(user_id=user_id, campaign_id=campaign_id, status=EntryStatus.PENDING.value)
    session.add(entry)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        if await find_for_user(session, user_id, campaign_id) is not None:
            logger.warning("Concurrent apply rejected by store: user={} campaign={}", user_id, campaign_id)
            raise AlreadyApplied()
        raise ValidationError("User must exist")

    logger.info("Entry {} created: user={} campaign={}", entry.id, user_id, campaign_id)
    return entry


async def get(session: AsyncSession, entry_id: int) -> Entry:
    result = await session.execute(
        select(Entry)
        .options(
            selectinload(Entry.user),
            selectinload(Entry.campaign).selectinload(Campaign.company),
            selectinload(Entry.shipment),
        )
        .where(Entry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFound("応募が見つかりません")
    return entry


async def admin_set_status(session: AsyncSession, entry_id: int, new_status) -> Entry:
    """Overwrite an entry's status. Any enum value is accepted from any state."""
    status = parse_status(EntryStatus, new_status)
    entry = await get(session, entry_id)
    current = parse_status(EntryStatus, entry.status)
    if not is_expected_transition(ENTRY_TRANSITIONS, current, status):
        logger.warning("Entry {} moved off the usual path: {} -> {}", entry_id, current.value, status.value)

    entry.status = status.value
    await session.commit()
    logger.info("Entry {} status set to {}", entry_id, status.value)
    return entry


async def delete(session: AsyncSession, entry_id: int) -> None:
    """Delete an entry and its shipment."""
    entry = await get(session, entry_id)
    await session.delete(entry)
    await session.commit()
    logger.info("Entry {} deleted", entry_id)


async def list_for_user(
    session: AsyncSession, user_id: int, page: int | None = None, per_page: int | None = None,
) -> Page:
    query = (
        select(Entry)
        .where(Entry.user_id == user_id)
        .order_by(Entry.created_at.desc(), Entry.id.desc())
    )
    return await paginate(
        session, query, page, per_page,
        default_per_page=10,
        options=(selectinload(Entry.campaign), selectinload(Entry.shipment)),
    )


async def list_for_campaign(
    session: AsyncSession, campaign_id: int, page: int | None = None, per_page: int | None = None,
) -> Page:
    await campaigns.get(session, campaign_id)
    query = (
        select(Entry)
        .where(Entry.campaign_id == campaign_id)
        .order_by(Entry.created_at.desc(), Entry.id.desc())
    )
    return await paginate(
        session, query, page, per_page,
        default_per_page=20,
        options=(selectinload(Entry.user), selectinload(Entry.campaign)),
    )


async def list_all(
    session: AsyncSession,
    status: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> Page:
    query = select(Entry).order_by(Entry.created_at.desc(), Entry.id.desc())
    if status:
        query = query.where(Entry.status == parse_status(EntryStatus, status).value)
    return await paginate(
        session, query, page, per_page,
        default_per_page=20,
        options=(selectinload(Entry.user), selectinload(Entry.campaign)),
    )
