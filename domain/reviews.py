"""Review eligibility and submission.

Eligibility is an OR: an entrant may review once selected as winner, or once the
campaign's end_at has passed regardless of selection. Both conditions also
require an entry and no earlier review.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Campaign, Review, utcnow
from domain import campaigns, entries
from domain.errors import AlreadyReviewed, NotEligible, NotFound, ValidationError
from domain.pagination import Page, paginate
from domain.statuses import EntryStatus

RATING_MIN, RATING_MAX = 1, 5
COMMENT_MIN, COMMENT_MAX = 10, 1000

RATING_TEXT = {
    5: "非常に良い",
    4: "良い",
    3: "普通",
    2: "悪い",
    1: "非常に悪い",
}


def rating_text(rating: int) -> str | None:
    return RATING_TEXT.get(rating)


def validate(rating, comment) -> None:
    messages = []
    if rating is None:
        messages.append("Rating can't be blank")
    elif isinstance(rating, bool) or not isinstance(rating, int) or not RATING_MIN <= rating <= RATING_MAX:
        messages.append("Rating is not included in the list")

    if comment is None or not str(comment).strip():
        messages.append("Comment can't be blank")
    elif len(comment) < COMMENT_MIN:
        messages.append(f"Comment is too short (minimum is {COMMENT_MIN} characters)")
    elif len(comment) > COMMENT_MAX:
        messages.append(f"Comment is too long (maximum is {COMMENT_MAX} characters)")

    if messages:
        raise ValidationError(messages)


async def find_for_user(session: AsyncSession, user_id: int, campaign_id: int) -> Review | None:
    result = await session.execute(
        select(Review).where(Review.user_id == user_id, Review.campaign_id == campaign_id)
    )
    return result.scalar_one_or_none()


async def can_review(
    session: AsyncSession, user_id: int, campaign_id: int, now: datetime | None = None,
) -> bool:
    entry = await entries.find_for_user(session, user_id, campaign_id)
    if entry is None:
        return False
    if await find_for_user(session, user_id, campaign_id) is not None:
        return False

    campaign = await session.get(Campaign, campaign_id)
    if campaign is None:
        return False
    now = now or utcnow()
    return entry.status == EntryStatus.WINNER.value or campaign.end_at < now


async def submit(
    session: AsyncSession,
    user_id: int,
    campaign_id: int,
    rating,
    comment,
    now: datetime | None = None,
) -> Review:
    """Record a review after validating fields and eligibility.

    Raises:
        NotFound: no such campaign.
        ValidationError: rating outside 1..5 or comment outside 10..1000 chars.
        AlreadyReviewed: the user already reviewed (pre-check or unique index).
        NotEligible: no entry, or neither winner nor past end_at.
    """
    await campaigns.get(session, campaign_id)
    validate(rating, comment)

    if not await can_review(session, user_id, campaign_id, now):
        if await find_for_user(session, user_id, campaign_id) is not None:
            raise AlreadyReviewed()
        raise NotEligible()

    review = Review(user_id=user_id, campaign_id=campaign_id, rating=rating, comment=comment)
    session.add(review)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning("Concurrent review rejected by store: user={} campaign={}", user_id, campaign_id)
        raise AlreadyReviewed()

    logger.info("Review {} posted: user={} campaign={} rating={}", review.id, user_id, campaign_id, rating)
    return review


async def get(session: AsyncSession, review_id: int) -> Review:
    result = await session.execute(
        select(Review)
        .options(
            selectinload(Review.user),
            selectinload(Review.campaign).selectinload(Campaign.company),
        )
        .where(Review.id == review_id)
    )
    review = result.scalar_one_or_none()
    if review is None:
        raise NotFound("レビューが見つかりません")
    return review


async def delete(session: AsyncSession, review_id: int) -> None:
    review = await get(session, review_id)
    await session.delete(review)
    await session.commit()
    logger.info("Review {} deleted by admin", review_id)


async def list_for_campaign(
    session: AsyncSession, campaign_id: int, page: int | None = None, per_page: int | None = None,
) -> Page:
    await campaigns.get(session, campaign_id)
    query = (
        select(Review)
        .where(Review.campaign_id == campaign_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return await paginate(session, query, page, per_page, default_per_page=10, options=(selectinload(Review.user),))


async def list_for_user(
    session: AsyncSession, user_id: int, page: int | None = None, per_page: int | None = None,
) -> Page:
    query = (
        select(Review)
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return await paginate(session, query, page, per_page, default_per_page=10, options=(selectinload(Review.campaign),))


async def list_all(
    session: AsyncSession,
    rating: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> Page:
    query = select(Review).order_by(Review.created_at.desc(), Review.id.desc())
    if rating is not None:
        query = query.where(Review.rating == rating)
    return await paginate(
        session, query, page, per_page,
        default_per_page=20,
        options=(
            selectinload(Review.user),
            selectinload(Review.campaign).selectinload(Campaign.company),
        ),
    )
