"""End-to-end lifecycle scenarios across the domain modules."""

import sys
from datetime import timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from database.models import utcnow
from domain import addresses, campaigns, entries, reporting, reviews, shipments
from domain.errors import AlreadyApplied, AlreadyReviewed, NotEligible

COMMENT = "香りが良くて使いやすかったです。"


@pytest.mark.asyncio
async def test_winner_path_apply_ship_review(session, factory):
    company = await factory.company()
    now = utcnow()
    campaign = await campaigns.create(session, {
        "company_id": company.id,
        "title": "Hand cream monitor",
        "description": "Try our new hand cream",
        "start_at": now - timedelta(days=1),
        "end_at": now + timedelta(days=10),
        "status": "active",
    })
    user = await factory.user()
    address = await addresses.create(session, user.id, {
        "postal_code": "530-0001", "prefecture": "大阪府", "city": "大阪市北区",
        "address1": "梅田1-1-1", "phone": "090-0000-0000", "is_default": True,
    })

    entry = await entries.apply(session, user.id, campaign.id)
    assert entry.status == "pending"
    with pytest.raises(NotEligible):
        await reviews.submit(session, user.id, campaign.id, 5, COMMENT)

    await entries.admin_set_status(session, entry.id, "winner")
    assert await reviews.can_review(session, user.id, campaign.id) is True

    shipment = await shipments.create(session, entry.id, address.id)
    shipped_at = utcnow()
    shipment = await shipments.update_status(session, shipment.id, "shipped", shipped_at=shipped_at)
    assert shipment.status == "shipped"
    assert shipments.tracking_info(shipment) == shipped_at.strftime("発送日: %Y年%m月%d日")

    entry = await entries.get(session, entry.id)
    assert entry.status == "winner"
    assert campaigns.in_window(campaign)

    review = await reviews.submit(session, user.id, campaign.id, 5, COMMENT)
    assert review.rating == 5

    with pytest.raises(AlreadyApplied):
        await entries.apply(session, user.id, campaign.id)
    with pytest.raises(AlreadyReviewed):
        await reviews.submit(session, user.id, campaign.id, 4, COMMENT)

    stats = await reporting.campaign_stats(session, [campaign.id])
    assert stats[campaign.id].entry_count == 1
    assert stats[campaign.id].winner_count == 1
    assert stats[campaign.id].average_rating == 5.0


@pytest.mark.asyncio
async def test_shipped_entry_waits_for_campaign_end(session, factory):
    campaign = await factory.campaign()
    user = await factory.user()
    address = await factory.address(user, is_default=True)
    entry = await entries.apply(session, user.id, campaign.id)
    await entries.admin_set_status(session, entry.id, "winner")
    await shipments.create(session, entry.id, address.id)

    entry = await entries.admin_set_status(session, entry.id, "shipped")
    assert entry.shipment.status == "preparing"
    assert entries.entry_can_review(entry)

    # shipped is no longer "winner" and the campaign is still running
    assert await reviews.can_review(session, user.id, campaign.id) is False

    later = campaign.end_at + timedelta(seconds=1)
    review = await reviews.submit(session, user.id, campaign.id, 5, COMMENT, now=later)
    assert review.rating == 5


@pytest.mark.asyncio
async def test_winner_reviews_while_campaign_runs(session, factory):
    campaign = await factory.campaign()
    user = await factory.user()
    entry = await entries.apply(session, user.id, campaign.id)
    await entries.admin_set_status(session, entry.id, "winner")

    await reviews.submit(session, user.id, campaign.id, 4, COMMENT)
    assert await reporting.average_rating(session, campaign.id) == 4.0


@pytest.mark.asyncio
async def test_non_winner_reviews_after_campaign_ends(session, factory):
    campaign = await factory.campaign(ends_in=timedelta(days=3))
    applied_at = utcnow()
    winner, loser, bystander = await factory.user(), await factory.user(), await factory.user()

    await entries.apply(session, winner.id, campaign.id, now=applied_at)
    loser_entry = await entries.apply(session, loser.id, campaign.id, now=applied_at)
    await entries.admin_set_status(session, loser_entry.id, "loser")

    assert await reviews.can_review(session, loser.id, campaign.id) is False

    after_end = campaign.end_at + timedelta(days=1)
    assert await reviews.can_review(session, loser.id, campaign.id, now=after_end) is True
    assert await reviews.can_review(session, winner.id, campaign.id, now=after_end) is True
    assert await reviews.can_review(session, bystander.id, campaign.id, now=after_end) is False

    await reviews.submit(session, loser.id, campaign.id, 2, COMMENT, now=after_end)
    await reviews.submit(session, winner.id, campaign.id, 3, COMMENT, now=after_end)
    assert await reporting.average_rating(session, campaign.id) == 2.5
