"""Aggregate figures: average rating rounding, per-campaign stats, dashboard."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from domain import reporting


@pytest.mark.parametrize("ratings, expected", [
    ([], 0.0),
    ([5, 4], 4.5),
    ([3], 3.0),
    ([4, 4, 5], 4.3),
    ([1, 2, 2], 1.7),
])
def test_mean_rating(ratings, expected):
    assert reporting.mean_rating(ratings) == expected


def test_round_rating_rounds_half_up():
    assert reporting.round_rating(85, 20) == 4.3
    assert reporting.round_rating(45, 20) == 2.3
    assert reporting.round_rating(0, 0) == 0.0


@pytest.mark.asyncio
async def test_average_rating_for_campaign(session, factory):
    campaign = await factory.campaign()
    assert await reporting.average_rating(session, campaign.id) == 0.0

    await factory.review(await factory.user(), campaign, rating=5)
    await factory.review(await factory.user(), campaign, rating=4)
    assert await reporting.average_rating(session, campaign.id) == 4.5


@pytest.mark.asyncio
async def test_campaign_stats_batched(session, factory):
    busy = await factory.campaign()
    quiet = await factory.campaign()
    for status in ("winner", "winner", "loser", "pending"):
        await factory.entry(await factory.user(), busy, status=status)
    await factory.review(await factory.user(), busy, rating=3)

    stats = await reporting.campaign_stats(session, [busy.id, quiet.id])
    assert stats[busy.id].entry_count == 4
    assert stats[busy.id].winner_count == 2
    assert stats[busy.id].average_rating == 3.0
    assert stats[quiet.id] == reporting.CampaignStats()

    assert await reporting.entry_count(session, busy.id) == 4
    assert await reporting.winner_count(session, busy.id) == 2


@pytest.mark.asyncio
async def test_dashboard(session, factory):
    company = await factory.company()
    active = await factory.campaign(company)
    await factory.campaign(company, status="draft")
    for _ in range(7):
        user = await factory.user()
        await factory.entry(user, active)
        await factory.review(user, active)

    data = await reporting.dashboard(session)
    assert data["campaigns_count"] == 2
    assert data["active_campaigns_count"] == 1
    assert data["entries_count"] == 7
    assert data["reviews_count"] == 7
    assert len(data["recent_entries"]) == 5
    assert len(data["recent_reviews"]) == 5
    assert data["recent_entries"][0].campaign.id == active.id
