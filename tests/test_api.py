"""HTTP surface tests over the ASGI app with a per-test database."""

import sys
from datetime import timedelta
from pathlib import Path

import pytest
import pytest_asyncio

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from httpx import ASGITransport, AsyncClient

from api.main import app
from database import get_db
from database.models import utcnow
from domain import accounts

ADMIN_EMAIL = "root@example.com"
ADMIN_PASSWORD = "admin-pass"
COMMENT = "届いてすぐ使いました。最高です。"


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _register(client, email="taro@example.com"):
    resp = await client.post("/api/auth/register", json={
        "email": email, "password": "secret1", "password_confirmation": "secret1", "name": "Taro",
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def _admin(client, session):
    await accounts.ensure_admin(session, ADMIN_EMAIL, ADMIN_PASSWORD)
    resp = await client.post("/api/admin/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


# ── Auth ──

@pytest.mark.asyncio
async def test_register_login_logout(client):
    headers = await _register(client)

    me = await client.get("/api/users/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "taro@example.com"

    login = await client.post("/api/auth/login", json={"email": "taro@example.com", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["message"] == "ログインしました"

    out = await client.post("/api/auth/logout", headers=headers)
    assert out.json() == {"message": "ログアウトしました"}
    revoked = await client.get("/api/users/me", headers=headers)
    assert revoked.status_code == 401
    assert "error" in revoked.json()


@pytest.mark.asyncio
async def test_register_validation_and_duplicates(client):
    bad = await client.post("/api/auth/register", json={
        "email": "broken", "password": "123", "password_confirmation": "456", "name": "X",
    })
    assert bad.status_code == 422
    assert "Email is invalid" in bad.json()["error"]
    assert "Password confirmation doesn't match Password" in bad.json()["error"]

    await _register(client)
    dup = await client.post("/api/auth/register", json={
        "email": "taro@example.com", "password": "secret1", "name": "Taro",
    })
    assert dup.status_code == 422


@pytest.mark.asyncio
async def test_wrong_password(client):
    await _register(client)
    resp = await client.post("/api/auth/login", json={"email": "taro@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "メールアドレスまたはパスワードが間違っています"}


# ── Public campaigns and entries ──

@pytest.mark.asyncio
async def test_campaign_listing_and_apply(client, factory):
    campaign = await factory.campaign()
    await factory.campaign(status="draft")

    listing = await client.get("/api/campaigns")
    body = listing.json()
    assert body["total"] == 1
    assert body["campaigns"][0]["id"] == campaign.id
    assert body["campaigns"][0]["entry_count"] == 0
    assert "name" in body["campaigns"][0]["company"]

    anonymous = await client.get(f"/api/campaigns/{campaign.id}")
    assert anonymous.json()["campaign"]["can_apply"] is False

    headers = await _register(client)
    detail = await client.get(f"/api/campaigns/{campaign.id}", headers=headers)
    assert detail.json()["campaign"]["can_apply"] is True

    applied = await client.post(f"/api/campaigns/{campaign.id}/entry", headers=headers)
    assert applied.status_code == 201
    assert applied.json()["message"] == "応募が完了しました"
    assert applied.json()["entry"]["status"] == "pending"

    again = await client.post(f"/api/campaigns/{campaign.id}/entry", headers=headers)
    assert again.status_code == 422
    assert again.json() == {"error": "既に応募済みです"}

    done = await client.get(f"/api/campaigns/{campaign.id}/entry", headers=headers)
    assert done.status_code == 200
    assert done.json()["entry"]["id"] == applied.json()["entry"]["id"]

    mine = await client.get("/api/users/me/entries", headers=headers)
    assert mine.json()["total"] == 1
    assert mine.json()["entries"][0]["campaign"]["id"] == campaign.id


@pytest.mark.asyncio
async def test_apply_requires_login_and_window(client, factory):
    closed = await factory.campaign(starts_in=timedelta(days=-5), ends_in=timedelta(days=-1))

    anonymous = await client.post(f"/api/campaigns/{closed.id}/entry")
    assert anonymous.status_code == 401

    headers = await _register(client)
    late = await client.post(f"/api/campaigns/{closed.id}/entry", headers=headers)
    assert late.status_code == 422
    assert late.json() == {"error": "応募期間外です"}

    missing = await client.post("/api/campaigns/999/entry", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_malformed_ids_are_422(client, session):
    resp = await client.get("/api/campaigns/abc")
    assert resp.status_code == 422
    assert "error" in resp.json()

    too_big = 10**20
    for url in (f"/api/campaigns/{too_big}", f"/api/campaigns?page={too_big}", "/api/campaigns/0"):
        resp = await client.get(url)
        assert resp.status_code == 422, url
        assert "error" in resp.json()

    admin = await _admin(client, session)
    resp = await client.post("/api/admin/shipments", headers=admin, json={"entry_id": too_big, "address_id": 1})
    assert resp.status_code == 422
    resp = await client.delete(f"/api/admin/reviews/{too_big}", headers=admin)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_review_eligibility_and_posting(client, session, factory):
    campaign = await factory.campaign(ends_in=timedelta(days=2))
    headers = await _register(client)
    await client.post(f"/api/campaigns/{campaign.id}/entry", headers=headers)

    check = await client.get(f"/api/users/me/reviews/{campaign.id}/eligibility", headers=headers)
    assert check.json()["can_review"] is False

    rejected = await client.post(
        f"/api/campaigns/{campaign.id}/reviews", headers=headers, json={"rating": 5, "comment": COMMENT},
    )
    assert rejected.status_code == 422
    assert rejected.json() == {"error": "このキャンペーンにレビューできません"}

    campaign.end_at = utcnow() - timedelta(minutes=1)
    await session.commit()

    invalid = await client.post(
        f"/api/campaigns/{campaign.id}/reviews", headers=headers, json={"rating": 6, "comment": "short"},
    )
    assert invalid.status_code == 422

    posted = await client.post(
        f"/api/campaigns/{campaign.id}/reviews", headers=headers, json={"rating": 5, "comment": COMMENT},
    )
    assert posted.status_code == 201
    assert posted.json()["message"] == "レビューを投稿しました"
    assert posted.json()["review"]["user"]["name"] == "Taro"

    listing = await client.get(f"/api/campaigns/{campaign.id}/reviews")
    assert listing.json()["total"] == 1
    assert listing.json()["average_rating"] == 5.0


@pytest.mark.asyncio
async def test_address_book_endpoints(client):
    headers = await _register(client)
    payload = {
        "postal_code": "150-0001", "prefecture": "東京都", "city": "渋谷区",
        "address1": "神宮前1-1-1", "phone": "090-1111-2222", "is_default": True,
    }
    first = (await client.post("/api/users/me/addresses", headers=headers, json=payload)).json()["address"]
    second = (await client.post("/api/users/me/addresses", headers=headers, json=payload)).json()["address"]

    listing = (await client.get("/api/users/me/addresses", headers=headers)).json()["addresses"]
    defaults = {a["id"]: a["is_default"] for a in listing}
    assert defaults == {first["id"]: False, second["id"]: True}

    other = await _register(client, email="hanako@example.com")
    stolen = await client.put(f"/api/users/me/addresses/{first['id']}", headers=other, json={"city": "港区"})
    assert stolen.status_code == 404

    gone = await client.delete(f"/api/users/me/addresses/{first['id']}", headers=headers)
    assert gone.status_code == 200


# ── Admin ──

@pytest.mark.asyncio
async def test_admin_requires_admin_principal(client):
    assert (await client.get("/api/admin/dashboard")).status_code == 401

    user_headers = await _register(client)
    resp = await client.get("/api/admin/dashboard", headers=user_headers)
    assert resp.status_code == 401
    assert resp.json() == {"error": "管理者権限が必要です"}


@pytest.mark.asyncio
async def test_admin_campaign_lifecycle(client, session):
    admin = await _admin(client, session)

    company = await client.post("/api/admin/companies", headers=admin, json={
        "name": "Acme", "email": "acme@example.com", "contact_name": "Suzuki",
        "contact_phone": "03-1111-2222", "postal_code": "100-0001", "prefecture": "東京都",
        "city": "千代田区", "address1": "1-1",
        "sns_links": [{"sns_type": "instagram", "sns_url": "https://instagram.com/acme"}],
    })
    assert company.status_code == 201, company.text
    company_id = company.json()["company"]["id"]

    now = utcnow()
    created = await client.post("/api/admin/campaigns", headers=admin, json={
        "company_id": company_id,
        "title": "Soap",
        "description": "Handmade soap",
        "start_at": (now - timedelta(days=1)).isoformat() + "Z",
        "end_at": (now + timedelta(days=5)).isoformat() + "+00:00",
    })
    assert created.status_code == 201, created.text
    campaign = created.json()["campaign"]
    assert campaign["status"] == "draft"
    assert created.json()["message"] == "キャンペーンが作成されました"

    bad_status = await client.put(f"/api/admin/campaigns/{campaign['id']}", headers=admin, json={"status": "paused"})
    assert bad_status.status_code == 422

    activated = await client.put(f"/api/admin/campaigns/{campaign['id']}", headers=admin, json={"status": "active"})
    assert activated.json()["campaign"]["status"] == "active"

    public = await client.get("/api/campaigns")
    assert [c["id"] for c in public.json()["campaigns"]] == [campaign["id"]]

    deleted = await client.delete(f"/api/admin/campaigns/{campaign['id']}", headers=admin)
    assert deleted.json() == {"message": "キャンペーンが削除されました"}
    assert (await client.get(f"/api/campaigns/{campaign['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_admin_entry_and_shipment_flow(client, session, factory):
    admin = await _admin(client, session)
    campaign = await factory.campaign()
    headers = await _register(client)
    entry = (await client.post(f"/api/campaigns/{campaign.id}/entry", headers=headers)).json()["entry"]
    address = (await client.post("/api/users/me/addresses", headers=headers, json={
        "postal_code": "150-0001", "prefecture": "東京都", "city": "渋谷区",
        "address1": "神宮前1-1-1", "phone": "090-1111-2222",
    })).json()["address"]

    bogus = await client.put(f"/api/admin/entries/{entry['id']}", headers=admin, json={"status": "lucky"})
    assert bogus.status_code == 422

    winner = await client.put(f"/api/admin/entries/{entry['id']}", headers=admin, json={"status": "winner"})
    assert winner.json()["entry"]["status"] == "winner"
    assert winner.json()["message"] == "応募状況が更新されました"

    filtered = await client.get("/api/admin/entries?status=winner", headers=admin)
    assert filtered.json()["total"] == 1

    shipment = await client.post(
        "/api/admin/shipments", headers=admin, json={"entry_id": entry["id"], "address_id": address["id"]},
    )
    assert shipment.status_code == 201, shipment.text
    shipment_id = shipment.json()["shipment"]["id"]
    assert shipment.json()["shipment"]["status"] == "preparing"

    dup = await client.post(
        "/api/admin/shipments", headers=admin, json={"entry_id": entry["id"], "address_id": address["id"]},
    )
    assert dup.status_code == 422

    shipped = await client.put(f"/api/admin/shipments/{shipment_id}", headers=admin, json={"status": "shipped"})
    assert shipped.json()["shipment"]["shipped_at"] is None
    assert shipped.json()["message"] == "配送状況が更新されました"

    stamped = await client.put(
        f"/api/admin/shipments/{shipment_id}", headers=admin, json={"shipped_at": "2024-03-05T00:00:00Z"},
    )
    assert stamped.json()["shipment"]["tracking_info"] == "発送日: 2024年03月05日"
    assert stamped.json()["shipment"]["status"] == "shipped"

    detail = await client.get(f"/api/admin/entries/{entry['id']}", headers=admin)
    assert detail.json()["entry"]["shipment"]["id"] == shipment_id

    dashboard = await client.get("/api/admin/dashboard", headers=admin)
    assert dashboard.json()["entries_count"] == 1
    assert dashboard.json()["recent_entries"][0]["user"]["email"] == "taro@example.com"


@pytest.mark.asyncio
async def test_admin_reviews(client, session, factory):
    admin = await _admin(client, session)
    campaign = await factory.campaign()
    keep = await factory.review(await factory.user(), campaign, rating=5)
    drop = await factory.review(await factory.user(), campaign, rating=1)

    fives = await client.get("/api/admin/reviews?rating=5", headers=admin)
    assert [r["id"] for r in fives.json()["reviews"]] == [keep.id]

    shown = await client.get(f"/api/admin/reviews/{drop.id}", headers=admin)
    assert shown.json()["review"]["rating_text"] == "非常に悪い"

    removed = await client.delete(f"/api/admin/reviews/{drop.id}", headers=admin)
    assert removed.json() == {"message": "レビューが削除されました"}
    assert (await client.get(f"/api/admin/reviews/{drop.id}", headers=admin)).status_code == 404
