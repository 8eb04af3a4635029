"""Admin back-office API -- campaigns, companies, entries, shipments, reviews."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import MAX_PAGE, PRINCIPAL_ADMIN, PathId, Principal, open_session, require_admin, revoke_session
from api.serializers import (
    admin_campaign_detail_json,
    admin_entry_detail_json,
    admin_entry_json,
    admin_review_json,
    campaign_json,
    company_json,
    shipment_detail_json,
    shipment_json,
)
from database import get_db
from database.models import Admin
from database.schemas import (
    CampaignIn,
    CampaignUpdateIn,
    CompanyIn,
    CompanyUpdateIn,
    EntryUpdateIn,
    LoginIn,
    ShipmentCreateIn,
    ShipmentUpdateIn,
)
from domain import accounts, campaigns, companies, entries, reporting, reviews, shipments
from domain.statuses import EntryStatus, ShipmentStatus

router = APIRouter(prefix="/api/admin", tags=["admin"])

logger = logging.getLogger("sampling.admin")


def _sns_payload(links) -> list[dict] | None:
    if links is None:
        return None
    return [{"sns_type": link.sns_type.value, "sns_url": link.sns_url} for link in links]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
@router.post("/auth/login")
async def admin_login(
    body: LoginIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    admin = await accounts.authenticate(db, Admin, body.email, body.password)
    token = await open_session(db, PRINCIPAL_ADMIN, admin.id, request)
    logger.info("Admin login: %s", admin.email)
    return {
        "access_token": token,
        "token_type": "bearer",
        "admin": {"id": admin.id, "email": admin.email, "name": admin.name},
        "message": "ログインしました",
    }


@router.post("/auth/logout")
async def admin_logout(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await revoke_session(db, principal.session_id, "logout")
    logger.info("Admin logout: %s", principal.admin.email)
    return {"message": "ログアウトしました"}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------
@router.get("/dashboard", dependencies=[Depends(require_admin)])
async def dashboard(db: AsyncSession = Depends(get_db)):
    data = await reporting.dashboard(db)
    data["recent_entries"] = [admin_entry_json(e) for e in data["recent_entries"]]
    data["recent_reviews"] = [admin_review_json(r) for r in data["recent_reviews"]]
    return data


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------
@router.get("/companies", dependencies=[Depends(require_admin)])
async def list_companies(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await companies.list_all(db, page=page, per_page=per_page)
    return result.as_payload("companies", company_json)


@router.get("/companies/{company_id}", dependencies=[Depends(require_admin)])
async def get_company(company_id: PathId, db: AsyncSession = Depends(get_db)):
    company = await companies.get(db, company_id)
    return {"company": company_json(company)}


@router.post("/companies", status_code=201, dependencies=[Depends(require_admin)])
async def create_company(body: CompanyIn, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude={"sns_links"})
    company = await companies.create(db, fields, _sns_payload(body.sns_links))
    logger.info("Company created: %s", company.name)
    return {"company": company_json(company), "message": "企業が登録されました"}


@router.put("/companies/{company_id}", dependencies=[Depends(require_admin)])
async def update_company(company_id: PathId, body: CompanyUpdateIn, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True, exclude={"sns_links"})
    sns_links = _sns_payload(body.sns_links) if "sns_links" in body.model_fields_set else None
    company = await companies.update(db, company_id, fields, sns_links)
    return {"company": company_json(company), "message": "企業情報が更新されました"}


@router.delete("/companies/{company_id}", dependencies=[Depends(require_admin)])
async def delete_company(company_id: PathId, db: AsyncSession = Depends(get_db)):
    await companies.delete(db, company_id)
    return {"message": "企業が削除されました"}


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------
@router.get("/campaigns", dependencies=[Depends(require_admin)])
async def list_campaigns(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await campaigns.list_all(db, page=page, per_page=per_page)
    stats = await reporting.campaign_stats(db, [c.id for c in result.items])
    return result.as_payload("campaigns", lambda c: campaign_json(c, stats[c.id], admin=True))


@router.get("/campaigns/{campaign_id}", dependencies=[Depends(require_admin)])
async def get_campaign(campaign_id: PathId, db: AsyncSession = Depends(get_db)):
    campaign = await campaigns.get(db, campaign_id)
    stats = await reporting.campaign_stats(db, [campaign.id])
    return {"campaign": admin_campaign_detail_json(campaign, stats[campaign.id])}


@router.post("/campaigns", status_code=201, dependencies=[Depends(require_admin)])
async def create_campaign(body: CampaignIn, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump()
    fields["status"] = body.status.value
    campaign = await campaigns.create(db, fields)
    stats = await reporting.campaign_stats(db, [campaign.id])
    return {
        "campaign": admin_campaign_detail_json(campaign, stats[campaign.id]),
        "message": "キャンペーンが作成されました",
    }


@router.put("/campaigns/{campaign_id}", dependencies=[Depends(require_admin)])
async def update_campaign(campaign_id: PathId, body: CampaignUpdateIn, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True)
    if body.status is not None:
        fields["status"] = body.status.value
    campaign = await campaigns.update(db, campaign_id, fields)
    stats = await reporting.campaign_stats(db, [campaign.id])
    return {
        "campaign": admin_campaign_detail_json(campaign, stats[campaign.id]),
        "message": "キャンペーンが更新されました",
    }


@router.delete("/campaigns/{campaign_id}", dependencies=[Depends(require_admin)])
async def delete_campaign(campaign_id: PathId, db: AsyncSession = Depends(get_db)):
    await campaigns.delete(db, campaign_id)
    return {"message": "キャンペーンが削除されました"}


@router.get("/campaigns/{campaign_id}/entries", dependencies=[Depends(require_admin)])
async def list_campaign_entries(
    campaign_id: PathId,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await entries.list_for_campaign(db, campaign_id, page=page, per_page=per_page)
    return result.as_payload("entries", admin_entry_json)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------
@router.get("/entries", dependencies=[Depends(require_admin)])
async def list_entries(
    status: EntryStatus | None = Query(None),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await entries.list_all(db, status=status.value if status else None, page=page, per_page=per_page)
    return result.as_payload("entries", admin_entry_json)


@router.get("/entries/{entry_id}", dependencies=[Depends(require_admin)])
async def get_entry(entry_id: PathId, db: AsyncSession = Depends(get_db)):
    entry = await entries.get(db, entry_id)
    return {"entry": admin_entry_detail_json(entry)}


@router.put("/entries/{entry_id}", dependencies=[Depends(require_admin)])
async def update_entry(entry_id: PathId, body: EntryUpdateIn, db: AsyncSession = Depends(get_db)):
    entry = await entries.admin_set_status(db, entry_id, body.status)
    return {"entry": admin_entry_detail_json(entry), "message": "応募状況が更新されました"}


@router.delete("/entries/{entry_id}", dependencies=[Depends(require_admin)])
async def delete_entry(entry_id: PathId, db: AsyncSession = Depends(get_db)):
    await entries.delete(db, entry_id)
    return {"message": "応募が削除されました"}


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------
@router.get("/shipments", dependencies=[Depends(require_admin)])
async def list_shipments(
    status: ShipmentStatus | None = Query(None),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await shipments.list_all(db, status=status.value if status else None, page=page, per_page=per_page)
    return result.as_payload("shipments", shipment_json)


@router.get("/shipments/{shipment_id}", dependencies=[Depends(require_admin)])
async def get_shipment(shipment_id: PathId, db: AsyncSession = Depends(get_db)):
    shipment = await shipments.get(db, shipment_id)
    return {"shipment": shipment_detail_json(shipment)}


@router.post("/shipments", status_code=201, dependencies=[Depends(require_admin)])
async def create_shipment(body: ShipmentCreateIn, db: AsyncSession = Depends(get_db)):
    shipment = await shipments.create(db, body.entry_id, body.address_id)
    return {"shipment": shipment_detail_json(shipment), "message": "配送情報が作成されました"}


@router.put("/shipments/{shipment_id}", dependencies=[Depends(require_admin)])
async def update_shipment(shipment_id: PathId, body: ShipmentUpdateIn, db: AsyncSession = Depends(get_db)):
    kwargs = {}
    if "shipped_at" in body.model_fields_set:
        kwargs["shipped_at"] = body.shipped_at
    shipment = await shipments.update_status(db, shipment_id, body.status, **kwargs)
    return {"shipment": shipment_detail_json(shipment), "message": "配送状況が更新されました"}


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@router.get("/reviews", dependencies=[Depends(require_admin)])
async def list_reviews(
    rating: int | None = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await reviews.list_all(db, rating=rating, page=page, per_page=per_page)
    return result.as_payload("reviews", admin_review_json)


@router.get("/reviews/{review_id}", dependencies=[Depends(require_admin)])
async def get_review(review_id: PathId, db: AsyncSession = Depends(get_db)):
    review = await reviews.get(db, review_id)
    return {"review": admin_review_json(review)}


@router.delete("/reviews/{review_id}", dependencies=[Depends(require_admin)])
async def delete_review(review_id: PathId, db: AsyncSession = Depends(get_db)):
    await reviews.delete(db, review_id)
    return {"message": "レビューが削除されました"}
