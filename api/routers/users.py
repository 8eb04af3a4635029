"""My-page router - profile, entries, reviews and the address book."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import MAX_PAGE, PathId, Principal, require_user
from api.serializers import address_json, my_entry_json, my_review_json, user_json
from database import get_db
from database.schemas import AddressIn, AddressUpdateIn
from domain import addresses, campaigns, entries, reviews

logger = logging.getLogger("sampling.users")

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
async def me(principal: Principal = Depends(require_user)):
    return {"user": user_json(principal.user)}


@router.get("/me/entries")
async def my_entries(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await entries.list_for_user(db, principal.user_id, page=page, per_page=per_page)
    return result.as_payload("entries", my_entry_json)


@router.get("/me/reviews")
async def my_reviews(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    per_page: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await reviews.list_for_user(db, principal.user_id, page=page, per_page=per_page)
    return result.as_payload("reviews", my_review_json)


@router.get("/me/reviews/{campaign_id}/eligibility")
async def review_eligibility(
    campaign_id: PathId,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether the caller may review ``campaign_id`` right now."""
    await campaigns.get(db, campaign_id)
    allowed = await reviews.can_review(db, principal.user_id, campaign_id)
    return {"campaign_id": campaign_id, "can_review": allowed}


# ── Address book ──

@router.get("/me/addresses")
async def list_addresses(
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await addresses.list_for_user(db, principal.user_id)
    return {"addresses": [address_json(a) for a in rows]}


@router.post("/me/addresses", status_code=201)
async def create_address(
    body: AddressIn,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    address = await addresses.create(db, principal.user_id, body.model_dump())
    return {"address": address_json(address), "message": "住所を登録しました"}


@router.put("/me/addresses/{address_id}")
async def update_address(
    address_id: PathId,
    body: AddressUpdateIn,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    address = await addresses.update(db, principal.user_id, address_id, body.model_dump(exclude_unset=True))
    return {"address": address_json(address), "message": "住所を更新しました"}


@router.delete("/me/addresses/{address_id}")
async def delete_address(
    address_id: PathId,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await addresses.delete(db, principal.user_id, address_id)
    logger.info("Address %d removed by user %d", address_id, principal.user_id)
    return {"message": "住所を削除しました"}
