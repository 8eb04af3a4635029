"""Shipment tracking -- one shipment per entry, free-form admin status updates."""

from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Address, Entry, Shipment
from domain import entries
from domain.errors import DuplicateShipment, NotFound, ValidationError
from domain.pagination import Page, paginate
from domain.statuses import SHIPMENT_TRANSITIONS, ShipmentStatus, is_expected_transition, parse_status

_UNSET = object()


def tracking_info(shipment: Shipment) -> str | None:
    if shipment.shipped_at is None:
        return None
    return "発送日: " + shipment.shipped_at.strftime("%Y年%m月%d日")


def _load_options():
    return (
        selectinload(Shipment.entry).selectinload(Entry.user),
        selectinload(Shipment.entry).selectinload(Entry.campaign),
        selectinload(Shipment.address),
    )


async def get(session: AsyncSession, shipment_id: int) -> Shipment:
    result = await session.execute(
        select(Shipment)
        .options(*_load_options())
        .where(Shipment.id == shipment_id)
        .execution_options(populate_existing=True)
    )
    shipment = result.scalar_one_or_none()
    if shipment is None:
        raise NotFound("配送情報が見つかりません")
    return shipment


async def create(session: AsyncSession, entry_id: int, address_id: int) -> Shipment:
    """Open a shipment (status preparing) for an entry.

    The address must belong to the entry's user. A second shipment for the
    same entry raises DuplicateShipment, whether caught by the pre-check or by
    the unique index on ``entry_id``.
    """
    entry = await entries.get(session, entry_id)
    if entry.shipment is not None:
        raise DuplicateShipment()

    address = await session.get(Address, address_id)
    if address is None:
        raise NotFound("住所が見つかりません")
    if address.user_id != entry.user_id:
        raise ValidationError("Address must belong to the entry's user")

    shipment = Shipment(entry=entry, address=address, status=ShipmentStatus.PREPARING.value)
    session.add(shipment)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning("Duplicate shipment rejected by store: entry={}", entry_id)
        raise DuplicateShipment()

    logger.info("Shipment {} created for entry {}", shipment.id, entry_id)
    return await get(session, shipment.id)


async def update_status(
    session: AsyncSession,
    shipment_id: int,
    new_status=None,
    shipped_at: datetime | None | object = _UNSET,
) -> Shipment:
    """Overwrite status and/or shipped_at. shipped_at is never stamped automatically."""
    status = parse_status(ShipmentStatus, new_status) if new_status is not None else None
    shipment = await get(session, shipment_id)

    if status is not None:
        current = parse_status(ShipmentStatus, shipment.status)
        if not is_expected_transition(SHIPMENT_TRANSITIONS, current, status):
            logger.warning("Shipment {} moved off the usual path: {} -> {}", shipment_id, current.value, status.value)
        shipment.status = status.value
    if shipped_at is not _UNSET:
        shipment.shipped_at = shipped_at

    await session.commit()
    logger.info("Shipment {} updated: status={} shipped_at={}", shipment_id, shipment.status, shipment.shipped_at)
    return shipment


async def list_all(
    session: AsyncSession,
    status: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> Page:
    query = select(Shipment).order_by(Shipment.created_at.desc(), Shipment.id.desc())
    if status:
        query = query.where(Shipment.status == parse_status(ShipmentStatus, status).value)
    return await paginate(session, query, page, per_page, default_per_page=20, options=_load_options())
