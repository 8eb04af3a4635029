"""User address book with a single default address per user."""

from loguru import logger
from sqlalchemy import select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Address
from domain.errors import NotFound
from domain.validation import raise_if, require

EDITABLE_FIELDS = ("postal_code", "prefecture", "city", "address1", "address2", "phone", "is_default")
REQUIRED_FIELDS = ["postal_code", "prefecture", "city", "address1", "phone"]


async def list_for_user(session: AsyncSession, user_id: int) -> list[Address]:
    result = await session.execute(
        select(Address).where(Address.user_id == user_id).order_by(Address.id)
    )
    return list(result.scalars().all())


async def get_for_user(session: AsyncSession, user_id: int, address_id: int) -> Address:
    address = await session.get(Address, address_id)
    if address is None or address.user_id != user_id:
        raise NotFound("住所が見つかりません")
    return address


async def default_address(session: AsyncSession, user_id: int) -> Address | None:
    """The address flagged default, else the user's first address."""
    result = await session.execute(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _save(session: AsyncSession, address: Address) -> Address:
    # Clearing the other defaults and writing this row share one transaction.
    if address.is_default:
        await session.flush()
        await session.execute(
            sa_update(Address)
            .where(Address.user_id == address.user_id, Address.id != address.id)
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
    await session.commit()
    return address


async def create(session: AsyncSession, user_id: int, fields: dict) -> Address:
    values = {k: fields.get(k) for k in EDITABLE_FIELDS}
    raise_if(require(values, REQUIRED_FIELDS))
    values["is_default"] = bool(values.get("is_default"))

    address = Address(user_id=user_id, **values)
    session.add(address)
    await _save(session, address)
    logger.info("Address {} created for user {} (default={})", address.id, user_id, address.is_default)
    return address


async def update(session: AsyncSession, user_id: int, address_id: int, fields: dict) -> Address:
    address = await get_for_user(session, user_id, address_id)
    changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    merged = {k: getattr(address, k) for k in EDITABLE_FIELDS}
    merged.update(changes)
    raise_if(require(merged, REQUIRED_FIELDS))

    for key, value in changes.items():
        setattr(address, key, bool(value) if key == "is_default" else value)
    return await _save(session, address)


async def delete(session: AsyncSession, user_id: int, address_id: int) -> None:
    address = await get_for_user(session, user_id, address_id)
    await session.delete(address)
    await session.commit()
    logger.info("Address {} deleted for user {}", address_id, user_id)
