"""Company (campaign sponsor) admin CRUD with SNS links."""

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Company, CompanySns
from domain.errors import AlreadyRegistered, NotFound
from domain.pagination import Page, paginate
from domain.statuses import SnsType, parse_status
from domain.validation import check_email, check_url, raise_if, require

EDITABLE_FIELDS = (
    "name", "email", "contact_name", "contact_phone", "postal_code",
    "prefecture", "city", "address1", "address2", "url",
)
REQUIRED_FIELDS = [
    "name", "email", "contact_name", "contact_phone",
    "postal_code", "prefecture", "city", "address1",
]


def _validate(values: dict, sns_links: list[dict] | None) -> list[CompanySns] | None:
    messages = require(values, REQUIRED_FIELDS)
    check_email(values.get("email"), messages)
    check_url(values.get("url"), "url", messages)

    links = None
    if sns_links is not None:
        links = []
        seen = set()
        for link in sns_links:
            sns_type = parse_status(SnsType, link.get("sns_type"), field="Sns type")
            if sns_type in seen:
                messages.append(f"Sns type {sns_type.value} is duplicated")
            seen.add(sns_type)
            if not link.get("sns_url"):
                messages.append("Sns url can't be blank")
            else:
                check_url(link["sns_url"], "sns_url", messages)
            links.append(CompanySns(sns_type=sns_type.value, sns_url=link.get("sns_url")))
    raise_if(messages)
    return links


async def list_all(session: AsyncSession, page: int | None = None, per_page: int | None = None) -> Page:
    query = select(Company).order_by(Company.id)
    return await paginate(
        session, query, page, per_page,
        default_per_page=20,
        options=(selectinload(Company.sns_links),),
    )


async def get(session: AsyncSession, company_id: int) -> Company:
    result = await session.execute(
        select(Company)
        .options(selectinload(Company.sns_links))
        .where(Company.id == company_id)
        .execution_options(populate_existing=True)
    )
    company = result.scalar_one_or_none()
    if company is None:
        raise NotFound("企業が見つかりません")
    return company


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise AlreadyRegistered()


async def create(session: AsyncSession, fields: dict, sns_links: list[dict] | None = None) -> Company:
    values = {k: fields.get(k) for k in EDITABLE_FIELDS}
    links = _validate(values, sns_links or [])

    existing = await session.execute(select(Company.id).where(Company.email == values["email"]))
    if existing.scalar_one_or_none() is not None:
        raise AlreadyRegistered()

    company = Company(**values, sns_links=links)
    session.add(company)
    await _commit(session)
    logger.info("Company {} created ({})", company.id, company.name)
    return await get(session, company.id)


async def update(
    session: AsyncSession, company_id: int, fields: dict, sns_links: list[dict] | None = None,
) -> Company:
    """Partial update; ``sns_links`` (when given) replaces the whole set."""
    company = await get(session, company_id)
    changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    merged = {k: getattr(company, k) for k in EDITABLE_FIELDS}
    merged.update(changes)
    links = _validate(merged, sns_links)

    try:
        for key, value in changes.items():
            setattr(company, key, value)
        if links is not None:
            company.sns_links.clear()
            # flush removals first so the (company_id, sns_type) constraint sees them
            await session.flush()
            company.sns_links.extend(links)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise AlreadyRegistered()
    session.expire(company)
    return await get(session, company_id)


async def delete(session: AsyncSession, company_id: int) -> None:
    """Delete a company and, through its campaigns, everything beneath them."""
    company = await get(session, company_id)
    await session.delete(company)
    await session.commit()
    logger.info("Company {} deleted", company_id)
