"""Offset pagination over SQLAlchemy selects."""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

MAX_PER_PAGE = 100


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    def as_payload(self, key: str, serialize) -> dict:
        return {
            key: [serialize(item) for item in self.items],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
        }


def normalize(page: int | None, per_page: int | None, default_per_page: int) -> tuple[int, int]:
    """Clamp user-supplied paging values to sane bounds."""
    page = page if page and page > 0 else 1
    per_page = per_page if per_page and per_page > 0 else default_per_page
    return page, min(per_page, MAX_PER_PAGE)


async def paginate(
    session: AsyncSession,
    query: Select,
    page: int | None = None,
    per_page: int | None = None,
    default_per_page: int = 20,
    cap: int | None = None,
    options: tuple = (),
) -> Page:
    """Run ``query`` for one page; ``cap`` limits the whole result set first.

    ``options`` (loader options) apply to the row fetch only, not the count.
    """
    page, per_page = normalize(page, per_page, default_per_page)

    if cap is not None:
        query = query.limit(cap)
    sub = query.order_by(None).subquery()
    total = (await session.execute(select(func.count()).select_from(sub))).scalar() or 0

    offset = (page - 1) * per_page
    limit = per_page
    if cap is not None:
        limit = max(0, min(per_page, cap - offset))
        query = query.limit(None)
    if limit == 0:
        return Page(items=[], total=total, page=page, per_page=per_page)

    if options:
        query = query.options(*options)
    result = await session.execute(query.offset(offset).limit(limit))
    return Page(items=list(result.scalars().unique().all()), total=total, page=page, per_page=per_page)
