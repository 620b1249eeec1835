import math
from typing import Any, Callable, Iterable, Mapping, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.core.exceptions.errors import InvalidQuery
from cms.db.schemas.common import PageMeta


def parse_order_by(
    order_by: str, sortable: Mapping[str, Any]
) -> Any:
    """Resolve ``"<field> ASC|DESC"`` to an ORDER BY clause."""
    field, _, direction = order_by.strip().partition(" ")
    direction = direction.strip().upper() or "DESC"
    if direction not in ("ASC", "DESC"):
        raise InvalidQuery("invalid sort value. must be asc or desc")
    if field not in sortable:
        raise InvalidQuery(
            f"invalid sort field '{field}'", data={"allowed": sorted(sortable)}
        )
    column = sortable[field]
    return column.asc() if direction == "ASC" else column.desc()


def page_meta(page: int, limit: int, total_count: int) -> dict:
    return PageMeta(
        items_per_page=limit,
        current_page=page,
        total_pages=max(math.ceil(total_count / limit), 1),
        total_count=total_count,
    ).model_dump()


async def paginate(
    db: AsyncSession,
    stmt: Select,
    *,
    page: int,
    limit: int,
    sortable: Mapping[str, Any],
    order_by: Optional[str] = None,
    options: Iterable[Any] = (),
    serializer: Optional[Callable[[Any], Any]] = None,
) -> dict:
    """Run ``stmt`` for one page and wrap it as ``{results, meta}``."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total_count = (await db.execute(count_stmt)).scalar_one()

    if order_by:
        stmt = stmt.order_by(parse_order_by(order_by, sortable))
    stmt = stmt.options(*options)
    rows = (
        await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    ).scalars().all()

    results = [serializer(r) for r in rows] if serializer else list(rows)
    return {"results": results, "meta": page_meta(page, limit, total_count)}
