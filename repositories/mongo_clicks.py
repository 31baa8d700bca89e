"""
MongoDB implementation of ClickEventStore.

Every query is one aggregation pipeline (or count) over the click events
collection, matched on ``linkId`` + inclusive ``timestamp`` range. Missing,
null and empty dimension values are grouped under the dimension's sentinel
bucket on the server side, so no event is ever dropped from a rollup.

Pipelines are built by module-level functions so they can be inspected
without a database.
"""

from __future__ import annotations

from typing import Any

from pymongo.asynchronous.collection import AsyncCollection

from repositories.protocol import ClickFilter, LinkDimensionCount
from schemas.models.base import to_object_id
from schemas.models.click import ClickEvent
from schemas.models.report import DimensionBucket
from shared.datetime_utils import DAY_FORMAT
from shared.dimensions import Dimension
from shared.logging import get_logger

log = get_logger(__name__)


def stored_field(dimension: Dimension) -> str:
    return ClickEvent.stored_field(dimension.field)


def build_match(flt: ClickFilter) -> dict[str, Any]:
    """Translate a ClickFilter into a ``$match`` document."""
    match: dict[str, Any] = {
        stored_field(Dimension.LINK): {
            "$in": [to_object_id(link_id) for link_id in sorted(flt.link_ids)]
        }
    }
    time_filter: dict[str, Any] = {}
    if flt.start is not None:
        time_filter["$gte"] = flt.start
    if flt.end is not None:
        time_filter["$lte"] = flt.end
    if time_filter:
        match[stored_field(Dimension.DAY)] = time_filter
    return match


def group_key_expression(dimension: Dimension) -> Any:
    """Expression computing one event's bucket key for *dimension*."""
    field = f"${stored_field(dimension)}"
    if dimension is Dimension.DAY:
        return {
            "$dateToString": {"format": DAY_FORMAT, "date": field, "timezone": "UTC"}
        }
    if dimension is Dimension.LINK:
        return {"$toString": field}
    return {
        "$cond": [
            {"$eq": [{"$ifNull": [field, ""]}, ""]},
            dimension.sentinel,
            field,
        ]
    }


def build_grouped_pipeline(
    flt: ClickFilter, dimension: Dimension
) -> list[dict[str, Any]]:
    return [
        {"$match": build_match(flt)},
        {"$group": {"_id": group_key_expression(dimension), "count": {"$sum": 1}}},
    ]


def build_grouped_by_link_pipeline(
    flt: ClickFilter, dimension: Dimension
) -> list[dict[str, Any]]:
    return [
        {"$match": build_match(flt)},
        {
            "$group": {
                "_id": {
                    "key": group_key_expression(dimension),
                    "link": group_key_expression(Dimension.LINK),
                },
                "count": {"$sum": 1},
            }
        },
    ]


def build_distinct_pipeline(flt: ClickFilter, field: str) -> list[dict[str, Any]]:
    # $group + $count rather than distinct(): distinct() is capped at 16MB
    return [
        {"$match": build_match(flt)},
        {"$group": {"_id": f"${ClickEvent.stored_field(field)}"}},
        {"$count": "distinct"},
    ]


class MongoClickEventStore:
    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    async def _aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict]:
        cursor = await self._collection.aggregate(pipeline)
        return await cursor.to_list()

    async def count(self, flt: ClickFilter) -> int:
        if not flt.link_ids:
            return 0
        return await self._collection.count_documents(build_match(flt))

    async def grouped_count(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[DimensionBucket]:
        if not flt.link_ids:
            return []
        rows = await self._aggregate(build_grouped_pipeline(flt, dimension))
        return [DimensionBucket(key=str(row["_id"]), count=row["count"]) for row in rows]

    async def distinct_count(self, flt: ClickFilter, field: str) -> int:
        if not flt.link_ids:
            return 0
        rows = await self._aggregate(build_distinct_pipeline(flt, field))
        return rows[0]["distinct"] if rows else 0

    async def grouped_count_by_link(
        self, flt: ClickFilter, dimension: Dimension
    ) -> list[LinkDimensionCount]:
        if not flt.link_ids:
            return []
        rows = await self._aggregate(build_grouped_by_link_pipeline(flt, dimension))
        return [
            LinkDimensionCount(
                key=str(row["_id"]["key"]),
                link_id=str(row["_id"]["link"]),
                count=row["count"],
            )
            for row in rows
        ]

    async def recent(self, flt: ClickFilter, limit: int) -> list[ClickEvent]:
        if not flt.link_ids or limit <= 0:
            return []
        cursor = (
            self._collection.find(build_match(flt))
            .sort(stored_field(Dimension.DAY), -1)
            .limit(limit)
        )
        docs = await cursor.to_list(length=limit)
        events = []
        for doc in docs:
            try:
                events.append(ClickEvent.from_mongo(doc))
            except ValueError as e:
                # pydantic.ValidationError subclasses ValueError
                log.warning(
                    "click_event_unreadable",
                    event_id=str(doc.get("_id")),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return events

    async def ensure_indexes(self) -> None:
        """Compound index backing every match on link + time range."""
        await self._collection.create_index(
            [(stored_field(Dimension.LINK), 1), (stored_field(Dimension.DAY), -1)],
            name="link_timestamp",
        )
