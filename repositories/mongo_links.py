"""MongoDB implementation of LinkRepository (read-only)."""

from __future__ import annotations

from typing import Optional

from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.base import to_object_id
from schemas.models.link import Link

_PROJECTION = {
    "_id": 1,
    "userId": 1,
    "slug": 1,
    "title": 1,
    "isPublicStats": 1,
    "isActive": 1,
    "createdAt": 1,
}


class MongoLinkRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    async def get(self, link_id: str) -> Optional[Link]:
        doc = await self._collection.find_one(
            {"_id": to_object_id(link_id)}, _PROJECTION
        )
        return Link.from_mongo(doc)

    async def get_by_slug(self, slug: str) -> Optional[Link]:
        # Slugs are stored lower-cased
        doc = await self._collection.find_one({"slug": slug.lower()}, _PROJECTION)
        return Link.from_mongo(doc)

    async def list_for_owner(
        self, owner_id: str, active_only: bool = True
    ) -> list[Link]:
        query: dict = {"userId": to_object_id(owner_id)}
        if active_only:
            query["isActive"] = True
        cursor = self._collection.find(query, _PROJECTION).sort("createdAt", 1)
        return [Link.from_mongo(doc) for doc in await cursor.to_list()]

