"""
Base model for all MongoDB document models.

DocumentId normalises BSON ObjectIds to their hex string so the analytics
layer only ever deals with plain string ids. MongoBaseModel provides
to_mongo() / from_mongo() for round-tripping between Python objects and raw
MongoDB dicts.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _coerce_id(v: Any) -> Any:
    if isinstance(v, ObjectId):
        return str(v)
    return v


DocumentId = Annotated[str, BeforeValidator(_coerce_id)]


def to_object_id(value: str) -> Any:
    """Return ``ObjectId(value)`` for valid hex ids, the raw value otherwise."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


class MongoBaseModel(BaseModel):
    """
    Base for all document models.

    Stores the MongoDB _id as `id`. Subclasses add collection-specific fields
    on top, using camelCase aliases where the stored document does.

    to_mongo()  — converts model → dict suitable for pymongo insert
    from_mongo() — converts raw pymongo dict → model instance (returns None
                    gracefully when passed None)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[DocumentId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Return a dict ready for MongoDB insertion.

        - Renames `id` → `_id` and converts hex ids back to ObjectId
        - Excludes None `_id` so MongoDB can auto-generate it on insert
        """
        data = self.model_dump(by_alias=True, exclude_none=False)
        if data.get("_id") is None:
            data.pop("_id", None)
        else:
            data["_id"] = to_object_id(data["_id"])
        return data

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoBaseModel"]:
        """Build a model instance from a raw MongoDB document dict.

        Returns None when data is None (e.g. find_one returns None).
        """
        if data is None:
            return None
        return cls.model_validate(data)

    @classmethod
    def stored_field(cls, attr: str) -> str:
        """Name of *attr* inside the stored MongoDB document."""
        field = cls.model_fields[attr]
        return field.alias or attr
