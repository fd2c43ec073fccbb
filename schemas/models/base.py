"""
Base model for MongoDB document models.

PyObjectId handles the mismatch between BSON ObjectId and Pydantic v2.
UtcDatetime normalises every datetime to timezone-aware UTC, so documents
read back from MongoDB (naive UTC by default) compare correctly with
``datetime.now(timezone.utc)``.
as_object_id and StrId convert id strings to and from stored ObjectIds.
MongoBaseModel provides from_mongo() for building models from raw documents.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    GetCoreSchemaHandler,
)
from pydantic_core import core_schema


class PyObjectId(ObjectId):
    """BSON ObjectId that Pydantic v2 knows how to validate and serialize."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


def as_object_id(value: str) -> Any:
    """Return *value* as an ObjectId when it is one, else unchanged."""
    return ObjectId(value) if ObjectId.is_valid(value) else value


# Reference fields stored as ObjectId but exchanged as strings
StrId = Annotated[str, BeforeValidator(str)]


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class MongoBaseModel(BaseModel):
    """
    Base for all document models.

    Stores the MongoDB _id as `id` (PyObjectId). Subclasses declare aliases
    matching the stored field names and may be built either from raw
    documents (aliases) or from Python code (field names).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoBaseModel"]:
        """Build a model instance from a raw MongoDB document dict.

        Returns None when data is None (e.g. find_one returns None).
        Missing optional fields are filled with their defaults.
        """
        if data is None:
            return None
        return cls.model_validate(data)
