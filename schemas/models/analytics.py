"""
Analytics record document model.

Maps to the `analytics` MongoDB collection, one document per link:

  link            — the link's ObjectId (plain string for non-ObjectId ids; unique index)
  clicks          — append-only array of ClickEvent sub-documents, in arrival order
  totalClicks     — always equal to len(clicks) after a completed record()
  uniqueVisitors  — incremented by the visitor policy's amount on each record()
  createdAt / updatedAt

Documents are created by the first click (upsert) and never deleted here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, StrId, UtcDatetime
from schemas.models.click import ClickEvent


class AnalyticsRecord(MongoBaseModel):
    """Document model for the `analytics` collection."""

    subject_id: StrId = Field(alias="link")
    events: list[ClickEvent] = Field(default_factory=list, alias="clicks")
    total_clicks: int = Field(default=0, ge=0, alias="totalClicks")
    unique_visitors: int = Field(default=0, ge=0, alias="uniqueVisitors")
    created_at: Optional[UtcDatetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[UtcDatetime] = Field(default=None, alias="updatedAt")


@dataclass(frozen=True)
class RecordAck:
    """Acknowledgement returned by EventStore.record()."""

    subject_id: str
    created: bool
    unique: bool
