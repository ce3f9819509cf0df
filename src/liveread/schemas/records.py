"""Schemas for upstream text records and their change notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class RawRecord(BaseModel):
    """Latest state of the upstream text source.

    A new logical update is detected by ``id`` changing, never by comparing content.
    """

    model_config = ConfigDict(extra="ignore")

    id: int | str
    source_text: str = ""
    source_lang_code: str | None = None
    source_lang_label: str | None = None
    translated_text: str | None = None
    target_language: str | None = None
    client_id: str | None = None
    updated_at: datetime | None = None

    def text_to_speak(self) -> str | None:
        """Prefer the translation, fall back to the source text."""
        if self.translated_text and self.translated_text.strip():
            return self.translated_text
        if self.source_text and self.source_text.strip():
            return self.source_text
        return None


class DatabaseChangePayload(BaseModel):
    """Row-change notification as delivered by a database webhook."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Literal["INSERT", "UPDATE", "DELETE"]
    table: str
    db_schema: str = Field(default="public", alias="schema")
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None


class IngestResponse(BaseModel):
    """Result of handing one pushed record to the ingestor."""

    accepted: bool
    reason: str | None = None
