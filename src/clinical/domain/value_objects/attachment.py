"""Attachment descriptor value object."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class Attachment:
    """
    Metadata of a blob uploaded for a note.

    The blob itself lives in external object storage under ``storage_key``;
    only this descriptor is stored with the note.
    """

    id: str
    file_name: str
    content_type: str
    size_bytes: int
    storage_key: str
    uploaded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["uploaded_at"] = self.uploaded_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Attachment:
        uploaded_at = data["uploaded_at"]
        if isinstance(uploaded_at, str):
            uploaded_at = datetime.fromisoformat(uploaded_at)
        return cls(
            id=data["id"],
            file_name=data["file_name"],
            content_type=data["content_type"],
            size_bytes=int(data["size_bytes"]),
            storage_key=data["storage_key"],
            uploaded_at=uploaded_at,
        )
