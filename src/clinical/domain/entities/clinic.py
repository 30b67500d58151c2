"""Clinic (tenant) entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone as tz
from enum import Enum
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(tz.utc)


class ClinicStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Clinic:
    clinic_id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    timezone: str = "America/New_York"
    status: ClinicStatus = ClinicStatus.ACTIVE
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
