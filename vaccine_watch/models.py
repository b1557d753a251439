from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict


class AvailabilityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    location_id: int
    zip_code: str | None = None
    is_available: bool
    observed_at: datetime

    # Display only, not considered when diffing
    name: str | None = None
    provider: str | None = None
    url: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    appointments: List[datetime] = []


# location_id -> record. Never mutated once built.
Snapshot = Dict[int, AvailabilityRecord]
ZipAllowList = FrozenSet[str]
NewAvailabilityEvent = List[AvailabilityRecord]


@dataclass
class TickOutcome:
    fetched: bool
    snapshot_size: int = 0
    new_records: NewAvailabilityEvent = field(default_factory=list)
    notified: bool = False
    error: str | None = None
