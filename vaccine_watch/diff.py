import logging
from typing import Optional

from vaccine_watch.models import NewAvailabilityEvent, Snapshot

logger = logging.getLogger(__name__)


def is_newly_available(location_id: int, previous: Snapshot) -> bool:
    """True if the location was missing from, or unavailable in, the previous snapshot."""
    prev_record = previous.get(location_id)
    return prev_record is None or not prev_record.is_available


def diff_snapshots(previous: Optional[Snapshot], current: Snapshot) -> NewAvailabilityEvent:
    """Returns the records of `current` that became available since `previous`.

    Without a previous snapshot nothing is new: the first poll only
    establishes a baseline. Locations going from available to unavailable
    are never reported, and a location that disappeared from the previous
    response counts as not available. Results are sorted by location id.
    """
    if previous is None:
        logger.debug(f"No previous snapshot, using {len(current)} locations as baseline.")
        return []

    new_records = [
        record
        for location_id, record in current.items()
        if record.is_available and is_newly_available(location_id, previous)
    ]
    new_records.sort(key=lambda r: r.location_id)

    logger.debug(f"Compared {len(current)} locations against {len(previous)}: {len(new_records)} newly available")
    return new_records
