from datetime import datetime, timezone

import pytest

from vaccine_watch.models import AvailabilityRecord

OBSERVED_AT = datetime(2021, 4, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_record():
    def _make(location_id, is_available=True, zip_code="00001", **extra):
        return AvailabilityRecord(
            location_id=location_id,
            zip_code=zip_code,
            is_available=is_available,
            observed_at=OBSERVED_AT,
            **extra,
        )

    return _make


@pytest.fixture
def make_snapshot(make_record):
    def _make(*records):
        return {r.location_id: r for r in records}

    return _make
