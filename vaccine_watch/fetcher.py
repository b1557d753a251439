import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List

import cloudscraper
import requests
from cloudscraper.exceptions import CloudflareException
from pydantic import ValidationError

from vaccine_watch import config
from vaccine_watch.errors import FetchError
from vaccine_watch.models import AvailabilityRecord, Snapshot

logger = logging.getLogger(__name__)


def build_url(region_code: str) -> str:
    """Constructs the API URL for a state."""
    url = f"{config.API_BASE}/{region_code.upper()}.json"
    logger.debug(f"Built URL: {url}")
    return url


def fetch_raw(region_code: str, timeout: float = config.REQUEST_TIMEOUT_SECONDS) -> Any:
    """Requests the current availability document for a state and returns the decoded JSON."""
    full_url = build_url(region_code)
    logger.info(f"Requesting new appointments for {region_code.upper()} from {full_url}")

    try:
        with cloudscraper.create_scraper() as scraper:
            response = scraper.get(full_url, headers=config.COMMON_HEADERS, timeout=timeout)
            logger.debug(f"Response status: {response.status_code}")
            response.raise_for_status()
    except CloudflareException as e:
        raise FetchError(f"Cloudflare blocked the request to {full_url}: {e}") from e
    except requests.exceptions.RequestException as e:
        raise FetchError(f"request to {full_url} failed: {e}") from e

    try:
        return response.json()
    except ValueError as e:
        raise FetchError(f"response from {full_url} is not valid JSON: {e}") from e


def _site_objects(data: Any) -> Iterable[Dict]:
    """Yields the per-site property dicts of a FeatureCollection or a bare array."""
    if isinstance(data, dict):
        if "features" not in data:
            raise FetchError("Unexpected JSON format. 'features' key missing.")
        data = data["features"]

    if not isinstance(data, list):
        raise FetchError(f"Unexpected JSON format. Expected a list of sites, got {type(data).__name__}.")

    for item in data:
        if not isinstance(item, dict):
            raise FetchError(f"Unexpected site entry: {item!r}")
        props = item.get("properties", item)
        if not isinstance(props, dict):
            raise FetchError(f"Unexpected site properties: {props!r}")
        yield props


def _appointment_times(props: Dict) -> List[Any]:
    appointments = props.get("appointments") or []
    return [a["time"] for a in appointments if isinstance(a, dict) and a.get("time")]


def parse_record(props: Dict, observed_at: datetime) -> AvailabilityRecord:
    """Maps one upstream site object onto an AvailabilityRecord."""
    appointments = _appointment_times(props)
    zip_code = props.get("postal_code")
    if zip_code is not None:
        zip_code = str(zip_code).strip()

    is_available = props.get("appointments_available")
    if is_available is None:
        is_available = bool(appointments)

    return AvailabilityRecord(
        location_id=props.get("id"),
        zip_code=zip_code,
        is_available=is_available,
        observed_at=observed_at,
        name=props.get("name"),
        provider=props.get("provider"),
        url=props.get("url"),
        address=props.get("address"),
        city=props.get("city"),
        state=props.get("state"),
        appointments=appointments,
    )


def parse_snapshot(data: Any, observed_at: datetime) -> Snapshot:
    """Parses the API response into a snapshot keyed by location id."""
    snapshot: Snapshot = {}
    for props in _site_objects(data):
        try:
            record = parse_record(props, observed_at)
        except (ValidationError, TypeError) as e:
            raise FetchError(f"Malformed site entry {props.get('id')!r}: {e}") from e

        if record.location_id in snapshot:
            logger.warning(f"Duplicate location id {record.location_id} in response, keeping the last entry.")
        snapshot[record.location_id] = record

    return snapshot


def fetch_snapshot(region_code: str, timeout: float = config.REQUEST_TIMEOUT_SECONDS) -> Snapshot:
    """Fetches the full current snapshot for a state. Raises FetchError on any failure."""
    observed_at = datetime.now().astimezone()
    data = fetch_raw(region_code, timeout=timeout)
    snapshot = parse_snapshot(data, observed_at)
    logger.info(f"New appointments received: {len(snapshot)} locations")
    return snapshot
