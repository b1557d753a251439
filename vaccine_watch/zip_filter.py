import json
import logging
import os

from vaccine_watch.errors import ConfigError
from vaccine_watch.models import Snapshot, ZipAllowList

logger = logging.getLogger(__name__)


def filter_by_zip(snapshot: Snapshot, allow_list: ZipAllowList | None) -> Snapshot:
    """Keeps only the locations whose zip code is in the allow-list.

    An empty or missing allow-list means every location is considered.
    """
    if not allow_list:
        return snapshot
    return {
        location_id: record
        for location_id, record in snapshot.items()
        if record.zip_code is not None and record.zip_code in allow_list
    }


def load_zip_allow_list(path: str | None) -> ZipAllowList | None:
    """Loads a JSON array of zip code strings."""
    if path is None:
        return None
    if not os.path.exists(path):
        raise ConfigError(f"Zip code file {path} does not exist.")

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigError(f"Failed to read zip codes from {path}: {e}") from e

    if not isinstance(data, list) or not all(isinstance(z, str) for z in data):
        raise ConfigError(f"{path} must contain a JSON array of zip code strings.")

    zips = frozenset(z.strip() for z in data)
    logger.info(f"Loaded {len(zips)} zip codes from {path}")
    return zips
