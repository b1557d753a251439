import logging
import signal
import threading
import time
from typing import Callable

from vaccine_watch import config
from vaccine_watch.diff import diff_snapshots
from vaccine_watch.errors import FetchError, NotifyError
from vaccine_watch.fetcher import fetch_snapshot
from vaccine_watch.models import Snapshot, TickOutcome, ZipAllowList
from vaccine_watch.notifier import Notifier
from vaccine_watch.zip_filter import filter_by_zip

logger = logging.getLogger(__name__)

FetchFn = Callable[..., Snapshot]


class Poller:
    """Polls one state on a fixed interval and reports locations that became available.

    The poller is the only owner of the previous snapshot. It is replaced
    after every successful fetch and left untouched when a fetch fails, so
    an outage is never mistaken for every location becoming unavailable.
    """

    def __init__(
        self,
        region_code: str,
        notifier: Notifier,
        allow_list: ZipAllowList | None = None,
        interval: float = config.POLL_INTERVAL_SECONDS,
        timeout: float = config.REQUEST_TIMEOUT_SECONDS,
        fetch: FetchFn = fetch_snapshot,
    ):
        self.region_code = region_code
        self.notifier = notifier
        self.allow_list = allow_list
        self.interval = interval
        self.timeout = timeout
        self.fetch = fetch
        self.previous: Snapshot | None = None

    def tick(self) -> TickOutcome:
        """Runs one fetch, filter, diff and notify cycle."""
        try:
            snapshot = self.fetch(self.region_code, timeout=self.timeout)
        except FetchError as e:
            logger.error(f"FetchError: failed to request new appointments: {e}")
            return TickOutcome(fetched=False, error=str(e))

        current = filter_by_zip(snapshot, self.allow_list)
        new_records = diff_snapshots(self.previous, current)
        outcome = TickOutcome(fetched=True, snapshot_size=len(current), new_records=new_records)

        if new_records:
            logger.info(f"Found {len(new_records)} newly available locations")
            try:
                self.notifier.notify(new_records)
                outcome.notified = True
            except NotifyError as e:
                logger.error(f"NotifyError: {e}")
                outcome.error = str(e)
        else:
            logger.info("No new appointments found.")

        self.previous = current
        return outcome

    def run(self, stop_event: threading.Event) -> None:
        """Ticks until `stop_event` is set. A tick in progress always completes."""
        logger.info(f"Polling {self.region_code.upper()} every {self.interval:g}s")
        while not stop_event.is_set():
            started = time.monotonic()
            self.tick()
            elapsed = time.monotonic() - started
            # Overrunning ticks are followed immediately by the next one
            stop_event.wait(max(0.0, self.interval - elapsed))
        logger.info("Polling stopped.")


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Makes SIGINT and SIGTERM request a graceful stop."""

    def handle_signal(signum, frame):
        logger.info("Received shutdown signal. Stopping after the current check...")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)
