import argparse
import logging
import sys
import threading

from vaccine_watch import config, notifier, poller, zip_filter
from vaccine_watch.errors import ConfigError

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    import time

    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    # Use local time instead of UTC for logging
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def state_code(value: str) -> str:
    """argparse type for a two letter state code."""
    value = value.strip()
    if len(value) != 2 or not value.isalpha():
        raise argparse.ArgumentTypeError(f"'{value}' is not a 2 letter state code")
    return value.upper()


def positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number")
    if seconds <= 0:
        raise argparse.ArgumentTypeError("interval must be positive")
    return seconds


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Watch VaccineSpotter for new vaccine appointments.")
    parser.add_argument("-s", "--state", type=state_code, required=True, help="The 2 letter state code to watch.")
    parser.add_argument(
        "-z",
        "--zips-path",
        type=str,
        help="Path to a JSON array of zip codes to consider. If not provided all zip codes are considered.",
    )
    parser.add_argument("-f", "--from-email", type=str, help="The email address to send alerts from.")
    parser.add_argument("-t", "--to-email", type=str, help="The email address to send alerts to.")
    parser.add_argument(
        "--interval",
        type=positive_seconds,
        default=config.POLL_INTERVAL_SECONDS,
        help=f"Seconds between checks. Defaults to {config.POLL_INTERVAL_SECONDS:g}.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    logger.debug(f"Starting with args: {args}")

    try:
        allow_list = zip_filter.load_zip_allow_list(args.zips_path)
    except ConfigError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    watcher = poller.Poller(
        region_code=args.state,
        notifier=notifier.select_notifier(args.from_email, args.to_email),
        allow_list=allow_list,
        interval=args.interval,
    )

    stop_event = threading.Event()
    poller.install_signal_handlers(stop_event)
    watcher.run(stop_event)


if __name__ == "__main__":
    main()
