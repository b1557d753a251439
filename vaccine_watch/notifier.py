import logging
import smtplib
import sys
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from email.mime.text import MIMEText
from typing import Dict, List, Protocol, Sequence, TextIO

from vaccine_watch import config
from vaccine_watch.errors import NotifyError, TransportError
from vaccine_watch.models import AvailabilityRecord

logger = logging.getLogger(__name__)

RULE_WIDTH = 10


def _or_unknown(value: str | None) -> str:
    return value if value else "??"


def render_record(record: AvailabilityRecord) -> str:
    """Formats a single location as a human readable block."""
    lines = [
        "+" * RULE_WIDTH,
        f"{_or_unknown(record.provider)}-{_or_unknown(record.name)}",
        f"Location {record.location_id}",
        _or_unknown(record.url),
        _or_unknown(record.address),
        f"{_or_unknown(record.city)}, {_or_unknown(record.state)} {_or_unknown(record.zip_code)}",
    ]

    # Appointment times in local time, grouped by day, both in chronological order
    by_day: Dict = defaultdict(list)
    for appt in sorted(a.astimezone() for a in record.appointments):
        by_day[appt.date()].append(appt)
    for day in sorted(by_day):
        times = ", ".join(t.strftime("%I:%M%p").lower() for t in by_day[day])
        lines.append(f"{day.strftime('%m/%d/%Y')}: {times}")

    lines.append("+" * RULE_WIDTH)
    return "\n".join(lines)


def render_report(records: Sequence[AvailabilityRecord], now: datetime | None = None) -> str:
    """Formats all new locations, in the given order, below a timestamped preamble."""
    now = now or datetime.now().astimezone()
    blocks = [
        "=" * RULE_WIDTH,
        f"Report as of {now.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
        "=" * RULE_WIDTH,
    ]
    blocks.extend(render_record(r) for r in records)
    return "\n".join(blocks) + "\n"


class Notifier(ABC):
    """Delivers a non-empty list of newly available locations to the user."""

    @abstractmethod
    def notify(self, records: List[AvailabilityRecord]) -> None:
        ...


class StdoutNotifier(Notifier):
    def __init__(self, stream: TextIO | None = None):
        self.stream = stream if stream is not None else sys.stdout

    def notify(self, records: List[AvailabilityRecord]) -> None:
        # Write failures are not recoverable and propagate to the caller.
        self.stream.write(render_report(records))
        self.stream.flush()


class MailTransport(Protocol):
    def send(self, from_address: str, to_address: str, subject: str, body: str) -> None:
        ...


class SmtpTransport:
    """Sends plain text mail through an SMTP relay, by default the local one on port 25."""

    def __init__(
        self,
        host: str = config.SMTP_HOST,
        port: int = config.SMTP_PORT,
        timeout: float = config.SMTP_TIMEOUT_SECONDS,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout

    def send(self, from_address: str, to_address: str, subject: str, body: str) -> None:
        message = MIMEText(body, "plain")
        message["Subject"] = subject
        message["From"] = from_address
        message["To"] = to_address

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP relay {self.host}:{self.port} failed: {e}") from e
        logger.debug(f"Handed message for {to_address} to {self.host}:{self.port}")


class EmailNotifier(Notifier):
    def __init__(self, from_address: str, to_address: str, transport: MailTransport | None = None):
        self.from_address = from_address
        self.to_address = to_address
        self.transport = transport if transport is not None else SmtpTransport()

    def notify(self, records: List[AvailabilityRecord]) -> None:
        try:
            body = render_report(records)
            self.transport.send(self.from_address, self.to_address, config.EMAIL_SUBJECT, body)
        except Exception as e:
            raise NotifyError(f"Failed to send email from {self.from_address} to {self.to_address}: {e}") from e
        logger.info(f"Email notification about {len(records)} locations sent to {self.to_address}.")


def select_notifier(
    from_email: str | None,
    to_email: str | None,
    transport: MailTransport | None = None,
) -> Notifier:
    """Emails when both addresses are given, prints to stdout otherwise."""
    if from_email and to_email:
        logger.info(f"Reporting new appointments by email from {from_email} to {to_email}")
        return EmailNotifier(from_email, to_email, transport)

    if from_email or to_email:
        logger.warning("Email configuration incomplete, both --from-email and --to-email are required. Printing instead.")
    return StdoutNotifier()
