class VaccineWatchError(Exception):
    """Base class for errors raised by vaccine_watch."""


class FetchError(VaccineWatchError):
    """The upstream availability API could not be queried or understood."""


class TransportError(VaccineWatchError):
    """The mail relay refused or failed to deliver a message."""


class NotifyError(VaccineWatchError):
    """A notification could not be delivered."""


class ConfigError(VaccineWatchError):
    """Invalid user supplied configuration."""
