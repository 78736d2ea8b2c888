"""Exception types raised by the trip journal."""


class JournalError(Exception):
    """Base class for trip journal errors."""


class ConfigError(JournalError):
    """Configuration is incomplete or inconsistent."""


class TripSourceError(JournalError):
    """A trip resource could not be located in its source."""

    def __init__(self, resource_id: str, message: str = ""):
        super().__init__(message or f"Trip resource not found: {resource_id}")
        self.resource_id = resource_id


class UnknownTripError(JournalError):
    """A chip selection named a trip that has no resource mapping."""

    def __init__(self, text: str):
        super().__init__(f"Unrecognized trip selection: {text!r}")
        self.text = text
