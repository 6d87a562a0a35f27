"""Error taxonomy for analytics aggregation.

Only configuration and fetch failures ever reach the caller. Malformed
records are absorbed by the metrics engine and never raise.
"""


class AnalyticsError(Exception):
    """Base class for errors surfaced by the analytics endpoint."""


class ConfigurationError(AnalyticsError):
    """A required setting is missing. Fatal and never retried."""


class DataSourceError(AnalyticsError):
    """The commerce platform could not be reached or returned an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
