"""Exceptions raised inside the hydromon pipeline."""

from typing import List, Optional


class HydromonError(Exception):
    """Base exception for hydromon."""

    pass


class TelemetryError(HydromonError):
    """Base exception for failures while obtaining or decoding telemetry."""

    pass


class InvalidHex(TelemetryError):
    """Hex payload is malformed or too short for the selected layout."""

    pass


class MalformedEnvelope(TelemetryError):
    """Upstream JSON does not have the expected oneM2M shape."""

    pass


class UpstreamError(TelemetryError):
    """Upstream platform answered with a non-success HTTP status."""

    def __init__(self, status: int, body: str = ""):
        super().__init__(f"Antares API error: {status} {body[:200]}".rstrip())
        self.status = status
        self.body = body


class FetchTimeout(TelemetryError):
    """Request exceeded the fetch deadline and was aborted."""

    pass


class TransportError(TelemetryError):
    """Connection-level failure talking to the upstream platform."""

    pass


class ValidationError(HydromonError):
    """Input outside of the declared ranges.

    Attributes:
        errors: One human readable line per violated constraint.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class StorageError(HydromonError):
    """Reading store could not persist a reading."""

    pass
