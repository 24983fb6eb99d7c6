"""
Exceptions raised by the flight path pipeline.

Telemetry problems never propagate out of reconstruction; only
configuration and phase misuse are surfaced to callers.
"""


class FlightKmlError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(FlightKmlError, ValueError):
    """Invalid capture settings supplied at construction time."""


class InvalidRecordError(FlightKmlError, ValueError):
    """Malformed or impossible telemetry record."""


class CaptureSealedError(FlightKmlError, RuntimeError):
    """Append attempted after the capture was handed off to finalize."""


class CaptureNotFinalizedError(FlightKmlError, RuntimeError):
    """Derived output requested before finalize() ran."""
