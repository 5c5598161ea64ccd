"""
Error types raised by the report path.

The simulator, alert manager and log stream clamp and cap their own
buffers, so nothing in the tick path has an error class of its own.
"""


class ObservatoryError(Exception):
    """Base class for observatory errors."""


class ConfigurationError(ObservatoryError):
    """Required process configuration (e.g. the narrative API key) is missing."""


class NarrativeServiceError(ObservatoryError):
    """The narrative-generation service failed or returned an unusable payload."""
