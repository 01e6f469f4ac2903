"""Error types raised by the packager."""
from __future__ import annotations


class ConfigurationError(Exception):
    """Raised for invalid or inconsistent packaging configuration.

    These errors are expected: the run is aborted with the message shown to
    the user and no partial output is considered valid.
    """


__all__ = ["ConfigurationError"]
