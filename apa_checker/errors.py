from __future__ import annotations


class ApaCheckerError(Exception):
    """Base class for errors raised by the checker."""


class InvalidInput(ApaCheckerError):
    """Upload is missing, has the wrong extension, or is too large."""


class MalformedPackage(ApaCheckerError):
    """The archive cannot be opened or its main document part is unreadable."""
