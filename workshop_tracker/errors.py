"""Exceptions raised by the data-access layer and caught by the pages."""


class TrackerError(Exception):
    """Base class for all workshop tracker errors."""


class ValidationError(TrackerError, ValueError):
    pass


class AuthenticationError(TrackerError):
    pass


class DomainNotAllowedError(AuthenticationError):
    pass


class WeakPasswordError(AuthenticationError):
    pass


class PermissionDeniedError(TrackerError):
    pass


class DataLoadError(TrackerError):
    """A required fetch failed; the page shows an error panel with a retry button."""


class ReferentialIntegrityError(TrackerError):
    pass
