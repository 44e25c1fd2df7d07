"""Exceptions raised by the autofill core."""


class AutofillError(Exception):
    """Base class for autofill errors."""


class SessionBusyError(AutofillError):
    """A run was requested while the session is already past idle."""


class InvalidTransitionError(AutofillError):
    """A phase change that the session state machine does not allow."""


class SurfaceUnavailableError(AutofillError):
    """The hosting surface has no live page to execute against."""
