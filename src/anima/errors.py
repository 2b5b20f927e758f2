"""Exception taxonomy for the conversation engine.

Turn-time failures never escape the session manager; these types exist so
backends and components can signal a specific failure that the manager then
converts into a committed error message.
"""


class AnimaError(Exception):
    """Base class for all engine errors."""


class BackendError(AnimaError):
    """The backend could not produce an answer."""

    def __init__(self, error_code: str, message: str | None = None):
        self.error_code = error_code
        super().__init__(message or error_code)


class MissingIdentityError(AnimaError):
    """No context key is available, so no request can be made."""


class ContinuationLimitError(AnimaError):
    """An attempt was recorded past the continuation cap."""
