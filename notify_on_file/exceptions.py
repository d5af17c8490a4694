"""notify-on-file exceptions."""


class NotifyOnFileError(Exception):
    """Base class for all errors raised by notify-on-file."""


class ConfigurationError(NotifyOnFileError, ValueError):
    """Raised when settings or an action object have the wrong shape.

    Subclasses ValueError so pydantic validators can raise it directly and
    have it reported as a regular validation error.
    """


class ResolutionError(NotifyOnFileError):
    """Raised when a ${...} placeholder cannot be resolved."""


class NotFoundError(ResolutionError):
    """Raised when a named workspace folder or status item does not exist."""


class DocumentError(NotifyOnFileError):
    """Raised when a document cannot be opened or saved."""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
