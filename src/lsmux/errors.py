class LanguageServerError(Exception):
    """Base class for errors raised by lsmux."""


class BackendNotAvailableError(LanguageServerError, ValueError):
    """Raised when a backend name is unknown or its class cannot be loaded."""


class BackendInitializationError(LanguageServerError, RuntimeError):
    """
    Exception raised when a backend class was found but could not be constructed.

    The original exception is kept as ``__cause__`` so callers awaiting the
    multiplexer see the same root failure the factory saw.
    """

    def __init__(self, message, backend_type=None, root_cause=None):
        """
        Initialize BackendInitializationError exception.

        Args:
            message (str): Human-readable error message
            backend_type (str, optional): Registry name of the failing backend
            root_cause (Exception, optional): The original constructor error
        """
        super().__init__(message)
        self.backend_type = backend_type
        self.root_cause = root_cause

        if root_cause:
            self.__cause__ = root_cause


class BackendNotStartedError(LanguageServerError, RuntimeError):
    """Raised when a request reaches a backend before ``start`` completed."""


class ConnectionClosedError(LanguageServerError, ConnectionError):
    """Raised for requests pending or issued after the language server exited."""
