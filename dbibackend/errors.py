class DbiBackendError(Exception):
    """Base class for errors raised by the backend."""
    pass


class ProtocolError(DbiBackendError):
    """Raised when data from the console does not follow the protocol."""
    pass


class MalformedPayloadError(ProtocolError):
    """Raised when a command payload is shorter than its fields require."""
    pass


class NameTooLongError(ProtocolError):
    """Raised when a title name or path exceeds the installer's limits."""
    def __init__(self, message, limit):
        super().__init__(message)
        self.limit = limit
