class EncoderError(Exception):
    """Base exception for tag encoding operations."""
    pass

class TransportError(EncoderError):
    """Raised when the reader fails to exchange a frame with the tag."""
    pass

class TransportTimeout(TransportError):
    """Raised when the tag does not answer within the exchange timeout."""
    pass

class AuthenticationFailed(EncoderError):
    """Raised when the EV2 handshake cannot establish a session."""
    pass

class SessionExpired(EncoderError):
    """Raised when the command counter would leave its 16-bit range."""
    pass

class InvalidBlockLength(EncoderError):
    """Raised when cipher input is not a multiple of the AES block size."""
    pass

class FrameTooShort(EncoderError):
    """Raised when a response is shorter than its mandatory trailer."""
    pass

class MacMismatch(EncoderError):
    """Raised when a response MAC does not match the recomputed one."""
    pass

class CommandError(EncoderError):
    """Raised when a card command returns an error status."""

    def __init__(self, message: str, sw: int = 0):
        super().__init__(message)
        self.sw = sw

class RecordError(EncoderError):
    """Raised when the NDEF record cannot be built or written in one frame."""
    pass
