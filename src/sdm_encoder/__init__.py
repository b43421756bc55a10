"""
NTAG 424 DNA 계열 태그의 SDM (Secure Dynamic Messaging) 프로비저닝.
"""

from .auth import AuthenticationHandshake, AuthState, zero_challenge
from .driver import TagDriver
from .exceptions import (
    AuthenticationFailed, CommandError, EncoderError, FrameTooShort,
    InvalidBlockLength, MacMismatch, RecordError, SessionExpired, TransportError,
    TransportTimeout,
)
from .file_settings import CommMode, FileSettings
from .secure_channel import SecureChannel
from .session import Session
from .transport import Transport
from .workflow import ProvisioningResult, ProvisioningWorkflow, provision

__version__ = "0.1.0"
