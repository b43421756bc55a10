from .codec import counter_bytes, to_hex
from .exceptions import SessionExpired

MAX_COMMAND_COUNTER = 0xFFFF


class Session:
    """
    AuthenticateEV2First로 수립된 보안 메시징 상태.

    키와 TI는 세션 동안 바뀌지 않으며, 커맨드 카운터만 앞으로 증가합니다.
    """

    def __init__(self, key_number: int, encryption_key: bytes, mac_key: bytes,
                 transaction_identifier: bytes, device_capabilities: bytes = bytes(6),
                 reader_capabilities: bytes = bytes(6), command_counter: int = 0):
        if len(encryption_key) != 16 or len(mac_key) != 16:
            raise ValueError("session keys must be 16 bytes")
        if len(transaction_identifier) != 4:
            raise ValueError("transaction identifier must be 4 bytes")
        if not 0 <= command_counter <= MAX_COMMAND_COUNTER:
            raise ValueError(f"command counter out of range: {command_counter}")
        self._key_number = key_number
        self._encryption_key = bytes(encryption_key)
        self._mac_key = bytes(mac_key)
        self._ti = bytes(transaction_identifier)
        self._pd_cap = bytes(device_capabilities)
        self._pcd_cap = bytes(reader_capabilities)
        self._command_counter = command_counter

    @property
    def key_number(self) -> int:
        return self._key_number

    @property
    def encryption_key(self) -> bytes:
        return self._encryption_key

    @property
    def mac_key(self) -> bytes:
        return self._mac_key

    @property
    def transaction_identifier(self) -> bytes:
        return self._ti

    @property
    def device_capabilities(self) -> bytes:
        return self._pd_cap

    @property
    def reader_capabilities(self) -> bytes:
        return self._pcd_cap

    @property
    def command_counter(self) -> int:
        return self._command_counter

    @property
    def counter_bytes(self) -> bytes:
        return counter_bytes(self._command_counter)

    def increment_counter(self) -> int:
        if self._command_counter >= MAX_COMMAND_COUNTER:
            raise SessionExpired("command counter exhausted, re-authenticate")
        self._command_counter += 1
        return self._command_counter

    def __repr__(self):
        return (f"Session(key={self._key_number}, ti={to_hex(self._ti)}, "
                f"ctr={self._command_counter})")
