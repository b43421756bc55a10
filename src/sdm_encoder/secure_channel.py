"""
인증된 세션 위의 EV2 보안 메시징 (CommMode.PLAIN / MAC / FULL).

명령은 현재 커맨드 카운터로 래핑합니다. 태그가 응답하면 카운터를 증가시키고,
태그가 응답에 사용한 증가된 값으로 응답을 검증하고 복호화합니다.
"""

import hmac
import logging

from .apdu import wrap_command
from .codec import pad, to_hex, truncate_mac
from .constants import ENC_IV, MAC_IV
from .crypto import ZERO_IV, cmac, decrypt_blocks, encrypt_blocks
from .exceptions import FrameTooShort, MacMismatch
from .session import Session

log = logging.getLogger(__name__)

STATUS_LEN = 2
MAC_LEN = 8


class SecureChannel:
    """Session 하나에 대한 명령 래핑과 응답 언래핑."""

    def __init__(self, session: Session, strict: bool = True):
        self.session = session
        self.strict = strict

    def _derive_iv(self, label: bytes) -> bytes:
        s = self.session
        iv_input = label + s.transaction_identifier + s.counter_bytes + bytes(8)
        return encrypt_blocks(s.encryption_key, ZERO_IV, iv_input)

    def _calc_mac(self, code: int, header: bytes, data: bytes) -> bytes:
        """code || CmdCtr || TI || header || data 에 대한 MACt."""
        s = self.session
        mac_input = bytes([code]) + s.counter_bytes + s.transaction_identifier + header + data
        return truncate_mac(cmac(s.mac_key, mac_input))

    def encrypt_data(self, data: bytes) -> bytes:
        """명령 데이터를 패딩 후 명령 IV로 암호화합니다. 빈 데이터는 그대로 둡니다."""
        if not data:
            return b""
        return encrypt_blocks(self.session.encryption_key, self._derive_iv(ENC_IV), pad(data))

    def wrap_plain(self, instruction: int, header: bytes = b"", data: bytes = b"") -> bytes:
        return wrap_command(instruction, bytes(header) + bytes(data))

    def wrap_mac(self, instruction: int, header: bytes = b"", data: bytes = b"") -> bytes:
        header, data = bytes(header), bytes(data)
        mac = self._calc_mac(instruction, header, data)
        return wrap_command(instruction, header + data + mac)

    def wrap_full(self, instruction: int, header: bytes = b"", data: bytes = b"") -> bytes:
        """
        데이터 암호화 + 명령 MAC (CommMode.FULL).

        헤더는 평문으로 보내지만 MAC 계산에 포함됩니다.
        여기서는 커맨드 카운터를 증가시키지 않습니다.
        """
        header = bytes(header)
        enc_data = self.encrypt_data(bytes(data))
        mac = self._calc_mac(instruction, header, enc_data)
        frame = wrap_command(instruction, header + enc_data + mac)
        log.debug("FULL %02X ctr=%d -> %s", instruction, self.session.command_counter,
                  to_hex(frame))
        return frame

    def _split(self, response: bytes):
        if len(response) < STATUS_LEN + MAC_LEN:
            raise FrameTooShort(
                f"response of {len(response)} bytes is shorter than MAC and status")
        status = bytes(response[-STATUS_LEN:])
        mac = bytes(response[-(STATUS_LEN + MAC_LEN):-STATUS_LEN])
        data = bytes(response[:-(STATUS_LEN + MAC_LEN)])
        return data, mac, status

    def _verify(self, data: bytes, mac: bytes, status: bytes):
        if not self.strict:
            return
        expected = self._calc_mac(status[1], b"", data)
        if not hmac.compare_digest(expected, mac):
            raise MacMismatch(
                f"response MAC {to_hex(mac)} does not match {to_hex(expected)}")

    def unwrap_mac(self, response: bytes) -> bytes:
        """CommMode.MAC 응답의 평문 데이터를 반환합니다."""
        data, mac, status = self._split(response)
        self._verify(data, mac, status)
        return data

    def unwrap(self, response: bytes) -> bytes:
        """
        CommMode.FULL 응답을 복호화합니다.

        반환값에는 ISO 패딩이 남아 있습니다. strict 채널은 먼저 응답 MAC을
        검증하고 틀리면 MacMismatch를 발생시킵니다.
        """
        data, mac, status = self._split(response)
        self._verify(data, mac, status)
        return decrypt_blocks(self.session.encryption_key, self._derive_iv(MAC_IV), data)

    def increment(self) -> int:
        return self.session.increment_counter()
