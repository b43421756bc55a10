"""
AuthenticateEV2First 인증.

    PCD -> PICC   90 71 00 00 02 KeyNo 00 00
    PICC -> PCD   E(K, RndB)                                   91 AF
    PCD -> PICC   90 AF 00 00 20 E(K, RndA || RndB') 00
    PICC -> PCD   E(K, TI || RndA' || PDcap2 || PCDcap2)       91 00

RndB', RndA'는 챌린지를 왼쪽으로 1바이트 회전한 값입니다. 세션 키는 두 챌린지를
섞은 세션 벡터의 정적 키 CMAC이므로 인증할 때마다 새 키 쌍이 만들어집니다.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Tuple

from Crypto.Random import get_random_bytes

from .apdu import split_response, wrap_command
from .codec import rotate_left, rotate_right, to_hex, xor
from .constants import (
    CMD_ADDITIONAL_FRAME, CMD_AUTH_EV2_FIRST, ENC_IV, MAC_IV,
    SV_HEADER, SW_ADDITIONAL_FRAME, SW_NATIVE_SUCCESS,
)
from .crypto import ZERO_IV, cmac, decrypt_blocks, encrypt_blocks
from .exceptions import AuthenticationFailed, EncoderError
from .session import Session

log = logging.getLogger(__name__)

CHALLENGE_LEN = 16


class AuthState(Enum):
    IDLE = "idle"
    AWAITING_SECOND_MESSAGE = "awaiting-second-message"
    ESTABLISHED = "established"
    FAILED = "failed"


def random_challenge() -> bytes:
    return get_random_bytes(CHALLENGE_LEN)


def zero_challenge() -> bytes:
    """항상 0인 RndA. 테스트와 트레이스 재현 전용."""
    return bytes(CHALLENGE_LEN)


def session_vector(rnd_a: bytes, rnd_b: bytes) -> bytes:
    """ENC/MAC 키 유도에 공통으로 쓰는 SV (라벨 제외)."""
    return (SV_HEADER + rnd_a[0:2] + xor(rnd_a[2:8], rnd_b[0:6])
            + rnd_b[6:16] + rnd_a[8:16])


def derive_session_keys(static_key: bytes, rnd_a: bytes, rnd_b: bytes) -> Tuple[bytes, bytes]:
    sv = session_vector(rnd_a, rnd_b)
    return cmac(static_key, ENC_IV + sv), cmac(static_key, MAC_IV + sv)


class AuthenticationHandshake:
    """
    2단계 EV2First 인증 상태 머신.

    strict 모드는 태그가 돌려준 RndA를 검증하고, 호환 모드는 검증을 생략합니다.
    실패하면 FAILED 상태가 되고 AuthenticationFailed를 발생시키며,
    다시 시도하려면 새 인스턴스가 필요합니다.
    """

    def __init__(self, strict: bool = True,
                 challenge_source: Optional[Callable[[], bytes]] = None):
        self.strict = strict
        self.challenge_source = challenge_source or random_challenge
        self.state = AuthState.IDLE
        self.key_number: Optional[int] = None
        self._rnd_a: Optional[bytes] = None

    def _fail(self, message: str):
        self.state = AuthState.FAILED
        log.warning("authentication failed: %s", message)
        raise AuthenticationFailed(message)

    def _expect(self, state: AuthState):
        if self.state != state:
            self._fail(f"handshake is {self.state.value}, expected {state.value}")

    def _response_data(self, response: bytes, sw_expected: int, length: int) -> bytes:
        try:
            data, sw = split_response(response)
        except EncoderError as e:
            self._fail(str(e))
        if sw != sw_expected:
            self._fail(f"tag answered {sw:04X}, expected {sw_expected:04X}")
        if len(data) < length:
            self._fail(f"tag sent {len(data)} bytes, expected {length}")
        return data[:length]

    def begin_authentication(self, key_number: int) -> bytes:
        """첫 명령: 태그에 암호화된 챌린지를 요청합니다."""
        self._expect(AuthState.IDLE)
        if not 0 <= key_number <= 0xFF:
            self._fail(f"invalid key number {key_number}")
        self.key_number = key_number
        self.state = AuthState.AWAITING_SECOND_MESSAGE
        return wrap_command(CMD_AUTH_EV2_FIRST, bytes([key_number, 0x00]))

    def continue_authentication(self, static_key: bytes,
                                first_response: bytes) -> Tuple[bytes, bytes]:
        """태그 챌린지에 응답합니다. 두 번째 명령과 RndB를 반환합니다."""
        self._expect(AuthState.AWAITING_SECOND_MESSAGE)
        if self._rnd_a is not None:
            self._fail("challenge already answered")
        enc_rnd_b = self._response_data(first_response, SW_ADDITIONAL_FRAME, CHALLENGE_LEN)
        try:
            rnd_b = decrypt_blocks(static_key, ZERO_IV, enc_rnd_b)
            rnd_a = bytes(self.challenge_source())
            if len(rnd_a) != CHALLENGE_LEN:
                raise ValueError(f"challenge source returned {len(rnd_a)} bytes")
            token = encrypt_blocks(static_key, ZERO_IV, rnd_a + rotate_left(rnd_b))
        except (EncoderError, ValueError) as e:
            self._fail(str(e))
        self._rnd_a = rnd_a
        return wrap_command(CMD_ADDITIONAL_FRAME, token), rnd_b

    def complete_authentication(self, static_key: bytes, rnd_b: bytes,
                                second_response: bytes) -> Session:
        """태그 응답을 검증하고 세션을 유도합니다."""
        self._expect(AuthState.AWAITING_SECOND_MESSAGE)
        if self._rnd_a is None:
            self._fail("challenge not answered yet")
        enc_data = self._response_data(second_response, SW_NATIVE_SUCCESS, 32)
        try:
            connection_data = decrypt_blocks(static_key, ZERO_IV, enc_data)
        except (EncoderError, ValueError) as e:
            self._fail(str(e))

        ti = connection_data[0:4]
        rnd_a_prime = connection_data[4:20]
        if self.strict and rotate_right(rnd_a_prime) != self._rnd_a:
            self._fail("tag did not return our challenge")
        if len(rnd_b) != CHALLENGE_LEN:
            self._fail(f"RndB must be {CHALLENGE_LEN} bytes")

        enc_key, mac_key = derive_session_keys(static_key, self._rnd_a, rnd_b)
        self.state = AuthState.ESTABLISHED
        session = Session(
            key_number=self.key_number,
            encryption_key=enc_key,
            mac_key=mac_key,
            transaction_identifier=ti,
            device_capabilities=connection_data[20:26],
            reader_capabilities=connection_data[26:32],
        )
        log.debug("authenticated, TI=%s", to_hex(ti))
        return session
