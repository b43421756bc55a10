import logging
import time
from typing import Callable, Optional

from . import config
from .apdu import check_status, read_binary, select_file_by_id, select_file_by_name
from .auth import AuthenticationHandshake
from .codec import to_hex
from .constants import (
    CMD_CHANGE_FILE_SETTINGS, CMD_GET_FILE_SETTINGS, CMD_SET_CONFIGURATION,
    CMD_WRITE_DATA, ISO_DF_NAME, SW_NATIVE_SUCCESS, SW_SUCCESS,
)
from .exceptions import AuthenticationFailed
from .file_settings import CommMode, FileSettings
from .secure_channel import SecureChannel
from .session import Session
from .transport import Transport

log = logging.getLogger(__name__)

# WriteData header: FileNo(1) + Offset(3) + Length(3)
WRITE_HEADER_LEN = 7


class TagDriver:
    """
    NTAG 424 DNA 계열 태그를 제어하는 명령 계층.
    ISO 7816 선택/읽기 명령은 평문으로, 네이티브 명령은 인증 후
    EV2 보안 메시징으로 전송합니다.
    """

    def __init__(self, transport: Transport, timeout_ms: int = config.EXCHANGE_TIMEOUT_MS,
                 delay: float = config.EXCHANGE_DELAY, strict: bool = config.STRICT,
                 challenge_source: Optional[Callable[[], bytes]] = None):
        self.transport = transport
        self.timeout_ms = timeout_ms
        self.delay = delay
        self.strict = strict
        self.challenge_source = challenge_source
        self.channel: Optional[SecureChannel] = None

    @property
    def session(self) -> Optional[Session]:
        return self.channel.session if self.channel else None

    def send(self, frame: bytes) -> bytes:
        """프레임 하나를 전송하고 원본 응답을 반환합니다."""
        log.debug("  Command: %s", to_hex(frame))
        response = self.transport.transmit(frame, self.timeout_ms)
        log.debug("  Resp: %s", to_hex(response))
        if self.delay:
            time.sleep(self.delay)
        return response

    # ─── 평문 ISO 명령 ─────────────────────────────────────────────────────────────────────────────────────

    def select_application(self, name: bytes = ISO_DF_NAME):
        check_status(self.send(select_file_by_name(name)), SW_SUCCESS)

    def select_file(self, file_id: bytes):
        check_status(self.send(select_file_by_id(file_id)), SW_SUCCESS)

    def read_binary(self, offset: int = 0, length: int = 0) -> bytes:
        return check_status(self.send(read_binary(offset, length)), SW_SUCCESS)

    # ─── 인증 ──────────────────────────────────────────────────────────────────────────────────────────────────

    def authenticate(self, key: bytes, key_number: int = 0) -> Session:
        """AuthenticateEV2First를 수행하고 보안 채널을 엽니다."""
        self.channel = None
        handshake = AuthenticationHandshake(strict=self.strict,
                                            challenge_source=self.challenge_source)
        first = self.send(handshake.begin_authentication(key_number))
        second_frame, rnd_b = handshake.continue_authentication(key, first)
        second = self.send(second_frame)
        session = handshake.complete_authentication(key, rnd_b, second)
        self.channel = SecureChannel(session, strict=self.strict)
        return session

    # ─── 보안 메시징 ──────────────────────────────────────────────────────────────────────────────────────────

    def _transceive(self, instruction: int, header: bytes = b"", data: bytes = b"",
                    mode: CommMode = CommMode.FULL) -> bytes:
        """
        보안 교환 한 번: 현재 CmdCtr로 래핑 -> 전송 -> CmdCtr 증가 ->
        증가된 값으로 응답 검증 및 복호화.
        """
        if self.channel is None:
            raise AuthenticationFailed("not authenticated")
        if mode == CommMode.FULL:
            frame = self.channel.wrap_full(instruction, header, data)
        elif mode == CommMode.MAC:
            frame = self.channel.wrap_mac(instruction, header, data)
        else:
            frame = self.channel.wrap_plain(instruction, header, data)

        response = self.send(frame)
        check_status(response, SW_NATIVE_SUCCESS)
        self.channel.increment()

        if mode == CommMode.FULL:
            return self.channel.unwrap(response)
        elif mode == CommMode.MAC:
            return self.channel.unwrap_mac(response)
        return response[:-2]

    def set_configuration(self, option: int, data: bytes):
        """SetConfiguration (항상 CommMode.FULL)."""
        self._transceive(CMD_SET_CONFIGURATION, bytes([option]), data)

    def write_data(self, file_no: int, data: bytes, offset: int = 0,
                   mode: CommMode = CommMode.FULL):
        """WriteData. 오프셋과 길이는 3바이트 리틀 엔디안입니다."""
        header = bytes([file_no]) + offset.to_bytes(3, "little") + len(data).to_bytes(3, "little")
        self._transceive(CMD_WRITE_DATA, header, data, mode)

    def change_file_settings(self, file_no: int, settings: FileSettings):
        """ChangeFileSettings (항상 CommMode.FULL)."""
        self._transceive(CMD_CHANGE_FILE_SETTINGS, bytes([file_no]), settings.to_bytes())

    def get_file_settings(self, file_no: int) -> FileSettings:
        """CommMode.MAC으로 GetFileSettings를 전송합니다."""
        data = self._transceive(CMD_GET_FILE_SETTINGS, bytes([file_no]), mode=CommMode.MAC)
        return FileSettings.from_response(data)
