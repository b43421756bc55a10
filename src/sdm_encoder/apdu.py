"""
태그용 ISO 7816-4 프레이밍.

헤더 필드 (P1/P2, Lc, Le)는 빅 엔디안입니다. 네이티브 명령 데이터 안의 정수
(오프셋, 길이, 카운터)는 리틀 엔디안이며 여기가 아니라 호출하는 쪽에서 인코딩합니다.
"""

from typing import Tuple

from .codec import length_byte
from .constants import (
    CLA_ISO, CLA_NATIVE, CMD_READ_BINARY, CMD_SELECT_FILE,
    DF_BY_NAME, FILE_BY_ID, SELECT_NO_FCI,
)
from .exceptions import CommandError, FrameTooShort

# short APDU의 최대 Lc
MAX_SHORT_LC = 0xFF

STATUS_TEXT = {
    0x9000: "Success",
    0x9100: "Success (native)",
    0x91AF: "Additional frame expected",
    0x911C: "Illegal command code",
    0x911E: "Integrity error",
    0x9140: "No such key",
    0x917E: "Length error",
    0x919D: "Permission denied",
    0x919E: "Parameter error",
    0x91AD: "Authentication delay",
    0x91AE: "Authentication error",
    0x91BE: "Boundary error",
    0x91CA: "Command aborted",
    0x91EE: "Memory error",
    0x91F0: "File not found",
    0x6700: "Wrong length",
    0x6982: "Security status not satisfied",
    0x6985: "Conditions of use not satisfied",
    0x6A80: "Incorrect parameters in data field",
    0x6A82: "Application/File not found",
    0x6A86: "Incorrect P1/P2",
    0x6D00: "Instruction not supported",
    0x6E00: "Class not supported",
}


def status_text(sw: int) -> str:
    return STATUS_TEXT.get(sw, f"Unknown (0x{sw:04X})")


def wrap_command(instruction: int, payload: bytes = b"", params: bytes = b"\x00\x00",
                 cla: int = CLA_NATIVE) -> bytes:
    """
    Build ``CLA INS P1 P2 [Lc payload] 00``.

    payload가 없으면 Lc를 생략합니다. short APDU만 만듭니다.
    """
    if len(params) != 2:
        raise ValueError(f"P1/P2 must be 2 bytes, got {len(params)}")
    frame = bytes([cla, instruction]) + bytes(params)
    if payload:
        frame += length_byte(payload) + bytes(payload)
    return frame + b"\x00"


def select_file_by_name(name: bytes) -> bytes:
    """이름으로 DF 선택 (NDEF 애플리케이션)."""
    return wrap_command(CMD_SELECT_FILE, name,
                        params=bytes([DF_BY_NAME, SELECT_NO_FCI]), cla=CLA_ISO)


def select_file_by_id(file_id: bytes) -> bytes:
    """2바이트 ID로 EF 선택."""
    if len(file_id) != 2:
        raise ValueError(f"file id must be 2 bytes, got {len(file_id)}")
    return wrap_command(CMD_SELECT_FILE, file_id,
                        params=bytes([FILE_BY_ID, SELECT_NO_FCI]), cla=CLA_ISO)


def read_binary(offset: int = 0, length: int = 0) -> bytes:
    """ISO READ BINARY. length 0이면 파일 끝까지 읽습니다."""
    if not 0 <= offset <= 0x7FFF:
        raise ValueError(f"offset out of range: {offset}")
    if not 0 <= length <= 0xFF:
        raise ValueError(f"length out of range: {length}")
    return bytes([CLA_ISO, CMD_READ_BINARY]) + offset.to_bytes(2, "big") + bytes([length])


def split_response(response: bytes) -> Tuple[bytes, int]:
    """원본 응답을 데이터와 빅 엔디안 상태 워드로 나눕니다."""
    if len(response) < 2:
        raise FrameTooShort(f"response of {len(response)} bytes has no status word")
    return bytes(response[:-2]), (response[-2] << 8) | response[-1]


def check_status(response: bytes, *expected: int) -> bytes:
    """응답 데이터를 반환합니다. 예상하지 않은 상태면 CommandError를 발생시킵니다."""
    data, sw = split_response(response)
    if sw not in expected:
        raise CommandError(f"card returned {sw:04X} ({status_text(sw)})", sw)
    return data
