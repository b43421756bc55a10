"""
프레이밍과 보안 메시징 계층에서 공통으로 쓰는 바이트 유틸리티.
"""

from Crypto.Util.Padding import pad as _pad

BLOCK_SIZE = 16


def to_hex(data: bytes) -> str:
    """구분자 없는 대문자 hex 문자열."""
    return bytes(data).hex().upper()


def from_hex(text: str) -> bytes:
    """hex 문자열을 바이트로 변환합니다. 공백, 콜론, 대시는 무시합니다."""
    text = text.replace(" ", "").replace(":", "").replace("-", "")
    return bytes.fromhex(text)


def pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    ISO/IEC 9797-1 패딩 방식 2: 0x80 뒤에 다음 블록 경계까지 0x00.
    항상 최소 1바이트를 추가합니다.
    """
    return _pad(bytes(data), block_size, style="iso7816")


def rotate_left(data: bytes, n: int = 1) -> bytes:
    if not data:
        return b""
    n %= len(data)
    return data[n:] + data[:n]


def rotate_right(data: bytes, n: int = 1) -> bytes:
    if not data:
        return b""
    n %= len(data)
    return data[len(data) - n:] + data[:len(data) - n]


def xor(a: bytes, b: bytes) -> bytes:
    if len(a) != len(b):
        raise ValueError(f"xor operands differ in length ({len(a)} != {len(b)})")
    return bytes(x ^ y for x, y in zip(a, b))


def truncate_mac(mac: bytes) -> bytes:
    """16바이트 CMAC에서 홀수 인덱스 바이트만 남깁니다 (MACt)."""
    if len(mac) != 16:
        raise ValueError(f"CMAC must be 16 bytes, got {len(mac)}")
    return mac[1::2]


def encode_utf8(text: str) -> bytes:
    return text.encode("utf-8")


def decode_utf8(data: bytes) -> str:
    return bytes(data).decode("utf-8", errors="replace")


def length_byte(data: bytes) -> bytes:
    if len(data) > 0xFF:
        raise ValueError(f"{len(data)} bytes do not fit a one-byte length")
    return bytes([len(data)])


def counter_bytes(value: int) -> bytes:
    """전송용 커맨드 카운터 (LSB 먼저)."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"counter out of range: {value}")
    return value.to_bytes(2, "little")
