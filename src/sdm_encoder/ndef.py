"""
태그에 기록하는 NDEF URI 레코드.

템플릿의 0으로 채워진 자리표시자는 태그가 탭할 때마다 덮어씁니다 (SDM 미러링).
여기서는 회사 ID만 채웁니다.

파일 구조 (Type 4 Tag NDEF 파일):

    NLEN(2, big-endian) | D1 01 PLEN 55 04 | URL
"""

from typing import Dict

from .codec import decode_utf8, encode_utf8

URL_FORMAT = "cupcake.com/claim?co=*&uid=00000000000000&ctr=000000&tt=00&cmac=0000000000000000"
COMPANY_ID_MARKER = "*"

# Short record, well-known 타입 "U". URI 접두어 0x04 = "https://"
NDEF_RECORD_HEADER = 0xD1
NDEF_TYPE_LENGTH = 0x01
NDEF_URI_TYPE = 0x55
URI_PREFIX_HTTPS = 0x04

NLEN_LEN = 2
RECORD_HEADER_LEN = 5
URL_START = NLEN_LEN + RECORD_HEADER_LEN

PLACEHOLDERS = {
    "uid": 14,
    "ctr": 6,
    "tt": 2,
    "cmac": 16,
}


def build_url(company_id: str, url_format: str = URL_FORMAT) -> str:
    """템플릿의 마지막 마커를 회사 ID로 치환합니다."""
    index = url_format.rfind(COMPANY_ID_MARKER)
    if index < 0:
        raise ValueError("URL template has no company id marker")
    return url_format[:index] + company_id + url_format[index + 1:]


def record_header(url_bytes: bytes) -> bytes:
    payload_len = len(url_bytes) + 1
    if payload_len > 0xFF:
        raise ValueError(f"URL of {len(url_bytes)} bytes does not fit a short record")
    return bytes([NDEF_RECORD_HEADER, NDEF_TYPE_LENGTH, payload_len,
                  NDEF_URI_TYPE, URI_PREFIX_HTTPS])


def wrap_ndef_data(url: str) -> bytes:
    """URI 레코드 한 개로 된 NDEF 파일 내용."""
    url_bytes = encode_utf8(url)
    message = record_header(url_bytes) + url_bytes
    return len(message).to_bytes(NLEN_LEN, "big") + message


def parse_ndef_url(data: bytes) -> str:
    """
    NDEF 파일 내용에서 URI 접두어를 뺀 URL을 꺼냅니다.
    비어 있거나 URI 레코드가 아니면 빈 문자열을 반환합니다.
    """
    data = bytes(data)
    if len(data) < URL_START:
        return ""
    nlen = int.from_bytes(data[:NLEN_LEN], "big")
    message = data[NLEN_LEN:NLEN_LEN + nlen]
    if len(message) < RECORD_HEADER_LEN or message[3] != NDEF_URI_TYPE:
        return ""
    payload_len = message[2]
    return decode_utf8(message[RECORD_HEADER_LEN:RECORD_HEADER_LEN + payload_len - 1])


def sdm_offsets(url: str) -> Dict[str, int]:
    """
    템플릿으로 만든 URL에서 미러링 자리표시자의 파일 오프셋과
    MAC 입력 시작 위치 (URL 첫 바이트).
    """
    url_bytes = encode_utf8(url)
    offsets = {"mac_input": URL_START}
    for name, width in PLACEHOLDERS.items():
        key = encode_utf8(f"&{name}=")
        index = url_bytes.rfind(key)
        if index < 0:
            raise ValueError(f"URL has no {name} placeholder")
        start = index + len(key)
        if url_bytes[start:start + width] != b"0" * width:
            raise ValueError(f"{name} placeholder is not {width} zeros")
        offsets[name] = URL_START + start
    return offsets
