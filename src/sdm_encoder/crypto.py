"""
EV2 인증과 보안 메시징에 쓰는 AES-128 기본 연산.
"""

from Crypto.Cipher import AES
from Crypto.Hash import CMAC

from .codec import BLOCK_SIZE
from .exceptions import InvalidBlockLength

ZERO_IV = bytes(BLOCK_SIZE)


def _check_key(key: bytes, iv: bytes = ZERO_IV):
    if len(key) != 16:
        raise ValueError(f"AES-128 key must be 16 bytes, got {len(key)}")
    if len(iv) != BLOCK_SIZE:
        raise ValueError(f"IV must be {BLOCK_SIZE} bytes, got {len(iv)}")


def _check_blocks(data: bytes):
    if len(data) % BLOCK_SIZE:
        raise InvalidBlockLength(
            f"{len(data)} bytes is not a multiple of {BLOCK_SIZE}")


def encrypt_blocks(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    """블록 정렬된 데이터의 AES-128-CBC 암호화."""
    _check_key(key, iv)
    _check_blocks(plaintext)
    if not plaintext:
        return b""
    return AES.new(bytes(key), AES.MODE_CBC, bytes(iv)).encrypt(bytes(plaintext))


def decrypt_blocks(key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    """블록 정렬된 데이터의 AES-128-CBC 복호화."""
    _check_key(key, iv)
    _check_blocks(ciphertext)
    if not ciphertext:
        return b""
    return AES.new(bytes(key), AES.MODE_CBC, bytes(iv)).decrypt(bytes(ciphertext))


def cmac(key: bytes, message: bytes) -> bytes:
    """message의 16바이트 CMAC-AES128 전체."""
    _check_key(key)
    cmac_obj = CMAC.new(bytes(key), ciphermod=AES)
    cmac_obj.update(bytes(message))
    return cmac_obj.digest()
