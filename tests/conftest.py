import sys
import os

# 설치 없이 src 경로 설정
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

import pytest

from sdm_encoder.auth import derive_session_keys
from Crypto.Util.Padding import unpad

from sdm_encoder.codec import counter_bytes, rotate_left, truncate_mac
from sdm_encoder.crypto import ZERO_IV, cmac, decrypt_blocks, encrypt_blocks
from sdm_encoder.exceptions import TransportTimeout
from sdm_encoder.ndef import wrap_ndef_data
from sdm_encoder.transport import Transport

# 네이티브 명령별 헤더 길이
HEADER_LEN = {0x5C: 1, 0x5F: 1, 0x8D: 7}


class FakeTag(Transport):
    """
    프로비저닝 시퀀스에 응답하는 태그 시뮬레이터.
    보안 명령은 CommMode.FULL이어야 하며, 복호화한 데이터를
    `commands`에 (ins, header, data)로 기록합니다.
    """

    def __init__(self, key=bytes(16), ti=bytes.fromhex("11223344"),
                 rnd_b=bytes(range(16)), ndef=None):
        self.key = key
        self.ti = ti
        self.rnd_b = rnd_b
        self.ndef = ndef if ndef is not None else wrap_ndef_data("example.com")
        self.frames = []
        self.commands = []
        self.rnd_a = None
        self.enc_key = None
        self.mac_key = None
        self.ctr = 0
        self.fail_on = None        # 오류로 응답할 명령
        self.timeout_on = None     # 응답하지 않을 명령
        self.corrupt_mac = False

    def transmit(self, frame, timeout_ms):
        frame = bytes(frame)
        self.frames.append(frame)
        cla, ins = frame[0], frame[1]
        if ins == self.timeout_on:
            raise TransportTimeout(f"no response within {timeout_ms} ms")
        if cla == 0x00 and ins == 0xA4:
            return b"\x90\x00"
        if cla == 0x00 and ins == 0xB0:
            return self.ndef + b"\x90\x00"
        if ins == 0x71:
            return encrypt_blocks(self.key, ZERO_IV, self.rnd_b) + b"\x91\xAF"
        if ins == 0xAF:
            return self._auth_part2(frame[5:-1])
        if ins == self.fail_on:
            return b"\x91\x9D"
        return self._secure(ins, frame[5:-1])

    def _auth_part2(self, token):
        plain = decrypt_blocks(self.key, ZERO_IV, token)
        if plain[16:] != rotate_left(self.rnd_b):
            return b"\x91\xAE"
        self.rnd_a = plain[:16]
        self.enc_key, self.mac_key = derive_session_keys(self.key, self.rnd_a, self.rnd_b)
        self.ctr = 0
        data = self.ti + rotate_left(self.rnd_a) + bytes(12)
        return encrypt_blocks(self.key, ZERO_IV, data) + b"\x91\x00"

    def _secure(self, ins, payload):
        hlen = HEADER_LEN[ins]
        header, enc, mac = payload[:hlen], payload[hlen:-8], payload[-8:]
        ctr = counter_bytes(self.ctr)
        expected = truncate_mac(cmac(self.mac_key, bytes([ins]) + ctr + self.ti + header + enc))
        if mac != expected:
            return b"\x91\x1E"
        iv = encrypt_blocks(self.enc_key, ZERO_IV, b"\xA5\x5A" + self.ti + ctr + bytes(8))
        data = unpad(decrypt_blocks(self.enc_key, iv, enc), 16, style="iso7816")
        self.commands.append((ins, header, data))
        self.ctr += 1
        resp_mac = truncate_mac(cmac(self.mac_key, b"\x00" + counter_bytes(self.ctr) + self.ti))
        if self.corrupt_mac:
            resp_mac = bytes(8)
        return resp_mac + b"\x91\x00"


@pytest.fixture
def tag():
    return FakeTag()
