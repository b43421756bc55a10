# NXP AN12196 6.6, 6.10 절의 AuthenticateEV2First 트레이스
from binascii import unhexlify

import pytest

from sdm_encoder.auth import (
    AuthenticationHandshake, AuthState, derive_session_keys, session_vector, zero_challenge,
)
from sdm_encoder.codec import rotate_left
from sdm_encoder.crypto import ZERO_IV, cmac, decrypt_blocks, encrypt_blocks
from sdm_encoder.exceptions import AuthenticationFailed

KEY = bytes(16)


def fixed(value):
    return lambda: unhexlify(value)


def test_key_zero_trace():
    auth = AuthenticationHandshake(challenge_source=fixed("13C5DB8A5930439FC3DEF9A4C675360F"))

    assert auth.begin_authentication(0) == unhexlify("9071000002000000")
    assert auth.state == AuthState.AWAITING_SECOND_MESSAGE

    frame, rnd_b = auth.continue_authentication(
        KEY, unhexlify("A04C124213C186F22399D33AC2A3021591AF"))
    assert frame == unhexlify(
        "90AF00002035C3E05A752E0144BAC0DE51C1F22C56B34408A23D8AEA266CAB947EA8E0118D00")

    session = auth.complete_authentication(KEY, rnd_b, unhexlify(
        "3FA64DB5446D1F34CD6EA311167F5E4985B89690C04A05F17FA7AB2F081206639100"))
    assert auth.state == AuthState.ESTABLISHED
    assert session.transaction_identifier == unhexlify("9D00C4DF")
    assert session.device_capabilities == bytes(6)
    assert session.reader_capabilities == bytes(6)
    assert session.encryption_key == unhexlify("1309C877509E5A215007FF0ED19CA564")
    assert session.mac_key == unhexlify("4C6626F5E72EA694202139295C7A7FC7")
    assert session.command_counter == 0
    assert session.key_number == 0


def test_key_three_trace():
    auth = AuthenticationHandshake(challenge_source=fixed("B98F4C50CF1C2E084FD150E33992B048"))
    auth.begin_authentication(0)
    frame, rnd_b = auth.continue_authentication(
        KEY, unhexlify("B875CEB0E66A6C5CD00898DC371F92D191AF"))
    assert frame == unhexlify(
        "90AF000020FF0306E47DFBC50087C4D8A78E88E62DE1E8BE457AA477C707E2F0874916A8B100")

    session = auth.complete_authentication(KEY, rnd_b, unhexlify(
        "0CC9A8094A8EEA683ECAAC5C7BF20584206D0608D477110FC6B3D5D3F65C3A6A9100"))
    assert session.transaction_identifier == unhexlify("7614281A")
    assert session.encryption_key == unhexlify("7A93D6571E4B180FCA6AC90C9A7488D4")
    assert session.mac_key == unhexlify("FC4AF159B62E549B5812394CAB1918CC")


def tag_answer(rnd_a, ti=b"\xCA\xFE\xBA\xBE", caps=bytes(range(12)), key=KEY):
    return encrypt_blocks(key, ZERO_IV, ti + rotate_left(rnd_a) + caps) + b"\x91\x00"


def test_session_vector_trace():
    # AN12196 6.6: SV1 = A55A || SV
    rnd_a = unhexlify("13C5DB8A5930439FC3DEF9A4C675360F")
    rnd_b = unhexlify("B9E2FC789B64BF237CCCAA20EC7E6E48")
    assert b"\xA5\x5A" + session_vector(rnd_a, rnd_b) == unhexlify(
        "A55A00010080" "13C5" "6268A548D8FB" "BF237CCCAA20EC7E6E48" "C3DEF9A4C675360F")


def test_key_zero_trace_challenge():
    auth = AuthenticationHandshake(challenge_source=fixed("13C5DB8A5930439FC3DEF9A4C675360F"))
    auth.begin_authentication(0)
    _, rnd_b = auth.continue_authentication(
        KEY, unhexlify("A04C124213C186F22399D33AC2A3021591AF"))
    assert rnd_b == unhexlify("B9E2FC789B64BF237CCCAA20EC7E6E48")


def test_zero_challenge_handshake():
    rnd_b = bytes(range(16))
    first = encrypt_blocks(KEY, ZERO_IV, rnd_b) + b"\x91\xAF"

    auth = AuthenticationHandshake(challenge_source=zero_challenge)
    auth.begin_authentication(0)
    frame, tag_challenge = auth.continue_authentication(KEY, first)
    assert tag_challenge == rnd_b
    token = decrypt_blocks(KEY, ZERO_IV, frame[5:37])
    assert token == unhexlify("00000000000000000000000000000000"
                              "0102030405060708090A0B0C0D0E0F00")

    session = auth.complete_authentication(KEY, rnd_b, tag_answer(bytes(16)))
    # RndA = 0: SV = 00010080 || 0000 || RndB || 00 * 8
    sv = unhexlify("00010080" "0000" "000102030405060708090A0B0C0D0E0F" "0000000000000000")
    assert session_vector(bytes(16), rnd_b) == sv
    assert session.encryption_key == cmac(KEY, unhexlify("A55A") + sv)
    assert session.mac_key == cmac(KEY, unhexlify("5AA5") + sv)
    assert session.transaction_identifier == b"\xCA\xFE\xBA\xBE"
    assert session.device_capabilities == bytes(range(6))
    assert session.reader_capabilities == bytes(range(6, 12))


def test_sessions_differ_per_challenge():
    rnd_b = bytes(range(16))
    assert derive_session_keys(KEY, bytes(16), rnd_b) != derive_session_keys(KEY, b"\x01" * 16, rnd_b)


def _started(strict=True):
    auth = AuthenticationHandshake(strict=strict, challenge_source=zero_challenge)
    auth.begin_authentication(0)
    rnd_b = bytes(range(16))
    _, tag_challenge = auth.continue_authentication(
        KEY, encrypt_blocks(KEY, ZERO_IV, rnd_b) + b"\x91\xAF")
    return auth, tag_challenge


def test_strict_rejects_wrong_echo():
    auth, rnd_b = _started()
    with pytest.raises(AuthenticationFailed):
        auth.complete_authentication(KEY, rnd_b, tag_answer(b"\x01" * 16))
    assert auth.state == AuthState.FAILED


def test_compat_accepts_wrong_echo():
    auth, rnd_b = _started(strict=False)
    session = auth.complete_authentication(KEY, rnd_b, tag_answer(b"\x01" * 16))
    assert auth.state == AuthState.ESTABLISHED
    assert session.command_counter == 0


def test_error_status_fails():
    auth = AuthenticationHandshake()
    auth.begin_authentication(0)
    with pytest.raises(AuthenticationFailed):
        auth.continue_authentication(KEY, b"\x91\x40")
    assert auth.state == AuthState.FAILED


def test_short_challenge_fails():
    auth = AuthenticationHandshake()
    auth.begin_authentication(0)
    with pytest.raises(AuthenticationFailed):
        auth.continue_authentication(KEY, bytes(8) + b"\x91\xAF")


def test_short_second_response_fails():
    auth, rnd_b = _started()
    with pytest.raises(AuthenticationFailed):
        auth.complete_authentication(KEY, rnd_b, bytes(16) + b"\x91\x00")
    assert auth.state == AuthState.FAILED


def test_out_of_order():
    auth = AuthenticationHandshake()
    with pytest.raises(AuthenticationFailed):
        auth.complete_authentication(KEY, bytes(16), bytes(32) + b"\x91\x00")

    auth = AuthenticationHandshake()
    auth.begin_authentication(0)
    with pytest.raises(AuthenticationFailed):
        auth.begin_authentication(0)
