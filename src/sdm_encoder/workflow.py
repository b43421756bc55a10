"""
태그 한 개의 프로비저닝.

순서대로 실행하며, 한 단계라도 실패하면 전체를 중단합니다:

1. NDEF 애플리케이션/파일 선택, 현재 내용 읽기
2. 인증 (EV2First)
3. 태그 탬퍼 감지 활성화 (SetConfiguration)
4. SDM URL 레코드 쓰기 (WriteData)
5. NDEF 파일을 SDM 미러링으로 전환 (ChangeFileSettings)

중간에 실패한 태그는 복구하지 않습니다. 태그를 다시 올리고 1단계부터 재시작합니다.
URL 레코드와 파일 설정은 첫 명령을 보내기 전에 만들고 검증합니다.
"""

import logging
from typing import Callable, Optional

from . import config
from .apdu import MAX_SHORT_LC
from .codec import pad
from .constants import (
    CONFIG_TAG_TAMPER, NDEF_EF_ID, NDEF_FILE, TAG_TAMPER_ENABLE,
)
from .driver import TagDriver, WRITE_HEADER_LEN
from .exceptions import RecordError
from .file_settings import CommMode, FileSettings
from .ndef import build_url, parse_ndef_url, sdm_offsets, wrap_ndef_data
from .secure_channel import MAC_LEN
from .transport import Transport

log = logging.getLogger(__name__)


def write_payload_length(data: bytes, mode: CommMode) -> int:
    """WriteData 명령의 Lc (헤더 + 데이터 + MAC)."""
    if mode == CommMode.FULL:
        return WRITE_HEADER_LEN + len(pad(data)) + MAC_LEN
    elif mode == CommMode.MAC:
        return WRITE_HEADER_LEN + len(data) + MAC_LEN
    return WRITE_HEADER_LEN + len(data)


class ProvisioningResult:
    """성공한 프로비저닝 결과."""

    def __init__(self, previous_url: str, url: str, ndef_data: bytes,
                 file_settings: FileSettings, command_counter: int):
        self.previous_url = previous_url
        self.url = url
        self.ndef_data = ndef_data
        self.file_settings = file_settings
        self.command_counter = command_counter

    def __repr__(self):
        return f"ProvisioningResult(url={self.url!r}, ctr={self.command_counter})"


class ProvisioningWorkflow:

    def __init__(self, transport: Transport, company_id: str = config.COMPANY_ID,
                 key: bytes = config.STATIC_KEY, key_number: int = config.KEY_NUMBER,
                 write_mode: CommMode = CommMode.FULL,
                 timeout_ms: int = config.EXCHANGE_TIMEOUT_MS,
                 delay: float = config.EXCHANGE_DELAY, strict: bool = config.STRICT,
                 challenge_source: Optional[Callable[[], bytes]] = None):
        self.company_id = company_id
        self.key = key
        self.key_number = key_number
        self.write_mode = write_mode
        self.driver = TagDriver(transport, timeout_ms=timeout_ms, delay=delay,
                                strict=strict, challenge_source=challenge_source)

    def prepare(self):
        """
        URL, NDEF 데이터, 파일 설정을 만듭니다.
        WriteData가 short APDU 한 개에 들어가지 않으면 RecordError를 발생시킵니다.
        """
        try:
            url = build_url(self.company_id)
            ndef_data = wrap_ndef_data(url)
            settings = FileSettings.for_sdm_url(sdm_offsets(url))
        except ValueError as e:
            raise RecordError(f"cannot build NDEF record: {e}") from e

        lc = write_payload_length(ndef_data, self.write_mode)
        if lc > MAX_SHORT_LC:
            raise RecordError(
                f"WriteData of {lc} bytes exceeds one frame ({MAX_SHORT_LC}); "
                f"company id of {len(self.company_id)} characters is too long")
        return url, ndef_data, settings

    def run(self) -> ProvisioningResult:
        url, ndef_data, settings = self.prepare()
        driver = self.driver

        log.info("Select NDEF application")
        driver.select_application()
        log.info("Select NDEF file")
        driver.select_file(NDEF_EF_ID)
        log.info("Read NDEF file")
        previous_url = parse_ndef_url(driver.read_binary())
        log.info("NDEF: %s", previous_url or "(empty)")

        log.info("Authenticate with key %d", self.key_number)
        session = driver.authenticate(self.key, self.key_number)
        log.info("Connected: %r", session)

        log.info("Enable tag tamper in config")
        driver.set_configuration(CONFIG_TAG_TAMPER, TAG_TAMPER_ENABLE)

        log.info("Write NDEF URL: %s", url)
        driver.write_data(NDEF_FILE, ndef_data, mode=self.write_mode)

        log.info("Change NDEF file settings: %s", settings.to_dict())
        driver.change_file_settings(NDEF_FILE, settings)

        return ProvisioningResult(previous_url, url, ndef_data, settings,
                                  session.command_counter)


def provision(transport: Transport, company_id: str, **kwargs) -> ProvisioningResult:
    """transport 너머의 태그를 company_id로 프로비저닝합니다."""
    return ProvisioningWorkflow(transport, company_id, **kwargs).run()
