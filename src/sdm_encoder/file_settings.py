"""
SDM (Secure Dynamic Messaging) 파일 설정.

ChangeFileSettings 데이터 구조 (GetFileSettings 응답은 앞에 파일 타입,
접근 권한 뒤에 3바이트 파일 크기가 추가됨):

    FileOption(1) AccessRights(2) [SDMOptions(1) SDMAccessRights(2) offsets...]

오프셋은 3바이트 리틀 엔디안이며 해당 기능이 켜져 있을 때만 아래 순서로 들어갑니다: UID, SDMReadCtr, PICCData, TTStatus,
SDMMACInput, SDMENCOffset, SDMENCLength, SDMMAC, SDMReadCtrLimit.
"""

from enum import IntEnum
from typing import Dict, Optional

from .codec import to_hex

ACCESS_FREE = 0x0E
ACCESS_DENIED = 0x0F

FILE_OPTION_SDM = 0x40
FILE_TYPE_STANDARD = 0x00

SDM_UID_MIRROR = 0x80
SDM_READ_CTR = 0x40
SDM_READ_CTR_LIMIT = 0x20
SDM_ENC_FILE_DATA = 0x10
SDM_TT_STATUS = 0x08
SDM_ASCII = 0x01


class CommMode(IntEnum):
    """통신 모드 (FileOption 하위 비트)."""
    PLAIN = 0x00
    MAC = 0x01
    FULL = 0x03


def _u24(value: int) -> bytes:
    return value.to_bytes(3, "little")


def _access_str(key: int) -> str:
    if key == ACCESS_FREE:
        return "Free"
    elif key == ACCESS_DENIED:
        return "Denied"
    return f"Key {key}"


class AccessRights:
    """Read / Write / ReadWrite / Change 키 번호."""

    def __init__(self, read: int = ACCESS_FREE, write: int = 0,
                 read_write: int = 0, change: int = 0):
        self.read = read
        self.write = write
        self.read_write = read_write
        self.change = change

    def to_bytes(self) -> bytes:
        # LSB 먼저: [RW | Change], [Read | Write]
        return bytes([(self.read_write << 4) | self.change, (self.read << 4) | self.write])

    @classmethod
    def from_bytes(cls, data: bytes) -> "AccessRights":
        return cls(read=data[1] >> 4, write=data[1] & 0x0F,
                   read_write=data[0] >> 4, change=data[0] & 0x0F)

    def __eq__(self, other):
        return isinstance(other, AccessRights) and self.to_bytes() == other.to_bytes()

    def to_dict(self) -> Dict:
        return {
            "Read": _access_str(self.read),
            "Write": _access_str(self.write),
            "Read/Write": _access_str(self.read_write),
            "Change": _access_str(self.change),
        }


class SDMAccessRights:
    """SDMMetaRead / SDMFileRead / SDMCtrRet 키 번호."""

    def __init__(self, meta_read: int = ACCESS_FREE, file_read: int = 0,
                 ctr_ret: int = ACCESS_FREE):
        self.meta_read = meta_read
        self.file_read = file_read
        self.ctr_ret = ctr_ret

    def to_bytes(self) -> bytes:
        # LSB 먼저: [RFU | CtrRet], [MetaRead | FileRead]
        return bytes([0xF0 | self.ctr_ret, (self.meta_read << 4) | self.file_read])

    @classmethod
    def from_bytes(cls, data: bytes) -> "SDMAccessRights":
        return cls(meta_read=data[1] >> 4, file_read=data[1] & 0x0F,
                   ctr_ret=data[0] & 0x0F)

    @property
    def plain_mirroring(self) -> bool:
        return self.meta_read == ACCESS_FREE

    @property
    def encrypted_mirroring(self) -> bool:
        return self.meta_read <= 0x04

    @property
    def mac_enabled(self) -> bool:
        return self.file_read != ACCESS_DENIED

    def __eq__(self, other):
        return isinstance(other, SDMAccessRights) and self.to_bytes() == other.to_bytes()


class FileSettings:
    """
    파일 한 개의 설정 (SDM 미러링 선택).

    오프셋은 태그가 읽힐 때마다 UID, 읽기 카운터, 탬퍼 상태, MAC을
    써 넣는 파일 내 위치입니다.
    """

    def __init__(self, comm_mode: CommMode = CommMode.PLAIN,
                 access_rights: Optional[AccessRights] = None,
                 sdm_enabled: bool = False, sdm_options: int = 0,
                 sdm_access_rights: Optional[SDMAccessRights] = None,
                 uid_offset: Optional[int] = None,
                 read_ctr_offset: Optional[int] = None,
                 picc_data_offset: Optional[int] = None,
                 tt_status_offset: Optional[int] = None,
                 mac_input_offset: Optional[int] = None,
                 enc_offset: Optional[int] = None,
                 enc_length: Optional[int] = None,
                 mac_offset: Optional[int] = None,
                 read_ctr_limit: Optional[int] = None,
                 file_type: int = FILE_TYPE_STANDARD,
                 file_size: Optional[int] = None):
        self.comm_mode = CommMode(comm_mode)
        self.access_rights = access_rights or AccessRights()
        self.sdm_enabled = sdm_enabled
        self.sdm_options = sdm_options
        self.sdm_access_rights = sdm_access_rights or SDMAccessRights()
        self.uid_offset = uid_offset
        self.read_ctr_offset = read_ctr_offset
        self.picc_data_offset = picc_data_offset
        self.tt_status_offset = tt_status_offset
        self.mac_input_offset = mac_input_offset
        self.enc_offset = enc_offset
        self.enc_length = enc_length
        self.mac_offset = mac_offset
        self.read_ctr_limit = read_ctr_limit
        self.file_type = file_type
        self.file_size = file_size

    def _offset_fields(self):
        """현재 옵션에서 존재하는 오프셋 필드 이름 (태그 순서)."""
        fields = []
        opts = self.sdm_options
        sar = self.sdm_access_rights
        if sar.plain_mirroring:
            if opts & SDM_UID_MIRROR:
                fields.append("uid_offset")
            if opts & SDM_READ_CTR:
                fields.append("read_ctr_offset")
        elif sar.encrypted_mirroring:
            fields.append("picc_data_offset")
        if opts & SDM_TT_STATUS:
            fields.append("tt_status_offset")
        if sar.mac_enabled:
            fields.append("mac_input_offset")
            if opts & SDM_ENC_FILE_DATA:
                fields.extend(["enc_offset", "enc_length"])
            fields.append("mac_offset")
        if opts & SDM_READ_CTR_LIMIT:
            fields.append("read_ctr_limit")
        return fields

    @property
    def file_option(self) -> int:
        return int(self.comm_mode) | (FILE_OPTION_SDM if self.sdm_enabled else 0)

    def to_bytes(self) -> bytes:
        """ChangeFileSettings 명령 데이터."""
        data = bytes([self.file_option]) + self.access_rights.to_bytes()
        if not self.sdm_enabled:
            return data
        data += bytes([self.sdm_options]) + self.sdm_access_rights.to_bytes()
        for name in self._offset_fields():
            value = getattr(self, name)
            if value is None:
                raise ValueError(f"{name} is required by the SDM options")
            data += _u24(value)
        return data

    @classmethod
    def from_response(cls, data: bytes) -> "FileSettings":
        """GetFileSettings 응답 데이터를 파싱합니다."""
        data = bytes(data)
        if len(data) < 7:
            raise ValueError(f"file settings too short: {to_hex(data)}")
        settings = cls(
            comm_mode=CommMode(data[1] & 0x03),
            access_rights=AccessRights.from_bytes(data[2:4]),
            sdm_enabled=bool(data[1] & FILE_OPTION_SDM),
            file_type=data[0],
            file_size=int.from_bytes(data[4:7], "little"),
        )
        if not settings.sdm_enabled:
            return settings
        if len(data) < 10:
            raise ValueError(f"SDM settings truncated: {to_hex(data)}")
        settings.sdm_options = data[7]
        settings.sdm_access_rights = SDMAccessRights.from_bytes(data[8:10])
        pos = 10
        for name in settings._offset_fields():
            if pos + 3 > len(data):
                raise ValueError(f"SDM settings truncated at {name}: {to_hex(data)}")
            setattr(settings, name, int.from_bytes(data[pos:pos + 3], "little"))
            pos += 3
        return settings

    @classmethod
    def for_sdm_url(cls, offsets: Dict[str, int]) -> "FileSettings":
        """
        프로비저닝할 NDEF 파일 설정: 평문 파일, 읽기 자유, 나머지는 키 0.
        UID, 읽기 카운터, 탬퍼 상태를 ASCII 평문으로 미러링하고
        URL 전체에 대해 키 0으로 MAC을 계산합니다.
        """
        return cls(
            comm_mode=CommMode.PLAIN,
            access_rights=AccessRights(read=ACCESS_FREE, write=0, read_write=0, change=0),
            sdm_enabled=True,
            sdm_options=SDM_UID_MIRROR | SDM_READ_CTR | SDM_TT_STATUS | SDM_ASCII,
            sdm_access_rights=SDMAccessRights(meta_read=ACCESS_FREE, file_read=0,
                                              ctr_ret=ACCESS_FREE),
            uid_offset=offsets["uid"],
            read_ctr_offset=offsets["ctr"],
            tt_status_offset=offsets["tt"],
            mac_input_offset=offsets["mac_input"],
            mac_offset=offsets["cmac"],
        )

    def to_dict(self) -> Dict:
        result = {
            "File Type": f"0x{self.file_type:02X}",
            "Communication": self.comm_mode.name,
            "SDM": self.sdm_enabled,
        }
        result.update(self.access_rights.to_dict())
        if self.file_size is not None:
            result["Size"] = f"{self.file_size} bytes"
        if self.sdm_enabled:
            result["SDM Options"] = f"0x{self.sdm_options:02X}"
            for name in self._offset_fields():
                result[name] = getattr(self, name)
        return result
