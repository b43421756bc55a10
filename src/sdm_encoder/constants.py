# ISO 7816-4 명령
CMD_SELECT_FILE = 0xA4
CMD_READ_BINARY = 0xB0

# 네이티브 명령 (CLA 0x90으로 래핑)
CMD_SET_CONFIGURATION = 0x5C
CMD_CHANGE_FILE_SETTINGS = 0x5F
CMD_AUTH_EV2_FIRST = 0x71
CMD_WRITE_DATA = 0x8D
CMD_ADDITIONAL_FRAME = 0xAF
CMD_CHANGE_KEY = 0xC4
CMD_GET_FILE_SETTINGS = 0xF5

CLA_ISO = 0x00
CLA_NATIVE = 0x90

# SELECT P1 모드
FILE_BY_ID = 0x00
DF_BY_NAME = 0x04
# SELECT P2: 응답 데이터 없음
SELECT_NO_FCI = 0x0C

# 상태 워드
SW_SUCCESS = 0x9000
SW_NATIVE_SUCCESS = 0x9100
SW_ADDITIONAL_FRAME = 0x91AF

# NDEF 애플리케이션과 파일
ISO_DF_NAME = bytes.fromhex("D2760000850101")
NDEF_EF_ID = bytes.fromhex("E104")
NDEF_FILE = 0x02

# 세션 키 / IV 유도 라벨
ENC_IV = bytes.fromhex("A55A")
MAC_IV = bytes.fromhex("5AA5")
SV_HEADER = bytes.fromhex("00010080")

# SetConfiguration 옵션 07: 태그 탬퍼 기능
CONFIG_TAG_TAMPER = 0x07
TAG_TAMPER_ENABLE = bytes.fromhex("010E")
