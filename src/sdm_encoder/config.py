# 태그 인코더 설정
# 모든 값은 환경 변수로 덮어쓸 수 있습니다.

import os

from .codec import from_hex

# 인증에 쓰는 정적 AES 키 (hex). 출고 상태 태그는 전부 0
STATIC_KEY = from_hex(os.environ.get("SDM_STATIC_KEY", "00" * 16))

# 인증 키 슬롯 (0 = 애플리케이션 마스터 키)
KEY_NUMBER = int(os.environ.get("SDM_KEY_NUMBER", "0"))

# 교환 한 번의 타임아웃 (ms)
EXCHANGE_TIMEOUT_MS = int(os.environ.get("SDM_EXCHANGE_TIMEOUT_MS", "999"))

# 교환 사이 대기 시간 (초)
EXCHANGE_DELAY = float(os.environ.get("SDM_EXCHANGE_DELAY", "0.5"))

# 챌린지 에코와 응답 MAC 검증. 0이면 둘 다 생략
STRICT = os.environ.get("SDM_STRICT", "1") != "0"

# URL 템플릿에 넣을 회사 ID
COMPANY_ID = os.environ.get("SDM_COMPANY_ID", "abcdefghij")
