"""
태그 교환의 리더 쪽.

Transport는 명령 프레임 하나를 보내고 상태 바이트 2개를 포함한 원본 응답을
반환합니다. 태그가 제때 응답하지 않으면 TransportTimeout, 카드가 사라지면
TransportError를 발생시킵니다.
"""


class Transport:
    """태그 한 개와의 동기 프레임 교환."""

    def transmit(self, frame: bytes, timeout_ms: int) -> bytes:
        raise NotImplementedError

    def close(self):
        pass
