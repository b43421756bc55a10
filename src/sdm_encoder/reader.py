"""
PC/SC 리더 연동 (pyscard).

PcscTransport는 pyscard CardConnection을 Transport 인터페이스에 맞춥니다.
ProvisioningObserver는 리더에 올라온 태그를 한 번에 하나씩 프로비저닝합니다.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable

from smartcard.CardMonitoring import CardObserver
from smartcard.Exceptions import CardConnectionException, NoCardException

from .exceptions import EncoderError, TransportError, TransportTimeout
from .transport import Transport
from .workflow import ProvisioningResult, ProvisioningWorkflow

log = logging.getLogger(__name__)


class PcscTransport(Transport):
    """연결된 pyscard CardConnection 위의 Transport."""

    def __init__(self, connection):
        self.connection = connection
        self._executor = ThreadPoolExecutor(max_workers=1)

    def _transmit(self, frame: bytes) -> bytes:
        data, sw1, sw2 = self.connection.transmit(list(frame))
        return bytes(data) + bytes([sw1, sw2])

    def transmit(self, frame: bytes, timeout_ms: int) -> bytes:
        future = self._executor.submit(self._transmit, frame)
        try:
            return future.result(timeout=timeout_ms / 1000.0)
        except FutureTimeout:
            raise TransportTimeout(f"no response within {timeout_ms} ms")
        except (CardConnectionException, NoCardException) as e:
            raise TransportError(f"exchange failed: {e}") from e

    def close(self):
        try:
            self.connection.disconnect()
        except CardConnectionException:
            pass
        self._executor.shutdown(wait=False)


class ProvisioningObserver(CardObserver):
    """
    새로 올라온 태그마다 프로비저닝 워크플로를 실행하는 카드 모니터 옵저버.

    on_result/on_error는 실행마다 리더 이름과 결과 또는 예외를 받습니다.
    """

    def __init__(self, company_id: str, on_result: Callable = None,
                 on_error: Callable = None, **workflow_kwargs):
        self.company_id = company_id
        self.on_result = on_result
        self.on_error = on_error
        self.workflow_kwargs = workflow_kwargs
        self._lock = threading.Lock()

    def provision_card(self, card) -> ProvisioningResult:
        connection = card.createConnection()
        try:
            connection.connect()
        except (CardConnectionException, NoCardException) as e:
            raise TransportError(f"cannot connect to card: {e}") from e
        transport = PcscTransport(connection)
        try:
            return ProvisioningWorkflow(transport, self.company_id,
                                        **self.workflow_kwargs).run()
        finally:
            transport.close()

    def update(self, observable, actions):
        added, removed = actions
        for card in removed:
            log.info("%s  card removed", card.reader)
        for card in added:
            log.info("%s  card detected", card.reader)
            with self._lock:
                try:
                    result = self.provision_card(card)
                except EncoderError as e:
                    log.error("%s  provisioning failed: %s", card.reader, e)
                    if self.on_error:
                        self.on_error(card.reader, e)
                    continue
            log.info("%s  provisioned: %s", card.reader, result.url)
            if self.on_result:
                self.on_result(card.reader, result)
