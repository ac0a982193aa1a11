"""
진행 상황 보고 모듈입니다.

파이프라인은 사람이 읽는 진행 메시지를 ProgressReporter.report()로 단방향 전달만 하며,
보고자는 파이프라인 제어에 관여하지 않습니다.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """진행 메시지를 받는 인터페이스입니다."""

    def report(self, message: str) -> None: ...


class NullReporter:
    """모든 메시지를 버리는 보고자입니다."""

    def report(self, message: str) -> None:
        pass


class LoggingReporter:
    """메시지를 로거의 INFO 레벨로 기록하는 보고자입니다."""

    def __init__(self, target: logging.Logger | None = None) -> None:
        self._logger = target or logger

    def report(self, message: str) -> None:
        self._logger.info(message)


class CallbackReporter:
    """
    임의의 func(str) 콜백으로 메시지를 전달하는 보고자입니다.

    사용 예시:
        >>> reporter = CallbackReporter(print)
    """

    def __init__(self, callback: Callable[[str], None]) -> None:
        if not callable(callback):
            raise TypeError(f"callback은 호출 가능해야 합니다: {type(callback)}")
        self._callback = callback

    def report(self, message: str) -> None:
        self._callback(message)
