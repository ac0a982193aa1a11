"""진행 보고자 단위 테스트"""

from __future__ import annotations

import logging

import pytest

from src.pipeline.progress import CallbackReporter, LoggingReporter, NullReporter


class TestCallbackReporter:
    def test_forwards_messages_in_order(self):
        received = []
        reporter = CallbackReporter(received.append)

        reporter.report("1/2 처리 중: a.mp3")
        reporter.report("2/2 처리 중: b.mp3")

        assert received == ["1/2 처리 중: a.mp3", "2/2 처리 중: b.mp3"]

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            CallbackReporter("print")


class TestLoggingReporter:
    def test_logs_at_info(self, caplog):
        target = logging.getLogger("audionorm.progress.test")

        with caplog.at_level(logging.INFO, logger="audionorm.progress.test"):
            LoggingReporter(target).report(".mp3 파일 수: 3")

        assert [r.getMessage() for r in caplog.records] == [".mp3 파일 수: 3"]
        assert caplog.records[0].levelno == logging.INFO


def test_null_reporter_accepts_anything():
    NullReporter().report("무시됨")
