"""
배치 실행 로깅 설정 모듈입니다.

root 로거에 콘솔 핸들러와 순환 파일 핸들러(output/logs/audionorm.log)를 붙이고,
설정에 따라 JSON(python-json-logger) 또는 텍스트 포맷을 적용합니다.

파이프라인 모듈은 `extra={"source": ..., "state": ..., "gain": ...}`로 파일 단위
문맥을 함께 기록하며, 두 포맷터 모두 이 필드를 출력합니다.

사용 예시:
    >>> session_id = setup_logging(config)
    >>> logging.getLogger(__name__).info("정규화 완료", extra={"source": "a.mp3", "gain": 2.62})
"""

from __future__ import annotations

import logging
import logging.handlers
import uuid
from pathlib import Path
from typing import Optional

from pythonjsonlogger import jsonlogger

from src.config.schema import AppConfig

LOG_FILENAME = "audionorm.log"

# 파일 단위 로그 레코드에 붙는 문맥 필드 (출력 순서)
PIPELINE_FIELDS = ("source", "state", "gain")

_LOG_MAX_BYTES = 10 * 1024 * 1024
_LOG_BACKUP_COUNT = 5

_session_id: str = ""


def setup_logging(config: AppConfig, session_id: Optional[str] = None) -> str:
    """
    배치 실행용 root 로거를 구성하고 세션 ID를 반환합니다.

    세션 ID 우선순위: 인자 → config.system.session_id → 새 UUID.
    다시 호출하면 이전 핸들러를 닫고 교체합니다.
    """
    global _session_id
    _session_id = session_id or config.system.session_id or str(uuid.uuid4())

    level = getattr(logging, config.system.log_level, logging.INFO)
    if config.system.log_format == "json":
        formatter: logging.Formatter = _JsonFormatter(_session_id)
    else:
        formatter = _TextFormatter(_session_id)

    root = logging.getLogger()
    root.setLevel(level)
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()

    for handler in _build_handlers(Path(config.system.log_dir)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.getLogger(__name__).info(
        f"로깅 초기화: level={config.system.log_level}, "
        f"format={config.system.log_format}, session={_session_id}"
    )
    return _session_id


def current_session_id() -> str:
    """마지막 setup_logging() 호출의 세션 ID를 반환합니다 (설정 전에는 빈 문자열)."""
    return _session_id


def _build_handlers(log_dir: Path) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            filename=log_dir / LOG_FILENAME,
            maxBytes=_LOG_MAX_BYTES,
            backupCount=_LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))
    except OSError as exc:
        # 로그 파일을 만들 수 없어도 정규화는 콘솔 로그만으로 진행
        logging.warning(f"로그 파일 핸들러 생성 실패: {log_dir}: {exc}")
    return handlers


class _JsonFormatter(jsonlogger.JsonFormatter):
    """session_id, logger, level 필드를 붙이는 JSON 포맷터입니다. extra 필드는 그대로 포함됩니다."""

    def __init__(self, session_id: str = "") -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        self._session_id = session_id

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["session_id"] = self._session_id
        log_record["logger"] = record.name
        log_record["level"] = record.levelname


class _TextFormatter(logging.Formatter):
    """
    세션 ID 앞 8자리를 접두어로 붙이고, 파일 문맥 필드가 있으면
    `| source=... state=... gain=...` 꼬리를 붙이는 텍스트 포맷터입니다.
    """

    def __init__(self, session_id: str = "") -> None:
        prefix = session_id[:8] if session_id else "no-sid"
        super().__init__(
            fmt=f"%(asctime)s [{prefix}] %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = " ".join(
            f"{key}={getattr(record, key)}" for key in PIPELINE_FIELDS if hasattr(record, key)
        )
        return f"{line} | {context}" if context else line
