"""
구조화 로깅 패키지

setup_logging()으로 root 로거를 구성하고, 각 모듈은 logging.getLogger(__name__)으로
로거를 얻습니다.
"""

from src.logging.structured_logger import LOG_FILENAME, current_session_id, setup_logging

__all__ = ["LOG_FILENAME", "current_session_id", "setup_logging"]
