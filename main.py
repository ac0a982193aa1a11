"""
audionorm 배치 볼륨 정규화 진입점

역할:
- 커맨드라인 인자 파싱 및 config.yaml 로드 (파일이 없으면 기본값 사용)
- 구조화 로깅 초기화
- BatchNormalizer로 폴더 내 원본 파일을 정규화하고 선택적으로 재인코딩

실행 예시:
    현재 디렉토리, factor 1.0:
        python main.py

    폴더 지정, factor 0.8:
        python main.py ./myfolder --factor 0.8

    이상치 제거 및 MP3 재인코딩:
        python main.py ./myfolder --factor 0.8 --tolerance 50 --reencode

    진행 메시지를 로그로만 기록:
        python main.py ./myfolder --quiet

종료 코드:
    0: 모든 파일 성공
    1: 일부 파일 정규화 또는 재인코딩 실패
    2: 설정/인자 오류 (파일 처리 전)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from src.audio import NormalizationParams
from src.config.config_manager import ConfigLoadError, ConfigManager
from src.logging.structured_logger import setup_logging
from src.pipeline import ConfigurationError
from src.pipeline.batch_normalizer import BatchNormalizer
from src.pipeline.progress import CallbackReporter, LoggingReporter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FILE_FAILURES = 1
EXIT_CONFIG_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    """커맨드라인 파서를 생성합니다."""
    parser = argparse.ArgumentParser(
        prog="audionorm",
        description="audionorm: 폴더 단위 오디오 피크 볼륨 정규화",
    )
    parser.add_argument(
        "folder", nargs="?", default=".", help="원본 오디오 폴더 (기본: 현재 디렉토리)"
    )
    parser.add_argument(
        "--config", default="config.yaml", help="설정 파일 경로 (없으면 기본값 사용)"
    )
    parser.add_argument(
        "--factor", type=float, help="정규화 목표 계수, 0 < factor <= 1 (예: 0.8)"
    )
    parser.add_argument(
        "--tolerance", type=float, help="과증폭 허용치, 0이면 이상치 제거 비활성"
    )
    parser.add_argument(
        "--reencode", action="store_true", default=None,
        help="정규화된 WAV를 외부 인코더로 재인코딩",
    )
    parser.add_argument(
        "--workers", type=int, help="파일 단위 병렬 워커 수 (기본: 1 = 순차)"
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="진행 메시지를 표준 출력 대신 로그로 기록",
    )
    return parser


def _load_config(args: argparse.Namespace):
    """설정 파일을 로드하고 커맨드라인 인자로 오버라이드합니다."""
    manager = ConfigManager()
    if Path(args.config).is_file():
        config = manager.load(args.config)
    else:
        config = manager.load_dict({})

    overrides = config.model_dump()
    if args.factor is not None:
        overrides["normalize"]["factor"] = args.factor
    if args.tolerance is not None:
        overrides["normalize"]["tolerance"] = args.tolerance
    if args.workers is not None:
        overrides["normalize"]["workers"] = args.workers
    if args.reencode:
        overrides["encoder"]["enabled"] = True

    return manager.load_dict(overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """커맨드라인 진입점입니다. 종료 코드를 반환합니다."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
    except ConfigLoadError as exc:
        print(str(exc), file=sys.stderr)
        parser.print_help()
        return EXIT_CONFIG_ERROR

    setup_logging(config)

    reporter = LoggingReporter() if args.quiet else CallbackReporter(print)
    runner = BatchNormalizer(config, reporter=reporter)

    try:
        report = runner.run(args.folder, NormalizationParams.from_config(config))
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        parser.print_help()
        return EXIT_CONFIG_ERROR

    if report.failed or report.reencode_failures:
        return EXIT_FILE_FAILURES
    return EXIT_OK


def cli() -> None:
    """콘솔 스크립트 진입점입니다."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
