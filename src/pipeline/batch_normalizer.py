"""
배치 정규화 오케스트레이터 모듈입니다.

역할:
- 실행 파라미터 검증 (파일을 건드리기 전에 ConfigurationError)
- 원본 폴더에서 설정된 확장자의 파일만 선택 (대소문자 무관, 이름순)
- 같은 WAV 이름으로 출력될 원본(예: song.mp3 / song.MP3)은 처리 전에 찾아 뒤의 파일을 실패 처리
- 파일마다 FileNormalizer 실행, 실패한 파일은 건너뛰고 다음 파일 계속
- 재인코딩 요청 시 정규화가 끝난 파일마다 재인코딩
- workers > 1이면 파일 단위로 ThreadPoolExecutor에서 병렬 처리

사용 예시:
    >>> runner = BatchNormalizer(config, reporter=CallbackReporter(print))
    >>> report = runner.run("./music", NormalizationParams(factor=0.8), reencode=True)
    >>> print(report.succeeded, report.failed)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from src.audio import NormalizationParams
from src.codec import DecoderFactory, Encoder
from src.config.schema import AppConfig
from src.logging import current_session_id
from src.pipeline import BatchReport, ConfigurationError, FileResult
from src.pipeline.file_normalizer import FileNormalizer
from src.pipeline.progress import NullReporter, ProgressReporter

logger = logging.getLogger(__name__)


class BatchNormalizer:
    """
    폴더 단위로 원본 파일을 정규화하는 배치 실행기입니다.

    파라미터(factor, tolerance)는 run() 호출마다 명시적으로 전달되며
    배치 동안 모든 파일에 동일하게 적용됩니다.
    """

    def __init__(
        self,
        config: AppConfig,
        reporter: Optional[ProgressReporter] = None,
        decoder_factory: Optional[DecoderFactory] = None,
        encoder: Optional[Encoder] = None,
    ) -> None:
        self._config = config
        self._reporter = reporter or NullReporter()
        self._source_extension = config.io.source_extension.lower()
        self._workers = config.normalize.workers
        self._file_normalizer = FileNormalizer.from_config(
            config,
            reporter=self._reporter,
            decoder_factory=decoder_factory,
            encoder=encoder,
        )

    def list_sources(self, folder: Path) -> list[Path]:
        """폴더에서 원본 확장자를 가진 일반 파일을 이름순으로 반환합니다."""
        return sorted(
            (
                entry for entry in Path(folder).iterdir()
                if entry.is_file() and entry.suffix.lower() == self._source_extension
            ),
            key=lambda entry: entry.name,
        )

    def find_output_collisions(self, sources: list[Path]) -> dict[Path, Path]:
        """
        앞선 원본과 같은 WAV 출력 경로로 매핑되는 원본을 찾습니다.

        대소문자만 다른 이름도 충돌로 봅니다 (대소문자 무시 파일시스템 대비).

        반환값:
            dict[Path, Path]: 나중 원본 → 같은 출력을 먼저 차지한 원본
        """
        claimed: dict[str, Path] = {}
        collisions: dict[Path, Path] = {}
        for source in sources:
            key = str(self._file_normalizer.wav_path_for(source)).casefold()
            if key in claimed:
                collisions[source] = claimed[key]
            else:
                claimed[key] = source
        return collisions

    def run(
        self,
        folder: str | Path,
        params: Optional[NormalizationParams] = None,
        reencode: Optional[bool] = None,
    ) -> BatchReport:
        """
        폴더의 모든 원본 파일을 정규화합니다.

        파라미터:
            folder: 원본 폴더 경로
            params: 정규화 파라미터 (None이면 설정의 normalize 섹션 사용)
            reencode: 재인코딩 여부 (None이면 설정의 encoder.enabled 사용)

        반환값:
            BatchReport: 배치 실행 요약

        에러:
            ConfigurationError: factor/tolerance 범위 오류, 폴더가 없거나 디렉토리가 아닐 때
        """
        folder = Path(folder)
        params = params or NormalizationParams.from_config(self._config)
        if reencode is None:
            reencode = self._config.encoder.enabled

        _validate_run(folder, params)

        self._reporter.report(
            f"폴더 처리 시작: {folder}, 정규화 계수: {params.factor:.2f}, "
            f"과증폭 허용치: {params.tolerance:.2f}"
        )

        sources = self.list_sources(folder)
        report = BatchReport(folder=folder, total=len(sources), session_id=current_session_id())
        self._reporter.report(f"{self._source_extension} 파일 수: {report.total}")
        collisions = self.find_output_collisions(sources)

        if self._workers > 1 and len(sources) > 1:
            logger.info(f"병렬 처리: workers={self._workers}")
            with ThreadPoolExecutor(max_workers=self._workers) as executor:
                report.results = list(executor.map(
                    lambda item: self._process(
                        item[0], item[1], report.total, params, reencode, collisions.get(item[1])
                    ),
                    enumerate(sources, start=1),
                ))
        else:
            for index, source in enumerate(sources, start=1):
                report.results.append(self._process(
                    index, source, report.total, params, reencode, collisions.get(source)
                ))

        self._reporter.report(
            f"WAV 변환 및 정규화 완료: 성공 {report.succeeded}, 실패 {report.failed}"
        )
        if reencode:
            self._reporter.report(
                f"재인코딩 완료: 성공 {report.reencoded}, 실패 {report.reencode_failures}"
            )

        logger.info(
            f"배치 완료: folder={folder}, total={report.total}, "
            f"succeeded={report.succeeded}, failed={report.failed}, "
            f"reencoded={report.reencoded}, reencode_failures={report.reencode_failures}, "
            f"session={report.session_id}"
        )
        return report

    def _process(
        self,
        index: int,
        source: Path,
        total: int,
        params: NormalizationParams,
        reencode: bool,
        claimed_by: Optional[Path] = None,
    ) -> FileResult:
        """파일 하나를 정규화하고 요청 시 재인코딩합니다."""
        self._reporter.report(f"{index}/{total} 처리 중: {source}")
        if claimed_by is not None:
            wav_name = self._file_normalizer.wav_path_for(source).name
            return self._file_normalizer.reject(
                source, f"출력 파일 이름 충돌: {wav_name} (이미 {claimed_by.name}에서 사용)"
            )

        result = self._file_normalizer.normalize(source, params)

        if reencode and result.succeeded:
            target = self._file_normalizer.encoded_path_for(result.wav_path)
            self._reporter.report(f"{index}/{total} 재인코딩: {target}")
            self._file_normalizer.reencode(result)

        return result


def _validate_run(folder: Path, params: NormalizationParams) -> None:
    """실행 파라미터를 검증합니다. 실패 시 ConfigurationError를 발생시킵니다."""
    if not 0.0 < params.factor <= 1.0:
        raise ConfigurationError(
            f"factor는 0보다 크고 1 이하여야 합니다 (예: 0.8). 입력값: {params.factor}"
        )
    if not params.tolerance >= 0.0:
        raise ConfigurationError(f"tolerance는 0 이상이어야 합니다. 입력값: {params.tolerance}")
    if not folder.is_dir():
        raise ConfigurationError(
            f"폴더 {folder}이(가) 존재하지 않거나, 읽을 수 없거나, 파일입니다"
        )
