"""
정규화 파이프라인 모듈 패키지

공통 데이터 타입:
- PipelineState: 파일 단위 처리 상태
- FileResult: 파일 하나의 처리 결과
- BatchReport: 배치 실행 요약
- ConfigurationError: 실행 파라미터 오류 (파일 처리 전에 발생)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class ConfigurationError(ValueError):
    """factor/tolerance 범위 오류 또는 원본 폴더가 없을 때 발생하는 에러입니다."""
    pass


class PipelineState(str, Enum):
    """
    파일 단위 정규화 상태입니다.

    Idle → Decoding → HeaderWritten → Analyzing → GainComputed → Scaling → Done
    (재인코딩 시 Done → ReEncoding → Done), 실패 시 어느 단계에서든 Failed
    """
    IDLE = "idle"
    DECODING = "decoding"
    HEADER_WRITTEN = "header_written"
    ANALYZING = "analyzing"
    GAIN_COMPUTED = "gain_computed"
    SCALING = "scaling"
    DONE = "done"
    RE_ENCODING = "re_encoding"
    FAILED = "failed"


@dataclass
class FileResult:
    """
    파일 하나의 정규화 결과입니다.

    필드:
        source_path: 원본 파일 경로
        wav_path: 정규화된 WAV 출력 경로
        state: 최종 상태 (DONE 또는 FAILED)
        sample_rate / channels: 디코더가 보고한 포맷
        total_samples: 분석한 샘플 수
        true_peak / effective_peak: 실제 최대 크기 / 정규화 기준 크기
        gain: 적용한 게인
        error: 정규화 실패 사유 (FAILED일 때)
        encoded_path: 재인코딩 출력 경로 (요청된 경우)
        reencoded: 재인코딩 성공 여부
        reencode_error: 재인코딩 실패 사유 (정규화 결과는 유지됨)
    """
    source_path: Path
    wav_path: Path
    state: PipelineState = PipelineState.IDLE
    sample_rate: int = 0
    channels: int = 0
    total_samples: int = 0
    true_peak: int = 0
    effective_peak: int = 0
    gain: float = 0.0
    error: Optional[str] = None
    encoded_path: Optional[Path] = None
    reencoded: bool = False
    reencode_error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE


@dataclass
class BatchReport:
    """
    배치 실행 요약입니다.

    필드:
        folder: 원본 폴더
        total: 처리 대상 원본 파일 수
        results: 파일별 결과 (처리 순서)
        session_id: 로그 레코드와 같은 세션 ID (로깅 설정 전이면 빈 문자열)
    """
    folder: Path
    total: int = 0
    session_id: str = ""
    results: list[FileResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.state == PipelineState.FAILED)

    @property
    def reencoded(self) -> int:
        return sum(1 for r in self.results if r.reencoded)

    @property
    def reencode_failures(self) -> int:
        return sum(1 for r in self.results if r.reencode_error is not None)
