"""
오디오 정규화 모듈 패키지

공통 데이터 타입:
- NormalizationParams: 배치 전체에 고정되는 정규화 파라미터
- AnalysisResult: 1차 패스(피크/히스토그램 분석) 결과
- GainResult: 게인 계산 결과
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# int16 최대 크기 (정규화 기준 풀스케일)
INT16_FULL_SCALE = 32767
# 크기 히스토그램 길이 (0..32767)
HISTOGRAM_SIZE = INT16_FULL_SCALE + 1
# 16bit PCM 샘플당 바이트 수
SAMPLE_WIDTH = 2


@dataclass(frozen=True)
class NormalizationParams:
    """
    배치 실행 동안 변하지 않는 정규화 파라미터입니다.

    필드:
        factor: 목표 계수 (0 < factor <= 1, 풀스케일 대비 비율)
        tolerance: 이상치 제거 강도 (0이면 비활성)
    """
    factor: float = 1.0
    tolerance: float = 0.0

    @classmethod
    def from_config(cls, config) -> "NormalizationParams":
        """AppConfig의 normalize 섹션에서 파라미터를 생성합니다."""
        return cls(
            factor=config.normalize.factor,
            tolerance=config.normalize.tolerance,
        )


@dataclass
class AnalysisResult:
    """
    PCM 1차 패스 분석 결과입니다.

    필드:
        max_sample: 절대값 최대 샘플 (0~32767)
        histogram: 크기별 발생 횟수 (np.int64, 길이 32768)
        total_samples: 분석한 전체 샘플 수 (모든 채널 합산)
        dropped_bytes: 스트림 끝에서 버린 불완전 샘플 바이트 수 (0 또는 1)
    """
    max_sample: int
    histogram: np.ndarray
    total_samples: int
    dropped_bytes: int = 0


@dataclass(frozen=True)
class GainResult:
    """
    게인 계산 결과입니다.

    필드:
        gain: 모든 샘플에 곱할 선형 배율 (무음이면 0.0)
        effective_peak: 정규화 기준으로 사용한 크기
        true_peak: 실제 최대 샘플 크기
        tolerance_applied: 허용치 기반 유효 피크가 선택되었는지 여부
    """
    gain: float
    effective_peak: int
    true_peak: int
    tolerance_applied: bool = False

    @property
    def tolerance_position(self) -> int:
        """풀스케일에서 유효 피크까지의 거리 (32767 - effective_peak)."""
        return INT16_FULL_SCALE - self.effective_peak
