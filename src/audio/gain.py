"""
정규화 게인 계산 모듈입니다.

역할:
- 1차 패스 분석 결과와 목표 계수로 단일 선형 게인 계산
- tolerance > 0이면 히스토그램을 위에서부터 훑어 충분히 자주 나타나는 크기를
  유효 피크로 선택 (소수의 순간 피크가 전체 게인을 억누르지 않도록)
- 무음(유효 피크 0)이면 0으로 나누지 않고 게인 0을 반환

발생 빈도는 천만분율(percentage × 100,000)로 비교합니다:
    occurrence = histogram[m] / total_samples × 10,000,000

사용 예시:
    >>> result = compute_gain(10000, histogram, 88200, factor=0.8, tolerance=0)
    >>> round(result.gain, 4)
    2.6214
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from src.audio import INT16_FULL_SCALE, AnalysisResult, GainResult, NormalizationParams

logger = logging.getLogger(__name__)

# 발생 빈도 스케일 (천만분율)
OCCURRENCE_SCALE = 10_000_000


def find_effective_peak(
    histogram: np.ndarray,
    total_samples: int,
    tolerance: float,
) -> Optional[int]:
    """
    발생 빈도가 tolerance를 초과하는 가장 큰 크기를 찾습니다.

    크기 32767부터 1까지 내려가며 검사합니다. 크기 0(무음)은 후보가 아닙니다.

    반환값:
        Optional[int]: 조건을 만족하는 크기, 없으면 None
    """
    if total_samples <= 0:
        return None

    counts = np.asarray(histogram[1:INT16_FULL_SCALE + 1], dtype=np.float64)
    occurrence = counts / float(total_samples) * OCCURRENCE_SCALE
    candidates = np.flatnonzero(occurrence > tolerance)
    if candidates.size == 0:
        return None

    # counts[i]는 크기 i + 1에 해당
    return int(candidates[-1]) + 1


def compute_gain(
    max_sample: int,
    histogram: np.ndarray,
    total_samples: int,
    factor: float,
    tolerance: float,
) -> GainResult:
    """
    정규화 게인을 계산합니다.

    gain = 32767 / effective_peak × factor

    순수 함수이며 같은 입력에 대해 항상 같은 결과를 반환합니다.

    파라미터:
        max_sample: 실제 최대 샘플 크기
        histogram: 크기별 발생 횟수 (길이 32768)
        total_samples: 전체 샘플 수
        factor: 목표 계수 (0 < factor <= 1)
        tolerance: 이상치 제거 강도 (0이면 비활성)

    반환값:
        GainResult: 게인과 유효 피크 정보
    """
    effective_peak = max_sample
    tolerance_applied = False

    if tolerance > 0:
        override = find_effective_peak(histogram, total_samples, tolerance)
        if override is not None:
            effective_peak = override
            tolerance_applied = True

    if effective_peak <= 0:
        logger.debug("유효 피크가 0이므로 게인 0을 반환합니다 (무음)")
        return GainResult(
            gain=0.0,
            effective_peak=0,
            true_peak=max_sample,
            tolerance_applied=tolerance_applied,
        )

    gain = float(INT16_FULL_SCALE) / float(effective_peak) * float(factor)
    return GainResult(
        gain=gain,
        effective_peak=effective_peak,
        true_peak=max_sample,
        tolerance_applied=tolerance_applied,
    )


def gain_for(analysis: AnalysisResult, params: NormalizationParams) -> GainResult:
    """AnalysisResult와 NormalizationParams로 compute_gain을 호출합니다."""
    return compute_gain(
        analysis.max_sample,
        analysis.histogram,
        analysis.total_samples,
        params.factor,
        params.tolerance,
    )
