"""
PCM 피크/히스토그램 분석 모듈입니다.

역할:
- 16bit little-endian PCM 스트림을 고정 크기 청크로 순방향 1회 읽기
- 샘플 절대값 크기의 최대값과 크기별 발생 히스토그램 계산
- -32768의 크기는 32767로 클램프하여 히스토그램 범위 유지
- 짧은 읽기로 남은 홀수 바이트는 다음 청크로 이월, 스트림 끝의 불완전 샘플은 버림

사용 예시:
    >>> analyzer = PeakAnalyzer(chunk_size=4096)
    >>> with open("out.wav", "rb") as f:
    ...     f.seek(44)
    ...     result = analyzer.analyze(f)
    >>> result.max_sample
"""

from __future__ import annotations

import logging
from typing import BinaryIO

import numpy as np

from src.audio import HISTOGRAM_SIZE, INT16_FULL_SCALE, SAMPLE_WIDTH, AnalysisResult

logger = logging.getLogger(__name__)

_DEFAULT_CHUNK_SIZE = 4096


class PeakAnalyzer:
    """
    PCM 스트림의 최대 크기와 크기 히스토그램을 계산하는 1차 패스 분석기입니다.

    스트림은 읽기만 하며 seek하지 않습니다. 호출자가 헤더 뒤로 위치를 맞춰야 합니다.
    """

    def __init__(self, chunk_size: int = _DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < SAMPLE_WIDTH:
            raise ValueError(f"chunk_size는 {SAMPLE_WIDTH} 이상이어야 합니다. 입력값: {chunk_size}")
        self._chunk_size = chunk_size

    def analyze(self, stream: BinaryIO) -> AnalysisResult:
        """
        스트림 끝까지 읽어 최대 크기, 히스토그램, 전체 샘플 수를 계산합니다.

        파라미터:
            stream: 현재 위치부터 PCM 데이터가 시작되는 바이너리 스트림

        반환값:
            AnalysisResult: 분석 결과
        """
        histogram = np.zeros(HISTOGRAM_SIZE, dtype=np.int64)
        carry = b""

        while True:
            chunk = stream.read(self._chunk_size)
            if not chunk:
                break

            if carry:
                chunk = carry + chunk
                carry = b""

            usable = len(chunk) - len(chunk) % SAMPLE_WIDTH
            if usable < len(chunk):
                carry = chunk[usable:]

            if usable:
                samples = np.frombuffer(chunk[:usable], dtype="<i2")
                np.add.at(histogram, sample_magnitudes(samples), 1)

        if carry:
            logger.warning(f"PCM 스트림 끝의 불완전 샘플 {len(carry)}바이트를 버립니다")

        return _build_result(histogram, dropped_bytes=len(carry))


def sample_magnitudes(samples: np.ndarray) -> np.ndarray:
    """
    int16 샘플 배열의 절대값 크기를 계산합니다.

    int16에서 바로 부호를 뒤집으면 -32768이 오버플로우되므로 int32로 확장한 뒤
    32767로 클램프합니다.

    파라미터:
        samples: int16 샘플 배열

    반환값:
        np.ndarray: 0~32767 범위의 int32 크기 배열
    """
    magnitudes = np.abs(samples.astype(np.int32))
    return np.minimum(magnitudes, INT16_FULL_SCALE)


def _build_result(histogram: np.ndarray, dropped_bytes: int) -> AnalysisResult:
    """히스토그램에서 최대 크기와 전체 샘플 수를 유도합니다."""
    total_samples = int(histogram.sum())
    nonzero = np.flatnonzero(histogram)
    max_sample = int(nonzero[-1]) if total_samples else 0

    logger.debug(f"PCM 분석 완료: samples={total_samples}, max={max_sample}")

    return AnalysisResult(
        max_sample=max_sample,
        histogram=histogram,
        total_samples=total_samples,
        dropped_bytes=dropped_bytes,
    )
