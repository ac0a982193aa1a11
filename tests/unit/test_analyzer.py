"""
PeakAnalyzer 단위 테스트

검증 항목:
- 최대 크기 / 히스토그램 / 전체 샘플 수 계산
- 0 → 0, -32768 → 32767 클램프
- 청크 경계 및 짧은 읽기에서도 같은 결과
- 스트림 끝 불완전 샘플은 버림 (실패하지 않음)
- 스트림 읽기만 하고 변경하지 않음
"""

from __future__ import annotations

import io

import numpy as np
import pytest

from src.audio import HISTOGRAM_SIZE
from src.audio.analyzer import PeakAnalyzer, sample_magnitudes


# =============================================================================
# 테스트 헬퍼
# =============================================================================

def _pcm(samples) -> bytes:
    """정수 목록을 16bit little-endian PCM 바이트로 변환합니다."""
    return np.asarray(samples, dtype="<i2").tobytes()


class _TrickleStream(io.RawIOBase):
    """read()마다 최대 n바이트만 돌려주는 스트림 (짧은 읽기 시뮬레이션)."""

    def __init__(self, data: bytes, n: int) -> None:
        self._data = data
        self._pos = 0
        self._n = n

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        size = self._n if size < 0 else min(size, self._n)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk


# =============================================================================
# 크기 계산 테스트
# =============================================================================

def test_sample_magnitudes_handles_extremes():
    samples = np.array([0, 1, -1, 32767, -32767, -32768], dtype=np.int16)
    np.testing.assert_array_equal(
        sample_magnitudes(samples), [0, 1, 1, 32767, 32767, 32767]
    )


def test_min_int16_counted_at_top_bin():
    result = PeakAnalyzer().analyze(io.BytesIO(_pcm([-32768, -32768, 5])))

    assert result.max_sample == 32767
    assert result.histogram[32767] == 2
    assert result.histogram[5] == 1
    assert result.histogram.shape == (HISTOGRAM_SIZE,)


# =============================================================================
# 스트림 분석 테스트
# =============================================================================

def test_analyze_counts_and_max():
    samples = [0, 100, -100, 2500, -9000, 9000, 0]
    result = PeakAnalyzer(chunk_size=4).analyze(io.BytesIO(_pcm(samples)))

    assert result.max_sample == 9000
    assert result.total_samples == len(samples)
    assert result.histogram[0] == 2
    assert result.histogram[100] == 2
    assert result.histogram[9000] == 2
    assert result.histogram[2500] == 1
    assert int(result.histogram.sum()) == len(samples)
    assert result.dropped_bytes == 0


@pytest.mark.parametrize("chunk_size", [2, 4, 6, 4096])
def test_chunk_size_does_not_change_result(chunk_size):
    rng = np.random.default_rng(7)
    samples = rng.integers(-32768, 32768, size=5000, dtype=np.int64).astype(np.int16)
    data = samples.tobytes()

    result = PeakAnalyzer(chunk_size=chunk_size).analyze(io.BytesIO(data))
    magnitudes = np.minimum(np.abs(samples.astype(np.int32)), 32767)
    expected = np.bincount(magnitudes, minlength=HISTOGRAM_SIZE)

    assert result.max_sample == int(magnitudes.max())
    assert result.total_samples == 5000
    np.testing.assert_array_equal(result.histogram, expected)


def test_short_odd_reads_are_reassembled():
    """홀수 길이 짧은 읽기의 남은 바이트가 다음 청크와 합쳐지는지 확인합니다."""
    samples = [1, -2, 300, -32768, 12345, 7]
    stream = _TrickleStream(_pcm(samples), n=3)

    result = PeakAnalyzer(chunk_size=4096).analyze(stream)

    assert result.total_samples == len(samples)
    assert result.max_sample == 32767
    assert result.histogram[12345] == 1
    assert result.dropped_bytes == 0


def test_trailing_partial_sample_dropped():
    data = _pcm([10, -20, 30]) + b"\x7f"

    result = PeakAnalyzer(chunk_size=4).analyze(io.BytesIO(data))

    assert result.total_samples == 3
    assert result.max_sample == 30
    assert result.dropped_bytes == 1


def test_empty_stream_is_silence():
    result = PeakAnalyzer().analyze(io.BytesIO(b""))

    assert result.max_sample == 0
    assert result.total_samples == 0
    assert int(result.histogram.sum()) == 0


def test_analyze_starts_at_current_position_and_does_not_modify():
    header = b"H" * 44
    payload = _pcm([1, 2, 3, -4000])
    stream = io.BytesIO(header + payload)
    stream.seek(44)

    result = PeakAnalyzer(chunk_size=2).analyze(stream)

    assert result.total_samples == 4
    assert result.max_sample == 4000
    assert stream.getvalue() == header + payload


def test_invalid_chunk_size_rejected():
    with pytest.raises(ValueError):
        PeakAnalyzer(chunk_size=1)


def test_repeated_magnitudes_within_one_chunk_all_counted():
    samples = [7] * 500 + [-7] * 500 + [32767] * 3
    result = PeakAnalyzer(chunk_size=4096).analyze(io.BytesIO(_pcm(samples)))

    assert result.histogram.dtype == np.int64
    assert result.histogram[7] == 1000
    assert result.histogram[32767] == 3
    assert int(result.histogram.sum()) == len(samples)
