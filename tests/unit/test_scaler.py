"""
SampleScaler 단위 테스트

검증 항목:
- round(sample × gain) 후 [-32767, 32767] 대칭 포화
- 게인 0이면 전부 0
- read-modify-write가 읽은 오프셋에 정확히 기록
- 헤더(앞 44바이트)는 변경하지 않음
- 불완전 마지막 바이트는 그대로 유지
"""

from __future__ import annotations

import io

import numpy as np
import pytest

from src.audio.scaler import SampleScaler, scale_samples
from src.container import HEADER_SIZE
from src.container.wav_header import encode_header


def _pcm(samples) -> bytes:
    return np.asarray(samples, dtype="<i2").tobytes()


def _expected(samples, gain) -> np.ndarray:
    return np.clip(np.rint(np.asarray(samples, dtype=np.float64) * gain), -32767, 32767).astype(np.int16)


# =============================================================================
# 샘플 변환 테스트
# =============================================================================

def test_scale_samples_rounds():
    samples = np.array([1, 2, 3, -3, 10], dtype=np.int16)
    np.testing.assert_array_equal(scale_samples(samples, 1.5), [2, 3, 4, -4, 15])


def test_scale_samples_saturates_symmetrically():
    samples = np.array([20000, -20000, -32768, 32767], dtype=np.int16)
    np.testing.assert_array_equal(
        scale_samples(samples, 2.0), [32767, -32767, -32767, 32767]
    )


def test_min_int16_with_unity_gain_is_clipped_to_minus_32767():
    samples = np.array([-32768], dtype=np.int16)
    assert int(scale_samples(samples, 1.0)[0]) == -32767


@pytest.mark.parametrize("gain", [0.0, 0.25, 1.0, 3.7, 100.0, 1e6])
def test_output_always_within_symmetric_range(gain):
    rng = np.random.default_rng(11)
    samples = rng.integers(-32768, 32768, size=10_000, dtype=np.int64).astype(np.int16)

    scaled = scale_samples(samples, gain)

    assert scaled.dtype == np.dtype("<i2")
    assert int(scaled.max(initial=0)) <= 32767
    assert int(scaled.min(initial=0)) >= -32767
    np.testing.assert_array_equal(scaled, _expected(samples, gain))


def test_zero_gain_produces_silence():
    samples = np.array([5, -5, 32767, -32768], dtype=np.int16)
    np.testing.assert_array_equal(scale_samples(samples, 0.0), [0, 0, 0, 0])


# =============================================================================
# 스트림 read-modify-write 테스트
# =============================================================================

@pytest.mark.parametrize("chunk_size", [2, 6, 4096])
def test_scale_stream_in_place_after_header(chunk_size):
    samples = list(range(-5000, 5000, 37))
    header = encode_header(len(samples) * 2, 8000, 1, 16)
    stream = io.BytesIO(header + _pcm(samples))

    count = SampleScaler(chunk_size=chunk_size).scale(stream, 2.5)

    data = stream.getvalue()
    assert count == len(samples)
    assert data[:HEADER_SIZE] == header
    assert len(data) == HEADER_SIZE + len(samples) * 2
    np.testing.assert_array_equal(
        np.frombuffer(data[HEADER_SIZE:], dtype="<i2"), _expected(samples, 2.5)
    )


def test_scale_stream_custom_offset():
    prefix = b"\x00\x01\x02\x03"
    stream = io.BytesIO(prefix + _pcm([10, 20, 30]))

    SampleScaler(chunk_size=4).scale(stream, 3.0, start_offset=len(prefix))

    data = stream.getvalue()
    assert data[:4] == prefix
    np.testing.assert_array_equal(np.frombuffer(data[4:], dtype="<i2"), [30, 60, 90])


def test_scale_stream_leaves_trailing_odd_byte(tmp_path):
    path = tmp_path / "odd.wav"
    path.write_bytes(encode_header(7, 8000, 1, 16) + _pcm([1000, -1000, 7]) + b"\x55")

    with open(path, "r+b") as f:
        count = SampleScaler(chunk_size=4).scale(f, 2.0)

    data = path.read_bytes()
    assert count == 3
    assert data[-1:] == b"\x55"
    np.testing.assert_array_equal(
        np.frombuffer(data[HEADER_SIZE:-1], dtype="<i2"), [2000, -2000, 14]
    )


def test_scale_empty_payload():
    stream = io.BytesIO(encode_header(0, 8000, 1, 16))
    assert SampleScaler().scale(stream, 5.0) == 0
    assert len(stream.getvalue()) == HEADER_SIZE


@pytest.mark.parametrize("chunk_size", [0, 1, 3])
def test_invalid_chunk_size_rejected(chunk_size):
    with pytest.raises(ValueError):
        SampleScaler(chunk_size=chunk_size)
