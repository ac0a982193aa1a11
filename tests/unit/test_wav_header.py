"""
WAV 헤더 코덱 단위 테스트

검증 항목:
- 44바이트 헤더 레이아웃 및 매직 식별자
- byte_rate / block_align 유도
- encode → parse 왕복 시 포맷 필드 보존
- 손상된 헤더 ContainerError
- 스트리밍 후 크기 필드 보정
- soundfile이 생성한 WAV 헤더 파싱
"""

from __future__ import annotations

import io
import struct

import numpy as np
import pytest
import soundfile as sf

from src.container import HEADER_SIZE, ContainerError
from src.container.wav_header import (
    encode_header,
    header_size,
    parse_header,
    patch_data_size,
    read_header,
)


def test_header_size_is_44():
    assert header_size() == 44
    assert HEADER_SIZE == 44
    assert len(encode_header(0, 44100, 2, 16)) == 44


def test_header_layout_little_endian():
    """필드가 표준 오프셋에 little-endian으로 기록되는지 확인합니다."""
    header = encode_header(1000, 48000, 2, 16)

    assert header[0:4] == b"RIFF"
    assert struct.unpack_from("<I", header, 4)[0] == 36 + 1000
    assert header[8:12] == b"WAVE"
    assert header[12:16] == b"fmt "
    assert struct.unpack_from("<I", header, 16)[0] == 16
    assert struct.unpack_from("<H", header, 20)[0] == 1
    assert struct.unpack_from("<H", header, 22)[0] == 2
    assert struct.unpack_from("<I", header, 24)[0] == 48000
    assert struct.unpack_from("<I", header, 28)[0] == 48000 * 4
    assert struct.unpack_from("<H", header, 32)[0] == 4
    assert struct.unpack_from("<H", header, 34)[0] == 16
    assert header[36:40] == b"data"
    assert struct.unpack_from("<I", header, 40)[0] == 1000


@pytest.mark.parametrize(
    "sample_rate, channels",
    [(8000, 1), (22050, 1), (44100, 2), (48000, 2), (96000, 6)],
)
def test_encode_parse_round_trip(sample_rate, channels):
    header = parse_header(encode_header(4096, sample_rate, channels, 16))

    assert header.sample_rate == sample_rate
    assert header.num_channels == channels
    assert header.bits_per_sample == 16
    assert header.block_align == channels * 2
    assert header.byte_rate == sample_rate * channels * 2
    assert header.data_size == 4096


def test_zero_data_size_header_is_accepted():
    """크기 보정 없이 스트리밍된 헤더(data_size=0)도 파싱됩니다."""
    header = parse_header(encode_header(0, 44100, 2, 16))
    assert header.data_size == 0


def test_oversized_data_size_is_clamped():
    header = parse_header(encode_header(2 ** 33, 44100, 2, 16))
    assert header.data_size == 0xFFFFFFFF


def test_parse_too_short_raises():
    with pytest.raises(ContainerError):
        parse_header(b"RIFF" + b"\x00" * 10)


@pytest.mark.parametrize("offset, bad", [(0, b"RIFX"), (8, b"AVI "), (12, b"junk"), (36, b"LIST")])
def test_parse_bad_magic_raises(offset, bad):
    header = bytearray(encode_header(0, 44100, 2, 16))
    header[offset:offset + 4] = bad
    with pytest.raises(ContainerError):
        parse_header(bytes(header))


def test_container_error_is_value_error():
    assert issubclass(ContainerError, ValueError)


def test_patch_data_size_rewrites_sizes_and_restores_position():
    stream = io.BytesIO()
    stream.write(encode_header(0, 44100, 2, 16))
    stream.write(b"\x01\x00" * 50)
    end_position = stream.tell()

    patch_data_size(stream, 100)

    assert stream.tell() == end_position
    stream.seek(0)
    header = read_header(stream)
    assert header.data_size == 100
    assert struct.unpack_from("<I", stream.getvalue(), 4)[0] == 136
    # PCM 데이터는 변경되지 않음
    assert stream.getvalue()[HEADER_SIZE:] == b"\x01\x00" * 50


def test_parse_header_written_by_soundfile(tmp_path):
    """libsndfile이 만든 표준 PCM_16 WAV 헤더를 읽을 수 있는지 확인합니다."""
    wav_path = tmp_path / "reference.wav"
    samples = np.zeros((100, 2), dtype=np.int16)
    sf.write(str(wav_path), samples, 22050, subtype="PCM_16")

    with open(wav_path, "rb") as f:
        header = read_header(f)

    assert header.sample_rate == 22050
    assert header.num_channels == 2
    assert header.bits_per_sample == 16
    assert header.data_size == 100 * 2 * 2
