"""
PCM WAV 헤더 인코딩/파싱 모듈입니다.

역할:
- 44바이트 표준 PCM WAV 헤더 생성 (RIFF/WAVE/fmt /data, little-endian)
- 헤더 파싱 및 매직 식별자 검증
- 스트리밍 기록 후 RIFF/data 크기 필드 보정

헤더 레이아웃 (offset: 필드):
    0: "RIFF"   4: 36 + data_size   8: "WAVE"
    12: "fmt "  16: 16 (fmt 청크 크기)  20: 1 (PCM)  22: 채널 수
    24: 샘플레이트  28: byte_rate  32: block_align  34: 비트뎁스
    36: "data"  40: data_size

사용 예시:
    >>> header = encode_header(0, 44100, 2, 16)
    >>> parse_header(header).sample_rate
    44100
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from src.container import HEADER_SIZE, ContainerError, WavHeader

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")

_RIFF_MAGIC = b"RIFF"
_WAVE_MAGIC = b"WAVE"
_FMT_MAGIC = b"fmt "
_DATA_MAGIC = b"data"

# fmt 청크 크기 (PCM은 16 고정)
_FMT_CHUNK_SIZE = 16
# WAVE_FORMAT_PCM
_FORMAT_PCM = 1
# RIFF 크기 필드 = 헤더 나머지(36) + data_size
_RIFF_SIZE_BASE = HEADER_SIZE - 8
_UINT32_MAX = 0xFFFFFFFF

# 크기 필드 오프셋
_RIFF_SIZE_OFFSET = 4
_DATA_SIZE_OFFSET = 40


def header_size() -> int:
    """PCM 데이터 앞에 오는 헤더 크기(44바이트)를 반환합니다."""
    return HEADER_SIZE


def encode_header(
    data_size: int,
    sample_rate: int,
    num_channels: int,
    bits_per_sample: int,
) -> bytes:
    """
    44바이트 PCM WAV 헤더를 생성합니다.

    byte_rate와 block_align은 입력값에서 산술적으로 유도하며 별도 검증은 하지 않습니다.
    32bit 범위를 넘는 크기는 0xFFFFFFFF로 포화시킵니다.

    파라미터:
        data_size: data 청크 크기 (bytes)
        sample_rate: 샘플링레이트 (Hz)
        num_channels: 채널 수
        bits_per_sample: 비트뎁스

    반환값:
        bytes: 44바이트 헤더
    """
    block_align = num_channels * bits_per_sample // 8
    byte_rate = sample_rate * block_align

    return _HEADER_STRUCT.pack(
        _RIFF_MAGIC,
        _clamp_u32(_RIFF_SIZE_BASE + data_size),
        _WAVE_MAGIC,
        _FMT_MAGIC,
        _FMT_CHUNK_SIZE,
        _FORMAT_PCM,
        num_channels,
        sample_rate,
        _clamp_u32(byte_rate),
        block_align,
        bits_per_sample,
        _DATA_MAGIC,
        _clamp_u32(data_size),
    )


def parse_header(data: bytes) -> WavHeader:
    """
    44바이트 헤더를 파싱합니다.

    data_size가 0인 헤더(크기 보정 없이 스트리밍된 파일)도 허용합니다.

    파라미터:
        data: 헤더 바이트 (최소 44바이트, 초과분은 무시)

    반환값:
        WavHeader: 파싱된 헤더 필드

    에러:
        ContainerError: 길이가 부족하거나 매직 식별자가 일치하지 않을 때
    """
    if len(data) < HEADER_SIZE:
        raise ContainerError(f"WAV 헤더 길이 부족: {len(data)}바이트 (최소 {HEADER_SIZE})")

    (
        riff, _riff_size, wave, fmt, _fmt_size, _audio_format, num_channels,
        sample_rate, byte_rate, block_align, bits_per_sample, data_magic, data_size,
    ) = _HEADER_STRUCT.unpack_from(data)

    for actual, expected in (
        (riff, _RIFF_MAGIC),
        (wave, _WAVE_MAGIC),
        (fmt, _FMT_MAGIC),
        (data_magic, _DATA_MAGIC),
    ):
        if actual != expected:
            raise ContainerError(f"WAV 매직 식별자 불일치: {actual!r} (기대값 {expected!r})")

    return WavHeader(
        data_size=data_size,
        sample_rate=sample_rate,
        num_channels=num_channels,
        bits_per_sample=bits_per_sample,
        byte_rate=byte_rate,
        block_align=block_align,
    )


def read_header(stream: BinaryIO) -> WavHeader:
    """스트림의 현재 위치에서 44바이트를 읽어 헤더를 파싱합니다."""
    return parse_header(stream.read(HEADER_SIZE))


def patch_data_size(stream: BinaryIO, data_size: int) -> None:
    """
    이미 기록된 헤더의 RIFF 크기와 data 크기 필드를 실제 값으로 보정합니다.

    스트림 위치는 호출 전 위치로 복원됩니다.

    파라미터:
        stream: 쓰기 가능하고 seek 가능한 바이너리 스트림 (헤더는 offset 0)
        data_size: 실제 PCM 데이터 크기 (bytes)
    """
    position = stream.tell()
    try:
        stream.seek(_RIFF_SIZE_OFFSET)
        stream.write(struct.pack("<I", _clamp_u32(_RIFF_SIZE_BASE + data_size)))
        stream.seek(_DATA_SIZE_OFFSET)
        stream.write(struct.pack("<I", _clamp_u32(data_size)))
    finally:
        stream.seek(position)


def _clamp_u32(value: int) -> int:
    return max(0, min(value, _UINT32_MAX))
