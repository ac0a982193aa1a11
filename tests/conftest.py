"""
파이프라인 테스트 공용 픽스처

실제 코덱 없이 정규화 파이프라인을 실행하기 위한 가짜 디코더/인코더를 제공합니다.
"""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest

from src.codec import DecodeError, EncodeError


class FakeDecoder:
    """메모리의 PCM 바이트를 돌려주는 디코더입니다."""

    def __init__(self, pcm: bytes, sample_rate: int, channels: int) -> None:
        self._buffer = io.BytesIO(pcm)
        self.sample_rate = sample_rate
        self.channels = channels
        self.closed = False

    def read(self, size: int) -> bytes:
        return self._buffer.read(size)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeDecoder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeDecoderFactory:
    """
    파일 이름 → 샘플 매핑으로 디코더를 생성합니다.

    add()로 등록하지 않은 파일을 열면 DecodeError를 발생시킵니다.
    """

    def __init__(self) -> None:
        self._sources: dict[str, tuple[bytes, int, int]] = {}

    def add(self, path: Path, samples, sample_rate: int = 44100, channels: int = 1) -> Path:
        path.write_bytes(b"not really compressed audio")
        pcm = np.asarray(samples, dtype="<i2").tobytes()
        self._sources[path.name] = (pcm, sample_rate, channels)
        return path

    def __call__(self, path: Path) -> FakeDecoder:
        entry = self._sources.get(Path(path).name)
        if entry is None:
            raise DecodeError(f"알 수 없는 형식: {path}")
        return FakeDecoder(*entry)


class RecordingEncoder:
    """호출을 기록하고 출력 파일을 생성하는 인코더입니다."""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[Path, Path]] = []
        self.fail = fail

    def encode(self, input_path: Path, output_path: Path) -> None:
        if output_path.exists():
            raise AssertionError(f"대상 파일이 삭제되지 않았습니다: {output_path}")
        self.calls.append((input_path, output_path))
        if self.fail:
            raise EncodeError("returncode=1")
        output_path.write_bytes(b"encoded:" + input_path.read_bytes()[:16])


@pytest.fixture
def decoder_factory() -> FakeDecoderFactory:
    return FakeDecoderFactory()


@pytest.fixture
def encoder() -> RecordingEncoder:
    return RecordingEncoder()


@pytest.fixture
def messages() -> list[str]:
    """CallbackReporter(messages.append)로 받은 진행 메시지 목록."""
    return []


@pytest.fixture
def failing_encoder() -> RecordingEncoder:
    return RecordingEncoder(fail=True)
