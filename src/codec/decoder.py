"""
soundfile 기반 디코더 모듈입니다.

역할:
- libsndfile(soundfile)로 MP3/FLAC/OGG/WAV 원본을 열어 int16 PCM으로 디코딩
- 샘플레이트/채널 수 노출 및 바이트 단위 읽기 제공
- 열기/읽기 실패를 DecodeError로 변환

사용 예시:
    >>> with SoundFileDecoder.open(Path("song.mp3")) as decoder:
    ...     pcm = decoder.read(4096)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import soundfile as sf

from src.audio import SAMPLE_WIDTH
from src.codec import DecodeError

logger = logging.getLogger(__name__)


class SoundFileDecoder:
    """
    soundfile.SoundFile을 감싸 Decoder 프로토콜을 구현하는 클래스입니다.

    read(size)는 size 바이트에 들어가는 프레임 수만큼 읽어 interleaved int16
    little-endian 바이트로 반환합니다.
    """

    def __init__(self, sound_file: sf.SoundFile, path: Path) -> None:
        self._file = sound_file
        self._path = path
        self._frame_bytes = SAMPLE_WIDTH * sound_file.channels

    @classmethod
    def open(cls, path: Path) -> "SoundFileDecoder":
        """
        원본 파일을 열어 디코더를 생성합니다.

        에러:
            DecodeError: 파일이 없거나, 읽을 수 없거나, 형식을 인식하지 못할 때
        """
        try:
            sound_file = sf.SoundFile(str(path), mode="r")
        except (sf.SoundFileError, RuntimeError, OSError, TypeError) as exc:
            raise DecodeError(f"원본 파일 디코딩 실패: {path}: {exc}") from exc

        logger.debug(
            f"디코더 열기: {path}, "
            f"sample_rate={sound_file.samplerate}Hz, channels={sound_file.channels}, "
            f"format={sound_file.format}"
        )
        return cls(sound_file, Path(path))

    @property
    def sample_rate(self) -> int:
        return int(self._file.samplerate)

    @property
    def channels(self) -> int:
        return int(self._file.channels)

    def read(self, size: int) -> bytes:
        """
        최대 size 바이트 분량의 PCM을 읽습니다.

        반환값:
            bytes: interleaved int16 little-endian PCM (스트림 끝이면 b"")

        에러:
            DecodeError: 디코딩 도중 손상된 프레임을 만났을 때
        """
        frames = max(1, size // self._frame_bytes)
        try:
            data = self._file.read(frames, dtype="int16", always_2d=True)
        except (sf.SoundFileError, RuntimeError) as exc:
            raise DecodeError(f"PCM 데이터 읽기 실패: {self._path}: {exc}") from exc

        if data.size == 0:
            return b""
        return np.ascontiguousarray(data).astype("<i2", copy=False).tobytes()

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "SoundFileDecoder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
