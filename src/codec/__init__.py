"""
외부 코덱 모듈 패키지

정규화 코어가 실제 코덱 바이너리 없이도 테스트될 수 있도록 디코더/인코더를
캡처 인터페이스처럼 프로토콜로 정의합니다.

공통 타입:
- Decoder: 압축 오디오 → 16bit little-endian PCM 바이트 스트림
- Encoder: WAV 파일 → 배포 포맷 파일 (서브프로세스)
- DecodeError / EncodeError
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol


class DecodeError(Exception):
    """원본 파일을 열거나 디코딩할 수 없을 때 발생하는 에러입니다."""
    pass


class EncodeError(Exception):
    """외부 인코더가 없거나 실패(0이 아닌 종료 코드, 타임아웃)했을 때 발생하는 에러입니다."""
    pass


class Decoder(Protocol):
    """
    디코딩된 PCM 스트림 인터페이스입니다.

    read()는 interleaved 16bit little-endian PCM 바이트를 반환하며,
    스트림 끝에서는 빈 bytes를 반환합니다.
    """

    @property
    def sample_rate(self) -> int: ...

    @property
    def channels(self) -> int: ...

    def read(self, size: int) -> bytes: ...

    def close(self) -> None: ...

    def __enter__(self) -> "Decoder": ...

    def __exit__(self, *exc_info) -> None: ...


class Encoder(Protocol):
    """WAV 파일을 재인코딩하는 인터페이스입니다. 실패 시 EncodeError를 발생시킵니다."""

    def encode(self, input_path: Path, output_path: Path) -> None: ...


# 원본 경로 → Decoder 생성 함수
DecoderFactory = Callable[[Path], Decoder]
