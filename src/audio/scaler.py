"""
PCM 샘플 스케일러 모듈입니다.

역할:
- 2차 패스: 모든 샘플에 게인을 곱하고 반올림
- [-32767, 32767] 대칭 포화 (가장 작은 음수값에서 비대칭 클리핑이 생기지 않도록)
- 청크 단위 read-modify-write: 읽기 시작 오프셋에 정확히 되돌아가 기록

사용 예시:
    >>> scaler = SampleScaler(chunk_size=4096)
    >>> with open("out.wav", "r+b") as f:
    ...     scaler.scale(f, gain=2.6214)
"""

from __future__ import annotations

import logging
from typing import BinaryIO

import numpy as np

from src.audio import INT16_FULL_SCALE, SAMPLE_WIDTH
from src.container import HEADER_SIZE

logger = logging.getLogger(__name__)

_DEFAULT_CHUNK_SIZE = 4096


def scale_samples(samples: np.ndarray, gain: float) -> np.ndarray:
    """
    int16 샘플 배열에 게인을 적용합니다.

    round(sample × gain)을 계산한 뒤 [-32767, 32767]로 포화시킵니다.
    반올림은 np.rint(짝수 반올림, Python round()와 동일)를 사용합니다.

    파라미터:
        samples: int16 샘플 배열
        gain: 선형 배율

    반환값:
        np.ndarray: little-endian int16 배열
    """
    scaled = np.rint(samples.astype(np.float64) * gain)
    clipped = np.clip(scaled, -INT16_FULL_SCALE, INT16_FULL_SCALE)
    return clipped.astype("<i2")


class SampleScaler:
    """
    seek 가능한 스트림 위의 PCM 데이터를 제자리에서 스케일링하는 2차 패스 처리기입니다.

    각 청크는 읽기를 시작한 오프셋에 그대로 다시 기록됩니다.
    """

    def __init__(self, chunk_size: int = _DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < SAMPLE_WIDTH or chunk_size % SAMPLE_WIDTH != 0:
            raise ValueError(f"chunk_size는 2 이상의 짝수여야 합니다. 입력값: {chunk_size}")
        self._chunk_size = chunk_size

    def scale(
        self,
        stream: BinaryIO,
        gain: float,
        start_offset: int = HEADER_SIZE,
    ) -> int:
        """
        start_offset부터 스트림 끝까지 모든 샘플을 스케일링합니다.

        파라미터:
            stream: 읽기/쓰기/seek 가능한 바이너리 스트림 (예: "r+b"로 연 파일)
            gain: 선형 배율
            start_offset: PCM 데이터 시작 오프셋 (기본값: WAV 헤더 크기)

        반환값:
            int: 스케일링한 샘플 수
        """
        offset = start_offset
        scaled_count = 0

        while True:
            stream.seek(offset)
            chunk = stream.read(self._chunk_size)
            if not chunk:
                break

            usable = len(chunk) - len(chunk) % SAMPLE_WIDTH
            if usable:
                samples = np.frombuffer(chunk[:usable], dtype="<i2")
                stream.seek(offset)
                stream.write(scale_samples(samples, gain).tobytes())
                scaled_count += samples.size
            else:
                logger.warning(f"오프셋 {offset}의 불완전 샘플 {len(chunk)}바이트는 변경하지 않습니다")

            offset += len(chunk)

        stream.flush()
        logger.debug(f"샘플 스케일링 완료: samples={scaled_count}, gain={gain:.4f}")
        return scaled_count
