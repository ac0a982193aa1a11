"""
WAV 컨테이너 모듈 패키지

공통 데이터 타입:
- WavHeader: 44바이트 표준 PCM WAV 헤더 필드 컨테이너
- ContainerError: 헤더 파싱 실패 에러
"""

from dataclasses import dataclass

# 표준 PCM WAV 헤더 크기 (bytes). PCM 데이터는 항상 이 오프셋에서 시작합니다.
HEADER_SIZE = 44


class ContainerError(ValueError):
    """WAV 헤더가 손상되었거나 지원하지 않는 형식일 때 발생하는 에러입니다."""
    pass


@dataclass(frozen=True)
class WavHeader:
    """
    44바이트 PCM WAV 헤더의 필드 컨테이너입니다.

    필드:
        data_size: data 청크 크기 (bytes, 스트리밍 중에는 0일 수 있음)
        sample_rate: 샘플링레이트 (Hz)
        num_channels: 채널 수
        bits_per_sample: 비트뎁스 (항상 16)
        byte_rate: 초당 바이트 수 (sample_rate × block_align)
        block_align: 프레임당 바이트 수 (num_channels × bits_per_sample / 8)
    """
    data_size: int
    sample_rate: int
    num_channels: int
    bits_per_sample: int
    byte_rate: int
    block_align: int
