"""
audionorm 설정 스키마 정의 모듈입니다.

역할:
- Pydantic v2 BaseModel 기반으로 config.yaml의 전체 구조를 타입 안전하게 정의
- 각 섹션(system, normalize, io, encoder)을 독립적인 중첩 모델로 분리
- 필드별 기본값, 허용 범위, 유효성 검증(validator)을 포함

사용 예시:
    >>> from src.config.schema import AppConfig
    >>> config = AppConfig(**yaml_data)
    >>> print(config.normalize.factor)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

# 모듈 로거 설정
logger = logging.getLogger(__name__)


# =============================================================================
# system 섹션: 로깅 및 세션 설정
# =============================================================================

class SystemConfig(BaseModel):
    """
    시스템 전역 설정을 정의하는 모델입니다.

    역할:
    - 로깅 레벨 및 포맷 지정
    - 세션 식별자 관리
    """
    # 로그 출력 레벨
    log_level: str = Field(default="INFO", description="로그 레벨 (DEBUG | INFO | WARNING | ERROR)")
    # 로그 출력 포맷
    log_format: str = Field(default="text", description="로그 포맷 (json | text)")
    # 로그 파일 저장 디렉토리 경로
    log_dir: str = Field(default="output/logs", description="로그 저장 디렉토리")
    # 세션 고유 식별자 (빈 문자열이면 UUID로 자동 생성)
    session_id: str = Field(default="", description="세션 ID (비어있으면 UUID 자동생성)")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """로그 레벨이 유효한 Python 로깅 레벨인지 검증합니다."""
        allowed_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        upper_value = value.upper()
        if upper_value not in allowed_levels:
            error_message = f"log_level은 {allowed_levels} 중 하나여야 합니다. 입력값: '{value}'"
            raise ValueError(error_message)
        return upper_value

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, value: str) -> str:
        """로그 포맷이 지원되는 형식인지 검증합니다."""
        allowed_formats = ("json", "text")
        if value not in allowed_formats:
            error_message = f"log_format은 {allowed_formats} 중 하나여야 합니다. 입력값: '{value}'"
            raise ValueError(error_message)
        return value


# =============================================================================
# normalize 섹션: 정규화 파라미터
# =============================================================================

class NormalizeConfig(BaseModel):
    """
    피크 정규화 동작을 정의하는 모델입니다.

    역할:
    - 목표 계수(풀스케일 대비 비율)와 과증폭 허용치(tolerance) 지정
    - 2-pass 처리 시 청크 크기 지정
    - 파일 단위 병렬 처리 워커 수 지정 (1이면 순차 처리)
    """
    # 목표 계수 (0 < factor <= 1, 1.0이면 풀스케일)
    factor: float = Field(default=1.0, description="정규화 목표 계수 (0 < factor <= 1)")
    # 이상치 제거 강도 (0이면 비활성, 천만분율 기준 발생 빈도 임계값)
    tolerance: float = Field(default=0.0, description="과증폭 허용치 (0 = 비활성)")
    # 읽기/쓰기 청크 크기 (바이트, 짝수)
    chunk_size_bytes: int = Field(default=4096, description="PCM 청크 크기 (bytes)")
    # 파일 단위 워커 수
    workers: int = Field(default=1, description="병렬 처리 워커 수 (1 = 순차)")

    @field_validator("factor")
    @classmethod
    def validate_factor(cls, value: float) -> float:
        """계수가 (0, 1] 범위인지 검증합니다."""
        if not 0.0 < value <= 1.0:
            error_message = f"factor는 0보다 크고 1 이하여야 합니다. 입력값: {value}"
            raise ValueError(error_message)
        return value

    @field_validator("tolerance")
    @classmethod
    def validate_tolerance(cls, value: float) -> float:
        """허용치가 음수가 아닌지 검증합니다."""
        if value < 0:
            error_message = f"tolerance는 0 이상이어야 합니다. 입력값: {value}"
            raise ValueError(error_message)
        return value

    @field_validator("chunk_size_bytes")
    @classmethod
    def validate_chunk_size(cls, value: int) -> int:
        """
        청크 크기가 2 이상의 짝수인지 검증합니다.

        16bit 샘플이 청크 경계에서 잘리지 않도록 짝수만 허용합니다.
        """
        if value < 2 or value % 2 != 0:
            error_message = f"chunk_size_bytes는 2 이상의 짝수여야 합니다. 입력값: {value}"
            raise ValueError(error_message)
        return value

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, value: int) -> int:
        """워커 수가 1 이상인지 검증합니다."""
        if value < 1:
            error_message = f"workers는 1 이상이어야 합니다. 입력값: {value}"
            raise ValueError(error_message)
        return value


# =============================================================================
# io 섹션: 입출력 경로 설정
# =============================================================================

class IOConfig(BaseModel):
    """
    입력 파일 선택 및 출력 디렉토리 설정입니다.

    역할:
    - 처리 대상 원본 확장자 지정
    - WAV 출력 및 재인코딩 출력 디렉토리 지정
    """
    # 처리 대상 원본 파일 확장자 (대소문자 무관)
    source_extension: str = Field(default=".mp3", description="원본 파일 확장자")
    # 정규화된 WAV 출력 디렉토리
    output_wav_dir: str = Field(default="output/wav", description="WAV 출력 디렉토리")
    # 재인코딩 결과 출력 디렉토리
    output_encoded_dir: str = Field(default="output/mp3", description="재인코딩 출력 디렉토리")

    @field_validator("source_extension")
    @classmethod
    def validate_source_extension(cls, value: str) -> str:
        """확장자가 '.'으로 시작하는지 검증하고 소문자로 정규화합니다."""
        if not value.startswith(".") or len(value) < 2:
            error_message = f"source_extension은 '.'으로 시작해야 합니다. 입력값: '{value}'"
            raise ValueError(error_message)
        return value.lower()


# =============================================================================
# encoder 섹션: 외부 인코더 설정
# =============================================================================

class EncoderConfig(BaseModel):
    """
    정규화된 WAV를 배포 포맷으로 재인코딩하는 외부 인코더 설정입니다.

    역할:
    - 재인코딩 활성화 여부
    - 인코더 실행 파일 및 추가 인자 지정
    - 서브프로세스 타임아웃 제한
    """
    # 재인코딩 활성화 여부
    enabled: bool = Field(default=False, description="재인코딩 활성화")
    # 인코더 실행 파일 (PATH 검색)
    executable: str = Field(default="ffmpeg", description="인코더 실행 파일")
    # 입력과 출력 사이에 전달할 추가 인자
    extra_args: list[str] = Field(default_factory=list, description="인코더 추가 인자")
    # 재인코딩 결과 확장자
    output_extension: str = Field(default=".mp3", description="재인코딩 출력 확장자")
    # 서브프로세스 타임아웃 (초)
    timeout_sec: float = Field(default=300.0, description="인코더 타임아웃 (초)")

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """타임아웃이 양수인지 검증합니다."""
        if value <= 0:
            error_message = f"timeout_sec는 0보다 커야 합니다. 입력값: {value}"
            raise ValueError(error_message)
        return value


# =============================================================================
# 최상위 AppConfig: 모든 섹션을 통합하는 루트 모델
# =============================================================================

class AppConfig(BaseModel):
    """
    애플리케이션 전체 설정을 통합하는 최상위 모델입니다.

    각 섹션이 누락된 경우 기본값으로 자동 생성됩니다.

    사용 예시:
        >>> import yaml
        >>> with open("config.yaml") as f:
        ...     raw = yaml.safe_load(f)
        >>> config = AppConfig(**raw)
        >>> print(config.normalize.factor)
        1.0
    """
    # 시스템 전역 설정
    system: SystemConfig = Field(default_factory=SystemConfig, description="시스템 설정")
    # 정규화 파라미터
    normalize: NormalizeConfig = Field(default_factory=NormalizeConfig, description="정규화 설정")
    # 입출력 설정
    io: IOConfig = Field(default_factory=IOConfig, description="입출력 설정")
    # 외부 인코더 설정
    encoder: EncoderConfig = Field(default_factory=EncoderConfig, description="인코더 설정")
