"""
audionorm 설정 관리 모듈입니다.

역할:
- YAML 설정 파일을 로드하고 Pydantic 스키마로 유효성 검증
- 환경변수 오버라이드 지원 (접두사: AUDIONORM_)
- dot-notation 기반 설정값 조회 (예: "normalize.factor")

사용 예시:
    >>> manager = ConfigManager()
    >>> config = manager.load("config.yaml")
    >>> factor = manager.get("normalize.factor")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from src.config.schema import AppConfig

logger = logging.getLogger(__name__)

# 환경변수 오버라이드 접두사
ENV_PREFIX = "AUDIONORM_"


class ConfigLoadError(Exception):
    """설정 파일 로드 중 발생하는 에러의 기본 클래스입니다."""
    pass


class ConfigValidationError(ConfigLoadError):
    """설정 스키마 검증 실패 시 발생하는 에러입니다."""
    pass


class ConfigFileNotFoundError(ConfigLoadError):
    """설정 파일을 찾을 수 없을 때 발생하는 에러입니다."""
    pass


class ConfigManager:
    """
    YAML 설정 파일을 로드하고 관리하는 매니저 클래스입니다.

    역할:
    - YAML 파일 파싱 및 Pydantic 유효성 검증
    - 환경변수 오버라이드 (AUDIONORM_ 접두사)
    - dot-notation 설정값 조회

    배치 실행 동안 설정은 변하지 않으므로 파일 변경 감시는 하지 않습니다.
    """

    def __init__(self) -> None:
        # 현재 활성 설정 객체 (로드 전에는 None)
        self._config: Optional[AppConfig] = None
        # 설정 파일 경로 (파일에서 로드한 경우에만 설정됨)
        self._config_filepath: Optional[Path] = None

    @property
    def config(self) -> Optional[AppConfig]:
        """현재 활성 설정 객체를 반환합니다."""
        return self._config

    @property
    def config_filepath(self) -> Optional[Path]:
        """마지막으로 로드한 설정 파일 경로를 반환합니다."""
        return self._config_filepath

    def load(self, filepath: str | Path) -> AppConfig:
        """
        YAML 설정 파일을 로드하고 Pydantic 스키마로 검증합니다.

        처리 순서:
        1. 파일 존재 여부 확인
        2. YAML 파싱
        3. 환경변수 오버라이드 적용
        4. Pydantic 스키마 검증

        파라미터:
            filepath (str | Path): YAML 설정 파일 경로

        반환값:
            AppConfig: 검증 완료된 설정 객체

        에러:
            ConfigFileNotFoundError: 파일이 존재하지 않을 때
            ConfigValidationError: 스키마 검증 실패 시
            ConfigLoadError: YAML 파싱 실패 등 기타 에러
        """
        filepath = Path(filepath)
        logger.info(f"설정 파일 로드 시작: {filepath}")

        if not filepath.is_file():
            error_message = f"설정 파일을 찾을 수 없습니다: {filepath}"
            logger.error(error_message)
            raise ConfigFileNotFoundError(error_message)

        raw_config = self._parse_yaml_file(filepath)
        logger.debug(f"YAML 파싱 완료: {len(raw_config)} 개 최상위 키")

        config = self.load_dict(raw_config)
        self._config_filepath = filepath
        return config

    def load_dict(self, raw_config: dict) -> AppConfig:
        """
        딕셔너리에 환경변수 오버라이드를 적용하고 검증하여 활성 설정으로 교체합니다.

        설정 파일 없이 기본값으로 실행할 때는 빈 딕셔너리를 전달합니다.

        파라미터:
            raw_config (dict): 설정 딕셔너리

        반환값:
            AppConfig: 검증 완료된 설정 객체
        """
        raw_config = self._apply_env_overrides(dict(raw_config))
        validated_config = self._validate_config(raw_config)
        self._config = validated_config

        logger.info(
            f"설정 로드 성공: "
            f"factor={validated_config.normalize.factor}, "
            f"tolerance={validated_config.normalize.tolerance}, "
            f"reencode={validated_config.encoder.enabled}"
        )
        return validated_config

    def get(self, key: str, default: Any = None) -> Any:
        """
        dot-notation으로 설정값을 조회합니다.

        예: "normalize.factor" -> config.normalize.factor

        파라미터:
            key (str): dot-notation 설정 키
            default (Any): 키가 존재하지 않을 때 반환할 기본값

        반환값:
            Any: 설정값 또는 기본값

        에러:
            RuntimeError: 설정이 로드되지 않은 상태에서 호출 시
        """
        if self._config is None:
            error_message = "설정이 아직 로드되지 않았습니다. load()를 먼저 호출하세요."
            logger.error(error_message)
            raise RuntimeError(error_message)

        current_value: Any = self._config
        for part in key.split("."):
            if isinstance(current_value, dict):
                if part not in current_value:
                    return default
                current_value = current_value[part]
            elif hasattr(current_value, part):
                current_value = getattr(current_value, part)
            else:
                logger.debug(f"설정 키 '{key}'에서 '{part}' 부분을 찾을 수 없음, 기본값 반환")
                return default

        return current_value

    def validate_schema(self, raw_config: dict) -> bool:
        """
        딕셔너리 데이터가 AppConfig 스키마를 만족하는지 검증합니다.

        반환값:
            bool: 검증 통과 시 True, 실패 시 False
        """
        try:
            AppConfig(**raw_config)
            return True
        except ValidationError as validation_error:
            logger.warning(f"스키마 검증 실패: {validation_error}")
            return False

    # =========================================================================
    # 내부 메서드 (private)
    # =========================================================================

    def _parse_yaml_file(self, filepath: Path) -> dict:
        """
        YAML 파일을 읽어서 딕셔너리로 파싱합니다.

        에러:
            ConfigLoadError: 파일 읽기 또는 파싱 실패 시
        """
        try:
            with open(filepath, "r", encoding="utf-8") as config_file:
                raw_data = yaml.safe_load(config_file)
        except yaml.YAMLError as yaml_error:
            error_message = f"YAML 파싱 에러: {yaml_error}"
            logger.error(error_message)
            raise ConfigLoadError(error_message) from yaml_error
        except OSError as file_error:
            error_message = f"파일 읽기 에러: {file_error}"
            logger.error(error_message)
            raise ConfigLoadError(error_message) from file_error

        if raw_data is None:
            logger.warning(f"설정 파일이 비어있습니다: {filepath}")
            return {}

        if not isinstance(raw_data, dict):
            error_message = f"설정 파일의 최상위 구조가 딕셔너리가 아닙니다: {type(raw_data)}"
            raise ConfigLoadError(error_message)

        return raw_data

    def _apply_env_overrides(self, raw_config: dict) -> dict:
        """
        AUDIONORM_ 접두사 환경변수로 설정값을 오버라이드합니다.

        매핑 규칙: 접두사 제거 후 소문자 변환, 첫 번째 언더스코어가 섹션 구분자
        - AUDIONORM_NORMALIZE_FACTOR -> normalize.factor
        - AUDIONORM_ENCODER_EXECUTABLE -> encoder.executable
        - AUDIONORM_IO_OUTPUT_WAV_DIR -> io.output_wav_dir
        """
        override_count = 0

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            config_path = env_key[len(ENV_PREFIX):].lower()
            path_parts = config_path.split("_", 1)
            if len(path_parts) < 2 or not path_parts[1]:
                logger.debug(f"환경변수 '{env_key}' 무시 (키 경로 부족)")
                continue

            section_name, field_name = path_parts
            section = raw_config.get(section_name)
            section = dict(section) if isinstance(section, dict) else {}
            section[field_name] = self._convert_env_value(env_value)
            raw_config[section_name] = section
            override_count += 1
            logger.info(f"환경변수 오버라이드: {env_key} -> {section_name}.{field_name}")

        if override_count > 0:
            logger.info(f"환경변수 오버라이드 적용 완료: {override_count}건")

        return raw_config

    def _convert_env_value(self, value: str) -> Any:
        """
        환경변수 문자열 값을 적절한 Python 타입으로 변환합니다.

        "true"/"false" -> bool, 정수 -> int, 부동소수점 -> float, 그 외 -> str
        """
        if value.lower() == "true":
            return True
        if value.lower() == "false":
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _validate_config(self, raw_config: dict) -> AppConfig:
        """
        딕셔너리를 Pydantic AppConfig 모델로 검증하고 변환합니다.

        에러:
            ConfigValidationError: Pydantic 검증 실패 시
        """
        try:
            return AppConfig(**raw_config)
        except ValidationError as validation_error:
            error_details = validation_error.errors()
            for error_detail in error_details:
                field_path = " -> ".join(str(loc) for loc in error_detail["loc"])
                logger.error(
                    f"설정 검증 실패 - 필드: {field_path}, "
                    f"에러: {error_detail['msg']}, "
                    f"입력값: {error_detail.get('input', 'N/A')}"
                )

            error_message = f"설정 스키마 검증 실패: {len(error_details)}개 에러 발생"
            raise ConfigValidationError(error_message) from validation_error
