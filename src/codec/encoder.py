"""
외부 인코더 서브프로세스 모듈입니다.

역할:
- 정규화된 WAV를 ffmpeg(또는 호환 CLI)로 배포 포맷에 재인코딩
- 실행 파일 누락, 0이 아닌 종료 코드, 타임아웃을 EncodeError로 변환

사용 예시:
    >>> encoder = FfmpegEncoder.from_config(config)
    >>> encoder.encode(Path("output/wav/a.wav"), Path("output/mp3/a.mp3"))
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from src.codec import EncodeError

logger = logging.getLogger(__name__)

# 에러 메시지에 포함할 stderr 최대 길이
_STDERR_TAIL_CHARS = 500


class FfmpegEncoder:
    """
    `<executable> -i <input> [extra_args...] <output>` 형태로 인코더를 실행하는 클래스입니다.

    출력 파일이 이미 존재하면 덮어쓰지 않으므로 호출자가 먼저 삭제해야 합니다.
    """

    def __init__(
        self,
        executable: str = "ffmpeg",
        extra_args: Optional[Sequence[str]] = None,
        timeout_sec: float = 300.0,
    ) -> None:
        self._executable = executable
        self._extra_args = list(extra_args or [])
        self._timeout_sec = timeout_sec

    @classmethod
    def from_config(cls, config) -> "FfmpegEncoder":
        """AppConfig의 encoder 섹션으로 인코더를 생성합니다."""
        return cls(
            executable=config.encoder.executable,
            extra_args=config.encoder.extra_args,
            timeout_sec=config.encoder.timeout_sec,
        )

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        """인코더 실행 명령을 생성합니다."""
        return [
            self._executable,
            "-hide_banner",
            "-nostdin",
            "-i", str(input_path),
            *self._extra_args,
            str(output_path),
        ]

    def encode(self, input_path: Path, output_path: Path) -> None:
        """
        WAV 파일을 재인코딩합니다.

        에러:
            EncodeError: 실행 파일이 없거나, 타임아웃되거나, 0이 아닌 코드로 종료될 때
        """
        cmd = self.build_command(input_path, output_path)
        logger.info(f"재인코딩 시작: {input_path} → {output_path}")

        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self._timeout_sec,
            )
        except FileNotFoundError as exc:
            raise EncodeError(f"인코더 실행 파일을 찾을 수 없습니다: {self._executable}") from exc
        except subprocess.TimeoutExpired as exc:
            raise EncodeError(
                f"인코더 타임아웃 ({self._timeout_sec}초 초과): {input_path}"
            ) from exc
        except OSError as exc:
            raise EncodeError(f"인코더 실행 실패: {self._executable}: {exc}") from exc

        if result.returncode != 0:
            err = (result.stderr or b"").decode(errors="replace").strip()
            raise EncodeError(
                f"인코더 실패 (returncode={result.returncode}): {err[-_STDERR_TAIL_CHARS:]}"
            )

        logger.info(f"재인코딩 완료: {output_path}")
