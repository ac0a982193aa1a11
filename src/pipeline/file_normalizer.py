"""
파일 단위 정규화 모듈입니다.

역할:
- 원본 하나를 디코딩하여 44바이트 헤더 + PCM으로 WAV 기록 (헤더 크기 필드는 기록 후 보정)
- 1차 패스: 피크/히스토그램 분석 → 게인 계산
- 2차 패스: WAV 파일 위에서 제자리 스케일링
- 선택: 외부 인코더로 재인코딩 (기존 대상 파일은 먼저 삭제)

상태 전이:
    IDLE → DECODING → HEADER_WRITTEN → ANALYZING → GAIN_COMPUTED → SCALING → DONE
    DONE → RE_ENCODING → DONE
    디코딩/입출력 실패 시 FAILED (이 파일만 중단, 롤백 없음)

사용 예시:
    >>> normalizer = FileNormalizer.from_config(config, reporter)
    >>> result = normalizer.normalize(Path("in/a.mp3"), NormalizationParams(factor=0.8))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from src.audio import SAMPLE_WIDTH, NormalizationParams
from src.audio.analyzer import PeakAnalyzer
from src.audio.gain import gain_for
from src.audio.scaler import SampleScaler
from src.codec import DecodeError, Decoder, DecoderFactory, EncodeError, Encoder
from src.codec.decoder import SoundFileDecoder
from src.codec.encoder import FfmpegEncoder
from src.container import HEADER_SIZE, ContainerError
from src.container.wav_header import encode_header, patch_data_size, read_header
from src.pipeline import FileResult, PipelineState
from src.pipeline.progress import NullReporter, ProgressReporter

logger = logging.getLogger(__name__)

# 출력 WAV 포맷 고정값
_OUTPUT_EXTENSION = ".wav"
_BITS_PER_SAMPLE = 16
_DEFAULT_CHUNK_SIZE = 4096


class FileNormalizer:
    """
    원본 파일 하나를 정규화된 WAV로 변환하는 상태 기계입니다.

    인스턴스는 파일 간에 가변 상태를 공유하지 않으므로 여러 워커 스레드에서
    동시에 normalize()를 호출해도 됩니다.
    """

    def __init__(
        self,
        output_wav_dir: str | Path,
        reporter: Optional[ProgressReporter] = None,
        decoder_factory: Optional[DecoderFactory] = None,
        encoder: Optional[Encoder] = None,
        output_encoded_dir: str | Path = "output/mp3",
        encoded_extension: str = ".mp3",
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._output_wav_dir = Path(output_wav_dir)
        self._output_encoded_dir = Path(output_encoded_dir)
        self._encoded_extension = encoded_extension
        self._reporter = reporter or NullReporter()
        self._decoder_factory = decoder_factory or SoundFileDecoder.open
        self._encoder = encoder or FfmpegEncoder()
        self._chunk_size = chunk_size
        self._analyzer = PeakAnalyzer(chunk_size)
        self._scaler = SampleScaler(chunk_size)

    @classmethod
    def from_config(
        cls,
        config,
        reporter: Optional[ProgressReporter] = None,
        decoder_factory: Optional[DecoderFactory] = None,
        encoder: Optional[Encoder] = None,
    ) -> "FileNormalizer":
        """AppConfig의 io/normalize/encoder 섹션으로 FileNormalizer를 생성합니다."""
        return cls(
            output_wav_dir=config.io.output_wav_dir,
            reporter=reporter,
            decoder_factory=decoder_factory,
            encoder=encoder or FfmpegEncoder.from_config(config),
            output_encoded_dir=config.io.output_encoded_dir,
            encoded_extension=config.encoder.output_extension,
            chunk_size=config.normalize.chunk_size_bytes,
        )

    # =========================================================================
    # 공개 메서드
    # =========================================================================

    def wav_path_for(self, source_path: Path) -> Path:
        """원본 경로에 대응하는 WAV 출력 경로를 반환합니다."""
        return self._output_wav_dir / (Path(source_path).stem + _OUTPUT_EXTENSION)

    def encoded_path_for(self, wav_path: Path) -> Path:
        """WAV 경로에 대응하는 재인코딩 출력 경로를 반환합니다."""
        return self._output_encoded_dir / (Path(wav_path).stem + self._encoded_extension)

    def normalize(self, source_path: Path, params: NormalizationParams) -> FileResult:
        """
        원본 하나를 디코딩, 분석, 스케일링하여 정규화된 WAV를 생성합니다.

        디코딩 실패, WAV 헤더 손상, 입출력 실패는 FAILED 결과로 반환되며 예외를 전파하지 않습니다.
        스케일링 도중 실패한 WAV는 일부만 정규화된 채로 남을 수 있습니다.

        파라미터:
            source_path: 원본 파일 경로
            params: 배치 공통 정규화 파라미터

        반환값:
            FileResult: 처리 결과 (state는 DONE 또는 FAILED)
        """
        source_path = Path(source_path)
        result = FileResult(source_path=source_path, wav_path=self.wav_path_for(source_path))

        try:
            self._decode_to_wav(result)
            self._normalize_wav(result, params)
        except DecodeError as exc:
            self._fail(result, f"디코딩 실패: {exc}")
        except ContainerError as exc:
            self._fail(result, f"WAV 헤더 손상: {exc}")
        except OSError as exc:
            self._fail(result, f"입출력 실패: {exc}")

        return result

    def reject(self, source_path: Path, reason: str) -> FileResult:
        """원본을 처리하지 않고 FAILED 결과로 기록합니다 (WAV 파일은 만들지 않음)."""
        source_path = Path(source_path)
        result = FileResult(source_path=source_path, wav_path=self.wav_path_for(source_path))
        self._fail(result, reason)
        return result

    def reencode(self, result: FileResult) -> FileResult:
        """
        정규화된 WAV를 외부 인코더로 재인코딩합니다.

        - 정규화에 실패한 결과는 건너뜁니다.
        - 대상 파일이 이미 있으면 먼저 삭제하며, 삭제할 수 없으면 재인코딩을 건너뜁니다.
        - 인코더 실패는 reencode_error에 기록하며 WAV 결과는 그대로 유지합니다.
        """
        if not result.succeeded:
            return result

        target = self.encoded_path_for(result.wav_path)
        result.encoded_path = target
        result.state = PipelineState.RE_ENCODING

        try:
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                _delete_file_if_exists(target)
            except OSError as exc:
                self._fail_reencode(
                    result,
                    f"대상 파일이 이미 존재하며 삭제할 수 없습니다 `{target.name}`: {exc}",
                )
                return result

            try:
                self._encoder.encode(result.wav_path, target)
            except EncodeError as exc:
                self._fail_reencode(result, f"재인코딩 실패 `{result.wav_path.name}`: {exc}")
                return result

            result.reencoded = True
            return result
        finally:
            result.state = PipelineState.DONE

    # =========================================================================
    # 내부 처리 메서드
    # =========================================================================

    def _decode_to_wav(self, result: FileResult) -> None:
        """DECODING → HEADER_WRITTEN: 헤더와 디코딩된 PCM을 WAV 파일로 기록합니다."""
        result.state = PipelineState.DECODING

        with self._decoder_factory(result.source_path) as decoder:
            result.sample_rate = decoder.sample_rate
            result.channels = decoder.channels
            self._reporter.report(
                f"  - 샘플레이트: {result.sample_rate}Hz, 채널: {result.channels}"
            )

            self._output_wav_dir.mkdir(parents=True, exist_ok=True)
            with open(result.wav_path, "wb") as wav_file:
                wav_file.write(
                    encode_header(0, result.sample_rate, result.channels, _BITS_PER_SAMPLE)
                )
                result.state = PipelineState.HEADER_WRITTEN

                data_size = self._copy_pcm(decoder, wav_file)
                patch_data_size(wav_file, data_size)

        logger.debug(f"WAV 기록 완료: {result.wav_path} ({data_size} bytes PCM)")

    def _copy_pcm(self, decoder: Decoder, wav_file: BinaryIO) -> int:
        """디코더 출력을 그대로 WAV 파일에 복사하고 복사한 바이트 수를 반환합니다."""
        data_size = 0
        while True:
            chunk = decoder.read(self._chunk_size)
            if not chunk:
                break
            wav_file.write(chunk)
            data_size += len(chunk)
        return data_size

    def _normalize_wav(self, result: FileResult, params: NormalizationParams) -> None:
        """ANALYZING → GAIN_COMPUTED → SCALING → DONE: WAV 파일을 제자리에서 정규화합니다."""
        with open(result.wav_path, "r+b") as wav_file:
            result.state = PipelineState.ANALYZING
            header = read_header(wav_file)
            analysis = self._analyzer.analyze(wav_file)
            result.total_samples = analysis.total_samples

            pcm_bytes = analysis.total_samples * SAMPLE_WIDTH + analysis.dropped_bytes
            if header.data_size != pcm_bytes:
                logger.warning(
                    f"헤더 data 크기({header.data_size})와 실제 PCM 크기({pcm_bytes})가 다릅니다",
                    extra=_log_context(result),
                )

            gain = gain_for(analysis, params)
            result.state = PipelineState.GAIN_COMPUTED
            result.true_peak = gain.true_peak
            result.effective_peak = gain.effective_peak
            result.gain = gain.gain

            if gain.tolerance_applied:
                self._reporter.report(
                    f"  - 허용치 적용 위치: {gain.tolerance_position} "
                    f"(유효 피크 {gain.effective_peak}, 실제 피크 {gain.true_peak})"
                )
            self._reporter.report(
                f"  - 계산된 게인: {gain.gain:.4f}, 최대 샘플: {gain.effective_peak}"
            )

            result.state = PipelineState.SCALING
            self._scaler.scale(wav_file, gain.gain, start_offset=HEADER_SIZE)

        result.state = PipelineState.DONE
        logger.info(
            f"정규화 완료: {result.wav_path}, "
            f"peak={result.effective_peak}/{result.true_peak}, samples={result.total_samples}",
            extra=_log_context(result),
        )

    def _fail(self, result: FileResult, message: str) -> None:
        logger.error(message, extra=_log_context(result))
        result.error = message
        result.state = PipelineState.FAILED
        self._reporter.report(f"  - 실패: {message}")

    def _fail_reencode(self, result: FileResult, message: str) -> None:
        logger.error(message, extra=_log_context(result))
        result.reencode_error = message
        self._reporter.report(message)


def _log_context(result: FileResult) -> dict:
    """로그 레코드에 붙일 파일 단위 문맥 필드."""
    return {
        "source": str(result.source_path),
        "state": result.state.value,
        "gain": round(result.gain, 4),
    }


def _delete_file_if_exists(path: Path) -> None:
    """파일이 있으면 삭제합니다. 삭제할 수 없으면 OSError를 전파합니다."""
    if path.exists() or path.is_symlink():
        path.unlink()
