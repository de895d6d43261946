"""
Pipeline directo.
Sube el video al servicio, espera a que esté procesado y pide un guión por
oraciones con tiempos. Si la subida o la espera fallan, repite una vez con
los bytes del video incluidos en la petición.
"""
import logging
import math
import time
from pathlib import Path
from typing import Any, List, Optional

from ..domain.errors import (
    EmptyResultError,
    GenerationParseError,
    ProcessingFailedError,
    ProcessingTimeoutError,
    UploadIncompleteError,
)
from ..domain.models import TimedScriptResult, TimedSegment
from ..llm.base import GenerationService, InlineMediaPart, MediaState, TextPart, UploadedMedia, UploadedMediaPart
from ..llm.parser import parse_json_response
from ..llm.prompts import PromptLibrary
from ..llm.validator import NarrationValidator
from ..utils.backoff import PollTimeout, Sleeper, poll_until

logger = logging.getLogger(__name__)

VIDEO_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
}


def guess_video_mime_type(path: str) -> str:
    return VIDEO_MIME_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def _to_float(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_timed_script(raw: str) -> TimedScriptResult:
    """
    Parsea y valida el guión por oraciones.

    Descarta los segmentos sin oración o con endSec <= startSec y recalcula
    durationSec. Si un segmento empieza antes de que termine el anterior, su
    inicio se corre hasta ese final; solo se descarta si queda sin duración.

    Raises:
        GenerationParseError: si la respuesta no es un objeto JSON
        EmptyResultError: si no queda ningún segmento válido
    """
    data = parse_json_response(raw).unwrap()
    if not isinstance(data, dict):
        raise GenerationParseError(f"Se esperaba un objeto JSON, llegó {type(data).__name__}")

    raw_segments = data.get("segments")
    candidates: List[TimedSegment] = []
    for item in raw_segments if isinstance(raw_segments, list) else []:
        if not isinstance(item, dict):
            continue
        start = max(_to_float(item.get("startSec")), 0.0)
        end = _to_float(item.get("endSec"))
        sentence = str(item.get("sentence") or "").strip()
        if end <= start or not sentence:
            logger.debug(f"Segmento descartado: {item!r}")
            continue
        candidates.append(TimedSegment(
            start_sec=start,
            end_sec=end,
            duration_sec=end - start,
            sentence=sentence,
        ))

    segments: List[TimedSegment] = []
    for segment in sorted(candidates, key=lambda s: s.start_sec):
        previous_end = segments[-1].end_sec if segments else 0.0
        if segment.start_sec < previous_end:
            if segment.end_sec <= previous_end:
                logger.warning(f"Segmento superpuesto descartado: {segment.start_sec:.1f}s '{segment.sentence[:30]}'")
                continue
            logger.debug(f"Inicio ajustado de {segment.start_sec:.2f}s a {previous_end:.2f}s")
            segment = TimedSegment(
                start_sec=previous_end,
                end_sec=segment.end_sec,
                duration_sec=segment.end_sec - previous_end,
                sentence=segment.sentence,
            )
        segments.append(segment)

    if not segments:
        raise EmptyResultError("El modelo no devolvió segmentos válidos")

    total = _to_float(data.get("totalDurationSec")) or segments[-1].end_sec
    return TimedScriptResult(total_duration_sec=total, segments=segments)


class DirectScriptPipeline:
    """Genera un guión con tiempos directamente desde el video."""

    def __init__(
        self,
        service: GenerationService,
        prompts: Optional[PromptLibrary] = None,
        validator: Optional[NarrationValidator] = None,
        language: str = "Korean",
        default_subject: str = "NBA highlights",
        temperature: float = 0.5,
        poll_interval: float = 2.0,
        poll_max_attempts: int = 60,
        sleep: Sleeper = time.sleep
    ):
        self.service = service
        self.prompts = prompts or PromptLibrary()
        self.validator = validator or NarrationValidator()
        self.language = language
        self.default_subject = default_subject
        self.temperature = temperature
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self._sleep = sleep

    def wait_until_ready(self, name: str) -> MediaState:
        """
        Espera a que el archivo subido termine de procesarse.

        "ready" y "unknown" continúan; "failed" aborta.

        Raises:
            ProcessingFailedError: si el servicio reporta fallo
            ProcessingTimeoutError: si se agotan los intentos
        """
        try:
            state = poll_until(
                lambda: self.service.get_media_state(name),
                is_pending=lambda s: s == "processing",
                max_attempts=self.poll_max_attempts,
                interval=self.poll_interval,
                sleep=self._sleep,
            )
        except PollTimeout as e:
            raise ProcessingTimeoutError(
                f"Tiempo agotado esperando el procesamiento de {name} ({e.attempts} intentos)"
            ) from e

        if state == "failed":
            raise ProcessingFailedError(f"El procesamiento de {name} falló")
        return state

    def upload_and_wait(self, video_path: str, mime_type: str) -> UploadedMedia:
        media = self.service.upload(video_path, mime_type)
        if not media.name or not media.uri:
            raise UploadIncompleteError("La subida terminó pero faltan los metadatos del archivo")
        self.wait_until_ready(media.name)
        return media

    def _prompt(self, subject: str) -> str:
        return self.prompts.render(
            "direct_script",
            language=self.language,
            subject=subject or self.default_subject,
        )

    def _finish(self, raw: str) -> TimedScriptResult:
        result = parse_timed_script(raw)
        self.validator.check_timed_script(result).log()
        logger.info(
            f"✓ {len(result.segments)} segmentos "
            f"({result.covered_duration:.1f}s narrados de {result.total_duration_sec:.1f}s)"
        )
        return result

    def generate_timed_script(self, video_path: str, subject: str = "") -> TimedScriptResult:
        """
        Genera el guión por oraciones.

        Args:
            video_path: Ruta al video
            subject: Tema del video

        Raises:
            FileNotFoundError: si el video no existe
            EmptyResultError / GenerationParseError / GenerationServiceError:
                si también falla el envío inline
        """
        path = Path(video_path)
        if not path.exists():
            raise FileNotFoundError(f"No se encuentra el video: {video_path}")

        mime_type = guess_video_mime_type(str(path))
        prompt = self._prompt(subject)

        try:
            media = self.upload_and_wait(str(path), mime_type)
            raw = self.service.generate(
                [TextPart(prompt), UploadedMediaPart(media)],
                temperature=self.temperature,
            )
            return self._finish(raw)
        except Exception as e:
            logger.warning(f"Falló el camino con archivo subido ({e}); reintentando con bytes inline")

        raw = self.service.generate(
            [TextPart(prompt), InlineMediaPart(data=path.read_bytes(), mime_type=mime_type)],
            temperature=self.temperature,
        )
        return self._finish(raw)
