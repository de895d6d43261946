"""
Programador de frames.
Define qué frames deben existir para cada escena y los extrae con FFmpeg.
"""

import logging
import math
import subprocess
from pathlib import Path
from typing import List, Protocol, Sequence

from ..domain.models import Scene
from ..llm.base import InlineMediaPart

logger = logging.getLogger(__name__)

FRAME_EXTENSION = ".jpg"
FRAME_MIME_TYPE = "image/jpeg"


class FrameExtractor(Protocol):
    """Captura una imagen fija del video en un instante dado."""

    def capture(self, video_path: str, timestamp: float, destination: str) -> bool:
        ...


class FfmpegFrameExtractor:
    """Extractor de frames basado en FFmpeg."""

    def __init__(self, quality: int = 2, timeout: int = 60):
        """
        Args:
            quality: Calidad JPEG de FFmpeg (-q:v, 2 = alta)
            timeout: Tiempo máximo por captura en segundos
        """
        self.quality = quality
        self.timeout = timeout

    def capture(self, video_path: str, timestamp: float, destination: str) -> bool:
        cmd = [
            "ffmpeg", "-y",
            "-ss", f"{timestamp:.3f}",
            "-i", video_path,
            "-frames:v", "1",
            "-q:v", str(self.quality),
            destination
        ]
        try:
            subprocess.run(cmd, capture_output=True, check=True, timeout=self.timeout)
            return True
        except subprocess.CalledProcessError as e:
            logger.error(f"FFmpeg falló en t={timestamp:.2f}s: {e.stderr.decode(errors='ignore')[-300:]}")
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.error(f"No se pudo capturar frame en t={timestamp:.2f}s: {e}")
        return False


class FrameScheduler:
    """
    Contrato de nombres e índices de frames por escena.

    Para un intervalo de muestreo Δ, una escena tiene ceil(duración/Δ) frames
    tomados en t_i = min(inicio + i·Δ, fin). Los frames se guardan como
    "{frame_path}_{i}.jpg".
    """

    def __init__(self, interval: float = 1.0):
        if not interval > 0:
            raise ValueError("El intervalo de muestreo debe ser positivo")
        self.interval = interval

    def frame_count(self, scene: Scene) -> int:
        return math.ceil(scene.duration / self.interval)

    def sample_times(self, scene: Scene) -> List[float]:
        return [
            min(scene.start_time + i * self.interval, scene.end_time)
            for i in range(self.frame_count(scene))
        ]

    def frame_key(self, scene: Scene, index: int) -> str:
        return f"{scene.frame_path}_{index}"

    def frame_path(self, scene: Scene, index: int) -> Path:
        return Path(self.frame_key(scene, index) + FRAME_EXTENSION)

    def expected_frames(self, scene: Scene) -> List[Path]:
        return [self.frame_path(scene, i) for i in range(self.frame_count(scene))]

    def available_frames(self, scene: Scene) -> List[Path]:
        """Frames esperados que realmente existen en disco, en orden."""
        return [path for path in self.expected_frames(scene) if path.exists()]

    def frame_parts(self, scene: Scene) -> List[InlineMediaPart]:
        """Frames disponibles de la escena como partes inline para el servicio."""
        return [
            InlineMediaPart(data=path.read_bytes(), mime_type=FRAME_MIME_TYPE)
            for path in self.available_frames(scene)
        ]

    def extract(
        self,
        video_path: str,
        scenes: Sequence[Scene],
        extractor: FrameExtractor
    ) -> int:
        """
        Extrae los frames de todas las escenas en orden secuencial.

        Los fallos de captura no se reintentan ni se propagan: el frame
        (y cualquier archivo previo con su nombre) simplemente no existirá y
        las etapas siguientes lo omitirán.

        Returns:
            Número de frames que existen al terminar
        """
        total = 0
        for i, scene in enumerate(scenes):
            for index, timestamp in enumerate(self.sample_times(scene)):
                destination = self.frame_path(scene, index)
                destination.parent.mkdir(parents=True, exist_ok=True)
                # Un frame viejo de otra corrida no debe contar como extraído
                destination.unlink(missing_ok=True)
                extractor.capture(video_path, timestamp, str(destination))

            extracted = len(self.available_frames(scene))
            expected = self.frame_count(scene)
            if extracted < expected:
                logger.warning(f"Escena {i + 1}: {extracted}/{expected} frames extraídos")
            else:
                logger.info(f"Extraídos {extracted} frames para la escena {i + 1}/{len(scenes)}")
            total += extracted
        return total
