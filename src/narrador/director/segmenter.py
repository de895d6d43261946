"""
Segmentador de escenas.
Convierte los timestamps de cambio de escena (texto libre separado por comas)
y la duración total en una lista ordenada de escenas disjuntas.
"""
import logging
import math
from typing import List

from ..domain.errors import InvalidDurationError, NoScenesError
from ..domain.models import Scene

logger = logging.getLogger(__name__)


def parse_duration(raw: str) -> float:
    """
    Convierte la respuesta del usuario en una duración válida.

    Raises:
        InvalidDurationError: si no es un número finito positivo
    """
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidDurationError(f"Duración inválida: {raw!r}")
    _check_duration(value)
    return value


def _check_duration(total_duration: float) -> None:
    if not isinstance(total_duration, (int, float)) or isinstance(total_duration, bool):
        raise InvalidDurationError(f"Duración inválida: {total_duration!r}")
    if not math.isfinite(total_duration) or total_duration <= 0:
        raise InvalidDurationError("La duración total debe ser un número positivo")


def parse_change_points(candidates: str, total_duration: float) -> List[float]:
    """
    Parsea los candidatos y devuelve los puntos de corte válidos,
    sin duplicados y ordenados.

    Los extremos (0 y la duración total) son implícitos: cualquier candidato
    <= 0 o >= duración total se descarta.
    """
    points = set()
    for chunk in (candidates or "").split(","):
        text = chunk.strip()
        if not text:
            continue
        try:
            value = float(text)
        except ValueError:
            logger.debug(f"Timestamp ignorado (no numérico): {text!r}")
            continue
        if not math.isfinite(value) or value <= 0 or value >= total_duration:
            logger.debug(f"Timestamp ignorado (fuera de rango): {value}")
            continue
        points.add(value)
    return sorted(points)


def segment_scenes(
    candidates: str,
    total_duration: float,
    frame_prefix: str = "scene"
) -> List[Scene]:
    """
    Genera las escenas a partir de los puntos de cambio.

    Args:
        candidates: Timestamps separados por comas (ej. "5, 12.5, 20")
        total_duration: Duración total del video en segundos
        frame_prefix: Prefijo para las claves de frames de cada escena

    Returns:
        Lista de escenas ordenadas que cubren [0, total_duration]

    Raises:
        InvalidDurationError: si la duración no es válida
        NoScenesError: si no se pudo crear ninguna escena
    """
    _check_duration(total_duration)

    boundaries = [0.0, *parse_change_points(candidates, total_duration), float(total_duration)]

    scenes = []
    for i in range(len(boundaries) - 1):
        start = boundaries[i]
        end = boundaries[i + 1]
        if end <= start:
            continue
        scenes.append(Scene(
            start_time=start,
            end_time=end,
            duration=end - start,
            frame_path=f"{frame_prefix}_{i}",
        ))

    if not scenes:
        raise NoScenesError("No se pudo crear ninguna escena con los timestamps dados")

    logger.info(f"{len(scenes)} escena(s) detectadas a partir de los timestamps")
    return scenes
