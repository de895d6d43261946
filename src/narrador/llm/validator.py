"""
Validador de narraciones.
Verifica el ritmo de locución (palabras por segundo) y la consistencia
temporal de los segmentos del guión directo.
"""

import logging
import math
from dataclasses import dataclass, field

from ..domain.models import CombinedScript, TimedScriptResult, VoiceoverScript

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_SECOND = 2.5


@dataclass
class ValidationResult:
    """Resultado de la validación."""
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __bool__(self):
        return self.is_valid

    def log(self, prefix: str = "") -> None:
        for error in self.errors:
            logger.error(f"{prefix}{error}")
        for warning in self.warnings:
            logger.warning(f"{prefix}{warning}")


class NarrationValidator:
    """
    Reglas de tiempo para la narración.
    El techo de palabras por segundo es orientativo: genera advertencias,
    nunca errores.
    """

    def __init__(self, words_per_second: float = DEFAULT_WORDS_PER_SECOND):
        self.words_per_second = words_per_second

    def max_words(self, duration: float) -> int:
        """Presupuesto de palabras para una duración dada."""
        return math.floor(duration * self.words_per_second)

    def exceeds_rate(self, words: int, duration: float) -> bool:
        if duration <= 0:
            return words > 0
        return words / duration > self.words_per_second

    def check_scene_script(self, script: VoiceoverScript) -> ValidationResult:
        warnings = []
        if self.exceeds_rate(script.estimated_words, script.duration):
            rate = script.estimated_words / script.duration
            warnings.append(
                f"Escena {script.scene_index + 1}: el guión puede ser muy largo "
                f"({script.estimated_words} palabras, {rate:.2f} pal/s, máx {self.words_per_second})"
            )
        if not script.script.strip():
            warnings.append(f"Escena {script.scene_index + 1}: guión vacío")
        return ValidationResult(is_valid=True, warnings=warnings)

    def check_combined_script(self, script: CombinedScript, total_duration: float) -> ValidationResult:
        warnings = []
        budget = self.max_words(total_duration)
        if script.total_estimated_words > budget:
            warnings.append(
                f"Guión combinado excede el presupuesto ({script.total_estimated_words} > {budget} palabras)"
            )
        return ValidationResult(is_valid=True, warnings=warnings)

    def check_timed_script(self, result: TimedScriptResult) -> ValidationResult:
        """Revisa cobertura y ritmo de un guión por oraciones."""
        errors = []
        warnings = []

        if not result.segments:
            errors.append("No hay segmentos")
            return ValidationResult(is_valid=False, errors=errors)

        prev_end = 0.0
        for i, segment in enumerate(result.segments):
            if segment.start_sec - prev_end > 0.5:
                warnings.append(f"Segmento {i + 1}: hueco de {segment.start_sec - prev_end:.1f}s")
            words = len(segment.sentence.split())
            if self.exceeds_rate(words, segment.duration_sec):
                warnings.append(f"Segmento {i + 1}: {words} palabras en {segment.duration_sec:.1f}s")
            prev_end = segment.end_sec

        if result.total_duration_sec - prev_end > 0.5:
            warnings.append(
                f"Los segmentos terminan en {prev_end:.1f}s de {result.total_duration_sec:.1f}s"
            )

        return ValidationResult(is_valid=True, errors=errors, warnings=warnings)
