"""
Etapa de guión.
Genera una narración continua para todo el video en una sola petición; si
falla, genera escena por escena (con las dos anteriores como contexto) y
las une en orden.
"""
import logging
import math
import time
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.errors import EmptyResultError
from ..domain.models import CombinedScript, Pacing, Scene, SceneDescription, VoiceoverScript
from ..llm.base import GenerationService, Part, TextPart
from ..llm.parser import ParseResult, parse_model
from ..llm.prompts import PromptLibrary
from ..llm.validator import NarrationValidator
from ..utils.backoff import FixedDelay, Sleeper
from ..video.frames import FrameScheduler

logger = logging.getLogger(__name__)

MERGED_PACING: Pacing = "medium"


class _ScriptPayloadBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    script: str = Field(..., min_length=1)
    pacing: Pacing
    emphasis: Optional[List[str]] = None

    @field_validator("pacing", mode="before")
    @classmethod
    def _normalize_pacing(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


def _coerce_word_count(value: Any) -> Optional[int]:
    """
    El conteo de palabras es orientativo: se redondea, y si no sirve se
    descarta para recalcularlo a partir del texto.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Conteo de palabras ignorado: {value!r}")
        return None
    if not math.isfinite(number) or number < 0:
        logger.debug(f"Conteo de palabras ignorado: {value!r}")
        return None
    return round(number)


class SceneScriptPayload(_ScriptPayloadBase):
    estimated_words: Optional[int] = Field(default=None, alias="estimatedWords")

    coerce_words = field_validator("estimated_words", mode="before")(_coerce_word_count)


class CombinedScriptPayload(_ScriptPayloadBase):
    total_estimated_words: Optional[int] = Field(default=None, alias="totalEstimatedWords")

    coerce_words = field_validator("total_estimated_words", mode="before")(_coerce_word_count)


def _count_words(text: str) -> int:
    return len(text.split())


def _join(values: Sequence[str], empty: str = "") -> str:
    return ", ".join(values) or empty


def merge_scene_scripts(scripts: Sequence[VoiceoverScript]) -> CombinedScript:
    """
    Une los guiones por escena en orden ascendente de sceneIndex.
    Las palabras estimadas se suman y los énfasis se aplanan.
    """
    ordered = sorted(scripts, key=lambda s: s.scene_index)
    emphasis = [word for s in ordered for word in (s.emphasis or [])]
    return CombinedScript(
        script="\n\n".join(s.script for s in ordered),
        total_estimated_words=sum(s.estimated_words for s in ordered),
        pacing=MERGED_PACING,
        emphasis=emphasis,
    )


class ScriptStage:
    """Agente 2: escribe la narración a partir de las descripciones."""

    def __init__(
        self,
        service: GenerationService,
        scheduler: FrameScheduler,
        prompts: Optional[PromptLibrary] = None,
        validator: Optional[NarrationValidator] = None,
        language: str = "Korean",
        temperature: float = 0.7,
        context_scripts: int = 2,
        request_delay: float = 1.0,
        sleep: Sleeper = time.sleep
    ):
        """
        Args:
            service: Servicio de generación
            scheduler: Contrato de frames
            prompts: Plantillas de prompts
            validator: Reglas de ritmo de locución
            language: Idioma de la narración
            temperature: Temperatura de generación
            context_scripts: Cuántos guiones previos enviar como contexto
            request_delay: Pausa fija entre peticiones del modo por escena
            sleep: Función de espera (inyectable para tests)
        """
        self.service = service
        self.scheduler = scheduler
        self.prompts = prompts or PromptLibrary()
        self.validator = validator or NarrationValidator()
        self.language = language
        self.temperature = temperature
        self.context_scripts = context_scripts
        self.request_delay = request_delay
        self._sleep = sleep

    @property
    def words_per_second(self) -> float:
        return self.validator.words_per_second

    def _narrative_context(self, previous_scripts: Sequence[VoiceoverScript]) -> str:
        if not previous_scripts or self.context_scripts <= 0:
            return ""
        recent = list(previous_scripts)[-self.context_scripts:]
        lines = "\n".join(f'Scene {s.scene_index + 1}: "{s.script}"' for s in recent)
        return self.prompts.render("previous_context", previous=lines)

    def generate_script_for_scene(
        self,
        scene: Scene,
        description: SceneDescription,
        topic: str = "",
        previous_scripts: Sequence[VoiceoverScript] = ()
    ) -> VoiceoverScript:
        """
        Genera la narración de una escena.

        Args:
            scene: Escena (para ubicar sus frames)
            description: Descripción de la escena
            topic: Tema del video
            previous_scripts: Guiones ya generados (se usan los últimos como contexto)

        Raises:
            GenerationParseError: si la respuesta no es válida
            GenerationServiceError: si el servicio falla
        """
        prompt = self.prompts.render(
            "script_scene",
            language=self.language,
            scene_number=description.scene_index + 1,
            topic=topic,
            duration=description.duration,
            description=description.description,
            key_people=_join(description.key_people, "None identified"),
            actions=_join(description.specific_actions),
            visual_elements=_join(description.visual_elements),
            mood=description.mood,
            start=description.start_time,
            end=description.end_time,
            narrative_context=self._narrative_context(previous_scripts),
            max_words=self.validator.max_words(description.duration),
            words_per_second=self.words_per_second,
            wpm=self.words_per_second * 60,
        )
        parts: List[Part] = [
            TextPart(prompt),
            *self.scheduler.frame_parts(scene),
            TextPart(self.prompts.render("script_scene_footer", language=self.language)),
        ]

        raw = self.service.generate(parts, temperature=self.temperature)
        payload: SceneScriptPayload = parse_model(raw, SceneScriptPayload).unwrap()

        estimated = payload.estimated_words
        if estimated is None:
            estimated = _count_words(payload.script)

        return VoiceoverScript(
            scene_index=description.scene_index,
            start_time=description.start_time,
            end_time=description.end_time,
            duration=description.duration,
            script=payload.script,
            estimated_words=estimated,
            pacing=payload.pacing,
            emphasis=payload.emphasis,
        )

    def generate_all_scripts(
        self,
        scenes: Sequence[Scene],
        descriptions: Sequence[SceneDescription],
        topic: str = ""
    ) -> CombinedScript:
        """
        Genera una narración para todo el video.

        Raises:
            EmptyResultError: si no hay descripciones o no se generó ningún guión
        """
        if not descriptions:
            raise EmptyResultError("No hay descripciones para generar el guión")

        scenes_by_index = dict(enumerate(scenes))
        logger.info(f"Generando un solo guión para {len(descriptions)} escenas...")

        result = self._generate_batch(scenes_by_index, descriptions, topic)
        if result:
            combined = result.value
            total = sum(d.duration for d in descriptions)
            self.validator.check_combined_script(combined, total).log()
            logger.info("✓ Guión combinado generado")
            return combined

        logger.error(f"Error generando el guión en lote: {result.reason}")
        logger.info("Generando guiones por escena y uniéndolos...")
        scripts = self._generate_individually(scenes_by_index, descriptions, topic)
        if not scripts:
            raise EmptyResultError("No se pudo generar el guión de ninguna escena")
        return merge_scene_scripts(scripts)

    def _build_batch_request(
        self,
        scenes_by_index: Dict[int, Scene],
        descriptions: Sequence[SceneDescription],
        topic: str
    ) -> List[Part]:
        total_duration = sum(d.duration for d in descriptions)
        parts: List[Part] = [TextPart(self.prompts.render(
            "script_batch",
            language=self.language,
            topic=topic,
            wpm=self.words_per_second * 60,
            words_per_second=self.words_per_second,
            max_words=self.validator.max_words(total_duration),
        ))]

        for desc in descriptions:
            parts.append(TextPart(self.prompts.render(
                "script_batch_scene",
                scene_number=desc.scene_index + 1,
                duration=desc.duration,
                max_words=self.validator.max_words(desc.duration),
                start=desc.start_time,
                end=desc.end_time,
                description=desc.description,
                key_people=_join(desc.key_people, "None"),
                actions=_join(desc.specific_actions),
                visual_elements=_join(desc.visual_elements),
                mood=desc.mood,
            )))
            scene = scenes_by_index.get(desc.scene_index)
            if scene is not None:
                parts.extend(self.scheduler.frame_parts(scene))
        return parts

    def _generate_batch(
        self,
        scenes_by_index: Dict[int, Scene],
        descriptions: Sequence[SceneDescription],
        topic: str
    ) -> ParseResult:
        """Primer escalón: una narración continua para todo el video."""
        parts = self._build_batch_request(scenes_by_index, descriptions, topic)
        try:
            raw = self.service.generate(parts, temperature=self.temperature)
        except Exception as e:
            return ParseResult.failure(f"El servicio falló: {e}")

        result = parse_model(raw, CombinedScriptPayload)
        if not result:
            return result

        payload: CombinedScriptPayload = result.value
        total = payload.total_estimated_words
        if total is None:
            total = _count_words(payload.script)
        return ParseResult.success(CombinedScript(
            script=payload.script,
            total_estimated_words=total,
            pacing=payload.pacing,
            emphasis=payload.emphasis,
        ))

    def _generate_individually(
        self,
        scenes_by_index: Dict[int, Scene],
        descriptions: Sequence[SceneDescription],
        topic: str
    ) -> List[VoiceoverScript]:
        """Segundo escalón: un guión por escena, saltando las que fallen."""
        delay = FixedDelay(self.request_delay, self._sleep)
        ordered = sorted(descriptions, key=lambda d: d.scene_index)
        scripts: List[VoiceoverScript] = []

        for position, desc in enumerate(ordered, 1):
            scene = scenes_by_index.get(desc.scene_index)
            if scene is None:
                logger.error(f"Descripción sin escena correspondiente: {desc.scene_index}")
                continue

            delay.wait()
            logger.info(f"Generando guión {position}/{len(ordered)}...")
            try:
                script = self.generate_script_for_scene(scene, desc, topic, scripts)
            except Exception as e:
                logger.error(f"Error generando el guión de la escena {desc.scene_index + 1}: {e}")
                continue

            scripts.append(script)
            self.validator.check_scene_script(script).log(prefix="⚠️  ")

        return scripts
