"""
Etapa de descripción visual.
Describe todas las escenas en una sola petición y, si eso falla, escena por
escena con una pausa fija entre llamadas.
"""
import logging
import time
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..domain.errors import EmptyResultError, NoFramesError
from ..domain.models import Scene, SceneDescription
from ..llm.base import GenerationService, Part, TextPart
from ..llm.parser import ParseResult, parse_model, parse_model_list
from ..llm.prompts import PromptLibrary
from ..utils.backoff import FixedDelay, Sleeper
from ..video.frames import FrameScheduler

logger = logging.getLogger(__name__)


class DescriptionPayload(BaseModel):
    """Lo que el modelo devuelve por escena (sin tiempos)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    scene_index: Optional[int] = Field(default=None, alias="sceneIndex")
    description: str = Field(..., min_length=1)
    visual_elements: Optional[List[str]] = Field(default=None, alias="visualElements")
    mood: Optional[str] = None
    key_people: Optional[List[str]] = Field(default=None, alias="keyPeople")
    specific_actions: Optional[List[str]] = Field(default=None, alias="specificActions")


class DescriptionStage:
    """Agente 1: analiza los frames de cada escena."""

    def __init__(
        self,
        service: GenerationService,
        scheduler: FrameScheduler,
        prompts: Optional[PromptLibrary] = None,
        temperature: float = 0.4,
        request_delay: float = 1.0,
        sleep: Sleeper = time.sleep
    ):
        """
        Args:
            service: Servicio de generación
            scheduler: Contrato de frames (para saber qué frames existen)
            prompts: Plantillas de prompts
            temperature: Temperatura de generación
            request_delay: Pausa fija entre peticiones del modo por escena
            sleep: Función de espera (inyectable para tests)
        """
        self.service = service
        self.scheduler = scheduler
        self.prompts = prompts or PromptLibrary()
        self.temperature = temperature
        self.request_delay = request_delay
        self._sleep = sleep

    def _topic_context(self, topic: str, template: str) -> str:
        return self.prompts.render(template, topic=topic) if topic else ""

    def _build_description(self, index: int, scene: Scene, payload: DescriptionPayload) -> SceneDescription:
        # Los tiempos salen siempre de la escena, nunca de la respuesta
        return SceneDescription(
            scene_index=index,
            start_time=scene.start_time,
            end_time=scene.end_time,
            duration=scene.duration,
            description=payload.description,
            visual_elements=payload.visual_elements or [],
            mood=payload.mood or "",
            key_people=payload.key_people or [],
            specific_actions=payload.specific_actions or [],
        )

    def describe_scene(self, index: int, scene: Scene, topic: str = "") -> SceneDescription:
        """
        Describe una sola escena.

        Raises:
            NoFramesError: si la escena no tiene frames en disco
            GenerationParseError: si la respuesta no es válida
            GenerationServiceError: si el servicio falla
        """
        frames = self.scheduler.frame_parts(scene)
        if not frames:
            raise NoFramesError(index)

        prompt = self.prompts.render(
            "describe_scene",
            scene_number=index + 1,
            duration=scene.duration,
            frame_count=len(frames),
            topic_context=self._topic_context(topic, "topic_context_scene"),
        )
        raw = self.service.generate([TextPart(prompt), *frames], temperature=self.temperature)
        payload = parse_model(raw, DescriptionPayload).unwrap()
        return self._build_description(index, scene, payload)

    def describe_all_scenes(self, scenes: Sequence[Scene], topic: str = "") -> List[SceneDescription]:
        """
        Describe todas las escenas, en lote si es posible.

        Returns:
            Descripciones en orden de escena (puede faltar alguna si se usó
            el modo por escena)

        Raises:
            EmptyResultError: si no se pudo describir ninguna escena
        """
        logger.info(f"Analizando las {len(scenes)} escenas en una sola petición...")
        result = self._describe_batch(scenes, topic)

        if result:
            descriptions = result.value
        else:
            logger.error(f"Error analizando escenas en lote: {result.reason}")
            logger.info("Procesando escenas individualmente...")
            descriptions = self._describe_individually(scenes, topic)

        if not descriptions:
            raise EmptyResultError("No se pudo describir ninguna escena")

        for desc in descriptions:
            logger.info(f"✓ Escena {desc.scene_index + 1} analizada")
            logger.debug(f"   Elementos visuales: {', '.join(desc.visual_elements)}")
            logger.debug(f"   Mood: {desc.mood}")
            logger.debug(f"   Personas: {', '.join(desc.key_people)}")
            logger.debug(f"   Acciones: {', '.join(desc.specific_actions)}")
        logger.info(f"✓ {len(descriptions)}/{len(scenes)} escenas analizadas")
        return descriptions

    def _build_batch_request(self, scenes: Sequence[Scene], topic: str) -> tuple[List[Part], int]:
        parts: List[Part] = [TextPart(self.prompts.render(
            "describe_batch",
            scene_count=len(scenes),
            topic_context=self._topic_context(topic, "topic_context_batch"),
        ))]

        frame_total = 0
        for i, scene in enumerate(scenes):
            parts.append(TextPart(self.prompts.render(
                "describe_batch_scene",
                scene_number=i + 1,
                scene_index=i,
                duration=scene.duration,
                start=scene.start_time,
                end=scene.end_time,
                frame_count=self.scheduler.frame_count(scene),
            )))
            frames = self.scheduler.frame_parts(scene)
            parts.extend(frames)
            frame_total += len(frames)
        return parts, frame_total

    def _describe_batch(self, scenes: Sequence[Scene], topic: str) -> ParseResult:
        """Primer escalón: una sola petición para todas las escenas."""
        parts, frame_total = self._build_batch_request(scenes, topic)
        if frame_total == 0:
            return ParseResult.failure("Ninguna escena tiene frames disponibles")

        try:
            raw = self.service.generate(parts, temperature=self.temperature)
        except Exception as e:
            return ParseResult.failure(f"El servicio falló: {e}")

        result = parse_model_list(raw, DescriptionPayload)
        if not result:
            return result

        payloads: List[DescriptionPayload] = result.value
        if len(payloads) != len(scenes):
            return ParseResult.failure(
                f"Se esperaban {len(scenes)} descripciones, llegaron {len(payloads)}"
            )
        for i, payload in enumerate(payloads):
            if payload.scene_index is not None and payload.scene_index != i:
                return ParseResult.failure(
                    f"sceneIndex desalineado en la posición {i}: {payload.scene_index}"
                )

        return ParseResult.success([
            self._build_description(i, scene, payload)
            for i, (scene, payload) in enumerate(zip(scenes, payloads))
        ])

    def _describe_individually(self, scenes: Sequence[Scene], topic: str) -> List[SceneDescription]:
        """Segundo escalón: una petición por escena, saltando las que fallen."""
        delay = FixedDelay(self.request_delay, self._sleep)
        descriptions = []

        for i, scene in enumerate(scenes):
            delay.wait()
            logger.info(f"Analizando escena {i + 1}/{len(scenes)}...")
            try:
                descriptions.append(self.describe_scene(i, scene, topic))
            except Exception as e:
                logger.error(f"Error analizando escena {i + 1}: {e}")

        return descriptions
