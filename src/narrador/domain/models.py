"""
Modelos de Dominio
Definen la estructura de datos central del sistema.

Los nombres en Python van en snake_case; el JSON que se persiste e
intercambia usa los alias camelCase (contrato con herramientas externas,
p. ej. el editor de subtítulos).
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Pacing = Literal["slow", "medium", "fast"]


class NarradorModel(BaseModel):
    """Base inmutable con alias camelCase."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Scene(NarradorModel):
    """
    Intervalo contiguo del video original.
    frame_path es un prefijo de nombre, no una ruta a un archivo concreto.
    """
    start_time: float = Field(..., alias="startTime", ge=0)
    end_time: float = Field(..., alias="endTime")
    duration: float = Field(..., gt=0)
    frame_path: str = Field(..., alias="framePath", min_length=1)


class SceneDescription(NarradorModel):
    """Descripción visual de una escena (salida de la etapa de descripción)."""
    scene_index: int = Field(..., alias="sceneIndex", ge=0)
    start_time: float = Field(..., alias="startTime")
    end_time: float = Field(..., alias="endTime")
    duration: float
    description: str
    visual_elements: List[str] = Field(default_factory=list, alias="visualElements")
    mood: str = ""
    key_people: List[str] = Field(default_factory=list, alias="keyPeople")
    specific_actions: List[str] = Field(default_factory=list, alias="specificActions")


class VoiceoverScript(NarradorModel):
    """Narración de una sola escena."""
    scene_index: int = Field(..., alias="sceneIndex", ge=0)
    start_time: float = Field(..., alias="startTime")
    end_time: float = Field(..., alias="endTime")
    duration: float
    script: str
    estimated_words: int = Field(..., alias="estimatedWords", ge=0)
    pacing: Pacing
    emphasis: Optional[List[str]] = None


class CombinedScript(NarradorModel):
    """Narración continua de todo el video."""
    script: str
    total_estimated_words: int = Field(..., alias="totalEstimatedWords", ge=0)
    pacing: Pacing
    emphasis: Optional[List[str]] = None


class TimedSegment(NarradorModel):
    """Una oración con su ventana de tiempo."""
    start_sec: float = Field(..., alias="startSec", ge=0)
    end_sec: float = Field(..., alias="endSec")
    duration_sec: float = Field(..., alias="durationSec", gt=0)
    sentence: str = Field(..., min_length=1)


class TimedScriptResult(NarradorModel):
    """Guión por oraciones generado directamente desde el video."""
    total_duration_sec: float = Field(..., alias="totalDurationSec")
    segments: List[TimedSegment]

    @property
    def covered_duration(self) -> float:
        return sum(s.duration_sec for s in self.segments)


class NarrationResult(NarradorModel):
    """Resultado completo del pipeline por escenas."""
    scenes: List[Scene]
    descriptions: List[SceneDescription]
    script: CombinedScript
