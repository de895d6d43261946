"""Modelos y errores de dominio."""

from .errors import (
    NarradorError,
    ConfigurationError,
    InvalidDurationError,
    NoScenesError,
    NoFramesError,
    GenerationServiceError,
    GenerationParseError,
    UploadIncompleteError,
    ProcessingTimeoutError,
    ProcessingFailedError,
    EmptyResultError,
)
from .models import (
    Pacing,
    Scene,
    SceneDescription,
    VoiceoverScript,
    CombinedScript,
    TimedSegment,
    TimedScriptResult,
    NarrationResult,
)

__all__ = [
    "NarradorError", "ConfigurationError", "InvalidDurationError", "NoScenesError",
    "NoFramesError", "GenerationServiceError", "GenerationParseError",
    "UploadIncompleteError", "ProcessingTimeoutError", "ProcessingFailedError",
    "EmptyResultError",
    "Pacing", "Scene", "SceneDescription", "VoiceoverScript", "CombinedScript",
    "TimedSegment", "TimedScriptResult", "NarrationResult",
]
