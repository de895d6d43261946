"""Etapas de generación: descripción, guión y pipeline directo."""

from .description import DescriptionStage
from .script import ScriptStage, merge_scene_scripts
from .direct import DirectScriptPipeline, parse_timed_script, guess_video_mime_type

__all__ = [
    "DescriptionStage", "ScriptStage", "merge_scene_scripts",
    "DirectScriptPipeline", "parse_timed_script", "guess_video_mime_type",
]
