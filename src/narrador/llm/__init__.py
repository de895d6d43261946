"""Módulo LLM: clientes de generación, prompts y parseo de respuestas."""

from ..config import NarradorConfig
from .base import (
    GenerationService,
    InlineMediaPart,
    MediaState,
    Part,
    TextPart,
    UploadedMedia,
    UploadedMediaPart,
)
from .parser import ParseResult, parse_json_response, parse_model, parse_model_list, strip_code_fences
from .prompts import PromptLibrary
from .validator import NarrationValidator, ValidationResult


def create_generation_service(config: NarradorConfig) -> GenerationService:
    """Construye el cliente según el proveedor configurado."""
    api_key = config.require_api_key()
    generation = config.generation

    if generation.provider == "openrouter":
        from .openrouter import OpenRouterClient
        return OpenRouterClient(
            api_key=api_key,
            model=generation.model,
            top_p=generation.top_p,
            max_output_tokens=generation.max_output_tokens,
        )

    from .gemini import GeminiClient
    return GeminiClient(
        api_key=api_key,
        model=generation.model,
        top_p=generation.top_p,
        top_k=generation.top_k,
        max_output_tokens=generation.max_output_tokens,
    )


__all__ = [
    "GenerationService", "InlineMediaPart", "MediaState", "Part", "TextPart",
    "UploadedMedia", "UploadedMediaPart",
    "ParseResult", "parse_json_response", "parse_model", "parse_model_list", "strip_code_fences",
    "PromptLibrary", "NarrationValidator", "ValidationResult",
    "create_generation_service",
]
