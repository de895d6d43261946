"""
Cliente para la API de Gemini (google-genai).
Implementa el contrato completo: generación multimodal, subida de archivos
y consulta de su estado de procesamiento.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from google import genai
from google.genai import types

from ..domain.errors import GenerationServiceError
from .base import InlineMediaPart, MediaState, Part, TextPart, UploadedMedia, UploadedMediaPart

logger = logging.getLogger(__name__)

_STATE_MAP: dict[str, MediaState] = {
    "PROCESSING": "processing",
    "ACTIVE": "ready",
    "FAILED": "failed",
}


class GeminiClient:
    """Cliente de generación sobre Gemini."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        top_p: float = 0.95,
        top_k: int = 40,
        max_output_tokens: int = 8192,
        client: Optional[genai.Client] = None
    ):
        """
        Args:
            api_key: Clave de la API de Google
            model: Modelo a usar
            top_p: Nucleus sampling
            top_k: Top-k sampling
            max_output_tokens: Máximo de tokens a generar
            client: Cliente ya construido (para tests)
        """
        self.model = model
        self.top_p = top_p
        self.top_k = top_k
        self.max_output_tokens = max_output_tokens
        self.client = client or genai.Client(api_key=api_key)

    def _to_part(self, part: Part) -> types.Part:
        if isinstance(part, TextPart):
            return types.Part.from_text(text=part.text)
        if isinstance(part, InlineMediaPart):
            return types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
        if isinstance(part, UploadedMediaPart):
            return types.Part.from_uri(file_uri=part.media.uri, mime_type=part.media.mime_type)
        raise TypeError(f"Tipo de parte no soportado: {type(part).__name__}")

    def generate(self, parts: Sequence[Part], temperature: float = 0.7) -> str:
        contents = [self._to_part(part) for part in parts]
        config = types.GenerateContentConfig(
            temperature=temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_output_tokens=self.max_output_tokens,
        )
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            logger.error(f"Error llamando a {self.model}: {e}")
            raise GenerationServiceError(f"Gemini falló: {e}") from e

        text = response.text
        if not text:
            raise GenerationServiceError("Gemini devolvió una respuesta vacía")
        return text

    def upload(self, path: str, mime_type: str) -> UploadedMedia:
        try:
            uploaded = self.client.files.upload(
                file=path,
                config=types.UploadFileConfig(mime_type=mime_type, display_name=Path(path).name),
            )
        except Exception as e:
            logger.error(f"Error subiendo {path}: {e}")
            raise GenerationServiceError(f"Subida falló: {e}") from e

        logger.info(f"Archivo subido: {uploaded.name}")
        return UploadedMedia(
            name=uploaded.name or "",
            uri=uploaded.uri or "",
            mime_type=uploaded.mime_type or mime_type,
        )

    def get_media_state(self, name: str) -> MediaState:
        try:
            meta = self.client.files.get(name=name)
        except Exception as e:
            raise GenerationServiceError(f"No se pudo consultar {name}: {e}") from e

        state = getattr(meta, "state", None)
        if state is None:
            return "unknown"
        label = str(getattr(state, "name", state)).upper()
        return _STATE_MAP.get(label, "unknown")
