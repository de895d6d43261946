"""
Cliente para OpenRouter API.
Compatible con el SDK de OpenAI. Solo soporta media inline (data URLs):
no tiene almacén de archivos, así que upload() siempre falla y el pipeline
directo cae al envío de bytes inline.
"""

import base64
import logging
from typing import Optional, Sequence

from openai import OpenAI

from ..domain.errors import GenerationServiceError
from .base import InlineMediaPart, MediaState, Part, TextPart, UploadedMedia, UploadedMediaPart

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterClient:
    """Cliente de generación sobre OpenRouter."""

    def __init__(
        self,
        api_key: str,
        model: str = "google/gemini-2.5-flash",
        top_p: float = 0.95,
        max_output_tokens: int = 8192,
        client: Optional[OpenAI] = None
    ):
        """
        Inicializa el cliente de OpenRouter.

        Args:
            api_key: Clave de OpenRouter
            model: Modelo a usar
            top_p: Nucleus sampling
            max_output_tokens: Máximo de tokens a generar
            client: Cliente OpenAI ya construido (para tests)
        """
        self.model = model
        self.top_p = top_p
        self.max_output_tokens = max_output_tokens
        self.client = client or OpenAI(base_url=OPENROUTER_BASE_URL, api_key=api_key)

    def _to_content(self, part: Part) -> dict:
        if isinstance(part, TextPart):
            return {"type": "text", "text": part.text}
        if isinstance(part, InlineMediaPart):
            encoded = base64.b64encode(part.data).decode("utf-8")
            url = f"data:{part.mime_type};base64,{encoded}"
            if part.mime_type.startswith("video/"):
                return {"type": "video_url", "video_url": {"url": url}}
            return {"type": "image_url", "image_url": {"url": url}}
        if isinstance(part, UploadedMediaPart):
            raise GenerationServiceError("OpenRouter no soporta referencias a archivos subidos")
        raise TypeError(f"Tipo de parte no soportado: {type(part).__name__}")

    def generate(self, parts: Sequence[Part], temperature: float = 0.7) -> str:
        content = [self._to_content(part) for part in parts]
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": content}],
                temperature=temperature,
                top_p=self.top_p,
                max_tokens=self.max_output_tokens,
                extra_headers={
                    "HTTP-Referer": "https://github.com/narrador",
                    "X-Title": "Narrador de Videos"
                }
            )
        except Exception as e:
            logger.error(f"Error llamando a {self.model}: {e}")
            raise GenerationServiceError(f"OpenRouter falló: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise GenerationServiceError("OpenRouter devolvió una respuesta vacía")
        return response.choices[0].message.content

    def upload(self, path: str, mime_type: str) -> UploadedMedia:
        raise GenerationServiceError("OpenRouter no tiene almacén de archivos")

    def get_media_state(self, name: str) -> MediaState:
        return "unknown"
