"""
Contrato con el servicio de generación multimodal.
Una petición es una lista ordenada de partes (texto, media inline o
referencia a media subida); la respuesta es texto libre.
"""
from dataclasses import dataclass
from typing import Literal, Protocol, Sequence, Union

MediaState = Literal["processing", "ready", "failed", "unknown"]


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineMediaPart:
    """Bytes de imagen o video con su tipo MIME."""
    data: bytes
    mime_type: str

    def __repr__(self) -> str:
        return f"InlineMediaPart(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class UploadedMedia:
    """Metadatos de un archivo subido al almacén del servicio."""
    name: str
    uri: str
    mime_type: str


@dataclass(frozen=True)
class UploadedMediaPart:
    media: UploadedMedia


Part = Union[TextPart, InlineMediaPart, UploadedMediaPart]


class GenerationService(Protocol):
    """
    Servicio externo de generación.

    Los errores de transporte se reportan como GenerationServiceError.
    """

    def generate(self, parts: Sequence[Part], temperature: float = 0.7) -> str:
        ...

    def upload(self, path: str, mime_type: str) -> UploadedMedia:
        ...

    def get_media_state(self, name: str) -> MediaState:
        ...
