"""
Parser de respuestas del LLM.
Limpia los bloques markdown, extrae el JSON y lo valida contra un modelo,
devolviendo un resultado etiquetado en lugar de lanzar excepciones.
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..domain.errors import GenerationParseError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?")


@dataclass(frozen=True)
class ParseResult:
    """Resultado del parseo: ok con valor, o fallo con motivo."""
    ok: bool
    value: Any = None
    reason: str = ""

    def __bool__(self):
        return self.ok

    @classmethod
    def success(cls, value: Any) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str) -> "ParseResult":
        return cls(ok=False, reason=reason)

    def unwrap(self) -> Any:
        """Devuelve el valor o lanza GenerationParseError."""
        if not self.ok:
            raise GenerationParseError(self.reason)
        return self.value


def strip_code_fences(text: str) -> str:
    """Quita los ```json / ``` que el modelo agrega a veces."""
    return _FENCE_PATTERN.sub("", text or "").strip()


def parse_json_response(text: str) -> ParseResult:
    """
    Extrae un documento JSON (objeto o array) de la respuesta.
    Maneja casos donde el JSON está envuelto en markdown o texto.
    """
    if not text or not text.strip():
        return ParseResult.failure("Respuesta vacía")

    clean = strip_code_fences(text)
    try:
        return ParseResult.success(json.loads(clean))
    except json.JSONDecodeError:
        pass

    # Buscar el objeto o array que abra primero dentro del texto
    patterns = [r"\{[\s\S]*\}", r"\[[\s\S]*\]"]
    first_bracket = clean.find("[")
    first_brace = clean.find("{")
    if first_bracket != -1 and (first_brace == -1 or first_bracket < first_brace):
        patterns.reverse()
    for pattern in patterns:
        match = re.search(pattern, clean)
        if not match:
            continue
        try:
            return ParseResult.success(json.loads(match.group(0)))
        except json.JSONDecodeError:
            continue

    logger.error("No se pudo extraer JSON de la respuesta")
    return ParseResult.failure(f"Respuesta no es JSON válido: {clean[:120]!r}")


def _format_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def parse_model(text: str, model: Type[T]) -> ParseResult:
    """Parsea un objeto JSON y lo valida con el modelo dado."""
    result = parse_json_response(text)
    if not result:
        return result
    data = result.value
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    if not isinstance(data, dict):
        return ParseResult.failure(f"Se esperaba un objeto JSON, llegó {type(data).__name__}")
    try:
        return ParseResult.success(model.model_validate(data))
    except ValidationError as e:
        return ParseResult.failure(f"Esquema inválido ({_format_validation_error(e)})")


def parse_model_list(text: str, model: Type[T]) -> ParseResult:
    """Parsea un array JSON y valida cada elemento con el modelo dado."""
    result = parse_json_response(text)
    if not result:
        return result
    data = result.value
    if not isinstance(data, list):
        return ParseResult.failure(f"Se esperaba un array JSON, llegó {type(data).__name__}")

    items: List[T] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            return ParseResult.failure(f"Elemento {i} no es un objeto")
        try:
            items.append(model.model_validate(item))
        except ValidationError as e:
            return ParseResult.failure(f"Elemento {i}: esquema inválido ({_format_validation_error(e)})")
    return ParseResult.success(items)
