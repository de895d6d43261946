"""
Errores de dominio del narrador.
Los fatales se propagan hasta el CLI; el resto se recupera en cada etapa.
"""


class NarradorError(Exception):
    """Error base del sistema."""
    pass


class ConfigurationError(NarradorError):
    """Configuración inválida o credenciales faltantes."""
    pass


class InvalidDurationError(NarradorError):
    """La duración total no es un número finito positivo."""
    pass


class NoScenesError(NarradorError):
    """La segmentación no produjo ninguna escena."""
    pass


class NoFramesError(NarradorError):
    """Una escena no tiene ningún frame disponible."""

    def __init__(self, scene_index: int):
        super().__init__(f"No hay frames para la escena {scene_index}")
        self.scene_index = scene_index


class GenerationServiceError(NarradorError):
    """El servicio de generación falló o no soporta la operación."""
    pass


class GenerationParseError(NarradorError):
    """La respuesta del servicio no es JSON válido o no cumple el esquema."""
    pass


class UploadIncompleteError(NarradorError):
    """La subida terminó pero faltan los metadatos de referencia."""
    pass


class ProcessingTimeoutError(NarradorError):
    """Se agotaron los intentos esperando el procesamiento del video."""
    pass


class ProcessingFailedError(NarradorError):
    """El servicio reportó que el procesamiento del video falló."""
    pass


class EmptyResultError(NarradorError):
    """No quedó ningún registro válido después de filtrar."""
    pass
