"""
Configuración del narrador.
Carga config/config.yaml sobre los valores por defecto y toma las claves
de API del entorno (.env). Se valida una sola vez, en el borde.
"""
import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from .domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")

API_KEY_ENV = {
    "gemini": "GOOGLE_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openrouter": "google/gemini-2.5-flash",
}


class GenerationConfig(BaseModel):
    """Parámetros del servicio de generación."""
    provider: Literal["gemini", "openrouter"] = "gemini"
    model: str = DEFAULT_MODELS["gemini"]
    api_key: Optional[str] = Field(default=None, repr=False)
    max_output_tokens: int = Field(8192, gt=0)
    top_p: float = Field(0.95, gt=0, le=1)
    top_k: int = Field(40, gt=0)
    description_temperature: float = Field(0.4, ge=0)
    script_temperature: float = Field(0.7, ge=0)
    direct_temperature: float = Field(0.5, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _default_model_for_provider(cls, data):
        # Cada proveedor nombra el mismo modelo de forma distinta
        if isinstance(data, dict) and not data.get("model"):
            provider = data.get("provider", "gemini")
            if provider in DEFAULT_MODELS:
                data = {**data, "model": DEFAULT_MODELS[provider]}
        return data


class NarradorConfig(BaseModel):
    """Configuración completa del pipeline."""
    frame_interval: float = Field(1.0, gt=0)
    words_per_second: float = Field(2.5, gt=0)
    request_delay: float = Field(1.0, ge=0)
    context_scripts: int = Field(2, ge=0)
    poll_interval: float = Field(2.0, ge=0)
    poll_max_attempts: int = Field(60, gt=0)
    language: str = "Korean"
    default_subject: str = "NBA highlights"
    frames_dir: str = "./frames"
    output_dir: str = "./output"
    downloads_dir: str = "./downloads"
    prompts_path: Optional[str] = None
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    def require_api_key(self) -> str:
        """Devuelve la clave de API o falla con un mensaje claro."""
        if not self.generation.api_key:
            env_name = API_KEY_ENV[self.generation.provider]
            raise ConfigurationError(f"{env_name} no está configurada. Agrégala al .env")
        return self.generation.api_key


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        logger.info(f"Archivo de configuración no encontrado: {path} (usando valores por defecto)")
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: Optional[str] = None, env: Optional[dict] = None) -> NarradorConfig:
    """
    Carga y valida la configuración.

    Args:
        config_path: Ruta al YAML (por defecto config/config.yaml)
        env: Variables de entorno a usar (por defecto os.environ tras load_dotenv)

    Returns:
        NarradorConfig validada

    Raises:
        ConfigurationError: si el YAML no cumple el esquema
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    data = _load_yaml(Path(config_path) if config_path else DEFAULT_CONFIG_PATH)
    generation = dict(data.get("generation") or {})

    provider = generation.get("provider", "gemini")
    if not generation.get("api_key") and provider in API_KEY_ENV:
        generation["api_key"] = env.get(API_KEY_ENV[provider])
    if env.get("NARRADOR_MODEL"):
        generation["model"] = env["NARRADOR_MODEL"]
    data["generation"] = generation

    try:
        return NarradorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuración inválida: {e}") from e
