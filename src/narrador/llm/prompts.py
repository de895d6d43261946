"""
Biblioteca de prompts.
Carga las plantillas desde YAML y las rellena con str.format.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_PATH = Path(__file__).with_name("prompts.yaml")


class PromptLibrary:
    """Plantillas de prompts por nombre."""

    def __init__(self, prompts_path: Optional[str] = None):
        """
        Args:
            prompts_path: Ruta al archivo de prompts (usa el del paquete por defecto)
        """
        self.path = Path(prompts_path) if prompts_path else DEFAULT_PROMPTS_PATH
        self.templates = self._load_prompts(self.path)

    def _load_prompts(self, path: Path) -> dict:
        """Carga los prompts desde YAML."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Archivo de prompts no encontrado: {path}")
            return {}

    def render(self, name: str, **values) -> str:
        template = self.templates.get(name)
        if template is None:
            raise KeyError(f"Template de prompt no encontrado: {name}")
        return template.format(**values)
