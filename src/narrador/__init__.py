"""
Narrador
Genera guiones de narración alineados al video: escenas → descripciones →
guión, o guión por oraciones con tiempos directamente desde el video.
"""

from .config import NarradorConfig, load_config
from .pipeline import NarrationPipeline

__version__ = "0.1.0"

__all__ = ["NarradorConfig", "load_config", "NarrationPipeline"]
