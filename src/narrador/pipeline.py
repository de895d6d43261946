"""
Pipeline principal del narrador.
Coordina segmentación → frames → descripción → guión, y el camino directo
video → guión con tiempos.
"""

import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel

from .config import NarradorConfig, load_config
from .director.segmenter import parse_duration, segment_scenes
from .domain.errors import NarradorError
from .domain.models import (
    CombinedScript,
    NarradorModel,
    NarrationResult,
    Scene,
    SceneDescription,
    TimedScriptResult,
)
from .input_provider import ConsoleInputProvider, InputProvider, ScriptedInputProvider
from .llm import GenerationService, NarrationValidator, PromptLibrary, create_generation_service
from .stages.description import DescriptionStage
from .stages.direct import DirectScriptPipeline
from .stages.script import ScriptStage
from .utils.backoff import Sleeper
from .video.frames import FfmpegFrameExtractor, FrameExtractor, FrameScheduler

logger = logging.getLogger(__name__)
console = Console()

TIMESTAMPS_QUESTION = (
    "Enter comma-separated scene change timestamps in seconds (exclude 0 and final duration)"
)
DURATION_QUESTION = "Enter total video duration in seconds"


class NarrationPipeline:
    """Orquestador principal del pipeline de narración."""

    def __init__(
        self,
        config: NarradorConfig,
        service: Optional[GenerationService] = None,
        extractor: Optional[FrameExtractor] = None,
        input_provider: Optional[InputProvider] = None,
        sleep: Sleeper = time.sleep
    ):
        """
        Inicializa el pipeline.

        Args:
            config: Configuración ya validada
            service: Servicio de generación (se construye desde config si falta)
            extractor: Extractor de frames (FFmpeg por defecto)
            input_provider: De dónde salen los timestamps y la duración (terminal por defecto)
            sleep: Función de espera para las pausas fijas
        """
        self.config = config
        self.frames_dir = Path(config.frames_dir)
        self.output_dir = Path(config.output_dir)
        for dir_path in [self.frames_dir, self.output_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

        self.scheduler = FrameScheduler(interval=config.frame_interval)
        self.prompts = PromptLibrary(config.prompts_path)
        self.validator = NarrationValidator(words_per_second=config.words_per_second)
        self.extractor = extractor or FfmpegFrameExtractor()
        self.input_provider = input_provider or ConsoleInputProvider(console)
        self._sleep = sleep

        # Componentes lazy-loaded
        self._service = service
        self._description_stage = None
        self._script_stage = None
        self._direct_pipeline = None

    @property
    def service(self) -> GenerationService:
        if self._service is None:
            self._service = create_generation_service(self.config)
        return self._service

    @property
    def description_stage(self) -> DescriptionStage:
        if self._description_stage is None:
            self._description_stage = DescriptionStage(
                self.service,
                self.scheduler,
                prompts=self.prompts,
                temperature=self.config.generation.description_temperature,
                request_delay=self.config.request_delay,
                sleep=self._sleep,
            )
        return self._description_stage

    @property
    def script_stage(self) -> ScriptStage:
        if self._script_stage is None:
            self._script_stage = ScriptStage(
                self.service,
                self.scheduler,
                prompts=self.prompts,
                validator=self.validator,
                language=self.config.language,
                temperature=self.config.generation.script_temperature,
                context_scripts=self.config.context_scripts,
                request_delay=self.config.request_delay,
                sleep=self._sleep,
            )
        return self._script_stage

    @property
    def direct_pipeline(self) -> DirectScriptPipeline:
        if self._direct_pipeline is None:
            self._direct_pipeline = DirectScriptPipeline(
                self.service,
                prompts=self.prompts,
                validator=self.validator,
                language=self.config.language,
                default_subject=self.config.default_subject,
                temperature=self.config.generation.direct_temperature,
                poll_interval=self.config.poll_interval,
                poll_max_attempts=self.config.poll_max_attempts,
                sleep=self._sleep,
            )
        return self._direct_pipeline

    def step_segment(self, input_provider: InputProvider) -> List[Scene]:
        """
        Paso 1: Pedir los cambios de escena y la duración, y segmentar.
        """
        console.print(Panel("[bold cyan]PASO 1: Segmentando escenas[/bold cyan]"))
        change_answer = input_provider.ask(TIMESTAMPS_QUESTION)
        duration_answer = input_provider.ask(DURATION_QUESTION)

        total_duration = parse_duration(duration_answer)
        scenes = segment_scenes(
            change_answer,
            total_duration,
            frame_prefix=str(self.frames_dir / "scene"),
        )
        console.print(f"[green]✓ {len(scenes)} escena(s) detectadas[/green]\n")
        return scenes

    def step_extract_frames(self, video_path: str, scenes: Sequence[Scene]) -> int:
        """
        Paso 2: Extraer frames de cada escena.
        """
        console.print(Panel("[bold cyan]PASO 2: Extrayendo frames[/bold cyan]"))
        total = self.scheduler.extract(video_path, scenes, self.extractor)
        expected = sum(self.scheduler.frame_count(s) for s in scenes)
        console.print(f"[green]✓ {total}/{expected} frames disponibles[/green]\n")
        return total

    def step_describe(self, scenes: Sequence[Scene], topic: str = "") -> List[SceneDescription]:
        """
        Paso 3: Describir las escenas.
        """
        console.print(Panel("[bold cyan]PASO 3: Describiendo escenas[/bold cyan]"))
        descriptions = self.description_stage.describe_all_scenes(scenes, topic)
        console.print(f"[green]✓ {len(descriptions)}/{len(scenes)} escenas descritas[/green]\n")
        return descriptions

    def step_generate_script(
        self,
        scenes: Sequence[Scene],
        descriptions: Sequence[SceneDescription],
        topic: str = ""
    ) -> CombinedScript:
        """
        Paso 4: Generar el guión combinado.
        """
        console.print(Panel("[bold cyan]PASO 4: Generando guión[/bold cyan]"))
        script = self.script_stage.generate_all_scripts(scenes, descriptions, topic)
        console.print(
            f"[green]✓ Ritmo: {script.pacing} | Palabras estimadas: {script.total_estimated_words}[/green]\n"
        )
        return script

    def run(
        self,
        video_path: str,
        topic: str = "",
        input_provider: Optional[InputProvider] = None
    ) -> NarrationResult:
        """
        Ejecuta el pipeline completo por escenas.

        Raises:
            FileNotFoundError: si el video no existe
            NarradorError: errores fatales de cualquier etapa
        """
        if not Path(video_path).exists():
            raise FileNotFoundError(f"No se encuentra el video: {video_path}")

        scenes = self.step_segment(input_provider or self.input_provider)
        self.step_extract_frames(video_path, scenes)
        descriptions = self.step_describe(scenes, topic)
        script = self.step_generate_script(scenes, descriptions, topic)
        return NarrationResult(scenes=scenes, descriptions=descriptions, script=script)

    def run_direct(self, video_path: str, subject: str = "") -> TimedScriptResult:
        """Ejecuta el camino directo video → guión con tiempos."""
        console.print(Panel("[bold cyan]Guión directo desde el video[/bold cyan]"))
        return self.direct_pipeline.generate_timed_script(video_path, subject)

    def save_result(self, result: NarradorModel, name: str) -> Path:
        """Guarda el resultado como JSON (claves camelCase)."""
        path = self.output_dir / f"{name}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"Resultado guardado en {path}")
        return path


def _print_combined(script: CombinedScript) -> None:
    console.print(Panel(script.script, title="Guión combinado"))
    console.print(f"Ritmo: {script.pacing} | Palabras estimadas: {script.total_estimated_words}")
    if script.emphasis:
        console.print(f"Énfasis: {', '.join(script.emphasis)}")


def _print_timed(result: TimedScriptResult) -> None:
    for segment in result.segments:
        console.print(
            f"[cyan]{segment.start_sec:6.1f}s - {segment.end_sec:6.1f}s[/cyan]  {segment.sentence}"
        )
    console.print(f"Duración total: {result.total_duration_sec:.1f}s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    "Punto de entrada CLI."
    import argparse

    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(
        description="Narrador - guión de narración alineado al video",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--video", help="Ruta al video")
    parser.add_argument("--topic", help="Tema o sujeto del video")
    parser.add_argument("--timestamps", help="Cambios de escena separados por comas (sin preguntar)")
    parser.add_argument("--duration", help="Duración total en segundos (sin preguntar)")
    parser.add_argument("--direct", action="store_true", help="Generar guión con tiempos directamente desde el video")
    parser.add_argument("--download", metavar="URL", help="Descargar el video con yt-dlp antes de procesarlo")
    parser.add_argument("--config", help="Ruta al archivo de configuración YAML")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except NarradorError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    prompt_input = ConsoleInputProvider(console)
    video_path = args.video

    if args.download:
        from .video.downloader import VideoDownloader
        try:
            video_path, _ = VideoDownloader(config.downloads_dir).download(args.download)
        except Exception as e:
            console.print(f"[red]Error descargando el video: {e}[/red]")
            return 1

    if not video_path:
        video_path = prompt_input.ask("Enter video file path")
    topic = args.topic if args.topic is not None else prompt_input.ask("Enter topic")

    pipeline = NarrationPipeline(config)

    try:
        if args.direct:
            result = pipeline.run_direct(video_path, topic)
            _print_timed(result)
            path = pipeline.save_result(result, "timed_script")
        else:
            input_provider: InputProvider = prompt_input
            if args.timestamps is not None and args.duration is not None:
                input_provider = ScriptedInputProvider([args.timestamps, args.duration])
            result = pipeline.run(video_path, topic, input_provider)
            _print_combined(result.script)
            path = pipeline.save_result(result, "narration")
    except (NarradorError, FileNotFoundError) as e:
        logger.error(f"Falló el pipeline: {e}")
        console.print(f"[red]✗ Error: {e}[/red]")
        return 1

    console.print(f"[green]✓ Guardado en {path}[/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
