"""
Proveedores de entrada.
Abstraen "hacer una pregunta, recibir una respuesta" para que el pipeline
funcione igual en la terminal y en los tests.
"""
from collections import deque
from typing import Iterable, Optional, Protocol

from rich.console import Console
from rich.prompt import Prompt


class InputProvider(Protocol):
    def ask(self, question: str) -> str:
        ...


class ConsoleInputProvider:
    """Pregunta en la terminal con rich."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def ask(self, question: str) -> str:
        return Prompt.ask(question, console=self.console)


class ScriptedInputProvider:
    """Devuelve respuestas fijas en orden; registra las preguntas recibidas."""

    def __init__(self, answers: Iterable[str]):
        self._answers = deque(answers)
        self.questions: list[str] = []

    def ask(self, question: str) -> str:
        self.questions.append(question)
        if not self._answers:
            raise LookupError(f"Sin respuesta preparada para: {question}")
        return self._answers.popleft()
