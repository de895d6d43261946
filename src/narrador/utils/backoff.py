"""
Esperas fijas para APIs externas.
Consulta de estado con intentos acotados (tenacity) y pausas fijas entre
peticiones para respetar los límites de tasa. No hay backoff exponencial.
"""

import logging
import time
from typing import Callable, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], None]


class PollTimeout(Exception):
    """Se agotaron los intentos de consulta."""

    def __init__(self, attempts: int, last_value):
        super().__init__(f"Sin resultado tras {attempts} intentos (último: {last_value!r})")
        self.attempts = attempts
        self.last_value = last_value


def poll_until(
    check: Callable[[], T],
    is_pending: Callable[[T], bool],
    max_attempts: int = 60,
    interval: float = 2.0,
    sleep: Sleeper = time.sleep,
) -> T:
    """
    Llama a `check` cada `interval` segundos mientras el resultado siga pendiente.

    Args:
        check: Función que consulta el estado
        is_pending: Decide si hay que volver a consultar
        max_attempts: Número máximo de consultas
        interval: Espera fija entre consultas (segundos)
        sleep: Función de espera (inyectable para tests)

    Returns:
        El primer resultado no pendiente

    Raises:
        PollTimeout: si tras max_attempts el resultado sigue pendiente
        Cualquier excepción lanzada por `check` (no se reintenta)
    """
    retryer = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(is_pending),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        sleep=sleep,
    )
    try:
        return retryer(check)
    except RetryError as e:
        raise PollTimeout(max_attempts, e.last_attempt.result()) from e


class FixedDelay:
    """
    Pausa fija entre peticiones consecutivas.
    La primera llamada a wait() no espera.
    """

    def __init__(self, seconds: float, sleep: Sleeper = time.sleep):
        self.seconds = seconds
        self._sleep = sleep
        self._calls = 0

    def wait(self) -> float:
        self._calls += 1
        if self._calls == 1 or self.seconds <= 0:
            return 0.0
        self._sleep(self.seconds)
        return self.seconds
