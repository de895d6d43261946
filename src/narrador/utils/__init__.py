"""Módulo de utilidades"""

from .backoff import poll_until, PollTimeout, FixedDelay

__all__ = ["poll_until", "PollTimeout", "FixedDelay"]
