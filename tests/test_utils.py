import pytest

from narrador.input_provider import ScriptedInputProvider
from narrador.utils.backoff import FixedDelay, PollTimeout, poll_until


def test_fixed_delay_skips_first_call(no_sleep):
    delay = FixedDelay(1.5, no_sleep)
    waited = [delay.wait() for _ in range(3)]

    assert waited == [0.0, 1.5, 1.5]
    assert no_sleep.calls == [1.5, 1.5]


def test_poll_until_returns_first_settled_value(no_sleep):
    values = iter(["processing", "processing", "ready"])
    result = poll_until(lambda: next(values), lambda v: v == "processing", interval=0.5, sleep=no_sleep)

    assert result == "ready"
    assert no_sleep.calls == [0.5, 0.5]


def test_poll_until_gives_up(no_sleep):
    with pytest.raises(PollTimeout) as exc:
        poll_until(lambda: "processing", lambda v: v == "processing", max_attempts=4, sleep=no_sleep)
    assert exc.value.attempts == 4
    assert exc.value.last_value == "processing"


def test_poll_until_propagates_check_errors(no_sleep):
    def check():
        raise ConnectionError("sin red")

    with pytest.raises(ConnectionError):
        poll_until(check, lambda v: False, sleep=no_sleep)
    assert no_sleep.calls == []


def test_scripted_input_provider():
    provider = ScriptedInputProvider(["a"])
    assert provider.ask("¿uno?") == "a"
    with pytest.raises(LookupError):
        provider.ask("¿dos?")
    assert provider.questions == ["¿uno?", "¿dos?"]
