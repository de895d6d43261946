"""Fixtures compartidas: servicio de generación falso, extractor y config."""
import json
from pathlib import Path
from typing import List

import pytest

from narrador.config import GenerationConfig, NarradorConfig
from narrador.llm.base import UploadedMedia
from narrador.video.frames import FrameScheduler


class FakeGenerationService:
    """
    Servicio en memoria.
    Las respuestas se consumen en orden; si una es una excepción, se lanza.
    """

    def __init__(self, responses=(), states=(), upload_result=None, upload_error=None):
        self.responses = list(responses)
        self.states = list(states)
        self.upload_result = upload_result or UploadedMedia(
            name="files/abc", uri="https://files.example/abc", mime_type="video/mp4"
        )
        self.upload_error = upload_error
        self.calls: List[list] = []
        self.temperatures: List[float] = []
        self.uploads: List[tuple] = []
        self.state_queries: List[str] = []

    def generate(self, parts, temperature=0.7):
        self.calls.append(list(parts))
        self.temperatures.append(temperature)
        if not self.responses:
            raise AssertionError("Sin respuesta preparada")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def upload(self, path, mime_type):
        self.uploads.append((path, mime_type))
        if self.upload_error is not None:
            raise self.upload_error
        return self.upload_result

    def get_media_state(self, name):
        self.state_queries.append(name)
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0] if self.states else "ready"


class FileWritingExtractor:
    """Escribe un JPEG falso en cada destino, salvo en los instantes indicados."""

    def __init__(self, fail_at=()):
        self.fail_at = set(fail_at)
        self.captures: List[float] = []

    def capture(self, video_path, timestamp, destination):
        self.captures.append(timestamp)
        if timestamp in self.fail_at:
            return False
        Path(destination).write_bytes(b"\xff\xd8fake-jpeg")
        return True


def as_json(data) -> str:
    return json.dumps(data, ensure_ascii=False)


@pytest.fixture
def no_sleep():
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep


@pytest.fixture
def scheduler():
    return FrameScheduler(interval=1.0)


@pytest.fixture
def config(tmp_path):
    return NarradorConfig(
        frames_dir=str(tmp_path / "frames"),
        output_dir=str(tmp_path / "output"),
        downloads_dir=str(tmp_path / "downloads"),
        request_delay=0,
        poll_interval=0,
        generation=GenerationConfig(api_key="test-key"),
    )


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42fake-video")
    return path
