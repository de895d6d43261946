import json

import pytest

from narrador.domain.errors import InvalidDurationError
from narrador.input_provider import ScriptedInputProvider
from narrador.pipeline import DURATION_QUESTION, TIMESTAMPS_QUESTION, NarrationPipeline, main

from conftest import FakeGenerationService, FileWritingExtractor, as_json

DESCRIPTIONS = as_json([
    {"sceneIndex": 0, "description": "Salto inicial", "keyPeople": ["Nikola Jokić"]},
    {"sceneIndex": 1, "description": "Mate en transición", "mood": "explosivo"},
])

SCRIPT = as_json({
    "script": "요키치가 점프볼을 따냅니다. 그리고 속공 덩크!",
    "totalEstimatedWords": 6,
    "pacing": "fast",
})


def test_full_run(config, video_file, no_sleep):
    service = FakeGenerationService([DESCRIPTIONS, SCRIPT])
    extractor = FileWritingExtractor()
    pipeline = NarrationPipeline(config, service=service, extractor=extractor, sleep=no_sleep)
    provider = ScriptedInputProvider(["4", "10"])

    result = pipeline.run(str(video_file), "Nuggets highlights", provider)

    assert provider.questions == [TIMESTAMPS_QUESTION, DURATION_QUESTION]
    assert [(s.start_time, s.end_time) for s in result.scenes] == [(0, 4), (4, 10)]
    assert len(extractor.captures) == 10
    assert [d.description for d in result.descriptions] == ["Salto inicial", "Mate en transición"]
    assert result.script.pacing == "fast"
    assert len(service.calls) == 2

    path = pipeline.save_result(result, "narration")
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["scenes"][1]["startTime"] == 4
    assert saved["descriptions"][0]["keyPeople"] == ["Nikola Jokić"]
    assert saved["script"]["totalEstimatedWords"] == 6
    assert "요키치" in path.read_text(encoding="utf-8")


def test_invalid_duration_is_fatal(config, video_file, no_sleep):
    service = FakeGenerationService()
    pipeline = NarrationPipeline(config, service=service, extractor=FileWritingExtractor(), sleep=no_sleep)

    with pytest.raises(InvalidDurationError):
        pipeline.run(str(video_file), "", ScriptedInputProvider(["3", "-1"]))
    assert service.calls == []


def test_missing_video_fails_before_asking(config, tmp_path, no_sleep):
    provider = ScriptedInputProvider([])
    pipeline = NarrationPipeline(config, service=FakeGenerationService(), sleep=no_sleep)

    with pytest.raises(FileNotFoundError):
        pipeline.run(str(tmp_path / "nada.mp4"), "", provider)
    assert provider.questions == []


def test_run_direct(config, video_file, no_sleep):
    service = FakeGenerationService([as_json({
        "totalDurationSec": 4,
        "segments": [{"startSec": 0, "endSec": 4, "sentence": "한 문장."}],
    })])
    pipeline = NarrationPipeline(config, service=service, sleep=no_sleep)

    result = pipeline.run_direct(str(video_file), "NBA")
    path = pipeline.save_result(result, "timed_script")

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "totalDurationSec": 4.0,
        "segments": [{"startSec": 0.0, "endSec": 4.0, "durationSec": 4.0, "sentence": "한 문장."}],
    }


def test_cli_reports_missing_video(tmp_path, monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"frames_dir: {tmp_path / 'frames'}\noutput_dir: {tmp_path / 'output'}\n",
        encoding="utf-8",
    )

    code = main([
        "--config", str(config_path),
        "--video", str(tmp_path / "nada.mp4"),
        "--topic", "NBA",
        "--timestamps", "",
        "--duration", "3",
    ])

    assert code == 1


def test_cli_reports_bad_config(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("words_per_second: -1\n", encoding="utf-8")

    assert main(["--config", str(config_path), "--video", "x.mp4", "--topic", "t"]) == 1
