import pytest

from narrador.director import segment_scenes
from narrador.domain.errors import EmptyResultError, GenerationServiceError, NoFramesError
from narrador.llm.base import InlineMediaPart, TextPart
from narrador.stages.description import DescriptionStage

from conftest import FakeGenerationService, FileWritingExtractor, as_json


@pytest.fixture
def scenes(tmp_path, scheduler):
    scenes = segment_scenes("2", 5, frame_prefix=str(tmp_path / "scene"))
    scheduler.extract("clip.mp4", scenes, FileWritingExtractor())
    return scenes


def make_stage(service, scheduler, sleep, request_delay=1.0):
    return DescriptionStage(service, scheduler, request_delay=request_delay, sleep=sleep)


def count_calls(monkeypatch, stage):
    calls = []
    original = stage.describe_scene

    def spy(index, scene, topic=""):
        calls.append(index)
        return original(index, scene, topic)

    monkeypatch.setattr(stage, "describe_scene", spy)
    return calls


def test_batch_success_never_uses_per_scene_path(monkeypatch, scenes, scheduler, no_sleep):
    service = FakeGenerationService([as_json([
        {"sceneIndex": 0, "description": "Tiro de tres", "keyPeople": ["Stephen Curry"],
         "startTime": 99},
        {"sceneIndex": 1, "description": "Contraataque", "mood": "eufórico"},
    ])])
    stage = make_stage(service, scheduler, no_sleep)
    calls = count_calls(monkeypatch, stage)

    descriptions = stage.describe_all_scenes(scenes, topic="Warriors vs Lakers")

    assert calls == []
    assert len(service.calls) == 1
    assert [d.scene_index for d in descriptions] == [0, 1]
    assert descriptions[0].key_people == ["Stephen Curry"]
    assert descriptions[0].visual_elements == []
    assert descriptions[1].mood == "eufórico"
    # Los tiempos vienen de la escena, no de la respuesta
    assert (descriptions[0].start_time, descriptions[0].end_time) == (0, 2)
    assert (descriptions[1].start_time, descriptions[1].duration) == (2, 3)


def test_batch_request_carries_every_available_frame(scenes, scheduler, no_sleep):
    service = FakeGenerationService([as_json([
        {"description": "a"}, {"description": "b"},
    ])])
    make_stage(service, scheduler, no_sleep).describe_all_scenes(scenes, topic="Finales NBA")

    parts = service.calls[0]
    assert isinstance(parts[0], TextPart)
    assert "Finales NBA" in parts[0].text
    assert sum(isinstance(p, InlineMediaPart) for p in parts) == 5
    assert service.temperatures == [0.4]


def test_batch_failure_falls_back_to_each_scene(monkeypatch, scenes, scheduler, no_sleep):
    service = FakeGenerationService([
        "Lo siento, no puedo ayudar con eso.",
        as_json({"description": "Primera escena", "specificActions": ["bloqueo"]}),
        GenerationServiceError("cuota excedida"),
    ])
    stage = make_stage(service, scheduler, no_sleep)
    calls = count_calls(monkeypatch, stage)

    descriptions = stage.describe_all_scenes(scenes)

    assert calls == [0, 1]
    assert [d.scene_index for d in descriptions] == [0]
    assert descriptions[0].specific_actions == ["bloqueo"]
    assert no_sleep.calls == [1.0]


def test_misaligned_scene_index_triggers_fallback(monkeypatch, scenes, scheduler, no_sleep):
    service = FakeGenerationService([
        as_json([{"sceneIndex": 1, "description": "b"}, {"sceneIndex": 0, "description": "a"}]),
        as_json({"description": "a"}),
        as_json({"description": "b"}),
    ])
    stage = make_stage(service, scheduler, no_sleep)
    calls = count_calls(monkeypatch, stage)

    descriptions = stage.describe_all_scenes(scenes)

    assert calls == [0, 1]
    assert [d.description for d in descriptions] == ["a", "b"]


def test_wrong_length_triggers_fallback(scenes, scheduler, no_sleep):
    service = FakeGenerationService([
        as_json([{"description": "solo una"}]),
        as_json({"description": "a"}),
        as_json({"description": "b"}),
    ])
    descriptions = make_stage(service, scheduler, no_sleep).describe_all_scenes(scenes)

    assert len(service.calls) == 3
    assert len(descriptions) == 2


def test_describe_scene_without_frames(tmp_path, scheduler, no_sleep):
    scene = segment_scenes("", 3, frame_prefix=str(tmp_path / "missing"))[0]
    stage = make_stage(FakeGenerationService(), scheduler, no_sleep)

    with pytest.raises(NoFramesError) as exc:
        stage.describe_scene(4, scene)
    assert exc.value.scene_index == 4


def test_no_frames_anywhere_is_empty_result(tmp_path, scheduler, no_sleep):
    scenes = segment_scenes("1", 2, frame_prefix=str(tmp_path / "missing"))
    service = FakeGenerationService()

    with pytest.raises(EmptyResultError):
        make_stage(service, scheduler, no_sleep).describe_all_scenes(scenes)
    assert service.calls == []
