import pytest

from narrador.domain.errors import (
    EmptyResultError,
    GenerationParseError,
    GenerationServiceError,
    ProcessingFailedError,
    ProcessingTimeoutError,
    UploadIncompleteError,
)
from narrador.llm.base import InlineMediaPart, UploadedMedia, UploadedMediaPart
from narrador.stages.direct import DirectScriptPipeline, guess_video_mime_type, parse_timed_script

from conftest import FakeGenerationService, as_json

TIMED_RESPONSE = as_json({
    "totalDurationSec": 9.5,
    "segments": [
        {"startSec": 0.0, "endSec": 3.0, "durationSec": 3.0, "sentence": "Empieza el partido."},
        {"startSec": 3.0, "endSec": 6.5, "durationSec": 99, "sentence": "Curry recibe el balón."},
        {"startSec": 6.5, "endSec": 9.5, "durationSec": 3.0, "sentence": "Triple."},
    ],
})


def make_pipeline(service, sleep, **kwargs):
    return DirectScriptPipeline(service, poll_interval=2.0, sleep=sleep, **kwargs)


def test_parse_discards_invalid_segments():
    result = parse_timed_script(as_json({
        "totalDurationSec": 10,
        "segments": [
            {"startSec": 0, "endSec": 2, "sentence": "Uno."},
            {"startSec": 3, "endSec": 3, "sentence": "Sin duración."},
            {"startSec": 5, "endSec": 4, "sentence": "Al revés."},
            {"startSec": 4, "endSec": 6, "sentence": "   "},
            {"startSec": 6, "endSec": 8, "sentence": "Dos."},
        ],
    }))

    assert [s.sentence for s in result.segments] == ["Uno.", "Dos."]
    assert result.total_duration_sec == 10
    assert result.to_dict()["segments"][1] == {
        "startSec": 6.0, "endSec": 8.0, "durationSec": 2.0, "sentence": "Dos.",
    }


def test_parse_recomputes_duration_and_clamps_overlaps():
    result = parse_timed_script(as_json({
        "segments": [
            {"startSec": 4.9, "endSec": 7, "durationSec": 1, "sentence": "Después."},
            {"startSec": 0, "endSec": 5, "sentence": "Primero."},
        ],
    }))

    assert [s.sentence for s in result.segments] == ["Primero.", "Después."]
    assert result.segments[0].duration_sec == 5
    assert (result.segments[1].start_sec, result.segments[1].duration_sec) == (5, 2)
    assert result.total_duration_sec == 7
    assert result.covered_duration == 7


def test_parse_drops_segment_swallowed_by_previous():
    result = parse_timed_script(as_json({
        "segments": [
            {"startSec": 0, "endSec": 6, "sentence": "Larga."},
            {"startSec": 2, "endSec": 5, "sentence": "Contenida."},
            {"startSec": 6, "endSec": 8, "sentence": "Final."},
        ],
    }))

    assert [s.sentence for s in result.segments] == ["Larga.", "Final."]


def test_parse_with_no_valid_segments():
    with pytest.raises(EmptyResultError):
        parse_timed_script(as_json({"segments": [{"startSec": 2, "endSec": 1, "sentence": "x"}]}))


def test_parse_rejects_non_json():
    with pytest.raises(GenerationParseError):
        parse_timed_script("El video muestra un partido.")


def test_sixty_processing_polls_time_out(no_sleep):
    service = FakeGenerationService(states=["processing"])
    pipeline = make_pipeline(service, no_sleep)

    with pytest.raises(ProcessingTimeoutError):
        pipeline.wait_until_ready("files/abc")

    assert len(service.state_queries) == 60
    assert no_sleep.calls == [2.0] * 59


def test_failed_state_aborts(no_sleep):
    service = FakeGenerationService(states=["processing", "failed"])
    with pytest.raises(ProcessingFailedError):
        make_pipeline(service, no_sleep).wait_until_ready("files/abc")
    assert len(service.state_queries) == 2


@pytest.mark.parametrize("state", ["ready", "unknown"])
def test_ready_and_unknown_proceed(no_sleep, state):
    service = FakeGenerationService(states=["processing", "processing", state])
    assert make_pipeline(service, no_sleep).wait_until_ready("files/abc") == state


def test_incomplete_upload(video_file, no_sleep):
    service = FakeGenerationService(upload_result=UploadedMedia(name="files/abc", uri="", mime_type="video/mp4"))
    with pytest.raises(UploadIncompleteError):
        make_pipeline(service, no_sleep).upload_and_wait(str(video_file), "video/mp4")


def test_uploaded_reference_path(video_file, no_sleep):
    service = FakeGenerationService([TIMED_RESPONSE], states=["processing", "ready"])

    result = make_pipeline(service, no_sleep).generate_timed_script(str(video_file), "Warriors")

    assert service.uploads == [(str(video_file), "video/mp4")]
    assert len(service.calls) == 1
    assert isinstance(service.calls[0][1], UploadedMediaPart)
    assert "Warriors" in service.calls[0][0].text
    assert service.temperatures == [0.5]
    assert [s.duration_sec for s in result.segments] == [3.0, 3.5, 3.0]


def test_default_subject_is_used(video_file, no_sleep):
    service = FakeGenerationService([TIMED_RESPONSE])
    make_pipeline(service, no_sleep, default_subject="UFC highlights").generate_timed_script(str(video_file))
    assert "UFC highlights" in service.calls[0][0].text


def test_upload_failure_falls_back_to_inline_bytes(video_file, no_sleep):
    service = FakeGenerationService([TIMED_RESPONSE], upload_error=GenerationServiceError("sin almacén"))

    result = make_pipeline(service, no_sleep).generate_timed_script(str(video_file))

    assert len(service.calls) == 1
    inline = service.calls[0][1]
    assert isinstance(inline, InlineMediaPart)
    assert inline.data == video_file.read_bytes()
    assert inline.mime_type == "video/mp4"
    assert len(result.segments) == 3


def test_poll_timeout_falls_back_to_inline_bytes(video_file, no_sleep):
    service = FakeGenerationService([TIMED_RESPONSE], states=["processing"])
    result = make_pipeline(service, no_sleep, poll_max_attempts=3).generate_timed_script(str(video_file))

    assert len(service.state_queries) == 3
    assert isinstance(service.calls[0][1], InlineMediaPart)
    assert result.total_duration_sec == 9.5


def test_inline_failure_is_fatal(video_file, no_sleep):
    service = FakeGenerationService(["no es json"], upload_error=GenerationServiceError("caído"))
    with pytest.raises(GenerationParseError):
        make_pipeline(service, no_sleep).generate_timed_script(str(video_file))
    assert len(service.calls) == 1


def test_missing_video(tmp_path, no_sleep):
    with pytest.raises(FileNotFoundError):
        make_pipeline(FakeGenerationService(), no_sleep).generate_timed_script(str(tmp_path / "nada.mp4"))


@pytest.mark.parametrize("path, expected", [
    ("clip.mp4", "video/mp4"),
    ("CLIP.MOV", "video/quicktime"),
    ("a.webm", "video/webm"),
    ("a.bin", "application/octet-stream"),
])
def test_guess_video_mime_type(path, expected):
    assert guess_video_mime_type(path) == expected
