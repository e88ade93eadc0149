"""Upload resizing, the shared classification service and the HTTP endpoints."""

import io
import os
import re
import threading

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from conftest import png_bytes
import kanjiapi.urls
from classifier.model_loader import ClassificationService, resize_for_inference
from training.errors import DecodeError, ModelNotLoadedError, PredictionError, TrainingError
from training.evaluate import EvaluationReport
from training.runner import TrainingResult

CLASSIFY_URL = "/api/Classification/classify_image"


def _decode(data):
    with Image.open(io.BytesIO(data)) as img:
        return img.format, img.mode, img.size


def _upload(data, name="upload.png"):
    return {"image": SimpleUploadedFile(name, data, content_type="image/png")}


# ── Resize ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "size, expected",
    [
        ((640, 320), (224, 112)),
        ((300, 600), (112, 224)),
        ((1000, 1000), (224, 224)),
    ],
)
def test_resize_fits_inside_box_keeping_aspect_ratio(size, expected):
    fmt, mode, out_size = _decode(resize_for_inference(png_bytes(size)))

    assert fmt == "JPEG"
    assert mode == "RGB"
    assert out_size == expected


def test_resize_never_upscales():
    _, _, out_size = _decode(resize_for_inference(png_bytes((100, 50))))
    assert out_size == (100, 50)


def test_resize_converts_alpha_images_to_rgb():
    data = png_bytes((50, 50), color=(10, 20, 30, 128), mode="RGBA")
    _, mode, _ = _decode(resize_for_inference(data))
    assert mode == "RGB"


@pytest.mark.parametrize("payload", [b"", b"definitely not an image", os.urandom(512)])
def test_resize_rejects_garbage(payload):
    with pytest.raises(DecodeError):
        resize_for_inference(payload)


# ── Service ─────────────────────────────────────────────────────────────────

def test_service_feeds_resized_jpeg_to_the_artifact(service, fake_artifact):
    prediction = service.classify(png_bytes((800, 400)))

    assert prediction.predicted_label == "A"
    assert prediction.image_path == ""
    assert prediction.actual_label == ""
    fmt, _, size = _decode(fake_artifact.received[0])
    assert fmt == "JPEG"
    assert max(size) <= 224


def test_service_without_artifact_refuses(tmp_path):
    svc = ClassificationService(tmp_path / "missing.zip")

    assert not svc.is_loaded
    with pytest.raises(ModelNotLoadedError):
        svc.classify(png_bytes())


def test_service_load_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        ClassificationService(tmp_path / "missing.zip").load()


def test_service_serialises_concurrent_predictions(service, fake_artifact):
    barrier = threading.Barrier(8)
    errors = []

    def worker():
        barrier.wait()
        try:
            service.classify(png_bytes())
        except Exception as exc:  # surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(fake_artifact.received) == 8
    assert fake_artifact.max_active == 1


# ── Classification endpoint ─────────────────────────────────────────────────

def test_classify_image_returns_plain_text_label(client, service):
    response = client.post(CLASSIFY_URL, _upload(png_bytes()))

    assert response.status_code == 200
    assert response["Content-Type"].startswith("text/plain")
    assert response.content.decode("utf-8") == "A"


def test_classify_image_requires_image_field(client, service):
    response = client.post(CLASSIFY_URL, {})
    assert response.status_code == 400


def test_classify_image_rejects_get(client, service):
    assert client.get(CLASSIFY_URL).status_code == 405


def test_garbage_upload_is_client_error_and_server_keeps_serving(client, service):
    bad = client.post(CLASSIFY_URL, _upload(os.urandom(256), name="noise.bin"))
    good = client.post(CLASSIFY_URL, _upload(png_bytes()))

    assert bad.status_code == 400
    assert good.status_code == 200
    assert good.content.decode("utf-8") == "A"


def test_prediction_failure_is_generic_500(client, service, fake_artifact):
    def explode(raw):
        raise PredictionError("boom: secret internals")

    fake_artifact.label_for = explode

    response = client.post(CLASSIFY_URL, _upload(png_bytes()))

    assert response.status_code == 500
    assert response.content.decode("utf-8") == "Internal Server Error"

    fake_artifact.label_for = lambda raw: "B"
    assert client.post(CLASSIFY_URL, _upload(png_bytes())).content.decode("utf-8") == "B"


def test_classify_without_model_is_500(client, unloaded_service):
    response = client.post(CLASSIFY_URL, _upload(png_bytes()))
    assert response.status_code == 500


# ── Reload / status ─────────────────────────────────────────────────────────

def test_reload_swaps_in_the_artifact_from_disk(client, unloaded_service, monkeypatch):
    from conftest import FakeArtifact

    monkeypatch.setattr(
        "classifier.model_loader.load_artifact",
        lambda path: FakeArtifact(class_names=["一", "二"]),
    )

    response = client.post("/api/Classification/reload")

    assert response.status_code == 200
    assert response.json() == {"status": "reloaded", "classes": ["一", "二"]}
    assert unloaded_service.is_loaded


def test_reload_without_artifact_is_500(client, unloaded_service):
    assert client.post("/api/Classification/reload").status_code == 500


def test_status_reports_model_and_training_state(client, service):
    response = client.get("/api/Training/status")

    assert response.status_code == 200
    assert response.json() == {
        "training_running": False,
        "model_loaded": True,
        "classes": ["A", "B"],
    }


# ── Training endpoints ──────────────────────────────────────────────────────

def test_train_endpoint_runs_training(client, service, monkeypatch, tmp_path):
    calls = []

    def fake_run(config):
        calls.append(config)
        return TrainingResult(
            artifact_path=tmp_path / "KanjiClassifier.zip",
            class_names=["A", "B"],
            split_counts={"train": 7, "validation": 1, "test": 2},
        )

    monkeypatch.setattr("classifier.views.training_api.run_training_exclusive", fake_run)

    response = client.get("/api/Training/train")

    assert response.status_code == 200
    assert response.content == b""
    assert len(calls) == 1


def test_train_endpoint_refuses_overlapping_runs(client, service):
    from training import tasks

    assert tasks._training_lock.acquire(blocking=False)
    try:
        assert tasks.is_training_running()
        response = client.get("/api/Training/train")
    finally:
        tasks._training_lock.release()

    assert response.status_code == 409


def test_train_endpoint_propagates_failures(client, service, monkeypatch):
    def failing(config):
        raise TrainingError("no images")

    monkeypatch.setattr("classifier.views.training_api.run_training_exclusive", failing)

    with pytest.raises(TrainingError):
        client.get("/api/Training/train")


def test_training_classify_endpoint_runs_evaluation(client, service, monkeypatch):
    calls = []

    def fake_eval(config):
        calls.append(config)
        return EvaluationReport()

    monkeypatch.setattr("classifier.views.training_api.run_evaluation", fake_eval)

    response = client.get("/api/Training/classify")

    assert response.status_code == 200
    assert len(calls) == 1


# ── API reference ───────────────────────────────────────────────────────────

DOCUMENTED_ROUTES = re.findall(r"^(GET|POST) (/api/\S+)$", kanjiapi.urls.__doc__, re.MULTILINE)


def test_api_reference_lists_every_route():
    assert {path for _, path in DOCUMENTED_ROUTES} == {
        "/api/Classification/classify_image",
        "/api/Classification/reload",
        "/api/Training/train",
        "/api/Training/classify",
        "/api/Training/status",
    }


@pytest.mark.parametrize("method, path", DOCUMENTED_ROUTES)
def test_documented_routes_reject_the_other_method(client, service, method, path):
    other = client.post if method == "GET" else client.get

    assert other(path).status_code == 405
