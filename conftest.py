"""Shared fixtures: generated image trees, fake artifacts, service wiring."""

import io
import threading
from pathlib import Path

import pytest
from PIL import Image

from classifier.model_loader import ClassificationService, set_classification_service

COLORS = {
    "A": (220, 30, 30),
    "B": (30, 30, 220),
}


def png_bytes(size=(64, 48), color=(200, 200, 200), mode="RGB"):
    """Encode a solid-colour image as PNG."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def write_image(path: Path, size=(64, 48), color=(200, 200, 200)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(png_bytes(size, color))
    return path


class FakeArtifact:
    """Stands in for ``ModelArtifact``: labels come from a callable."""

    def __init__(self, class_names=("A", "B"), label_for=None):
        self.class_names = list(class_names)
        self.label_for = label_for or (lambda raw: self.class_names[0])
        self.received = []
        self.active = 0
        self.max_active = 0
        self._counter_lock = threading.Lock()

    def predict(self, image):
        return self.predict_many([image])[0]

    def predict_many(self, images):
        with self._counter_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.received.extend(images)
            return [self.label_for(raw) for raw in images]
        finally:
            with self._counter_lock:
                self.active -= 1


@pytest.fixture
def assets_tree(tmp_path):
    """assets/A with 4 red images, assets/B with 4 blue ones, plus a stray text file."""
    root = tmp_path / "assets"
    for label, color in COLORS.items():
        for i in range(4):
            write_image(root / label / f"{label.lower()}{i}.png", size=(60 + i * 10, 48), color=color)
    (root / "README.txt").write_text("not an image", encoding="utf-8")
    return root


@pytest.fixture
def fake_artifact():
    return FakeArtifact()


@pytest.fixture
def service(tmp_path, fake_artifact):
    """Install a ClassificationService backed by ``fake_artifact``."""
    svc = ClassificationService(tmp_path / "KanjiClassifier.zip", artifact=fake_artifact)
    set_classification_service(svc)
    yield svc
    set_classification_service(None)


@pytest.fixture
def unloaded_service(tmp_path):
    svc = ClassificationService(tmp_path / "KanjiClassifier.zip")
    set_classification_service(svc)
    yield svc
    set_classification_service(None)
