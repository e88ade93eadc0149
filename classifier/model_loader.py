"""
Model loader and inference service for Kanji classification.

Holds the one ``ModelArtifact`` the server classifies with and resizes
uploads before they reach it.

Upload preprocessing
    decode (Pillow) → RGB → fit inside 224×224 keeping aspect ratio,
    never upscaling ("max" mode) → re-encode as JPEG

Concurrency
    Keras models keep internal state between ``predict`` calls, so every
    prediction and every reload goes through one lock.  Requests are
    served one at a time by the model while Django threads wait.
"""

from __future__ import annotations

import io
import logging
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from django.conf import settings
from PIL import Image, UnidentifiedImageError

from training.artifact import ModelArtifact, load_artifact
from training.errors import DecodeError, ModelNotLoadedError
from training.evaluate import Prediction

logger = logging.getLogger(__name__)

# ── Constants ───────────────────────────────────────────────────────────────

INPUT_SIZE: Tuple[int, int] = (224, 224)
JPEG_QUALITY: int = 95


# ── Preprocessing ───────────────────────────────────────────────────────────

def resize_for_inference(raw: bytes, size: Tuple[int, int] = INPUT_SIZE) -> bytes:
    """Decode an uploaded image, shrink it to fit ``size`` and re-encode as JPEG.

    Args:
        raw:  Encoded image bytes as uploaded.
        size: Bounding box; the result fits inside it with aspect ratio kept.
              Images already inside the box keep their size.

    Returns:
        JPEG bytes of the resized RGB image.

    Raises:
        DecodeError: If Pillow cannot read the payload.
    """
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError("Uploaded file is not a readable image.") from exc

    rgb.thumbnail(size, Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    rgb.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


# ── Service ─────────────────────────────────────────────────────────────────

class ClassificationService:
    """Owns the loaded artifact and serialises access to it."""

    def __init__(self, artifact_path: Path, artifact: Optional[ModelArtifact] = None):
        self.artifact_path = Path(artifact_path)
        self._artifact = artifact
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._artifact is not None

    @property
    def class_names(self) -> List[str]:
        artifact = self._artifact
        return list(artifact.class_names) if artifact is not None else []

    def load(self) -> ModelArtifact:
        """Load the artifact from ``artifact_path``, replacing the current one."""
        artifact = load_artifact(self.artifact_path)
        with self._lock:
            self._artifact = artifact
        logger.info("Serving model from %s", self.artifact_path)
        return artifact

    reload = load

    def classify(self, raw: bytes) -> Prediction:
        """Resize one uploaded image and return its predicted label.

        Raises:
            DecodeError:         The upload is not an image.
            ModelNotLoadedError: No artifact has been loaded yet.
            PredictionError:     The model failed.
        """
        image = resize_for_inference(raw)

        with self._lock:
            if self._artifact is None:
                raise ModelNotLoadedError(
                    f"No model loaded from {self.artifact_path}.",
                    hint="Train first (GET /api/Training/train), then reload.",
                )
            label = self._artifact.predict(image)

        return Prediction(predicted_label=label)


# ── Process-wide singleton ──────────────────────────────────────────────────

_service: Optional[ClassificationService] = None
_service_lock = threading.Lock()


def get_classification_service() -> ClassificationService:
    """Return the process-wide service, creating it (unloaded) on first use."""
    global _service
    with _service_lock:
        if _service is None:
            _service = ClassificationService(Path(settings.MODEL_ARTIFACT_PATH))
        return _service


def set_classification_service(service: Optional[ClassificationService]) -> None:
    """Replace the process-wide service (``None`` resets it)."""
    global _service
    with _service_lock:
        _service = service


def warm_up() -> None:
    """Load the artifact at startup; a missing one is logged, not fatal."""
    service = get_classification_service()
    try:
        service.load()
    except FileNotFoundError:
        logger.warning(
            "No model artifact at %s; classification is unavailable until "
            "a model is trained and reloaded.",
            service.artifact_path,
        )
