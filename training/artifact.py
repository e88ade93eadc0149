"""
Model artifact: the trained classifier plus the schema it was trained with.

On disk the artifact is a single zip file::

    KanjiClassifier.zip
    ├── model.keras     ← raw RGB pixels (H×W×3, 0–255) → class probabilities
    └── schema.json     ← class table, input size, backbone, split counts

``schema["class_names"][key]`` is the label for output unit ``key``; this
is the key → label stage that turns an argmax into a readable label.

Writes go to a temporary file next to the target and are moved into place
with ``os.replace``, so a failed save never leaves a half-written artifact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import tensorflow as tf

from .errors import DecodeError, PredictionError, SchemaError

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
MODEL_MEMBER = "model.keras"
SCHEMA_MEMBER = "schema.json"

FEATURE_COLUMN = "Image"
LABEL_COLUMN = "Label"
PREDICTED_LABEL_COLUMN = "PredictedLabel"


# ── Decoding ────────────────────────────────────────────────────────────────

def decode_image(raw: bytes, image_size: Tuple[int, int]) -> np.ndarray:
    """Decode encoded image bytes into a float32 ``(H, W, 3)`` array in [0, 255].

    The image is stretched to ``image_size``; training and prediction both
    go through here, so they always see the same geometry.

    Raises
    ------
    DecodeError
        If the bytes are not a decodable image.
    """
    try:
        img = tf.io.decode_image(raw, channels=3, expand_animations=False)
    except (tf.errors.InvalidArgumentError, ValueError) as exc:
        raise DecodeError(
            "Payload could not be decoded as an image.",
            hint="Supported formats are JPEG, PNG, GIF, BMP and WebP.",
        ) from exc
    img = tf.image.resize(img, list(image_size))
    return tf.cast(img, tf.float32).numpy()


# ── Artifact ────────────────────────────────────────────────────────────────

@dataclass
class ModelArtifact:
    """A trained Keras model together with its label table and schema."""

    model: Any
    class_names: List[str]
    schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def image_size(self) -> Tuple[int, int]:
        size = self.schema.get("image_size")
        if size:
            return int(size[0]), int(size[1])
        _, h, w, _ = self.model.input_shape
        return int(h), int(w)

    def predict(self, image: bytes) -> str:
        """Return the predicted label for one encoded image."""
        return self.predict_many([image])[0]

    def predict_many(self, images: Sequence[bytes]) -> List[str]:
        """Return one predicted label per encoded image, in order."""
        if not images:
            return []

        batch = np.stack([decode_image(raw, self.image_size) for raw in images])
        try:
            probs = self.model.predict(batch, verbose=0)
        except (tf.errors.OpError, ValueError) as exc:
            raise PredictionError("Model prediction failed.") from exc

        keys = np.argmax(probs, axis=1)
        return [self.class_names[int(key)] for key in keys]


def build_schema(class_names: Sequence[str], **extra: Any) -> Dict[str, Any]:
    """Return the schema dict stored next to the model."""
    schema = {
        "format_version": FORMAT_VERSION,
        "feature_column": FEATURE_COLUMN,
        "label_column": LABEL_COLUMN,
        "predicted_label_column": PREDICTED_LABEL_COLUMN,
        "class_names": list(class_names),
    }
    schema.update(extra)
    return schema


# ── Persistence ─────────────────────────────────────────────────────────────

def save_artifact(artifact: ModelArtifact, path: str | os.PathLike) -> Path:
    """Serialise ``artifact`` to ``path``, replacing any previous artifact."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    schema = dict(artifact.schema)
    schema["class_names"] = list(artifact.class_names)
    schema.setdefault("format_version", FORMAT_VERSION)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".part", dir=str(target.parent),
    )
    os.close(fd)
    tmp_path = Path(tmp_name)

    try:
        with tempfile.TemporaryDirectory() as workdir:
            model_path = Path(workdir) / MODEL_MEMBER
            artifact.model.save(str(model_path))

            with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                zf.write(model_path, arcname=MODEL_MEMBER)
                zf.writestr(SCHEMA_MEMBER, json.dumps(schema, indent=2, ensure_ascii=False))

        os.replace(tmp_path, target)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info("Saved model artifact to %s (%d bytes)", target, target.stat().st_size)
    return target


def load_artifact(path: str | os.PathLike) -> ModelArtifact:
    """Load an artifact written by ``save_artifact``.

    Raises
    ------
    FileNotFoundError
        If there is no file at ``path``.
    SchemaError
        If the file is not a valid artifact.
    """
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Model artifact not found: {source}")

    try:
        with zipfile.ZipFile(source) as zf:
            missing = {MODEL_MEMBER, SCHEMA_MEMBER} - set(zf.namelist())
            if missing:
                raise SchemaError(
                    f"Artifact {source} is missing: {', '.join(sorted(missing))}",
                )
            schema = json.loads(zf.read(SCHEMA_MEMBER).decode("utf-8"))

            with tempfile.TemporaryDirectory() as workdir:
                model_path = Path(workdir) / MODEL_MEMBER
                model_path.write_bytes(zf.read(MODEL_MEMBER))
                model = tf.keras.models.load_model(str(model_path), compile=False)
    except zipfile.BadZipFile as exc:
        raise SchemaError(f"Artifact {source} is not a zip archive.") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SchemaError(f"Artifact {source} has an unreadable schema.") from exc

    _validate_schema(schema, model, source)

    logger.info(
        "Loaded model artifact from %s (%d classes)",
        source, len(schema["class_names"]),
    )
    return ModelArtifact(model=model, class_names=list(schema["class_names"]), schema=schema)


def _validate_schema(schema: Dict[str, Any], model: Any, source: Path) -> None:
    version = schema.get("format_version")
    if version != FORMAT_VERSION:
        raise SchemaError(
            f"Artifact {source} has format_version={version!r}, expected {FORMAT_VERSION}.",
            hint="Retrain to produce an artifact for this version of the API.",
        )

    class_names = schema.get("class_names")
    if not isinstance(class_names, list) or not class_names:
        raise SchemaError(f"Artifact {source} has no class table.")
    if not all(isinstance(name, str) for name in class_names):
        raise SchemaError(f"Artifact {source} has non-string class names.")

    outputs = model.output_shape[-1]
    if outputs != len(class_names):
        raise SchemaError(
            f"Artifact {source} lists {len(class_names)} classes "
            f"but the model has {outputs} outputs.",
        )
