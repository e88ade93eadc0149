"""
Training configuration and paths.

All tuneable settings live here so they are easy to find, review,
and override without touching training logic.

Directory conventions
---------------------
::

    project/
    ├── assets/                       ← Training images, one folder per label
    │   ├── 一/
    │   │   ├── 0001.png
    │   │   └── …
    │   └── 二/
    ├── workspace/
    │   └── bottlenecks/              ← Cached backbone feature vectors
    │       └── resnet_v2_101-imagenet/
    │           └── <sha1>.npy
    ├── KanjiClassifier.zip           ← Persisted model artifact
    │   ├── model.keras
    │   └── schema.json
    └── training/                     ← This package
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from django.conf import settings

# ── Backbones ───────────────────────────────────────────────────────────────
# Every entry takes [-1, 1] scaled RGB input, so a single Rescaling layer in
# front of the backbone covers all of them.

ARCHITECTURES: dict[str, str] = {
    "resnet_v2_50": "ResNet50V2",
    "resnet_v2_101": "ResNet101V2",
    "resnet_v2_152": "ResNet152V2",
    "mobilenet_v2": "MobileNetV2",
    "inception_v3": "InceptionV3",
}

DEFAULT_ARCHITECTURE = "resnet_v2_101"


def _default_assets_root() -> Path:
    return Path(settings.ASSETS_ROOT)


def _default_artifact_path() -> Path:
    return Path(settings.MODEL_ARTIFACT_PATH)


def _default_bottleneck_dir() -> Path:
    return Path(settings.WORKSPACE_ROOT) / "bottlenecks"


@dataclass
class TrainingConfig:
    """All settings for a single training or evaluation run.

    Training only fits a softmax head on top of a frozen, pretrained
    backbone.  Backbone outputs ("bottlenecks") are cached on disk per
    image, so repeated runs over the same assets skip the expensive
    forward pass.

    Attributes
    ----------
    assets_root : Path
        Directory whose immediate sub-folders are the class labels.
    artifact_path : Path
        Where the trained artifact is written (and read for evaluation).
    architecture : str
        Key into ``ARCHITECTURES`` (default ``"resnet_v2_101"``).
    weights : str | None
        ``"imagenet"`` for pretrained weights, ``None`` for random init.
    image_size : tuple
        Backbone input size (default 224×224).
    test_fraction : float
        Share of the shuffled set held out of training (default 0.3).
    validation_fraction : float
        Share of the held-out set used for validation (default 0.5).
    seed : int | None
        Shuffle seed.  ``None`` → a fresh permutation every run.
    reuse_train_bottlenecks / reuse_validation_bottlenecks : bool
        Read cached feature vectors instead of recomputing them.
    """

    # ── Paths ───────────────────────────────────────────────────────────
    assets_root: Path = field(default_factory=_default_assets_root)
    artifact_path: Path = field(default_factory=_default_artifact_path)
    bottleneck_dir: Path = field(default_factory=_default_bottleneck_dir)

    # ── Backbone ────────────────────────────────────────────────────────
    architecture: str = DEFAULT_ARCHITECTURE
    weights: Optional[str] = "imagenet"
    image_size: tuple = (224, 224)

    # ── Head hyperparameters ────────────────────────────────────────────
    epochs: int = 200
    batch_size: int = 10
    learning_rate: float = 0.01
    dropout: float = 0.2
    early_stopping_patience: int = 10

    # ── Split ───────────────────────────────────────────────────────────
    test_fraction: float = 0.3
    validation_fraction: float = 0.5
    seed: Optional[int] = None

    # ── Bottleneck cache ────────────────────────────────────────────────
    reuse_train_bottlenecks: bool = True
    reuse_validation_bottlenecks: bool = True

    def __post_init__(self) -> None:
        if self.architecture not in ARCHITECTURES:
            raise ValueError(
                f"Unknown architecture '{self.architecture}'. "
                f"Choose one of: {', '.join(sorted(ARCHITECTURES))}."
            )
        self.assets_root = Path(self.assets_root)
        self.artifact_path = Path(self.artifact_path)
        self.bottleneck_dir = Path(self.bottleneck_dir)
        self.image_size = tuple(self.image_size)

    @classmethod
    def from_settings(cls, **overrides) -> "TrainingConfig":
        """Build a config from Django settings, applying ``overrides`` on top."""
        defaults = dict(getattr(settings, "CLASSIFIER_TRAINING", {}))
        defaults.update(overrides)
        return cls(**defaults)

    def to_dict(self) -> dict:
        """Serialise to a JSON-safe dict (for logging and the artifact schema)."""
        return {
            "assets_root": str(self.assets_root),
            "artifact_path": str(self.artifact_path),
            "bottleneck_dir": str(self.bottleneck_dir),
            "architecture": self.architecture,
            "weights": self.weights,
            "image_size": list(self.image_size),
            "epochs": self.epochs,
            "batch_size": self.batch_size,
            "learning_rate": self.learning_rate,
            "dropout": self.dropout,
            "early_stopping_patience": self.early_stopping_patience,
            "test_fraction": self.test_fraction,
            "validation_fraction": self.validation_fraction,
            "seed": self.seed,
            "reuse_train_bottlenecks": self.reuse_train_bottlenecks,
            "reuse_validation_bottlenecks": self.reuse_validation_bottlenecks,
        }
