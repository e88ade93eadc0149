"""
Training run orchestrator: ties data → bottlenecks → head → artifact.

This is the main entry point for a complete training cycle:

1. Scan the assets tree; folder names become labels.
2. Map every label to a dense integer key (sorted label order).
3. Read the raw bytes of every image into memory.
4. Shuffle and split into train / validation / test.
5. Compute (or reuse cached) backbone features, fit the softmax head.
6. Chain backbone and head; attach the key → label table.
7. Save the artifact, replacing the previous one.

Any failure is logged and re-raised; the previous artifact is left as is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import numpy as np

from .artifact import ModelArtifact, build_schema, save_artifact
from .bottleneck import BottleneckCache
from .config import TrainingConfig
from .data import build_label_index, iter_samples, load_image_bytes, split_samples
from .errors import TrainingError
from .train import assemble_model, build_feature_extractor, train_head

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingResult:
    """What a finished run produced."""

    artifact_path: Path
    class_names: list[str]
    split_counts: dict[str, int]


def run_training(config: TrainingConfig) -> TrainingResult:
    """Execute a full training run end-to-end.

    Parameters
    ----------
    config : TrainingConfig
        Paths, backbone, head hyperparameters and split settings.

    Returns
    -------
    TrainingResult
        Where the artifact went, its class table and the split sizes.

    Raises
    ------
    OSError
        If the assets directory or an image cannot be read.
    TrainingError
        If there is nothing to train on or Keras fails.
    """
    logger.info("Starting training run: %s", config.to_dict())

    try:
        # ── 1. Scan assets ──────────────────────────────────────────
        samples = list(iter_samples(config.assets_root))
        if not samples:
            raise TrainingError(
                f"No images found under {config.assets_root}.",
                hint="Expected layout is assets/<label>/<image>.",
            )

        # ── 2. Label → key ──────────────────────────────────────────
        label_index = build_label_index(samples)
        class_names = sorted(label_index, key=label_index.get)
        logger.info("%d classes: %s", len(class_names), class_names)

        # ── 3 + 4. Raw bytes, shuffle, split ────────────────────────
        plan = split_samples(
            samples,
            test_fraction=config.test_fraction,
            validation_fraction=config.validation_fraction,
            seed=config.seed,
        )
        train_images = load_image_bytes(plan.train)
        val_images = load_image_bytes(plan.validation)
        train_keys = np.array([label_index[s.label] for s in plan.train], dtype=np.int32)
        val_keys = np.array([label_index[s.label] for s in plan.validation], dtype=np.int32)

        # ── 5. Bottlenecks + head ───────────────────────────────────
        extractor = build_feature_extractor(config)
        cache = BottleneckCache(config.bottleneck_dir, config.architecture, config.weights)

        train_features = cache.compute(
            extractor, train_images, config.image_size,
            reuse=config.reuse_train_bottlenecks,
        )
        val_features = cache.compute(
            extractor, val_images, config.image_size,
            reuse=config.reuse_validation_bottlenecks,
        )

        head = train_head(
            train_features, train_keys,
            val_features, val_keys,
            num_classes=len(class_names),
            config=config,
        )

        # ── 6. Full model + key → label table ──────────────────────
        model = assemble_model(extractor, head)
        artifact = ModelArtifact(
            model=model,
            class_names=class_names,
            schema=build_schema(
                class_names,
                architecture=config.architecture,
                weights=config.weights,
                image_size=list(config.image_size),
                num_train_samples=len(plan.train),
                num_validation_samples=len(plan.validation),
                num_test_samples=len(plan.test),
                trained_at=datetime.now(timezone.utc).isoformat(),
            ),
        )

        # ── 7. Persist ──────────────────────────────────────────────
        artifact_path = save_artifact(artifact, config.artifact_path)

    except Exception:
        logger.exception("An error occurred during training.")
        raise

    logger.info(
        "═══ TRAINING COMPLETE ═══\n"
        "  Classes  : %d\n"
        "  Train    : %d\n"
        "  Val      : %d\n"
        "  Test     : %d\n"
        "  Artifact : %s",
        len(class_names),
        len(plan.train),
        len(plan.validation),
        len(plan.test),
        artifact_path,
    )
    return TrainingResult(
        artifact_path=artifact_path,
        class_names=class_names,
        split_counts=plan.counts,
    )
