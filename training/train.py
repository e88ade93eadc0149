"""
Transfer-learning classifier: frozen pretrained backbone + softmax head.

Feature extractor
    Input(224,224,3) raw pixels
      → Rescaling to [-1, 1]
      → backbone (include_top=False, global average pooling, frozen)

Head
    Input(d) → Dropout → Dense(num_classes, softmax)
    Trained on cached backbone outputs with Adam and sparse categorical
    cross-entropy; early stopping on val_loss when a validation set exists.

The two are glued back together into one model that maps raw pixels
straight to class probabilities.
"""

from __future__ import annotations

import logging

import numpy as np
import tensorflow as tf

from .config import ARCHITECTURES, TrainingConfig
from .errors import TrainingError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Model building
# ═══════════════════════════════════════════════════════════════════════════

def build_feature_extractor(config: TrainingConfig) -> tf.keras.Model:
    """Build the frozen backbone named by ``config.architecture``.

    Returns
    -------
    tf.keras.Model
        Raw ``(H, W, 3)`` pixels in [0, 255] → pooled feature vector.
    """
    h, w = config.image_size
    backbone_cls = getattr(tf.keras.applications, ARCHITECTURES[config.architecture])

    base = backbone_cls(
        input_shape=(h, w, 3),
        include_top=False,
        weights=config.weights,
        pooling="avg",
    )
    base.trainable = False

    inputs = tf.keras.Input(shape=(h, w, 3), name="image")
    x = tf.keras.layers.Rescaling(1.0 / 127.5, offset=-1.0, name="scale_pixels")(inputs)
    outputs = base(x, training=False)
    extractor = tf.keras.Model(inputs, outputs, name="feature_extractor")

    logger.info(
        "Built %s feature extractor (weights=%s, %d-d output)",
        ARCHITECTURES[config.architecture], config.weights, extractor.output_shape[-1],
    )
    return extractor


def build_head(feature_dim: int, num_classes: int, config: TrainingConfig) -> tf.keras.Model:
    """Dropout → Dense softmax over ``num_classes``."""
    inputs = tf.keras.Input(shape=(feature_dim,), name="bottleneck")
    x = tf.keras.layers.Dropout(config.dropout)(inputs)
    outputs = tf.keras.layers.Dense(num_classes, activation="softmax", name="probabilities")(x)
    return tf.keras.Model(inputs, outputs, name="classifier_head")


def assemble_model(extractor: tf.keras.Model, head: tf.keras.Model) -> tf.keras.Model:
    """Chain extractor and head into a single raw pixels → probabilities model."""
    inputs = tf.keras.Input(shape=extractor.input_shape[1:], name="image")
    outputs = head(extractor(inputs))
    return tf.keras.Model(inputs, outputs, name="kanji_classifier")


# ═══════════════════════════════════════════════════════════════════════════
# Head training
# ═══════════════════════════════════════════════════════════════════════════

def _log_epoch(epoch: int, logs: dict | None) -> None:
    logs = logs or {}
    logger.info(
        "Epoch %d: %s",
        epoch + 1,
        ", ".join(f"{name}={value:.4f}" for name, value in sorted(logs.items())),
    )


def train_head(
    features: np.ndarray,
    keys: np.ndarray,
    val_features: np.ndarray,
    val_keys: np.ndarray,
    num_classes: int,
    config: TrainingConfig,
) -> tf.keras.Model:
    """Fit the classification head on bottleneck features.

    Parameters
    ----------
    features, keys : np.ndarray
        Training bottlenecks ``(n, d)`` and integer label keys ``(n,)``.
    val_features, val_keys : np.ndarray
        Validation bottlenecks and keys.  May be empty, in which case no
        validation or early stopping happens.
    num_classes : int
        Size of the label table.
    config : TrainingConfig
        Epochs, batch size, learning rate, dropout, patience.

    Raises
    ------
    TrainingError
        If the training set is empty or Keras fails while fitting.
    """
    if len(features) == 0:
        raise TrainingError(
            "No training samples left after the split.",
            hint="Add more images under the assets directory.",
        )

    head = build_head(features.shape[1], num_classes, config)
    head.compile(
        optimizer=tf.keras.optimizers.Adam(learning_rate=config.learning_rate),
        loss=tf.keras.losses.SparseCategoricalCrossentropy(),
        metrics=["accuracy"],
    )

    callbacks = [tf.keras.callbacks.LambdaCallback(on_epoch_end=_log_epoch)]
    validation_data = None
    if len(val_features):
        validation_data = (val_features, np.asarray(val_keys, dtype=np.int32))
        callbacks.append(
            tf.keras.callbacks.EarlyStopping(
                monitor="val_loss",
                patience=config.early_stopping_patience,
                restore_best_weights=True,
            )
        )

    logger.info(
        "═══ TRAINING HEAD: %d train / %d validation samples, %d classes ═══",
        len(features), len(val_features), num_classes,
    )
    try:
        head.fit(
            features,
            np.asarray(keys, dtype=np.int32),
            validation_data=validation_data,
            epochs=config.epochs,
            batch_size=config.batch_size,
            callbacks=callbacks,
            verbose=0,
        )
    except (tf.errors.OpError, ValueError) as exc:
        raise TrainingError(f"Keras failed while fitting the head: {exc}") from exc

    return head
