"""
On-disk cache of backbone feature vectors ("bottlenecks").

The backbone is frozen, so its output for a given image never changes
between runs.  Each vector is stored as ``<sha1 of image bytes>.npy``
under a folder named after the backbone, its weights and the input
size; repeated runs over the same assets only pay for images they have
not seen before.

Randomly initialised backbones differ on every build, so nothing is
read from or written to the cache when ``weights`` is ``None``.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from .artifact import decode_image

logger = logging.getLogger(__name__)


class BottleneckCache:
    """Feature-vector cache for one backbone / weights combination."""

    def __init__(self, root: Path, architecture: str, weights: Optional[str]):
        self.enabled = weights is not None
        self.root = Path(root)
        self.prefix = f"{architecture}-{weights or 'random'}"

    def directory_for(self, image_size: Tuple[int, int]) -> Path:
        h, w = image_size
        return self.root / f"{self.prefix}-{h}x{w}"

    def _path_for(self, directory: Path, raw: bytes) -> Path:
        return directory / f"{hashlib.sha1(raw).hexdigest()}.npy"

    def compute(
        self,
        extractor,
        images: Sequence[bytes],
        image_size: Tuple[int, int],
        *,
        reuse: bool = True,
        batch_size: int = 32,
    ) -> np.ndarray:
        """Return an ``(n, d)`` array of backbone outputs for ``images``.

        Parameters
        ----------
        extractor : tf.keras.Model
            Raw pixels → feature vector.
        images : sequence of bytes
            Encoded images, in sample order.
        image_size : (int, int)
            Backbone input size.
        reuse : bool
            Read existing cache entries.  New vectors are written either way.
        batch_size : int
            Images per forward pass.
        """
        feature_dim = int(extractor.output_shape[-1])
        directory = self.directory_for(image_size)
        features = np.zeros((len(images), feature_dim), dtype=np.float32)

        pending: list[int] = []
        for idx, raw in enumerate(images):
            path = self._path_for(directory, raw)
            if self.enabled and reuse and path.exists():
                features[idx] = np.load(path)
            else:
                pending.append(idx)

        hits = len(images) - len(pending)

        if pending and self.enabled:
            directory.mkdir(parents=True, exist_ok=True)

        for start in range(0, len(pending), batch_size):
            chunk = pending[start : start + batch_size]
            batch = np.stack([decode_image(images[i], image_size) for i in chunk])
            vectors = extractor.predict(batch, verbose=0)
            for i, vector in zip(chunk, vectors):
                features[i] = vector
                if self.enabled:
                    np.save(self._path_for(directory, images[i]), vector.astype(np.float32))

        logger.info(
            "Bottlenecks: %d image(s), %d from cache, %d computed",
            len(images), hits, len(pending),
        )
        return features
