"""
Dataset loading and train / validation / test splitting.

The dataset is a plain folder tree: every immediate sub-folder of the
assets root is a class label, and every image below it is one sample.
Nothing is registered anywhere; rescanning the tree is the only way to
pick up new images.

Public API
----------
iter_samples      – Lazy walk of the assets tree → ``Sample`` objects.
build_label_index – Sorted label → dense integer key mapping.
load_image_bytes  – Raw file bytes for each sample (in memory).
split_samples     – Shuffle + 70/30 split, then 50/50 of the held-out part.

Usage::

    from training.data import iter_samples, split_samples

    samples = list(iter_samples("assets"))
    plan = split_samples(samples, test_fraction=0.3, seed=7)
    print(len(plan.train), len(plan.validation), len(plan.test))
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

IMG_EXTS = frozenset({".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp"})


@dataclass(frozen=True)
class Sample:
    """One image on disk and the label taken from its folder."""

    path: str
    label: str


@dataclass(frozen=True)
class SplitPlan:
    """Disjoint train / validation / test partitions of one sample set."""

    train: tuple[Sample, ...]
    validation: tuple[Sample, ...]
    test: tuple[Sample, ...]

    @property
    def counts(self) -> dict[str, int]:
        return {
            "train": len(self.train),
            "validation": len(self.validation),
            "test": len(self.test),
        }


# ═══════════════════════════════════════════════════════════════════════════
# Directory scan
# ═══════════════════════════════════════════════════════════════════════════

def iter_samples(
    root: str | os.PathLike,
    *,
    use_folder_name_as_label: bool = True,
) -> Iterator[Sample]:
    """Yield one ``Sample`` per image file below ``root``.

    The walk is recursive and the label is always the name of the file's
    immediate parent folder.  Files without an image extension are
    skipped (and counted in a warning).

    The root is checked eagerly, so a missing directory raises as soon
    as this function is called rather than on first iteration.

    Raises
    ------
    FileNotFoundError
        If ``root`` does not exist.
    NotADirectoryError
        If ``root`` is not a directory.
    PermissionError
        If ``root`` cannot be listed.
    """
    root_path = Path(root)
    if not root_path.exists():
        raise FileNotFoundError(f"Assets directory not found: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Assets path is not a directory: {root_path}")
    if not os.access(root_path, os.R_OK | os.X_OK):
        raise PermissionError(f"Assets directory is not readable: {root_path}")

    return _walk(root_path, use_folder_name_as_label)


def _walk(root_path: Path, use_folder_name_as_label: bool) -> Iterator[Sample]:
    files = sorted(p for p in root_path.rglob("*") if p.is_file())
    images = [p for p in files if p.suffix.lower() in IMG_EXTS]

    skipped = len(files) - len(images)
    if skipped:
        logger.warning(
            "Skipped %d non-image file(s) under %s", skipped, root_path,
        )
    logger.info("Files loaded: %d", len(images))

    for file_path in images:
        label = file_path.parent.name if use_folder_name_as_label else ""
        yield Sample(path=str(file_path), label=label)


def build_label_index(samples: Iterable[Sample]) -> dict[str, int]:
    """Map every distinct label to a dense integer key, in sorted label order."""
    labels = sorted({sample.label for sample in samples})
    return {label: idx for idx, label in enumerate(labels)}


def load_image_bytes(samples: Sequence[Sample]) -> list[bytes]:
    """Read the raw bytes of every sample's file, in order."""
    return [Path(sample.path).read_bytes() for sample in samples]


# ═══════════════════════════════════════════════════════════════════════════
# Split planner
# ═══════════════════════════════════════════════════════════════════════════

def _check_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value!r}")


def split_samples(
    samples: Sequence[Sample],
    test_fraction: float = 0.3,
    validation_fraction: float = 0.5,
    seed: Optional[int] = None,
) -> SplitPlan:
    """Shuffle ``samples`` and cut them into train / validation / test.

    Two sequential splits:

    1. ``test_fraction`` of the shuffled set is held out; the rest trains.
    2. ``validation_fraction`` of the held-out part becomes the validation
       set; what remains is the test set.

    With the defaults that is roughly 70 / 15 / 15.  Without a ``seed``
    every call produces a different permutation.

    Parameters
    ----------
    samples : sequence of Sample
        The full sample set.  Not modified.
    test_fraction : float
        Share of the full set held out of training.
    validation_fraction : float
        Share of the held-out set used for validation.
    seed : int | None
        Seed for the permutation.

    Returns
    -------
    SplitPlan
        Partition sizes always sum to ``len(samples)``.
    """
    _check_fraction("test_fraction", test_fraction)
    _check_fraction("validation_fraction", validation_fraction)

    items = list(samples)
    total = len(items)
    if total == 0:
        return SplitPlan(train=(), validation=(), test=())

    rng = np.random.default_rng(seed)
    shuffled = [items[i] for i in rng.permutation(total)]

    n_held_out = int(round(total * test_fraction))
    train = shuffled[: total - n_held_out]
    held_out = shuffled[total - n_held_out :]

    n_val = int(round(len(held_out) * validation_fraction))
    validation = held_out[:n_val]
    test = held_out[n_val:]

    logger.info(
        "Split %d samples: train=%d, val=%d, test=%d",
        total, len(train), len(validation), len(test),
    )
    return SplitPlan(train=tuple(train), validation=tuple(validation), test=tuple(test))
