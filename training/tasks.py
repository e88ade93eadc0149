"""
Single-run guard for training.

Training runs synchronously in the calling thread (request or script).
A module-level lock keeps a second trigger from starting while one is
already in progress.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .config import TrainingConfig
from .runner import TrainingResult, run_training

logger = logging.getLogger(__name__)

# Module-level lock to prevent concurrent training runs
_training_lock = threading.Lock()


def run_training_exclusive(config: TrainingConfig) -> Optional[TrainingResult]:
    """Run training unless another run holds the lock.

    Returns
    -------
    TrainingResult | None
        The finished run, or None if another run is already in progress.
        Errors from the run itself propagate.
    """
    if not _training_lock.acquire(blocking=False):
        logger.warning("Training already in progress, refusing to start.")
        return None

    try:
        return run_training(config)
    finally:
        _training_lock.release()


def is_training_running() -> bool:
    """Return True if a training run is currently in progress."""
    return _training_lock.locked()
