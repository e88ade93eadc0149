"""
Error hierarchy for the Kanji classification pipeline.

Filesystem problems (missing assets directory, unreadable image) are plain
``OSError`` and are not wrapped here.
"""

from __future__ import annotations

import textwrap
from typing import Optional


class KanjiClassifierError(RuntimeError):
    """Base error for all classifier failures."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        final_message = message
        if hint:
            final_message = f"{message}\n{textwrap.indent(f'Hint: {hint}', prefix='  ')}"
        super().__init__(final_message)
        self.message = message
        self.hint = hint


class DecodeError(KanjiClassifierError):
    """Raised when an uploaded payload cannot be decoded as an image."""


class SchemaError(KanjiClassifierError):
    """Raised when a model artifact is missing pieces or does not match its schema."""


class ModelNotLoadedError(SchemaError):
    """Raised when prediction is requested before any artifact was loaded."""


class TrainingError(KanjiClassifierError):
    """Raised when the training capability fails."""


class PredictionError(KanjiClassifierError):
    """Raised when the inference capability fails."""
