"""
Test-split evaluation of a persisted artifact.

Diagnostic only: every prediction and the final accuracy go to the log,
nothing is written to disk.  An empty test split is reported as such
instead of dividing by zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from sklearn.metrics import classification_report

from .artifact import ModelArtifact, load_artifact
from .config import TrainingConfig
from .data import Sample, iter_samples, load_image_bytes, split_samples

logger = logging.getLogger(__name__)

MAX_EVALUATED = 2000
BATCH_SIZE = 32


@dataclass(frozen=True)
class Prediction:
    """One classified image.  Path and actual label are empty for uploads."""

    predicted_label: str
    image_path: str = ""
    actual_label: str = ""

    @property
    def is_correct(self) -> bool:
        return self.predicted_label == self.actual_label


@dataclass
class EvaluationReport:
    correct: int = 0
    total: int = 0
    predictions: List[Prediction] = field(default_factory=list)

    @property
    def accuracy(self) -> Optional[float]:
        """``correct / total``, or ``None`` when nothing was evaluated."""
        if self.total == 0:
            return None
        return self.correct / self.total


# ═══════════════════════════════════════════════════════════════════════════
# Core evaluation
# ═══════════════════════════════════════════════════════════════════════════

def evaluate_artifact(
    artifact: ModelArtifact,
    samples: Sequence[Sample],
    *,
    limit: int = MAX_EVALUATED,
) -> EvaluationReport:
    """Predict every sample (up to ``limit``) and compare with its label.

    Parameters
    ----------
    artifact : ModelArtifact
        Loaded model; anything with a ``predict_many(list[bytes])`` works.
    samples : sequence of Sample
        Usually the test partition of a ``SplitPlan``.
    limit : int
        Maximum number of samples evaluated.

    Returns
    -------
    EvaluationReport
        Match count, total and per-image predictions.
    """
    selected = list(samples)[:limit]
    report = EvaluationReport()

    logger.info("Classifying %d image(s)", len(selected))

    for start in range(0, len(selected), BATCH_SIZE):
        chunk = selected[start : start + BATCH_SIZE]
        labels = artifact.predict_many(load_image_bytes(chunk))

        for sample, predicted in zip(chunk, labels):
            prediction = Prediction(
                predicted_label=predicted,
                image_path=sample.path,
                actual_label=sample.label,
            )
            logger.info(
                "Image: %s | Actual Value: %s | Predicted Value: %s",
                Path(sample.path).name, sample.label, predicted,
            )
            report.predictions.append(prediction)
            report.total += 1
            if prediction.is_correct:
                report.correct += 1

    _log_summary(report)
    return report


def _log_summary(report: EvaluationReport) -> None:
    if report.total == 0:
        logger.warning("Accuracy: n/a, no test samples to evaluate (Total Predictions: 0)")
        return

    logger.info(
        "Accuracy: %.2f%% (Correct Predictions: %d, Total Predictions: %d)",
        report.accuracy * 100, report.correct, report.total,
    )

    y_true = [p.actual_label for p in report.predictions]
    y_pred = [p.predicted_label for p in report.predictions]
    report_str = classification_report(y_true, y_pred, digits=4, zero_division=0)
    logger.info("Classification report:\n%s", report_str)


# ═══════════════════════════════════════════════════════════════════════════
# End-to-end: artifact on disk → fresh split → report
# ═══════════════════════════════════════════════════════════════════════════

def run_evaluation(config: TrainingConfig) -> EvaluationReport:
    """Load the artifact, rescan and re-split the assets, evaluate the test part.

    The split is recomputed with ``config.seed``.  Without a seed the test
    partition differs from the one held out during training.
    """
    samples = list(iter_samples(config.assets_root))
    plan = split_samples(
        samples,
        test_fraction=config.test_fraction,
        validation_fraction=config.validation_fraction,
        seed=config.seed,
    )
    artifact = load_artifact(config.artifact_path)
    return evaluate_artifact(artifact, plan.test)
