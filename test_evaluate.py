"""Accuracy reporting over the test split."""

import logging

import pytest

from conftest import FakeArtifact
from training.config import TrainingConfig
from training.data import Sample, iter_samples, split_samples
from training.evaluate import MAX_EVALUATED, Prediction, evaluate_artifact, run_evaluation


def _labelled_files(tmp_path, pairs):
    """Write one file per (label, payload); the payload doubles as the fake prediction."""
    samples = []
    for i, (label, payload) in enumerate(pairs):
        path = tmp_path / label / f"{i}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        samples.append(Sample(str(path), label))
    return samples


def _echo_artifact():
    return FakeArtifact(class_names=["A", "B"], label_for=lambda raw: raw.decode("ascii"))


def test_empty_split_reports_zero_without_dividing(caplog):
    caplog.set_level(logging.INFO, logger="training")

    report = evaluate_artifact(_echo_artifact(), [])

    assert report.total == 0
    assert report.correct == 0
    assert report.accuracy is None
    assert "no test samples" in caplog.text


def test_counts_matches_by_exact_label(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="training")
    samples = _labelled_files(tmp_path, [("A", b"A"), ("A", b"B"), ("B", b"B"), ("B", b"b")])

    report = evaluate_artifact(_echo_artifact(), samples)

    assert report.total == 4
    assert report.correct == 2
    assert report.accuracy == pytest.approx(0.5)
    assert report.predictions[1] == Prediction(
        predicted_label="B", image_path=samples[1].path, actual_label="A",
    )
    assert "Image: 0.png | Actual Value: A | Predicted Value: A" in caplog.text
    assert "Accuracy: 50.00% (Correct Predictions: 2, Total Predictions: 4)" in caplog.text


def test_evaluation_is_capped(tmp_path):
    samples = _labelled_files(tmp_path, [("A", b"A")] * 5)

    report = evaluate_artifact(_echo_artifact(), samples, limit=3)

    assert report.total == 3
    assert report.accuracy == 1.0


def test_default_cap_is_2000():
    assert MAX_EVALUATED == 2000


def test_run_evaluation_uses_the_recomputed_test_split(assets_tree, tmp_path, monkeypatch):
    artifact = FakeArtifact(class_names=["A", "B"], label_for=lambda raw: "A")
    loaded = []

    def fake_load(path):
        loaded.append(path)
        return artifact

    monkeypatch.setattr("training.evaluate.load_artifact", fake_load)
    config = TrainingConfig(
        assets_root=assets_tree,
        artifact_path=tmp_path / "KanjiClassifier.zip",
        bottleneck_dir=tmp_path / "bottlenecks",
        seed=5,
    )

    report = run_evaluation(config)

    expected = split_samples(list(iter_samples(assets_tree)), seed=5).test
    assert loaded == [config.artifact_path]
    assert report.total == len(expected)
    assert [p.image_path for p in report.predictions] == [s.path for s in expected]


def test_run_evaluation_without_assets_raises(tmp_path):
    config = TrainingConfig(assets_root=tmp_path / "missing", artifact_path=tmp_path / "a.zip")
    with pytest.raises(OSError):
        run_evaluation(config)
