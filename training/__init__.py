"""
Kanji Classifier Training Pipeline
==================================

Folder-based training and evaluation:

1. Scans ``assets/<label>/<image>`` into (path, label) samples.
2. Shuffles and splits them 70 / 15 / 15 (train / validation / test).
3. Trains a softmax head on a frozen pretrained backbone (ResNet-V2 101
   by default), reusing cached backbone features between runs.
4. Saves backbone + head + label table as ``KanjiClassifier.zip``.
5. Evaluates the saved artifact on the test split (log output only).

Package layout
--------------
config.py     – ``TrainingConfig`` dataclass, backbone registry, default paths.
data.py       – Directory scan, label keys, raw bytes, split planner.
bottleneck.py – On-disk cache of backbone feature vectors.
train.py      – Feature extractor, head training, model assembly.
artifact.py   – ``ModelArtifact``, zip save / load, image decoding.
evaluate.py   – Test-split evaluation and accuracy report.
runner.py     – End-to-end orchestrator (scan → split → train → save).
tasks.py      – Lock that keeps training runs from overlapping.
errors.py     – Error hierarchy shared with the HTTP layer.
"""
