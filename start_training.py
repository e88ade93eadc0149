"""
Run a training pass from the command line, then evaluate the result.

Same pipeline as GET /api/Training/train followed by
GET /api/Training/classify, without starting the web server.
The new artifact replaces KanjiClassifier.zip.

Run with: python start_training.py [--seed 7] [--architecture mobilenet_v2] [--skip-eval]
"""
import argparse
import os
import sys

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "kanjiapi.settings")
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "1")

import django
from django.conf import settings

settings.CLASSIFIER_LOAD_ON_STARTUP = False
django.setup()

from training.config import ARCHITECTURES, DEFAULT_ARCHITECTURE, TrainingConfig
from training.evaluate import run_evaluation
from training.runner import run_training


def parse_args(argv):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--seed", type=int, default=None, help="shuffle seed")
    parser.add_argument(
        "--architecture", choices=sorted(ARCHITECTURES), default=None,
        help=f"backbone (settings or {DEFAULT_ARCHITECTURE} when omitted)",
    )
    parser.add_argument("--epochs", type=int, default=None)
    parser.add_argument("--skip-eval", action="store_true", help="train only")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    overrides = {
        name: value
        for name, value in (
            ("architecture", args.architecture),
            ("seed", args.seed),
            ("epochs", args.epochs),
        )
        if value is not None
    }
    config = TrainingConfig.from_settings(**overrides)

    print("=" * 60)
    print("STARTING TRAINING RUN")
    print("=" * 60)
    print(f"  Assets       : {config.assets_root}")
    print(f"  Architecture : {config.architecture}")
    print(f"  Epochs       : {config.epochs}")
    print(f"  Seed         : {config.seed}")
    print(f"  Artifact     : {config.artifact_path}")
    print("=" * 60)
    print()

    result = run_training(config)

    print()
    print("=" * 60)
    print(f"RUN COMPLETE: {len(result.class_names)} classes")
    print(f"  Splits     : {result.split_counts}")
    print(f"  Model saved: {result.artifact_path}")
    print("=" * 60)

    if args.skip_eval:
        return 0

    report = run_evaluation(config)
    if report.accuracy is None:
        print("No test samples, accuracy not computed.")
    else:
        print(f"Accuracy: {report.accuracy:.2%} ({report.correct}/{report.total})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
