"""
Django settings for the Kanji classification API.

Directory layout (all relative to ``BASE_DIR``, the folder holding
``manage.py``)::

    assets/               ← training images, assets/<label>/<image>
    workspace/            ← scratch space (bottleneck cache)
    KanjiClassifier.zip   ← trained model artifact

Only deployment knobs are read from the environment; the classifier
itself is configured here.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-kanji-classifier-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "classifier",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "kanjiapi.urls"
WSGI_APPLICATION = "kanjiapi.wsgi.application"

# No database: samples come from the filesystem, the model from a zip file.
DATABASES = {}

USE_TZ = True

# ── Classifier ──────────────────────────────────────────────────────────────

ASSETS_ROOT = BASE_DIR / "assets"
WORKSPACE_ROOT = BASE_DIR / "workspace"
MODEL_ARTIFACT_PATH = BASE_DIR / "KanjiClassifier.zip"

# Load the artifact in AppConfig.ready() so the first request is not slow.
CLASSIFIER_LOAD_ON_STARTUP = True

# Overrides for training.config.TrainingConfig (e.g. {"seed": 7}).
CLASSIFIER_TRAINING = {}

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MB

# ── Logging ─────────────────────────────────────────────────────────────────

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "classifier": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "training": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "django.request": {"handlers": ["console"], "level": "ERROR", "propagate": False},
    },
}
