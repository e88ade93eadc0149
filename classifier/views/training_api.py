"""
Training API endpoints.

GET /api/Training/train     – Run a full training pass (blocks until done).
GET /api/Training/classify  – Evaluate the saved model on a fresh test split.
GET /api/Training/status    – Whether training is running / a model is served.
"""

from __future__ import annotations

import logging

from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET

from classifier.model_loader import get_classification_service
from training.config import TrainingConfig
from training.evaluate import run_evaluation
from training.tasks import is_training_running, run_training_exclusive

from .helpers import text_response

logger = logging.getLogger(__name__)


@require_GET
def train(request):
    """Train on the assets directory and overwrite the saved artifact.

    Returns 409 if a run is already in progress.  Failures are logged by
    the runner and propagate to Django's default error handling.
    """
    config = TrainingConfig.from_settings()

    result = run_training_exclusive(config)
    if result is None:
        return text_response("A training run is already in progress.", status=409)

    logger.info("Training completed successfully.")
    return HttpResponse(status=200)


@require_GET
def classify(request):
    """Evaluate the saved artifact; results only go to the server log."""
    config = TrainingConfig.from_settings()
    try:
        run_evaluation(config)
    except Exception:
        logger.exception("An error occurred during evaluation.")
        raise
    return HttpResponse(status=200)


@require_GET
def status(request):
    """Return training / serving state."""
    service = get_classification_service()
    return JsonResponse({
        "training_running": is_training_running(),
        "model_loaded": service.is_loaded,
        "classes": service.class_names,
    })
