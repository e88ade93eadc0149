"""
Image classification endpoints: accept an upload, run inference, return the label.

POST /api/Classification/classify_image  – Classify one uploaded image.
POST /api/Classification/reload          – Reload the artifact from disk.
"""

from __future__ import annotations

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from classifier.model_loader import get_classification_service
from training.errors import DecodeError

from .helpers import INTERNAL_ERROR_TEXT, MAX_UPLOAD_SIZE, text_response

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def classify_image(request):
    """Accept an uploaded image and return its predicted label as plain text.

    Workflow
    -------
    1. Validate the upload (presence, size).
    2. Resize to fit 224×224 and re-encode.
    3. Predict with the shared artifact.
    4. Return the label; errors are logged, never echoed to the client.
    """
    if "image" not in request.FILES:
        return text_response("No image file provided.", status=400)

    image_file = request.FILES["image"]

    if image_file.size > MAX_UPLOAD_SIZE:
        return text_response(
            f"File too large ({image_file.size:,} bytes). Max {MAX_UPLOAD_SIZE:,}.",
            status=400,
        )

    try:
        prediction = get_classification_service().classify(image_file.read())
    except DecodeError:
        logger.warning("Could not decode upload %s", image_file.name, exc_info=True)
        return text_response("Uploaded file is not a readable image.", status=400)
    except Exception:
        logger.exception("An error occurred during image classification.")
        return text_response(INTERNAL_ERROR_TEXT, status=500)

    logger.info("Classified %s → %s", image_file.name, prediction.predicted_label)
    return text_response(prediction.predicted_label)


@csrf_exempt
@require_POST
def reload_model(request):
    """Reload the persisted artifact so a fresh training run is served."""
    service = get_classification_service()
    try:
        service.reload()
    except Exception:
        logger.exception("Model reload from %s failed", service.artifact_path)
        return text_response(INTERNAL_ERROR_TEXT, status=500)

    return JsonResponse({
        "status": "reloaded",
        "classes": service.class_names,
    })
