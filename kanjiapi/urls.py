"""
Root URL configuration for the Kanji classification API.

All endpoints live under ``/api/`` and are defined in ``classifier.urls``.

API reference
-------------
POST /api/Classification/classify_image
    multipart/form-data with one file field ``image``.
    200 text/plain  predicted label
    400 text/plain  no ``image`` field, upload too large, or not an image
    500 text/plain  no model loaded or the model failed

POST /api/Classification/reload
    Reload KanjiClassifier.zip from disk.
    200 application/json  {"status": "reloaded", "classes": [...]}
    500 text/plain        artifact missing or invalid

GET /api/Training/train
    Train on the assets tree and replace KanjiClassifier.zip.
    200 empty body  run finished
    409 text/plain  another run is in progress

GET /api/Training/classify
    Evaluate the saved model on a fresh test split; results go to the log.
    200 empty body

GET /api/Training/status
    200 application/json  {"training_running": bool, "model_loaded": bool, "classes": [...]}
"""

from django.urls import include, path

urlpatterns = [
    path("api/", include("classifier.urls")),
]
