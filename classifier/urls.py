"""
URL configuration for the classifier app.

Route groups
------------
- Classification : classify one uploaded image, reload the served model.
- Training       : train, evaluate on the test split, status.
"""

from django.urls import path

from . import views

urlpatterns = [
    # ── Classification ──────────────────────────────────────────────────
    path("Classification/classify_image", views.classify_image, name="classify_image"),
    path("Classification/reload", views.reload_model, name="reload_model"),

    # ── Training ────────────────────────────────────────────────────────
    path("Training/train", views.train, name="training_train"),
    path("Training/classify", views.classify, name="training_classify"),
    path("Training/status", views.status, name="training_status"),
]
