"""
View package for the Kanji classifier app.

Modules
-------
helpers.py        – Shared constants and response helpers.
classification.py – Image upload inference and model reload endpoints.
training_api.py   – Training, evaluation and status endpoints.
"""

# Re-export all views so urls.py can do: from .views import classify_image, …
from .classification import classify_image, reload_model     # noqa: F401
from .training_api import classify, status, train             # noqa: F401
