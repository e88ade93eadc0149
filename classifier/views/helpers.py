"""
Shared constants, utilities, and helper functions used across views.
"""

from __future__ import annotations

from django.conf import settings
from django.http import HttpResponse

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_UPLOAD_SIZE: int = getattr(settings, "MAX_UPLOAD_SIZE", 10 * 1024 * 1024)  # 10 MB

INTERNAL_ERROR_TEXT = "Internal Server Error"


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------

def text_response(body: str, status: int = 200) -> HttpResponse:
    """Return a ``text/plain`` UTF-8 response."""
    return HttpResponse(body, status=status, content_type="text/plain; charset=utf-8")
