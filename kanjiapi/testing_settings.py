"""Settings for the test suite: no model at startup, plain propagating loggers."""

from .settings import *  # noqa: F401,F403

CLASSIFIER_LOAD_ON_STARTUP = False

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
}
