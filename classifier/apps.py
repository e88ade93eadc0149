from django.apps import AppConfig
from django.conf import settings


class ClassifierConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'classifier'

    def ready(self):
        """Load the persisted model once per server process."""
        if not getattr(settings, 'CLASSIFIER_LOAD_ON_STARTUP', True):
            return

        from classifier.model_loader import warm_up
        warm_up()
