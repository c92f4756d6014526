# scheduling/apps.py
from django.apps import AppConfig


class SchedulingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "scheduling"

    def ready(self):
        # Import signal handlers so Django registers them at startup
        import scheduling.signals  # noqa: F401
