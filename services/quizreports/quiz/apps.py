from django.apps import AppConfig


class QuizConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "quiz"
    verbose_name = "Quiz reports"

    def ready(self):
        # Register file-cleanup signal handlers.
        from . import signals  # noqa: F401
