"""Template context processors for the quiz reports service."""

from django.conf import settings


def product_profile(_request):
    name = str(getattr(settings, "QUIZREPORT_PRODUCT_NAME", "") or "").strip()
    return {"product_name": name or "Quiz reports"}
