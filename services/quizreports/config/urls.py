"""Top-level URL map for the quiz reports service.

- `/quiz/<id>/report/downloadsubmissions` is the staff report page.
- `/admin/...` is the Django admin surface for course and quiz data.
"""

from django.contrib import admin
from django.urls import path
from quiz import views

urlpatterns = [
    path("admin/", admin.site.urls),

    # Health endpoint for reverse proxy and uptime checks.
    path("healthz", views.healthz),

    path(
        "quiz/<int:quiz_id>/report/downloadsubmissions",
        views.quiz_report_downloadsubmissions,
        name="quiz_report_downloadsubmissions",
    ),
    path(
        "quiz/<int:quiz_id>/report/downloadsubmissions/delete",
        views.quiz_report_delete_attempts,
        name="quiz_report_delete_attempts",
    ),
]
