from django.conf import settings
from django.utils.cache import patch_cache_control


class ReportResponseHeadersMiddleware:
    """Keep report pages out of shared caches and apply PERMISSIONS_POLICY.

    Referrer-Policy is left to Django's SecurityMiddleware (SECURE_REFERRER_POLICY).
    """

    report_prefix = "/quiz/"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        policy = (getattr(settings, "PERMISSIONS_POLICY", "") or "").strip()
        if policy:
            response.setdefault("Permissions-Policy", policy)
        if request.path.startswith(self.report_prefix) and not response.has_header("Cache-Control"):
            patch_cache_control(response, private=True, no_store=True)
        return response
