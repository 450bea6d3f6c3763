"""Redirect, routing and audit helpers shared by report endpoints."""

from urllib.parse import urlparse

from django.http import HttpResponse
from django.utils.http import url_has_allowed_host_and_scheme

from ..services.audit import log_audit_event


def _safe_report_return_path(raw: str, fallback: str) -> str:
    parsed = urlparse((raw or "").strip())
    if parsed.scheme or parsed.netloc:
        return fallback
    if not parsed.path.startswith("/quiz/"):
        return fallback
    return (raw or "").strip() or fallback


def _safe_internal_redirect(request, to: str, fallback: str = "/"):
    candidate = (to or "").strip() or fallback
    if candidate.startswith("//"):
        candidate = fallback
    parsed = urlparse(candidate)
    if parsed.scheme or parsed.netloc:
        candidate = fallback
    if not candidate.startswith("/"):
        candidate = fallback
    if not url_has_allowed_host_and_scheme(
        candidate,
        allowed_hosts={request.get_host()},
        require_https=request.is_secure(),
    ):
        candidate = fallback
    response = HttpResponse(status=302)
    response["Location"] = candidate
    return response


def _parse_positive_ids(values) -> list[int]:
    ids: list[int] = []
    for raw in values or []:
        try:
            value = int(str(raw).strip())
        except ValueError:
            continue
        if value > 0 and value not in ids:
            ids.append(value)
    return ids


def _audit(request, *, action: str, summary: str = "", quiz=None, target_type: str = "", target_id: str = "", metadata=None):
    log_audit_event(
        request,
        action=action,
        summary=summary,
        quiz=quiz,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )


__all__ = [
    "_audit",
    "_parse_positive_ids",
    "_safe_internal_redirect",
    "_safe_report_return_path",
]
