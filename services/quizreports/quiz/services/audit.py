"""Staff audit trail for report downloads and attempt deletions."""

from __future__ import annotations

import ipaddress
import logging

from django.conf import settings

from ..models import AuditEvent

logger = logging.getLogger(__name__)

# Prefix kept per IP version when QUIZREPORT_AUDIT_IP_MODE is "truncate".
AUDIT_IP_PREFIXES = {4: 24, 6: 56}


def audit_ip_mode() -> str:
    mode = str(getattr(settings, "QUIZREPORT_AUDIT_IP_MODE", "truncate") or "").strip().lower()
    return mode if mode in {"none", "truncate", "full"} else "truncate"


def audit_ip_for(request) -> str | None:
    """The requester's address as stored on an AuditEvent, or None."""
    mode = audit_ip_mode()
    if mode == "none":
        return None
    try:
        address = ipaddress.ip_address((request.META.get("REMOTE_ADDR") or "").strip())
    except ValueError:
        return None
    if mode == "full":
        return str(address)
    network = ipaddress.ip_network(f"{address}/{AUDIT_IP_PREFIXES[address.version]}", strict=False)
    return str(network.network_address)


def log_audit_event(
    request,
    *,
    action: str,
    summary: str = "",
    quiz=None,
    target_type: str = "",
    target_id: str = "",
    metadata: dict | None = None,
) -> AuditEvent:
    user = getattr(request, "user", None)
    actor = user if getattr(user, "is_authenticated", False) else None
    event = AuditEvent.objects.create(
        actor_user=actor,
        quiz=quiz,
        action=action[:80],
        target_type=target_type[:80],
        target_id=str(target_id)[:64],
        summary=summary[:255],
        metadata=metadata or {},
        ip_address=audit_ip_for(request),
    )
    logger.info(
        "audit action=%s quiz=%s actor=%s target=%s:%s",
        action,
        getattr(quiz, "id", None),
        getattr(actor, "id", None),
        target_type,
        target_id,
    )
    return event


__all__ = ["audit_ip_for", "audit_ip_mode", "log_audit_event"]
