"""Settings for one rendering of the download-submissions report."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from urllib.parse import urlencode

from django.conf import settings
from django.urls import reverse

ATTEMPTS_ENROLLED_WITH = "enrolled_with"
ATTEMPTS_ENROLLED_WITHOUT = "enrolled_without"
ATTEMPTS_ENROLLED_ALL = "enrolled_all"
ATTEMPTS_ALL_WITH = "all_with"
ATTEMPTS_CHOICES = [
    (ATTEMPTS_ENROLLED_WITH, "Enrolled users who have attempted the quiz"),
    (ATTEMPTS_ENROLLED_WITHOUT, "Enrolled users who have not attempted the quiz"),
    (ATTEMPTS_ENROLLED_ALL, "All enrolled users"),
    (ATTEMPTS_ALL_WITH, "All users who have attempted the quiz"),
]

WHICH_TRIES_FIRST = "first"
WHICH_TRIES_LAST = "last"
WHICH_TRIES_ALL = "all"
WHICH_TRIES_CHOICES = [
    (WHICH_TRIES_FIRST, "First try"),
    (WHICH_TRIES_LAST, "Last try"),
    (WHICH_TRIES_ALL, "All tries"),
]

DOWNLOAD_FORMATS = ("csv", "excel", "ods")

_TRUE_VALUES = {"1", "true", "on", "yes"}


def _default_pagesize() -> int:
    raw = getattr(settings, "QUIZREPORT_DEFAULT_PAGESIZE", 30)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = 30
    return max(value, 1)


def _param_bool(params, name: str, default: bool) -> bool:
    if name not in params:
        return default
    return str(params.get(name) or "").strip().lower() in _TRUE_VALUES


def _param_choice(params, name: str, choices, default: str) -> str:
    value = str(params.get(name) or "").strip()
    allowed = {choice[0] for choice in choices}
    return value if value in allowed else default


def _param_int(params, name: str, default: int) -> int:
    try:
        return int(str(params.get(name) or "").strip())
    except ValueError:
        return default


@dataclass
class ReportOptions:
    quiz: object
    attempts: str = ATTEMPTS_ENROLLED_WITH
    onlygraded: bool = False
    whichtries: str = WHICH_TRIES_LAST
    showqtext: bool = False
    showresponses: bool = True
    showright: bool = False
    pagesize: int = field(default_factory=_default_pagesize)
    download: str = ""
    group: int = 0
    checkboxcolumn: bool = False

    @classmethod
    def from_form(cls, quiz, cleaned_data: dict, *, group: int = 0) -> "ReportOptions":
        """Build options from a validated settings form."""
        return cls(
            quiz=quiz,
            attempts=cleaned_data.get("attempts") or ATTEMPTS_ENROLLED_WITH,
            onlygraded=bool(cleaned_data.get("onlygraded")),
            whichtries=cleaned_data.get("whichtries") or WHICH_TRIES_LAST,
            showqtext=bool(cleaned_data.get("showqtext")),
            showresponses=bool(cleaned_data.get("showresponses")),
            showright=bool(cleaned_data.get("showright")),
            pagesize=int(cleaned_data.get("pagesize") or _default_pagesize()),
            group=group,
        )

    @classmethod
    def from_params(cls, quiz, params) -> "ReportOptions":
        """Build options from query parameters (paging, sorting and download links)."""
        download = str(params.get("download") or "").strip().lower()
        return cls(
            quiz=quiz,
            attempts=_param_choice(params, "attempts", ATTEMPTS_CHOICES, ATTEMPTS_ENROLLED_WITH),
            onlygraded=_param_bool(params, "onlygraded", False),
            whichtries=_param_choice(params, "whichtries", WHICH_TRIES_CHOICES, WHICH_TRIES_LAST),
            showqtext=_param_bool(params, "qtext", False),
            showresponses=_param_bool(params, "resp", True),
            showright=_param_bool(params, "right", False),
            pagesize=_param_int(params, "pagesize", _default_pagesize()),
            download=download,
            group=max(_param_int(params, "group", 0), 0),
        )

    def resolve(self, *, can_delete: bool = False, can_filter_all: bool = True) -> "ReportOptions":
        """Apply the cross-field rules and return the normalized options."""
        resolved = replace(self)
        if not (resolved.showresponses or resolved.showqtext or resolved.showright):
            resolved.showresponses = True
        if resolved.attempts == ATTEMPTS_ALL_WITH and not can_filter_all:
            resolved.attempts = ATTEMPTS_ENROLLED_WITH
        if resolved.attempts == ATTEMPTS_ENROLLED_WITHOUT:
            resolved.onlygraded = False
        resolved.pagesize = max(int(resolved.pagesize or 0), 1)
        resolved.checkboxcolumn = bool(
            can_delete and not resolved.download and resolved.attempts != ATTEMPTS_ENROLLED_WITHOUT
        )
        return resolved

    @property
    def is_downloading(self) -> bool:
        return bool(self.download)

    def get_initial_form_data(self) -> dict:
        return {
            "attempts": self.attempts,
            "onlygraded": self.onlygraded,
            "whichtries": self.whichtries,
            "showqtext": self.showqtext,
            "showresponses": self.showresponses,
            "showright": self.showright,
            "pagesize": self.pagesize,
        }

    def get_url_params(self) -> dict:
        params = {
            "attempts": self.attempts,
            "onlygraded": int(self.onlygraded),
            "whichtries": self.whichtries,
            "qtext": int(self.showqtext),
            "resp": int(self.showresponses),
            "right": int(self.showright),
            "pagesize": self.pagesize,
        }
        if self.group:
            params["group"] = self.group
        return params

    def get_url(self, **extra) -> str:
        params = self.get_url_params()
        params.update({key: value for key, value in extra.items() if value not in (None, "")})
        base = reverse("quiz_report_downloadsubmissions", args=[self.quiz.id])
        return f"{base}?{urlencode(params)}"


__all__ = [
    "ATTEMPTS_ALL_WITH",
    "ATTEMPTS_CHOICES",
    "ATTEMPTS_ENROLLED_ALL",
    "ATTEMPTS_ENROLLED_WITH",
    "ATTEMPTS_ENROLLED_WITHOUT",
    "DOWNLOAD_FORMATS",
    "ReportOptions",
    "WHICH_TRIES_ALL",
    "WHICH_TRIES_CHOICES",
    "WHICH_TRIES_FIRST",
    "WHICH_TRIES_LAST",
]
