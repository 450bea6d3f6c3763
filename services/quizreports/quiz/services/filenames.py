"""Filename and archive-path cleaning helpers."""

from __future__ import annotations

import re

# Control characters plus the characters that break shells, headers or paths.
_UNSAFE_FILENAME_RE = re.compile(r"[\x00-\x1f\x7f&<>\"`|':\\/]")
_UNSAFE_PATH_RE = re.compile(r"[\x00-\x1f\x7f&<>\"`|':\\]")
_ASCII_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(raw: str, *, fallback: str = "file") -> str:
    """Collapse a display name to a conservative ASCII filename token."""
    value = _ASCII_FILENAME_RE.sub("_", (raw or "").strip())
    value = value.strip("._")
    return value or fallback


def clean_filename(raw: str) -> str:
    """Strip characters that are unsafe in a single filename, keeping spaces and unicode."""
    value = _UNSAFE_FILENAME_RE.sub("", str(raw or "")).strip()
    if value in {".", ".."}:
        return ""
    return value


def clean_path(raw: str) -> str:
    """Clean a relative path for use inside an archive.

    Removes unsafe characters and `..` runs, collapses repeated slashes and
    `./` segments, and drops any leading slash.
    """
    value = _UNSAFE_PATH_RE.sub("", str(raw or ""))
    value = re.sub(r"\.\.+", "", value)
    value = re.sub(r"//+", "/", value)
    value = re.sub(r"/(\./)+", "/", value)
    if value.startswith("./"):
        value = value[2:]
    return value.lstrip("/")


__all__ = ["clean_filename", "clean_path", "safe_filename"]
