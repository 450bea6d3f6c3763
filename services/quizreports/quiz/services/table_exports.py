"""Spreadsheet/CSV writers for downloading the responses table."""

from __future__ import annotations

import csv
import re
from io import StringIO

import tablib
from django.http import HttpResponse

from .filenames import clean_filename, safe_filename

DOWNLOAD_CONTENT_TYPES = {
    "csv": ("text/csv; charset=utf-8", "csv"),
    "excel": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    "ods": ("application/vnd.oasis.opendocument.spreadsheet", "ods"),
}
_SHEET_TITLE_UNSAFE_RE = re.compile(r"[\[\]:*?/\\]")
_SHEET_TITLE_MAX = 31
# Report downloads carry student data: never cached, never rendered inline.
REPORT_DOWNLOAD_HEADERS = {
    "Cache-Control": "private, no-store",
    "Pragma": "no-cache",
    "X-Content-Type-Options": "nosniff",
    "Content-Security-Policy": "default-src 'none'; sandbox",
    "Referrer-Policy": "no-referrer",
}


class UnsupportedDownloadFormat(ValueError):
    pass


def protect_report_download(response):
    for header, value in REPORT_DOWNLOAD_HEADERS.items():
        response[header] = value
    return response


def report_download_filename(report_name: str, course_shortname: str, quiz_name: str) -> str:
    """`<report>-<course shortname>-<quiz name>` without extension."""
    return clean_filename(f"{report_name}-{course_shortname}-{quiz_name}") or report_name


def sheet_title(raw: str) -> str:
    value = _SHEET_TITLE_UNSAFE_RE.sub(" ", raw or "").strip()
    return value[:_SHEET_TITLE_MAX].strip() or "Responses"


def _cell_text(value) -> str:
    if value is None:
        return ""
    return str(value)


def export_table_csv(columns, rows) -> str:
    out = StringIO()
    writer = csv.DictWriter(out, fieldnames=[column.key for column in columns], extrasaction="ignore")
    writer.writerow({column.key: column.header for column in columns})
    for row in rows:
        writer.writerow({column.key: _cell_text(row.cells.get(column.key)) for column in columns})
    return out.getvalue()


def export_table_dataset(columns, rows, *, title: str) -> tablib.Dataset:
    dataset = tablib.Dataset(title=sheet_title(title))
    dataset.headers = [column.header for column in columns]
    for row in rows:
        dataset.append([_cell_text(row.cells.get(column.key)) for column in columns])
    return dataset


def build_table_download_response(*, download: str, columns, rows, filename: str, title: str) -> HttpResponse:
    if download not in DOWNLOAD_CONTENT_TYPES:
        raise UnsupportedDownloadFormat(download)
    content_type, extension = DOWNLOAD_CONTENT_TYPES[download]
    if download == "csv":
        body = export_table_csv(columns, rows)
    else:
        body = export_table_dataset(columns, rows, title=title).export(extension)

    response = HttpResponse(body, content_type=content_type)
    attachment = safe_filename(f"{filename}.{extension}", fallback=f"responses.{extension}")[:255]
    response["Content-Disposition"] = f'attachment; filename="{attachment}"'
    return protect_report_download(response)


__all__ = [
    "DOWNLOAD_CONTENT_TYPES",
    "REPORT_DOWNLOAD_HEADERS",
    "UnsupportedDownloadFormat",
    "build_table_download_response",
    "export_table_csv",
    "export_table_dataset",
    "protect_report_download",
    "report_download_filename",
    "sheet_title",
]
