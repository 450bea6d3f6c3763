"""Shared helpers for temporary ZIP export creation."""

from contextlib import contextmanager
import logging
import posixpath
import tempfile
import zipfile

logger = logging.getLogger(__name__)


@contextmanager
def temporary_zip_archive(*, prefix: str = "quiz_export_", temp_dir: str | None = None):
    """Yield a writable temp file and open ZipFile bound to it.

    The temp file is unlinked on creation and disappears once closed.
    It is closed here only if building the archive raises.
    """
    tmp = tempfile.TemporaryFile(mode="w+b", prefix=prefix, dir=temp_dir or None)
    try:
        with zipfile.ZipFile(tmp, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            yield tmp, archive
    except BaseException:
        tmp.close()
        raise


def _numbered_variant(path: str, index: int) -> str:
    head, tail = posixpath.split(path)
    stem, ext = posixpath.splitext(tail)
    if not stem:
        stem, ext = ext, ""
    numbered = f"{stem} ({index}){ext}"
    return posixpath.join(head, numbered) if head else numbered


def reserve_archive_path(primary: str, used_paths: set[str]) -> str:
    """Reserve a unique path in the ZIP.

    When `primary` is taken, ` (2)`, ` (3)`, ... is inserted before the extension.
    """
    chosen = primary
    index = 1
    while chosen in used_paths:
        index += 1
        chosen = _numbered_variant(primary, index)
    used_paths.add(chosen)
    return chosen


def write_stored_file_to_archive(archive, *, field_file, arcname: str) -> bool:
    """Copy a storage-backed file into a ZIP archive.

    Falls back to reading through the storage API when the backend has no local path.
    """
    try:
        archive.write(field_file.path, arcname=arcname)
        return True
    except (NotImplementedError, OSError, ValueError):
        pass
    try:
        with field_file.open("rb") as fh:
            archive.writestr(arcname, fh.read())
        return True
    except (OSError, ValueError):
        logger.warning("zip_export_source_unreadable name=%s", getattr(field_file, "name", ""))
        return False


__all__ = [
    "reserve_archive_path",
    "temporary_zip_archive",
    "write_stored_file_to_archive",
]
