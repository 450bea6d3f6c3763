"""Bundle essay-question attachments into a ZIP for download.

Entry paths look like `Q<questionid>/<idnumber or username> - <full name>/<filename>`.
Two files that map to the same path are both kept; later ones get a
numbered suffix.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field

from django.conf import settings

from ..models import Question, QuestionAttempt
from .filenames import clean_filename, clean_path
from .zip_exports import reserve_archive_path, temporary_zip_archive, write_stored_file_to_archive

logger = logging.getLogger(__name__)

NO_SUBMISSIONS_NOTICE = "No essay file submissions were found for this quiz."
PACK_FAILED_NOTICE = "The submissions archive could not be created."


def _essay_filearea() -> str:
    return (getattr(settings, "QUIZREPORT_ESSAY_FILEAREA", "attachments") or "").strip() or "attachments"


def _temp_dir() -> str | None:
    return (getattr(settings, "QUIZREPORT_TEMP_DIR", "") or "").strip() or None


def essay_zip_filename(quiz) -> str:
    course = quiz.course
    return clean_filename(f"{course.fullname}-{quiz.name}-{quiz.course_module_id}.zip")


def submission_prefixes(record) -> tuple[str, str]:
    """Return the question folder and the student folder for one attempt record."""
    question_dir = f"Q{record.questionid}".replace("_", " ")
    owner = record.idnumber or record.username
    student_dir = f"{owner} - {record.fullname.replace('_', ' ')}"
    return question_dir, student_dir


def build_entry_path(record, stored_file) -> str:
    question_dir, student_dir = submission_prefixes(record)
    filepath = stored_file.filepath or "/"
    return clean_path(f"{question_dir}/{student_dir}{filepath}{stored_file.filename}")


@dataclass
class EssayFileCollection:
    files: dict = field(default_factory=dict)
    collisions: int = 0

    def __len__(self) -> int:
        return len(self.files)


def collect_essay_files(users_attempts: dict, *, filearea: str | None = None) -> EssayFileCollection:
    """Map archive entry paths to the latest essay attachments in `users_attempts`."""
    filearea = filearea or _essay_filearea()
    qa_ids = [record.qaid for record in users_attempts.values() if record.qaid]
    question_attempts = QuestionAttempt.objects.select_related("question").in_bulk(qa_ids)

    collection = EssayFileCollection()
    used_paths: set[str] = set()
    for record in users_attempts.values():
        qa = question_attempts.get(record.qaid)
        if qa is None or qa.get_type_name() != Question.TYPE_ESSAY:
            continue
        for stored_file in qa.get_last_qt_files(filearea):
            primary = build_entry_path(record, stored_file)
            path = reserve_archive_path(primary, used_paths)
            if path != primary:
                collection.collisions += 1
                logger.warning(
                    "essay_export_collision path=%s renamed=%s qaid=%s file_id=%s",
                    primary,
                    path,
                    record.qaid,
                    stored_file.id,
                )
            collection.files[path] = stored_file
    return collection


def pack_files(files_for_zipping: dict, *, temp_dir: str | None = None):
    """Write `{entry path: StepFile}` into a temporary ZIP.

    Returns `(temp file rewound to the start, entries written)`, or
    `(None, 0)` when nothing could be written.
    """
    written = 0
    try:
        with temporary_zip_archive(prefix="quiz_essay_qt_attachments_", temp_dir=temp_dir) as (tmp, archive):
            for arcname, stored_file in files_for_zipping.items():
                if write_stored_file_to_archive(archive, field_file=stored_file.file, arcname=arcname):
                    written += 1
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile):
        logger.exception("essay_export_pack_failed entries=%s", len(files_for_zipping))
        return None, 0

    if written == 0:
        logger.warning("essay_export_pack_empty entries=%s", len(files_for_zipping))
        tmp.close()
        return None, 0
    if written < len(files_for_zipping):
        logger.warning("essay_export_pack_partial written=%s entries=%s", written, len(files_for_zipping))
    tmp.seek(0)
    return tmp, written


@dataclass
class EssayExportResult:
    filename: str
    archive: object = None
    file_count: int = 0
    collisions: int = 0
    notice: str = ""

    @property
    def has_archive(self) -> bool:
        return self.archive is not None


def export_essay_submissions(quiz, users_attempts: dict) -> EssayExportResult:
    """Collect and pack essay attachments for `quiz`.

    The caller owns `result.archive` and must close it once sent.
    """
    collection = collect_essay_files(users_attempts)
    result = EssayExportResult(filename=essay_zip_filename(quiz), collisions=collection.collisions)
    if not collection.files:
        result.notice = NO_SUBMISSIONS_NOTICE
        return result

    archive, written = pack_files(collection.files, temp_dir=_temp_dir())
    if archive is None:
        result.notice = PACK_FAILED_NOTICE
        return result

    result.archive = archive
    result.file_count = written
    logger.info(
        "essay_export_packed quiz=%s files=%s collisions=%s",
        quiz.id,
        result.file_count,
        result.collisions,
    )
    return result


__all__ = [
    "EssayExportResult",
    "EssayFileCollection",
    "NO_SUBMISSIONS_NOTICE",
    "PACK_FAILED_NOTICE",
    "build_entry_path",
    "collect_essay_files",
    "essay_zip_filename",
    "export_essay_submissions",
    "pack_files",
    "submission_prefixes",
]
