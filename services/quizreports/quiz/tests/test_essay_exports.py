from ._shared import *  # noqa: F401,F403

from ..services.attempts import get_users_attempts
from ..services.essay_exports import (
    NO_SUBMISSIONS_NOTICE,
    PACK_FAILED_NOTICE,
    build_entry_path,
    collect_essay_files,
    essay_zip_filename,
    export_essay_submissions,
    pack_files,
)
from ..services.filenames import clean_filename, clean_path
from ..services.zip_exports import reserve_archive_path


class _MediaRootMixin:
    def setUp(self):
        super().setUp()
        self._media_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._media_dir.cleanup)
        media_override = override_settings(MEDIA_ROOT=self._media_dir.name)
        media_override.enable()
        self.addCleanup(media_override.disable)


class ArchivePathHelperTests(SimpleTestCase):
    def test_clean_path_strips_parent_segments_and_leading_slash(self):
        self.assertEqual(clean_path("/Q1/../../etc/passwd"), "Q1/etc/passwd")
        self.assertEqual(clean_path("Q1//a/./b.txt"), "Q1/a/b.txt")

    def test_clean_path_drops_control_and_shell_characters(self):
        self.assertEqual(clean_path("Q1/a\x00b|c<d>.txt"), "Q1/abcd.txt")

    def test_clean_filename_removes_slashes(self):
        self.assertEqual(clean_filename("Bio/Chem: Unit 1.zip"), "BioChem Unit 1.zip")

    def test_reserve_archive_path_numbers_collisions_before_extension(self):
        used: set[str] = set()
        self.assertEqual(reserve_archive_path("Q1/a.txt", used), "Q1/a.txt")
        self.assertEqual(reserve_archive_path("Q1/a.txt", used), "Q1/a (2).txt")
        self.assertEqual(reserve_archive_path("Q1/a.txt", used), "Q1/a (3).txt")
        self.assertEqual(reserve_archive_path("README", used), "README")
        self.assertEqual(reserve_archive_path("README", used), "README (2)")


class EssayExportTests(_MediaRootMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.quiz = _build_quiz(fullname="Biology 101", name="Essay quiz")
        self.essay = _add_question(self.quiz, slot=1, qtype=Question.TYPE_ESSAY)
        self.mcq = _add_question(self.quiz, slot=2, qtype=Question.TYPE_MULTICHOICE)
        self.ada = _add_student(
            self.quiz.course,
            "ada",
            first_name="Ada",
            last_name="Lovelace",
            idnumber="S100",
        )

    def test_zip_filename_uses_course_quiz_and_module(self):
        self.assertEqual(
            essay_zip_filename(self.quiz),
            f"Biology 101-Essay quiz-{self.quiz.course_module_id}.zip",
        )

    def test_no_essay_files_returns_notice_without_archive(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        _add_question_attempt(attempt, self.essay, slot=1, response="typed only")
        _add_question_attempt(attempt, self.mcq, slot=2, response="B")

        result = export_essay_submissions(self.quiz, get_users_attempts(self.quiz))

        self.assertFalse(result.has_archive)
        self.assertEqual(result.notice, NO_SUBMISSIONS_NOTICE)

    def test_single_file_lands_under_question_and_student_folder(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        qa = _add_question_attempt(attempt, self.essay, slot=1, tries=("draft",))
        _attach_file(qa, "essay.txt", b"hello")

        result = export_essay_submissions(self.quiz, get_users_attempts(self.quiz))
        self.assertTrue(result.has_archive)
        try:
            payload = result.archive.read()
        finally:
            result.archive.close()

        expected = f"Q{self.essay.id}/S100 - Ada Lovelace/essay.txt"
        self.assertEqual(_zip_names(payload), [expected])
        with zipfile.ZipFile(BytesIO(payload)) as archive:
            self.assertEqual(archive.read(expected), b"hello")
        self.assertEqual(result.file_count, 1)
        self.assertEqual(result.collisions, 0)

    def test_username_used_when_idnumber_missing_and_underscores_become_spaces(self):
        student = _add_student(self.quiz.course, "mae", first_name="Ada_Mae", last_name="Byron")
        attempt = _add_attempt(self.quiz, student, sumgrades=1)
        qa = _add_question_attempt(attempt, self.essay, slot=1)
        _attach_file(qa, "notes.pdf", filepath="/drafts/")

        collection = collect_essay_files(get_users_attempts(self.quiz))

        self.assertEqual(list(collection.files), [f"Q{self.essay.id}/mae - Ada Mae Byron/drafts/notes.pdf"])

    def test_only_latest_step_with_files_is_exported(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        qa = _add_question_attempt(attempt, self.essay, slot=1)
        _attach_file(qa, "first.txt", sequencenumber=1)
        _attach_file(qa, "second.txt", sequencenumber=2)
        _attach_file(qa, "ignored.txt", sequencenumber=3, filearea="answer")

        collection = collect_essay_files(get_users_attempts(self.quiz))

        self.assertEqual(list(collection.files), [f"Q{self.essay.id}/S100 - Ada Lovelace/second.txt"])

    def test_colliding_paths_keep_both_files(self):
        first = _add_attempt(self.quiz, self.ada, attempt=1, sumgrades=1)
        second = _add_attempt(self.quiz, self.ada, attempt=2, sumgrades=2)
        _attach_file(_add_question_attempt(first, self.essay, slot=1), "essay.txt", b"one")
        _attach_file(_add_question_attempt(second, self.essay, slot=1), "essay.txt", b"two")

        with self.assertLogs("quiz.services.essay_exports", level="WARNING") as logs:
            result = export_essay_submissions(self.quiz, get_users_attempts(self.quiz))
        try:
            payload = result.archive.read()
        finally:
            result.archive.close()

        base = f"Q{self.essay.id}/S100 - Ada Lovelace"
        self.assertEqual(_zip_names(payload), [f"{base}/essay (2).txt", f"{base}/essay.txt"])
        with zipfile.ZipFile(BytesIO(payload)) as archive:
            self.assertEqual(archive.read(f"{base}/essay.txt"), b"one")
            self.assertEqual(archive.read(f"{base}/essay (2).txt"), b"two")
        self.assertEqual(result.collisions, 1)
        self.assertIn("essay_export_collision", logs.output[0])

    def test_preview_and_unenrolled_attempts_are_ignored(self):
        outsider = _add_student(self.quiz.course, "outsider", enrol=False)
        preview = _add_attempt(self.quiz, self.ada, sumgrades=1, preview=True)
        _attach_file(_add_question_attempt(preview, self.essay, slot=1), "preview.txt")
        other = _add_attempt(self.quiz, outsider, sumgrades=1)
        _attach_file(_add_question_attempt(other, self.essay, slot=1), "outsider.txt")

        result = export_essay_submissions(self.quiz, get_users_attempts(self.quiz))

        self.assertFalse(result.has_archive)
        self.assertEqual(result.notice, NO_SUBMISSIONS_NOTICE)

    def test_unreadable_storage_yields_pack_failed_notice(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        stored = _attach_file(_add_question_attempt(attempt, self.essay, slot=1), "essay.txt")
        Path(stored.file.path).unlink()

        with self.assertLogs("quiz.services", level="WARNING"):
            result = export_essay_submissions(self.quiz, get_users_attempts(self.quiz))

        self.assertFalse(result.has_archive)
        self.assertEqual(result.notice, PACK_FAILED_NOTICE)

    def test_file_count_reports_only_written_entries(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        qa = _add_question_attempt(attempt, self.essay, slot=1)
        _attach_file(qa, "a.txt", b"kept")
        missing = _attach_file(qa, "b.txt", b"gone")
        Path(missing.file.path).unlink()

        with self.assertLogs("quiz.services", level="WARNING") as logs:
            result = export_essay_submissions(self.quiz, get_users_attempts(self.quiz))
        try:
            payload = result.archive.read()
        finally:
            result.archive.close()

        self.assertEqual(_zip_names(payload), [f"Q{self.essay.id}/S100 - Ada Lovelace/a.txt"])
        self.assertEqual(result.file_count, 1)
        self.assertTrue(any("essay_export_pack_partial" in line for line in logs.output))

    def test_pack_files_returns_none_on_zip_error(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        stored = _attach_file(_add_question_attempt(attempt, self.essay, slot=1), "essay.txt")

        with patch("quiz.services.essay_exports.write_stored_file_to_archive", side_effect=OSError("disk full")):
            with self.assertLogs("quiz.services.essay_exports", level="ERROR"):
                self.assertEqual(pack_files({"a.txt": stored}), (None, 0))

    def test_build_entry_path_cleans_hostile_names(self):
        attempt = _add_attempt(self.quiz, self.ada, sumgrades=1)
        qa = _add_question_attempt(attempt, self.essay, slot=1)
        stored = _attach_file(qa, "essay.txt")
        stored.filename = "../../evil|name.txt"
        record = next(iter(get_users_attempts(self.quiz).values()))

        self.assertEqual(
            build_entry_path(record, stored),
            f"Q{self.essay.id}/S100 - Ada Lovelace/evilname.txt",
        )
