from ._shared import *  # noqa: F401,F403

import tablib

from ..services.attempts import (
    course_students,
    get_significant_questions,
    report_attempts,
    report_users_without_attempts,
)
from ..services.report_options import (
    ATTEMPTS_ENROLLED_ALL,
    WHICH_TRIES_ALL,
    WHICH_TRIES_FIRST,
    ReportOptions,
)
from ..services.responses_table import (
    FirstOrAllResponsesTable,
    LastResponsesTable,
    ReportColumn,
    ReportRow,
    format_duration,
    table_class_for,
)
from ..services.table_exports import (
    UnsupportedDownloadFormat,
    build_table_download_response,
    export_table_csv,
    report_download_filename,
    sheet_title,
)


class TableExportHelperTests(SimpleTestCase):
    def setUp(self):
        self.columns = [ReportColumn("fullname", "Name"), ReportColumn("response1", "Response 1")]
        self.rows = [ReportRow(key="1#1", cells={"fullname": "Ada Lovelace", "response1": "Paris"})]

    def test_csv_has_header_then_rows(self):
        reader = csv.reader(StringIO(export_table_csv(self.columns, self.rows)))
        self.assertEqual(list(reader), [["Name", "Response 1"], ["Ada Lovelace", "Paris"]])

    def test_download_filename_and_sheet_title(self):
        self.assertEqual(report_download_filename("responses", "BIO101", "Quiz: one"), "responses-BIO101-Quiz one")
        self.assertEqual(sheet_title("A" * 40), "A" * 31)
        self.assertEqual(sheet_title("Unit [1]/2"), "Unit  1  2")

    def test_csv_response_headers(self):
        resp = build_table_download_response(
            download="csv",
            columns=self.columns,
            rows=self.rows,
            filename="responses-BIO101-Essay quiz",
            title="BIO101 Essay quiz",
        )
        self.assertEqual(resp["Content-Type"], "text/csv; charset=utf-8")
        self.assertEqual(resp["Content-Disposition"], 'attachment; filename="responses-BIO101-Essay_quiz.csv"')
        self.assertEqual(resp["X-Content-Type-Options"], "nosniff")
        self.assertEqual(resp["Cache-Control"], "private, no-store")

    def test_excel_download_loads_back(self):
        resp = build_table_download_response(
            download="excel",
            columns=self.columns,
            rows=self.rows,
            filename="responses",
            title="BIO101 Essay quiz",
        )
        self.assertIn('filename="responses.xlsx"', resp["Content-Disposition"])
        dataset = tablib.Dataset().load(BytesIO(resp.content), format="xlsx")
        self.assertEqual(list(dataset.headers), ["Name", "Response 1"])
        self.assertEqual(dataset[0][0], "Ada Lovelace")

    def test_ods_download_is_an_opendocument_package(self):
        resp = build_table_download_response(
            download="ods",
            columns=self.columns,
            rows=self.rows,
            filename="responses",
            title="BIO101 Essay quiz",
        )
        self.assertEqual(resp["Content-Type"], "application/vnd.oasis.opendocument.spreadsheet")
        self.assertIn('filename="responses.ods"', resp["Content-Disposition"])
        with zipfile.ZipFile(BytesIO(resp.content)) as archive:
            self.assertIn("content.xml", archive.namelist())
            self.assertIn(b"Ada Lovelace", archive.read("content.xml"))

    def test_unknown_format_raises(self):
        with self.assertRaises(UnsupportedDownloadFormat):
            build_table_download_response(download="pdf", columns=[], rows=[], filename="x", title="x")

    def test_format_duration(self):
        self.assertEqual(format_duration(timedelta(minutes=20)), "20 mins")
        self.assertEqual(format_duration(timedelta(hours=1, seconds=1)), "1 hour 1 sec")
        self.assertEqual(format_duration(timedelta(0)), "0 secs")


class ResponsesTableTests(TestCase):
    def setUp(self):
        self.quiz = _build_quiz(grade="10", sumgrades="2")
        self.course = self.quiz.course
        self.q1 = _add_question(self.quiz, slot=1, qtype=Question.TYPE_SHORTANSWER)
        self.q2 = _add_question(self.quiz, slot=2, qtype=Question.TYPE_ESSAY)
        self.ada = _add_student(self.course, "ada", first_name="Ada", last_name="Lovelace", idnumber="S100")
        self.ben = _add_student(self.course, "ben", first_name="Ben", last_name="Adams")
        self.attempt = _add_attempt(self.quiz, self.ada, sumgrades="1.5")
        _add_question_attempt(self.attempt, self.q1, slot=1, response="Paris", tries=("Lyon", "Paris"))
        _add_question_attempt(self.attempt, self.q2, slot=2, response="An essay", tries=("An essay",))

    def _table(self, **option_kwargs):
        options = ReportOptions(quiz=self.quiz, attempts=ATTEMPTS_ENROLLED_ALL, **option_kwargs).resolve()
        table = table_class_for(options.whichtries)(
            self.quiz,
            options=options,
            questions=get_significant_questions(self.quiz),
            can_see_grades=True,
        )
        allowed = course_students(self.course)
        entries = table.build_entries(
            report_attempts(self.quiz, attempts=options.attempts, onlygraded=False, allowed_users=allowed),
            report_users_without_attempts(self.quiz, attempts=options.attempts, allowed_users=allowed),
        )
        return table, table.sort_entries(entries, "fullname", "asc")

    def test_column_order_for_screen(self):
        table, _entries = self._table(showqtext=True, showright=True)
        keys = [column.key for column in table.define_columns()]
        self.assertEqual(
            keys,
            [
                "fullname",
                "idnumber",
                "email",
                "state",
                "sumgrades",
                "question1",
                "response1",
                "right1",
                "question2",
                "response2",
                "right2",
            ],
        )
        headers = {column.key: column.header for column in table.define_columns()}
        self.assertEqual(headers["sumgrades"], "Grade/10.00")
        self.assertEqual(headers["response2"], "Response 2")

    def test_download_adds_time_columns_and_drops_checkbox(self):
        table, _entries = self._table(download="csv")
        keys = [column.key for column in table.define_columns()]
        self.assertIn("timestart", keys)
        self.assertIn("duration", keys)
        self.assertNotIn("checkbox", keys)

    def test_last_try_rows_with_rescaled_grade_and_placeholders(self):
        table, entries = self._table()
        self.assertIsInstance(table, LastResponsesTable)
        rows = table.build_rows(entries, {self.attempt.id})

        # Sorted by last name: Adams (no attempt) then Lovelace.
        self.assertEqual([row.cells["fullname"] for row in rows], ["Ben Adams", "Ada Lovelace"])
        self.assertEqual(rows[0].cells["state"], "-")
        self.assertIsNone(rows[0].attempt_id)
        self.assertEqual(rows[1].cells["sumgrades"], "7.50")
        self.assertEqual(rows[1].cells["response1"], "Paris")
        self.assertEqual(rows[1].css_class, "gradedattempt")

    def test_first_try_uses_first_step(self):
        table, entries = self._table(whichtries=WHICH_TRIES_FIRST)
        self.assertIsInstance(table, FirstOrAllResponsesTable)
        rows = table.build_rows(entries)
        self.assertEqual(rows[1].cells["response1"], "Lyon")

    def test_all_tries_expands_rows(self):
        table, entries = self._table(whichtries=WHICH_TRIES_ALL)
        rows = [row for row in table.build_rows(entries) if row.attempt_id]

        self.assertEqual(len(rows), 2)
        self.assertEqual([row.cells["response1"] for row in rows], ["Lyon", "Paris"])
        self.assertEqual([row.cells["response2"] for row in rows], ["An essay", "-"])
        self.assertEqual(rows[1].key, f"{self.ada.id}#1#2")

    def test_download_uses_blank_placeholders(self):
        table, entries = self._table(download="csv")
        rows = table.build_rows(entries)
        self.assertEqual(rows[0].cells["state"], "")

    def test_paginate_uses_pagesize(self):
        table, entries = self._table(pagesize=1)
        page = table.paginate(entries, 2)
        self.assertEqual(page.paginator.num_pages, 2)
        self.assertEqual(page.object_list[0].user, self.ada)

    def test_grade_sort_keeps_users_without_attempts_last(self):
        table, entries = self._table()

        for direction in ("asc", "desc"):
            ordered = table.sort_entries(entries, "sumgrades", direction)
            self.assertEqual([entry.user.username for entry in ordered], ["ada", "ben"])

    def test_grade_sort_descending_orders_by_value(self):
        cyd = _add_student(self.course, "cyd", first_name="Cyd", last_name="Brown")
        _add_attempt(self.quiz, cyd, sumgrades=2)
        table, entries = self._table()

        ordered = table.sort_entries(entries, "sumgrades", "desc")

        self.assertEqual([entry.user.username for entry in ordered], ["cyd", "ada", "ben"])
