"""Row and column building for the responses table.

Two flavours exist, chosen by the `whichtries` option:
- LastResponsesTable shows each question's final response.
- FirstOrAllResponsesTable shows the first try, or one row per try.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from django.conf import settings
from django.core.paginator import Paginator
from django.utils import timezone

from ..models import QuestionAttempt, QuizAttempt
from .attempts import user_fullname, user_profile
from .grading import format_grade, rescale_grade
from .report_options import WHICH_TRIES_ALL, WHICH_TRIES_LAST

IDENTITY_FIELD_LABELS = {
    "idnumber": "ID number",
    "email": "Email address",
    "institution": "Institution",
    "department": "Department",
}
PLACEHOLDER = "-"


def identity_fields() -> list[str]:
    raw = getattr(settings, "QUIZREPORT_IDENTITY_FIELDS", "idnumber,email")
    if isinstance(raw, str):
        raw = raw.split(",")
    fields = []
    for name in raw or []:
        name = str(name).strip().lower()
        if name in IDENTITY_FIELD_LABELS and name not in fields:
            fields.append(name)
    return fields


def format_timestamp(value) -> str:
    if value is None:
        return ""
    return timezone.localtime(value).strftime("%d %B %Y, %I:%M %p")


def format_duration(delta) -> str:
    if delta is None:
        return ""
    total = int(delta.total_seconds())
    if total <= 0:
        return "0 secs"
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    mins, secs = divmod(rem, 60)
    parts = []
    for value, singular, plural in (
        (days, "day", "days"),
        (hours, "hour", "hours"),
        (mins, "min", "mins"),
        (secs, "sec", "secs"),
    ):
        if value:
            parts.append(f"{value} {singular if value == 1 else plural}")
    return " ".join(parts)


@dataclass
class ReportColumn:
    key: str
    header: str
    sortable: bool = True
    css_class: str = ""


@dataclass
class ReportRow:
    key: str
    cells: dict = field(default_factory=dict)
    attempt_id: int | None = None
    css_class: str = ""


@dataclass
class ReportEntry:
    """A user, plus the attempt shown on this row (None for users without attempts)."""

    user: object
    attempt: QuizAttempt | None = None


def _text_key(value) -> str:
    return str(value or "").lower()


_SORT_KEYS = {
    "uniqueid": lambda e: (e.user.id, e.attempt.attempt if e.attempt else 0),
    "fullname": lambda e: (_text_key(e.user.last_name), _text_key(e.user.first_name), e.user.id),
    "idnumber": lambda e: _text_key(getattr(user_profile(e.user), "idnumber", "")),
    "email": lambda e: _text_key(e.user.email),
    "institution": lambda e: _text_key(getattr(user_profile(e.user), "institution", "")),
    "department": lambda e: _text_key(getattr(user_profile(e.user), "department", "")),
    "state": lambda e: _text_key(e.attempt.state if e.attempt else ""),
}
# Rows without a value sort last in either direction.
_NULLABLE_SORT_KEYS = {
    "timestart": lambda e: e.attempt.timestart if e.attempt else None,
    "timefinish": lambda e: e.attempt.timefinish if e.attempt else None,
    "duration": lambda e: e.attempt.duration if e.attempt else None,
    "sumgrades": lambda e: e.attempt.sumgrades if e.attempt else None,
}


class ResponsesTable:
    """Column definitions and row rendering shared by both table flavours."""

    whichtries = WHICH_TRIES_LAST

    def __init__(self, quiz, *, options, questions, can_see_grades: bool):
        self.quiz = quiz
        self.options = options
        self.questions = questions
        self.can_see_grades = can_see_grades
        self.downloading = options.is_downloading
        self.identity_fields = identity_fields()

    # Columns

    def define_columns(self) -> list[ReportColumn]:
        columns: list[ReportColumn] = []
        if not self.downloading and self.options.checkboxcolumn:
            columns.append(ReportColumn("checkbox", "", sortable=False))
        columns.append(ReportColumn("fullname", "Name"))
        for name in self.identity_fields:
            columns.append(ReportColumn(name, IDENTITY_FIELD_LABELS[name]))
        columns.append(ReportColumn("state", "State"))
        if self.downloading:
            columns.append(ReportColumn("timestart", "Started on"))
            columns.append(ReportColumn("timefinish", "Completed"))
            columns.append(ReportColumn("duration", "Time taken"))
        if self.can_see_grades:
            columns.append(ReportColumn("sumgrades", f"Grade/{self.quiz.grade:.2f}", css_class="bold"))
        for question in self.questions:
            if self.options.showqtext:
                columns.append(
                    ReportColumn(f"question{question.slot}", f"Question {question.number}", sortable=False)
                )
            if self.options.showresponses:
                columns.append(
                    ReportColumn(f"response{question.slot}", f"Response {question.number}", sortable=False)
                )
            if self.options.showright:
                columns.append(
                    ReportColumn(f"right{question.slot}", f"Right answer {question.number}", sortable=False)
                )
        return columns

    # Entries

    def build_entries(self, attempts, users_without_attempts) -> list[ReportEntry]:
        entries = [ReportEntry(user=attempt.user, attempt=attempt) for attempt in attempts]
        entries.extend(ReportEntry(user=user) for user in users_without_attempts)
        return entries

    def sort_entries(self, entries: list[ReportEntry], sort: str = "", direction: str = "asc") -> list[ReportEntry]:
        descending = direction == "desc"
        ordered = sorted(entries, key=_SORT_KEYS["uniqueid"])
        value_of = _NULLABLE_SORT_KEYS.get(sort)
        if value_of is None:
            key = _SORT_KEYS.get(sort) or _SORT_KEYS["uniqueid"]
            return sorted(ordered, key=key, reverse=descending)
        present = [entry for entry in ordered if value_of(entry) is not None]
        missing = [entry for entry in ordered if value_of(entry) is None]
        return sorted(present, key=value_of, reverse=descending) + missing

    def paginate(self, entries: list[ReportEntry], page_number):
        paginator = Paginator(entries, self.options.pagesize)
        return paginator.get_page(page_number)

    # Rows

    def _empty(self) -> str:
        return "" if self.downloading else PLACEHOLDER

    def _question_attempts(self, entries) -> dict[int, dict[int, QuestionAttempt]]:
        attempt_ids = [entry.attempt.id for entry in entries if entry.attempt]
        by_attempt: dict[int, dict[int, QuestionAttempt]] = {}
        if not attempt_ids:
            return by_attempt
        rows = QuestionAttempt.objects.filter(quiz_attempt_id__in=attempt_ids).prefetch_related("steps")
        for qa in rows:
            by_attempt.setdefault(qa.quiz_attempt_id, {})[qa.slot] = qa
        return by_attempt

    def user_cells(self, entry: ReportEntry) -> dict:
        profile = user_profile(entry.user)
        cells = {"fullname": user_fullname(entry.user)}
        for name in self.identity_fields:
            if name == "email":
                cells[name] = entry.user.email or ""
            else:
                cells[name] = getattr(profile, name, "") if profile else ""
        return cells

    def attempt_cells(self, attempt: QuizAttempt | None) -> dict:
        empty = self._empty()
        if attempt is None:
            cells = {"state": empty, "timestart": empty, "timefinish": empty, "duration": empty}
            if self.can_see_grades:
                cells["sumgrades"] = empty
            return cells
        cells = {
            "checkbox": attempt.id,
            "state": attempt.get_state_display(),
            "timestart": format_timestamp(attempt.timestart),
            "timefinish": format_timestamp(attempt.timefinish) if attempt.state == QuizAttempt.STATE_FINISHED else "",
            "duration": format_duration(attempt.duration) if attempt.state == QuizAttempt.STATE_FINISHED else "",
        }
        if self.can_see_grades:
            if attempt.state != QuizAttempt.STATE_FINISHED:
                cells["sumgrades"] = empty
            elif attempt.sumgrades is None:
                cells["sumgrades"] = "Not yet graded"
            else:
                cells["sumgrades"] = format_grade(rescale_grade(attempt.sumgrades, self.quiz))
        return cells

    def question_cells(self, qa_by_slot: dict[int, QuestionAttempt]) -> dict:
        empty = self._empty()
        cells = {}
        for question in self.questions:
            qa = qa_by_slot.get(question.slot)
            if self.options.showqtext:
                cells[f"question{question.slot}"] = qa.questionsummary if qa else empty
            if self.options.showright:
                cells[f"right{question.slot}"] = qa.rightanswer if qa else empty
        return cells

    def response_rows(self, qa_by_slot: dict[int, QuestionAttempt]) -> list[dict]:
        """Response cells for each output row of one attempt."""
        empty = self._empty()
        return [
            {
                f"response{question.slot}": (
                    qa_by_slot[question.slot].responsesummary if question.slot in qa_by_slot else empty
                )
                for question in self.questions
            }
        ]

    def build_rows(self, entries: list[ReportEntry], graded_ids: set[int] | None = None) -> list[ReportRow]:
        graded_ids = graded_ids or set()
        qa_lookup = self._question_attempts(entries)
        rows: list[ReportRow] = []
        for entry in entries:
            attempt = entry.attempt
            base = {**self.user_cells(entry), **self.attempt_cells(attempt)}
            key = f"{entry.user.id}#{attempt.attempt if attempt else 0}"
            css_class = "gradedattempt" if attempt and attempt.id in graded_ids else ""
            if attempt is None:
                rows.append(ReportRow(key=key, cells=base))
                continue
            qa_by_slot = qa_lookup.get(attempt.id, {})
            question_cells = self.question_cells(qa_by_slot)
            for index, responses in enumerate(self.response_rows(qa_by_slot)):
                row_key = key if index == 0 else f"{key}#{index + 1}"
                rows.append(
                    ReportRow(
                        key=row_key,
                        cells={**base, **question_cells, **responses},
                        attempt_id=attempt.id,
                        css_class=css_class,
                    )
                )
        return rows


class LastResponsesTable(ResponsesTable):
    whichtries = WHICH_TRIES_LAST


class FirstOrAllResponsesTable(ResponsesTable):
    """Responses from the first try, or one output row per try."""

    def __init__(self, quiz, *, options, questions, can_see_grades: bool):
        super().__init__(quiz, options=options, questions=questions, can_see_grades=can_see_grades)
        self.whichtries = options.whichtries

    def response_rows(self, qa_by_slot: dict[int, QuestionAttempt]) -> list[dict]:
        empty = self._empty()
        tries_by_slot = {slot: qa.get_tries() for slot, qa in qa_by_slot.items()}
        if self.whichtries == WHICH_TRIES_ALL:
            row_count = max((len(tries) for tries in tries_by_slot.values()), default=0) or 1
        else:
            row_count = 1

        rows = []
        for index in range(row_count):
            cells = {}
            for question in self.questions:
                tries = tries_by_slot.get(question.slot) or []
                if index < len(tries):
                    cells[f"response{question.slot}"] = tries[index].responsesummary
                elif index == 0 and question.slot in qa_by_slot and not tries:
                    cells[f"response{question.slot}"] = ""
                else:
                    cells[f"response{question.slot}"] = empty
            rows.append(cells)
        return rows


def table_class_for(whichtries: str):
    if whichtries == WHICH_TRIES_LAST:
        return LastResponsesTable
    return FirstOrAllResponsesTable


__all__ = [
    "FirstOrAllResponsesTable",
    "LastResponsesTable",
    "ReportColumn",
    "ReportEntry",
    "ReportRow",
    "ResponsesTable",
    "format_duration",
    "format_timestamp",
    "identity_fields",
    "table_class_for",
]
