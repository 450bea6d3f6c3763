"""Student, question and attempt queries behind the report."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Case, Exists, IntegerField, OuterRef, Q, Value, When
from django.db.models.functions import Coalesce

from ..models import QuestionAttempt, Question, Quiz, QuizAttempt, QuizSlot, StudentProfile
from .report_options import (
    ATTEMPTS_ALL_WITH,
    ATTEMPTS_ENROLLED_ALL,
    ATTEMPTS_ENROLLED_WITHOUT,
)

_ZERO_GRADE = Value(Decimal("0"), output_field=models.DecimalField(max_digits=10, decimal_places=5))


def course_students(course):
    """Active users enrolled in `course`."""
    User = get_user_model()
    return User.objects.filter(is_active=True, course_enrolments__course=course).distinct()


def group_students(course, group_id: int):
    return course_students(course).filter(course_groups__id=group_id)


def user_profile(user) -> StudentProfile | None:
    try:
        return user.quiz_profile
    except StudentProfile.DoesNotExist:
        return None


def user_fullname(user) -> str:
    name = f"{user.first_name or ''} {user.last_name or ''}".strip()
    return name or user.get_username()


@dataclass(frozen=True)
class SignificantQuestion:
    slot: int
    number: int
    question_id: int
    qtype: str
    name: str
    maxmark: Decimal


def get_significant_questions(quiz) -> list[SignificantQuestion]:
    """Slotted questions that carry a response, numbered in slot order."""
    questions: list[SignificantQuestion] = []
    number = 0
    for slot in QuizSlot.objects.filter(quiz=quiz).select_related("question").order_by("slot"):
        if slot.question.qtype == Question.TYPE_DESCRIPTION:
            continue
        number += 1
        questions.append(
            SignificantQuestion(
                slot=slot.slot,
                number=number,
                question_id=slot.question_id,
                qtype=slot.question.qtype,
                name=slot.question.name,
                maxmark=slot.maxmark,
            )
        )
    return questions


def _outranking_attempts(grade_method: str):
    """Finished sibling attempts that outrank the outer attempt under `grade_method`."""
    siblings = QuizAttempt.objects.filter(
        quiz=OuterRef("quiz"),
        user=OuterRef("user"),
        state=QuizAttempt.STATE_FINISHED,
        preview=False,
    )
    if grade_method == Quiz.GRADE_AVERAGE:
        return None
    if grade_method == Quiz.GRADE_FIRST:
        return siblings.filter(attempt__lt=OuterRef("attempt"))
    if grade_method == Quiz.GRADE_LAST:
        return siblings.filter(attempt__gt=OuterRef("attempt"))
    siblings = siblings.annotate(grade_value=Coalesce("sumgrades", _ZERO_GRADE))
    return siblings.filter(
        Q(grade_value__gt=OuterRef("grade_value"))
        | Q(grade_value=OuterRef("grade_value"), attempt__lt=OuterRef("attempt"))
    )


def annotate_graded_attempt(queryset, grade_method: str = Quiz.GRADE_HIGHEST):
    """Annotate `gradedattempt` (1/0) marking each user's representative finished attempt.

    Highest grade: no other finished attempt has a strictly higher grade, or the
    same grade with a lower attempt number. A missing grade counts as zero.
    """
    queryset = queryset.annotate(grade_value=Coalesce("sumgrades", _ZERO_GRADE))
    outranking = _outranking_attempts(grade_method)
    if outranking is None:
        return queryset.annotate(
            gradedattempt=Case(
                When(state=QuizAttempt.STATE_FINISHED, then=Value(1)),
                default=Value(0),
                output_field=IntegerField(),
            )
        )
    return queryset.annotate(has_better_attempt=Exists(outranking)).annotate(
        gradedattempt=Case(
            When(state=QuizAttempt.STATE_FINISHED, has_better_attempt=False, then=Value(1)),
            default=Value(0),
            output_field=IntegerField(),
        )
    )


def graded_attempt_ids(quiz, grade_method: str | None = None) -> set[int]:
    rows = annotate_graded_attempt(
        QuizAttempt.objects.filter(quiz=quiz, preview=False),
        grade_method or quiz.grade_method,
    ).filter(gradedattempt=1)
    return set(rows.values_list("id", flat=True))


@dataclass
class UserAttemptRecord:
    """One question attempt of one user, flattened for export."""

    uniqueid: str
    userid: int
    username: str
    idnumber: str
    firstname: str
    lastname: str
    email: str
    institution: str
    department: str
    qaid: int | None
    questionid: int | None
    slot: int | None
    attempt: int
    userattempt: int
    usageid: int
    state: str
    sumgrades: Decimal | None
    timestart: object
    timefinish: object
    duration: object
    gradedattempt: int

    @property
    def fullname(self) -> str:
        name = f"{self.firstname} {self.lastname}".strip()
        return name or self.username


def get_users_attempts(quiz) -> dict[str, UserAttemptRecord]:
    """Question attempts of enrolled users, keyed by `"<userid>#<question attempt id>"`.

    Preview attempts and inactive users are excluded. The graded flag always
    uses the highest-grade rule.
    """
    graded = graded_attempt_ids(quiz, Quiz.GRADE_HIGHEST)
    rows = (
        QuestionAttempt.objects.filter(
            quiz_attempt__quiz=quiz,
            quiz_attempt__preview=False,
            quiz_attempt__user__in=course_students(quiz.course),
        )
        .select_related("quiz_attempt__user__quiz_profile")
        .order_by("quiz_attempt__user_id", "quiz_attempt__attempt", "slot", "id")
    )

    records: dict[str, UserAttemptRecord] = {}
    for qa in rows:
        attempt = qa.quiz_attempt
        user = attempt.user
        profile = user_profile(user)
        key = f"{user.id}#{qa.id or 0}"
        records[key] = UserAttemptRecord(
            uniqueid=key,
            userid=user.id,
            username=user.get_username(),
            idnumber=profile.idnumber if profile else "",
            firstname=user.first_name or "",
            lastname=user.last_name or "",
            email=user.email or "",
            institution=profile.institution if profile else "",
            department=profile.department if profile else "",
            qaid=qa.id,
            questionid=qa.question_id,
            slot=qa.slot,
            attempt=attempt.id,
            userattempt=attempt.attempt,
            usageid=attempt.id,
            state=attempt.state,
            sumgrades=attempt.sumgrades,
            timestart=attempt.timestart,
            timefinish=attempt.timefinish,
            duration=attempt.duration,
            gradedattempt=1 if attempt.id in graded else 0,
        )
    return records


def report_attempts(quiz, *, attempts: str, onlygraded: bool, allowed_users=None):
    """Non-preview attempts shown by the report table, annotated with `gradedattempt`."""
    if attempts == ATTEMPTS_ENROLLED_WITHOUT:
        return QuizAttempt.objects.none()
    queryset = QuizAttempt.objects.filter(quiz=quiz, preview=False, user__is_active=True)
    if attempts != ATTEMPTS_ALL_WITH and allowed_users is not None:
        queryset = queryset.filter(user__in=allowed_users)
    queryset = annotate_graded_attempt(queryset, quiz.grade_method)
    if onlygraded:
        queryset = queryset.filter(gradedattempt=1)
    return queryset.select_related("user__quiz_profile")


def report_users_without_attempts(quiz, *, attempts: str, allowed_users):
    """Allowed users with no non-preview attempt (the rows shown without attempt data)."""
    if attempts not in (ATTEMPTS_ENROLLED_WITHOUT, ATTEMPTS_ENROLLED_ALL):
        return get_user_model().objects.none()
    attempted = QuizAttempt.objects.filter(quiz=quiz, preview=False).values("user_id")
    return allowed_users.exclude(id__in=attempted).select_related("quiz_profile")


def attempt_count_summary(quiz, *, group_id: int = 0) -> str:
    """`Attempts: N`, with the group share when a group is selected."""
    attempts = QuizAttempt.objects.filter(quiz=quiz, preview=False)
    total = attempts.count()
    if not total:
        return ""
    summary = f"Attempts: {total}"
    if group_id:
        in_group = attempts.filter(user__course_groups__id=group_id).count()
        summary += f" ({in_group} from this group)"
    return summary


__all__ = [
    "SignificantQuestion",
    "UserAttemptRecord",
    "annotate_graded_attempt",
    "attempt_count_summary",
    "course_students",
    "get_significant_questions",
    "get_users_attempts",
    "graded_attempt_ids",
    "group_students",
    "report_attempts",
    "report_users_without_attempts",
    "user_fullname",
    "user_profile",
]
