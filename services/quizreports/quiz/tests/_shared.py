import csv
import tempfile
import zipfile
from datetime import timedelta
from decimal import Decimal
from io import BytesIO, StringIO
from pathlib import Path
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import Client, RequestFactory, SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from ..models import (
    AuditEvent,
    Course,
    CourseModule,
    Enrolment,
    Group,
    Question,
    QuestionAttempt,
    QuestionAttemptStep,
    Quiz,
    QuizAttempt,
    QuizSlot,
    StepFile,
    StudentProfile,
)


def _build_quiz(
    *,
    shortname: str = "BIO101",
    fullname: str = "Biology 101",
    name: str = "Essay quiz",
    grade: str = "10",
    sumgrades: str = "2",
    grade_method: str = Quiz.GRADE_HIGHEST,
    group_mode: str = CourseModule.GROUPS_NONE,
) -> Quiz:
    """Create a course, its module and a quiz with no questions."""
    course = Course.objects.create(shortname=shortname, fullname=fullname)
    module = CourseModule.objects.create(course=course, group_mode=group_mode)
    return Quiz.objects.create(
        course=course,
        course_module=module,
        name=name,
        grade=Decimal(grade),
        sumgrades=Decimal(sumgrades),
        grade_method=grade_method,
    )


def _add_question(quiz: Quiz, *, slot: int, qtype: str = Question.TYPE_ESSAY, name: str = "") -> Question:
    question = Question.objects.create(qtype=qtype, name=name or f"Q{slot}", questiontext=f"Question {slot} text")
    QuizSlot.objects.create(quiz=quiz, question=question, slot=slot, maxmark=Decimal("1"))
    return question


def _add_student(
    course: Course,
    username: str,
    *,
    first_name: str = "",
    last_name: str = "",
    idnumber: str = "",
    email: str = "",
    enrol: bool = True,
):
    user = get_user_model().objects.create_user(
        username=username,
        password="pw12345",
        first_name=first_name,
        last_name=last_name,
        email=email,
    )
    if idnumber:
        StudentProfile.objects.create(user=user, idnumber=idnumber)
    if enrol:
        Enrolment.objects.create(course=course, user=user)
    return user


def _add_attempt(
    quiz: Quiz,
    user,
    *,
    attempt: int = 1,
    sumgrades=None,
    state: str = QuizAttempt.STATE_FINISHED,
    preview: bool = False,
) -> QuizAttempt:
    start = timezone.now() - timedelta(hours=1)
    return QuizAttempt.objects.create(
        quiz=quiz,
        user=user,
        attempt=attempt,
        state=state,
        preview=preview,
        sumgrades=None if sumgrades is None else Decimal(str(sumgrades)),
        timestart=start,
        timefinish=start + timedelta(minutes=20) if state == QuizAttempt.STATE_FINISHED else None,
    )


def _add_question_attempt(
    attempt: QuizAttempt,
    question: Question,
    *,
    slot: int,
    response: str = "",
    tries: tuple = (),
) -> QuestionAttempt:
    """Add a question attempt; each entry in `tries` becomes a submitted step."""
    qa = QuestionAttempt.objects.create(
        quiz_attempt=attempt,
        question=question,
        slot=slot,
        questionsummary=question.questiontext,
        rightanswer="Right",
        responsesummary=response,
    )
    QuestionAttemptStep.objects.create(question_attempt=qa, sequencenumber=0)
    for index, summary in enumerate(tries, start=1):
        QuestionAttemptStep.objects.create(
            question_attempt=qa,
            sequencenumber=index,
            state=QuestionAttemptStep.STATE_COMPLETE,
            is_try=True,
            responsesummary=summary,
        )
    return qa


def _attach_file(
    qa: QuestionAttempt,
    filename: str,
    content: bytes = b"essay body",
    *,
    filepath: str = "/",
    filearea: str = "attachments",
    sequencenumber: int | None = None,
) -> StepFile:
    """Attach a file to the latest step of `qa` (or a new step at `sequencenumber`)."""
    if sequencenumber is None:
        step = qa.steps.order_by("-sequencenumber").first()
    else:
        step, _ = QuestionAttemptStep.objects.get_or_create(
            question_attempt=qa,
            sequencenumber=sequencenumber,
            defaults={"state": QuestionAttemptStep.STATE_COMPLETE},
        )
    return StepFile.objects.create(
        step=step,
        filearea=filearea,
        filepath=filepath,
        filename=filename,
        file=SimpleUploadedFile(filename, content),
    )


def _zip_names(payload: bytes) -> list[str]:
    with zipfile.ZipFile(BytesIO(payload)) as archive:
        return sorted(archive.namelist())


def _create_staff(username: str = "staff", *, superuser: bool = True):
    return get_user_model().objects.create_user(
        username=username,
        password="pw12345",
        is_staff=True,
        is_superuser=superuser,
    )


__all__ = [name for name in globals() if not name.startswith("__")]
