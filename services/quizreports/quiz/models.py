"""Data model for quiz attempt reporting.

Staff manage courses, quizzes and questions in Django admin.
Attempt rows are written by the quiz runtime; the report only reads them.

Relationships follow the usual quiz engine layout:
user -> quiz attempt -> question attempt -> step -> attached files.
"""

import re
import secrets
from datetime import timedelta
from pathlib import Path

from django.conf import settings
from django.db import models
from django.utils import timezone


class Course(models.Model):
    """A course that owns quizzes, enrolments and groups."""

    shortname = models.CharField(max_length=100)
    fullname = models.CharField(max_length=254)

    class Meta:
        ordering = ["shortname", "id"]

    def __str__(self) -> str:
        return self.shortname


class CourseModule(models.Model):
    """Placement of one activity inside a course.

    `group_mode` controls whether the report offers a group selector.
    """

    GROUPS_NONE = "none"
    GROUPS_SEPARATE = "separate"
    GROUPS_VISIBLE = "visible"
    GROUP_MODE_CHOICES = [
        (GROUPS_NONE, "No groups"),
        (GROUPS_SEPARATE, "Separate groups"),
        (GROUPS_VISIBLE, "Visible groups"),
    ]

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="modules")
    group_mode = models.CharField(max_length=16, choices=GROUP_MODE_CHOICES, default=GROUPS_NONE)

    def __str__(self) -> str:
        return f"{self.course.shortname}: module {self.id}"


class Quiz(models.Model):
    GRADE_HIGHEST = "highest"
    GRADE_AVERAGE = "average"
    GRADE_FIRST = "first"
    GRADE_LAST = "last"
    GRADE_METHOD_CHOICES = [
        (GRADE_HIGHEST, "Highest grade"),
        (GRADE_AVERAGE, "Average grade"),
        (GRADE_FIRST, "First attempt"),
        (GRADE_LAST, "Last attempt"),
    ]

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="quizzes")
    course_module = models.OneToOneField(CourseModule, on_delete=models.CASCADE, related_name="quiz")
    name = models.CharField(max_length=255)
    # Maximum grade the quiz is scaled to.
    grade = models.DecimalField(max_digits=10, decimal_places=5, default=10)
    # Total of the slot max marks.
    sumgrades = models.DecimalField(max_digits=10, decimal_places=5, default=0)
    grade_method = models.CharField(max_length=16, choices=GRADE_METHOD_CHOICES, default=GRADE_HIGHEST)

    class Meta:
        ordering = ["course_id", "name", "id"]
        verbose_name_plural = "quizzes"

    def has_questions(self) -> bool:
        return self.slots.exists()

    def __str__(self) -> str:
        return self.name


class Question(models.Model):
    TYPE_ESSAY = "essay"
    TYPE_MULTICHOICE = "multichoice"
    TYPE_SHORTANSWER = "shortanswer"
    TYPE_TRUEFALSE = "truefalse"
    TYPE_NUMERICAL = "numerical"
    TYPE_DESCRIPTION = "description"
    TYPE_CHOICES = [
        (TYPE_ESSAY, "Essay"),
        (TYPE_MULTICHOICE, "Multiple choice"),
        (TYPE_SHORTANSWER, "Short answer"),
        (TYPE_TRUEFALSE, "True/False"),
        (TYPE_NUMERICAL, "Numerical"),
        (TYPE_DESCRIPTION, "Description"),
    ]

    qtype = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_MULTICHOICE)
    name = models.CharField(max_length=255)
    questiontext = models.TextField(blank=True, default="")

    def __str__(self) -> str:
        return f"{self.name} ({self.qtype})"


class QuizSlot(models.Model):
    """Position of one question inside a quiz."""

    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name="slots")
    question = models.ForeignKey(Question, on_delete=models.PROTECT, related_name="slots")
    slot = models.PositiveIntegerField()
    page = models.PositiveIntegerField(default=1)
    maxmark = models.DecimalField(max_digits=12, decimal_places=7, default=1)

    class Meta:
        ordering = ["quiz_id", "slot"]
        constraints = [
            models.UniqueConstraint(fields=["quiz", "slot"], name="uniq_quiz_slot"),
        ]

    def __str__(self) -> str:
        return f"{self.quiz.name} slot {self.slot}"


class StudentProfile(models.Model):
    """Institution-facing identity fields shown in report user columns."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="quiz_profile",
    )
    idnumber = models.CharField(max_length=255, blank=True, default="")
    institution = models.CharField(max_length=255, blank=True, default="")
    department = models.CharField(max_length=255, blank=True, default="")

    def __str__(self) -> str:
        return self.idnumber or str(self.user)


class Enrolment(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrolments")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="course_enrolments",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["course", "user"], name="uniq_course_enrolment"),
        ]
        indexes = [
            models.Index(fields=["user", "course"], name="quiz_enrol_usrcrs_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user} in {self.course.shortname}"


class Group(models.Model):
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="groups")
    name = models.CharField(max_length=254)
    members = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name="course_groups")

    class Meta:
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return f"{self.course.shortname}: {self.name}"


class QuizAttempt(models.Model):
    STATE_IN_PROGRESS = "inprogress"
    STATE_OVERDUE = "overdue"
    STATE_FINISHED = "finished"
    STATE_ABANDONED = "abandoned"
    STATE_CHOICES = [
        (STATE_IN_PROGRESS, "In progress"),
        (STATE_OVERDUE, "Overdue"),
        (STATE_FINISHED, "Finished"),
        (STATE_ABANDONED, "Never submitted"),
    ]

    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name="attempts")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="quiz_attempts",
    )
    # 1-based attempt number for this user on this quiz.
    attempt = models.PositiveIntegerField(default=1)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_IN_PROGRESS)
    preview = models.BooleanField(default=False)
    sumgrades = models.DecimalField(max_digits=10, decimal_places=5, null=True, blank=True)
    timestart = models.DateTimeField(default=timezone.now)
    timefinish = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["quiz_id", "user_id", "attempt"]
        constraints = [
            models.UniqueConstraint(fields=["quiz", "user", "attempt"], name="uniq_quiz_user_attempt"),
        ]
        indexes = [
            models.Index(fields=["quiz", "user", "state"], name="quiz_attempt_qzusst_idx"),
            models.Index(fields=["quiz", "preview"], name="quiz_attempt_qzprev_idx"),
        ]

    @property
    def duration(self):
        if self.timefinish is None:
            return None
        if self.timefinish > self.timestart:
            return self.timefinish - self.timestart
        return timedelta(0)

    def __str__(self) -> str:
        return f"{self.quiz.name}: {self.user} attempt {self.attempt}"


class QuestionAttempt(models.Model):
    """One question inside one quiz attempt.

    The summaries are plain-text renderings kept for reporting.
    """

    quiz_attempt = models.ForeignKey(QuizAttempt, on_delete=models.CASCADE, related_name="question_attempts")
    question = models.ForeignKey(Question, on_delete=models.PROTECT, related_name="question_attempts")
    slot = models.PositiveIntegerField()
    questionsummary = models.TextField(blank=True, default="")
    rightanswer = models.TextField(blank=True, default="")
    responsesummary = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["quiz_attempt_id", "slot"]
        constraints = [
            models.UniqueConstraint(fields=["quiz_attempt", "slot"], name="uniq_question_attempt_slot"),
        ]

    def get_type_name(self) -> str:
        return self.question.qtype

    def get_tries(self) -> list["QuestionAttemptStep"]:
        steps = sorted(self.steps.all(), key=lambda step: step.sequencenumber)
        return [step for step in steps if step.is_try]

    def get_last_qt_files(self, filearea: str) -> list["StepFile"]:
        """Return files in `filearea` from the latest step that has any."""
        latest = (
            StepFile.objects.filter(step__question_attempt=self, filearea=filearea)
            .order_by("-step__sequencenumber")
            .values_list("step_id", flat=True)
            .first()
        )
        if latest is None:
            return []
        return list(
            StepFile.objects.filter(step_id=latest, filearea=filearea).order_by("filepath", "filename", "id")
        )

    def __str__(self) -> str:
        return f"Question attempt {self.id} (slot {self.slot})"


class QuestionAttemptStep(models.Model):
    STATE_TODO = "todo"
    STATE_COMPLETE = "complete"
    STATE_NEEDS_GRADING = "needsgrading"
    STATE_GRADED_RIGHT = "gradedright"
    STATE_GRADED_WRONG = "gradedwrong"
    STATE_GRADED_PARTIAL = "gradedpartial"
    STATE_CHOICES = [
        (STATE_TODO, "Not yet answered"),
        (STATE_COMPLETE, "Answer saved"),
        (STATE_NEEDS_GRADING, "Requires grading"),
        (STATE_GRADED_RIGHT, "Correct"),
        (STATE_GRADED_WRONG, "Incorrect"),
        (STATE_GRADED_PARTIAL, "Partially correct"),
    ]

    question_attempt = models.ForeignKey(QuestionAttempt, on_delete=models.CASCADE, related_name="steps")
    sequencenumber = models.PositiveIntegerField()
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_TODO)
    # True when this step records a submitted try.
    is_try = models.BooleanField(default=False)
    responsesummary = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["question_attempt_id", "sequencenumber"]
        constraints = [
            models.UniqueConstraint(
                fields=["question_attempt", "sequencenumber"],
                name="uniq_question_attempt_step_seq",
            ),
        ]

    def __str__(self) -> str:
        return f"Step {self.sequencenumber} of question attempt {self.question_attempt_id}"


def _step_file_upload_to(instance: "StepFile", filename: str) -> str:
    """Storage path for files attached to question attempt steps.

    The stored name is random; the display name lives in `filename`.
    """
    ext = Path(str(filename or "")).suffix.lower()
    if not re.fullmatch(r"\.[a-z0-9]{1,16}", ext or ""):
        ext = ""
    stored_name = f"{secrets.token_hex(16)}{ext}"

    question_attempt = instance.step.question_attempt
    return (
        f"question_files/attempt_{question_attempt.quiz_attempt_id}"
        f"/qa_{question_attempt.id}/{stored_name}"
    )


class StepFile(models.Model):
    """A file a student attached to a question response."""

    step = models.ForeignKey(QuestionAttemptStep, on_delete=models.CASCADE, related_name="files")
    filearea = models.CharField(max_length=50, default="attachments")
    filepath = models.CharField(max_length=255, default="/")
    filename = models.CharField(max_length=255)
    file = models.FileField(upload_to=_step_file_upload_to)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["step_id", "filepath", "filename", "id"]
        indexes = [
            models.Index(fields=["step", "filearea"], name="quiz_stepfile_stparea_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.filepath}{self.filename}"


class AuditEvent(models.Model):
    """Immutable staff-action record for report downloads and attempt deletions."""

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quiz_audit_events",
    )
    quiz = models.ForeignKey(
        Quiz,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )
    action = models.CharField(max_length=80)
    target_type = models.CharField(max_length=80, blank=True, default="")
    target_id = models.CharField(max_length=64, blank=True, default="")
    summary = models.CharField(max_length=255, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["created_at"], name="quiz_auditev_created_idx"),
            models.Index(fields=["action", "created_at"], name="quiz_auditev_action_idx"),
            models.Index(fields=["quiz", "created_at"], name="quiz_auditev_quiz_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("AuditEvent is append-only and cannot be updated.")
        return super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.created_at.isoformat()} {self.action} {self.target_type}:{self.target_id}"
