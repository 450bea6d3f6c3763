from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import quiz.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("shortname", models.CharField(max_length=100)),
                ("fullname", models.CharField(max_length=254)),
            ],
            options={"ordering": ["shortname", "id"]},
        ),
        migrations.CreateModel(
            name="CourseModule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "group_mode",
                    models.CharField(
                        choices=[
                            ("none", "No groups"),
                            ("separate", "Separate groups"),
                            ("visible", "Visible groups"),
                        ],
                        default="none",
                        max_length=16,
                    ),
                ),
                (
                    "course",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="modules", to="quiz.course"),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Question",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "qtype",
                    models.CharField(
                        choices=[
                            ("essay", "Essay"),
                            ("multichoice", "Multiple choice"),
                            ("shortanswer", "Short answer"),
                            ("truefalse", "True/False"),
                            ("numerical", "Numerical"),
                            ("description", "Description"),
                        ],
                        default="multichoice",
                        max_length=32,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("questiontext", models.TextField(blank=True, default="")),
            ],
        ),
        migrations.CreateModel(
            name="Quiz",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("grade", models.DecimalField(decimal_places=5, default=10, max_digits=10)),
                ("sumgrades", models.DecimalField(decimal_places=5, default=0, max_digits=10)),
                (
                    "grade_method",
                    models.CharField(
                        choices=[
                            ("highest", "Highest grade"),
                            ("average", "Average grade"),
                            ("first", "First attempt"),
                            ("last", "Last attempt"),
                        ],
                        default="highest",
                        max_length=16,
                    ),
                ),
                (
                    "course",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="quizzes", to="quiz.course"),
                ),
                (
                    "course_module",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quiz",
                        to="quiz.coursemodule",
                    ),
                ),
            ],
            options={"ordering": ["course_id", "name", "id"], "verbose_name_plural": "quizzes"},
        ),
        migrations.CreateModel(
            name="QuizSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("slot", models.PositiveIntegerField()),
                ("page", models.PositiveIntegerField(default=1)),
                ("maxmark", models.DecimalField(decimal_places=7, default=1, max_digits=12)),
                (
                    "question",
                    models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="slots", to="quiz.question"),
                ),
                (
                    "quiz",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="slots", to="quiz.quiz"),
                ),
            ],
            options={"ordering": ["quiz_id", "slot"]},
        ),
        migrations.AddConstraint(
            model_name="quizslot",
            constraint=models.UniqueConstraint(fields=("quiz", "slot"), name="uniq_quiz_slot"),
        ),
        migrations.CreateModel(
            name="StudentProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("idnumber", models.CharField(blank=True, default="", max_length=255)),
                ("institution", models.CharField(blank=True, default="", max_length=255)),
                ("department", models.CharField(blank=True, default="", max_length=255)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quiz_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Enrolment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "course",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="enrolments", to="quiz.course"),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="course_enrolments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.AddConstraint(
            model_name="enrolment",
            constraint=models.UniqueConstraint(fields=("course", "user"), name="uniq_course_enrolment"),
        ),
        migrations.AddIndex(
            model_name="enrolment",
            index=models.Index(fields=["user", "course"], name="quiz_enrol_usrcrs_idx"),
        ),
        migrations.CreateModel(
            name="Group",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=254)),
                (
                    "course",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="groups", to="quiz.course"),
                ),
                (
                    "members",
                    models.ManyToManyField(blank=True, related_name="course_groups", to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={"ordering": ["name", "id"]},
        ),
        migrations.CreateModel(
            name="QuizAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("attempt", models.PositiveIntegerField(default=1)),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("inprogress", "In progress"),
                            ("overdue", "Overdue"),
                            ("finished", "Finished"),
                            ("abandoned", "Never submitted"),
                        ],
                        default="inprogress",
                        max_length=16,
                    ),
                ),
                ("preview", models.BooleanField(default=False)),
                ("sumgrades", models.DecimalField(blank=True, decimal_places=5, max_digits=10, null=True)),
                ("timestart", models.DateTimeField(default=django.utils.timezone.now)),
                ("timefinish", models.DateTimeField(blank=True, null=True)),
                (
                    "quiz",
                    models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attempts", to="quiz.quiz"),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quiz_attempts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["quiz_id", "user_id", "attempt"]},
        ),
        migrations.AddConstraint(
            model_name="quizattempt",
            constraint=models.UniqueConstraint(fields=("quiz", "user", "attempt"), name="uniq_quiz_user_attempt"),
        ),
        migrations.AddIndex(
            model_name="quizattempt",
            index=models.Index(fields=["quiz", "user", "state"], name="quiz_attempt_qzusst_idx"),
        ),
        migrations.AddIndex(
            model_name="quizattempt",
            index=models.Index(fields=["quiz", "preview"], name="quiz_attempt_qzprev_idx"),
        ),
        migrations.CreateModel(
            name="QuestionAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("slot", models.PositiveIntegerField()),
                ("questionsummary", models.TextField(blank=True, default="")),
                ("rightanswer", models.TextField(blank=True, default="")),
                ("responsesummary", models.TextField(blank=True, default="")),
                (
                    "question",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="question_attempts",
                        to="quiz.question",
                    ),
                ),
                (
                    "quiz_attempt",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="question_attempts",
                        to="quiz.quizattempt",
                    ),
                ),
            ],
            options={"ordering": ["quiz_attempt_id", "slot"]},
        ),
        migrations.AddConstraint(
            model_name="questionattempt",
            constraint=models.UniqueConstraint(fields=("quiz_attempt", "slot"), name="uniq_question_attempt_slot"),
        ),
        migrations.CreateModel(
            name="QuestionAttemptStep",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sequencenumber", models.PositiveIntegerField()),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("todo", "Not yet answered"),
                            ("complete", "Answer saved"),
                            ("needsgrading", "Requires grading"),
                            ("gradedright", "Correct"),
                            ("gradedwrong", "Incorrect"),
                            ("gradedpartial", "Partially correct"),
                        ],
                        default="todo",
                        max_length=16,
                    ),
                ),
                ("is_try", models.BooleanField(default=False)),
                ("responsesummary", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "question_attempt",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="steps",
                        to="quiz.questionattempt",
                    ),
                ),
            ],
            options={"ordering": ["question_attempt_id", "sequencenumber"]},
        ),
        migrations.AddConstraint(
            model_name="questionattemptstep",
            constraint=models.UniqueConstraint(
                fields=("question_attempt", "sequencenumber"),
                name="uniq_question_attempt_step_seq",
            ),
        ),
        migrations.CreateModel(
            name="StepFile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("filearea", models.CharField(default="attachments", max_length=50)),
                ("filepath", models.CharField(default="/", max_length=255)),
                ("filename", models.CharField(max_length=255)),
                ("file", models.FileField(upload_to=quiz.models._step_file_upload_to)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "step",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="files",
                        to="quiz.questionattemptstep",
                    ),
                ),
            ],
            options={"ordering": ["step_id", "filepath", "filename", "id"]},
        ),
        migrations.AddIndex(
            model_name="stepfile",
            index=models.Index(fields=["step", "filearea"], name="quiz_stepfile_stparea_idx"),
        ),
        migrations.CreateModel(
            name="AuditEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=80)),
                ("target_type", models.CharField(blank=True, default="", max_length=80)),
                ("target_id", models.CharField(blank=True, default="", max_length=64)),
                ("summary", models.CharField(blank=True, default="", max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quiz_audit_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "quiz",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_events",
                        to="quiz.quiz",
                    ),
                ),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
        migrations.AddIndex(
            model_name="auditevent",
            index=models.Index(fields=["created_at"], name="quiz_auditev_created_idx"),
        ),
        migrations.AddIndex(
            model_name="auditevent",
            index=models.Index(fields=["action", "created_at"], name="quiz_auditev_action_idx"),
        ),
        migrations.AddIndex(
            model_name="auditevent",
            index=models.Index(fields=["quiz", "created_at"], name="quiz_auditev_quiz_idx"),
        ),
    ]
