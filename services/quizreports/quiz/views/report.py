"""Download-submissions report endpoints under /quiz/<id>/report/."""

import logging

from django.contrib.admin.views.decorators import staff_member_required
from django.http import FileResponse, HttpResponse
from django.shortcuts import render
from django.urls import reverse
from django.views.decorators.http import require_POST

from ..forms import ReportSettingsForm
from ..models import CourseModule, Group, Quiz, QuizAttempt
from ..services.attempts import (
    attempt_count_summary,
    course_students,
    get_significant_questions,
    get_users_attempts,
    graded_attempt_ids,
    group_students,
    report_attempts,
    report_users_without_attempts,
)
from ..services.essay_exports import export_essay_submissions
from ..services.grading import grading_method_notice, should_show_grades
from ..services.report_options import ATTEMPTS_ALL_WITH, DOWNLOAD_FORMATS, ReportOptions
from ..services.responses_table import table_class_for
from ..services.table_exports import (
    build_table_download_response,
    protect_report_download,
    report_download_filename,
)
from .shared import _audit, _parse_positive_ids, _safe_internal_redirect, _safe_report_return_path

logger = logging.getLogger(__name__)

REPORT_NAME = "responses"


def _load_quiz(quiz_id: int):
    return Quiz.objects.select_related("course", "course_module").filter(id=quiz_id).first()


def _course_groups(quiz) -> list[Group]:
    if quiz.course_module.group_mode == CourseModule.GROUPS_NONE:
        return []
    return list(Group.objects.filter(course_id=quiz.course_id).order_by("name", "id"))


def _current_group(groups: list[Group], raw) -> int:
    try:
        group_id = int(str(raw or "").strip())
    except ValueError:
        return 0
    return group_id if any(group.id == group_id for group in groups) else 0


def _table_sort(params, columns) -> tuple[str, str]:
    sortable = {column.key for column in columns if column.sortable}
    sort = (params.get("tsort") or "").strip()
    if sort not in sortable:
        sort = ""
    direction = "desc" if (params.get("tdir") or "").strip().lower() == "desc" else "asc"
    return sort, direction


def _column_headers(columns, options, *, sort: str, direction: str) -> list[dict]:
    headers = []
    for column in columns:
        is_sorted = column.key == sort
        next_direction = "desc" if is_sorted and direction == "asc" else "asc"
        headers.append(
            {
                "column": column,
                "sorted": is_sorted,
                "direction": direction if is_sorted else "",
                "sort_url": options.get_url(tsort=column.key, tdir=next_direction) if column.sortable else "",
            }
        )
    return headers


def _essay_zip_response(result) -> FileResponse:
    # FileResponse closes the temp file after streaming, which deletes it.
    response = FileResponse(
        result.archive,
        as_attachment=True,
        filename=result.filename or "submissions.zip",
        content_type="application/zip",
    )
    return protect_report_download(response)


@staff_member_required
def quiz_report_downloadsubmissions(request, quiz_id: int):
    quiz = _load_quiz(quiz_id)
    if not quiz:
        return HttpResponse("Not found", status=404)
    course = quiz.course

    can_delete = request.user.has_perm("quiz.delete_quizattempt")
    can_filter_all = request.user.has_perm("quiz.view_quizattempt")
    groups = _course_groups(quiz)
    group_id = _current_group(groups, request.GET.get("group"))

    form = None
    if request.method == "POST":
        form = ReportSettingsForm(request.POST, can_filter_all=can_filter_all)
    if form is not None and form.is_valid():
        options = ReportOptions.from_form(quiz, form.cleaned_data, group=group_id)
    else:
        options = ReportOptions.from_params(quiz, request.GET)
        options.group = group_id
    options = options.resolve(can_delete=can_delete, can_filter_all=can_filter_all)

    notices: list[str] = []
    if form is not None and form.is_valid() and "downloadsubmissions" in request.POST:
        result = export_essay_submissions(quiz, get_users_attempts(quiz))
        if result.has_archive:
            _audit(
                request,
                action="report.download_essay_submissions",
                quiz=quiz,
                target_type="Quiz",
                target_id=str(quiz.id),
                summary=f"Downloaded essay submissions for {quiz.name}",
                metadata={"file_count": result.file_count, "collisions": result.collisions},
            )
            return _essay_zip_response(result)
        notices.append(result.notice)

    if options.download and options.download not in DOWNLOAD_FORMATS:
        return HttpResponse("Unsupported download format", status=400)

    questions = get_significant_questions(quiz)
    can_see_grades = should_show_grades(quiz)
    table = table_class_for(options.whichtries)(
        quiz,
        options=options,
        questions=questions,
        can_see_grades=can_see_grades,
    )
    columns = table.define_columns()
    sort, direction = _table_sort(request.GET, columns)

    students = course_students(course)
    has_students = students.exists()
    allowed_users = students
    has_group_students = False
    if group_id:
        allowed_users = group_students(course, group_id)
        has_group_students = allowed_users.exists()
    has_questions = quiz.has_questions()
    show_table = has_questions and (
        (has_students and (not group_id or has_group_students)) or options.attempts == ATTEMPTS_ALL_WITH
    )

    entries = []
    graded_ids: set[int] = set()
    if show_table:
        entries = table.build_entries(
            report_attempts(
                quiz,
                attempts=options.attempts,
                onlygraded=options.onlygraded,
                allowed_users=allowed_users,
            ),
            report_users_without_attempts(quiz, attempts=options.attempts, allowed_users=allowed_users),
        )
        entries = table.sort_entries(entries, sort, direction)
        if can_see_grades:
            graded_ids = graded_attempt_ids(quiz)

    if options.is_downloading:
        rows = table.build_rows(entries, graded_ids)
        response = build_table_download_response(
            download=options.download,
            columns=columns,
            rows=rows,
            filename=report_download_filename(REPORT_NAME, course.shortname, quiz.name),
            title=f"{course.shortname} {quiz.name}",
        )
        _audit(
            request,
            action="report.download_table",
            quiz=quiz,
            target_type="Quiz",
            target_id=str(quiz.id),
            summary=f"Downloaded {options.download} responses for {quiz.name}",
            metadata={"format": options.download, "rows": len(rows), "whichtries": options.whichtries},
        )
        return response

    if not has_questions:
        notices.append("No questions have been added to this quiz yet.")
    elif not has_students:
        notices.append("No students enrolled in this course yet.")
    elif group_id and not has_group_students:
        notices.append("Nobody in this group.")

    page = table.paginate(entries, request.GET.get("page"))
    rows = table.build_rows(list(page.object_list), graded_ids)
    if form is None or form.is_valid():
        form = ReportSettingsForm(initial=options.get_initial_form_data(), can_filter_all=can_filter_all)

    return render(
        request,
        "quiz_report_downloadsubmissions.html",
        {
            "quiz": quiz,
            "course": course,
            "options": options,
            "form": form,
            "groups": groups,
            "current_group": group_id,
            "group_carry_params": sorted(
                (name, value) for name, value in options.get_url_params().items() if name != "group"
            ),
            "notices": notices,
            "attempt_summary": attempt_count_summary(quiz, group_id=group_id),
            "grading_notice": (
                grading_method_notice(quiz, onlygraded=options.onlygraded)
                if show_table and can_see_grades
                else ""
            ),
            "show_table": show_table,
            "headers": _column_headers(columns, options, sort=sort, direction=direction),
            "columns": columns,
            "rows": rows,
            "page": page,
            "page_urls": {
                "previous": (
                    options.get_url(tsort=sort, tdir=direction, page=page.previous_page_number())
                    if page.has_previous()
                    else ""
                ),
                "next": (
                    options.get_url(tsort=sort, tdir=direction, page=page.next_page_number())
                    if page.has_next()
                    else ""
                ),
            },
            "download_urls": [
                (fmt, options.get_url(tsort=sort, tdir=direction, download=fmt)) for fmt in DOWNLOAD_FORMATS
            ],
            "report_url": options.get_url(),
            "delete_url": reverse("quiz_report_delete_attempts", args=[quiz.id]),
        },
    )


@staff_member_required
@require_POST
def quiz_report_delete_attempts(request, quiz_id: int):
    quiz = _load_quiz(quiz_id)
    if not quiz:
        return HttpResponse("Not found", status=404)
    if not request.user.has_perm("quiz.delete_quizattempt"):
        return HttpResponse("Forbidden", status=403)

    fallback = reverse("quiz_report_downloadsubmissions", args=[quiz.id])
    return_to = _safe_report_return_path(request.POST.get("return_to"), fallback)

    attempt_ids = _parse_positive_ids(request.POST.getlist("attemptid"))
    targets = QuizAttempt.objects.filter(quiz=quiz, preview=False, id__in=attempt_ids)
    deleted_ids = sorted(targets.values_list("id", flat=True))
    if deleted_ids:
        targets.delete()
        _audit(
            request,
            action="report.delete_attempts",
            quiz=quiz,
            target_type="QuizAttempt",
            target_id=",".join(str(i) for i in deleted_ids)[:64],
            summary=f"Deleted {len(deleted_ids)} attempt(s) from {quiz.name}",
            metadata={"attempt_ids": deleted_ids},
        )
    else:
        logger.info("report_delete_attempts_noop quiz=%s requested=%s", quiz.id, attempt_ids)
    return _safe_internal_redirect(request, return_to, fallback=fallback)


__all__ = ["quiz_report_delete_attempts", "quiz_report_downloadsubmissions"]
