"""Grade display helpers for the report."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ..models import Quiz

_TWO_PLACES = Decimal("0.01")


def should_show_grades(quiz) -> bool:
    """Grades are meaningful only when the quiz has a max grade and marks to scale from."""
    return bool(quiz.grade and quiz.grade > 0 and quiz.sumgrades and quiz.sumgrades > 0)


def rescale_grade(sumgrades, quiz) -> Decimal | None:
    if sumgrades is None or not should_show_grades(quiz):
        return None
    value = Decimal(sumgrades) / Decimal(quiz.sumgrades) * Decimal(quiz.grade)
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_grade(value: Decimal | None) -> str:
    if value is None:
        return ""
    return f"{value:.2f}"


def grading_method_notice(quiz, *, onlygraded: bool) -> str:
    """Describe which attempt counts, mirroring the row highlighting."""
    if onlygraded:
        return "Only showing the attempt that is graded for each user."
    if quiz.grade_method == Quiz.GRADE_AVERAGE:
        return "This quiz uses the grading method: Average grade. Every finished attempt counts towards the grade."
    label = dict(Quiz.GRADE_METHOD_CHOICES).get(quiz.grade_method, quiz.grade_method)
    return (
        f"This quiz uses the grading method: {label}. "
        "The graded attempt for each user is highlighted in this table."
    )


__all__ = ["format_grade", "grading_method_notice", "rescale_grade", "should_show_grades"]
