from __future__ import annotations

from django import forms

from .services.report_options import ATTEMPTS_ALL_WITH, ATTEMPTS_CHOICES, WHICH_TRIES_CHOICES


class ReportSettingsForm(forms.Form):
    """Display options for the download-submissions report.

    Submitting with the `downloadsubmissions` button also requests the essay ZIP.
    """

    attempts = forms.ChoiceField(choices=ATTEMPTS_CHOICES, label="Attempts from")
    onlygraded = forms.BooleanField(required=False, label="Show only graded attempts")
    whichtries = forms.ChoiceField(choices=WHICH_TRIES_CHOICES, label="Which tries")
    showqtext = forms.BooleanField(required=False, label="Question text")
    showresponses = forms.BooleanField(required=False, label="Response")
    showright = forms.BooleanField(required=False, label="Right answer")
    pagesize = forms.IntegerField(min_value=1, max_value=1000, label="Page size")

    def __init__(self, *args, can_filter_all: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        if not can_filter_all:
            self.fields["attempts"].choices = [
                choice for choice in ATTEMPTS_CHOICES if choice[0] != ATTEMPTS_ALL_WITH
            ]
