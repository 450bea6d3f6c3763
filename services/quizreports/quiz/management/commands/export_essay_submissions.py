"""Write a quiz's essay-question attachments to a ZIP on disk."""

from __future__ import annotations

import shutil
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from quiz.models import Quiz
from quiz.services.attempts import get_users_attempts
from quiz.services.essay_exports import collect_essay_files, export_essay_submissions


class Command(BaseCommand):
    help = "Export essay attachments from every non-preview attempt of enrolled students to a ZIP file."

    def add_arguments(self, parser):
        parser.add_argument("quiz_id", type=int)
        parser.add_argument(
            "--output",
            default="",
            help="Path to write the ZIP to (defaults to the report filename in the current directory).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the archive entries without writing a file.",
        )

    def handle(self, *args, **opts):
        quiz = Quiz.objects.select_related("course").filter(id=opts["quiz_id"]).first()
        if quiz is None:
            raise CommandError(f"Quiz {opts['quiz_id']} does not exist.")

        users_attempts = get_users_attempts(quiz)
        self.stdout.write(f"Quiz: {quiz.name} ({quiz.course.fullname})")
        self.stdout.write(f"Question attempts considered: {len(users_attempts)}")

        if opts["dry_run"]:
            collection = collect_essay_files(users_attempts)
            for path in collection.files:
                self.stdout.write(f"  {path}")
            self.stdout.write(self.style.WARNING(f"[dry-run] Would export files: {len(collection)}"))
            return

        result = export_essay_submissions(quiz, users_attempts)
        if not result.has_archive:
            raise CommandError(result.notice)

        output = Path(str(opts.get("output") or "").strip() or result.filename)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            with output.open("wb") as fh:
                shutil.copyfileobj(result.archive, fh)
        except OSError as exc:
            raise CommandError(f"Failed to write ZIP to '{output}': {exc}") from exc
        finally:
            result.archive.close()

        if result.collisions:
            self.stdout.write(self.style.WARNING(f"Renamed colliding entries: {result.collisions}"))
        self.stdout.write(self.style.SUCCESS(f"ZIP written: {output} ({result.file_count} files)"))
