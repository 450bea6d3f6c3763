from .test_attempts import (
    GradedAttemptQueryTests,
    ReportQueryTests,
    SignificantQuestionTests,
    UsersAttemptsTests,
)
from .test_commands import (
    ExportEssaySubmissionsCommandTests,
    StepFileCleanupSignalTests,
)
from .test_essay_exports import (
    ArchivePathHelperTests,
    EssayExportTests,
)
from .test_report_options import (
    ReportOptionsTests,
    ReportSettingsFormTests,
)
from .test_report_views import (
    AuditIpTests,
    DeleteAttemptsTests,
    EssaySubmissionDownloadTests,
    HealthzTests,
    ReportPageTests,
    TableDownloadTests,
)
from .test_table_exports import (
    ResponsesTableTests,
    TableExportHelperTests,
)

__all__ = [
    "AuditIpTests",
    "ArchivePathHelperTests",
    "DeleteAttemptsTests",
    "EssayExportTests",
    "EssaySubmissionDownloadTests",
    "ExportEssaySubmissionsCommandTests",
    "GradedAttemptQueryTests",
    "HealthzTests",
    "ReportOptionsTests",
    "ReportPageTests",
    "ReportQueryTests",
    "ReportSettingsFormTests",
    "ResponsesTableTests",
    "SignificantQuestionTests",
    "StepFileCleanupSignalTests",
    "TableDownloadTests",
    "TableExportHelperTests",
    "UsersAttemptsTests",
]
