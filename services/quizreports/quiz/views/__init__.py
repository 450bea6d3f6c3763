"""Export surface for quiz.views.

Endpoints live in submodules by concern:
- quiz.views.report
- quiz.views.health
"""

from .health import *  # noqa: F401,F403
from .report import *  # noqa: F401,F403
