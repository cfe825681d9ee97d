"""
Housekeeper Reporting Module.

Builds run reports and persists them to the append-only run log.
"""

from .report import (
    ReportSeverity,
    RunReport,
    ShadowFigures,
    SpaceFigures,
    UsageFractions,
    build_report,
)
from .run_log import RunLog, WriteResult

__all__ = [
    "ReportSeverity",
    "RunReport",
    "ShadowFigures",
    "SpaceFigures",
    "UsageFractions",
    "build_report",
    "RunLog",
    "WriteResult",
]
