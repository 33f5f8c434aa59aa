"""
Reporting services.
"""

from maxreward.services.reporting.cp_report_service import CpReportService


__all__ = [
    "CpReportService",
]
