"""
memberscope Reporting Module
============================

Report generation for membership analysis results.

Components:
- report_builder.py: Renders rows into fixed column sets and exports them
- run_log.py: CSV audit trail of executed reports

Design Philosophy:
- Reports are structured data (ReportResult) that can be printed or exported
- Exports are flat delimited files, one line per report row
"""

from .report_builder import ReportBuilder, generate_text_report
from .run_log import RunLog
