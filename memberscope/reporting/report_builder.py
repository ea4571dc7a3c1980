"""
Report Builder Module
=====================

Turns analysis output into tabular reports.

Each report kind has a fixed column set:
- diff: User1Group, User1GroupDomain, User2Group, User2GroupDomain
- common: CommonGroup, CommonGroupDomain
- access: Group, GroupDN, GroupDomain, Members, AccessCount
- reach: Identity, IdentityDN, Via, Depth
- empty-groups: Group, GroupDN, GroupDomain, ParentPath

Design Decisions:
-----------------
1. Rows are rendered into pandas DataFrames, which also write the delimited
   files, so the column order is fixed in one place
2. Every build_* method returns a ReportResult that the CLI can print and
   the run log can record
3. Nothing here talks to the directory
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from ..model.schemas import (
    ACCESS_COLUMNS,
    COMMON_COLUMNS,
    DIFF_COLUMNS,
    EMPTY_GROUP_COLUMNS,
    REACH_COLUMNS,
    AccessEntry,
    CompareMode,
    ComparisonRow,
    GroupIdentity,
    ReachEntry,
    ReportResult,
)


def safe_filename(name: str) -> str:
    """Replace anything that is not a word character, dot or dash."""
    return re.sub(r"[^\w.-]+", "_", name).strip("_") or "report"


def to_frame(rows: list[dict], columns: list[str]) -> pd.DataFrame:
    """Build a DataFrame with exactly the given columns, even when empty."""
    return pd.DataFrame(rows, columns=columns)


class ReportBuilder:
    """Builds and exports membership reports.

    Usage:
        builder = ReportBuilder(output_dir="output")
        result = builder.build_comparison(rows, CompareMode.DIFF, ["jdoe", "asmith"])
        print(result.report_path)
    """

    def __init__(
        self,
        output_dir: str = "output",
        delimiter: str = ",",
        encoding: str = "utf-8"
    ):
        """Initialize the report builder.

        Args:
            output_dir: Directory for output files
            delimiter: Field delimiter of exported files
            encoding: Encoding of exported files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.delimiter = delimiter
        self.encoding = encoding

    def _export(self, frame: pd.DataFrame, filename: str) -> str:
        path = self.output_dir / filename
        frame.to_csv(path, sep=self.delimiter, index=False, encoding=self.encoding)
        return str(path)

    def _result(
        self,
        operation: str,
        subjects: list,
        columns: list[str],
        rows: list[dict],
        filename: Optional[str],
        metadata: Optional[dict] = None
    ) -> ReportResult:
        result = ReportResult(
            operation=operation,
            subjects=list(subjects),
            columns=list(columns),
            rows=rows,
            metadata={
                'timestamp': datetime.now().isoformat(),
                **(metadata or {}),
            }
        )
        if filename:
            result.report_path = self._export(to_frame(rows, columns), filename)
        return result

    def build_comparison(
        self,
        rows: list[ComparisonRow],
        mode: CompareMode,
        subjects: list[str],
        filename: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> ReportResult:
        """Build a diff or common report.

        Args:
            rows: Comparator output
            mode: Comparison mode the rows were produced with
            subjects: The two identity identifiers
            filename: Export file name (defaults to <mode>_<id1>_<id2>.csv,
                empty string disables export)
            metadata: Extra metadata to carry

        Returns:
            ReportResult
        """
        mode = CompareMode.from_string(mode)
        columns = COMMON_COLUMNS if mode is CompareMode.COMMON else DIFF_COLUMNS
        if filename is None:
            filename = safe_filename(f"{mode.value}_{'_'.join(subjects)}") + ".csv"
        return self._result(
            mode.value,
            subjects,
            columns,
            [row.to_dict(mode) for row in rows],
            filename,
            metadata
        )

    def build_access(
        self,
        entries: list[AccessEntry],
        subjects: list[str],
        filename: Optional[str] = "access.csv",
        metadata: Optional[dict] = None
    ) -> ReportResult:
        """Build the group access (frequency) report."""
        return self._result(
            "access",
            subjects,
            ACCESS_COLUMNS,
            [entry.to_dict() for entry in entries],
            filename,
            metadata
        )

    def build_reach(
        self,
        entries: list[ReachEntry],
        group_dn: str,
        filename: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> ReportResult:
        """Build the report of identities reaching one group."""
        if filename is None:
            name = GroupIdentity.from_dn(group_dn).display_name or "group"
            filename = safe_filename(f"reach_{name}") + ".csv"
        return self._result(
            "reach",
            [group_dn],
            REACH_COLUMNS,
            [entry.to_dict() for entry in entries],
            filename,
            metadata
        )

    def build_empty_groups(
        self,
        group_dns: Iterable[str],
        search_base: str,
        filename: Optional[str] = "empty_groups.csv",
        metadata: Optional[dict] = None
    ) -> ReportResult:
        """Build the report of groups without members."""
        rows = []
        for dn in group_dns:
            group = GroupIdentity.from_dn(dn)
            rows.append({
                "Group": group.display_name,
                "GroupDN": dn,
                "GroupDomain": group.domain,
                "ParentPath": group.parent_path,
            })
        return self._result(
            "empty-groups",
            [search_base],
            EMPTY_GROUP_COLUMNS,
            rows,
            filename,
            metadata
        )


def generate_text_report(result: ReportResult, max_rows: Optional[int] = 50) -> str:
    """Generate a text-based report summary.

    Args:
        result: ReportResult to summarize
        max_rows: Row limit for the table (None for all rows)

    Returns:
        Formatted text report
    """
    lines = [
        "=" * 60,
        f"memberscope - {result.operation} report",
        "=" * 60,
        "",
        f"Generated: {result.metadata.get('timestamp', 'Unknown')}",
        f"Subjects: {', '.join(str(s) for s in result.subjects)}",
        f"Rows: {result.row_count}",
        "",
    ]

    if result.rows:
        frame = to_frame(result.rows, result.columns)
        if max_rows is not None and len(frame) > max_rows:
            lines.append(frame.head(max_rows).to_string(index=False))
            lines.append(f"... {len(frame) - max_rows} more rows")
        else:
            lines.append(frame.to_string(index=False))
    else:
        lines.append("(no rows)")

    if result.report_path:
        lines.extend([
            "",
            f"Saved to: {result.report_path}",
        ])

    lines.extend([
        "",
        "=" * 60,
    ])

    return "\n".join(lines)
