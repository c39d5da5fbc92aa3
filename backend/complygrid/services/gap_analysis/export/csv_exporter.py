"""
Gap Analysis Export - CSV

One row per gap. Fields are quoted only when they contain a comma, a double
quote or a line break; embedded quotes are doubled.
"""

import csv
import io
from datetime import date
from typing import Optional

from ..models import GapAnalysisResult

CSV_HEADER = [
    "Framework",
    "Control Code",
    "Control Title",
    "Compliance Status",
    "Has Assessment",
    "Has Evidence",
    "Mapped Controls Count",
]


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def generate_gap_csv(result: GapAnalysisResult) -> str:
    """
    Render the gaps of an analysis as CSV text.

    Args:
        result: Completed gap analysis

    Returns:
        CSV document with a header row and newline-separated records

    Example:
        >>> generate_gap_csv(GapAnalysisResult()).strip()
        'Framework,Control Code,Control Title,Compliance Status,Has Assessment,Has Evidence,Mapped Controls Count'
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for gap in result.gaps:
        writer.writerow(
            [
                gap.framework_name,
                gap.control_code,
                gap.control_title,
                gap.compliance_status.value,
                _yes_no(gap.has_assessment),
                _yes_no(gap.has_evidence),
                len(gap.mapped_controls),
            ]
        )

    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    """Attachment filename, e.g. gap-analysis-2025-01-31.csv"""
    today = today or date.today()
    return f"gap-analysis-{today.isoformat()}.csv"
