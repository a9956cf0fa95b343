# src/detector/controllers/report_controller.py
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from detector.model import Compliance, DetectionSettings, Issue, IssueType

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
SUPPORTED_FORMATS = ("csv", "json", "xlsx")

REPORT_COLUMNS = [
    "Element Type",
    "Element Name",
    "Issue Type",
    "Description",
    "Severity",
    "WCAG Contrast Score",
    "Contrast Ratio",
    "Font Size",
]

SEVERITY_ORDER = {"critical": 1, "major": 2, "minor": 3}


class ReportController:
    """
    Aggregates scan issues for presentation and export.

    Grouping and ordering for display happen here, not in the engine. Every
    view re-checks that Contrast issues actually failed, so a stray passing
    contrast record never reaches a count or a report.
    """

    def __init__(self, settings: Optional[DetectionSettings] = None):
        self.settings = settings or DetectionSettings()

    # --- HELPERS ---

    @staticmethod
    def is_reportable(issue: Issue) -> bool:
        if issue.type == IssueType.CONTRAST:
            return issue.node_data.contrast_score == Compliance.FAIL
        return True

    def reportable(self, issues: List[Issue]) -> List[Issue]:
        kept = [i for i in issues if self.is_reportable(i)]
        dropped = len(issues) - len(kept)
        if dropped:
            logger.warning(f"Dropped {dropped} contrast record(s) that did not fail.")
        return kept

    # --- AGGREGATION ---

    def group_by_type(self, issues: List[Issue], issue_type: Union[IssueType, str]) -> List[Issue]:
        """Issues of one type, in their original order."""
        wanted = IssueType(issue_type)
        return [i for i in self.reportable(issues) if i.type == wanted]

    def count_by_type(self, issues: List[Issue]) -> Dict[IssueType, int]:
        counts: Dict[IssueType, int] = {}
        for issue in self.reportable(issues):
            counts[issue.type] = counts.get(issue.type, 0) + 1
        return counts

    def get_recommendations(self, issue_type: Union[IssueType, str]) -> List[str]:
        """Fixed remediation hints shown next to a group of issues."""
        issue_type = IssueType(issue_type)
        min_font = _px(self.settings.min_font_size)
        min_target = _px(self.settings.min_touch_target_size)
        min_spacing = _px(self.settings.min_touch_target_spacing)

        if issue_type == IssueType.CONTRAST:
            return [
                "Increase the contrast ratio to at least 4.5:1 for normal text and 3:1 for large text.",
                "To improve contrast, use a darker text color or a lighter background color.",
            ]
        if issue_type == IssueType.TYPOGRAPHY:
            return [
                f'Ensure font size is at least {min_font}px to enhance readability and comply with WCAG "AA" standards.',
                "Use a minimum font size of 16px for body text and 14px for buttons and other interactive elements.",
            ]
        if issue_type == IssueType.TOUCH_TARGET_SIZE:
            return [
                f"Increase the touch target size to at least {min_target}x{min_target} pixels to ensure better "
                "accessibility on mobile devices. Maintain adequate spacing between interactive elements.",
            ]
        return [
            f"The touch target spacing should be at least {min_spacing}px to the nearest element in all directions.",
        ]

    # --- EXPORT ---

    def to_report_rows(self, issues: List[Issue]) -> List[Dict[str, Any]]:
        """Flattens issues into report rows. Missing values are rendered as "N/A"."""
        rows = []
        for issue in self.reportable(issues):
            data = issue.node_data
            name = data.characters if data.node_type == "TEXT" else data.name
            rows.append({
                "Element Type": data.node_type or NOT_AVAILABLE,
                "Element Name": name or NOT_AVAILABLE,
                "Issue Type": issue.type.value,
                "Description": issue.description,
                "Severity": issue.severity.value,
                "WCAG Contrast Score": data.contrast_score.value if data.contrast_score else NOT_AVAILABLE,
                "Contrast Ratio": round(data.contrast_ratio, 2) if data.contrast_ratio is not None else NOT_AVAILABLE,
                "Font Size": _px(data.font_size) if data.font_size is not None else NOT_AVAILABLE,
            })
        return rows

    def to_dataframe(self, issues: List[Issue]) -> pd.DataFrame:
        return pd.DataFrame(self.to_report_rows(issues), columns=REPORT_COLUMNS)

    def summary_dataframe(self, issues: List[Issue]) -> pd.DataFrame:
        """One row per issue type with its severity and count, most severe first."""
        df = self.to_dataframe(issues)
        if df.empty:
            return pd.DataFrame(columns=["Issue Type", "Severity", "Count"])

        df_summary = df.groupby(["Issue Type", "Severity"]).size().reset_index(name="Count")
        df_summary["SevRank"] = df_summary["Severity"].map(SEVERITY_ORDER)
        return df_summary.sort_values(by=["SevRank", "Count"], ascending=[True, False]).drop(columns=["SevRank"])

    def export(self, issues: List[Issue], path: Union[str, Path], fmt: Optional[str] = None) -> Path:
        """
        Writes the report to disk.

        Args:
            issues: The scan issues.
            path: Target file. Its suffix is replaced to match the format.
            fmt: One of csv, json, xlsx. Taken from the path suffix when omitted.

        Returns:
            Path: The file that was written.
        """
        path = Path(path)
        fmt = (fmt or path.suffix.lstrip(".") or "csv").lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported report format '{fmt}'. Use one of: {', '.join(SUPPORTED_FORMATS)}")

        output_file = path.with_suffix(f".{fmt}")
        output_file.parent.mkdir(parents=True, exist_ok=True)
        df = self.to_dataframe(issues)

        logger.info(f"Exporting {len(df)} issue rows to {output_file}")
        if fmt == "csv":
            df.to_csv(output_file, index=False)
        elif fmt == "json":
            df.to_json(output_file, orient="records", indent=2, force_ascii=False)
        else:
            try:
                with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
                    self.summary_dataframe(issues).to_excel(writer, sheet_name="Summary", index=False)
                    df.to_excel(writer, sheet_name="Issues", index=False)
                    _fit_columns(writer)
            except PermissionError:
                raise PermissionError(f"{output_file} is currently open. Please close it and try again.")

        return output_file


def _px(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _fit_columns(writer: pd.ExcelWriter) -> None:
    """Auto-adjusts column widths for better scannability."""
    for sheet in writer.sheets.values():
        for col in sheet.columns:
            max_len = max((len(str(cell.value)) for cell in col if cell.value is not None), default=0)
            sheet.column_dimensions[col[0].column_letter].width = min(max_len + 2, 100)
