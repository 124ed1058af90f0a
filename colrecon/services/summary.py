from __future__ import annotations

from ..models.reconciliation_result import SessionSummary

"""Summary and status rendering for a reconciliation session.

SUMMARY line format:
SUMMARY file={name} columns={n} matched={n} unmatched={n} ignored={n} missing_required={n}
"""


def render_summary_line(summary: SessionSummary) -> str:
    """Render a SUMMARY line from a SessionSummary.

    Examples:
        >>> s = SessionSummary(file_name="contacts.csv", total_columns=5, matched=3,
        ...                    unmatched=1, ignored=1, missing_required=0)
        >>> render_summary_line(s)
        'SUMMARY file=contacts.csv columns=5 matched=3 unmatched=1 ignored=1 missing_required=0'
    """
    # 空白を含むファイル名は 1 トークンに収めるため置換
    name = summary.file_name.replace(" ", "_") or "-"
    return (
        f"SUMMARY file={name} "
        f"columns={summary.total_columns} "
        f"matched={summary.matched} "
        f"unmatched={summary.unmatched} "
        f"ignored={summary.ignored} "
        f"missing_required={summary.missing_required}"
    )


def render_status_message(file_name: str, unmatched_count: int) -> str:
    """Headline shown above the review cards."""
    if unmatched_count == 0:
        return "All matched! Ready for us to check the imported information?"
    noun = "column" if unmatched_count == 1 else "columns"
    verb = "is" if unmatched_count == 1 else "are"
    return f"There {verb} {unmatched_count} {noun} that {verb} not matched in '{file_name}'"


def render_proceed_label(unmatched_count: int) -> str:
    return "Continue" if unmatched_count == 0 else "Continue anyway"
