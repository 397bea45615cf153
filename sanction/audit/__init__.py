"""
Audit trail for Sanction decisions.

Quick Start:
    >>> from sanction.audit import Report, note
    >>>
    >>> decision = engine.decide("update", post, actor=alice)
    >>> for entry in decision.report:
    ...     print(entry.label, entry.verdict, entry.reasons)
"""

from sanction.audit.report import (
    Report,
    ReportBuilder,
    ReportEntry,
    current_builder,
    note,
    recording,
)

__all__ = [
    "Report",
    "ReportBuilder",
    "ReportEntry",
    "current_builder",
    "note",
    "recording",
]
