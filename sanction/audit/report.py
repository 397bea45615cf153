"""
Decision reports for Sanction.

Every evaluation builds a fresh Report: an ordered, append-only trail of
the policies that were consulted and the verdict each returned. Composite
policies record their children as nested entries, and store-backed
policies attach the rule that matched via note(). The report is what
explains WHY a decision was reached, both on the Decision and as the
message of AuthorizationDenied.

Example:
    >>> decision = engine.decide("create", "post", actor=alice)
    >>> print(decision.report)
    Access DENIED for user 'alice' to create post
      1. RoleACLPolicy: ALLOW (role 'editor' may create post)
      2. BanListPolicy: DENY (banned from create post)
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sanction.types import Verdict

# Builder of the evaluation currently running in this context
_active_builder: contextvars.ContextVar[ReportBuilder | None] = contextvars.ContextVar(
    "sanction_report_builder", default=None
)


@dataclass(frozen=True)
class ReportEntry:
    """
    One policy invocation.

    Attributes:
        label: Identifying label of the policy.
        verdict: What the policy answered.
        reasons: Notes the policy attached while evaluating (matched rules).
        children: Entries of sub-policies, for composite policies.
    """

    label: str
    verdict: Verdict
    reasons: tuple[str, ...] = ()
    children: tuple[ReportEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "policy": self.label,
            "verdict": self.verdict.value,
        }
        if self.reasons:
            data["reasons"] = list(self.reasons)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def format_lines(self, prefix: str, indent: int) -> list[str]:
        pad = "  " * indent
        line = f"{pad}{prefix}{self.label}: {self.verdict}"
        if self.reasons:
            line += f" ({'; '.join(self.reasons)})"
        lines = [line]
        for child in self.children:
            lines.extend(child.format_lines("- ", indent + 2))
        return lines


@dataclass(frozen=True)
class Report:
    """
    Ordered audit trail of one evaluation.

    Top-level entries appear in evaluation order and there is exactly one
    per top-level policy invocation. Reports are never shared between
    evaluations.
    """

    entries: tuple[ReportEntry, ...] = ()
    actor: str = "guest"
    verb: str = ""
    noun: str = ""
    granted: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ReportEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> ReportEntry:
        return self.entries[index]

    def verdicts(self) -> list[Verdict]:
        """Top-level verdicts in evaluation order."""
        return [entry.verdict for entry in self.entries]

    def labels(self) -> list[str]:
        return [entry.label for entry in self.entries]

    def denials(self) -> list[ReportEntry]:
        return [entry for entry in self.entries if entry.verdict is Verdict.DENY]

    def allows(self) -> list[ReportEntry]:
        return [entry for entry in self.entries if entry.verdict is Verdict.ALLOW]

    def find(self, label: str) -> ReportEntry | None:
        """Return the first entry with the given label, searching nested entries too."""
        pending = list(self.entries)
        while pending:
            entry = pending.pop(0)
            if entry.label == label:
                return entry
            pending[0:0] = entry.children
        return None

    def format(self) -> str:
        """Render the report as a human-readable, multi-line string."""
        outcome = "GRANTED" if self.granted else "DENIED"
        lines = [f"Access {outcome} for {self.actor} to {self.verb} {self.noun}"]
        if not self.entries:
            lines.append("  (no policies consulted)")
        for position, entry in enumerate(self.entries, start=1):
            lines.extend(entry.format_lines(f"{position}. ", 1))
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "actor": self.actor,
            "verb": self.verb,
            "noun": self.noun,
            "granted": self.granted,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def __str__(self) -> str:
        return self.format()


@dataclass
class _Frame:
    label: str
    reasons: list[str] = field(default_factory=list)
    children: list[ReportEntry] = field(default_factory=list)


class ReportBuilder:
    """
    Accumulates report entries for a single evaluation.

    Policies are recorded with open()/close() pairs so that nested
    policies (children of composites) become children of the entry that
    was open when they ran, and notes land on the innermost open entry.

    Example:
        >>> builder = ReportBuilder("user 'alice'", "create", "post")
        >>> builder.open("SuperuserPolicy")
        >>> builder.note("listed as superuser")
        >>> builder.close(Verdict.ALLOW)
        >>> report = builder.build(granted=True)
    """

    def __init__(self, actor: str = "guest", verb: str = "", noun: str = "") -> None:
        self.actor = actor
        self.verb = verb
        self.noun = noun
        self._entries: list[ReportEntry] = []
        self._stack: list[_Frame] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    def open(self, label: str) -> None:
        self._stack.append(_Frame(label))

    def note(self, reason: str) -> None:
        if self._stack:
            self._stack[-1].reasons.append(reason)

    def close(self, verdict: Verdict) -> ReportEntry:
        if not self._stack:
            raise RuntimeError("ReportBuilder.close() called without a matching open()")
        frame = self._stack.pop()
        entry = ReportEntry(
            label=frame.label,
            verdict=verdict,
            reasons=tuple(frame.reasons),
            children=tuple(frame.children),
        )
        if self._stack:
            self._stack[-1].children.append(entry)
        else:
            self._entries.append(entry)
        return entry

    def discard(self) -> None:
        """Drop the innermost open entry, for a policy that raised."""
        if not self._stack:
            raise RuntimeError("ReportBuilder.discard() called without a matching open()")
        self._stack.pop()

    def record(self, label: str, verdict: Verdict, *reasons: str) -> ReportEntry:
        """Record a policy invocation that has no nested policies."""
        self.open(label)
        for reason in reasons:
            self.note(reason)
        return self.close(verdict)

    def build(self, granted: bool) -> Report:
        if self._stack:
            raise RuntimeError(
                f"Cannot build report with {len(self._stack)} unfinished entries"
            )
        return Report(
            entries=tuple(self._entries),
            actor=self.actor,
            verb=self.verb,
            noun=self.noun,
            granted=granted,
        )


def current_builder() -> ReportBuilder | None:
    """Get the report builder of the evaluation running in this context."""
    return _active_builder.get()


@contextmanager
def recording(builder: ReportBuilder):
    """
    Make a builder the active one for the duration of the block.

    Yields:
        The builder.
    """
    token = _active_builder.set(builder)
    try:
        yield builder
    finally:
        _active_builder.reset(token)


def note(reason: str) -> None:
    """
    Attach a reason to the policy entry currently being evaluated.

    Policies call this to say which rule matched. Outside of an engine
    evaluation it does nothing, so policies stay usable on their own.

    Example:
        >>> if self.store.is_banned(actor, verb, noun):
        ...     note(f"banned from {verb} {noun}")
        ...     return Verdict.DENY
    """
    builder = _active_builder.get()
    if builder is not None:
        builder.note(reason)
