"""
Fluent per-check builder for Sanction.

A Check binds an actor, a verb and a target for one authorization
question and keeps the resulting Decision around for inspection. Checks
are short-lived: create one per question (or per actor binding) and do
not share them across requests.

Example:
    >>> engine.with_actor(alice).check("update", post).please()
    >>>
    >>> check = engine.check("delete", post)
    >>> if not check.allowed():
    ...     print(check.last_report())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sanction.exceptions import AuthorizationDenied, CheckNotPerformedError

if TYPE_CHECKING:
    from sanction.audit.report import Report
    from sanction.engine import DecisionEngine
    from sanction.types import Decision


class Check:
    """
    One authorization question against a DecisionEngine.

    Attributes:
        engine: The engine that answers the question.
        decision: The Decision of the last check(), or None before.
    """

    def __init__(self, engine: DecisionEngine, actor: Any = None) -> None:
        self.engine = engine
        self._actor = actor
        self.decision: Decision | None = None

    def with_actor(self, actor: Any) -> Check:
        """
        Bind an explicit actor, suppressing implicit identity resolution.

        Raw identities are wrapped in AuthenticatedUser; pass GUEST to
        check as a guest explicitly.
        """
        if actor is None:
            raise ValueError("with_actor() needs an actor; pass GUEST for a guest check")
        self._actor = actor
        return self

    def check(self, verb: str, target: Any) -> Check:
        """
        Run the engine for a verb on a noun string or a ProtectedResource.

        The Decision is stored on the check; call please() or allowed()
        to act on it.
        """
        self.decision = self.engine.decide(verb, target, self._actor)
        return self

    def _require_decision(self, operation: str) -> Decision:
        if self.decision is None:
            raise CheckNotPerformedError(operation)
        return self.decision

    def please(self) -> None:
        """
        Assert that the checked action is granted.

        Raises:
            AuthorizationDenied: Carrying the decision and its report.
            CheckNotPerformedError: If check() was not called.
        """
        decision = self._require_decision("please")
        if not decision.granted:
            raise AuthorizationDenied(decision)

    def allowed(self) -> bool:
        """Return whether the checked action is granted, without raising."""
        return self._require_decision("allowed").granted

    def last_report(self) -> Report | None:
        """Report of the last check(), or None if none was run."""
        if self.decision is None:
            return None
        return self.decision.report

    # Aliases
    assert_allowed = please
    is_allowed = allowed

    def __repr__(self) -> str:
        if self.decision is None:
            return "Check(pending)"
        outcome = "granted" if self.decision.granted else "denied"
        return f"Check({self.decision.verb} {self.decision.noun}: {outcome})"
