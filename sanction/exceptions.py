"""
Custom exceptions for Sanction.

This module defines the exception hierarchy for the engine. A denial is an
expected outcome and is signalled with AuthorizationDenied; everything else
in here marks a programming or deployment error that must reach the caller
instead of being folded into an ABSTAIN or DENY verdict.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sanction.audit.report import Report
    from sanction.types import Decision


class SanctionError(Exception):
    """
    Base exception for all Sanction errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     engine.authorize_or_raise("delete", post)
        ... except SanctionError as e:
        ...     logger.error(f"Sanction error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class AuthorizationDenied(SanctionError):
    """
    Raised when a checked action is not granted.

    Carries the full Decision so the caller can inspect which policies
    were consulted and what each of them answered. The message is the
    formatted report.

    Attributes:
        decision: The denying Decision.
        report: Shortcut for decision.report.
        actor: The actor that was denied.
        verb: The action that was attempted.
        noun: The noun the action targeted.

    Example:
        >>> try:
        ...     engine.check("delete", post).please()
        ... except AuthorizationDenied as e:
        ...     for entry in e.report:
        ...         print(entry.label, entry.verdict)
    """

    def __init__(self, decision: Decision) -> None:
        self.decision = decision
        self.actor = decision.actor
        self.verb = decision.verb
        self.noun = decision.noun

        details = {
            "actor": decision.actor.to_dict(),
            "verb": decision.verb,
            "noun": decision.noun,
        }
        super().__init__(decision.report.format(), details)

    @property
    def report(self) -> Report:
        return self.decision.report

    def __str__(self) -> str:
        return self.message


class StoreFailure(SanctionError):
    """
    Raised when a policy's store fails while answering a query.

    The original exception is chained as __cause__. A store failure aborts
    the evaluation: it is never downgraded to ABSTAIN or DENY.

    Attributes:
        policy_label: Label of the policy whose store failed.
        store: The store object that raised.
    """

    def __init__(self, policy_label: str, store: Any, cause: BaseException) -> None:
        self.policy_label = policy_label
        self.store = store

        message = (
            f"Store {type(store).__name__} failed while evaluating "
            f"'{policy_label}': {cause}"
        )
        details = {
            "policy": policy_label,
            "store": type(store).__name__,
            "cause": type(cause).__name__,
        }
        super().__init__(message, details)


class MisconfiguredPolicy(SanctionError):
    """
    Raised when a policy is built or behaves outside its contract.

    Examples are a policy method returning something other than a Verdict,
    or a composite given a child that is not a Policy.

    Attributes:
        policy_label: Label of the offending policy.
        problem: What is wrong with it.
    """

    def __init__(self, policy_label: str, problem: str, received: Any = None) -> None:
        self.policy_label = policy_label
        self.problem = problem
        self.received = received

        message = f"Misconfigured policy '{policy_label}': {problem}"
        details: dict[str, Any] = {"policy": policy_label}
        if received is not None:
            details["received"] = repr(received)
        super().__init__(message, details)


class ConfigurationError(SanctionError):
    """
    Raised when there is a configuration error in engine setup.

    Attributes:
        config_key: The configuration key that has an issue.
        expected: What was expected for this configuration.
        received: What was actually provided.

    Example:
        >>> raise ConfigurationError(
        ...     config_key="log_decisions",
        ...     expected="bool",
        ...     received="yes",
        ... )
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
            if received is not None:
                message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": repr(received) if received is not None else None,
        }
        super().__init__(message, details)


class CheckNotPerformedError(SanctionError):
    """Raised when a Check is queried before check() was called."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Cannot call {operation}() before check(verb, target)",
            {"operation": operation},
        )


class StoreUnavailableError(SanctionError):
    """Raised when an optional store backend is not installed."""

    def __init__(self, backend: str, extra: str) -> None:
        self.backend = backend
        self.extra = extra
        super().__init__(
            f"The {backend} store requires the '{extra}' package. "
            f"Install with: pip install sanction[{extra}]",
            {"backend": backend},
        )
