"""
Policy base classes for Sanction.

A policy answers one question: given an actor, a verb, a noun and
optionally a concrete resource, does it ALLOW, DENY, or ABSTAIN? Leaf
policies answer from a store or a predicate, composite policies answer by
combining other policies. The engine treats both the same way.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from sanction.audit.report import current_builder
from sanction.exceptions import MisconfiguredPolicy, SanctionError, StoreFailure
from sanction.types import Verdict

if TYPE_CHECKING:
    from sanction.types import Actor, AuthenticatedUser, ProtectedResource

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Policy(ABC):
    """
    Abstract base class for all Sanction policies.

    Subclasses implement evaluate_for_user() and evaluate_for_guest() and
    must return a Verdict from both. Returning ABSTAIN is the correct
    answer whenever the policy does not apply.

    Attributes:
        label: Identifying label used in reports. Defaults to the class
            name and can be overridden per instance.

    Example:
        >>> class WeekdayPolicy(Policy):
        ...     def evaluate_for_user(self, actor, verb, noun, resource=None):
        ...         if datetime.now().weekday() >= 5:
        ...             return Verdict.DENY
        ...         return Verdict.ABSTAIN
        ...
        ...     def evaluate_for_guest(self, verb, noun, resource=None):
        ...         return Verdict.ABSTAIN
    """

    _label: str | None = None

    def __init__(self, label: str | None = None) -> None:
        self._label = label

    @property
    def label(self) -> str:
        return self._label or type(self).__name__

    @abstractmethod
    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        """
        Evaluate a check made by an authenticated user.

        Args:
            actor: The authenticated user.
            verb: The action being checked (e.g. "create").
            noun: The type of object acted upon.
            resource: The concrete resource, if the check targeted one.

        Returns:
            The policy's Verdict.
        """

    @abstractmethod
    def evaluate_for_guest(
        self,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        """Evaluate a check made by a guest."""

    def evaluate(
        self,
        actor: Actor,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        """Evaluate for any actor, dispatching on guest vs. user."""
        return run_policy(self, actor, verb, noun, resource)

    def describe(self) -> dict[str, Any]:
        """Describe this policy for explanations."""
        return {"policy": self.label, "type": type(self).__name__}

    def __repr__(self) -> str:
        if self._label:
            return f"{type(self).__name__}(label={self._label!r})"
        return f"{type(self).__name__}()"


class StorePolicy(Policy):
    """
    Base class for leaf policies backed by a store.

    Each store-backed policy owns exactly one store. Store calls go
    through query(), which turns unexpected store errors into StoreFailure
    so they abort the evaluation instead of looking like a verdict.
    """

    def __init__(self, store: Any, label: str | None = None) -> None:
        super().__init__(label)
        self.store = store

    def query(self, operation: Callable[..., R], *args: Any) -> R:
        try:
            return operation(*args)
        except SanctionError:
            raise
        except Exception as e:
            logger.error(f"{self.label}: store {type(self.store).__name__} raised: {e}")
            raise StoreFailure(self.label, self.store, e) from e

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["store"] = type(self.store).__name__
        return description


def run_policy(
    policy: Policy,
    actor: Actor,
    verb: str,
    noun: str,
    resource: ProtectedResource | None = None,
) -> Verdict:
    """
    Evaluate a policy for an actor and record it in the active report.

    This is the single path through which the engine and composite
    policies invoke policies, so every invocation made during an
    evaluation shows up in the report, nested under the composite that
    made it.

    Raises:
        MisconfiguredPolicy: If the policy returns something other than
            a Verdict.
    """
    builder = current_builder()
    if builder is not None:
        builder.open(policy.label)

    try:
        if actor.is_guest:
            verdict = policy.evaluate_for_guest(verb, noun, resource)
        else:
            verdict = policy.evaluate_for_user(actor, verb, noun, resource)

        if not isinstance(verdict, Verdict):
            raise MisconfiguredPolicy(
                policy.label,
                "evaluation must return a Verdict",
                received=verdict,
            )
    except BaseException:
        # Callers may recover from the error and keep recording
        if builder is not None:
            builder.discard()
        raise

    if builder is not None:
        builder.close(verdict)

    logger.debug(
        f"{policy.label}: {verdict} for {actor.describe()} to {verb} {noun}"
    )
    return verdict
