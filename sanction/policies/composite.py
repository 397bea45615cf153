"""
Composite policies for Sanction.

Composites wrap other policies and are policies themselves, so they can be
pushed into the engine or nested inside each other to build a policy tree.
Deny-overrides applies at every level: a DENY from any child that is
consulted makes FulfillAll and FulfillAny deny too.

Children run through run_policy(), so during an engine evaluation each
child shows up as a nested entry under the composite's report entry.

Example:
    >>> editors_own_posts = FulfillAll(
    ...     RoleACLPolicy(acl),
    ...     OwnershipPolicy(verbs=["update"]),
    ... )
    >>> engine.push_policy(FulfillAny(SuperuserPolicy(supers), editors_own_posts))
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sanction.exceptions import MisconfiguredPolicy
from sanction.policies.base import Policy, run_policy
from sanction.types import GUEST, Verdict

if TYPE_CHECKING:
    from sanction.types import Actor, AuthenticatedUser, ProtectedResource

logger = logging.getLogger(__name__)


class CompositePolicy(Policy):
    """
    Base class for policies that combine child policies.

    Attributes:
        policies: The child policies, in evaluation order.
        short_circuit: If True, stop at the first child DENY. Later
            children are then not invoked and do not appear in the
            report. The composite's verdict is the same either way.
    """

    def __init__(
        self,
        *policies: Policy,
        short_circuit: bool = False,
        label: str | None = None,
    ) -> None:
        super().__init__(label)
        for policy in policies:
            if not isinstance(policy, Policy):
                raise MisconfiguredPolicy(
                    self.label,
                    "composite children must be Policy instances",
                    received=policy,
                )
        self.policies: tuple[Policy, ...] = tuple(policies)
        self.short_circuit = short_circuit

        if not self.policies:
            logger.warning(f"{self.label} has no policies configured and will always abstain")

    @abstractmethod
    def combine(self, verdicts: Iterable[Verdict]) -> Verdict:
        """Reduce child verdicts to the composite's verdict."""

    def _collect(
        self,
        actor: Actor,
        verb: str,
        noun: str,
        resource: ProtectedResource | None,
    ) -> list[Verdict]:
        verdicts = []
        for policy in self.policies:
            verdict = run_policy(policy, actor, verb, noun, resource)
            verdicts.append(verdict)
            if self.short_circuit and verdict is Verdict.DENY:
                logger.debug(f"{self.label}: {policy.label} denied, skipping remaining policies")
                break
        return verdicts

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        return self.combine(self._collect(actor, verb, noun, resource))

    def evaluate_for_guest(
        self,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        return self.combine(self._collect(GUEST, verb, noun, resource))

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["short_circuit"] = self.short_circuit
        description["policies"] = [policy.describe() for policy in self.policies]
        return description

    def __repr__(self) -> str:
        children = ", ".join(repr(policy) for policy in self.policies)
        return f"{type(self).__name__}({children})"


class FulfillAll(CompositePolicy):
    """
    Allows only when every child allows.

    DENY if any child denies, ALLOW if all children allow, otherwise
    ABSTAIN. With no children it abstains.
    """

    def combine(self, verdicts: Iterable[Verdict]) -> Verdict:
        verdicts = list(verdicts)
        if not verdicts:
            return Verdict.ABSTAIN
        if Verdict.DENY in verdicts:
            return Verdict.DENY
        if all(verdict is Verdict.ALLOW for verdict in verdicts):
            return Verdict.ALLOW
        return Verdict.ABSTAIN


class FulfillAny(CompositePolicy):
    """
    Allows when any child allows and none denies.

    DENY if any child denies (even alongside an ALLOW), ALLOW if at least
    one child allows, otherwise ABSTAIN. With no children it abstains.
    """

    def combine(self, verdicts: Iterable[Verdict]) -> Verdict:
        verdicts = list(verdicts)
        if Verdict.DENY in verdicts:
            return Verdict.DENY
        if Verdict.ALLOW in verdicts:
            return Verdict.ALLOW
        return Verdict.ABSTAIN


class Required(Policy):
    """
    Turns a policy into a mandatory gate.

    ALLOW only if the wrapped policy allows; anything else, ABSTAIN
    included, becomes DENY.

    Example:
        >>> # Nobody may delete posts they do not own, whatever else applies
        >>> engine.push_policy(Required(OwnershipPolicy(verbs=["delete"])))
    """

    def __init__(self, policy: Policy, label: str | None = None) -> None:
        super().__init__(label)
        if not isinstance(policy, Policy):
            raise MisconfiguredPolicy(
                self.label,
                "Required wraps exactly one Policy",
                received=policy,
            )
        self.policy = policy

    def _gate(self, verdict: Verdict) -> Verdict:
        if verdict is Verdict.ALLOW:
            return Verdict.ALLOW
        return Verdict.DENY

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        return self._gate(run_policy(self.policy, actor, verb, noun, resource))

    def evaluate_for_guest(
        self,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        return self._gate(run_policy(self.policy, GUEST, verb, noun, resource))

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["policies"] = [self.policy.describe()]
        return description

    def __repr__(self) -> str:
        return f"Required({self.policy!r})"
