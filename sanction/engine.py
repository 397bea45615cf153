"""
Decision engine for Sanction.

The DecisionEngine holds an ordered list of top-level policies, works out
who is acting, consults every policy and aggregates their verdicts under
deny-overrides:

    granted = (some policy said ALLOW) and (no policy said DENY)

Evaluation is always complete: a DENY fixes the outcome, but the
remaining policies still run so the report shows everything that would
have applied. ABSTAIN never changes the outcome, and an evaluation in
which nobody allowed is a denial.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from sanction.audit.report import ReportBuilder, recording
from sanction.check import Check
from sanction.config import EngineConfig
from sanction.context import get_current_actor
from sanction.exceptions import AuthorizationDenied, ConfigurationError, MisconfiguredPolicy
from sanction.policies.base import Policy, run_policy
from sanction.types import (
    GUEST,
    Actor,
    AuthenticatedUser,
    Decision,
    ProtectedResource,
    Verdict,
    as_actor,
)

logger = logging.getLogger(__name__)

# What a check may target: a bare noun or a protected resource
Target = Any

DecisionListener = Callable[[Decision], None]


def split_target(target: Target) -> tuple[str | None, ProtectedResource | None]:
    """
    Split a check target into (noun, resource).

    Raises:
        TypeError: If the target is neither a string nor a ProtectedResource.
    """
    if isinstance(target, str):
        return target, None
    if isinstance(target, ProtectedResource):
        return None, target
    raise TypeError(
        f"Check target must be a noun string or a ProtectedResource, "
        f"got {type(target).__name__}"
    )


class DecisionEngine:
    """
    Authorization decision engine.

    Features:
        - Ordered, pluggable policies (leaf or composite)
        - Deny-overrides aggregation with default deny
        - Full evaluation with a nested audit report per decision
        - Explicit, request-scoped, engine-level and implicit identities
        - Fluent per-check builder (check(...).please())

    Identity resolution, first match wins:
        1. an actor passed to the check itself
        2. an actor bound with sanction.context.acting_as()
        3. an actor set on the engine with i_am()
        4. the implicit identity resolver, if it returns an AuthenticatedUser
        5. GUEST

    Example:
        >>> engine = DecisionEngine()
        >>> engine.push_policy(RoleACLPolicy(acl))
        >>> engine.push_policy(BanListPolicy(bans))
        >>>
        >>> engine.with_actor(alice).check("create", "post").please()
        >>> engine.can("delete", post, actor=alice)
        False

    Thread Safety:
        Evaluations share nothing and may run concurrently. Push and
        remove policies during setup, before concurrent traffic starts.
    """

    def __init__(
        self,
        policies: Iterable[Policy] | None = None,
        implicit_identity: Callable[[], Any] | None = None,
        config: EngineConfig | dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            policies: Initial top-level policies, in evaluation order.
            implicit_identity: Zero-argument callable returning the current
                user when no explicit actor is given.
            config: EngineConfig or a mapping accepted by EngineConfig.from_dict.
        """
        if isinstance(config, EngineConfig):
            self.config = config
        else:
            self.config = EngineConfig.from_dict(config)

        self._policies: list[Policy] = []
        self._implicit_identity = implicit_identity
        self._explicit_actor: Actor | None = None
        self._listeners: list[DecisionListener] = []

        for policy in policies or ():
            self.push_policy(policy)

        logger.debug(f"DecisionEngine '{self.config.name}' initialized")

    # ==================== Policy Management ====================

    @staticmethod
    def _ensure_policy(policy: Any) -> Policy:
        if not isinstance(policy, Policy):
            raise MisconfiguredPolicy(
                type(policy).__name__,
                "only Policy instances can be added to the engine",
                received=policy,
            )
        return policy

    @property
    def policies(self) -> tuple[Policy, ...]:
        """Top-level policies in evaluation order."""
        return tuple(self._policies)

    def push_policy(self, policy: Policy) -> DecisionEngine:
        """Append a policy to the end of the evaluation order."""
        self._policies.append(self._ensure_policy(policy))
        logger.debug(f"Pushed policy {policy.label} at position {len(self._policies) - 1}")
        return self

    def insert_policy(self, index: int, policy: Policy) -> DecisionEngine:
        """Insert a policy at a position in the evaluation order."""
        self._policies.insert(index, self._ensure_policy(policy))
        logger.debug(f"Inserted policy {policy.label} at position {index}")
        return self

    def remove_policy(self, policy: Policy) -> bool:
        """
        Remove a policy.

        Returns:
            True if the policy was present and removed.
        """
        try:
            self._policies.remove(policy)
        except ValueError:
            return False
        logger.debug(f"Removed policy {policy.label}")
        return True

    def clear_policies(self) -> None:
        self._policies.clear()
        logger.debug("Cleared all policies")

    # ==================== Identity ====================

    def set_implicit_identity(self, resolver: Callable[[], Any] | None) -> None:
        """
        Set the resolver consulted when no explicit actor is in effect.

        The resolver is called once per check. Its result is used only if
        it is an AuthenticatedUser; anything else means GUEST.
        """
        self._implicit_identity = resolver

    def i_am(self, actor: Any) -> Actor:
        """
        Set the explicit actor for this engine.

        Raw identities are wrapped in AuthenticatedUser; pass GUEST to act
        as a guest explicitly. The host is expected to call
        forget_identity() when the request is over; for concurrent hosts
        prefer sanction.context.acting_as().

        Raises:
            ValueError: If actor is None. Use forget_identity() to clear.
        """
        if actor is None:
            raise ValueError("i_am() needs an actor; call forget_identity() to clear it")
        self._explicit_actor = as_actor(actor)
        logger.debug(f"Engine '{self.config.name}' acting as {self._explicit_actor.describe()}")
        return self._explicit_actor

    def forget_identity(self) -> None:
        self._explicit_actor = None

    def resolve_actor(self, actor: Any = None) -> Actor:
        """
        Work out who is acting for a check.

        Args:
            actor: Actor (or raw identity) given to the check itself.

        Returns:
            The resolved actor, GUEST if no identity is available.
        """
        if actor is not None:
            return as_actor(actor)

        scoped = get_current_actor()
        if scoped is not None:
            return scoped

        if self._explicit_actor is not None:
            return self._explicit_actor

        if self._implicit_identity is not None:
            resolved = self._implicit_identity()
            if isinstance(resolved, AuthenticatedUser):
                return resolved
            if resolved is not None:
                logger.debug(
                    f"Implicit identity resolver returned {type(resolved).__name__}, "
                    "not an AuthenticatedUser; acting as guest"
                )

        return GUEST

    # ==================== Listeners ====================

    def add_listener(self, listener: DecisionListener) -> None:
        """
        Register a callable invoked with every Decision.

        Listeners run after the decision is made, in registration order.
        Exceptions they raise propagate to the caller.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: DecisionListener) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    # ==================== Evaluation ====================

    def evaluate(
        self,
        actor: Actor,
        verb: str,
        noun: str | None = None,
        resource: ProtectedResource | None = None,
    ) -> Decision:
        """
        Evaluate a check for an already resolved actor.

        Args:
            actor: The acting user, or GUEST.
            verb: The action being checked.
            noun: The type of object acted upon. Ignored when a resource
                is given: the resource's name is authoritative.
            resource: The concrete resource, if any.

        Returns:
            Decision with the outcome and its report.

        Raises:
            ValueError: If neither a noun nor a resource is given.
            ConfigurationError: If no policies are configured and the
                engine requires them.
            MisconfiguredPolicy: If a policy returns something other than
                a Verdict.
            StoreFailure: If a policy's store fails.
        """
        actor = as_actor(actor)
        if resource is not None:
            noun = resource.resource_name()
        if not noun:
            raise ValueError("A check needs a noun or a resource")

        policies = tuple(self._policies)
        if not policies:
            if self.config.require_policies:
                raise ConfigurationError(
                    config_key="policies",
                    expected="at least one policy pushed before evaluating",
                )
            logger.warning(
                f"Engine '{self.config.name}' has no policies configured; denying {verb} {noun}"
            )

        builder = ReportBuilder(actor.describe(), verb, noun)
        saw_allow = False
        saw_deny = False

        with recording(builder):
            for policy in policies:
                verdict = run_policy(policy, actor, verb, noun, resource)
                if verdict is Verdict.DENY:
                    saw_deny = True
                elif verdict is Verdict.ALLOW:
                    saw_allow = True

        granted = saw_allow and not saw_deny
        decision = Decision(
            granted=granted,
            report=builder.build(granted),
            actor=actor,
            verb=verb,
            noun=noun,
            metadata={"engine": self.config.name},
        )

        if self.config.log_decisions:
            if granted:
                logger.debug(f"Granted {actor.describe()} to {verb} {noun}")
            else:
                logger.info(
                    f"Denied {actor.describe()} to {verb} {noun} "
                    f"(verdicts: {[str(v) for v in decision.report.verdicts()]})"
                )

        for listener in list(self._listeners):
            listener(decision)

        return decision

    def decide(self, verb: str, target: Target, actor: Any = None) -> Decision:
        """
        Resolve identity and target, then evaluate.

        Args:
            verb: The action being checked.
            target: A noun string or a ProtectedResource.
            actor: Explicit actor for this check; None to resolve.
        """
        noun, resource = split_target(target)
        return self.evaluate(self.resolve_actor(actor), verb, noun, resource)

    def can(self, verb: str, target: Target, actor: Any = None) -> bool:
        """
        Check if the action is granted, without raising.

        Example:
            >>> if engine.can("update", post, actor=alice):
            ...     post.save()
        """
        return self.decide(verb, target, actor).granted

    def authorize_or_raise(self, verb: str, target: Target, actor: Any = None) -> Decision:
        """
        Check authorization and raise if denied.

        Returns:
            The granting Decision.

        Raises:
            AuthorizationDenied: If the action is not granted.
        """
        decision = self.decide(verb, target, actor)
        if not decision.granted:
            raise AuthorizationDenied(decision)
        return decision

    # ==================== Fluent Checks ====================

    def with_actor(self, actor: Any) -> Check:
        """Start a check bound to an explicit actor."""
        return Check(self).with_actor(actor)

    def check(self, verb: str, target: Target) -> Check:
        """Start and run a check with the resolved identity."""
        return Check(self).check(verb, target)

    # ==================== Introspection ====================

    def explain(self, verb: str, target: Target, actor: Any = None) -> dict[str, Any]:
        """
        Explain an authorization decision.

        Returns:
            Dictionary with the decision, the request, the policy tree
            and the report.
        """
        decision = self.decide(verb, target, actor)
        return {
            "decision": "ALLOW" if decision.granted else "DENY",
            "engine": self.config.name,
            "actor": decision.actor.to_dict(),
            "request": {
                "verb": decision.verb,
                "noun": decision.noun,
                "resource": not isinstance(target, str),
            },
            "policies": [policy.describe() for policy in self._policies],
            "report": decision.report.to_dict(),
        }

    def __repr__(self) -> str:
        return f"DecisionEngine(name={self.config.name!r}, policies={len(self._policies)})"
