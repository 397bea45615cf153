"""
Criteria adapters for Sanction.

A criteria policy turns a predicate over (actor, resource, verb) into a
Policy. The adapter's job is narrowing: guard clauses decide whether the
predicate applies at all (guests, resource type), and only then is the
application's logic consulted. An inapplicable check always ABSTAINs.

The predicate answers with Verdict.ALLOW or Verdict.DENY when it has an
opinion. Any other return value, None and booleans included, is taken as
ABSTAIN.

Example:
    >>> def published_posts_are_readable(resource, verb):
    ...     if verb == "read" and resource.published:
    ...         return Verdict.ALLOW
    >>>
    >>> engine.push_policy(
    ...     ResourceCriteriaPolicy(published_posts_are_readable, resource_type="post")
    ... )
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Union

from sanction.exceptions import MisconfiguredPolicy
from sanction.policies.base import Policy
from sanction.types import GUEST, Verdict

if TYPE_CHECKING:
    from sanction.types import Actor, AuthenticatedUser, ProtectedResource

logger = logging.getLogger(__name__)

# A resource type filter: a resource name tag or a class
ResourceType = Union[str, type]


class CriteriaPolicy(Policy):
    """
    Policy adapter over a predicate of (actor, resource, verb).

    Pass the predicate to the constructor, or subclass and override
    is_satisfied_by().

    Attributes:
        resource_type: If set, the check must target a resource matching
            it, either by resource_name() (string tag) or by isinstance
            (class). Otherwise the policy abstains without calling the
            predicate.
        supports_guests: If True, the predicate also runs for guests, with
            GUEST as the actor. Defaults to False: guests get ABSTAIN.

    Example:
        >>> def authors_may_edit(actor, resource, verb):
        ...     if verb == "update" and resource.author_id == actor.identity:
        ...         return Verdict.ALLOW
        >>>
        >>> CriteriaPolicy(authors_may_edit, resource_type=Post)
    """

    user_only: bool = False
    supports_guests: bool = False

    def __init__(
        self,
        predicate: Callable[..., Any] | None = None,
        resource_type: ResourceType | None = None,
        supports_guests: bool | None = None,
        label: str | None = None,
    ) -> None:
        super().__init__(label)
        self.predicate = predicate
        self.resource_type = resource_type
        if supports_guests is not None:
            self.supports_guests = supports_guests

        if predicate is None and type(self).is_satisfied_by is CriteriaPolicy.is_satisfied_by:
            raise MisconfiguredPolicy(
                self.label,
                "needs a predicate or an is_satisfied_by() override",
            )

    @property
    def label(self) -> str:
        if self._label:
            return self._label
        name = getattr(self.predicate, "__name__", None)
        if name and name != "<lambda>":
            return f"{type(self).__name__}[{name}]"
        return type(self).__name__

    def applies_to(self, resource: ProtectedResource | None) -> bool:
        """Check the resource type filter."""
        if self.resource_type is None:
            return True
        if resource is None:
            return False
        if isinstance(self.resource_type, str):
            return resource.resource_name() == self.resource_type
        return isinstance(resource, self.resource_type)

    def is_satisfied_by(
        self,
        actor: Actor,
        resource: ProtectedResource | None,
        verb: str,
    ) -> Any:
        """Run the predicate. Subclasses may override instead of passing one."""
        return self.call_predicate(actor, resource, verb)

    def call_predicate(
        self,
        actor: Actor,
        resource: ProtectedResource | None,
        verb: str,
    ) -> Any:
        """Call the predicate with the arguments this adapter passes it."""
        return self.predicate(actor, resource, verb)

    def _decide(
        self,
        actor: Actor,
        resource: ProtectedResource | None,
        verb: str,
    ) -> Verdict:
        if not self.applies_to(resource):
            return Verdict.ABSTAIN

        result = self.is_satisfied_by(actor, resource, verb)
        verdict = Verdict.coerce(result)
        if result is not None and not isinstance(result, Verdict):
            logger.warning(
                f"{self.label}: criteria returned unrecognized value {result!r}, abstaining"
            )
        return verdict

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        return self._decide(actor, resource, verb)

    def evaluate_for_guest(
        self,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        if self.user_only or not self.supports_guests:
            return Verdict.ABSTAIN
        return self._decide(GUEST, resource, verb)

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        resource_type = self.resource_type
        if isinstance(resource_type, type):
            resource_type = resource_type.__name__
        description["resource_type"] = resource_type
        description["supports_guests"] = self.supports_guests and not self.user_only
        return description


class UserCriteriaPolicy(CriteriaPolicy):
    """
    Criteria over the user only: the predicate is called as (actor, verb).

    Never applies to guests, whatever supports_guests says.

    Example:
        >>> def verified_users_may_comment(actor, verb):
        ...     if verb == "create" and actor.identity in verified:
        ...         return Verdict.ALLOW
        >>>
        >>> UserCriteriaPolicy(verified_users_may_comment, resource_type="comment")
    """

    user_only = True

    def call_predicate(self, actor, resource, verb) -> Any:
        return self.predicate(actor, verb)


class ResourceCriteriaPolicy(CriteriaPolicy):
    """
    Criteria over the resource only: the predicate is called as (resource, verb).

    Requires a concrete resource; bare-noun checks abstain. Because the
    predicate never sees the actor, it applies to guests by default.
    """

    supports_guests = True

    def applies_to(self, resource: ProtectedResource | None) -> bool:
        if resource is None:
            return False
        return super().applies_to(resource)

    def call_predicate(self, actor, resource, verb) -> Any:
        return self.predicate(resource, verb)
