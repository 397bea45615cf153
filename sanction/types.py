"""
Core type definitions for Sanction.

This module defines the fundamental data structures used throughout the
engine: the tri-state Verdict, the actor variants (authenticated user or
guest), the ProtectedResource capability contract, and the immutable
Decision produced by every evaluation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from sanction.audit.report import Report


class Verdict(str, Enum):
    """
    Tri-state outcome of a single policy.

    ABSTAIN means "this policy has no opinion". It is the default answer
    of any policy that does not apply and must never be read as DENY.
    """

    ALLOW = "allow"
    DENY = "deny"
    ABSTAIN = "abstain"

    @classmethod
    def coerce(cls, value: Any) -> Verdict:
        """
        Map an arbitrary value onto a Verdict.

        Verdict members pass through unchanged. Everything else, including
        None, booleans and strings, becomes ABSTAIN.

        Example:
            >>> Verdict.coerce(Verdict.DENY)
            <Verdict.DENY: 'deny'>
            >>> Verdict.coerce(True)
            <Verdict.ABSTAIN: 'abstain'>
        """
        if isinstance(value, Verdict):
            return value
        return cls.ABSTAIN

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AuthenticatedUser:
    """
    An actor whose identity was established by the host application.

    The identity is an opaque token: Sanction never inspects it beyond
    equality and hashing, and hands it to stores for lookups.

    Attributes:
        identity: Whatever the host uses to identify the user (an id,
            a username, a user object with value equality).

    Example:
        >>> alice = AuthenticatedUser("alice")
        >>> alice == AuthenticatedUser("alice")
        True
    """

    identity: Any
    is_guest: ClassVar[bool] = False

    def __post_init__(self) -> None:
        if self.identity is None:
            raise ValueError("AuthenticatedUser requires an identity")

    def describe(self) -> str:
        return f"user '{self.identity}'"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"type": "user", "identity": str(self.identity)}


@dataclass(frozen=True)
class Guest:
    """An actor without identity. Use the module-level GUEST singleton."""

    is_guest: ClassVar[bool] = True

    def describe(self) -> str:
        return "guest"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"type": "guest", "identity": None}


GUEST = Guest()

Actor = Union[AuthenticatedUser, Guest]


def as_actor(value: Any) -> Actor:
    """
    Normalize a host value into an Actor.

    Actors pass through, None becomes GUEST, and any other value is taken
    as an identity and wrapped in AuthenticatedUser.
    """
    if isinstance(value, (AuthenticatedUser, Guest)):
        return value
    if value is None:
        return GUEST
    return AuthenticatedUser(value)


@runtime_checkable
class ProtectedResource(Protocol):
    """
    Capability contract for domain objects that can be authorized directly.

    A check may target either a bare noun string or an object implementing
    this protocol. When a resource is given, its resource_name() is the
    noun, and ownership-aware policies can ask is_owned_by().

    Example:
        >>> @dataclass
        ... class Post:
        ...     author_id: str
        ...
        ...     def resource_name(self) -> str:
        ...         return "post"
        ...
        ...     def is_owned_by(self, actor) -> bool:
        ...         return actor.identity == self.author_id
    """

    def resource_name(self) -> str:
        ...

    def is_owned_by(self, actor: AuthenticatedUser) -> bool:
        ...


@dataclass(frozen=True)
class Decision:
    """
    Immutable result of one evaluation.

    Attributes:
        granted: True only if at least one policy allowed and none denied.
        report: Ordered audit trail of the policies that were consulted.
        actor: The actor the decision was computed for.
        verb: The action that was checked.
        noun: The resolved noun (resource name when a resource was given).
        metadata: Read-only extra context, such as the engine name.

    Example:
        >>> decision = engine.decide("create", "post", actor=alice)
        >>> if not decision.granted:
        ...     print(decision.report)
    """

    granted: bool
    report: Report
    actor: Actor = GUEST
    verb: str = ""
    noun: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def denied(self) -> bool:
        return not self.granted

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "granted": self.granted,
            "actor": self.actor.to_dict(),
            "verb": self.verb,
            "noun": self.noun,
            "report": self.report.to_dict(),
            "metadata": dict(self.metadata),
        }
