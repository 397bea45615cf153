"""
Store protocols for Sanction.

Stores supply the raw facts leaf policies decide from: who is a
superuser, who is banned from what, which roles or groups may do what.
Each protocol is deliberately narrow so that any backend (a file, a
database table, an external authorization service) can implement it.

Stores are called synchronously and may block; timeouts and retries are
the store implementation's business.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sanction.types import AuthenticatedUser, ProtectedResource


@runtime_checkable
class SuperuserListStore(Protocol):
    """Answers whether a user bypasses all other rules."""

    def is_superuser(self, actor: AuthenticatedUser) -> bool:
        ...


@runtime_checkable
class BanListStore(Protocol):
    """Answers whether a user is banned from a verb on a noun."""

    def is_banned(self, actor: AuthenticatedUser, verb: str, noun: str) -> bool:
        ...


@runtime_checkable
class WritableBanListStore(BanListStore, Protocol):
    """Ban list that can be edited at runtime."""

    def ban(self, actor: AuthenticatedUser, verb: str, noun: str) -> None:
        ...

    def unban(self, actor: AuthenticatedUser, verb: str, noun: str) -> bool:
        ...


@runtime_checkable
class RoleACLStore(Protocol):
    """
    Role-based access control list.

    Example:
        >>> store.roles_of(alice)
        ['editor']
        >>> store.may_role("editor", "create", "post")
        True
    """

    def roles_of(self, actor: AuthenticatedUser) -> Iterable[str]:
        ...

    def may_role(self, role: str, verb: str, noun: str) -> bool:
        ...


@runtime_checkable
class GroupACLStore(Protocol):
    """Group-based access control list."""

    def groups_of(self, actor: AuthenticatedUser) -> Iterable[str]:
        ...

    def may_group(self, group: str, verb: str, noun: str) -> bool:
        ...


@runtime_checkable
class ResourceACLStore(Protocol):
    """
    Access list keyed by user and noun, optionally by resource instance.

    The resource argument is None when the check targeted a bare noun.
    """

    def may_access(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> bool:
        ...
