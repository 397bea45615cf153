"""
In-memory stores for Sanction.

Reference implementations of the store protocols, suitable for tests,
prototypes and small applications whose rules fit in code. Facts are keyed
by the actor's identity. Ban and grant rules accept "*" as a wildcard verb
or noun.

Thread Safety:
    All stores guard their state with an internal lock, so they can be
    read from concurrent evaluations while being edited.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sanction.types import AuthenticatedUser, ProtectedResource

logger = logging.getLogger(__name__)

WILDCARD = "*"


def _candidates(verb: str, noun: str) -> list[tuple[str, str]]:
    return [(verb, noun), (WILDCARD, noun), (verb, WILDCARD), (WILDCARD, WILDCARD)]


class InMemorySuperuserStore:
    """
    Superuser list held in a set of identities.

    Example:
        >>> store = InMemorySuperuserStore(["root"])
        >>> store.is_superuser(AuthenticatedUser("root"))
        True
    """

    def __init__(self, identities: Iterable[Any] = ()) -> None:
        self._lock = threading.RLock()
        self._identities: set[Any] = set(identities)

    def is_superuser(self, actor: AuthenticatedUser) -> bool:
        with self._lock:
            return actor.identity in self._identities

    def add(self, actor: AuthenticatedUser) -> None:
        with self._lock:
            self._identities.add(actor.identity)
        logger.debug(f"Added superuser: {actor.identity}")

    def remove(self, actor: AuthenticatedUser) -> bool:
        with self._lock:
            if actor.identity not in self._identities:
                return False
            self._identities.remove(actor.identity)
        logger.debug(f"Removed superuser: {actor.identity}")
        return True


class InMemoryBanListStore:
    """
    Writable ban list of (identity, verb, noun) rules.

    Example:
        >>> bans = InMemoryBanListStore()
        >>> bans.ban(mallory, "*", "post")   # banned from every post action
        >>> bans.is_banned(mallory, "create", "post")
        True
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._bans: dict[Any, set[tuple[str, str]]] = defaultdict(set)

    def is_banned(self, actor: AuthenticatedUser, verb: str, noun: str) -> bool:
        with self._lock:
            rules = self._bans.get(actor.identity)
            if not rules:
                return False
            return any(rule in rules for rule in _candidates(verb, noun))

    def ban(self, actor: AuthenticatedUser, verb: str, noun: str) -> None:
        with self._lock:
            self._bans[actor.identity].add((verb, noun))
        logger.debug(f"Banned {actor.identity} from {verb} {noun}")

    def unban(self, actor: AuthenticatedUser, verb: str, noun: str) -> bool:
        """
        Remove a ban rule.

        Returns:
            True if the exact rule existed and was removed.
        """
        with self._lock:
            rules = self._bans.get(actor.identity)
            if not rules or (verb, noun) not in rules:
                return False
            rules.remove((verb, noun))
            if not rules:
                del self._bans[actor.identity]
        logger.debug(f"Unbanned {actor.identity} from {verb} {noun}")
        return True


class _MembershipACL:
    """Shared bookkeeping for role and group access lists."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._members: dict[Any, list[str]] = defaultdict(list)
        self._grants: dict[str, set[tuple[str, str]]] = defaultdict(set)

    def _memberships(self, actor: AuthenticatedUser) -> list[str]:
        with self._lock:
            return list(self._members.get(actor.identity, ()))

    def _assign(self, actor: AuthenticatedUser, name: str) -> None:
        with self._lock:
            if name not in self._members[actor.identity]:
                self._members[actor.identity].append(name)

    def _unassign(self, actor: AuthenticatedUser, name: str) -> bool:
        with self._lock:
            names = self._members.get(actor.identity)
            if not names or name not in names:
                return False
            names.remove(name)
            return True

    def _may(self, name: str, verb: str, noun: str) -> bool:
        with self._lock:
            grants = self._grants.get(name)
            if not grants:
                return False
            return any(rule in grants for rule in _candidates(verb, noun))

    def grant(self, name: str, verb: str, noun: str) -> None:
        with self._lock:
            self._grants[name].add((verb, noun))
        logger.debug(f"Granted {name}: {verb} {noun}")

    def revoke(self, name: str, verb: str, noun: str) -> bool:
        with self._lock:
            grants = self._grants.get(name)
            if not grants or (verb, noun) not in grants:
                return False
            grants.remove((verb, noun))
        logger.debug(f"Revoked {name}: {verb} {noun}")
        return True

    def grant_many(self, rules: dict[str, dict[str, list[str]]]) -> None:
        """
        Add many grants at once.

        Args:
            rules: Nested dict of role/group -> noun -> verbs.

        Example:
            >>> store.grant_many({
            ...     "editor": {"post": ["create", "update"]},
            ...     "admin": {"*": ["*"]},
            ... })
        """
        for name, nouns in rules.items():
            for noun, verbs in nouns.items():
                for verb in verbs:
                    self.grant(name, verb, noun)


class InMemoryRoleACLStore(_MembershipACL):
    """Role assignments and role grants held in memory."""

    def roles_of(self, actor: AuthenticatedUser) -> list[str]:
        return self._memberships(actor)

    def may_role(self, role: str, verb: str, noun: str) -> bool:
        return self._may(role, verb, noun)

    def assign(self, actor: AuthenticatedUser, role: str) -> None:
        self._assign(actor, role)

    def unassign(self, actor: AuthenticatedUser, role: str) -> bool:
        return self._unassign(actor, role)


class InMemoryGroupACLStore(_MembershipACL):
    """Group memberships and group grants held in memory."""

    def groups_of(self, actor: AuthenticatedUser) -> list[str]:
        return self._memberships(actor)

    def may_group(self, group: str, verb: str, noun: str) -> bool:
        return self._may(group, verb, noun)

    def join(self, actor: AuthenticatedUser, group: str) -> None:
        self._assign(actor, group)

    def leave(self, actor: AuthenticatedUser, group: str) -> bool:
        return self._unassign(actor, group)


class InMemoryResourceACLStore:
    """
    Per-user access list on nouns.

    Grants are (identity, verb, noun) rules; the resource instance is not
    consulted, so listing a user for "update" on "post" covers every post.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[Any, set[tuple[str, str]]] = defaultdict(set)

    def may_access(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> bool:
        with self._lock:
            rules = self._entries.get(actor.identity)
            if not rules:
                return False
            return any(rule in rules for rule in _candidates(verb, noun))

    def allow(self, actor: AuthenticatedUser, verb: str, noun: str) -> None:
        with self._lock:
            self._entries[actor.identity].add((verb, noun))

    def disallow(self, actor: AuthenticatedUser, verb: str, noun: str) -> bool:
        with self._lock:
            rules = self._entries.get(actor.identity)
            if not rules or (verb, noun) not in rules:
                return False
            rules.remove((verb, noun))
            return True
