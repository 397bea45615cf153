"""
Built-in policies for Sanction.

This module provides the commonly used leaf policies. Store-backed
policies answer ALLOW (or DENY for the ban list) when their store has a
matching fact and ABSTAIN otherwise; none of them turns a missing fact
into a DENY.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sanction.audit.report import note
from sanction.policies.base import Policy, StorePolicy
from sanction.types import Verdict

if TYPE_CHECKING:
    from sanction.stores.base import (
        BanListStore,
        GroupACLStore,
        ResourceACLStore,
        RoleACLStore,
        SuperuserListStore,
    )
    from sanction.types import AuthenticatedUser, ProtectedResource

logger = logging.getLogger(__name__)


class AllowAllPolicy(Policy):
    """
    Policy that allows everything, for users and guests alike.

    WARNING: This policy should ONLY be used for testing or in
    development environments. A warning is logged every time it is
    instantiated to help catch accidental production usage. Note that a
    DENY from any other policy still wins over it.
    """

    def __init__(self, label: str | None = None) -> None:
        super().__init__(label)
        logger.warning(
            f"{self.label} instantiated. This policy allows ALL actions "
            "and should NOT be used in production!"
        )

    def evaluate_for_user(self, actor, verb, noun, resource=None) -> Verdict:
        return Verdict.ALLOW

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.ALLOW


class DenyAllPolicy(Policy):
    """
    Policy that denies everything.

    Pushing it locks the engine down: no combination of other policies
    can grant access while it is in place.
    """

    def evaluate_for_user(self, actor, verb, noun, resource=None) -> Verdict:
        return Verdict.DENY

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.DENY


class DenyGuestsPolicy(Policy):
    """Denies every guest check and abstains for authenticated users."""

    def evaluate_for_user(self, actor, verb, noun, resource=None) -> Verdict:
        return Verdict.ABSTAIN

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        note("guests are not allowed")
        return Verdict.DENY


class SuperuserPolicy(StorePolicy):
    """
    Allows every action for users listed as superusers.

    Superusers are still subject to DENY verdicts from other policies
    (a ban list, for instance), because deny always overrides.

    Example:
        >>> engine.push_policy(SuperuserPolicy(InMemorySuperuserStore(["root"])))
    """

    store: SuperuserListStore

    def __init__(self, store: SuperuserListStore, label: str | None = None) -> None:
        super().__init__(store, label)

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        if self.query(self.store.is_superuser, actor):
            note(f"{actor.describe()} is a superuser")
            return Verdict.ALLOW
        return Verdict.ABSTAIN

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.ABSTAIN


class BanListPolicy(StorePolicy):
    """
    Denies actions a user has been banned from.

    Example:
        >>> bans = InMemoryBanListStore()
        >>> bans.ban(AuthenticatedUser("mallory"), "create", "post")
        >>> engine.push_policy(BanListPolicy(bans))
    """

    store: BanListStore

    def __init__(self, store: BanListStore, label: str | None = None) -> None:
        super().__init__(store, label)

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        if self.query(self.store.is_banned, actor, verb, noun):
            note(f"{actor.describe()} is banned from {verb} {noun}")
            return Verdict.DENY
        return Verdict.ABSTAIN

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.ABSTAIN


class RoleACLPolicy(StorePolicy):
    """
    Allows an action when any of the user's roles may perform it.

    Guests have no roles. If guest_role is given, guest checks are
    answered as if the guest held that single role.

    Attributes:
        guest_role: Role to check guests against, or None to abstain.

    Example:
        >>> acl = InMemoryRoleACLStore()
        >>> acl.assign(AuthenticatedUser("alice"), "editor")
        >>> acl.grant("editor", "create", "post")
        >>> engine.push_policy(RoleACLPolicy(acl))
    """

    store: RoleACLStore

    def __init__(
        self,
        store: RoleACLStore,
        guest_role: str | None = None,
        label: str | None = None,
    ) -> None:
        super().__init__(store, label)
        self.guest_role = guest_role

    def _check_roles(self, roles: Iterable[str], verb: str, noun: str) -> Verdict:
        for role in roles:
            if self.query(self.store.may_role, role, verb, noun):
                note(f"role '{role}' may {verb} {noun}")
                return Verdict.ALLOW
        return Verdict.ABSTAIN

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        roles = self.query(self.store.roles_of, actor)
        return self._check_roles(roles, verb, noun)

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        if self.guest_role is None:
            return Verdict.ABSTAIN
        return self._check_roles([self.guest_role], verb, noun)


class GroupACLPolicy(StorePolicy):
    """Allows an action when any of the user's groups may perform it."""

    store: GroupACLStore

    def __init__(self, store: GroupACLStore, label: str | None = None) -> None:
        super().__init__(store, label)

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        for group in self.query(self.store.groups_of, actor):
            if self.query(self.store.may_group, group, verb, noun):
                note(f"group '{group}' may {verb} {noun}")
                return Verdict.ALLOW
        return Verdict.ABSTAIN

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.ABSTAIN


class ResourceACLPolicy(StorePolicy):
    """Allows an action when the user is on the access list for the noun or resource."""

    store: ResourceACLStore

    def __init__(self, store: ResourceACLStore, label: str | None = None) -> None:
        super().__init__(store, label)

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        if self.query(self.store.may_access, actor, verb, noun, resource):
            note(f"{actor.describe()} is listed for {verb} {noun}")
            return Verdict.ALLOW
        return Verdict.ABSTAIN

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.ABSTAIN


class OwnershipPolicy(Policy):
    """
    Allows actions on resources the user owns.

    Ownership needs a concrete resource: checks against a bare noun
    abstain, as do guests.

    Attributes:
        verbs: Verbs owners may perform, or None for every verb.

    Example:
        >>> engine.push_policy(OwnershipPolicy(verbs=["update", "delete"]))
    """

    def __init__(
        self,
        verbs: Iterable[str] | None = None,
        label: str | None = None,
    ) -> None:
        super().__init__(label)
        self.verbs = frozenset(verbs) if verbs is not None else None

    def evaluate_for_user(
        self,
        actor: AuthenticatedUser,
        verb: str,
        noun: str,
        resource: ProtectedResource | None = None,
    ) -> Verdict:
        if resource is None:
            return Verdict.ABSTAIN
        if self.verbs is not None and verb not in self.verbs:
            return Verdict.ABSTAIN
        if resource.is_owned_by(actor):
            note(f"{actor.describe()} owns the {noun}")
            return Verdict.ALLOW
        return Verdict.ABSTAIN

    def evaluate_for_guest(self, verb, noun, resource=None) -> Verdict:
        return Verdict.ABSTAIN

    def describe(self) -> dict[str, Any]:
        description = super().describe()
        description["verbs"] = sorted(self.verbs) if self.verbs is not None else None
        return description
