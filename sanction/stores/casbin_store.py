"""
Casbin-backed role ACL store for Sanction.

Casbin keeps role assignments (g rules) and role permissions (p rules)
in a model/policy pair that can live in files or in any Casbin adapter.
This module exposes such an enforcer through the RoleACLStore protocol,
so RoleACLPolicy can decide from Casbin-managed facts while the engine
keeps its own deny-overrides aggregation and reporting.

Casbin is an optional dependency. If not installed, constructing the
store raises an informative error.

Model Example (RBAC):
    [request_definition]
    r = sub, obj, act

    [policy_definition]
    p = sub, obj, act

    [role_definition]
    g = _, _

    [policy_effect]
    e = some(where (p.eft == allow))

    [matchers]
    m = g(r.sub, p.sub) && r.obj == p.obj && r.act == p.act

Policy Example:
    p, editor, post, create
    p, editor, post, update
    g, alice, editor
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sanction.exceptions import ConfigurationError, StoreUnavailableError

if TYPE_CHECKING:
    from sanction.types import AuthenticatedUser

logger = logging.getLogger(__name__)

# Check if casbin is available
try:
    import casbin
    HAS_CASBIN = True
except ImportError:
    casbin = None  # type: ignore
    HAS_CASBIN = False


class CasbinRoleACLStore:
    """
    RoleACLStore backed by a Casbin enforcer.

    Requirements:
        Install with: pip install sanction[casbin]

    Args:
        enforcer: A ready Casbin enforcer. Mutually exclusive with the
            file paths.
        model_path: Path to the Casbin model file (model.conf).
        policy_path: Path to the policy file (policy.csv).
        subject: Maps an actor to its Casbin subject. Defaults to
            str(actor.identity).
        implicit_roles: If True, roles inherited through role hierarchies
            are included in roles_of().

    Example:
        >>> store = CasbinRoleACLStore(model_path="model.conf", policy_path="policy.csv")
        >>> engine.push_policy(RoleACLPolicy(store))
    """

    def __init__(
        self,
        enforcer: Any = None,
        model_path: str | Path | None = None,
        policy_path: str | Path | None = None,
        subject: Callable[[AuthenticatedUser], str] | None = None,
        implicit_roles: bool = True,
    ) -> None:
        if not HAS_CASBIN:
            raise StoreUnavailableError("Casbin", "casbin")

        if enforcer is None:
            enforcer = self._load_enforcer(model_path, policy_path)
        elif model_path is not None or policy_path is not None:
            raise ConfigurationError(
                config_key="enforcer",
                expected="either an enforcer or model/policy paths, not both",
            )

        self.enforcer = enforcer
        self._subject = subject or (lambda actor: str(actor.identity))
        self.implicit_roles = implicit_roles

    @staticmethod
    def _load_enforcer(model_path: str | Path | None, policy_path: str | Path | None) -> Any:
        for key, path in (("model_path", model_path), ("policy_path", policy_path)):
            if path is None:
                raise ConfigurationError(config_key=key, expected="a file path")
            if not Path(path).exists():
                raise ConfigurationError(
                    config_key=key,
                    expected="an existing file",
                    received=str(path),
                )

        enforcer = casbin.Enforcer(str(model_path), str(policy_path))
        logger.debug(f"Loaded Casbin policies from {policy_path}")
        return enforcer

    def roles_of(self, actor: AuthenticatedUser) -> list[str]:
        subject = self._subject(actor)
        if self.implicit_roles:
            return list(self.enforcer.get_implicit_roles_for_user(subject))
        return list(self.enforcer.get_roles_for_user(subject))

    def may_role(self, role: str, verb: str, noun: str) -> bool:
        return bool(self.enforcer.enforce(role, noun, verb))

    def grant(self, role: str, verb: str, noun: str) -> bool:
        """Add a p rule for the role. Returns False if it already existed."""
        return bool(self.enforcer.add_policy(role, noun, verb))

    def revoke(self, role: str, verb: str, noun: str) -> bool:
        return bool(self.enforcer.remove_policy(role, noun, verb))

    def assign(self, actor: AuthenticatedUser, role: str) -> bool:
        """Add a g rule making the actor a member of the role."""
        return bool(self.enforcer.add_role_for_user(self._subject(actor), role))
