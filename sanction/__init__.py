"""
Sanction: an authorization decision engine.

Sanction decides whether an actor (an authenticated user or a guest) may
perform a verb on a noun or a concrete resource, by consulting an ordered
list of pluggable policies and aggregating their ALLOW / DENY / ABSTAIN
verdicts under deny-overrides. Every decision comes with a report that
explains how it was reached.

Basic Usage:
    >>> from sanction import (
    ...     AuthenticatedUser, BanListPolicy, DecisionEngine, RoleACLPolicy,
    ... )
    >>> from sanction.stores import InMemoryBanListStore, InMemoryRoleACLStore
    >>>
    >>> acl = InMemoryRoleACLStore()
    >>> alice = AuthenticatedUser("alice")
    >>> acl.assign(alice, "editor")
    >>> acl.grant("editor", "create", "post")
    >>>
    >>> engine = DecisionEngine()
    >>> engine.push_policy(RoleACLPolicy(acl))
    >>> engine.push_policy(BanListPolicy(InMemoryBanListStore()))
    >>>
    >>> engine.with_actor(alice).check("create", "post").please()
    >>> engine.can("delete", "post", actor=alice)
    False
"""

__version__ = "0.1.0"

from sanction.audit.report import Report, ReportEntry
from sanction.check import Check
from sanction.config import EngineConfig
from sanction.context import acting_as, get_current_actor
from sanction.decorators import requires
from sanction.engine import DecisionEngine

# Exceptions - always available
from sanction.exceptions import (
    AuthorizationDenied,
    CheckNotPerformedError,
    ConfigurationError,
    MisconfiguredPolicy,
    SanctionError,
    StoreFailure,
    StoreUnavailableError,
)
from sanction.policies import (
    AllowAllPolicy,
    BanListPolicy,
    CriteriaPolicy,
    DenyAllPolicy,
    DenyGuestsPolicy,
    FulfillAll,
    FulfillAny,
    GroupACLPolicy,
    OwnershipPolicy,
    Policy,
    Required,
    ResourceACLPolicy,
    ResourceCriteriaPolicy,
    RoleACLPolicy,
    SuperuserPolicy,
    UserCriteriaPolicy,
)
from sanction.types import (
    GUEST,
    Actor,
    AuthenticatedUser,
    Decision,
    Guest,
    ProtectedResource,
    Verdict,
    as_actor,
)

__all__ = [
    # Version
    "__version__",
    # Engine
    "DecisionEngine",
    "EngineConfig",
    "Check",
    # Core types
    "Verdict",
    "Actor",
    "AuthenticatedUser",
    "Guest",
    "GUEST",
    "as_actor",
    "ProtectedResource",
    "Decision",
    "Report",
    "ReportEntry",
    # Policies
    "Policy",
    "AllowAllPolicy",
    "DenyAllPolicy",
    "DenyGuestsPolicy",
    "SuperuserPolicy",
    "BanListPolicy",
    "RoleACLPolicy",
    "GroupACLPolicy",
    "ResourceACLPolicy",
    "OwnershipPolicy",
    "FulfillAll",
    "FulfillAny",
    "Required",
    "CriteriaPolicy",
    "UserCriteriaPolicy",
    "ResourceCriteriaPolicy",
    # Exceptions
    "SanctionError",
    "AuthorizationDenied",
    "StoreFailure",
    "MisconfiguredPolicy",
    "ConfigurationError",
    "CheckNotPerformedError",
    "StoreUnavailableError",
    # Context helpers
    "acting_as",
    "get_current_actor",
    # Decorators
    "requires",
]
