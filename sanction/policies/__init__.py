"""
Policy system for Sanction.

Policies answer ALLOW, DENY or ABSTAIN for a check. Leaf policies decide
from a store or a predicate; composites combine other policies.

Quick Start:
    >>> from sanction.policies import BanListPolicy, RoleACLPolicy, Required
    >>>
    >>> engine.push_policy(RoleACLPolicy(acl))
    >>> engine.push_policy(BanListPolicy(bans))
"""

from sanction.policies.base import Policy, StorePolicy, run_policy
from sanction.policies.builtin import (
    AllowAllPolicy,
    BanListPolicy,
    DenyAllPolicy,
    DenyGuestsPolicy,
    GroupACLPolicy,
    OwnershipPolicy,
    ResourceACLPolicy,
    RoleACLPolicy,
    SuperuserPolicy,
)
from sanction.policies.composite import (
    CompositePolicy,
    FulfillAll,
    FulfillAny,
    Required,
)
from sanction.policies.criteria import (
    CriteriaPolicy,
    ResourceCriteriaPolicy,
    UserCriteriaPolicy,
)

__all__ = [
    # Base classes
    "Policy",
    "StorePolicy",
    "run_policy",
    # Built-in policies
    "AllowAllPolicy",
    "DenyAllPolicy",
    "DenyGuestsPolicy",
    "SuperuserPolicy",
    "BanListPolicy",
    "RoleACLPolicy",
    "GroupACLPolicy",
    "ResourceACLPolicy",
    "OwnershipPolicy",
    # Composites
    "CompositePolicy",
    "FulfillAll",
    "FulfillAny",
    "Required",
    # Criteria adapters
    "CriteriaPolicy",
    "UserCriteriaPolicy",
    "ResourceCriteriaPolicy",
]
