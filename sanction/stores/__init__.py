"""
Stores for Sanction.

Stores supply the facts leaf policies decide from. The protocols live in
sanction.stores.base; in-memory implementations are exported here. The
Casbin-backed store is imported from sanction.stores.casbin_store because
it needs the optional casbin package.
"""

from sanction.stores.base import (
    BanListStore,
    GroupACLStore,
    ResourceACLStore,
    RoleACLStore,
    SuperuserListStore,
    WritableBanListStore,
)
from sanction.stores.memory import (
    InMemoryBanListStore,
    InMemoryGroupACLStore,
    InMemoryResourceACLStore,
    InMemoryRoleACLStore,
    InMemorySuperuserStore,
)

__all__ = [
    # Protocols
    "SuperuserListStore",
    "BanListStore",
    "WritableBanListStore",
    "RoleACLStore",
    "GroupACLStore",
    "ResourceACLStore",
    # In-memory stores
    "InMemorySuperuserStore",
    "InMemoryBanListStore",
    "InMemoryRoleACLStore",
    "InMemoryGroupACLStore",
    "InMemoryResourceACLStore",
]
