"""
Pytest fixtures for Sanction tests.

Provides common fixtures used across all test modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import pytest

from sanction import AuthenticatedUser, DecisionEngine, Policy, Verdict
from sanction.stores import (
    InMemoryBanListStore,
    InMemoryGroupACLStore,
    InMemoryResourceACLStore,
    InMemoryRoleACLStore,
    InMemorySuperuserStore,
)


# ============================================================================
# Domain Fixtures
# ============================================================================


@dataclass
class Post:
    """Protected resource used throughout the tests."""

    author_id: str
    published: bool = False

    def resource_name(self) -> str:
        return "post"

    def is_owned_by(self, actor: AuthenticatedUser) -> bool:
        return actor.identity == self.author_id


@dataclass
class Comment:
    """Second resource type, for resource type filters."""

    author_id: str

    def resource_name(self) -> str:
        return "comment"

    def is_owned_by(self, actor: AuthenticatedUser) -> bool:
        return actor.identity == self.author_id


@pytest.fixture
def post_cls() -> type[Post]:
    return Post


@pytest.fixture
def comment_cls() -> type[Comment]:
    return Comment


@pytest.fixture
def alices_post() -> Post:
    """A post written by alice."""
    return Post(author_id="alice", published=True)


@pytest.fixture
def draft_post() -> Post:
    """An unpublished post written by bob."""
    return Post(author_id="bob", published=False)


@pytest.fixture
def comment() -> Comment:
    return Comment(author_id="alice")


# ============================================================================
# Actor Fixtures
# ============================================================================


@pytest.fixture
def alice() -> AuthenticatedUser:
    """An editor."""
    return AuthenticatedUser("alice")


@pytest.fixture
def bob() -> AuthenticatedUser:
    """A user with no roles."""
    return AuthenticatedUser("bob")


@pytest.fixture
def root() -> AuthenticatedUser:
    """A superuser."""
    return AuthenticatedUser("root")


@pytest.fixture
def mallory() -> AuthenticatedUser:
    """An editor banned from creating posts."""
    return AuthenticatedUser("mallory")


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def superusers(root: AuthenticatedUser) -> InMemorySuperuserStore:
    return InMemorySuperuserStore([root.identity])


@pytest.fixture
def bans(mallory: AuthenticatedUser) -> InMemoryBanListStore:
    store = InMemoryBanListStore()
    store.ban(mallory, "create", "post")
    return store


@pytest.fixture
def role_acl(alice: AuthenticatedUser, mallory: AuthenticatedUser) -> InMemoryRoleACLStore:
    store = InMemoryRoleACLStore()
    store.assign(alice, "editor")
    store.assign(mallory, "editor")
    store.grant_many({
        "editor": {"post": ["create", "update"]},
        "guest": {"post": ["read"]},
    })
    return store


@pytest.fixture
def group_acl(bob: AuthenticatedUser) -> InMemoryGroupACLStore:
    store = InMemoryGroupACLStore()
    store.join(bob, "moderators")
    store.grant("moderators", "delete", "comment")
    return store


@pytest.fixture
def resource_acl(bob: AuthenticatedUser) -> InMemoryResourceACLStore:
    store = InMemoryResourceACLStore()
    store.allow(bob, "update", "post")
    return store


@pytest.fixture
def broken_store() -> Any:
    """A store whose every query raises."""
    class BrokenStore:
        def __getattr__(self, name: str) -> Callable[..., Any]:
            def fail(*args: Any, **kwargs: Any) -> Any:
                raise OSError(f"backend unavailable during {name}")
            return fail

    return BrokenStore()


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def engine() -> DecisionEngine:
    """An engine with no policies."""
    return DecisionEngine(config={"name": "test"})


# ============================================================================
# Helper Fixtures
# ============================================================================


class FixedPolicy(Policy):
    """Policy with canned answers that records how often it ran."""

    def __init__(
        self,
        user_verdict: Any,
        guest_verdict: Any = None,
        label: str | None = None,
    ) -> None:
        super().__init__(label)
        self.user_verdict = user_verdict
        self.guest_verdict = user_verdict if guest_verdict is None else guest_verdict
        self.calls: list[tuple[str, Any]] = []

    def evaluate_for_user(self, actor, verb, noun, resource=None):
        self.calls.append(("user", actor))
        return self.user_verdict

    def evaluate_for_guest(self, verb, noun, resource=None):
        self.calls.append(("guest", None))
        return self.guest_verdict


@pytest.fixture
def fixed() -> Callable[..., FixedPolicy]:
    """Factory for policies with canned verdicts."""
    def make(
        user_verdict: Any = Verdict.ABSTAIN,
        guest_verdict: Any = None,
        label: str | None = None,
    ) -> FixedPolicy:
        return FixedPolicy(user_verdict, guest_verdict, label)

    return make
