"""
Tests for the DecisionEngine.

Tests cover:
- Deny-overrides aggregation and default deny
- End-to-end scenarios with built-in and composite policies
- Identity resolution precedence
- Policy management, listeners and explanations
- Error propagation
"""

from __future__ import annotations

import itertools
import logging

import pytest

from sanction import (
    GUEST,
    AuthenticatedUser,
    AuthorizationDenied,
    BanListPolicy,
    ConfigurationError,
    DecisionEngine,
    EngineConfig,
    FulfillAny,
    MisconfiguredPolicy,
    OwnershipPolicy,
    Policy,
    Required,
    RoleACLPolicy,
    StoreFailure,
    SuperuserPolicy,
    Verdict,
    acting_as,
)
from sanction.engine import split_target
from sanction.policies.base import run_policy


class TestAggregation:
    """Deny-overrides over every combination of top-level verdicts."""

    def test_deny_overrides_exhaustively(self, engine, fixed, alice):
        for size in (1, 2, 3, 4):
            for combo in itertools.product(list(Verdict), repeat=size):
                engine.clear_policies()
                for verdict in combo:
                    engine.push_policy(fixed(verdict))

                decision = engine.evaluate(alice, "read", "post")

                expected = Verdict.ALLOW in combo and Verdict.DENY not in combo
                assert decision.granted is expected, combo
                assert decision.report.verdicts() == list(combo)

    def test_order_does_not_change_outcome(self, engine, fixed, alice):
        for combo in itertools.permutations([Verdict.ALLOW, Verdict.DENY, Verdict.ABSTAIN]):
            engine.clear_policies()
            for verdict in combo:
                engine.push_policy(fixed(verdict))
            assert engine.evaluate(alice, "read", "post").granted is False

    def test_all_abstain_denies(self, engine, fixed, alice):
        engine.push_policy(fixed(Verdict.ABSTAIN))
        engine.push_policy(fixed(Verdict.ABSTAIN))
        assert engine.evaluate(alice, "read", "post").denied

    def test_every_policy_runs_after_a_deny(self, engine, fixed, alice):
        policies = [fixed(Verdict.DENY), fixed(Verdict.ALLOW), fixed(Verdict.ABSTAIN)]
        for policy in policies:
            engine.push_policy(policy)

        decision = engine.evaluate(alice, "read", "post")

        assert decision.granted is False
        assert all(len(policy.calls) == 1 for policy in policies)
        assert len(decision.report) == 3

    def test_report_is_fresh_per_evaluation(self, engine, fixed, alice):
        engine.push_policy(fixed(Verdict.ALLOW))
        first = engine.evaluate(alice, "read", "post")
        second = engine.evaluate(alice, "read", "post")

        assert first.report is not second.report
        assert len(first.report) == 1
        assert len(second.report) == 1


class TestScenarios:
    """End-to-end decisions with the built-in policies."""

    def test_superuser_is_granted(self, engine, superusers, root):
        engine.push_policy(SuperuserPolicy(superusers))

        decision = engine.evaluate(root, "delete", "post")

        assert decision.granted is True
        assert decision.report.verdicts() == [Verdict.ALLOW]
        assert decision.report[0].label == "SuperuserPolicy"

    def test_ban_overrides_role_grant(self, engine, role_acl, bans, mallory):
        engine.push_policy(RoleACLPolicy(role_acl))
        engine.push_policy(BanListPolicy(bans))

        decision = engine.evaluate(mallory, "create", "post")

        assert decision.granted is False
        assert decision.report.verdicts() == [Verdict.ALLOW, Verdict.DENY]
        assert decision.report[1].reasons == ("user 'mallory' is banned from create post",)

    def test_guest_without_guest_policies_is_denied(self, engine, role_acl, superusers):
        engine.push_policy(SuperuserPolicy(superusers))
        engine.push_policy(RoleACLPolicy(role_acl))

        decision = engine.evaluate(GUEST, "read", "post")

        assert decision.granted is False
        assert decision.report.verdicts() == [Verdict.ABSTAIN, Verdict.ABSTAIN]

    def test_fulfill_any_with_abstain_and_allow(self, engine, fixed, alice):
        engine.push_policy(FulfillAny(fixed(Verdict.ABSTAIN), fixed(Verdict.ALLOW)))

        decision = engine.evaluate(alice, "read", "post")

        assert decision.granted is True
        assert decision.report.verdicts() == [Verdict.ALLOW]
        assert len(decision.report[0].children) == 2

    def test_required_gate_blocks_other_allows(self, engine, fixed, alice):
        engine.push_policy(fixed(Verdict.ALLOW))
        engine.push_policy(Required(fixed(Verdict.ABSTAIN)))
        engine.push_policy(fixed(Verdict.ALLOW))

        decision = engine.evaluate(alice, "read", "post")

        assert decision.granted is False
        assert decision.report.verdicts() == [Verdict.ALLOW, Verdict.DENY, Verdict.ALLOW]

    def test_owner_may_update_own_post_only(self, engine, alice, bob, alices_post):
        engine.push_policy(OwnershipPolicy(verbs=["update"]))

        assert engine.can("update", alices_post, actor=alice) is True
        assert engine.can("update", alices_post, actor=bob) is False
        assert engine.can("delete", alices_post, actor=alice) is False

    def test_guest_role_reads(self, engine, role_acl):
        engine.push_policy(RoleACLPolicy(role_acl, guest_role="guest"))

        assert engine.can("read", "post") is True
        assert engine.can("create", "post") is False


class TestIdentityResolution:
    """Which actor a check runs as."""

    def test_guest_when_nothing_is_known(self, engine):
        assert engine.resolve_actor() is GUEST

    def test_explicit_actor_wins_over_everything(self, engine, alice, bob, root):
        resolver_calls = []

        def resolver():
            resolver_calls.append(True)
            return root

        engine.set_implicit_identity(resolver)
        engine.i_am(bob)
        with acting_as(bob):
            assert engine.resolve_actor(alice) == alice
        assert resolver_calls == []

    def test_scoped_actor_beats_engine_actor(self, engine, alice, bob):
        engine.i_am(bob)
        with acting_as(alice):
            assert engine.resolve_actor() == alice
        assert engine.resolve_actor() == bob

    def test_engine_actor_beats_implicit(self, engine, alice, bob):
        engine.set_implicit_identity(lambda: bob)
        assert engine.i_am("alice") == alice
        assert engine.resolve_actor() == alice

        engine.forget_identity()
        assert engine.resolve_actor() == bob

    def test_i_am_none_rejected(self, engine, alice, bob):
        engine.set_implicit_identity(lambda: bob)
        engine.i_am(alice)
        with pytest.raises(ValueError):
            engine.i_am(None)
        assert engine.resolve_actor() == alice

    def test_i_am_guest_suppresses_implicit(self, engine, bob):
        engine.set_implicit_identity(lambda: bob)
        assert engine.i_am(GUEST) is GUEST
        assert engine.resolve_actor() is GUEST

    def test_implicit_identity_used(self, engine, alice):
        engine.set_implicit_identity(lambda: alice)
        assert engine.resolve_actor() == alice

    def test_implicit_non_user_means_guest(self, engine):
        for result in (None, "alice", {"id": "alice"}, GUEST):
            engine.set_implicit_identity(lambda result=result: result)
            assert engine.resolve_actor() is GUEST

    def test_raw_identity_is_wrapped(self, engine):
        assert engine.resolve_actor("carol") == AuthenticatedUser("carol")

    def test_acting_as_guest_overrides_engine_actor(self, engine, alice):
        engine.i_am(alice)
        with acting_as(None) as bound:
            assert bound is GUEST
            assert engine.resolve_actor() is GUEST

    def test_resolved_actor_reaches_policies(self, engine, fixed, alice):
        policy = fixed(Verdict.ALLOW)
        engine.push_policy(policy)
        engine.set_implicit_identity(lambda: alice)

        decision = engine.decide("read", "post")

        assert decision.actor == alice
        assert policy.calls == [("user", alice)]


class TestTargets:
    """Nouns, resources and the check target."""

    def test_split_target(self, alices_post):
        assert split_target("post") == ("post", None)
        assert split_target(alices_post) == (None, alices_post)

    def test_bad_target_rejected(self, engine):
        with pytest.raises(TypeError):
            engine.decide("read", 42)

    def test_resource_name_overrides_noun(self, engine, fixed, alice, comment):
        engine.push_policy(fixed(Verdict.ALLOW))
        decision = engine.evaluate(alice, "read", "post", comment)
        assert decision.noun == "comment"
        assert decision.report.noun == "comment"

    def test_missing_noun_rejected(self, engine, fixed, alice):
        engine.push_policy(fixed(Verdict.ALLOW))
        with pytest.raises(ValueError):
            engine.evaluate(alice, "read")


class TestConfiguration:
    """Engine configuration and empty engines."""

    def test_no_policies_denies_with_warning(self, engine, alice, caplog):
        with caplog.at_level(logging.WARNING, logger="sanction.engine"):
            decision = engine.evaluate(alice, "read", "post")
        assert decision.granted is False
        assert len(decision.report) == 0
        assert "no policies configured" in caplog.text

    def test_required_policies(self, alice):
        engine = DecisionEngine(config=EngineConfig(require_policies=True))
        with pytest.raises(ConfigurationError) as exc_info:
            engine.evaluate(alice, "read", "post")
        assert exc_info.value.config_key == "policies"

    def test_bad_config_rejected(self):
        with pytest.raises(ConfigurationError):
            DecisionEngine(config={"nmae": "typo"})

    def test_metadata_names_engine(self, engine, alice):
        assert dict(engine.evaluate(alice, "read", "post").metadata) == {"engine": "test"}

    def test_metadata_is_read_only(self, engine, alice):
        decision = engine.evaluate(alice, "read", "post")
        with pytest.raises(TypeError):
            decision.metadata["engine"] = "other"
        assert decision.to_dict()["metadata"] == {"engine": "test"}

    def test_denials_logged_at_info(self, engine, fixed, alice, caplog):
        engine.push_policy(fixed(Verdict.DENY))
        with caplog.at_level(logging.INFO, logger="sanction.engine"):
            engine.evaluate(alice, "read", "post")
        assert "Denied user 'alice' to read post" in caplog.text

    def test_decision_logging_can_be_disabled(self, fixed, alice, caplog):
        engine = DecisionEngine([fixed(Verdict.DENY)], config={"log_decisions": False})
        with caplog.at_level(logging.INFO, logger="sanction.engine"):
            engine.evaluate(alice, "read", "post")
        assert "Denied" not in caplog.text


class TestPolicyManagement:
    """Adding, inserting and removing policies."""

    def test_push_preserves_order(self, engine, fixed):
        first, second = fixed(label="first"), fixed(label="second")
        assert engine.push_policy(first).push_policy(second) is engine
        assert engine.policies == (first, second)

    def test_insert(self, engine, fixed):
        first, second = fixed(label="first"), fixed(label="second")
        engine.push_policy(second).insert_policy(0, first)
        assert [policy.label for policy in engine.policies] == ["first", "second"]

    def test_remove(self, engine, fixed):
        policy = fixed()
        engine.push_policy(policy)
        assert engine.remove_policy(policy) is True
        assert engine.remove_policy(policy) is False
        assert engine.policies == ()

    def test_initial_policies(self, fixed, alice):
        engine = DecisionEngine([fixed(Verdict.ALLOW)])
        assert engine.can("read", "post", actor=alice) is True

    def test_non_policy_rejected(self, engine):
        with pytest.raises(MisconfiguredPolicy):
            engine.push_policy(lambda *args: Verdict.ALLOW)

    def test_policies_snapshot_is_immutable(self, engine, fixed):
        engine.push_policy(fixed())
        with pytest.raises(AttributeError):
            engine.policies.append(fixed())


class TestErrors:
    """Errors abort the evaluation instead of becoming verdicts."""

    def test_store_failure_propagates(self, engine, fixed, broken_store, alice):
        engine.push_policy(fixed(Verdict.ALLOW))
        engine.push_policy(SuperuserPolicy(broken_store))

        with pytest.raises(StoreFailure):
            engine.evaluate(alice, "read", "post")

    def test_store_failure_inside_composite(self, engine, fixed, broken_store, alice):
        engine.push_policy(FulfillAny(fixed(Verdict.ALLOW), SuperuserPolicy(broken_store)))
        with pytest.raises(StoreFailure):
            engine.can("read", "post", actor=alice)

    def test_non_verdict_propagates(self, engine, fixed, alice):
        engine.push_policy(fixed("ALLOW"))
        with pytest.raises(MisconfiguredPolicy):
            engine.evaluate(alice, "read", "post")

    def test_engine_usable_after_failure(self, engine, fixed, broken_store, alice):
        failing = SuperuserPolicy(broken_store)
        engine.push_policy(fixed(Verdict.ALLOW)).push_policy(failing)
        with pytest.raises(StoreFailure):
            engine.evaluate(alice, "read", "post")

        engine.remove_policy(failing)
        assert engine.evaluate(alice, "read", "post").granted is True

    def test_policy_recovering_from_child_error(self, fixed, broken_store, alice):
        class FallbackPolicy(Policy):
            """Allows when its superuser lookup is unavailable."""

            def __init__(self, child):
                super().__init__()
                self.child = child

            def evaluate_for_user(self, actor, verb, noun, resource=None):
                try:
                    return run_policy(self.child, actor, verb, noun, resource)
                except StoreFailure:
                    return Verdict.ALLOW

            def evaluate_for_guest(self, verb, noun, resource=None):
                return Verdict.ABSTAIN

        engine = DecisionEngine([
            FallbackPolicy(SuperuserPolicy(broken_store)),
            fixed(Verdict.ABSTAIN, label="after"),
        ])

        decision = engine.evaluate(alice, "read", "post")

        assert decision.granted is True
        assert decision.report.labels() == ["FallbackPolicy", "after"]
        assert decision.report[0].children == ()


class TestConvenience:
    """can, authorize_or_raise and listeners."""

    def test_authorize_or_raise(self, engine, role_acl, alice, bob):
        engine.push_policy(RoleACLPolicy(role_acl))

        assert engine.authorize_or_raise("create", "post", alice).granted is True
        with pytest.raises(AuthorizationDenied) as exc_info:
            engine.authorize_or_raise("create", "post", bob)
        assert exc_info.value.actor == bob
        assert exc_info.value.verb == "create"
        assert exc_info.value.noun == "post"

    def test_listeners_see_every_decision(self, engine, fixed, alice):
        seen = []
        engine.push_policy(fixed(Verdict.ALLOW))
        engine.add_listener(seen.append)

        engine.can("read", "post", actor=alice)
        engine.can("read", "post")

        assert [decision.granted for decision in seen] == [True, True]
        assert seen[1].actor is GUEST

        assert engine.remove_listener(seen.append) is True
        engine.can("read", "post")
        assert len(seen) == 2
        assert engine.remove_listener(seen.append) is False

    def test_explain(self, engine, role_acl, bans, mallory, alices_post):
        engine.push_policy(RoleACLPolicy(role_acl)).push_policy(BanListPolicy(bans))

        explanation = engine.explain("create", alices_post, actor=mallory)

        assert explanation["decision"] == "DENY"
        assert explanation["engine"] == "test"
        assert explanation["actor"] == {"type": "user", "identity": "mallory"}
        assert explanation["request"] == {"verb": "create", "noun": "post", "resource": True}
        assert [p["policy"] for p in explanation["policies"]] == [
            "RoleACLPolicy",
            "BanListPolicy",
        ]
        assert [e["verdict"] for e in explanation["report"]["entries"]] == ["allow", "deny"]

    def test_repr(self, engine, fixed):
        engine.push_policy(fixed())
        assert repr(engine) == "DecisionEngine(name='test', policies=1)"
