"""Unit tests for action application."""

from signin_guard.rules.actions import (
    DEFAULT_BLOCK_REASON,
    NO_METHODS_REASON,
    DecisionState,
    apply_action,
    apply_actions,
)
from signin_guard.rules.schemas import Action


ALL_METHODS = ["passkey", "digitalid", "email_otp", "sms_otp"]


class TestApplyAction:
    """Test single action transitions."""

    def test_allow_methods_replaces(self):
        """The whitelist replaces the current set instead of extending it."""
        state = DecisionState.initial(ALL_METHODS)
        new_state = apply_action(state, Action(type="allow_methods", methods=["passkey"]))
        assert new_state.allowed_methods == ("passkey",)

    def test_allow_methods_can_add_unregistered(self):
        state = DecisionState.initial(["email_otp"])
        new_state = apply_action(state, Action(type="allow_methods", methods=["passkey"]))
        assert new_state.allowed_methods == ("passkey",)

    def test_deny_methods_removes_and_records(self):
        state = DecisionState.initial(["passkey", "sms_otp"])
        new_state = apply_action(state, Action(type="deny_methods", methods=["sms_otp"]))
        assert new_state.allowed_methods == ("passkey",)
        assert new_state.denied_methods == ("sms_otp",)

    def test_deny_unregistered_method_still_recorded(self):
        state = DecisionState.initial(["passkey"])
        new_state = apply_action(state, Action(type="deny_methods", methods=["sms_otp"]))
        assert new_state.allowed_methods == ("passkey",)
        assert new_state.denied_methods == ("sms_otp",)

    def test_block_access(self):
        state = DecisionState.initial(ALL_METHODS)
        new_state = apply_action(state, Action(type="block_access", reason="Tor exit node"))
        assert new_state.allowed is False
        assert new_state.allowed_methods == ()
        assert new_state.block_reason == "Tor exit node"

    def test_block_access_default_reason(self):
        new_state = apply_action(DecisionState.initial(ALL_METHODS), Action(type="block_access"))
        assert new_state.block_reason == DEFAULT_BLOCK_REASON

    def test_require_2fa_is_noop(self):
        state = DecisionState.initial(ALL_METHODS)
        assert apply_action(state, Action(type="require_2fa")) == state

    def test_require_method_available(self):
        state = DecisionState.initial(["passkey", "email_otp"])
        new_state = apply_action(state, Action(type="require_method", method="passkey"))
        assert new_state.allowed is True
        assert new_state.allowed_methods == ("passkey",)

    def test_require_method_missing_blocks(self):
        state = DecisionState.initial(["email_otp"])
        new_state = apply_action(state, Action(type="require_method", method="passkey"))
        assert new_state.allowed is False
        assert new_state.block_reason == "passkey authentication required"

    def test_state_is_not_mutated(self):
        state = DecisionState.initial(["passkey", "sms_otp"])
        apply_action(state, Action(type="deny_methods", methods=["sms_otp"]))
        assert state.allowed_methods == ("passkey", "sms_otp")
        assert state.denied_methods == ()

    def test_missing_methods_is_noop(self, rules_logger, caplog):
        state = DecisionState.initial(ALL_METHODS)
        with caplog.at_level("WARNING", logger="signin_guard.tests"):
            new_state = apply_action(state, Action(type="deny_methods"), rules_logger)
        assert new_state == state
        assert "requires a 'methods' list" in caplog.text

    def test_unknown_type_is_noop(self, rules_logger):
        state = DecisionState.initial(ALL_METHODS)
        assert apply_action(state, Action(type="quarantine"), rules_logger) == state


class TestApplyActions:
    """Test action lists."""

    def test_actions_apply_in_order(self):
        state = DecisionState.initial(ALL_METHODS)
        new_state = apply_actions(state, [
            Action(type="allow_methods", methods=["passkey", "email_otp"]),
            Action(type="deny_methods", methods=["email_otp"]),
        ])
        assert new_state.allowed_methods == ("passkey",)
        assert new_state.denied_methods == ("email_otp",)
        assert new_state.allowed is True

    def test_block_stops_remaining_actions(self):
        state = DecisionState.initial(ALL_METHODS)
        new_state = apply_actions(state, [
            Action(type="block_access", reason="blocked"),
            Action(type="allow_methods", methods=["passkey"]),
        ])
        assert new_state.allowed is False
        assert new_state.allowed_methods == ()
        assert new_state.block_reason == "blocked"

    def test_emptied_set_blocks(self):
        state = DecisionState.initial(["passkey"])
        new_state = apply_actions(state, [Action(type="deny_methods", methods=["passkey"])])
        assert new_state.allowed is False
        assert new_state.block_reason == NO_METHODS_REASON

    def test_empty_whitelist_blocks(self):
        state = DecisionState.initial(ALL_METHODS)
        new_state = apply_actions(state, [Action(type="allow_methods", methods=[])])
        assert new_state.allowed is False
        assert new_state.block_reason == NO_METHODS_REASON

    def test_require_method_reason_kept(self):
        state = DecisionState.initial(["sms_otp"])
        new_state = apply_actions(state, [Action(type="require_method", method="passkey")])
        assert new_state.allowed is False
        assert new_state.block_reason == "passkey authentication required"

    def test_no_actions(self):
        state = DecisionState.initial(ALL_METHODS)
        assert apply_actions(state, []) == state

    def test_initial_state_deduplicates(self):
        state = DecisionState.initial(["passkey", "passkey", "sms_otp"])
        assert state.allowed_methods == ("passkey", "sms_otp")

    def test_require_method_block_stops_remaining_actions(self):
        """A block from require_method is final for the rest of the list."""
        state = DecisionState.initial(["email_otp"])
        new_state = apply_actions(state, [
            Action(type="require_method", method="passkey"),
            Action(type="allow_methods", methods=["email_otp", "sms_otp"]),
        ])
        assert new_state.allowed is False
        assert new_state.allowed_methods == ()
        assert new_state.block_reason == "passkey authentication required"


class TestMalformedActions:
    """Malformed method fields are skipped, not rejected."""

    def test_string_methods_is_noop(self, rules_logger, caplog):
        state = DecisionState.initial(ALL_METHODS)
        action = Action(type="deny_methods", methods="sms_otp")
        with caplog.at_level("WARNING", logger="signin_guard.tests"):
            new_state = apply_action(state, action, rules_logger)
        assert new_state == state
        assert "requires a 'methods' list" in caplog.text

    def test_non_string_entries_are_noop(self, rules_logger):
        state = DecisionState.initial(ALL_METHODS)
        action = Action(type="allow_methods", methods=["passkey", 3])
        assert apply_action(state, action, rules_logger) == state

    def test_non_string_method_is_noop(self, rules_logger):
        state = DecisionState.initial(ALL_METHODS)
        action = Action(type="require_method", method=["passkey"])
        assert apply_action(state, action, rules_logger) == state

    def test_later_actions_still_apply(self, rules_logger):
        state = DecisionState.initial(ALL_METHODS)
        new_state = apply_actions(state, [
            Action(type="deny_methods", methods="sms_otp"),
            Action(type="deny_methods", methods=["email_otp"]),
        ], rules_logger)
        assert new_state.allowed_methods == ("passkey", "digitalid", "sms_otp")
        assert new_state.denied_methods == ("email_otp",)
