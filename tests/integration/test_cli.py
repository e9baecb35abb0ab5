"""Integration tests for the signin-guard command line."""

import json

import pytest

from signin_guard.cli import EXIT_CONFIG_ERROR, EXIT_OK, main


RULES = """
metadata:
  version: "cli-test"
rules:
  - id: "ru-otp"
    name: "Deny email OTP from RU"
    priority: 1
    conditions:
      operator: "AND"
      rules:
        - field: "country"
          operator: "equals"
          value: "RU"
    actions:
      type: "deny_methods"
      methods: ["email_otp"]
  - id: "farm"
    name: "Block account farms"
    priority: 2
    conditions:
      rules:
        - field: "ip_multi_account"
          operator: "gte"
          value:
            accountThreshold: 2
            timeWindowMinutes: 100000000
    actions:
      type: "block_access"
      reason: "Account farm"
"""


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(RULES)
    return path


@pytest.fixture
def context_file(tmp_path):
    path = tmp_path / "context.json"
    path.write_text(json.dumps({
        "username": "ivan",
        "ip_address": "198.51.100.9",
        "geo_country": "RU",
        "user_auth_methods": ["passkey", "email_otp"],
    }))
    return path


class TestValidateCommand:
    """Test `signin-guard validate`."""

    def test_lists_rules_in_order(self, rules_file, capsys):
        assert main(["validate", "--rules", str(rules_file)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "version cli-test" in out
        assert out.index("ru-otp") < out.index("farm")

    def test_missing_rules_file(self, tmp_path, capsys):
        code = main(["validate", "--rules", str(tmp_path / "missing.yaml")])
        assert code == EXIT_CONFIG_ERROR
        assert "CONFIG_ERROR" in capsys.readouterr().err


class TestEvaluateCommand:
    """Test `signin-guard evaluate`."""

    def test_evaluate_prints_decision(self, rules_file, context_file, capsys):
        code = main(["evaluate", "--rules", str(rules_file), "--context", str(context_file)])

        assert code == EXIT_OK
        response = json.loads(capsys.readouterr().out)
        assert response["allowed"] is True
        assert response["allowedMethods"] == ["passkey"]
        assert response["deniedMethods"] == ["email_otp"]
        assert [r["id"] for r in response["appliedRules"]] == ["ru-otp"]

    def test_evaluate_with_activity(self, rules_file, context_file, tmp_path, capsys):
        activity = tmp_path / "activity.yaml"
        activity.write_text(
            "- {username: a, ip_address: 198.51.100.9, success: true}\n"
            "- {username: b, ip_address: 198.51.100.9, success: true}\n"
        )

        code = main([
            "evaluate",
            "--rules", str(rules_file),
            "--context", str(context_file),
            "--activity", str(activity),
        ])

        assert code == EXIT_OK
        response = json.loads(capsys.readouterr().out)
        assert response["allowed"] is False
        assert response["outcome"] == "blocked"
        assert response["blockReason"] == "Account farm"

    def test_invalid_context(self, rules_file, tmp_path, capsys):
        context = tmp_path / "context.json"
        context.write_text(json.dumps({"user_auth_methods": "passkey"}))

        code = main(["evaluate", "--rules", str(rules_file), "--context", str(context)])

        assert code == EXIT_CONFIG_ERROR
        assert "VALIDATION_ERROR" in capsys.readouterr().err

    def test_activity_must_be_list(self, rules_file, context_file, tmp_path):
        activity = tmp_path / "activity.yaml"
        activity.write_text("username: a\n")

        code = main([
            "evaluate",
            "--rules", str(rules_file),
            "--context", str(context_file),
            "--activity", str(activity),
        ])
        assert code == EXIT_CONFIG_ERROR
