"""Command-line entry point.

    signin-guard validate --rules config/auth_rules.yaml
    signin-guard evaluate --rules config/auth_rules.yaml --context ctx.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from signin_guard.common.exceptions import ConfigurationError, ValidationError
from signin_guard.common.logging import get_logger
from signin_guard.rules.engine import RulesEngine
from signin_guard.rules.schemas import AuthContext
from signin_guard.stores.activity_store import ActivityRecord, InMemoryActivityLog
from signin_guard.stores.rule_store import YamlRuleStore, order_enabled

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def _read_document(path: Path) -> Any:
    """Read a YAML or JSON document."""
    if not path.exists():
        raise ConfigurationError(f"File not found: {path}", details={"path": str(path)})
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Cannot parse {path}",
            details={"path": str(path), "error": str(e)},
        ) from e


def load_context(path: Path) -> AuthContext:
    raw = _read_document(path)
    try:
        return AuthContext.model_validate(raw or {})
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid authentication context: {path}",
            details={"errors": e.errors(include_url=False)},
        ) from e


def load_activity(path: Path) -> InMemoryActivityLog:
    raw = _read_document(path) or []
    if not isinstance(raw, list):
        raise ValidationError(f"Activity file must contain a list: {path}")
    try:
        return InMemoryActivityLog([ActivityRecord.model_validate(row) for row in raw])
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid activity record in {path}",
            details={"errors": e.errors(include_url=False)},
        ) from e


def cmd_validate(args: argparse.Namespace) -> int:
    store = YamlRuleStore(args.rules)
    print(f"Rules file: {store.rules_file} (version {store.version})")
    enabled = order_enabled(store.rules)
    print(f"{len(store.rules)} rules, {len(enabled)} enabled. Evaluation order:")
    for rule in enabled:
        print(f"  [{rule.priority:>4}] {rule.id}: {rule.name}")
    return EXIT_OK


def cmd_evaluate(args: argparse.Namespace) -> int:
    store = YamlRuleStore(args.rules)
    context = load_context(Path(args.context))
    activity = load_activity(Path(args.activity)) if args.activity else InMemoryActivityLog()

    engine = RulesEngine(store, activity_store=activity)
    result = asyncio.run(engine.evaluate(context))

    print(json.dumps(result.to_response(), indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signin-guard",
        description="Evaluate authentication rules against a sign-in context",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a rules file")
    validate.add_argument("--rules", "-r", required=True, help="Rules YAML file")
    validate.set_defaults(func=cmd_validate)

    evaluate = subparsers.add_parser("evaluate", help="Evaluate rules for a context")
    evaluate.add_argument("--rules", "-r", required=True, help="Rules YAML file")
    evaluate.add_argument("--context", "-c", required=True, help="Context JSON/YAML file")
    evaluate.add_argument(
        "--activity", "-a",
        default=None,
        help="Activity log JSON/YAML file (list of records) for velocity signals"
    )
    evaluate.set_defaults(func=cmd_evaluate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except (ConfigurationError, ValidationError) as e:
        logger.error(e.message)
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
