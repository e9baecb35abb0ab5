"""Rule store - supplies enabled rules in evaluation order."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from signin_guard.common.exceptions import ConfigurationError, RuleStoreError
from signin_guard.common.logging import get_logger
from signin_guard.rules.schemas import Rule

logger = get_logger(__name__)


class RulesMetadata(BaseModel):
    """Version information for a rules document."""
    version: str = Field(default="unversioned")
    last_updated: Optional[str] = Field(default=None)
    author: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)


class RulesDocument(BaseModel):
    """Top-level layout of a rules YAML file."""
    metadata: RulesMetadata = Field(default_factory=RulesMetadata)
    rules: List[Rule] = Field(default_factory=list)


class RuleStore(Protocol):
    """Read interface the engine uses to fetch rules."""

    async def get_enabled_rules_ordered_by_priority(self) -> List[Rule]:
        ...


def order_enabled(rules: Iterable[Rule]) -> List[Rule]:
    """Enabled rules sorted by ascending priority, ties kept in input order."""
    return sorted((rule for rule in rules if rule.is_enabled), key=lambda rule: rule.priority)


def parse_rules_document(raw: Any, source: str = "<memory>") -> RulesDocument:
    """Validate a decoded rules document.

    A bare list of rules is accepted as well as the ``{metadata, rules}``
    mapping.

    Raises:
        ConfigurationError: If the document does not describe valid rules
    """
    if raw is None:
        raw = {}
    if isinstance(raw, list):
        raw = {"rules": raw}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Rules document must be a mapping or a list: {source}",
            details={"source": source},
        )

    try:
        document = RulesDocument.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid rules document: {source}",
            details={"source": source, "errors": e.errors(include_url=False)},
        ) from e

    seen: Dict[str, str] = {}
    for rule in document.rules:
        key = str(rule.id)
        if key in seen:
            raise ConfigurationError(
                f"Duplicate rule id {rule.id!r} in {source}",
                details={"source": source, "rule_id": key},
            )
        seen[key] = rule.name

    return document


def load_rules(path: Union[str, Path]) -> RulesDocument:
    """Load and validate rules from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Rules file not found: {path}",
            details={"path": str(path)},
        )

    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Rules file is not valid YAML: {path}",
            details={"path": str(path), "error": str(e)},
        ) from e

    return parse_rules_document(raw, source=str(path))


class InMemoryRuleStore:
    """List-backed rule store."""

    def __init__(self, rules: Optional[Iterable[Union[Rule, Dict[str, Any]]]] = None):
        self._rules: List[Rule] = [
            rule if isinstance(rule, Rule) else Rule.model_validate(rule)
            for rule in rules or []
        ]

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    async def get_enabled_rules_ordered_by_priority(self) -> List[Rule]:
        return order_enabled(self._rules)


class YamlRuleStore:
    """Rule store backed by a YAML rules file.

    The file is read once at construction; ``reload()`` picks up edits.
    """

    def __init__(self, rules_file: Optional[Union[str, Path]] = None):
        if rules_file is None:
            from signin_guard.common.config import get_config
            rules_file = get_config().rules_file
        self.rules_file = Path(rules_file)
        self._document = load_rules(self.rules_file)
        logger.info(
            f"Loaded {len(self._document.rules)} rules from {self.rules_file} "
            f"(version {self.version})"
        )

    @property
    def version(self) -> str:
        """Get current rules version."""
        return self._document.metadata.version

    @property
    def rules(self) -> List[Rule]:
        return list(self._document.rules)

    def reload(self) -> None:
        """Re-read the rules file.

        Raises:
            RuleStoreError: If the file can no longer be loaded. The previous
                rules stay active.
        """
        try:
            document = load_rules(self.rules_file)
        except ConfigurationError as e:
            logger.error(f"Rules reload failed, keeping version {self.version}: {e.message}")
            raise RuleStoreError(e.message, store_name="yaml", details=dict(e.details)) from e
        self._document = document
        logger.info(f"Reloaded rules from {self.rules_file} (version {self.version})")

    async def get_enabled_rules_ordered_by_priority(self) -> List[Rule]:
        return order_enabled(self._document.rules)
