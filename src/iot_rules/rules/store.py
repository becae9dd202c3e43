"""Rule store with injected persistence and JSON import/export."""

from __future__ import annotations

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from ..exceptions import InvalidFormatError, RuleNotFoundError
from .models import Rule

logger = logging.getLogger("iot-rules")


def new_rule_id() -> str:
    return f"r_{uuid.uuid4().hex[:8]}"


def default_rule_name(position: int) -> str:
    """Name given to a rule saved with a blank name (1-based position)."""
    return f"Rule {position}"


def export_rules(rules: list[Rule]) -> str:
    """Serialize rules as a human-editable JSON array."""
    return json.dumps([r.model_dump(mode="json") for r in rules], indent=2)


def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_rules(data: Any) -> list[Rule]:
    """Validate an already-decoded array of rule objects.

    All-or-nothing: the first malformed entry raises InvalidFormatError.
    Entries without an id get one; blank names get the default name.
    """
    if not isinstance(data, list):
        raise InvalidFormatError(
            f"Expected a JSON array of rules, got {type(data).__name__}"
        )

    rules: list[Rule] = []
    seen: set[str] = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise InvalidFormatError(
                f"Rule #{index + 1}: expected an object, got {type(entry).__name__}"
            )
        try:
            rule = Rule.model_validate(entry)
        except ValidationError as e:
            raise InvalidFormatError(
                f"Rule #{index + 1}: {_format_validation_error(e)}"
            ) from e
        if not rule.id:
            rule.id = new_rule_id()
        if rule.id in seen:
            raise InvalidFormatError(f"Rule #{index + 1}: duplicate id {rule.id!r}")
        seen.add(rule.id)
        if not rule.name.strip():
            rule.name = default_rule_name(index + 1)
        rules.append(rule)
    return rules


def import_rules(text: str) -> list[Rule]:
    """Parse a JSON array of rules. Raises InvalidFormatError on any defect."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidFormatError(f"Invalid JSON: {e}") from e
    return parse_rules(data)


class RulesPersistence(Protocol):
    def load(self) -> list[Rule]: ...

    def save(self, rules: list[Rule]) -> None: ...


class JsonRulesFile:
    """Load and save rules to a JSON file (array of Rule objects)."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Rule]:
        if not self._path.exists():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidFormatError(f"{self._path} is not UTF-8 text: {e}") from e
        if not text.strip():
            return []
        return import_rules(text)

    def save(self, rules: list[Rule]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(export_rules(rules) + "\n", encoding="utf-8")


class RuleStore:
    """Ordered, thread-safe set of rules.

    Every read returns deep copies, so an evaluation pass working on
    snapshot() never sees an edit made while it runs. When a persistence
    collaborator is injected, it is saved after each successful mutation.
    """

    def __init__(self, persistence: RulesPersistence | None = None) -> None:
        self._rules: dict[str, Rule] = {}
        self._lock = threading.RLock()
        self._persistence = persistence

    def load(self) -> int:
        """Replace contents from the persistence collaborator."""
        if self._persistence is None:
            return 0
        rules = self._persistence.load()
        with self._lock:
            self._rules = {r.id or new_rule_id(): r for r in rules}
            for rule_id, rule in self._rules.items():
                rule.id = rule_id
            count = len(self._rules)
        logger.info(f"Loaded {count} rule(s)")
        return count

    def _save(self) -> None:
        if self._persistence is not None:
            self._persistence.save(list(self._rules.values()))

    def _require(self, rule_id: str) -> Rule:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def add(self, rule: Rule) -> Rule:
        with self._lock:
            stored = rule.model_copy(deep=True)
            stored.id = new_rule_id()
            while stored.id in self._rules:
                stored.id = new_rule_id()
            if not stored.name.strip():
                stored.name = default_rule_name(len(self._rules) + 1)
            self._rules[stored.id] = stored
            self._save()
            logger.info(f"Rule added: {stored.name} ({stored.id})")
            return stored.model_copy(deep=True)

    def update(self, rule_id: str, rule: Rule) -> Rule:
        with self._lock:
            current = self._require(rule_id)
            stored = rule.model_copy(deep=True)
            stored.id = rule_id
            stored.created_at = current.created_at
            if not stored.name.strip():
                stored.name = current.name
            self._rules[rule_id] = stored
            self._save()
            logger.info(f"Rule updated: {stored.name} ({rule_id})")
            return stored.model_copy(deep=True)

    def remove(self, rule_id: str) -> Rule:
        with self._lock:
            self._require(rule_id)
            removed = self._rules.pop(rule_id)
            self._save()
            logger.info(f"Rule removed: {removed.name} ({rule_id})")
            return removed.model_copy(deep=True)

    def set_enabled(self, rule_id: str, enabled: bool) -> Rule:
        with self._lock:
            rule = self._require(rule_id)
            rule.enabled = enabled
            self._save()
            return rule.model_copy(deep=True)

    def get(self, rule_id: str) -> Rule:
        with self._lock:
            return self._require(rule_id).model_copy(deep=True)

    def list_rules(self) -> list[Rule]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._rules.values()]

    def snapshot(self) -> tuple[Rule, ...]:
        """Immutable view of the rule set for one evaluation pass."""
        return tuple(self.list_rules())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        with self._lock:
            return rule_id in self._rules

    def export_json(self) -> str:
        return export_rules(self.list_rules())

    def import_json(self, text: str) -> int:
        """Replace all rules with the parsed array; nothing changes on error."""
        rules = import_rules(text)
        with self._lock:
            self._rules = {r.id: r for r in rules}
            self._save()
        logger.info(f"Imported {len(rules)} rule(s)")
        return len(rules)
