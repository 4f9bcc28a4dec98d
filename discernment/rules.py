"""
Discern - Rule Table

Rules are theological/ethical configuration: id, title, description,
category, signed weight and supporting scripture anchors. The table is read
from YAML once at startup, validated, and immutable afterwards, so any number
of in-flight requests may share it.

Loading fails fast with ``DiscernConfigError`` when the document is
malformed or when a rule id the scorer depends on is missing. Unknown extra
fields on a rule are ignored.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import DiscernConfigError
from discernment.predicates import PREDICATES
from observability import get_logger

logger = get_logger("discern.rules")


class RuleCategory(str, Enum):
    """Closed set of rule categories."""
    THEOLOGY = "theology"
    ETHICS = "ethics"
    CONTENT = "content"


class RuleModel(BaseModel):
    """Validation model for one rule entry in the YAML document."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    category: RuleCategory
    weight: int
    anchors: List[str] = Field(..., min_length=1)

    @field_validator("weight", mode="before")
    @classmethod
    def weight_is_integer(cls, v: Any) -> Any:
        if isinstance(v, bool) or (isinstance(v, float) and not v.is_integer()):
            raise ValueError("weight must be an integer")
        return v

    @field_validator("anchors")
    @classmethod
    def anchors_not_blank(cls, v: List[str]) -> List[str]:
        cleaned = [" ".join(a.split()) for a in v]
        if any(not a for a in cleaned):
            raise ValueError("anchors must be non-empty scripture references")
        return cleaned


@dataclass(frozen=True)
class Rule:
    """Immutable rule entity."""
    id: str
    title: str
    description: str
    category: RuleCategory
    weight: int
    anchors: Tuple[str, ...]

    @property
    def is_penalty(self) -> bool:
        return self.weight < 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "weight": self.weight,
            "anchors": list(self.anchors),
        }


class RuleTable:
    """Ordered, read-only collection of rules."""

    def __init__(self, rules: Iterable[Rule], source: Optional[str] = None):
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._by_id: Dict[str, Rule] = {r.id: r for r in self._rules}
        self.source = source

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(r.id for r in self._rules)

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self._rules]


def parse_rule_table(
    data: Any,
    source: str = "<memory>",
    required_ids: Iterable[str] = PREDICATES.keys(),
) -> RuleTable:
    """
    Validate a parsed YAML document into a ``RuleTable``.

    Accepts either a list of rule mappings or a mapping with a ``rules`` list.
    """
    if isinstance(data, dict):
        data = data.get("rules")
    if not isinstance(data, list) or not data:
        raise DiscernConfigError(
            "Rule configuration must be a non-empty list of rules",
            config_key="rules",
            source=source,
        )

    rules: List[Rule] = []
    seen: set = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise DiscernConfigError(
                f"Rule #{index} is not a mapping",
                config_key=f"rules[{index}]",
                source=source,
            )
        try:
            model = RuleModel.model_validate(entry)
        except ValidationError as e:
            raise DiscernConfigError(
                f"Rule #{index} ({entry.get('id', '?')}) is invalid: {e.errors()[0]['msg']}",
                config_key=f"rules[{index}]",
                source=source,
                cause=e,
            ) from e
        if model.id in seen:
            raise DiscernConfigError(
                f"Duplicate rule id: {model.id}",
                config_key=f"rules[{index}].id",
                source=source,
            )
        seen.add(model.id)
        rules.append(Rule(
            id=model.id,
            title=model.title,
            description=model.description,
            category=model.category,
            weight=model.weight,
            anchors=tuple(model.anchors),
        ))

    missing = [rule_id for rule_id in required_ids if rule_id not in seen]
    if missing:
        raise DiscernConfigError(
            f"Rule configuration is missing required rule ids: {', '.join(missing)}",
            config_key="rules",
            source=source,
            suggestions=[f"Add a rule entry with id '{rule_id}'" for rule_id in missing],
        )

    unwired = [r.id for r in rules if r.id not in PREDICATES]
    if unwired:
        logger.warning("Rules without predicates will never fire", rule_ids=unwired, source=source)

    return RuleTable(rules, source=source)


def load_rule_table(
    path: Union[str, Path],
    required_ids: Iterable[str] = PREDICATES.keys(),
) -> RuleTable:
    """Load and validate the rule table from a YAML file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise DiscernConfigError(
            f"Cannot read rule configuration: {path}",
            source=str(path),
            cause=e,
        ) from e
    except yaml.YAMLError as e:
        raise DiscernConfigError(
            f"Rule configuration is not valid YAML: {path}",
            source=str(path),
            cause=e,
        ) from e

    table = parse_rule_table(data, source=str(path), required_ids=required_ids)
    logger.info("Rule table loaded", source=str(path), rule_count=len(table))
    return table
