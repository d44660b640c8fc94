"""Business rule tree model.

A rule owns exactly one root ``ConditionGroup``. Groups own their child
conditions and nested groups by value, so the structure is always a tree and
every cross-cutting lookup is a depth-first walk keyed on node IDs.

All models serialize to the camelCase JSON shape used by stored rules
(``rootGroup``, ``logicalOperator``, ``fixedValue`` ...) and accept either
that shape or the snake_case field names when loading.
"""

import json
import random
import string
import time
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from bizrules.core.config import get_settings
from .exceptions import RuleDocumentError

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Generate a unique ID for conditions and groups.

    Format: ``<prefix>-<epoch millis>-<9 base36 chars>``.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{get_settings().id_prefix}-{int(time.time() * 1000)}-{suffix}"


class PropertyType(str, Enum):
    """Types a schema property can carry."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    DATE = "date"
    OBJECT = "object"
    EMAIL = "email"


class LogicalOperator(str, Enum):
    """Ways a group combines its children."""

    AND = "and"
    OR = "or"
    NOT = "not"


class ValueType(str, Enum):
    """Source of a condition's comparison value."""

    FIXED = "fixed"
    PROPERTY = "property"


class RuleModel(BaseModel):
    """Base model with the camelCase JSON shape of stored rules."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """Dump to a JSON-safe dict using the stored (camelCase) keys."""
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, indent: int | None = None) -> str:
        """Dump to a JSON string using the stored (camelCase) keys."""
        return json.dumps(self.to_dict(), indent=indent)


class Property(RuleModel):
    """Reference to a field of some schema.

    ``path`` is the dotted lookup path (``schema.field``). Properties are
    value objects: the tree never mutates them.
    """

    id: str
    name: str
    schema_id: str = ""
    schema_name: str = ""
    type: str = PropertyType.STRING.value
    path: str = ""
    field_id: str | None = None
    description: str | None = None


class Operator(RuleModel):
    """Entry of the operator catalog."""

    id: str
    name: str
    title: str = ""
    symbol: str = ""
    supported_types: list[str] | None = None
    requires_array: bool = False
    sql_equivalent: str | None = None


class Condition(RuleModel):
    """Leaf predicate of a rule tree.

    Only one of ``fixed_value`` (``value_type='fixed'``) or
    ``property_reference`` (``value_type='property'``) is active.
    """

    id: str = Field(default_factory=generate_id)
    property: Property | None = None
    operator: Operator | None = None
    value_type: str = ValueType.FIXED.value
    fixed_value: Any = None
    property_reference: Property | None = None
    aggregation_type: str | None = None
    description: str | None = ""


class ConditionGroup(RuleModel):
    """Tree node combining conditions and nested groups."""

    id: str = Field(default_factory=generate_id)
    logical_operator: str = LogicalOperator.AND.value
    conditions: list[Condition] = Field(default_factory=list)
    groups: list["ConditionGroup"] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.conditions and not self.groups


class BusinessRule(RuleModel):
    """A named rule with exactly one root group."""

    id: str | None = None
    name: str | None = None
    description: str | None = None
    context: str | None = None
    root_group: ConditionGroup | None = Field(default_factory=ConditionGroup)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RuleTarget(RuleModel):
    """A form field or section a rule's effects apply to."""

    type: Literal["field", "section"]
    id: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.type, self.id)


class RuleEffects(RuleModel):
    """Targets affected while a rule passes."""

    required_objects: list[RuleTarget] | None = None
    visible_objects: list[RuleTarget] | None = None
    hidden_objects: list[RuleTarget] | None = None
    disabled_objects: list[RuleTarget] | None = None


class BusinessRuleWithEffects(BusinessRule):
    """A rule that also carries UI effects."""

    effects: RuleEffects = Field(default_factory=RuleEffects)


class RuleValidationError(RuleModel):
    """A single validation problem, tagged with the offending node."""

    field: str
    message: str
    condition_id: str | None = None
    group_id: str | None = None


def _parse_document(data: str | bytes | Any) -> Any:
    if isinstance(data, (str, bytes)):
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise RuleDocumentError(f"Invalid JSON: {e}") from e
    return data


def load_rule(data: str | bytes | dict[str, Any]) -> BusinessRuleWithEffects:
    """Load a rule from a JSON string or an already parsed dict.

    Raises:
        RuleDocumentError: If the document is not valid JSON or not a rule.
    """
    parsed = _parse_document(data)
    try:
        return BusinessRuleWithEffects.model_validate(parsed)
    except ValidationError as e:
        raise RuleDocumentError(f"Invalid rule document: {e}") from e


def load_rules(data: str | bytes | list[Any] | dict[str, Any]) -> list[BusinessRuleWithEffects]:
    """Load a list of rules.

    A single rule object is accepted and returned as a one-element list.
    """
    parsed = _parse_document(data)
    if isinstance(parsed, dict):
        parsed = [parsed]
    if not isinstance(parsed, list):
        raise RuleDocumentError("Rules document must be a JSON array or object")
    return [load_rule(item) for item in parsed]
