"""Evaluator for business rules.

Evaluation is fail-closed: an incomplete condition, an unresolvable field,
an unknown operator or an unknown logical operator makes the affected node
evaluate to False. Nothing here raises on bad rule data; reporting problems
is the validator's job.
"""

from collections.abc import Mapping
from typing import Any

from bizrules.core.logging import get_logger

from .catalog import MEMBERSHIP_KINDS, OperatorKind, resolve_operator_kind
from .coercion import contains_value, is_blank, normalize_value, to_number, to_string
from .models import BusinessRule, Condition, ConditionGroup, Property

logger = get_logger(__name__)

# Path segments that must never be followed
FORBIDDEN_PATH_KEYS = frozenset({"__proto__", "constructor", "prototype"})


def get_property_value(prop: Property | None, values: Mapping[str, Any]) -> Any:
    """Resolve a property against a value map.

    Lookup order: ``field_id`` key, ``name`` key, then the dotted ``path``
    walked through nested mappings. Returns None when nothing resolves.
    """
    if prop is None:
        return None

    if prop.field_id and prop.field_id in values:
        return values[prop.field_id]

    if prop.name and prop.name in values:
        return values[prop.name]

    if prop.path:
        value: Any = values
        for part in prop.path.split("."):
            if value is None or part in FORBIDDEN_PATH_KEYS:
                return None
            # Only mappings are traversed; lists and scalars end the walk
            if not isinstance(value, Mapping) or part not in value:
                return None
            value = value[part]
        return value

    return None


class Evaluator:
    """Evaluates rule trees against a map of field values."""

    def __init__(self, values: Mapping[str, Any] | None = None):
        """Initialize the evaluator.

        Args:
            values: Current field values, keyed by field ID, name or path head.
        """
        self.values: Mapping[str, Any] = values if values is not None else {}

    def evaluate_rule(self, rule: BusinessRule | None) -> bool:
        """Evaluate a rule. A missing rule or root group passes."""
        if rule is None or rule.root_group is None:
            return True
        return self.evaluate_group(rule.root_group)

    def evaluate_group(self, group: ConditionGroup) -> bool:
        """Evaluate a group and its subtree.

        Every child is evaluated, then combined: ``and`` needs all results
        true (an empty group passes), ``or`` needs one, and ``not`` passes
        unless all results are true.
        """
        results = [self.evaluate_condition(c) for c in group.conditions]
        results.extend(self.evaluate_group(g) for g in group.groups)

        if not results:
            return True

        op = group.logical_operator
        if op == "and":
            return all(results)
        if op == "or":
            return any(results)
        if op == "not":
            return not all(results)

        logger.warning("Unknown logical operator", logical_operator=op, group_id=group.id)
        return False

    def evaluate_condition(self, condition: Condition) -> bool:
        """Evaluate a single condition."""
        if condition.property is None or condition.operator is None:
            return False

        kind = resolve_operator_kind(condition.operator.name)
        if kind is None:
            logger.warning(
                "Unknown operator",
                operator=condition.operator.name,
                condition_id=condition.id,
            )
            return False

        left = normalize_value(get_property_value(condition.property, self.values))

        if condition.value_type == "fixed":
            right = condition.fixed_value
        elif condition.value_type == "property" and condition.property_reference is not None:
            right = get_property_value(condition.property_reference, self.values)
        else:
            return False

        # Membership operators need the candidate list intact
        if kind not in MEMBERSHIP_KINDS:
            right = normalize_value(right)

        return self._compare(kind, left, right)

    def _compare(self, kind: OperatorKind, left: Any, right: Any) -> bool:
        """Apply one operator kind to resolved values."""
        if kind is OperatorKind.EQUALS:
            return to_string(left) == to_string(right)
        if kind is OperatorKind.NOT_EQUALS:
            return to_string(left) != to_string(right)

        if kind is OperatorKind.GREATER_THAN:
            return to_number(left) > to_number(right)
        if kind is OperatorKind.GREATER_THAN_OR_EQUAL:
            return to_number(left) >= to_number(right)
        if kind is OperatorKind.LESS_THAN:
            return to_number(left) < to_number(right)
        if kind is OperatorKind.LESS_THAN_OR_EQUAL:
            return to_number(left) <= to_number(right)

        if kind is OperatorKind.CONTAINS:
            return to_string(right) in to_string(left)
        if kind is OperatorKind.NOT_CONTAINS:
            return to_string(right) not in to_string(left)
        if kind is OperatorKind.STARTS_WITH:
            return to_string(left).startswith(to_string(right))
        if kind is OperatorKind.ENDS_WITH:
            return to_string(left).endswith(to_string(right))

        if kind is OperatorKind.IN:
            if not isinstance(right, list):
                return False
            return contains_value(right, left) or contains_value(right, to_string(left))
        if kind is OperatorKind.NOT_IN:
            if not isinstance(right, list):
                return True
            return not contains_value(right, left) and not contains_value(right, to_string(left))

        if kind is OperatorKind.IS_NULL:
            return left is None
        if kind is OperatorKind.IS_NOT_NULL:
            return left is not None
        if kind is OperatorKind.IS_BLANK:
            return is_blank(left)
        if kind is OperatorKind.IS_NOT_BLANK:
            return not is_blank(left)

        return False


def evaluate_rule(rule: BusinessRule | None, values: Mapping[str, Any]) -> bool:
    """Evaluate a rule against field values; True if it passes."""
    return Evaluator(values).evaluate_rule(rule)


def evaluate_condition(condition: Condition, values: Mapping[str, Any]) -> bool:
    """Evaluate a single condition against field values."""
    return Evaluator(values).evaluate_condition(condition)
