"""Tree operations on rule condition groups.

All lookups are by node ID, never by position: callers may hold references
to nodes from an earlier state of the tree. The module level functions
mutate the group they are given; ``RuleEditor`` wraps them so that every
change produces a fresh rule object for its owner.
"""

import copy
from typing import Any

from bizrules.core.logging import get_logger

from .coercion import to_string
from .exceptions import RuleOperationError
from .models import (
    BusinessRule,
    Condition,
    ConditionGroup,
    RuleModel,
    RuleValidationError,
    generate_id,
)
from .rule_validator import validate_rule

logger = get_logger(__name__)


def create_empty_condition() -> Condition:
    """Create a condition with a fresh ID and nothing selected."""
    return Condition()


def create_empty_group(logical_operator: str = "and") -> ConditionGroup:
    """Create a group with a fresh ID and no children."""
    return ConditionGroup(logical_operator=logical_operator)


def create_empty_rule() -> BusinessRule:
    """Create a rule whose root is an empty AND group."""
    return BusinessRule(root_group=create_empty_group("and"))


def find_condition_by_id(
    group: ConditionGroup, condition_id: str
) -> tuple[Condition, ConditionGroup] | None:
    """Find a condition and the group that contains it.

    Returns:
        ``(condition, containing_group)`` or None if not found.
    """
    for condition in group.conditions:
        if condition.id == condition_id:
            return condition, group

    for nested in group.groups:
        result = find_condition_by_id(nested, condition_id)
        if result is not None:
            return result

    return None


def find_group_by_id(group: ConditionGroup, group_id: str) -> ConditionGroup | None:
    """Find a group (the given one included) by ID."""
    if group.id == group_id:
        return group

    for nested in group.groups:
        result = find_group_by_id(nested, group_id)
        if result is not None:
            return result

    return None


def find_parent_group(root: ConditionGroup, group_id: str) -> ConditionGroup | None:
    """Find the group directly containing ``group_id``. The root has no parent."""
    for nested in root.groups:
        if nested.id == group_id:
            return root

    for nested in root.groups:
        parent = find_parent_group(nested, group_id)
        if parent is not None:
            return parent

    return None


def add_condition(group: ConditionGroup, condition: Condition | None = None) -> str:
    """Append a condition to a group.

    Adding a condition whose ID is already in the group is a no-op, so a
    duplicated dispatch of the same add cannot insert two copies.

    Returns:
        The ID of the added (or already present) condition.
    """
    new_condition = condition if condition is not None else create_empty_condition()

    for existing in group.conditions:
        if existing.id == new_condition.id:
            logger.debug(
                "Condition already present",
                condition_id=existing.id,
                group_id=group.id,
            )
            return existing.id

    group.conditions.append(new_condition)
    logger.debug("Condition added", condition_id=new_condition.id, group_id=group.id)
    return new_condition.id


def add_group(root: ConditionGroup, parent_id: str, logical_operator: str = "and") -> str | None:
    """Append a fresh empty group under ``parent_id``.

    Returns:
        The new group's ID, or None if the parent does not exist.
    """
    parent = find_group_by_id(root, parent_id)
    if parent is None:
        return None

    group = create_empty_group(logical_operator)
    parent.groups.append(group)
    logger.debug("Group added", group_id=group.id, parent_id=parent_id)
    return group.id


def _apply_changes(node: RuleModel, changes: dict[str, Any]) -> None:
    fields = type(node).model_fields
    by_alias = {info.alias: name for name, info in fields.items() if info.alias}

    for key, value in changes.items():
        name = key if key in fields else by_alias.get(key)
        if name is None:
            raise RuleOperationError(f"Unknown attribute '{key}'", getattr(node, "id", None))
        # Tree nodes are addressed by ID; the rule's own ID is ordinary data
        if name == "id" and isinstance(node, (Condition, ConditionGroup)):
            raise RuleOperationError("Node IDs cannot be changed", getattr(node, "id", None))
        setattr(node, name, value)


def update_condition(root: ConditionGroup, condition_id: str, **changes: Any) -> Condition | None:
    """Apply a partial update to a condition.

    Returns:
        The updated condition, or None if it does not exist.
    """
    found = find_condition_by_id(root, condition_id)
    if found is None:
        return None

    condition, _ = found
    _apply_changes(condition, changes)
    return condition


def update_group(root: ConditionGroup, group_id: str, **changes: Any) -> ConditionGroup | None:
    """Apply a partial update to a group.

    Children are replaced wholesale if ``conditions`` or ``groups`` is given.
    """
    group = find_group_by_id(root, group_id)
    if group is None:
        return None

    _apply_changes(group, changes)
    return group


def remove_condition(group: ConditionGroup, condition_id: str) -> bool:
    """Remove a condition from wherever it is in the tree.

    Returns:
        True if a condition was removed.
    """
    for index, condition in enumerate(group.conditions):
        if condition.id == condition_id:
            del group.conditions[index]
            logger.debug("Condition removed", condition_id=condition_id, group_id=group.id)
            return True

    return any(remove_condition(nested, condition_id) for nested in group.groups)


def remove_group(root: ConditionGroup, group_id: str) -> bool:
    """Remove a nested group from wherever it is in the tree.

    Raises:
        RuleOperationError: If ``group_id`` is the root itself. The owning
            rule resets its root instead.
    """
    if root.id == group_id:
        raise RuleOperationError("The root group cannot be removed", group_id)

    return _remove_nested_group(root, group_id)


def _remove_nested_group(parent: ConditionGroup, group_id: str) -> bool:
    for index, nested in enumerate(parent.groups):
        if nested.id == group_id:
            del parent.groups[index]
            logger.debug("Group removed", group_id=group_id, parent_id=parent.id)
            return True

    return any(_remove_nested_group(nested, group_id) for nested in parent.groups)


def clone_condition(condition: Condition) -> Condition:
    """Copy a condition under a new ID.

    Property and operator references are copied shallowly; the fixed value
    is copied deeply so the clone never shares a mutable list with its source.
    """
    return condition.model_copy(
        update={
            "id": generate_id(),
            "property": condition.property.model_copy() if condition.property else None,
            "operator": condition.operator.model_copy() if condition.operator else None,
            "property_reference": (
                condition.property_reference.model_copy()
                if condition.property_reference
                else None
            ),
            "fixed_value": copy.deepcopy(condition.fixed_value),
        }
    )


def clone_group(group: ConditionGroup) -> ConditionGroup:
    """Copy a group, assigning new IDs to it and every node beneath it."""
    return group.model_copy(
        update={
            "id": generate_id(),
            "conditions": [clone_condition(c) for c in group.conditions],
            "groups": [clone_group(g) for g in group.groups],
        }
    )


def duplicate_condition(root: ConditionGroup, condition_id: str) -> str | None:
    """Append a clone of a condition to the group containing it.

    Returns:
        The clone's ID, or None if the condition does not exist.
    """
    found = find_condition_by_id(root, condition_id)
    if found is None:
        return None

    condition, group = found
    clone = clone_condition(condition)
    group.conditions.append(clone)
    return clone.id


def duplicate_group(root: ConditionGroup, group_id: str) -> str | None:
    """Append a clone of a group to its parent.

    Returns:
        The clone's ID, or None if the group does not exist or is the root.
    """
    parent = find_parent_group(root, group_id)
    if parent is None:
        return None

    source = next(g for g in parent.groups if g.id == group_id)
    clone = clone_group(source)
    parent.groups.append(clone)
    return clone.id


def _preview_value(condition: Condition) -> str:
    if condition.value_type == "fixed":
        value = condition.fixed_value
        if isinstance(value, list):
            return "[" + ", ".join("" if item is None else to_string(item) for item in value) + "]"
        return to_string(value)
    if condition.value_type == "property":
        ref = condition.property_reference
        return ref.path if ref and ref.path else "?"
    return "?"


def generate_rule_preview(group: ConditionGroup, indent: int = 0) -> str:
    """Render a group as indented text for display.

    Each condition renders as ``PATH SYMBOL VALUE``; siblings are separated
    by the group's operator in upper case and nested groups are wrapped in
    parentheses one indent level deeper.
    """
    pad = "  " * indent
    joiner = f"{pad}{group.logical_operator.upper()}"
    lines: list[str] = []

    for index, condition in enumerate(group.conditions):
        if index > 0 or group.groups:
            lines.append(joiner)
        path = condition.property.path if condition.property and condition.property.path else "?"
        symbol = condition.operator.symbol if condition.operator and condition.operator.symbol else "?"
        lines.append(f"{pad}{path} {symbol} {_preview_value(condition)}")

    for index, nested in enumerate(group.groups):
        if index > 0 or group.conditions:
            lines.append(joiner)
        lines.append(f"{pad}(")
        lines.append(generate_rule_preview(nested, indent + 1))
        lines.append(f"{pad})")

    return "\n".join(lines)


class RuleEditor:
    """Owner of one rule's editing state.

    Every mutation works on a deep copy of the current rule and then swaps
    ``self.rule`` for the copy, so rule objects handed out earlier never
    change underneath their holders.
    """

    def __init__(self, rule: BusinessRule | None = None):
        self.rule = rule if rule is not None else create_empty_rule()
        if self.rule.root_group is None:
            self.rule.root_group = create_empty_group("and")
        self.validation_errors: list[RuleValidationError] = []

    def _next_rule(self) -> BusinessRule:
        return self.rule.model_copy(deep=True)

    @property
    def root_group(self) -> ConditionGroup:
        return self.rule.root_group

    def validate(self) -> bool:
        """Validate the current rule, keeping the errors on the editor."""
        self.validation_errors = validate_rule(self.rule)
        return not self.validation_errors

    def update_rule(self, **changes: Any) -> None:
        rule = self._next_rule()
        _apply_changes(rule, changes)
        self.rule = rule

    def add_condition(self, group_id: str, condition: Condition | None = None) -> str | None:
        """Add a condition to a group.

        Returns:
            The condition ID, or None if the group does not exist.
        """
        rule = self._next_rule()
        group = find_group_by_id(rule.root_group, group_id)
        if group is None:
            return None

        new_condition = condition.model_copy(deep=True) if condition is not None else None
        condition_id = add_condition(group, new_condition)
        self.rule = rule
        return condition_id

    def update_condition(self, condition_id: str, **changes: Any) -> Condition:
        rule = self._next_rule()
        condition = update_condition(rule.root_group, condition_id, **changes)
        if condition is None:
            raise RuleOperationError("Condition not found", condition_id)
        self.rule = rule
        return condition

    def delete_condition(self, condition_id: str) -> bool:
        rule = self._next_rule()
        removed = remove_condition(rule.root_group, condition_id)
        self.rule = rule
        return removed

    def duplicate_condition(self, condition_id: str) -> str | None:
        rule = self._next_rule()
        clone_id = duplicate_condition(rule.root_group, condition_id)
        self.rule = rule
        return clone_id

    def add_group(self, parent_group_id: str, logical_operator: str = "and") -> str | None:
        rule = self._next_rule()
        group_id = add_group(rule.root_group, parent_group_id, logical_operator)
        self.rule = rule
        return group_id

    def update_group(self, group_id: str, **changes: Any) -> ConditionGroup:
        rule = self._next_rule()
        group = update_group(rule.root_group, group_id, **changes)
        if group is None:
            raise RuleOperationError("Group not found", group_id)
        self.rule = rule
        return group

    def delete_group(self, group_id: str) -> bool:
        """Delete a group; deleting the root resets it to an empty AND group."""
        rule = self._next_rule()
        if rule.root_group.id == group_id:
            rule.root_group = create_empty_group("and")
            logger.debug("Root group reset", previous_id=group_id, group_id=rule.root_group.id)
            removed = True
        else:
            removed = remove_group(rule.root_group, group_id)
        self.rule = rule
        return removed

    def duplicate_group(self, group_id: str) -> str | None:
        rule = self._next_rule()
        clone_id = duplicate_group(rule.root_group, group_id)
        self.rule = rule
        return clone_id

    def preview(self) -> str:
        return generate_rule_preview(self.rule.root_group)

    def reset(self) -> None:
        self.rule = create_empty_rule()
        self.validation_errors = []
