"""Business rule validator.

Validates a rule tree before it is saved or tested. Validation never raises
and never stops at the first problem: every error in the tree is collected
in one pass and tagged with the condition or group it belongs to.
"""

from .catalog import resolve_operator_kind
from .models import BusinessRule, Condition, ConditionGroup, LogicalOperator, RuleValidationError, ValueType


class RuleValidator:
    """Validates business rule trees."""

    VALID_LOGICAL_OPERATORS = {op.value for op in LogicalOperator}
    VALID_VALUE_TYPES = {vt.value for vt in ValueType}

    def __init__(self) -> None:
        self.errors: list[RuleValidationError] = []

    def validate(self, rule: BusinessRule) -> list[RuleValidationError]:
        """Validate a rule.

        Args:
            rule: The rule to validate.

        Returns:
            All validation errors (empty if the rule is valid).
        """
        self.errors = []

        if rule.root_group is None:
            self._add("rootGroup", "Root group is required")
            return self.errors

        self._validate_group(rule.root_group)
        return self.errors

    def _add(
        self,
        field: str,
        message: str,
        condition_id: str | None = None,
        group_id: str | None = None,
    ) -> None:
        self.errors.append(
            RuleValidationError(
                field=field,
                message=message,
                condition_id=condition_id,
                group_id=group_id,
            )
        )

    def _validate_group(self, group: ConditionGroup) -> None:
        """Recursively validate a group and everything beneath it."""
        for condition in group.conditions:
            self._validate_condition(condition)

        for nested in group.groups:
            self._validate_group(nested)

        if group.logical_operator not in self.VALID_LOGICAL_OPERATORS:
            self._add(
                "logicalOperator",
                f"Unknown logical operator '{group.logical_operator}'. "
                f"Valid: {', '.join(sorted(self.VALID_LOGICAL_OPERATORS))}",
                group_id=group.id,
            )

        if group.is_empty():
            self._add(
                "group",
                "Group must contain at least one condition or nested group",
                group_id=group.id,
            )

    def _validate_condition(self, condition: Condition) -> None:
        """Validate a single condition."""
        cid = condition.id
        prop = condition.property
        operator = condition.operator

        if prop is None:
            self._add("property", "Property is required", condition_id=cid)

        if operator is None:
            self._add("operator", "Operator is required", condition_id=cid)
        else:
            if resolve_operator_kind(operator.name) is None:
                self._add(
                    "operator",
                    f"Operator '{operator.name}' is not supported",
                    condition_id=cid,
                )
            if prop is not None and operator.supported_types and prop.type not in operator.supported_types:
                self._add(
                    "operator",
                    f"Operator '{operator.title or operator.name}' does not support "
                    f"'{prop.type}' properties",
                    condition_id=cid,
                )

        if condition.value_type == ValueType.FIXED.value:
            value = condition.fixed_value
            if value is None or value == "":
                self._add("value", "Value is required", condition_id=cid)

            if operator is not None and operator.requires_array and not isinstance(value, list):
                self._add(
                    "value",
                    f"Operator '{operator.title or operator.name}' requires an array value",
                    condition_id=cid,
                )
        elif condition.value_type == ValueType.PROPERTY.value:
            if condition.property_reference is None:
                self._add("propertyReference", "Property reference is required", condition_id=cid)
        else:
            self._add(
                "valueType",
                f"Unknown value type '{condition.value_type}'. Valid: fixed, property",
                condition_id=cid,
            )


def validate_rule(rule: BusinessRule) -> list[RuleValidationError]:
    """Validate a business rule.

    Examples:
        >>> validate_rule(BusinessRule())
        [RuleValidationError(field='group', message='Group must contain ...', ...)]
    """
    return RuleValidator().validate(rule)
