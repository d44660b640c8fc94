"""Business Rule Engine API."""

from .catalog import (
    DEFAULT_OPERATORS,
    OperatorKind,
    map_field_type,
    operators_for_property,
    properties_from_schema,
    resolve_operator_kind,
)
from .effects import (
    BusinessRuleEffectsMap,
    ObjectEffects,
    RuleEffectsEvaluator,
    collect_target_ids,
    get_field_effects,
    resolve_effects,
)
from .evaluator import Evaluator, evaluate_condition, evaluate_rule, get_property_value
from .exceptions import RuleDocumentError, RuleError, RuleOperationError
from .field_extractor import extract_fields_from_rule, extract_fields_from_rules
from .models import (
    BusinessRule,
    BusinessRuleWithEffects,
    Condition,
    ConditionGroup,
    LogicalOperator,
    Operator,
    Property,
    PropertyType,
    RuleEffects,
    RuleTarget,
    RuleValidationError,
    ValueType,
    generate_id,
    load_rule,
    load_rules,
)
from .operations import (
    RuleEditor,
    add_condition,
    add_group,
    clone_condition,
    clone_group,
    create_empty_condition,
    create_empty_group,
    create_empty_rule,
    duplicate_condition,
    duplicate_group,
    find_condition_by_id,
    find_group_by_id,
    find_parent_group,
    generate_rule_preview,
    remove_condition,
    remove_group,
    update_condition,
    update_group,
)
from .rule_validator import RuleValidator, validate_rule

__all__ = [
    # models
    "BusinessRule",
    "BusinessRuleWithEffects",
    "Condition",
    "ConditionGroup",
    "LogicalOperator",
    "Operator",
    "Property",
    "PropertyType",
    "RuleEffects",
    "RuleTarget",
    "RuleValidationError",
    "ValueType",
    "generate_id",
    "load_rule",
    "load_rules",
    # errors
    "RuleError",
    "RuleOperationError",
    "RuleDocumentError",
    # tree operations
    "RuleEditor",
    "add_condition",
    "add_group",
    "clone_condition",
    "clone_group",
    "create_empty_condition",
    "create_empty_group",
    "create_empty_rule",
    "duplicate_condition",
    "duplicate_group",
    "find_condition_by_id",
    "find_group_by_id",
    "find_parent_group",
    "generate_rule_preview",
    "remove_condition",
    "remove_group",
    "update_condition",
    "update_group",
    # validation, extraction, evaluation
    "RuleValidator",
    "validate_rule",
    "extract_fields_from_rule",
    "extract_fields_from_rules",
    "Evaluator",
    "evaluate_rule",
    "evaluate_condition",
    "get_property_value",
    # effects
    "BusinessRuleEffectsMap",
    "ObjectEffects",
    "RuleEffectsEvaluator",
    "collect_target_ids",
    "get_field_effects",
    "resolve_effects",
    # catalog
    "DEFAULT_OPERATORS",
    "OperatorKind",
    "map_field_type",
    "operators_for_property",
    "properties_from_schema",
    "resolve_operator_kind",
]
