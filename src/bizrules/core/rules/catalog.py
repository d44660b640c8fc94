"""Operator registry and schema property mapping.

The evaluator understands a closed set of operator kinds. Catalog entries
are matched to a kind by their lowercase ``name``; several names may map to
the same kind (``eq`` and ``equals``).
"""

from enum import Enum
from typing import Any

from .models import Operator, Property, PropertyType


class OperatorKind(str, Enum):
    """Comparison kinds supported by the evaluator."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    IS_BLANK = "is_blank"
    IS_NOT_BLANK = "is_not_blank"


OPERATOR_ALIASES: dict[str, OperatorKind] = {
    **{kind.value: kind for kind in OperatorKind},
    "eq": OperatorKind.EQUALS,
    "neq": OperatorKind.NOT_EQUALS,
    "gt": OperatorKind.GREATER_THAN,
    "gte": OperatorKind.GREATER_THAN_OR_EQUAL,
    "lt": OperatorKind.LESS_THAN,
    "lte": OperatorKind.LESS_THAN_OR_EQUAL,
}

# Kinds that compare against a list of candidates
MEMBERSHIP_KINDS = frozenset({OperatorKind.IN, OperatorKind.NOT_IN})


def resolve_operator_kind(name: str | None) -> OperatorKind | None:
    """Resolve an operator name to its kind, or None if unsupported."""
    if not name:
        return None
    return OPERATOR_ALIASES.get(name.strip().lower())


_ALL_TYPES = [t.value for t in PropertyType]
_TEXT_TYPES = [PropertyType.STRING.value, PropertyType.EMAIL.value]
_ORDERED_TYPES = [PropertyType.NUMBER.value, PropertyType.DATE.value]
_SCALAR_TYPES = [
    PropertyType.STRING.value,
    PropertyType.NUMBER.value,
    PropertyType.BOOLEAN.value,
    PropertyType.DATE.value,
    PropertyType.EMAIL.value,
]


def _operator(
    name: str,
    title: str,
    symbol: str,
    supported_types: list[str],
    sql: str,
    requires_array: bool = False,
) -> Operator:
    return Operator(
        id=name,
        name=name,
        title=title,
        symbol=symbol,
        supported_types=supported_types,
        requires_array=requires_array,
        sql_equivalent=sql,
    )


DEFAULT_OPERATORS: list[Operator] = [
    _operator("equals", "Equals", "=", _ALL_TYPES, "="),
    _operator("not_equals", "Not Equals", "!=", _ALL_TYPES, "<>"),
    _operator("gt", "Greater Than", ">", _ORDERED_TYPES, ">"),
    _operator("gte", "Greater Than or Equal", ">=", _ORDERED_TYPES, ">="),
    _operator("lt", "Less Than", "<", _ORDERED_TYPES, "<"),
    _operator("lte", "Less Than or Equal", "<=", _ORDERED_TYPES, "<="),
    _operator("contains", "Contains", "CONTAINS", _TEXT_TYPES + ["array"], "LIKE"),
    _operator("not_contains", "Does Not Contain", "NOT CONTAINS", _TEXT_TYPES + ["array"], "NOT LIKE"),
    _operator("starts_with", "Starts With", "STARTS WITH", _TEXT_TYPES, "LIKE"),
    _operator("ends_with", "Ends With", "ENDS WITH", _TEXT_TYPES, "LIKE"),
    _operator("in", "In", "IN", _SCALAR_TYPES, "IN", requires_array=True),
    _operator("not_in", "Not In", "NOT IN", _SCALAR_TYPES, "NOT IN", requires_array=True),
    _operator("is_null", "Is Null", "IS NULL", _ALL_TYPES, "IS NULL"),
    _operator("is_not_null", "Is Not Null", "IS NOT NULL", _ALL_TYPES, "IS NOT NULL"),
    _operator("is_blank", "Is Blank", "IS BLANK", _TEXT_TYPES, "IS NULL"),
    _operator("is_not_blank", "Is Not Blank", "IS NOT BLANK", _TEXT_TYPES, "IS NOT NULL"),
]


def operators_for_property(
    prop: Property | None, operators: list[Operator] | None = None
) -> list[Operator]:
    """Operators applicable to a property's type.

    Operators without ``supported_types`` apply to every type.
    """
    catalog = DEFAULT_OPERATORS if operators is None else operators
    if prop is None:
        return list(catalog)
    return [
        op for op in catalog
        if not op.supported_types or prop.type in op.supported_types
    ]


def map_field_type(component: str | None = None, field_type: str | None = None) -> str:
    """Map a schema field's form component or declared type to a property type.

    The component wins when present.
    """
    if component:
        if component == "number":
            return PropertyType.NUMBER.value
        if component in ("checkbox", "checkbox-list"):
            return PropertyType.BOOLEAN.value
        if component in ("date", "datetime", "datetime-local"):
            return PropertyType.DATE.value
        return PropertyType.STRING.value

    if field_type:
        normalized = field_type.lower()
        if normalized in ("number", "numeric"):
            return PropertyType.NUMBER.value
        if normalized in ("boolean", "bool"):
            return PropertyType.BOOLEAN.value
        if normalized in ("date", "datetime"):
            return PropertyType.DATE.value
        if normalized == "array":
            return PropertyType.ARRAY.value

    return PropertyType.STRING.value


def properties_from_schema(schema: dict[str, Any]) -> list[Property]:
    """Build the property catalog of a schema definition.

    Args:
        schema: Schema dict with ``id``, optional ``singular_name`` and a
            ``fields`` list (each with ``name``, optional ``id``, ``label``,
            ``description``, ``component`` and ``type``).

    Returns:
        One Property per field, in schema order.
    """
    schema_id = schema["id"]
    schema_name = schema.get("singular_name") or schema_id
    properties = []
    for field in schema.get("fields") or []:
        name = field["name"]
        properties.append(
            Property(
                id=f"{schema_id}.{name}",
                name=name,
                schema_id=schema_id,
                schema_name=schema_name,
                type=map_field_type(field.get("component"), field.get("type")),
                path=f"{schema_name}.{name}",
                field_id=field.get("id"),
                description=field.get("description") or field.get("label"),
            )
        )
    return properties
