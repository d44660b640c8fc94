"""Field dependency extraction.

Collects the record fields a rule reads so callers can re-evaluate only when
one of them changes. Each property contributes its ``field_id``, its
``name`` and the first segment of its ``path``: values may be keyed by any
of the three.
"""

from collections.abc import Iterable

from .models import BusinessRule, ConditionGroup, Property


def _property_keys(prop: Property | None) -> list[str]:
    if prop is None:
        return []
    keys = []
    if prop.field_id:
        keys.append(prop.field_id)
    if prop.name:
        keys.append(prop.name)
    if prop.path:
        head = prop.path.split(".", 1)[0]
        if head:
            keys.append(head)
    return keys


def _collect(group: ConditionGroup, found: dict[str, None]) -> None:
    for condition in group.conditions:
        for key in _property_keys(condition.property):
            found.setdefault(key)
        if condition.value_type == "property":
            for key in _property_keys(condition.property_reference):
                found.setdefault(key)

    for nested in group.groups:
        _collect(nested, found)


def extract_fields_from_rule(rule: BusinessRule | None) -> list[str]:
    """Return the distinct field identifiers a rule depends on.

    Order is first appearance in a depth-first walk.
    """
    if rule is None or rule.root_group is None:
        return []

    found: dict[str, None] = {}
    _collect(rule.root_group, found)
    return list(found)


def extract_fields_from_rules(rules: Iterable[BusinessRule] | None) -> list[str]:
    """Return the union of the watch sets of several rules."""
    found: dict[str, None] = {}
    for rule in rules or []:
        for key in extract_fields_from_rule(rule):
            found.setdefault(key)
    return list(found)
