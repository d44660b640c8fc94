"""Pytest configuration for all tests."""

from typing import Any, Callable

import pytest
import structlog

from bizrules.core.config import get_settings
from bizrules.core.rules import (
    BusinessRule,
    Condition,
    ConditionGroup,
    Operator,
    Property,
)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Keep settings and logging per test so env patches never leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def make_property() -> Callable[..., Property]:
    """Factory for properties of a 'user' schema."""

    def _make(
        name: str,
        type: str = "string",
        path: str | None = None,
        field_id: str | None = None,
    ) -> Property:
        return Property(
            id=f"user.{name}",
            name=name,
            schema_id="user",
            schema_name="user",
            type=type,
            path=path if path is not None else f"user.{name}",
            field_id=field_id,
        )

    return _make


@pytest.fixture
def make_operator() -> Callable[..., Operator]:
    """Factory for operators; ``symbol`` defaults to the name."""

    def _make(name: str, symbol: str | None = None, **kwargs: Any) -> Operator:
        return Operator(id=name, name=name, title=name, symbol=symbol or name, **kwargs)

    return _make


@pytest.fixture
def make_condition(make_property, make_operator) -> Callable[..., Condition]:
    """Factory for fixed-value conditions on a named property."""

    def _make(field: str, operator: str, value: Any = None, type: str = "string", **kwargs: Any) -> Condition:
        return Condition(
            property=make_property(field, type=type, **kwargs),
            operator=make_operator(operator),
            value_type="fixed",
            fixed_value=value,
        )

    return _make


@pytest.fixture
def make_rule() -> Callable[..., BusinessRule]:
    """Factory for a rule with one root group holding the given conditions."""

    def _make(*conditions: Condition, logical_operator: str = "and", groups: list[ConditionGroup] | None = None) -> BusinessRule:
        return BusinessRule(
            id="rule-under-test",
            name="Rule under test",
            root_group=ConditionGroup(
                logical_operator=logical_operator,
                conditions=list(conditions),
                groups=groups or [],
            ),
        )

    return _make
