"""Tests for rule tree operations and the rule editor."""

import pytest

from bizrules.core.rules import (
    Condition,
    ConditionGroup,
    RuleEditor,
    RuleOperationError,
    add_condition,
    add_group,
    clone_condition,
    clone_group,
    create_empty_condition,
    create_empty_group,
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


def _strip_ids(data):
    if isinstance(data, dict):
        return {k: _strip_ids(v) for k, v in data.items() if k != "id"}
    if isinstance(data, list):
        return [_strip_ids(v) for v in data]
    return data


def _all_ids(group: ConditionGroup) -> list[str]:
    ids = [group.id] + [c.id for c in group.conditions]
    for nested in group.groups:
        ids.extend(_all_ids(nested))
    return ids


@pytest.fixture
def tree(make_condition):
    """root(and) -> [c1, c2], nested(or) -> [c3], nested -> deep(and) -> [c4]"""
    c1 = make_condition("age", "gte", 18, type="number")
    c2 = make_condition("name", "equals", "Ada")
    c3 = make_condition("country", "in", ["US", "CA"])
    c4 = make_condition("email", "ends_with", "@example.com")
    deep = ConditionGroup(id="deep", logical_operator="and", conditions=[c4])
    nested = ConditionGroup(id="nested", logical_operator="or", conditions=[c3], groups=[deep])
    root = ConditionGroup(id="root", logical_operator="and", conditions=[c1, c2], groups=[nested])
    return root, (c1, c2, c3, c4)


class TestFind:
    """Test ID-based lookups."""

    def test_find_condition_returns_containing_group(self, tree):
        """Test a nested condition is found with its group."""
        root, (_, _, _, c4) = tree
        condition, group = find_condition_by_id(root, c4.id)
        assert condition is c4
        assert group.id == "deep"

    def test_find_condition_missing(self, tree):
        """Test an unknown condition ID returns None."""
        root, _ = tree
        assert find_condition_by_id(root, "missing") is None

    def test_find_group(self, tree):
        """Test groups are found at any depth."""
        root, _ = tree
        assert find_group_by_id(root, "root") is root
        assert find_group_by_id(root, "deep").id == "deep"
        assert find_group_by_id(root, "missing") is None

    def test_find_parent_group(self, tree):
        """Test the parent of a nested group is found."""
        root, _ = tree
        assert find_parent_group(root, "deep").id == "nested"
        assert find_parent_group(root, "nested") is root
        assert find_parent_group(root, "root") is None


class TestAdd:
    """Test adding conditions and groups."""

    def test_add_empty_condition(self):
        """Test adding a fresh empty condition."""
        group = create_empty_group()
        condition_id = add_condition(group)

        assert [c.id for c in group.conditions] == [condition_id]
        assert group.conditions[0].property is None
        assert group.conditions[0].value_type == "fixed"

    def test_add_same_condition_twice_is_idempotent(self):
        """Test re-adding a condition with the same ID is a no-op."""
        group = create_empty_group()
        condition = create_empty_condition()

        first = add_condition(group, condition)
        second = add_condition(group, condition)

        assert first == second == condition.id
        assert len(group.conditions) == 1

    def test_add_without_id_inserts_each_time(self):
        """Test each call without a condition adds a new one."""
        group = create_empty_group()
        add_condition(group)
        add_condition(group)
        assert len(group.conditions) == 2

    def test_add_group(self, tree):
        """Test adding a nested group under a parent."""
        root, _ = tree
        group_id = add_group(root, "nested", "or")

        added = find_group_by_id(root, group_id)
        assert added.logical_operator == "or"
        assert added.is_empty()
        assert find_parent_group(root, group_id).id == "nested"

    def test_add_group_unknown_parent(self, tree):
        """Test adding under an unknown parent returns None."""
        root, _ = tree
        assert add_group(root, "missing") is None


class TestUpdate:
    """Test partial updates."""

    def test_update_condition(self, tree, make_property):
        """Test a partial condition update."""
        root, (c1, *_) = tree
        updated = update_condition(root, c1.id, fixed_value=21, property=make_property("years", type="number"))

        assert updated is c1
        assert c1.fixed_value == 21
        assert c1.property.name == "years"

    def test_update_condition_accepts_camel_case_and_dicts(self, tree):
        """Test updates accept camelCase keys and plain dicts."""
        root, (c1, *_) = tree
        update_condition(root, c1.id, valueType="property", propertyReference={"id": "p", "name": "p"})

        assert c1.value_type == "property"
        assert c1.property_reference.name == "p"

    def test_update_condition_cannot_change_id(self, tree):
        """Test a condition ID cannot be changed."""
        root, (c1, *_) = tree
        with pytest.raises(RuleOperationError, match="cannot be changed"):
            update_condition(root, c1.id, id="other")

    def test_update_unknown_attribute(self, tree):
        """Test unknown attributes are rejected."""
        root, (c1, *_) = tree
        with pytest.raises(RuleOperationError, match="Unknown attribute"):
            update_condition(root, c1.id, colour="red")

    def test_update_missing_nodes(self, tree):
        """Test updating unknown nodes returns None."""
        root, _ = tree
        assert update_condition(root, "missing", fixed_value=1) is None
        assert update_group(root, "missing", logical_operator="or") is None

    def test_update_group(self, tree):
        """Test a partial group update."""
        root, _ = tree
        update_group(root, "deep", logical_operator="not")
        assert find_group_by_id(root, "deep").logical_operator == "not"


class TestRemove:
    """Test removals."""

    def test_remove_nested_condition(self, tree):
        """Test removing a condition from a nested group."""
        root, (_, _, _, c4) = tree
        assert remove_condition(root, c4.id) is True
        assert find_condition_by_id(root, c4.id) is None
        assert remove_condition(root, c4.id) is False

    def test_remove_nested_group(self, tree):
        """Test removing a nested group."""
        root, (_, _, c3, c4) = tree
        assert remove_group(root, "nested") is True
        assert find_group_by_id(root, "deep") is None
        assert find_condition_by_id(root, c3.id) is None
        assert find_condition_by_id(root, c4.id) is None

    def test_remove_missing_group(self, tree):
        """Test removing an unknown group returns False."""
        root, _ = tree
        assert remove_group(root, "missing") is False

    def test_remove_root_group_is_disallowed(self, tree):
        """Test the root group cannot be removed."""
        root, _ = tree
        with pytest.raises(RuleOperationError, match="root group"):
            remove_group(root, "root")


class TestClone:
    """Test cloning and duplication."""

    def test_clone_condition(self, tree):
        """Test a cloned condition gets a new ID."""
        _, (_, _, c3, _) = tree
        clone = clone_condition(c3)

        assert clone.id != c3.id
        assert _strip_ids(clone.to_dict()) == _strip_ids(c3.to_dict())
        clone.fixed_value.append("MX")
        assert c3.fixed_value == ["US", "CA"]

    def test_clone_group_assigns_fresh_ids_everywhere(self, tree):
        """Test a cloned group has new IDs throughout."""
        root, _ = tree
        clone = clone_group(root)

        assert clone.id != root.id
        assert set(_all_ids(clone)).isdisjoint(_all_ids(root))
        assert len(set(_all_ids(clone))) == len(_all_ids(root))
        assert _strip_ids(clone.to_dict()) == _strip_ids(root.to_dict())

    def test_duplicate_condition_appends_to_containing_group(self, tree):
        """Test a duplicate lands in the same group."""
        root, (_, _, c3, _) = tree
        clone_id = duplicate_condition(root, c3.id)

        nested = find_group_by_id(root, "nested")
        assert [c.id for c in nested.conditions] == [c3.id, clone_id]

    def test_duplicate_group_appends_to_parent(self, tree):
        """Test a duplicate group lands in the same parent."""
        root, _ = tree
        clone_id = duplicate_group(root, "deep")

        nested = find_group_by_id(root, "nested")
        assert [g.id for g in nested.groups] == ["deep", clone_id]

    def test_duplicate_root_group(self, tree):
        """Test the root group cannot be duplicated."""
        root, _ = tree
        assert duplicate_group(root, "root") is None
        assert duplicate_condition(root, "missing") is None


class TestPreview:
    """Test the text rendering."""

    def test_preview(self, tree, make_operator):
        """Test the rendered preview text."""
        root, (c1, c2, c3, c4) = tree
        c1.operator = make_operator("gte", ">=")
        c2.operator = make_operator("equals", "=")
        c3.operator = make_operator("in", "IN")
        c4.operator = make_operator("ends_with", "ENDS WITH")

        assert generate_rule_preview(root) == "\n".join([
            "AND",
            "user.age >= 18",
            "AND",
            "user.name = Ada",
            "AND",
            "(",
            "  OR",
            "  user.country IN [US, CA]",
            "  OR",
            "  (",
            "    user.email ENDS WITH @example.com",
            "  )",
            ")",
        ])

    def test_preview_incomplete_condition(self):
        """Test missing parts render as question marks."""
        group = create_empty_group()
        add_condition(group, Condition(value_type="property"))
        add_condition(group, Condition(fixed_value=True))

        assert generate_rule_preview(group) == "? ? ?\nAND\n? ? true"

    def test_preview_empty_group(self):
        """Test an empty group renders as empty text."""
        assert generate_rule_preview(create_empty_group()) == ""


class TestRuleEditor:
    """Test the editor's copy-on-write state handling."""

    def test_mutations_replace_rule(self):
        """Test each edit produces a new rule object."""
        editor = RuleEditor()
        before = editor.rule

        condition_id = editor.add_condition(editor.root_group.id)

        assert editor.rule is not before
        assert before.root_group.is_empty()
        assert [c.id for c in editor.root_group.conditions] == [condition_id]

    def test_double_add_with_explicit_condition(self):
        """Test adding the same condition twice keeps one copy."""
        editor = RuleEditor()
        condition = create_empty_condition()

        first = editor.add_condition(editor.root_group.id, condition)
        second = editor.add_condition(editor.root_group.id, condition)

        assert first == second == condition.id
        assert len(editor.root_group.conditions) == 1

    def test_add_to_unknown_group(self):
        """Test adding to an unknown group returns None."""
        editor = RuleEditor()
        assert editor.add_condition("missing") is None

    def test_update_missing_condition_raises(self):
        """Test updating an unknown condition raises."""
        editor = RuleEditor()
        with pytest.raises(RuleOperationError, match="Condition not found"):
            editor.update_condition("missing", fixed_value=1)
        with pytest.raises(RuleOperationError, match="Group not found"):
            editor.update_group("missing", logical_operator="or")

    def test_delete_root_group_resets_it(self):
        """Test deleting the root leaves an empty AND group."""
        editor = RuleEditor()
        old_root = editor.root_group.id
        editor.add_condition(old_root)

        assert editor.delete_group(old_root) is True
        assert editor.root_group.id != old_root
        assert editor.root_group.logical_operator == "and"
        assert editor.root_group.is_empty()

    def test_group_lifecycle(self):
        """Test adding, updating, duplicating and deleting groups."""
        editor = RuleEditor()
        group_id = editor.add_group(editor.root_group.id, "or")
        editor.update_group(group_id, logical_operator="not")
        clone_id = editor.duplicate_group(group_id)

        assert [g.logical_operator for g in editor.root_group.groups] == ["not", "not"]
        assert editor.delete_group(clone_id) is True
        assert [g.id for g in editor.root_group.groups] == [group_id]

    def test_condition_lifecycle(self, make_property):
        """Test adding, updating, duplicating and deleting conditions."""
        editor = RuleEditor()
        condition_id = editor.add_condition(editor.root_group.id)
        editor.update_condition(condition_id, property=make_property("age"), fixed_value=3)
        clone_id = editor.duplicate_condition(condition_id)

        assert [c.fixed_value for c in editor.root_group.conditions] == [3, 3]
        assert editor.delete_condition(condition_id) is True
        assert [c.id for c in editor.root_group.conditions] == [clone_id]

    def test_validate_and_reset(self):
        """Test validation state and resetting the editor."""
        editor = RuleEditor()
        assert editor.validate() is False
        assert editor.validation_errors[0].group_id == editor.root_group.id

        editor.update_rule(name="Adults only")
        assert editor.rule.name == "Adults only"

        editor.reset()
        assert editor.rule.name is None
        assert editor.validation_errors == []

    def test_update_rule_changes_rule_id(self):
        """Test the rule's own ID is editable while node IDs stay fixed."""
        editor = RuleEditor()
        root_id = editor.root_group.id

        editor.update_rule(id="rule-renamed", name="Renamed")
        assert editor.rule.id == "rule-renamed"
        assert editor.rule.name == "Renamed"

        with pytest.raises(RuleOperationError, match="cannot be changed"):
            editor.update_group(root_id, id="group-renamed")
        assert editor.root_group.id == root_id

    def test_preview(self, make_property, make_operator):
        """Test the rendered preview text."""
        editor = RuleEditor()
        editor.add_condition(
            editor.root_group.id,
            Condition(property=make_property("age"), operator=make_operator("gt", ">"), fixed_value=1),
        )
        assert editor.preview() == "user.age > 1"
