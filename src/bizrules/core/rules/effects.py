"""Rule effects resolution.

Rules carry target lists (required, visible, hidden, disabled). The effects
of every passing rule are folded into one accumulator of flagged targets,
then materialized into a per-field and per-section effect map.

Precedence:
    * Within one rule, a target listed as both visible and hidden is visible.
    * Across rules, flags only accumulate: an explicit ``visible`` from any
      passing rule wins over a ``hidden`` from another, and nothing can
      clear ``required`` or ``disabled``. The result does not depend on rule
      order.
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import reduce
from typing import Any

from bizrules.core.config import get_settings
from bizrules.core.logging import get_logger

from .evaluator import Evaluator
from .field_extractor import extract_fields_from_rules
from .models import BusinessRule, RuleEffects, RuleModel, RuleTarget

logger = get_logger(__name__)

TargetKey = tuple[str, str]


class ObjectEffects(RuleModel):
    """Effect flags of one field or section."""

    is_visible: bool = True
    is_required: bool = False
    is_disabled: bool = False


class BusinessRuleEffectsMap(RuleModel):
    """Effect flags for every known field and section."""

    fields: dict[str, ObjectEffects] = {}
    sections: dict[str, ObjectEffects] = {}


@dataclass(frozen=True)
class EffectFlags:
    """Targets flagged so far by passing rules."""

    required: frozenset[TargetKey] = frozenset()
    visible: frozenset[TargetKey] = frozenset()
    hidden: frozenset[TargetKey] = frozenset()
    disabled: frozenset[TargetKey] = frozenset()

    def effects_for(self, key: TargetKey) -> ObjectEffects:
        return ObjectEffects(
            is_visible=key in self.visible or key not in self.hidden,
            is_required=key in self.required,
            is_disabled=key in self.disabled,
        )


def _keys(targets: list[RuleTarget] | None) -> frozenset[TargetKey]:
    return frozenset(t.key for t in targets or [])


def apply_rule_effects(flags: EffectFlags, effects: RuleEffects) -> EffectFlags:
    """Fold one passing rule's effects into the accumulator."""
    visible = _keys(effects.visible_objects)
    hidden = _keys(effects.hidden_objects) - visible

    return EffectFlags(
        required=flags.required | _keys(effects.required_objects),
        visible=flags.visible | visible,
        hidden=flags.hidden | hidden,
        disabled=flags.disabled | _keys(effects.disabled_objects),
    )


def collect_target_ids(rules: Iterable[BusinessRule]) -> tuple[list[str], list[str]]:
    """Field and section IDs named by any rule's effects, in first-seen order."""
    fields: dict[str, None] = {}
    sections: dict[str, None] = {}
    for rule in rules:
        effects: RuleEffects | None = getattr(rule, "effects", None)
        if effects is None:
            continue
        for targets in (
            effects.required_objects,
            effects.visible_objects,
            effects.hidden_objects,
            effects.disabled_objects,
        ):
            for target in targets or []:
                (fields if target.type == "field" else sections).setdefault(target.id)
    return list(fields), list(sections)


def resolve_effects(
    rules: Iterable[BusinessRule] | None,
    values: Mapping[str, Any],
    field_ids: Iterable[str],
    section_ids: Iterable[str],
) -> BusinessRuleEffectsMap:
    """Compute the effect map for the given fields and sections.

    Targets that are not among ``field_ids`` / ``section_ids`` are ignored.
    Rules without effects, or that do not pass, contribute nothing.
    """
    evaluator = Evaluator(values)
    passing = (
        rule.effects
        for rule in rules or []
        if getattr(rule, "effects", None) is not None and evaluator.evaluate_rule(rule)
    )
    flags = reduce(apply_rule_effects, passing, EffectFlags())

    return BusinessRuleEffectsMap(
        fields={fid: flags.effects_for(("field", fid)) for fid in field_ids},
        sections={sid: flags.effects_for(("section", sid)) for sid in section_ids},
    )


def get_field_effects(
    field_id: str, section_id: str, effects: BusinessRuleEffectsMap
) -> ObjectEffects:
    """Effective flags of a field inside a section.

    A hidden section hides its fields; a required or disabled section makes
    its fields required or disabled. Field flags never override the section.
    """
    field_effect = effects.fields.get(field_id) or ObjectEffects()
    section_effect = effects.sections.get(section_id) or ObjectEffects()

    return ObjectEffects(
        is_visible=section_effect.is_visible and field_effect.is_visible,
        is_required=section_effect.is_required or field_effect.is_required,
        is_disabled=section_effect.is_disabled or field_effect.is_disabled,
    )


class RuleEffectsEvaluator:
    """Re-resolves effects only when a watched field value changes.

    The watch set is extracted once from the rules. Each call snapshots just
    the watched values with a stable serialization; when the snapshot equals
    the previous one the previous effect map is returned.
    """

    def __init__(
        self,
        rules: Iterable[BusinessRule] | None,
        field_ids: Iterable[str],
        section_ids: Iterable[str],
        cache_enabled: bool | None = None,
    ):
        self.rules = list(rules or [])
        self.field_ids = list(field_ids)
        self.section_ids = list(section_ids)
        self.watch_fields = extract_fields_from_rules(self.rules)
        self.cache_enabled = (
            get_settings().effects_cache_enabled if cache_enabled is None else cache_enabled
        )
        self.evaluations = 0
        self._last_snapshot: str | None = None
        self._last_effects: BusinessRuleEffectsMap | None = None

    def watched_values(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """The subset of ``values`` the rules depend on."""
        return {name: values[name] for name in self.watch_fields if name in values}

    @staticmethod
    def _snapshot(watched: dict[str, Any]) -> str:
        return json.dumps(watched, sort_keys=True, default=str)

    def evaluate(self, values: Mapping[str, Any]) -> BusinessRuleEffectsMap:
        """Effect map for the current values."""
        watched = self.watched_values(values)
        snapshot = self._snapshot(watched)

        if self.cache_enabled and self._last_effects is not None and snapshot == self._last_snapshot:
            logger.debug("Effects unchanged, reusing previous result", watched=len(watched))
            return self._last_effects.model_copy(deep=True)

        effects = resolve_effects(self.rules, watched, self.field_ids, self.section_ids)
        self.evaluations += 1
        self._last_snapshot = snapshot
        self._last_effects = effects
        return effects.model_copy(deep=True)
