"""Rules package."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from al_review.rules.base import Finding, Rule, SourceFile
from al_review.rules.brace_on_new_line import BraceOnNewLineRule
from al_review.rules.object_prefix import ObjectPrefixRule
from al_review.rules.unused_variable import UnusedVariableRule
from al_review.rules.xml_doc import XmlDocRule

__all__ = [
    "Finding",
    "Rule",
    "RuleInfo",
    "SourceFile",
    "build_rules",
    "list_rule_info",
]


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing."""

    rule_id: str
    name: str
    description: str
    config_key: str | None
    default_severity: str


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    rule_id: str
    factory: Callable[[Any], Rule | None]
    name: str
    description: str
    config_key: str | None
    default_severity: str


def build_rules(
    rule_config: Any,
    *,
    disabled_rule_ids: list[str] | None = None,
) -> list[Rule]:
    """Build the configured rules in evaluation order.

    Rules whose settings are absent or malformed are left out. Unknown ids in
    ``disabled_rule_ids`` are ignored.
    """
    disabled = set(disabled_rule_ids or [])
    built: list[Rule] = []
    for spec in _ordered_rule_specs():
        if spec.rule_id in disabled:
            continue
        rule = spec.factory(rule_config)
        if rule is not None:
            built.append(rule)
    return built


def list_rule_info() -> list[RuleInfo]:
    """Return metadata for all known rules in evaluation order."""
    return [
        RuleInfo(
            rule_id=spec.rule_id,
            name=spec.name,
            description=spec.description,
            config_key=spec.config_key,
            default_severity=spec.default_severity,
        )
        for spec in _ordered_rule_specs()
    ]


def _ordered_rule_specs() -> list[_RuleSpec]:
    return [
        _spec(ObjectPrefixRule, ObjectPrefixRule.from_config, "objectPrefix", "major"),
        _spec(XmlDocRule, XmlDocRule.from_config, "documentation", "major"),
        _spec(BraceOnNewLineRule, BraceOnNewLineRule.from_config, "formatting", "minor"),
        _spec(UnusedVariableRule, lambda _config: UnusedVariableRule(), None, "minor"),
    ]


def _spec(
    rule_cls: type,
    factory: Callable[[Any], Rule | None],
    config_key: str | None,
    default_severity: str,
) -> _RuleSpec:
    return _RuleSpec(
        rule_id=rule_cls.rule_id,
        factory=factory,
        name=rule_cls.__name__,
        description=(rule_cls.__doc__ or "").strip().splitlines()[0],
        config_key=config_key,
        default_severity=default_severity,
    )
