"""Decides which registered controls accept input while a step is active.

The decision is an ordered list of small rules. Each rule looks at one
control in the context of the active step and either answers (enable or
disable) or passes by returning ``None``; the first answer wins and a
control nobody speaks for stays disabled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .steps import StepDescriptor


def matches_pattern(name: str, patterns: Iterable[str]) -> bool:
    """True when ``name`` equals a pattern or starts with a ``prefix*`` one."""
    for pattern in patterns:
        if pattern.endswith("*"):
            if name.startswith(pattern[:-1]):
                return True
        elif name == pattern:
            return True
    return False


@dataclass(frozen=True)
class GatePolicy:
    """Exception tables consulted by the gate rules.

    Patterns ending in ``*`` match by prefix, everything else by exact name.
    """

    screen_transition_controls: FrozenSet[str] = frozenset()
    groups: Tuple[Tuple[str, ...], ...] = ()
    always_on: Tuple[str, ...] = ()
    chrome_screens: FrozenSet[str] = frozenset()
    compound_targets: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "GatePolicy":
        return cls(
            screen_transition_controls=frozenset(raw.get("screenTransitionControls", [])),
            groups=tuple(tuple(group) for group in raw.get("groups", [])),
            always_on=tuple(raw.get("alwaysOn", [])),
            chrome_screens=frozenset(raw.get("chromeScreens", [])),
            compound_targets={
                str(target): tuple(names)
                for target, names in dict(raw.get("compoundTargets", {})).items()
            },
        )

    def group_of(self, name: Optional[str]) -> Tuple[str, ...]:
        if not name:
            return ()
        for group in self.groups:
            if matches_pattern(name, group):
                return group
        return ()

    def is_transition_control(self, name: Optional[str]) -> bool:
        return bool(name) and name in self.screen_transition_controls

    def is_always_on(self, name: str, screen: Optional[str]) -> bool:
        return matches_pattern(name, self.always_on) or (screen is not None and screen in self.chrome_screens)


@dataclass(frozen=True)
class GateContext:
    step: "StepDescriptor"
    name: str
    screen: Optional[str]
    policy: GatePolicy

    @property
    def target(self) -> Optional[str]:
        return self.step.target_control


GateRule = Callable[[GateContext], Optional[bool]]


def free_operation_rule(ctx: GateContext) -> Optional[bool]:
    if not ctx.step.allow_free_operation:
        return None
    if ctx.policy.is_transition_control(ctx.name):
        return ctx.name == ctx.target
    return True


def transition_lock_rule(ctx: GateContext) -> Optional[bool]:
    # Only the targeted screen-transition control may leave the screen.
    if ctx.policy.is_transition_control(ctx.target) and ctx.policy.is_transition_control(ctx.name):
        return ctx.name == ctx.target
    return None


def target_rule(ctx: GateContext) -> Optional[bool]:
    if ctx.target and ctx.name == ctx.target:
        return True
    return None


def group_rule(ctx: GateContext) -> Optional[bool]:
    group = ctx.policy.group_of(ctx.target)
    if group and matches_pattern(ctx.name, group):
        return True
    return None


def always_on_rule(ctx: GateContext) -> Optional[bool]:
    if ctx.policy.is_always_on(ctx.name, ctx.screen):
        return True
    return None


def compound_rule(ctx: GateContext) -> Optional[bool]:
    if not ctx.target:
        return None
    companions = ctx.policy.compound_targets.get(ctx.target)
    if companions and matches_pattern(ctx.name, companions):
        return True
    return None


def default_deny_rule(ctx: GateContext) -> Optional[bool]:
    return False


DEFAULT_RULES: Tuple[GateRule, ...] = (
    free_operation_rule,
    transition_lock_rule,
    target_rule,
    group_rule,
    always_on_rule,
    compound_rule,
    default_deny_rule,
)


def decide(
    step: Optional["StepDescriptor"],
    name: str,
    screen: Optional[str],
    policy: GatePolicy,
    rules: Sequence[GateRule] = DEFAULT_RULES,
) -> bool:
    if step is None:
        return True
    ctx = GateContext(step=step, name=name, screen=screen, policy=policy)
    for rule in rules:
        verdict = rule(ctx)
        if verdict is not None:
            return verdict
    return False


def apply_gate_for_step(
    step: Optional["StepDescriptor"],
    snapshot: Mapping[str, Optional[str]],
    policy: GatePolicy,
    rules: Sequence[GateRule] = DEFAULT_RULES,
) -> Dict[str, bool]:
    """Return ``{name: enabled}`` for every control in ``snapshot``.

    ``snapshot`` maps each live control name to the screen that owns it.
    """
    return {name: decide(step, name, screen, policy, rules) for name, screen in snapshot.items()}


__all__ = [
    "GatePolicy",
    "GateContext",
    "GateRule",
    "DEFAULT_RULES",
    "decide",
    "apply_gate_for_step",
    "matches_pattern",
]
