"""Apply pipelines — ordered check and transform steps attached to a field.

A field's ``apply`` list is compiled into action objects and run in
declaration order against the field's working value. The first failing
action stops the pipeline and records its message on the field::

    Field("age", apply=[
        Transform(int, message="Not a number"),
        Check(lambda v: v > 13, message="You are not old enough to register"),
    ])

Schema declarations may use plain dicts instead of the classes::

    {"check": r"^\\d+$", "message": "Digits only"}
    {"transform": str.upper}

and any rule from ``plume.rules`` (or a callable following the same
protocol) can be listed directly.

Messages are keys for the form's ``Messages`` service; ``[_1]`` is the
value being checked.
"""

import re
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from plume.errors import ConfigurationError
from plume.rules import RuleResult

# Exceptions a transform may raise for bad input; anything else is a bug
_TRANSFORM_ERRORS = (ValueError, TypeError, ArithmeticError, LookupError)


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of running one action."""

    ok: bool
    value: Any = None
    message: str | tuple[Any, ...] | None = None


class Action:
    """Base for pipeline steps. Subclasses implement ``run``."""

    __slots__ = ()

    def run(self, value: Any) -> Outcome:
        raise NotImplementedError


class Check(Action):
    """Constraint: leave the value alone, fail when it does not satisfy *check*.

    *check* may be a predicate callable, a regex (string or compiled) that
    must match, or a collection of allowed values.
    """

    __slots__ = ("_test", "message")

    def __init__(self, check: Any, message: str | None = None) -> None:
        self._test = _compile_check(check)
        self.message = message or "Wrong value"

    def run(self, value: Any) -> Outcome:
        if self._test(value):
            return Outcome(True, value)
        return Outcome(False, value, (self.message, value))


class Transform(Action):
    """Replace the value with ``transform(value)``.

    A transform that raises on bad input fails with *message*.
    """

    __slots__ = ("_transform", "message")

    def __init__(self, transform: Callable[[Any], Any], message: str | None = None) -> None:
        if not callable(transform):
            msg = f"Transform must be callable, got {transform!r}"
            raise ConfigurationError(msg)
        self._transform = transform
        self.message = message or "Could not process value"

    def run(self, value: Any) -> Outcome:
        try:
            return Outcome(True, self._transform(value))
        except _TRANSFORM_ERRORS:
            return Outcome(False, value, (self.message, value))


class Rule(Action):
    """Adapter for rule callables: ``(value) -> message | None``."""

    __slots__ = ("_rule",)

    def __init__(self, rule: Callable[[Any], RuleResult]) -> None:
        self._rule = rule

    def run(self, value: Any) -> Outcome:
        message = self._rule(value)
        if message is None:
            return Outcome(True, value)
        return Outcome(False, value, message)


def _compile_check(check: Any) -> Callable[[Any], bool]:
    if isinstance(check, re.Pattern):
        return lambda v: check.search(str(v)) is not None
    if isinstance(check, str):
        pattern = re.compile(check)
        return lambda v: pattern.search(str(v)) is not None
    if callable(check):
        return lambda v: bool(check(v))
    if isinstance(check, Collection):
        allowed = {str(item) for item in check}
        return lambda v: str(v) in allowed
    msg = f"Unsupported check {check!r}: expected callable, regex or collection"
    raise ConfigurationError(msg)


def build_actions(specs: Iterable[Any] | None) -> tuple[Action, ...]:
    """Compile an ``apply`` declaration into action objects.

    Raises ``ConfigurationError`` for entries that are none of: an
    ``Action``, a ``{"check": ...}`` / ``{"transform": ...}`` mapping,
    or a rule callable.
    """
    if not specs:
        return ()
    actions: list[Action] = []
    for spec in specs:
        if isinstance(spec, Action):
            actions.append(spec)
        elif isinstance(spec, Mapping):
            if "check" in spec:
                actions.append(Check(spec["check"], spec.get("message")))
            elif "transform" in spec:
                actions.append(Transform(spec["transform"], spec.get("message")))
            else:
                msg = f"Apply entry needs a 'check' or 'transform' key: {dict(spec)!r}"
                raise ConfigurationError(msg)
        elif callable(spec):
            actions.append(Rule(spec))
        else:
            msg = f"Unsupported apply entry: {spec!r}"
            raise ConfigurationError(msg)
    return tuple(actions)
