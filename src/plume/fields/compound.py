"""Compound fields — a field that owns an ordered set of child fields.

The submitted input of a compound is a mapping (the normalizer expands
``birthdate.year`` into ``{"birthdate": {"year": ...}}``). Each child
validates its own slice of it. When every child passes, the compound's
value is the mapping of child values, which the compound's own ``apply``
pipeline may then transform::

    Compound("birthdate", fields=[
        ("year", "Integer"), ("month", "Integer"), ("day", "Integer"),
    ], apply=[Transform(lambda v: datetime.date(**v))])
"""

import datetime
from collections.abc import Mapping
from typing import Any, ClassVar

from plume.fields.base import Field
from plume.tree import FieldTree, TreeBuilder, iter_schema


class Compound(Field):
    """A field built from child fields."""

    compound: ClassVar[bool] = True
    widget = "compound"

    # Children every instance of this type gets, before declared ``fields``
    field_list: ClassVar[Any] = ()

    def __init__(
        self,
        name: str,
        *,
        fields: Any = None,
        builder: TreeBuilder | None = None,
        **attrs: Any,
    ) -> None:
        super().__init__(name, **attrs)
        self.children = FieldTree()
        schema = [*iter_schema(type(self).field_list), *iter_schema(fields)]
        (builder or TreeBuilder()).build_into(self.children, schema, parent=self)

    def field(self, name: str, die: bool = False) -> Field | None:
        """Child lookup by (dotted) name relative to this compound."""
        return self.children.lookup(name, die=die)

    def test_multiple(self) -> bool:
        if not isinstance(self._input, Mapping):
            return self.add_error("This field expects a group of values")
        return True

    def validate(self) -> bool:
        if not self.validate_children():
            return False
        return self.apply_actions()

    def validate_children(self) -> bool:
        """Distribute the input over the children and validate each one.

        On success ``value`` is the mapping of child accessor -> value.
        """
        raw: Mapping[str, Any] = self._input
        ok = True
        values: dict[str, Any] = {}
        for child in self.children:
            if child.name in raw:
                child.input = raw[child.name]
            elif child.input_without_param is not None:
                child.input = child.input_without_param
            else:
                child.clear_input()
            if not child.validate_field():
                ok = False
                continue
            if child.has_value:
                values[child.accessor] = child.value
        if ok:
            self.value = values
        return ok


class DateTime(Compound):
    """Date and time entered as separate year/month/day/hour/minute inputs."""

    field_list = (
        ("year", {"type": "Integer", "required": True}),
        ("month", {"type": "Integer", "required": True, "range_start": 1, "range_end": 12}),
        ("day", {"type": "Integer", "required": True, "range_start": 1, "range_end": 31}),
        ("hour", {"type": "Integer", "range_start": 0, "range_end": 23}),
        ("minute", {"type": "Integer", "range_start": 0, "range_end": 59}),
    )

    def validate(self) -> bool:
        if not self.validate_children():
            return False
        parts = self.value
        try:
            self.value = datetime.datetime(
                parts["year"],
                parts["month"],
                parts["day"],
                parts.get("hour", 0),
                parts.get("minute", 0),
            )
        except (ValueError, OverflowError):
            self.clear_value()
            return self.add_error("Not a valid date")
        return self.apply_actions()

    def fif_value(self, value: Any) -> Any:
        if isinstance(value, datetime.datetime):
            return {
                "year": value.year,
                "month": value.month,
                "day": value.day,
                "hour": value.hour,
                "minute": value.minute,
            }
        return value
