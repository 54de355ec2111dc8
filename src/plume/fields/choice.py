"""Choice fields: Select, Multiple, IntRange, Boolean, Checkbox.

Options are stored as a list of ``{"value": ..., "label": ...}`` dicts and
may be declared as any of::

    {1: "One", 2: "Two"}
    [(1, "One"), (2, "Two")]
    [1, "One", 2, "Two"]                      # alternating value, label
    [{"value": 1, "label": "One"}, ...]
"""

from collections.abc import Mapping
from typing import Any, ClassVar

from plume.errors import OptionsError
from plume.fields.base import Field, has_nonblank


def normalize_options(options: Any, field_name: str = "?") -> list[dict[str, Any]]:
    """Convert an options declaration to a list of value/label dicts.

    Raises ``OptionsError`` for an alternating list with an odd number
    of elements or entries without a value.
    """
    if options is None:
        return []
    if isinstance(options, Mapping):
        return [{"value": value, "label": label} for value, label in options.items()]
    if not isinstance(options, (list, tuple)):
        msg = f"Options for field {field_name!r} must be a mapping or a list"
        raise OptionsError(msg)
    if all(isinstance(option, Mapping) for option in options):
        normalized = []
        for option in options:
            if "value" not in option:
                msg = f"Option without a 'value' for field {field_name!r}: {dict(option)!r}"
                raise OptionsError(msg)
            normalized.append({**option, "label": option.get("label", option["value"])})
        return normalized
    if all(isinstance(option, tuple) and len(option) == 2 for option in options):
        return [{"value": value, "label": label} for value, label in options]
    if len(options) % 2:
        msg = f"Options array must contain an even number of elements for field {field_name!r}"
        raise OptionsError(msg)
    return [{"value": value, "label": label} for value, label in zip(options[::2], options[1::2])]


class OptionsField(Field):
    """A field carrying an option list, loadable by ``options_<name>`` hooks."""

    settable: ClassVar[frozenset[str]] = Field.settable | {"options"}
    has_options: ClassVar[bool] = True

    def __init__(self, name: str, **attrs: Any) -> None:
        self._options: list[dict[str, Any]] = []
        super().__init__(name, **attrs)

    @property
    def options(self) -> list[dict[str, Any]]:
        return self._options

    @options.setter
    def options(self, options: Any) -> None:
        self._options = normalize_options(options, self.name)

    def option_label(self, value: Any) -> Any:
        """Label for *value*, or ``None`` if it is not an option."""
        for option in self._options:
            if str(option["value"]) == str(value):
                return option["label"]
        return None


class Select(OptionsField):
    """Value chosen from a fixed option set."""

    settable: ClassVar[frozenset[str]] = OptionsField.settable | {"multiple", "size"}
    enumerated: ClassVar[bool] = True

    widget = "select"
    size: int | None = None

    def select_widget(self) -> str:
        """Rendering hint: radio buttons or checkboxes for short lists."""
        if self.multiple:
            return "checkbox" if len(self._options) <= 5 else "select"
        return "radio" if len(self._options) <= 5 else "select"

    def input_to_value(self) -> bool:
        if not super().input_to_value():
            return False
        if self.multiple and self._value is not None and not isinstance(self._value, list):
            self.value = [self._value]
        return True


class Multiple(Select):
    """Select that always takes (and yields) a list of values."""

    multiple = True
    size = 5


class IntRange(Select):
    """Select over the integers ``range_start..range_end`` inclusive."""

    settable: ClassVar[frozenset[str]] = Select.settable | {"label_format"}

    range_start = 1
    range_end = 10
    label_format: str = "%d"

    def __init__(self, name: str, **attrs: Any) -> None:
        super().__init__(name, **attrs)
        if not self._options:
            self.options = [
                {"value": n, "label": self.label_format % n}
                for n in range(self.range_start, self.range_end + 1)
            ]

    def validate(self) -> bool:
        raw = self.trimmed_input()
        # option membership is already checked, so only blanks can fail here
        try:
            if isinstance(raw, list):
                self.value = [int(item) for item in raw if has_nonblank(item)]
            else:
                self.value = int(raw)
        except (TypeError, ValueError):
            return self.add_error("Value must be an integer")
        return super().validate()


_TRUE_STRINGS = frozenset({"1", "true", "on", "yes", "y"})


class Boolean(Field):
    """True/false; the value is a ``bool``."""

    widget = "radio"

    def validate(self) -> bool:
        raw = self.trimmed_input()
        self.value = raw is True or str(raw).lower() in _TRUE_STRINGS
        return super().validate()

    def fif_value(self, value: Any) -> Any:
        if isinstance(value, bool):
            return "1" if value else "0"
        return value


class Checkbox(OptionsField):
    """A checkbox: submits ``checkbox_value`` when ticked, nothing otherwise.

    Options, when given, label the checkbox for rendering; they are not
    enforced on the submitted value.
    """

    settable: ClassVar[frozenset[str]] = OptionsField.settable | {"checkbox_value"}

    widget = "checkbox"
    checkbox_value: str = "1"

    def __init__(self, name: str, **attrs: Any) -> None:
        attrs.setdefault("input_without_param", "0")
        super().__init__(name, **attrs)
