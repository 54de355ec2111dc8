"""Field — the atomic validatable unit.

A field holds the raw submitted ``input``, the validated ``value``, the
``init_value`` loaded from a backing object, its own ``errors`` and a
fill-in (``fif``) representation for redisplaying the form.

Validation follows a fixed pipeline (``validate_field``):

1. no input -> required error (if required) or trivial success
2. multiple values rejected unless the field takes them
3. submitted values checked against the option set (enumerated fields)
4. the type-specific ``validate`` hook, which runs the ``apply`` pipeline
5. numeric range check (``range_start`` / ``range_end``)
6. ``input_to_value`` copies (or formats) the input into ``value``

Bad input never raises. It becomes an error message and a falsy result.

Defaults are plain class attributes, so field types override them by
redeclaring::

    class Password(Text):
        password = True
        min_length = 6
"""

import datetime
import logging
import re
import weakref
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from plume.actions import Action, Transform, build_actions
from plume.errors import ConfigurationError
from plume.i18n import Messages, default_messages

if TYPE_CHECKING:
    from plume.fields.compound import Compound
    from plume.form import Form

logger = logging.getLogger("plume.fields")

# printf conversions that need a number rather than a string
_NUMERIC_FORMAT_RE = re.compile(r"%[-+ #0]*\d*(?:\.\d+)?[diouxXeEfFgG]")


class Field:
    """A named, typed, validatable form field."""

    # Attributes that may be passed as keyword arguments / schema entries
    settable: ClassVar[frozenset[str]] = frozenset({
        "accessor",
        "apply",
        "clear",
        "css_class",
        "disabled",
        "id",
        "input_without_param",
        "label",
        "noupdate",
        "order",
        "password",
        "range_end",
        "range_start",
        "readonly",
        "required",
        "required_message",
        "style",
        "title",
        "trim",
        "unique",
        "unique_message",
        "validate_method",
        "value_format",
        "widget",
        "writeonly",
    })

    # Tree node kind: leaves are False, fields owning children are True
    compound: ClassVar[bool] = False
    # True for field types that declare an enumerated option set
    enumerated: ClassVar[bool] = False
    # True for field types that carry an option list (enumerated or not)
    has_options: ClassVar[bool] = False
    # True for field types that accept a list of submitted values
    multiple: bool = False

    required: bool = False
    required_message: str = "This field is required"
    range_start: int | None = None
    range_end: int | None = None
    value_format: str | None = None
    password: bool = False
    writeonly: bool = False
    noupdate: bool = False
    clear: bool = False
    disabled: bool = False
    readonly: bool = False
    unique: bool = False
    unique_message: str = "Duplicate value for [_1]"
    trim: bool = True
    widget: str = "text"
    css_class: str | None = None
    title: str | None = None
    style: str | None = None
    order: int = 1
    validate_method: str | None = None
    apply: tuple[Any, ...] = ()

    def __init__(self, name: str, **attrs: Any) -> None:
        if not name or not isinstance(name, str):
            msg = f"Field name must be a non-empty string, got {name!r}"
            raise ConfigurationError(msg)
        self.name = name
        self.type = type(self).__name__
        self._label: str | None = None
        self._accessor: str | None = None
        self._id: str | None = None
        self._input_without_param: Any = None
        self._form_ref: weakref.ReferenceType["Form"] | None = None
        self._parent_ref: weakref.ReferenceType["Compound"] | None = None

        self._input: Any = None
        self._value: Any = None
        self._fif: Any = None
        self.init_value: Any = None
        self.errors: list[str] = []

        for key, value in attrs.items():
            if key not in self.settable:
                msg = f"Unknown attribute {key!r} for field {name!r} ({type(self).__name__})"
                raise ConfigurationError(msg)
            setattr(self, key, value)

        # class-level pipeline first, then per-instance declarations
        self.actions: tuple[Action, ...] = build_actions(self.default_actions()) + build_actions(
            attrs.get("apply")
        )

    def default_actions(self) -> tuple[Any, ...]:
        """Apply entries every instance of this field type runs, base classes first."""
        specs: list[Any] = []
        for cls in reversed(type(self).__mro__):
            specs.extend(cls.__dict__.get("apply", ()))
        return tuple(specs)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.full_name!r}>"

    # -- Naming ---------------------------------------------------------------

    @property
    def label(self) -> str:
        return self._label if self._label is not None else self.name

    @label.setter
    def label(self, value: str) -> None:
        self._label = value

    @property
    def accessor(self) -> str:
        """Attribute / key used to read and persist this field's value."""
        return self._accessor or self.name

    @accessor.setter
    def accessor(self, value: str) -> None:
        self._accessor = value

    @property
    def full_name(self) -> str:
        """Dotted name through containing compound fields: ``birthdate.year``."""
        parent = self.parent
        if parent is None:
            return self.name
        return f"{parent.full_name}.{self.name}"

    @property
    def html_name(self) -> str:
        """The submitted parameter name, form-prefixed when ``html_prefix``."""
        form = self.form
        if form is not None and form.config.html_prefix:
            return f"{form.name}.{self.full_name}"
        return self.full_name

    @property
    def id(self) -> str:
        if self._id is not None:
            return self._id
        form = self.form
        prefix = form.name if form is not None else "fld-"
        return prefix + self.full_name

    @id.setter
    def id(self, value: str) -> None:
        self._id = value

    def required_text(self) -> str:
        return "required" if self.required else "optional"

    # -- Back-references (non-owning) -------------------------------------------

    @property
    def form(self) -> "Form | None":
        return self._form_ref() if self._form_ref is not None else None

    @form.setter
    def form(self, form: "Form | None") -> None:
        self._form_ref = weakref.ref(form) if form is not None else None

    @property
    def parent(self) -> "Compound | None":
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, parent: "Compound | None") -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def messages(self) -> Messages:
        form = self.form
        return form.messages if form is not None else default_messages()

    # -- Input / value / fill-in --------------------------------------------------

    @property
    def input(self) -> Any:
        return self._input

    @input.setter
    def input(self, raw: Any) -> None:
        self._input = raw
        self._fif = raw

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        self._value = value
        if not self.writeonly:
            self._fif = self.fif_value(value)

    @property
    def has_value(self) -> bool:
        return self._value is not None

    @property
    def fif(self) -> Any:
        """Fill-in representation; always withheld for password fields."""
        if self.password:
            return None
        return self._fif

    @fif.setter
    def fif(self, value: Any) -> None:
        self._fif = value

    def fif_value(self, value: Any) -> Any:
        """Turn an internal value into its fill-in representation."""
        return value

    @property
    def input_without_param(self) -> Any:
        """Input used when the field's name is absent from the params."""
        return self._input_without_param

    @input_without_param.setter
    def input_without_param(self, value: Any) -> None:
        self._input_without_param = value

    def has_input(self) -> bool:
        """True if the input contains at least one non-blank value."""
        return has_nonblank(self._input)

    def trimmed_input(self) -> Any:
        """The input with surrounding whitespace stripped (when ``trim``)."""
        raw = self._input
        if not self.trim:
            return raw
        if isinstance(raw, (list, tuple)):
            return [item.strip() if isinstance(item, str) else item for item in raw]
        return raw.strip() if isinstance(raw, str) else raw

    # -- State reset ------------------------------------------------------------------

    def clear_errors(self) -> None:
        self.errors = []

    def clear_value(self) -> None:
        """Forget the value without touching the fill-in representation."""
        self._value = None

    def clear_input(self) -> None:
        self._input = None

    def clear_fif(self) -> None:
        self._fif = None

    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def num_errors(self) -> int:
        return len(self.errors)

    # -- Errors ---------------------------------------------------------------------

    def add_error(self, message: str, *args: Any) -> bool:
        """Format *message* through the form's ``Messages`` and record it.

        Errors raised inside a sub-form are attached to the field that
        contains the sub-form. Returns ``False`` so validators can write
        ``return self.add_error(...)``.
        """
        target: Field = self
        form = self.form
        if form is not None and form.parent_field is not None:
            target = form.parent_field
        target.errors.append(self.messages.format(message, *args))
        return False

    def _add_message(self, message: str | tuple[Any, ...]) -> bool:
        if isinstance(message, tuple):
            return self.add_error(*message)
        return self.add_error(message)

    # -- Validation pipeline --------------------------------------------------------

    def validate_field(self) -> bool:
        """Run the full validation pipeline. Resets errors and value first."""
        self.clear_errors()
        self.clear_value()

        if not self.has_input():
            if self.required:
                self.add_error(self.required_message)
                return False
            return True

        if not self.test_multiple():
            return False
        if not self.test_options():
            return False
        if (
            not self.validate()
            or self.errors
            or not self.test_ranges()
            or not self.input_to_value()
        ):
            # a rejected value is never kept; redisplay shows what was typed
            self.clear_value()
            self._fif = self._input
            return False
        return True

    def test_multiple(self) -> bool:
        raw = self._input
        if isinstance(raw, Mapping) or (isinstance(raw, (list, tuple)) and not self.multiple):
            return self.add_error("This field does not take multiple values")
        return True

    def test_options(self) -> bool:
        if not self.enumerated:
            return True
        allowed = {str(option["value"]) for option in self.options}
        submitted = self.trimmed_input()
        for item in submitted if isinstance(submitted, list) else [submitted]:
            if item is None:
                continue
            if str(item) not in allowed:
                return self.add_error("'[_1]' is not a valid value", item)
        return True

    def validate(self) -> bool:
        """Type-specific validation hook. Runs the apply pipeline."""
        return self.apply_actions()

    def apply_actions(self) -> bool:
        """Run the apply pipeline in order; the first failure stops it."""
        if not self.actions:
            return True
        current = self._value if self._value is not None else self.trimmed_input()
        transformed = self._value is not None
        for action in self.actions:
            outcome = action.run(current)
            if not outcome.ok:
                return self._add_message(outcome.message or "Wrong value")
            current = outcome.value
            transformed = transformed or isinstance(action, Transform)
        if transformed:
            self.value = current
        return True

    def test_ranges(self) -> bool:
        if self.enumerated or self.errors:
            return True
        low, high = self.range_start, self.range_end
        if low is None and high is None:
            return True

        subject = self._value if self._value is not None else self.trimmed_input()
        number = _as_number(subject)
        if number is None:
            return self.add_error("Value must be a number")

        if low is not None and high is not None:
            if low <= number <= high:
                return True
            return self.add_error("value must be between [_1] and [_2]", low, high)
        if low is not None:
            if number >= low:
                return True
            return self.add_error("value must be greater than or equal to [_1]", low)
        if number <= high:
            return True
        return self.add_error("value must be less than or equal to [_1]", high)

    def input_to_value(self) -> bool:
        """Copy the input into ``value`` unless ``validate`` already set it.

        The input is copied verbatim; ``trim`` only affects the checks. With
        a ``value_format`` the input is formatted through it, as a number
        when the template holds a numeric conversion.
        """
        if self._value is not None:
            return True
        if not self.value_format:
            self.value = self._input
            return True
        raw = self.trimmed_input()
        if _NUMERIC_FORMAT_RE.search(self.value_format):
            raw = _as_number(raw)
        try:
            self.value = self.value_format % (raw,)
        except (TypeError, ValueError):
            return self.add_error("Value cannot be formatted")
        return True

    # -- Loading from a backing object ------------------------------------------------

    def init_from_item(self, item: Any) -> Any:
        """Custom extraction hook. Return ``NotImplemented`` to use the accessor."""
        return NotImplemented

    def value_changed(self) -> bool:
        """True if ``value`` differs from ``init_value`` (string compare)."""
        return _canonical(self.init_value) != _canonical(self._value)

    # -- Debugging -----------------------------------------------------------------------

    def dump(self) -> None:
        logger.debug(
            "field %s: type=%s required=%s password=%s value=%r init_value=%r input=%r",
            self.full_name,
            self.type,
            self.required,
            self.password,
            self._value,
            self.init_value,
            self._input,
        )
        if self.has_options:
            logger.debug("field %s: options=%r", self.full_name, self.options)


def has_nonblank(raw: Any) -> bool:
    """True if *raw* (scalar, list or mapping, nested) holds a non-blank value."""
    if isinstance(raw, Mapping):
        return any(has_nonblank(item) for item in raw.values())
    if isinstance(raw, (list, tuple)):
        return any(has_nonblank(item) for item in raw)
    return raw is not None and bool(str(raw).strip())


def _as_number(subject: Any) -> int | float | None:
    if isinstance(subject, bool):
        return int(subject)
    if isinstance(subject, (int, float)):
        return subject
    try:
        return int(str(subject))
    except ValueError:
        pass
    try:
        return float(str(subject))
    except ValueError:
        return None


def _canonical(value: Any) -> str:
    if value is None:
        value = ""
    items = value if isinstance(value, (list, tuple)) else [value]
    rendered = []
    for item in items:
        if isinstance(item, (datetime.date, datetime.time)):
            rendered.append(item.isoformat())
        else:
            rendered.append(str(item))
    return "|".join(sorted(rendered))
