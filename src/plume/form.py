"""Form — owns the field tree and drives validation.

Define a form by subclassing and declaring fields::

    class UserForm(Form):
        field_list = [
            ("name", {"type": "Text", "required": True}),
            ("age", {"type": "Integer", "range_start": 0, "range_end": 150}),
            ("address", "Compound"),
            ("address.city", "Text"),
        ]
        dependency = [["address.city", "zip"]]

        def validate_name(self, field):
            if field.value == "root":
                field.add_error("Reserved name")

Then process one request at a time::

    form = UserForm(item=user, model=model)
    if form.process(params=request_params):
        ...                      # form.item was created or updated
    else:
        render(form.fif(), form.error_fields())

``process`` distributes the normalized params over the top-level fields,
validates each involved field, runs ``cross_validate`` and the model's
validation, and persists ``values()`` through the model adapter only
when every field validated. Without params it only loads the item for
initial display.

Per-field hooks are looked up by name on the form (dots become
underscores): ``validate_<name>(field)``, ``options_<name>(field)`` and
``init_value_<name>(field, item)``.
"""

import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from plume._internal.multimap import MultiParams
from plume.config import FormConfig
from plume.errors import ConfigurationError
from plume.fields.base import Field, has_nonblank
from plume.fields.choice import Boolean
from plume.i18n import Messages, default_messages
from plume.model import ModelAdapter, read_field_value
from plume.params import collapse_params, flatten_multi, lookup_param, normalize_params
from plume.registry import FieldRegistry, default_registry
from plume.tree import FieldTree, TreeBuilder, iter_schema

logger = logging.getLogger("plume.form")

_UNSET: Any = object()
_FALSE_STRINGS = frozenset({"0", "false", ""})


class Form:
    """A declarative set of fields plus the validation state for one request."""

    # Declarative defaults; constructor keywords override them
    field_list: ClassVar[Any] = ()
    dependency: Any = ()
    config: FormConfig = FormConfig()
    model: ModelAdapter | None = None

    def __init__(
        self,
        item_or_id: Any = None,
        /,
        *,
        item: Any = None,
        item_id: Any = None,
        model: ModelAdapter | None = None,
        init_object: Any = None,
        params: Mapping[str, Any] | MultiParams | None = None,
        field_list: Any = None,
        dependency: Any = None,
        config: FormConfig | None = None,
        name: str | None = None,
        messages: Messages | None = None,
        registry: FieldRegistry | None = None,
        parent_field: Field | None = None,
        ctx: Any = None,
    ) -> None:
        if item_or_id is not None:
            if isinstance(item_or_id, (str, int)):
                item_id = item_or_id
            else:
                item = item_or_id

        config = config or type(self).config
        if name:
            config = config.replace(name=name)
        self.config = config
        self.name = config.form_name()
        self.messages = messages or default_messages(self.config.language)
        self.registry = (registry or default_registry()).with_namespaces(config.field_namespaces)
        self.parent_field = parent_field
        self.ctx = ctx

        self.item = item
        self.item_id = item_id
        self.model = model if model is not None else type(self).model
        self.init_object = init_object
        self.dependency = [list(group) for group in (dependency or type(self).dependency or ())]

        self.ran_validation = False
        self.validated = False
        self.processed = False
        self.num_errors = 0
        self.form_errors: list[str] = []
        self._forced_required: list[Field] = []
        self._raw_params: dict[str, Any] = {}
        self._params: dict[str, Any] = {}

        self.field_counter = 1
        self.fields: FieldTree = TreeBuilder(self.registry, form=self).build(self._schema(field_list))

        if params is not None:
            self.params = params
        self.init_from_object()
        self.load_options()

    def _schema(self, field_list: Any) -> list[tuple[str, Any]]:
        """Class-level declarations (base classes first), then *field_list*."""
        schema: list[tuple[str, Any]] = []
        for cls in reversed(type(self).__mro__):
            schema.extend(iter_schema(cls.__dict__.get("field_list")))
        schema.extend(iter_schema(field_list))
        return schema

    def __repr__(self) -> str:
        state = "validated" if self.validated else "processed" if self.processed else "new"
        return f"<{type(self).__name__} {self.name!r} {state} fields={self.fields.names()!r}>"

    # -- Params -----------------------------------------------------------------------

    @property
    def params(self) -> dict[str, Any]:
        """Submitted params: the flat keys plus their nested expansion."""
        return self._params

    @params.setter
    def params(self, params: Mapping[str, Any] | MultiParams) -> None:
        flat = flatten_multi(params)
        prefix = self.name if self.config.html_prefix else None
        self._raw_params = flat
        self._params = {**flat, **normalize_params(flat, prefix)}

    def set_param(self, name: str, value: Any) -> None:
        self.params = {**self._raw_params, name: value}

    def get_param(self, name: str, default: Any = None) -> Any:
        return self._params.get(name, default)

    def delete_param(self, name: str) -> None:
        raw = dict(self._raw_params)
        raw.pop(name, None)
        self.params = raw

    def clear_params(self) -> None:
        self._raw_params = {}
        self._params = {}

    def has_params(self) -> bool:
        return bool(self._params)

    # -- Field access -------------------------------------------------------------------

    def field(self, name: str, die: bool = False) -> Field | None:
        """Look a field up by dotted name (``"address.city"``).

        Returns ``None`` when not found, or raises ``FieldNotFoundError``
        if *die* is set. A leading ``"<form name>."`` is ignored.
        """
        if self.config.html_prefix and name.startswith(f"{self.name}."):
            name = name[len(self.name) + 1 :]
        return self.fields.lookup(name, die=die)

    def value(self, name: str) -> Any:
        field = self.field(name)
        return field.value if field is not None else None

    def sorted_fields(self) -> list[Field]:
        return self.fields.sorted()

    # -- Processing -----------------------------------------------------------------------

    def process(
        self,
        params: Mapping[str, Any] | MultiParams | None = None,
        *,
        item: Any = _UNSET,
        item_id: Any = _UNSET,
        model: Any = _UNSET,
        init_object: Any = _UNSET,
        ctx: Any = _UNSET,
    ) -> bool:
        """Validate *params* and, on success, persist through the model.

        Returns the ``validated`` flag. Calling ``process()`` again with no
        arguments re-runs validation of the same params; any argument
        starts over from a cleared form.
        """
        overrides = {
            key: value
            for key, value in (
                ("item", item),
                ("item_id", item_id),
                ("model", model),
                ("init_object", init_object),
                ("ctx", ctx),
            )
            if value is not _UNSET
        }
        logger.debug("process %s", self.name)
        if self.processed:
            if params is None and not overrides:
                self.clear_state()
            else:
                self.clear()

        self._setup_form(params, overrides)
        if self.has_params():
            self.validate_form()
        if self.validated:
            self.update_model()
        if self.config.verbose:
            self.dump_fields()
        self.processed = True
        return self.validated

    def _setup_form(self, params: Any, overrides: dict[str, Any]) -> None:
        for key, value in overrides.items():
            setattr(self, key, value)
        if params is not None:
            self.params = params
        self.clear_fif()
        if self.has_params():
            self.clear_values()
        else:
            self.init_from_object()
        self.load_options()

    def validate_form(self) -> bool:
        """Validate the involved fields, then the form as a whole."""
        params = self._params
        try:
            self._set_dependency()
            involved: list[Field] = []
            for field in self.fields:
                if field.full_name in params:
                    field.input = params[field.full_name]
                elif field.input_without_param is not None:
                    field.input = field.input_without_param
                else:
                    continue
                involved.append(field)
            if not involved:
                logger.debug("%s: no params address a field; not validating", self.name)
                return False

            for field in involved:
                if field.clear:
                    continue
                if field.validate_field():
                    self._run_validate_hooks(field)

            cross_ok = self.cross_validate(params)
            model_ok = self.validate_model()
        finally:
            self._clear_dependency()

        self.num_errors = sum(1 for field in self.fields.walk() if field.errors)
        self.ran_validation = True
        self.validated = (
            self.num_errors == 0 and not self.form_errors and cross_ok is not False and model_ok is not False
        )
        logger.debug("%s validated=%s errors=%d", self.name, self.validated, self.num_errors)
        return self.validated

    def _run_validate_hooks(self, field: Field) -> None:
        hook = self._hook("validate_", field, field.validate_method)
        if hook is not None and field.has_value:
            hook(field)
        if field.compound:
            for child in field.children:  # type: ignore[attr-defined]
                if not child.errors:
                    self._run_validate_hooks(child)

    def cross_validate(self, params: Mapping[str, Any]) -> bool:
        """Form-wide checks after every field validated. Override as needed.

        Every field's post-validation value is available. Record problems
        with ``field.add_error(...)`` or ``self.add_form_error(...)``.
        """
        return True

    def validate_model(self) -> bool:
        """Model-specific validation (e.g. ``unique`` fields)."""
        if self.model is None:
            return True
        return self.model.validate_model(self)

    def update_model(self) -> None:
        """Create or update the backing object from ``values()``."""
        if self.model is None:
            return
        self.item = self.model.persist(self.item, self.values())

    # -- Dependency groups ------------------------------------------------------------------

    def _set_dependency(self) -> None:
        params = self._params
        for group in self.dependency:
            if len(group) < 2:
                continue
            for name in group:
                value = lookup_param(params, name)
                if value is None:
                    continue
                field = self.field(name, die=True)
                # an unchecked Boolean counts as unset
                if isinstance(field, Boolean) and _is_false(value):
                    continue
                if not has_nonblank(value):
                    continue
                members = [self.field(member_name, die=True) for member_name in group]
                for member in members:
                    if member is not None and not member.required:
                        member.required = True
                        self._forced_required.append(member)
                logger.debug("%s: %r set, requiring %s", self.name, name, ", ".join(group))
                break

    def _clear_dependency(self) -> None:
        for field in self._forced_required:
            field.required = False
        self._forced_required = []

    # -- Loading from the item ----------------------------------------------------------------

    def init_from_object(self, node: Field | None = None, item: Any = None) -> None:
        """Populate ``value`` and ``init_value`` from the init object or item."""
        if node is None:
            if self.item_id is not None and self.item is None:
                self.item = self._build_item()
            item = self.init_object if self.init_object is not None else self.item
            if item is None:
                return
            logger.debug("init_from_object %s", self.name)
            tree = self.fields
        else:
            tree = node.children  # type: ignore[attr-defined]

        for field in tree:
            if field.parent is not node:
                continue
            if isinstance(item, Mapping) and field.accessor not in item:
                continue
            if field.compound:
                value = self._read_value(field, item)
                if value is not None:
                    self.init_from_object(field, value)
                field.init_value = value
                field.value = value
                continue
            custom = self._custom_init(field, item)
            if custom is NotImplemented:
                value = self._read_value(field, item)
                field.init_value = value
                field.value = value
            elif custom is not None:
                field.init_value = custom
                field.value = custom

    def _custom_init(self, field: Field, item: Any) -> Any:
        hook = self._hook("init_value_", field)
        if hook is not None:
            return hook(field, item)
        return field.init_from_item(item)

    def _read_value(self, field: Field, item: Any) -> Any:
        if self.model is not None:
            return self.model.read_field_value(item, field.accessor)
        return read_field_value(item, field.accessor)

    def _build_item(self) -> Any:
        if self.model is None:
            msg = f"Form {self.name!r} was given item_id={self.item_id!r} but no model adapter"
            raise ConfigurationError(msg)
        return self.model.load_object(self.item_id)

    def load_options(self, node: Field | None = None) -> None:
        """Refresh option lists from ``options_<name>`` hooks or the model."""
        logger.debug("load_options %s", node.full_name if node is not None else self.name)
        tree = self.fields if node is None else node.children  # type: ignore[attr-defined]
        for field in tree:
            if field.compound:
                self.load_options(field)
                continue
            if not field.has_options:
                continue
            options = None
            hook = self._hook("options_", field)
            if hook is not None:
                options = hook(field)
            elif self.model is not None:
                options = self.model.lookup_options(field)
            if options:
                field.options = options  # type: ignore[attr-defined]

    def _hook(self, prefix: str, field: Field, explicit: str | None = None) -> Any:
        name = explicit or prefix + field.full_name.replace(".", "_")
        if name in _RESERVED:
            return None
        hook = getattr(self, name, None)
        return hook if callable(hook) else None

    # -- Reading back ----------------------------------------------------------------------------

    def fif(self, prefix: str | None = None, node: FieldTree | None = None) -> dict[str, Any] | None:
        """Fill-in values keyed by (prefixed) field name, for redisplay.

        Password fields and empty fields are left out. Returns ``None``
        when no field contributed anything.
        """
        if node is None:
            node = self.fields
            prefix = f"{self.name}." if self.config.html_prefix else ""
        prefix = prefix or ""
        params: dict[str, Any] = {}
        for field in node:
            if field.password:
                continue
            if field.compound:
                nested = self.fif(f"{prefix}{field.name}.", field.children)  # type: ignore[attr-defined]
                if nested:
                    params.update(nested)
                continue
            fif = field.fif
            if _is_empty(fif):
                continue
            if isinstance(fif, Mapping):
                params.update(collapse_params(fif, prefix + field.name))
            else:
                params[prefix + field.name] = fif
        return params or None

    def values(self) -> dict[str, Any]:
        """Validated values keyed by accessor, as they would be persisted."""
        values: dict[str, Any] = {}
        for field in self.fields:
            if field.noupdate:
                continue
            if not field.has_value and not field.clear:
                continue
            if field.parent is not None:
                continue
            values[field.accessor] = None if field.clear else field.value
        return values

    # -- Errors ------------------------------------------------------------------------------------

    def add_form_error(self, message: str, *args: Any) -> None:
        """Record an error against the form as a whole."""
        self.form_errors.append(self.messages.format(message, *args))

    def has_errors(self) -> bool:
        return bool(self.form_errors) or any(field.errors for field in self.fields.walk())

    def error_fields(self) -> list[Field]:
        """Fields with errors, in display order."""
        return sorted((f for f in self.fields.walk() if f.errors), key=lambda f: f.order)

    def error_field_names(self) -> list[str]:
        return [field.full_name for field in self.error_fields()]

    def errors(self) -> list[str]:
        """Every error message: field errors in display order, then form errors."""
        messages = [message for field in self.error_fields() for message in field.errors]
        return messages + self.form_errors

    # -- Clearing ------------------------------------------------------------------------------------

    def clear(self) -> None:
        """Back to a pristine state: no params, errors, values or fill-in."""
        logger.debug("clear %s", self.name)
        self.clear_state()
        self.clear_params()
        self.ctx = None
        self.processed = False

    def clear_state(self) -> None:
        self.validated = False
        self.ran_validation = False
        self.num_errors = 0
        self.form_errors = []
        for field in self.fields.walk():
            field.clear_errors()
            field.clear_fif()
            field.clear_value()
            field.clear_input()

    def clear_values(self) -> None:
        for field in self.fields.walk():
            field.clear_value()

    def clear_fif(self) -> None:
        for field in self.fields.walk():
            field.clear_fif()

    def dump_fields(self) -> None:
        logger.debug("------- fields for %s -------", self.name)
        for field in self.fields.walk():
            field.dump()


_RESERVED = frozenset(name for name in dir(Form) if not name.startswith("__"))


def _is_false(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return all(_is_false(item) for item in value)
    return value is False or value == 0 or str(value).strip().lower() in _FALSE_STRINGS


def _is_empty(fif: Any) -> bool:
    return fif is None or fif == "" or (isinstance(fif, (list, tuple, Mapping)) and not fif)
