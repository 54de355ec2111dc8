"""SubForm — a field validated by a complete nested form.

The nested form's ``parent_field`` is this field, so every error its
fields raise is attached here rather than to the nested field::

    class AddressForm(Form):
        field_list = [("street", {"required": True}), ("city", "Text")]

    class PersonForm(Form):
        field_list = [("address", {"type": "SubForm", "form_class": AddressForm})]
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from plume.errors import ConfigurationError
from plume.fields.base import Field

if TYPE_CHECKING:
    from plume.form import Form


class SubForm(Field):
    settable: ClassVar[frozenset[str]] = Field.settable | {"form_class"}

    widget = "compound"
    form_class: "type[Form] | None" = None

    def __init__(self, name: str, **attrs: Any) -> None:
        super().__init__(name, **attrs)
        if self.form_class is None:
            msg = f"SubForm field {name!r} needs a form_class"
            raise ConfigurationError(msg)
        self._sub_form: Form | None = None

    @property
    def sub_form(self) -> "Form":
        """The nested form, built on first use."""
        if self._sub_form is None:
            form = self.form
            self._sub_form = self.form_class(  # type: ignore[misc]
                parent_field=self,
                messages=form.messages if form is not None else None,
                name=self.name,
            )
        return self._sub_form

    def test_multiple(self) -> bool:
        if not isinstance(self._input, Mapping):
            return self.add_error("This field expects a group of values")
        return True

    def validate(self) -> bool:
        sub_form = self.sub_form
        sub_form.process(params=self._input)
        if self.errors or sub_form.form_errors:
            self.errors.extend(sub_form.form_errors)
            return False
        self.value = sub_form.values() or {}
        return super().validate()
