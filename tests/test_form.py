"""Tests for plume.form — the validation orchestrator."""

import logging
import weakref

import pytest

from plume.config import FormConfig
from plume.errors import ConfigurationError, FieldNotFoundError
from plume.form import Form
from plume.i18n import Messages, register_catalog


class PersonForm(Form):
    field_list = [
        ("name", {"type": "Text", "required": True}),
        ("age", {"type": "Integer", "range_start": 0, "range_end": 150}),
    ]


class LoginForm(Form):
    field_list = [("user", "Text"), ("pw", "Password")]


class ProfileForm(Form):
    field_list = [
        ("name", "Text"),
        ("address", "Compound"),
        ("address.street", {"type": "Text", "required": True}),
        ("address.city", "Text"),
    ]


class AddressForm(Form):
    field_list = [("street", {"type": "Text", "required": True}), ("city", "Text")]


class PersonWithAddressForm(Form):
    field_list = [
        ("name", "Text"),
        ("address", {"type": "SubForm", "form_class": AddressForm}),
    ]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_fields_built_from_class_declaration(self) -> None:
        form = PersonForm()
        assert form.fields.names() == ["name", "age"]
        assert form.field("name").form is form

    def test_field_list_argument_extends(self) -> None:
        form = PersonForm(field_list=[("email", "Email")])
        assert form.fields.names() == ["name", "age", "email"]

    def test_subclass_inherits_and_overrides(self) -> None:
        class EmployeeForm(PersonForm):
            field_list = [("age", {"type": "Integer", "range_start": 16}), ("title", "Text")]

        form = EmployeeForm()
        assert form.fields.names() == ["name", "age", "title"]
        assert form.field("age").range_start == 16

    def test_generated_name(self) -> None:
        assert PersonForm().name.startswith("form")

    def test_configured_name(self) -> None:
        assert PersonForm(name="person").name == "person"
        assert PersonForm(config=FormConfig(name="p")).name == "p"

    def test_unknown_field_type_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError):
            Form(field_list=[("x", "NoSuchType")])

    def test_weakref_able(self) -> None:
        form = PersonForm()
        assert weakref.ref(form)() is form

    def test_messages_injected(self) -> None:
        messages = Messages({"This field is required": "Obligatorisk"}, language="no")
        form = PersonForm(messages=messages)
        form.process(params={"name": ""})
        assert form.field("name").errors == ["Obligatorisk"]

    def test_language_selects_catalog(self) -> None:
        register_catalog("x-nn", {"This field is required": "Feltet er påkravd"})
        form = PersonForm(config=FormConfig(language="x-nn"))
        assert form.messages.language == "x-nn"
        form.process(params={"name": ""})
        assert form.field("name").errors == ["Feltet er påkravd"]

    def test_repr(self) -> None:
        assert "PersonForm" in repr(PersonForm(name="p"))


# ---------------------------------------------------------------------------
# process()
# ---------------------------------------------------------------------------


class TestProcess:
    def test_invalid_submission(self) -> None:
        form = PersonForm()
        assert form.process(params={"name": "", "age": "200"}) is False
        assert form.validated is False
        assert form.ran_validation is True
        assert form.field("name").errors == ["This field is required"]
        assert form.field("age").errors == ["value must be between 0 and 150"]
        assert form.num_errors == 2

    def test_valid_submission(self) -> None:
        form = PersonForm()
        assert form.process(params={"name": "Alice", "age": "30"}) is True
        assert form.values() == {"name": "Alice", "age": 30}

    def test_no_params_is_initial_display(self) -> None:
        form = PersonForm()
        assert form.process() is False
        assert form.ran_validation is False
        assert form.processed is True
        assert form.errors() == []

    def test_params_addressing_no_field(self) -> None:
        form = PersonForm()
        assert form.process(params={"unrelated": "x"}) is False
        assert form.ran_validation is False
        assert not form.has_errors()

    def test_absent_fields_are_not_validated(self) -> None:
        form = PersonForm()
        assert form.process(params={"age": "30"}) is True
        assert form.field("name").errors == []
        assert form.values() == {"age": 30}

    def test_multi_value_params(self) -> None:
        class MultiDict:
            def __init__(self, data: dict[str, list[str]]) -> None:
                self._data = data

            def __iter__(self):
                return iter(self._data)

            def getlist(self, key: str) -> list[str]:
                return self._data[key]

        form = PersonForm()
        assert form.process(MultiDict({"name": ["Alice"], "age": ["30"]})) is True
        assert form.values() == {"name": "Alice", "age": 30}

    def test_reprocess_with_new_params(self) -> None:
        form = PersonForm()
        form.process(params={"name": "", "age": "200"})
        assert form.process(params={"name": "Bob", "age": "40"}) is True
        assert form.errors() == []
        assert form.values() == {"name": "Bob", "age": 40}

    def test_reprocess_without_arguments(self) -> None:
        first = PersonForm()
        first.process(params={"name": "", "age": "200"})
        first.process()

        second = PersonForm()
        second.process(params={"name": "", "age": "200"})
        second.clear()
        second.process(params={"name": "", "age": "200"})

        assert first.validated == second.validated
        assert first.errors() == second.errors()

    def test_clear(self) -> None:
        form = PersonForm()
        form.process(params={"name": "", "age": "abc"})
        form.clear()
        assert not form.has_params()
        assert not form.has_errors()
        assert form.fif() is None
        assert form.processed is False

    def test_verbose_dumps_fields(self, caplog) -> None:
        form = PersonForm(config=FormConfig(verbose=True))
        with caplog.at_level(logging.DEBUG, logger="plume"):
            form.process(params={"name": "Ann"})
        assert "field name" in caplog.text


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TestHooks:
    def test_validate_hook(self) -> None:
        class NameForm(Form):
            field_list = [("name", {"type": "Text", "required": True})]

            def validate_name(self, field):
                if field.value == "root":
                    field.add_error("Reserved name")

        form = NameForm()
        assert form.process(params={"name": "root"}) is False
        assert form.errors() == ["Reserved name"]
        assert form.process(params={"name": "ann"}) is True

    def test_validate_hook_skipped_on_field_error(self) -> None:
        calls = []

        class NameForm(Form):
            field_list = [("name", {"type": "Text", "required": True})]

            def validate_name(self, field):
                calls.append(field.value)

        NameForm().process(params={"name": ""})
        assert calls == []

    def test_validate_method_attribute(self) -> None:
        class CodeForm(Form):
            field_list = [("code", {"type": "Text", "validate_method": "check_code"})]

            def check_code(self, field):
                field.add_error("Bad code [_1]", field.value)

        form = CodeForm()
        form.process(params={"code": "x1"})
        assert form.field("code").errors == ["Bad code x1"]

    def test_nested_validate_hook(self) -> None:
        class CityForm(ProfileForm):
            def validate_address_city(self, field):
                if field.value != "Oslo":
                    field.add_error("Oslo only")

        form = CityForm()
        assert form.process(params={"address.street": "Main", "address.city": "Bergen"}) is False
        assert form.error_field_names() == ["address.city"]

    def test_cross_validate(self) -> None:
        class SpanForm(Form):
            field_list = [("low", "Integer"), ("high", "Integer")]

            def cross_validate(self, params):
                if self.value("low") > self.value("high"):
                    self.field("high").add_error("high must exceed low")
                return True

        form = SpanForm()
        assert form.process(params={"low": "5", "high": "2"}) is False
        assert form.error_field_names() == ["high"]

    def test_form_errors(self) -> None:
        class ConfirmForm(Form):
            field_list = [("pw", "Text"), ("pw2", "Text")]

            def cross_validate(self, params):
                if self.value("pw") != self.value("pw2"):
                    self.add_form_error("[_1] and [_2] do not match", "pw", "pw2")
                return True

        form = ConfirmForm()
        assert form.process(params={"pw": "a", "pw2": "b"}) is False
        assert form.form_errors == ["pw and pw2 do not match"]
        assert form.errors() == ["pw and pw2 do not match"]
        assert form.has_errors()

    def test_cross_validate_failure_result(self) -> None:
        class StrictForm(PersonForm):
            def cross_validate(self, params):
                return False

        assert StrictForm().process(params={"name": "Ann"}) is False

    def test_hook_names_cannot_shadow_form_methods(self) -> None:
        form = Form(field_list=[("form", "Text")])
        assert form.process(params={"form": "x"}) is True

    def test_options_hook(self) -> None:
        class SizeForm(Form):
            field_list = [("size", "Select")]

            def options_size(self, field):
                return [("s", "Small"), ("l", "Large")]

        form = SizeForm()
        assert [o["value"] for o in form.field("size").options] == ["s", "l"]
        assert form.process(params={"size": "m"}) is False
        assert form.field("size").errors == ["'m' is not a valid value"]
        assert form.field("size").value is None

    def test_options_hook_on_checkbox(self) -> None:
        class UserForm(Form):
            field_list = [("opt_in", "Checkbox")]

            def options_opt_in(self, field):
                return [1, "Send me email", 0, "No thanks"]

        form = UserForm()
        assert form.field("opt_in").options == [
            {"value": 1, "label": "Send me email"},
            {"value": 0, "label": "No thanks"},
        ]
        assert form.process(params={"opt_in": "1"}) is True
        assert form.values() == {"opt_in": "1"}


# ---------------------------------------------------------------------------
# Loading from an item
# ---------------------------------------------------------------------------


class TestInitFromObject:
    def test_mapping_item(self) -> None:
        form = PersonForm(item={"name": "Bob", "age": 40})
        assert form.field("name").value == "Bob"
        assert form.field("name").init_value == "Bob"
        assert form.fif() == {"name": "Bob", "age": 40}

    def test_mapping_missing_key_skipped(self) -> None:
        form = PersonForm(item={"name": "Bob"})
        assert form.field("age").value is None

    def test_object_item(self) -> None:
        class Person:
            name = "Bob"

            def age(self):
                return 40

        form = PersonForm(Person())
        assert form.value("name") == "Bob"
        assert form.value("age") == 40

    def test_init_object_takes_precedence(self) -> None:
        form = PersonForm(item={"name": "Bob"}, init_object={"name": "Template"})
        assert form.value("name") == "Template"

    def test_init_value_hook(self) -> None:
        class ShoutForm(PersonForm):
            def init_value_name(self, field, item):
                return item["name"].upper()

        assert ShoutForm(item={"name": "bob"}).value("name") == "BOB"

    def test_compound_from_nested_item(self) -> None:
        form = ProfileForm(item={"name": "Ann", "address": {"street": "Main", "city": "Oslo"}})
        assert form.value("address.city") == "Oslo"
        assert form.fif() == {"name": "Ann", "address.street": "Main", "address.city": "Oslo"}

    def test_params_skip_item_values(self) -> None:
        form = PersonForm(item={"name": "Bob", "age": 40})
        form.process(params={"name": "Rob"})
        assert form.field("age").value is None

    def test_item_id_without_model(self) -> None:
        with pytest.raises(ConfigurationError, match="no model adapter"):
            PersonForm(5)


# ---------------------------------------------------------------------------
# Reading back: fif / values
# ---------------------------------------------------------------------------


class TestFif:
    def test_password_never_filled_in(self) -> None:
        form = LoginForm()
        form.process(params={"user": "bob", "pw": "secret"})
        assert form.fif() == {"user": "bob"}

    def test_failed_input_redisplayed(self) -> None:
        form = PersonForm()
        form.process(params={"name": "", "age": "abc"})
        assert form.fif() == {"age": "abc"}

    def test_surrounding_whitespace_round_trips(self) -> None:
        form = PersonForm()
        assert form.process(params={"name": " Alice "}) is True
        assert form.fif() == {"name": " Alice "}
        assert form.values() == {"name": " Alice "}

    def test_empty_is_none(self) -> None:
        assert PersonForm().fif() is None

    def test_compound(self) -> None:
        form = ProfileForm()
        form.process(params={"name": "Ann", "address.street": "Main", "address.city": "Oslo"})
        assert form.fif() == {"name": "Ann", "address.street": "Main", "address.city": "Oslo"}

    def test_html_prefix(self) -> None:
        form = PersonForm(config=FormConfig(name="person", html_prefix=True))
        assert form.process(params={"person.name": "Ann", "person.age": "3"}) is True
        assert form.fif() == {"person.name": "Ann", "person.age": 3}
        assert form.field("person.name") is form.field("name")
        assert form.field("name").html_name == "person.name"


class TestValues:
    def test_compound_value_is_nested(self) -> None:
        form = ProfileForm()
        assert form.process(params={"name": "Ann", "address.street": "Main", "address.city": "Oslo"})
        assert form.values() == {"name": "Ann", "address": {"street": "Main", "city": "Oslo"}}

    def test_noupdate_skipped(self) -> None:
        form = Form(field_list=[("a", "Text"), ("b", {"type": "Text", "noupdate": True})])
        form.process(params={"a": "1", "b": "2"})
        assert form.values() == {"a": "1"}

    def test_clear_emits_none(self) -> None:
        form = Form(field_list=[("a", "Text"), ("b", {"type": "Text", "clear": True})])
        form.process(params={"a": "1", "b": "2"})
        assert form.values() == {"a": "1", "b": None}

    def test_accessor(self) -> None:
        form = Form(field_list=[("full_name", {"type": "Text", "accessor": "name"})])
        form.process(params={"full_name": "Ann"})
        assert form.values() == {"name": "Ann"}

    def test_checkbox_without_param(self) -> None:
        form = Form(field_list=[("name", "Text"), ("agree", "Checkbox")])
        form.process(params={"name": "Ann"})
        assert form.values() == {"name": "Ann", "agree": "0"}


# ---------------------------------------------------------------------------
# Errors and params helpers
# ---------------------------------------------------------------------------


class TestErrors:
    def test_error_fields_in_display_order(self) -> None:
        form = ProfileForm(field_list=[("zip", {"type": "Integer"})])
        form.process(params={"name": "Ann", "address.city": "Oslo", "address.street": "", "zip": "x"})
        assert form.error_field_names() == ["address.street", "zip"]
        assert form.errors() == ["This field is required", "Value must be an integer"]

    def test_field_lookup(self) -> None:
        form = ProfileForm()
        assert form.field("address.street").full_name == "address.street"
        assert form.field("nope") is None
        with pytest.raises(FieldNotFoundError):
            form.field("nope", die=True)

    def test_sorted_fields(self) -> None:
        form = Form(field_list=[("a", {"order": 9}), ("b", "Text")])
        assert [f.name for f in form.sorted_fields()] == ["b", "a"]


class TestParams:
    def test_param_helpers(self) -> None:
        form = PersonForm()
        form.set_param("address.city", "Oslo")
        assert form.get_param("address.city") == "Oslo"
        assert form.get_param("address") == {"city": "Oslo"}
        form.delete_param("address.city")
        assert not form.has_params()

    def test_clear_params(self) -> None:
        form = PersonForm(params={"name": "x"})
        assert form.has_params()
        form.clear_params()
        assert form.params == {}


# ---------------------------------------------------------------------------
# SubForm
# ---------------------------------------------------------------------------


class TestSubForm:
    def test_valid(self) -> None:
        form = PersonWithAddressForm()
        params = {"name": "Ann", "address.street": "Main", "address.city": "Oslo"}
        assert form.process(params=params) is True
        assert form.values() == {"name": "Ann", "address": {"street": "Main", "city": "Oslo"}}
        assert form.fif() == params

    def test_nested_errors_attach_to_subform_field(self) -> None:
        form = PersonWithAddressForm()
        assert form.process(params={"name": "Ann", "address.street": "", "address.city": "Oslo"}) is False
        assert form.field("address").errors == ["This field is required"]
        assert form.error_field_names() == ["address"]

    def test_nested_form_shares_messages(self) -> None:
        messages = Messages({"This field is required": "Obligatorisk"})
        form = PersonWithAddressForm(messages=messages)
        form.process(params={"address.street": "", "address.city": "Oslo"})
        assert form.field("address").errors == ["Obligatorisk"]

    def test_blank_group_is_no_input(self) -> None:
        form = PersonWithAddressForm()
        assert form.process(params={"name": "Ann", "address.street": ""}) is True
        assert "address" not in form.values()

    def test_form_class_required(self) -> None:
        with pytest.raises(ConfigurationError, match="form_class"):
            Form(field_list=[("address", "SubForm")])
