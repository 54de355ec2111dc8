"""Tests for plume.registry — type tags to field classes."""

import pytest

from plume.errors import ConfigurationError, UnknownFieldTypeError
from plume.fields.numeric import Integer
from plume.fields.text import Email, Text
from plume.registry import BUILTIN_FIELDS, FieldRegistry, default_registry


class Slug(Text):
    pass


class MetaText(Text):
    pass


class TestBuiltins:
    def test_builtin_table(self) -> None:
        assert BUILTIN_FIELDS["Text"] is Text
        assert {"Compound", "DateTime", "SubForm", "Password", "IntRange"} <= set(BUILTIN_FIELDS)

    def test_default_registry_singleton(self) -> None:
        assert default_registry() is default_registry()

    def test_resolve_builtin(self) -> None:
        assert FieldRegistry().resolve("Integer") is Integer

    def test_unknown(self) -> None:
        with pytest.raises(UnknownFieldTypeError) as exc_info:
            FieldRegistry().resolve("Nope")
        assert exc_info.value.tag == "Nope"
        assert "builtins" in exc_info.value.searched

    def test_empty_tag(self) -> None:
        with pytest.raises(ConfigurationError):
            FieldRegistry().resolve("")

    def test_contains(self) -> None:
        registry = FieldRegistry()
        assert "Text" in registry
        assert "Nope" not in registry


class TestNamespaces:
    def test_mapping_namespace(self) -> None:
        registry = FieldRegistry(namespaces=[{"Slug": Slug}])
        assert registry.resolve("Slug") is Slug
        assert registry.resolve("+Slug") is Slug

    def test_builtins_win_for_plain_tags(self) -> None:
        registry = FieldRegistry(namespaces=[{"Text": MetaText}])
        assert registry.resolve("Text") is Text
        assert registry.resolve("+Text") is MetaText

    def test_sigil_skips_builtins(self) -> None:
        with pytest.raises(UnknownFieldTypeError):
            FieldRegistry().resolve("+Text")

    def test_module_namespace(self) -> None:
        registry = FieldRegistry(namespaces=["plume.fields.numeric"])
        assert registry.resolve("+Integer") is Integer

    def test_namespace_order(self) -> None:
        registry = FieldRegistry(namespaces=[{"Slug": Slug}, {"Slug": MetaText}])
        assert registry.resolve("+Slug") is Slug

    def test_unimportable_namespace(self) -> None:
        registry = FieldRegistry(namespaces=["no_such_module_for_plume"])
        with pytest.raises(ConfigurationError, match="cannot be imported"):
            registry.resolve("Nope")

    def test_with_namespaces_shares_table(self) -> None:
        base = FieldRegistry()
        extended = base.with_namespaces([{"Slug": Slug}])
        assert extended is not base
        assert extended.namespaces == ({"Slug": Slug},)
        assert base.with_namespaces([]) is base


class TestQualified:
    def test_dotted(self) -> None:
        assert FieldRegistry().resolve("plume.fields.text.Email") is Email

    def test_colon(self) -> None:
        assert FieldRegistry().resolve("plume.fields.text:Email") is Email

    def test_sigil_with_qualified(self) -> None:
        assert FieldRegistry().resolve("+plume.fields.text.Email") is Email

    def test_not_a_field(self) -> None:
        with pytest.raises(UnknownFieldTypeError):
            FieldRegistry().resolve("plume.errors.PlumeError")


class TestRegister:
    def test_register(self) -> None:
        registry = FieldRegistry()
        registry.register(Slug)
        assert registry.resolve("Slug") is Slug

    def test_register_decorator_with_tag(self) -> None:
        registry = FieldRegistry()

        @registry.register(tag="Permalink")
        class Permalink(Text):
            pass

        assert registry.resolve("Permalink") is Permalink

    def test_register_does_not_leak(self) -> None:
        registry = FieldRegistry()
        registry.register(Slug)
        assert "Slug" not in FieldRegistry()

    def test_register_rejects_non_fields(self) -> None:
        with pytest.raises(ConfigurationError):
            FieldRegistry().register(dict)  # type: ignore[arg-type]
