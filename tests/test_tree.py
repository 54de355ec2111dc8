"""Tests for plume.tree — schema declarations to field trees."""

import pytest

from plume.errors import ConfigurationError, FieldNotFoundError, UnknownFieldTypeError
from plume.fields.numeric import Integer
from plume.fields.text import Text
from plume.tree import FieldTree, TreeBuilder, iter_schema

# ---------------------------------------------------------------------------
# iter_schema
# ---------------------------------------------------------------------------


class TestIterSchema:
    def test_mapping(self) -> None:
        assert iter_schema({"a": "Text", "b": None}) == [("a", "Text"), ("b", None)]

    def test_pairs(self) -> None:
        assert iter_schema([("a", "Text")]) == [("a", "Text")]

    def test_alternating(self) -> None:
        assert iter_schema(["a", "Text", "b", {"type": "Integer"}]) == [
            ("a", "Text"),
            ("b", {"type": "Integer"}),
        ]

    def test_empty(self) -> None:
        assert iter_schema(None) == []
        assert iter_schema(()) == []

    def test_odd_alternating(self) -> None:
        with pytest.raises(ConfigurationError, match="even number"):
            iter_schema(["a", "Text", "b"])

    def test_non_string_names(self) -> None:
        with pytest.raises(ConfigurationError):
            iter_schema([1, "Text"])

    def test_wrong_container(self) -> None:
        with pytest.raises(ConfigurationError):
            iter_schema("a")


# ---------------------------------------------------------------------------
# TreeBuilder
# ---------------------------------------------------------------------------


class TestTreeBuilder:
    def test_build(self) -> None:
        tree = TreeBuilder().build([("name", "Text"), ("age", {"type": "Integer", "required": True})])
        assert tree.names() == ["name", "age"]
        age = tree.get("age")
        assert isinstance(age, Integer)
        assert age.required is True
        assert age.type == "Integer"

    def test_declaration_order(self) -> None:
        tree = TreeBuilder().build([("a", "Text"), ("b", "Text")])
        assert [f.order for f in tree] == [1, 2]

    def test_explicit_order(self) -> None:
        tree = TreeBuilder().build([("a", {"order": 5}), ("b", "Text")])
        assert [f.name for f in tree.sorted()] == ["b", "a"]

    def test_default_type(self) -> None:
        tree = TreeBuilder().build({"a": None, "b": {"required": True}})
        assert all(isinstance(f, Text) for f in tree)

    def test_class_and_instance_specs(self) -> None:
        ready = Text("b", max_length=3)
        tree = TreeBuilder().build([("a", Integer), ("b", ready)])
        assert isinstance(tree.get("a"), Integer)
        assert tree.get("b") is ready

    def test_redeclaration_replaces_in_place(self) -> None:
        tree = TreeBuilder().build([("a", "Text"), ("b", "Text"), ("a", "Integer")])
        assert tree.names() == ["a", "b"]
        assert isinstance(tree.get("a"), Integer)

    def test_dotted_names_attach_to_compound(self) -> None:
        tree = TreeBuilder().build([
            ("address", "Compound"),
            ("address.city", {"type": "Text", "required": True}),
        ])
        city = tree.lookup("address.city")
        assert city is not None
        assert city.full_name == "address.city"
        assert city.parent is tree.get("address")

    def test_dotted_before_compound(self) -> None:
        with pytest.raises(ConfigurationError, match="compound parent"):
            TreeBuilder().build([("address.city", "Text")])

    def test_dotted_under_leaf(self) -> None:
        with pytest.raises(ConfigurationError):
            TreeBuilder().build([("name", "Text"), ("name.first", "Text")])

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownFieldTypeError):
            TreeBuilder().build([("a", "Nope")])

    def test_unknown_attribute(self) -> None:
        with pytest.raises(ConfigurationError):
            TreeBuilder().build([("a", {"type": "Text", "colour": "red"})])

    def test_unsupported_spec(self) -> None:
        with pytest.raises(ConfigurationError):
            TreeBuilder().build([("a", 42)])


# ---------------------------------------------------------------------------
# FieldTree
# ---------------------------------------------------------------------------


def nested_tree() -> FieldTree:
    return TreeBuilder().build([
        ("a", "Text"),
        ("b", "Compound"),
        ("b.c", "Text"),
        ("b.d", "Compound"),
        ("b.d.e", "Text"),
        ("f", "Text"),
    ])


class TestFieldTree:
    def test_walk_is_depth_first(self) -> None:
        assert [f.full_name for f in nested_tree().walk()] == ["a", "b", "b.c", "b.d", "b.d.e", "f"]

    def test_order_follows_walk(self) -> None:
        orders = [f.order for f in nested_tree().walk()]
        assert orders == sorted(orders)

    def test_lookup_deep(self) -> None:
        assert nested_tree().lookup("b.d.e").name == "e"

    def test_lookup_missing(self) -> None:
        tree = nested_tree()
        assert tree.lookup("b.x") is None
        assert tree.lookup("a.c") is None

    def test_lookup_die(self) -> None:
        with pytest.raises(FieldNotFoundError) as exc_info:
            nested_tree().lookup("zzz", die=True)
        assert exc_info.value.name == "zzz"

    def test_not_found_is_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            nested_tree().lookup("zzz", die=True)

    def test_container_protocol(self) -> None:
        tree = nested_tree()
        assert len(tree) == 3
        assert "b" in tree
        assert "c" not in tree
        assert [f.name for f in tree] == ["a", "b", "f"]
