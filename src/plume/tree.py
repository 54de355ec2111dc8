"""Field trees — ordered field collections and the schema builder.

``FieldTree`` is the ordered child list owned by a ``Form`` or a compound
field. Nodes are either leaves or compounds (``field.compound``); a
compound owns its own ``FieldTree`` in ``field.children``.

``TreeBuilder`` turns a declarative schema into fields. A schema is any
of::

    {"name": "Text", "age": {"type": "Integer", "range_start": 0}}
    [("name", "Text"), ("age", {"type": "Integer"})]
    ["name", "Text", "age", {"type": "Integer"}]        # alternating

Specs may also be ``Field`` subclasses or ready-made ``Field`` instances.
Dotted names attach to a compound declared earlier::

    [("address", "Compound"), ("address.city", "Text")]

Display order is assigned depth-first as fields are encountered.
"""

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from plume.errors import ConfigurationError, FieldNotFoundError
from plume.fields.base import Field

if TYPE_CHECKING:
    from plume.fields.compound import Compound
    from plume.form import Form
    from plume.registry import FieldRegistry

DEFAULT_TYPE = "Text"


class FieldTree:
    """Ordered fields keyed by name, with dotted-path lookup."""

    __slots__ = ("_fields", "_index")

    def __init__(self) -> None:
        self._fields: list[Field] = []
        self._index: dict[str, Field] = {}

    def add(self, field: Field) -> None:
        """Append *field*; a field with the same name is replaced in place."""
        existing = self._index.get(field.name)
        if existing is not None:
            self._fields[self._fields.index(existing)] = field
        else:
            self._fields.append(field)
        self._index[field.name] = field

    def get(self, name: str) -> Field | None:
        """Direct child by plain name."""
        return self._index.get(name)

    def lookup(self, path: str, die: bool = False) -> Field | None:
        """Resolve ``"a.b.c"`` through intermediate compound fields.

        Returns ``None`` when not found, or raises ``FieldNotFoundError``
        if *die* is set.
        """
        tree: FieldTree | None = self
        field: Field | None = None
        for part in path.split("."):
            field = tree.get(part) if tree is not None else None
            if field is None:
                break
            tree = field.children if field.compound else None  # type: ignore[attr-defined]
        if field is None and die:
            raise FieldNotFoundError(path)
        return field

    def walk(self) -> Iterator[Field]:
        """Every field, depth-first, parents before their children."""
        for field in self._fields:
            yield field
            if field.compound:
                yield from field.children.walk()  # type: ignore[attr-defined]

    def sorted(self) -> list[Field]:
        """Direct children by display order."""
        return sorted(self._fields, key=lambda f: f.order)

    def names(self) -> list[str]:
        return [f.name for f in self._fields]

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        return f"FieldTree({self.names()!r})"


def iter_schema(schema: Any) -> list[tuple[str, Any]]:
    """Normalize a schema declaration into ``(name, spec)`` pairs."""
    if not schema:
        return []
    if isinstance(schema, Mapping):
        return list(schema.items())
    if not isinstance(schema, (list, tuple)):
        msg = f"Field schema must be a mapping or a list, got {type(schema).__name__}"
        raise ConfigurationError(msg)
    if all(isinstance(entry, tuple) and len(entry) == 2 for entry in schema):
        return [(name, spec) for name, spec in schema]
    if len(schema) % 2:
        msg = "Field list must contain an even number of elements (name, spec pairs)"
        raise ConfigurationError(msg)
    pairs = list(zip(schema[::2], schema[1::2]))
    for name, _ in pairs:
        if not isinstance(name, str):
            msg = f"Field list names must be strings, got {name!r}"
            raise ConfigurationError(msg)
    return pairs


class TreeBuilder:
    """Builds fields from schema declarations for one form (or standalone)."""

    def __init__(self, registry: "FieldRegistry | None" = None, form: "Form | None" = None) -> None:
        if registry is None:
            from plume.registry import default_registry

            registry = default_registry()
        self.registry = registry
        self.form = form
        self._counter = 0

    def next_order(self) -> int:
        if self.form is not None:
            order = self.form.field_counter
            self.form.field_counter = order + 1
            return order
        self._counter += 1
        return self._counter

    def build(self, schema: Any) -> FieldTree:
        tree = FieldTree()
        self.build_into(tree, schema)
        return tree

    def build_into(self, tree: FieldTree, schema: Any, parent: "Compound | None" = None) -> None:
        for name, spec in iter_schema(schema):
            if "." in name:
                head, _, tail = name.rpartition(".")
                container = tree.lookup(head)
                if container is None or not container.compound:
                    msg = f"Field {name!r} declared before its compound parent {head!r}"
                    raise ConfigurationError(msg)
                self.build_into(container.children, [(tail, spec)], parent=container)  # type: ignore[attr-defined]
                continue
            tree.add(self.make(name, spec, parent))

    def make(self, name: str, spec: Any, parent: "Compound | None" = None) -> Field:
        """Create one field from its spec and attach back-references."""
        if isinstance(spec, Field):
            field = spec
            if field.order == Field.order:
                field.order = self.next_order()
        else:
            cls, attrs, tag = self._resolve(spec)
            attrs.setdefault("order", self.next_order())
            if cls.compound:
                field = cls(name, builder=self, **attrs)
            else:
                field = cls(name, **attrs)
            field.type = tag
        field.form = self.form
        field.parent = parent
        return field

    def _resolve(self, spec: Any) -> tuple[type[Field], dict[str, Any], str]:
        if spec is None:
            return self.registry.resolve(DEFAULT_TYPE), {}, DEFAULT_TYPE
        if isinstance(spec, str):
            return self.registry.resolve(spec), {}, spec
        if isinstance(spec, type) and issubclass(spec, Field):
            return spec, {}, spec.__name__
        if isinstance(spec, Mapping):
            attrs = dict(spec)
            tag = attrs.pop("type", DEFAULT_TYPE)
            if isinstance(tag, type) and issubclass(tag, Field):
                return tag, attrs, tag.__name__
            return self.registry.resolve(tag), attrs, tag
        msg = f"Unsupported field spec {spec!r}"
        raise ConfigurationError(msg)
