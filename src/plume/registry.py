"""Field type registry — type tags to field classes.

The built-in table is populated once at import time. Per-form registries
add extension namespaces on top of it without mutating the shared table.

Resolution rules for a tag:

- ``"Text"`` — the built-in library first, then each extension namespace
  in order.
- ``"+MetaText"`` — extension namespaces only; if none defines it, the
  tag must be a fully qualified reference.
- ``"myapp.fields.MetaText"`` / ``"myapp.fields:MetaText"`` — imported
  directly.

Unknown tags raise ``UnknownFieldTypeError`` when the schema is built.

An extension namespace is either a module path (its module-level field
classes are candidates) or a mapping of tag -> class.
"""

import importlib
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from plume.errors import ConfigurationError, UnknownFieldTypeError
from plume.fields.base import Field
from plume.fields.choice import Boolean, Checkbox, IntRange, Multiple, Select
from plume.fields.compound import Compound, DateTime
from plume.fields.date import Date
from plume.fields.numeric import Integer, Money, PosInteger
from plume.fields.subform import SubForm
from plume.fields.text import Email, Hidden, Password, Text, TextArea

type Namespace = str | Mapping[str, type[Field]]

BUILTIN_FIELDS: dict[str, type[Field]] = {
    cls.__name__: cls
    for cls in (
        Boolean,
        Checkbox,
        Compound,
        Date,
        DateTime,
        Email,
        Hidden,
        IntRange,
        Integer,
        Money,
        Multiple,
        Password,
        PosInteger,
        Select,
        SubForm,
        Text,
        TextArea,
    )
}


class FieldRegistry:
    """Lookup table from type tags to ``Field`` subclasses."""

    __slots__ = ("_builtins", "_lock", "_namespaces")

    def __init__(
        self,
        builtins: Mapping[str, type[Field]] | None = None,
        namespaces: Iterable[Namespace] = (),
    ) -> None:
        self._builtins: dict[str, type[Field]] = dict(BUILTIN_FIELDS if builtins is None else builtins)
        self._namespaces: tuple[Namespace, ...] = tuple(namespaces)
        self._lock = threading.Lock()

    @property
    def namespaces(self) -> tuple[Namespace, ...]:
        return self._namespaces

    def register(self, cls: type[Field] | None = None, *, tag: str | None = None) -> Any:
        """Add a field class to the built-in table. Usable as a decorator::

            @registry.register
            class Slug(Text): ...
        """

        def add(cls: type[Field]) -> type[Field]:
            if not (isinstance(cls, type) and issubclass(cls, Field)):
                msg = f"Only Field subclasses can be registered, got {cls!r}"
                raise ConfigurationError(msg)
            with self._lock:
                self._builtins[tag or cls.__name__] = cls
            return cls

        if cls is None:
            return add
        return add(cls)

    def with_namespaces(self, namespaces: Iterable[Namespace]) -> "FieldRegistry":
        """A registry sharing this table with extra extension namespaces."""
        extra = tuple(namespaces)
        if not extra:
            return self
        return FieldRegistry(self._builtins, (*self._namespaces, *extra))

    def resolve(self, tag: str) -> type[Field]:
        """Return the field class for *tag* or raise ``UnknownFieldTypeError``."""
        if not isinstance(tag, str) or not tag:
            msg = f"Field type must be a non-empty string, got {tag!r}"
            raise ConfigurationError(msg)

        if tag.startswith("+"):
            name = tag[1:]
            found = self._from_namespaces(name)
            if found is None and ("." in name or ":" in name):
                found = _import_qualified(name)
            if found is None:
                raise UnknownFieldTypeError(tag, self._searched())
            return found

        found = self._builtins.get(tag) or self._from_namespaces(tag)
        if found is None and ("." in tag or ":" in tag):
            found = _import_qualified(tag)
        if found is None:
            raise UnknownFieldTypeError(tag, ("builtins", *self._searched()))
        return found

    def __contains__(self, tag: str) -> bool:
        try:
            self.resolve(tag)
        except UnknownFieldTypeError:
            return False
        return True

    def _searched(self) -> tuple[str, ...]:
        return tuple(ns if isinstance(ns, str) else "<mapping>" for ns in self._namespaces)

    def _from_namespaces(self, name: str) -> type[Field] | None:
        for namespace in self._namespaces:
            if isinstance(namespace, Mapping):
                candidate = namespace.get(name)
            else:
                module = _import_namespace(namespace)
                candidate = getattr(module, name, None)
            if isinstance(candidate, type) and issubclass(candidate, Field):
                return candidate
        return None


def _import_namespace(module_name: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Field namespace {module_name!r} cannot be imported: {exc}"
        raise ConfigurationError(msg) from exc


def _import_qualified(reference: str) -> type[Field] | None:
    module_name, sep, attr = reference.partition(":")
    if not sep:
        module_name, _, attr = reference.rpartition(".")
    if not module_name or not attr:
        return None
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    candidate = getattr(module, attr, None)
    if isinstance(candidate, type) and issubclass(candidate, Field):
        return candidate
    return None


_default: FieldRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> FieldRegistry:
    """The process-wide registry of built-in field types."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = FieldRegistry()
    return _default


def register_field(cls: type[Field] | None = None, *, tag: str | None = None) -> Callable[..., Any] | type[Field]:
    """Register a field class in the default registry (decorator-friendly)."""
    return default_registry().register(cls, tag=tag)
