"""Model adapter boundary — loading and persisting the backing object.

Forms never talk to storage directly. They call an adapter that
satisfies ``ModelAdapter``::

    form = UserForm(item_id=42, model=MemoryModel(records))
    if form.process(params=data):
        user = form.item          # the created or updated object

Two reference adapters are provided:

- ``ObjectModel`` — no store; reads attributes / keys, persists by
  mutating the object (or ``dataclasses.replace`` for frozen dataclasses).
- ``MemoryModel`` — a dict of records keyed by id, with ``unique`` checks.

A real ORM adapter implements the same five methods.
"""

import dataclasses
import logging
from collections.abc import Callable, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from plume.fields.base import Field
    from plume.form import Form

logger = logging.getLogger("plume.model")

_MISSING = object()


@runtime_checkable
class ModelAdapter(Protocol):
    """What a form needs from its persistence layer."""

    def load_object(self, item_id: Any) -> Any | None: ...

    def read_field_value(self, item: Any, accessor: str) -> Any: ...

    def persist(self, item: Any | None, values: Mapping[str, Any]) -> Any: ...

    def validate_model(self, form: "Form") -> bool: ...

    def lookup_options(self, field: "Field") -> Any: ...


def read_field_value(item: Any, accessor: str) -> Any:
    """Read *accessor* from *item*; ``None`` if absent.

    Mappings are read by key. Other objects by attribute (calling it if
    it is a method), then by item lookup.
    """
    if item is None:
        return None
    if isinstance(item, Mapping):
        return item.get(accessor)
    attr = getattr(item, accessor, _MISSING)
    if attr is not _MISSING:
        return attr() if callable(attr) and not isinstance(attr, type) else attr
    getitem = getattr(item, "__getitem__", None)
    if getitem is None:
        return None
    try:
        return getitem(accessor)
    except (KeyError, IndexError, TypeError):
        return None


class ObjectModel:
    """Adapter for plain objects, dataclasses and dicts without a store.

    Args:
        factory: Called with the validated values to create an item when
            the form has none (default ``dict``).
    """

    def __init__(self, factory: Callable[..., Any] = dict) -> None:
        self.factory = factory

    def load_object(self, item_id: Any) -> Any | None:
        return None

    def read_field_value(self, item: Any, accessor: str) -> Any:
        return read_field_value(item, accessor)

    def persist(self, item: Any | None, values: Mapping[str, Any]) -> Any:
        if item is None:
            logger.debug("create %s(%s)", getattr(self.factory, "__name__", self.factory), ", ".join(values))
            return self.factory(**values)
        logger.debug("update %s: %s", type(item).__name__, ", ".join(values))
        if isinstance(item, MutableMapping):
            item.update(values)
            return item
        if dataclasses.is_dataclass(item) and type(item).__dataclass_params__.frozen:  # type: ignore[attr-defined]
            names = {f.name for f in dataclasses.fields(item)}
            return dataclasses.replace(item, **{k: v for k, v in values.items() if k in names})
        for accessor, value in values.items():
            setattr(item, accessor, value)
        return item

    def validate_model(self, form: "Form") -> bool:
        """Check ``unique`` fields against the store."""
        ok = True
        for field in form.fields.walk():
            if not field.unique or not field.has_value or field.errors:
                continue
            if self.find_duplicates(field.accessor, field.value, form.item):
                field.add_error(field.unique_message, field.label)
                ok = False
        return ok

    def find_duplicates(self, accessor: str, value: Any, item: Any | None) -> bool:
        """True if another stored object has *value* for *accessor*."""
        return False

    def lookup_options(self, field: "Field") -> Any:
        return None


class MemoryModel(ObjectModel):
    """Dict-backed store keyed by id. Useful for tests and prototypes.

    Usage::

        model = MemoryModel({1: {"id": 1, "name": "alice"}})
        form = UserForm(item_id=1, model=model)
    """

    def __init__(
        self,
        records: Mapping[Any, Any] | None = None,
        *,
        id_field: str = "id",
        factory: Callable[..., Any] = dict,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(factory)
        self.records: dict[Any, Any] = dict(records or {})
        self.id_field = id_field
        self.options = dict(options or {})
        int_ids = [key for key in self.records if isinstance(key, int)]
        self._next_id = max(int_ids, default=0) + 1

    def load_object(self, item_id: Any) -> Any | None:
        return self.records.get(item_id)

    def persist(self, item: Any | None, values: Mapping[str, Any]) -> Any:
        if item is None:
            item_id = self._next_id
            self._next_id += 1
            created = super().persist(None, {self.id_field: item_id, **values})
            self.records[item_id] = created
            return created
        item_id = self.read_field_value(item, self.id_field)
        updated = super().persist(item, values)
        self.records[item_id] = updated
        return updated

    def find_duplicates(self, accessor: str, value: Any, item: Any | None) -> bool:
        own_id = self.read_field_value(item, self.id_field) if item is not None else _MISSING
        return any(
            record_id != own_id and self.read_field_value(record, accessor) == value
            for record_id, record in self.records.items()
        )

    def lookup_options(self, field: "Field") -> Any:
        return self.options.get(field.name)
