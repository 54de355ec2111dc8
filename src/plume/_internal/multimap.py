"""Multi-valued submissions accepted as form params.

Request objects expose repeated keys (checkboxes, multi-selects) through
a multi-dict. The normalizer only needs to iterate the keys and fetch
every value submitted under one of them, so both common spellings of
that accessor are recognised structurally.
"""

from collections.abc import Callable, Iterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MultiValueMapping(Protocol):
    """Keys plus ``get_list(key)`` returning every value for a key."""

    def __iter__(self) -> Iterator[str]: ...
    def get_list(self, key: str) -> list[Any]: ...


@runtime_checkable
class MultiDict(Protocol):
    """Keys plus ``getlist(key)``, the werkzeug / starlette spelling."""

    def __iter__(self) -> Iterator[str]: ...
    def getlist(self, key: str) -> list[Any]: ...


type MultiParams = MultiValueMapping | MultiDict


def value_lister(data: object) -> Callable[[str], list[Any]] | None:
    """The all-values accessor of *data*, or ``None`` for a plain mapping."""
    if isinstance(data, MultiValueMapping):
        return data.get_list
    if isinstance(data, MultiDict):
        return data.getlist
    return None
