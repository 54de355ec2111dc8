"""Parameter normalization — flat submitted keys to nested structures.

HTML forms submit flat names. Compound fields address their children
with dots and repeated groups with bracketed indices::

    {"address.city": "Oslo", "tags[0]": "a", "tags[1]": "b"}

expands to::

    {"address": {"city": "Oslo"}, "tags": ["a", "b"]}

The expansion is purely syntactic; it knows nothing about field types.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from plume._internal.multimap import MultiParams, value_lister

logger = logging.getLogger("plume.params")

# One segment per match: a bare name, or a bracketed (possibly empty) index
_SEGMENT_RE = re.compile(r"([^.\[\]]+)|\[(\d*)\]")

type Segment = str | int | None  # None = "[]", append


def split_name(key: str) -> list[Segment] | None:
    """Split ``"a.b[0].c"`` into ``["a", "b", 0, "c"]``.

    Returns ``None`` when *key* is not a well-formed path (it is then
    treated as an opaque name).
    """
    segments: list[Segment] = []
    pos = 0
    expect_name = True
    for match in _SEGMENT_RE.finditer(key):
        start = match.start()
        if start != pos:
            # only a single dot may separate a name from what precedes it
            if key[pos:start] != "." or not segments:
                return None
            expect_name = True
        name, index = match.group(1), match.group(2)
        if name is not None:
            if not expect_name:
                return None
            segments.append(name)
        else:
            if not segments:
                return None
            segments.append(int(index) if index else None)
        pos = match.end()
        expect_name = False
    if pos != len(key) or not segments:
        return None
    return segments


def join_name(segments: list[Segment]) -> str:
    """Inverse of :func:`split_name`."""
    out = ""
    for segment in segments:
        if isinstance(segment, int):
            out += f"[{segment}]"
        elif segment is None:
            out += "[]"
        else:
            out += f".{segment}" if out else segment
    return out


def expand_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Expand dotted and bracketed keys into nested dicts and lists.

    Keys without dots or brackets pass through unchanged, so the expansion
    is idempotent on an already-flat simple mapping. When a scalar and a
    nested structure claim the same key, the nested structure wins.
    """
    result: dict[str, Any] = {}
    for key, value in params.items():
        segments = split_name(key) if isinstance(key, str) else None
        if segments is None or len(segments) == 1:
            _assign(result, key, value, key)
            continue
        container: Any = result
        for segment, following in zip(segments, segments[1:]):
            want_list = not isinstance(following, str)
            container = _descend(container, segment, want_list, key)
        _assign(container, segments[-1], value, key)
    return result


def _slot(container: Any, segment: Segment) -> Segment:
    if isinstance(container, list):
        if segment is None or not isinstance(segment, int):
            container.append(None)
            return len(container) - 1
        while len(container) <= segment:
            container.append(None)
    return segment


def _descend(container: Any, segment: Segment, want_list: bool, key: str) -> Any:
    segment = _slot(container, segment)
    existing = container.get(segment) if isinstance(container, dict) else container[segment]
    if isinstance(existing, list if want_list else dict):
        return existing
    if existing is not None:
        logger.warning("Parameter %r overrides conflicting value %r", key, existing)
    child: Any = [] if want_list else {}
    container[segment] = child
    return child


def _assign(container: Any, segment: Segment, value: Any, key: str) -> None:
    segment = _slot(container, segment)
    existing = container.get(segment) if isinstance(container, dict) else container[segment]
    if isinstance(existing, (dict, list)) and not isinstance(value, (dict, list)):
        logger.warning("Parameter %r ignored: nested parameters use the same name", key)
        return
    container[segment] = value


def collapse_params(nested: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested mapping back to dotted / bracketed keys.

    Lists of scalars are multi-valued inputs and stay as list values;
    lists containing mappings are addressed with bracketed indices.
    """
    flat: dict[str, Any] = {}
    for key, value in nested.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        _collapse_into(flat, name, value)
    return flat


def _collapse_into(flat: dict[str, Any], name: str, value: Any) -> None:
    if isinstance(value, Mapping):
        flat.update(collapse_params(value, name))
    elif isinstance(value, list) and any(isinstance(v, (Mapping, list)) for v in value):
        for index, item in enumerate(value):
            _collapse_into(flat, f"{name}[{index}]", item)
    else:
        flat[name] = value


def flatten_multi(data: Mapping[str, Any] | MultiParams) -> dict[str, Any]:
    """Turn a multi-valued mapping into plain params.

    A key with one value maps to that value, a key with several maps to
    the list of them. Plain mappings are copied as-is.
    """
    get_all = value_lister(data)
    if get_all is None:
        return dict(data)
    out: dict[str, Any] = {}
    for key in data:
        values = get_all(key)
        out[key] = values[0] if len(values) == 1 else values
    return out


def normalize_params(
    params: Mapping[str, Any] | MultiParams,
    prefix: str | None = None,
) -> dict[str, Any]:
    """Flatten, expand and (optionally) strip a leading namespace level.

    With *prefix*, only the sub-mapping beneath ``params[prefix]`` is
    returned — an empty dict if that key is absent.
    """
    expanded = expand_params(flatten_multi(params))
    if prefix is None:
        return expanded
    scoped = expanded.get(prefix)
    return dict(scoped) if isinstance(scoped, Mapping) else {}


def lookup_param(params: Mapping[str, Any], name: str) -> Any:
    """Value submitted for the dotted *name*, or ``None``.

    An exact flat key wins; otherwise the path is walked through the
    expanded structure, so ``"address.city"`` finds
    ``{"address": {"city": ...}}``.
    """
    if name in params:
        return params[name]
    segments = split_name(name)
    if segments is None:
        return None
    current: Any = params
    for segment in segments:
        if isinstance(segment, str) and isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(segment, int) and isinstance(current, list) and segment < len(current):
            current = current[segment]
        else:
            return None
    return current
