"""Message formatting for field errors.

Error messages are written as keys in Maketext notation::

    field.add_error("value must be between [_1] and [_2]", 1, 5)

``Messages`` looks the key up in an optional translation catalog, then
substitutes ``[_N]`` with the N-th argument. A key missing from the
catalog is its own translation, so English works without any catalog.

Forms receive a ``Messages`` instance explicitly (``Form(messages=...)``).
``default_messages(language)`` is the shared fallback used by forms built
without one (keyed by ``FormConfig.language``) and by fields used
standalone. ``register_catalog`` installs translations for a language.

Thread safety:
    ``Messages`` is immutable after construction. The shared instances are
    built under a lock and only read afterwards.
"""

import re
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

_PLACEHOLDER_RE = re.compile(r"\[_(\d+)\]")


class Messages:
    """Translate and format Maketext-style message keys.

    Usage::

        messages = Messages(
            {"This field is required": "Dieses Feld ist erforderlich"},
            language="de",
        )
        messages.format("value must be less than or equal to [_1]", 10)
    """

    __slots__ = ("_catalog", "language")

    def __init__(
        self,
        catalog: Mapping[str, str] | None = None,
        *,
        language: str = "en",
    ) -> None:
        self._catalog: Mapping[str, str] = MappingProxyType(dict(catalog or {}))
        self.language = language

    @property
    def catalog(self) -> Mapping[str, str]:
        """Read-only view of the translation catalog."""
        return self._catalog

    def format(self, key: str, *args: Any) -> str:
        """Translate *key* and substitute ``[_N]`` placeholders with *args*.

        Placeholders with no matching argument are left untouched.
        """
        template = self._catalog.get(key, key)
        if not args:
            return template

        def substitute(match: re.Match[str]) -> str:
            index = int(match.group(1)) - 1
            if 0 <= index < len(args):
                return str(args[index])
            return match.group(0)

        return _PLACEHOLDER_RE.sub(substitute, template)

    def with_catalog(self, catalog: Mapping[str, str]) -> "Messages":
        """Return a new instance whose catalog extends this one."""
        merged = {**self._catalog, **catalog}
        return Messages(merged, language=self.language)

    def __repr__(self) -> str:
        return f"Messages(language={self.language!r}, entries={len(self._catalog)})"


_catalogs: dict[str, dict[str, str]] = {}
_defaults: dict[str, Messages] = {}
_lock = threading.Lock()


def register_catalog(language: str, catalog: Mapping[str, str]) -> None:
    """Add *catalog* to the default translations for *language*.

    Forms whose ``FormConfig.language`` matches pick it up through
    :func:`default_messages`.
    """
    with _lock:
        _catalogs[language] = {**_catalogs.get(language, {}), **catalog}
        _defaults.pop(language, None)


def default_messages(language: str = "en") -> Messages:
    """Return the shared ``Messages`` for *language* (built on first use)."""
    messages = _defaults.get(language)
    if messages is None:
        with _lock:
            messages = _defaults.get(language)
            if messages is None:
                messages = Messages(_catalogs.get(language), language=language)
                _defaults[language] = messages
    return messages
