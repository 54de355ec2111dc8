"""Plume exception hierarchy.

Shared across fields, the registry, the form and the model adapters so
every module raises and catches the same types.

Bad user input is never raised. It is recorded as a message on the
offending field. Everything here signals a broken schema or a missing
collaborator.
"""


class PlumeError(Exception):
    """Base for all plume-specific errors."""


class ConfigurationError(PlumeError):
    """Raised when a form definition or its collaborators are invalid.

    Typically raised while the field tree is being built, so a broken
    schema fails at construction rather than during a request.
    """


class UnknownFieldTypeError(ConfigurationError):
    """A field type tag did not resolve to a field class."""

    def __init__(self, tag: str, searched: tuple[str, ...] = ()) -> None:
        self.tag = tag
        self.searched = searched
        where = ", ".join(searched) if searched else "the built-in library"
        super().__init__(f"Unknown field type {tag!r} (searched: {where})")


class OptionsError(ConfigurationError):
    """An options list for an enumerated field is malformed."""


class FieldNotFoundError(ConfigurationError, LookupError):
    """A field lookup by (dotted) name failed where the caller required it."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Field {name!r} not found")

