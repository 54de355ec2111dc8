"""Plume — declarative HTML form definition and validation.

Fields are declared once on a form class; each request is then
normalized, validated field by field, redisplayed on failure and
persisted through a model adapter on success.

Basic usage::

    from plume import Form

    class SignupForm(Form):
        field_list = [
            ("name", {"type": "Text", "required": True}),
            ("age", {"type": "Integer", "range_start": 13}),
        ]

    form = SignupForm()
    if form.process(params={"name": "Ann", "age": "34"}):
        save(form.values())
    else:
        redisplay(form.fif(), form.errors())

Params may be a plain mapping or any multi-dict exposing ``get_list`` or
``getlist`` (repeated keys become lists).
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "Check",
    "ConfigurationError",
    "Field",
    "FieldNotFoundError",
    "FieldRegistry",
    "Form",
    "FormConfig",
    "MemoryModel",
    "Messages",
    "ModelAdapter",
    "ObjectModel",
    "OptionsError",
    "PlumeError",
    "Transform",
    "UnknownFieldTypeError",
    "normalize_params",
    "register_field",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import plume`` fast while providing a clean top-level API.
    """
    if name == "Form":
        from plume.form import Form

        return Form

    if name == "FormConfig":
        from plume.config import FormConfig

        return FormConfig

    if name == "Field":
        from plume.fields.base import Field

        return Field

    if name in ("Check", "Transform"):
        import plume.actions

        return getattr(plume.actions, name)

    if name in ("FieldRegistry", "register_field"):
        import plume.registry

        return getattr(plume.registry, name)

    if name in ("MemoryModel", "ModelAdapter", "ObjectModel"):
        import plume.model

        return getattr(plume.model, name)

    if name == "Messages":
        from plume.i18n import Messages

        return Messages

    if name == "normalize_params":
        from plume.params import normalize_params

        return normalize_params

    if name in (
        "ConfigurationError",
        "FieldNotFoundError",
            "OptionsError",
        "PlumeError",
        "UnknownFieldTypeError",
    ):
        import plume.errors

        return getattr(plume.errors, name)

    msg = f"module 'plume' has no attribute {name!r}"
    raise AttributeError(msg)
