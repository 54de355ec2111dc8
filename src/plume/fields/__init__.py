"""Built-in field library.

Every class here is registered in the default registry under its class
name, so schemas refer to them by tag (``"Text"``, ``"Integer"``, ...).

Imports are lazy: ``plume.tree`` and the compound fields depend on each
other, and ``import plume.fields.base`` must not pull in the whole library.
"""

_MODULES = {
    "Field": "plume.fields.base",
    "Boolean": "plume.fields.choice",
    "Checkbox": "plume.fields.choice",
    "IntRange": "plume.fields.choice",
    "Multiple": "plume.fields.choice",
    "Select": "plume.fields.choice",
    "normalize_options": "plume.fields.choice",
    "Compound": "plume.fields.compound",
    "DateTime": "plume.fields.compound",
    "Date": "plume.fields.date",
    "Integer": "plume.fields.numeric",
    "Money": "plume.fields.numeric",
    "PosInteger": "plume.fields.numeric",
    "SubForm": "plume.fields.subform",
    "Email": "plume.fields.text",
    "Hidden": "plume.fields.text",
    "Password": "plume.fields.text",
    "Text": "plume.fields.text",
    "TextArea": "plume.fields.text",
}

__all__ = sorted(_MODULES)


def __getattr__(name: str) -> object:
    module_name = _MODULES.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    import importlib

    return getattr(importlib.import_module(module_name), name)
