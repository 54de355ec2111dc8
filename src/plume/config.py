"""Form configuration.

FormConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

import dataclasses
import random
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class FormConfig:
    """Form configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = FormConfig(name="signup", html_prefix=True)
    """

    # Identity
    name: str | None = None  # None -> "form" + random number, chosen per Form instance

    # Parameter naming: fields are submitted as "<name>.<field>" when True
    html_prefix: bool = False

    # Field type lookup: modules searched after the built-in library
    field_namespaces: tuple[str, ...] = ()

    # Messages
    language: str = "en"

    # Debugging: dump every field at DEBUG level after process()
    verbose: bool = False

    # Rendering hints (not used by validation)
    http_method: str = "post"
    action: str | None = None

    def replace(self, **changes: Any) -> "FormConfig":
        """Return a copy with *changes* applied."""
        return dataclasses.replace(self, **changes)

    def form_name(self) -> str:
        """The configured name, or a freshly generated one."""
        if self.name:
            return self.name
        return f"form{random.randint(0, 999)}"
