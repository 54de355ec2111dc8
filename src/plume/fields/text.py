"""Text-like fields: Text, TextArea, Hidden, Email, Password."""

from typing import Any, ClassVar

from plume.fields.base import Field
from plume.rules import email


class Text(Field):
    """Single-line text with optional length limits."""

    settable: ClassVar[frozenset[str]] = Field.settable | {"min_length", "max_length", "size"}

    min_length: int | None = None
    max_length: int | None = None
    size: int | None = None

    def validate(self) -> bool:
        value = self.trimmed_input()
        if self.max_length is not None and len(str(value)) > self.max_length:
            return self.add_error(
                "Field must be no more than [_1] characters. You entered [_2]",
                self.max_length,
                len(str(value)),
            )
        if self.min_length is not None and len(str(value)) < self.min_length:
            return self.add_error("Field must be at least [_1] characters", self.min_length)
        return super().validate()


class TextArea(Text):
    settable: ClassVar[frozenset[str]] = Text.settable | {"cols", "rows"}

    widget = "textarea"
    cols: int = 40
    rows: int = 5


class Hidden(Text):
    widget = "hidden"


class Email(Text):
    apply = (email,)


class Password(Text):
    """Password input: never filled back into the form.

    ``ne_username`` names a parameter the password must not equal.
    With ``noupdate_if_empty`` a blank password is not an error and is
    left out of the persisted values (keep the stored password).
    """

    settable: ClassVar[frozenset[str]] = Text.settable | {"ne_username", "noupdate_if_empty"}

    widget = "password"
    password = True
    min_length = 6
    required_message = "Please enter a password in this field"
    ne_username: str | None = None
    noupdate_if_empty: bool = False

    apply = (
        {"check": r"^\S*$", "message": "Password can not contain spaces"},
        {
            "check": r"^\w*$",
            "message": "Password must be made up of letters, digits, and underscores",
        },
        {"check": lambda v: not str(v).isdigit(), "message": "Password must not be all digits"},
    )

    def __init__(self, name: str, **attrs: Any) -> None:
        super().__init__(name, **attrs)
        self._declared_noupdate = self.noupdate

    def validate_field(self) -> bool:
        self.noupdate = self._declared_noupdate
        ok = super().validate_field()
        if self.noupdate_if_empty and not self.has_input():
            self.noupdate = True
            self.clear_errors()
            return True
        return ok

    def validate(self) -> bool:
        if not super().validate():
            return False
        form = self.form
        if form is not None and self.ne_username:
            username = form.get_param(self.ne_username)
            if username and username == self.trimmed_input():
                return self.add_error("Password must not match [_1]", self.ne_username)
        return True
