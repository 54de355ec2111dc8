"""Numeric fields: Integer, PosInteger, Money."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from plume.fields.base import Field

_INTEGER_RE = re.compile(r"^[-+]?\d+$")
_MONEY_STRIP_RE = re.compile(r"^[$€£¥]\s*|,")
_CENTS = Decimal("0.01")


class Integer(Field):
    """Whole number; the value is an ``int``."""

    def validate(self) -> bool:
        text = str(self.trimmed_input())
        if not _INTEGER_RE.match(text):
            return self.add_error("Value must be an integer")
        try:
            self.value = int(text)
        except ValueError:
            # longer than the interpreter's integer string limit
            return self.add_error("Value must be an integer")
        return super().validate()


class PosInteger(Integer):
    """Whole number >= 0."""

    def validate(self) -> bool:
        if not super().validate():
            return False
        if self.value < 0:
            self.clear_value()
            return self.add_error("Value must be a positive integer")
        return True


class Money(Field):
    """Currency amount rounded to cents; the value is a ``Decimal``."""

    def validate(self) -> bool:
        text = _MONEY_STRIP_RE.sub("", str(self.trimmed_input()))
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return self.add_error("Value cannot be converted to money")
        if not amount.is_finite():
            return self.add_error("Value cannot be converted to money")
        try:
            self.value = amount.quantize(_CENTS)
        except InvalidOperation:
            return self.add_error("Value cannot be converted to money")
        return super().validate()

    def fif_value(self, value: Any) -> Any:
        if isinstance(value, Decimal):
            return f"{value:.2f}"
        return value
