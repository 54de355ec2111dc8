"""Date field — a single text input parsed with a strftime format."""

import datetime
from typing import Any, ClassVar

from plume.fields.base import Field


class Date(Field):
    """Calendar date; the value is a ``datetime.date``.

    ``date_format`` is used both to parse the input and to render the
    value back for redisplay.
    """

    settable: ClassVar[frozenset[str]] = Field.settable | {"date_format"}

    date_format: str = "%Y-%m-%d"

    def validate(self) -> bool:
        text = str(self.trimmed_input())
        try:
            self.value = datetime.datetime.strptime(text, self.date_format).date()
        except ValueError:
            return self.add_error("Not a valid date; expected format [_1]", self.date_format)
        return super().validate()

    def fif_value(self, value: Any) -> Any:
        if isinstance(value, datetime.date):
            return value.strftime(self.date_format)
        return value
