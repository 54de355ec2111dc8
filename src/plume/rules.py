"""Built-in rules for field apply pipelines.

Each rule is a callable with the signature::

    def rule(value) -> str | tuple | None:
        '''Return an error message, or None if valid.'''

The message is a key for the form's ``Messages`` service. Parameterized
messages are returned as a tuple of key and arguments::

    def max_length(n: int) -> Rule:
        def check(value: str) -> RuleResult:
            if len(value) > n:
                return ("Must be at most [_1] characters", n)
            return None
        return check

Custom rules follow the same protocol — any callable matching
``(value) -> message | None`` can be placed in a field's ``apply`` list.
"""

import re
from collections.abc import Callable
from typing import Any

type RuleResult = str | tuple[Any, ...] | None
type Rule = Callable[[Any], RuleResult]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: Any) -> RuleResult:
    """Value must be present and non-blank."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return "This field is required"
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Rule:
    """String must be at most *n* characters."""

    def check(value: Any) -> RuleResult:
        if len(str(value)) > n:
            return ("Must be at most [_1] characters", n)
        return None

    return check


def min_length(n: int) -> Rule:
    """String must be at least *n* characters."""

    def check(value: Any) -> RuleResult:
        if len(str(value)) < n:
            return ("Must be at least [_1] characters", n)
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Basic email pattern; checks structure, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: Any) -> RuleResult:
    """Value must be a valid email address (basic format check)."""
    if not _EMAIL_RE.match(str(value)):
        return "Must be a valid email address"
    return None


# Basic URL pattern; checks scheme + host structure
_URL_RE = re.compile(r"^https?://[^\s/$.?#].\S*$", re.IGNORECASE)


def url(value: Any) -> RuleResult:
    """Value must be a valid URL (http/https)."""
    if not _URL_RE.match(str(value)):
        return "Must be a valid URL"
    return None


def matches(pattern: str, message: str | None = None) -> Rule:
    """Value must match the given regex pattern."""
    compiled = re.compile(pattern)

    def check(value: Any) -> RuleResult:
        if not compiled.match(str(value)):
            return message or ("Must match pattern: [_1]", pattern)
        return None

    return check


def no_spaces(value: Any) -> RuleResult:
    """Value must not contain whitespace."""
    if re.search(r"\s", str(value)):
        return "Must not contain spaces"
    return None


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: str) -> Rule:
    """Value must be one of the given choices."""
    allowed = frozenset(choices)

    def check(value: Any) -> RuleResult:
        if str(value) not in allowed:
            return ("Must be one of: [_1]", ", ".join(sorted(allowed)))
        return None

    return check


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def integer(value: Any) -> RuleResult:
    """Value must be a valid integer."""
    try:
        int(value)
    except (ValueError, TypeError):
        return "Must be a whole number"
    return None


def number(value: Any) -> RuleResult:
    """Value must be a valid number (int or float)."""
    try:
        float(value)
    except (ValueError, TypeError):
        return "Must be a number"
    return None


def at_least(minimum: float) -> Rule:
    """Numeric value must be >= *minimum*."""

    def check(value: Any) -> RuleResult:
        if number(value) is not None:
            return "Must be a number"
        if float(value) < minimum:
            return ("Must be at least [_1]", minimum)
        return None

    return check
