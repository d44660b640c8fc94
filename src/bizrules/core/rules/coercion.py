"""Value coercion used by condition comparisons.

Rule values arrive as loosely typed JSON. Equality and text operators compare
string forms, ordering operators compare numeric forms. The string and number
forms follow the conventions of the form layer that produced the values
(``true``/``false`` for booleans, shortest round-trip digits with ``1e+21``
style exponents, empty string counts as zero) so a rule behaves the same
wherever it is evaluated. Coercion never raises.
"""

import math
from typing import Any

NAN = float("nan")

_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}

# Integers at or beyond this magnitude are formatted like floats
_MAX_PLAIN_INT = 10**21


def _number_to_string(value: float) -> str:
    """Format a float the way the form layer prints numbers.

    Plain decimal notation is used while the decimal point position lies in
    (-6, 21], exponent notation (``1e-7``, ``1.5e+300``) otherwise.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    mantissa, _, exp = repr(abs(value)).partition("e")
    whole, _, frac = mantissa.partition(".")
    digits = whole + frac
    # value == 0.<digits> * 10**point
    point = len(whole) + int(exp or 0)

    stripped = digits.lstrip("0")
    point -= len(digits) - len(stripped)
    digits = stripped.rstrip("0")
    k = len(digits)

    if k <= point <= 21:
        return sign + digits + "0" * (point - k)
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits

    exponent = point - 1
    head = digits[0] + ("." + digits[1:] if k > 1 else "")
    return f"{sign}{head}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def to_string(value: Any) -> str:
    """Coerce a value to its comparison string.

    >>> to_string(True), to_string(18.0), to_string(None), to_string(["a", None, 2])
    ('true', '18', 'null', 'a,,2')
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if -_MAX_PLAIN_INT < value < _MAX_PLAIN_INT:
            return str(value)
        return _number_to_string(to_number(value))
    if isinstance(value, float):
        return _number_to_string(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else to_string(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def to_number(value: Any) -> float:
    """Coerce a value to a float, NaN when it has no numeric form.

    A missing value (``None``) is NaN so ordering comparisons against an
    unset field are always false. Integers beyond float range become
    infinities.
    """
    if value is None:
        return NAN
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    if isinstance(value, (list, tuple)):
        return to_number(to_string(value)) if value else 0.0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if text in _INFINITIES:
            return _INFINITIES[text]
        if "_" in text or text.lower().lstrip("+-") in ("inf", "infinity", "nan"):
            return NAN
        if text.lower().startswith(("0x", "0o", "0b")):
            try:
                return to_number(int(text, 0))
            except ValueError:
                return NAN
        try:
            return float(text)
        except ValueError:
            return NAN
    return NAN


def normalize_value(value: Any) -> Any:
    """Unwrap the option arrays produced by select widgets.

    A non-empty list yields the ``id`` (or else ``value``) of its first item
    when that item is an option object, otherwise the first item itself.
    Anything else is returned unchanged.
    """
    if isinstance(value, list) and value:
        first = value[0]
        if isinstance(first, dict):
            if "id" in first:
                return first["id"]
            if "value" in first:
                return first["value"]
        return first
    return value


def same_value(left: Any, right: Any) -> bool:
    """Strict equality: booleans never match numbers, 1 matches 1.0."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def contains_value(items: list[Any], value: Any) -> bool:
    """Membership test using strict equality."""
    return any(same_value(item, value) for item in items)


def is_blank(value: Any) -> bool:
    """True for missing values and whitespace-only string forms."""
    return value is None or to_string(value).strip() == ""
