"""Rule condition evaluation.

Submissions carry arbitrary JSON (``form_data``, ``user_info``). Rules test
fields of that JSON by dotted path with a small set of operators. Values are
compared with the loose coercions popup builders expect: a missing field is
distinct from ``null``, ``"5"`` is numerically 5, and comparisons on values
that cannot be coerced fail closed.
"""

import math
import re
from decimal import Decimal
from typing import Any, Mapping, Union

JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]


class _Missing:
    """Marker for a path that resolves to nothing (distinct from JSON null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

_NUMERIC_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_LIST_INDEX = re.compile(r"[0-9]+")


def resolve_path(data: JsonValue, path: str) -> JsonValue | _Missing:
    """Resolve ``a.b.0.c`` against nested mappings/lists. Returns MISSING when absent."""
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, list) and _LIST_INDEX.fullmatch(segment):
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_text(value: float) -> str:
    """Shortest round-trip digits, in plain notation from 1e-6 up to (not incl.) 1e21.

    Outside that range: ``1e-7``, ``1.5e+300``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    # Position of the decimal point relative to the first digit
    point = len(digits) + exponent

    if len(digits) <= point <= 21:
        return sign + digits + "0" * (point - len(digits))
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits
    mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
    power = point - 1
    return f"{sign}{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"


def to_text(value: Any) -> str:
    """String coercion used by the text operators."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _number_text(value)
    if isinstance(value, int):
        return str(value) if abs(value) < 10 ** 21 else _number_text(float(value))
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if item is None or item is MISSING else to_text(item) for item in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def to_number(value: Any) -> float:
    """Numeric coercion used by the ordering operators. Uncoercible values become NaN."""
    if value is MISSING:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        if _NUMERIC_LITERAL.match(text):
            return float(text)
        return math.nan
    if isinstance(value, list):
        return to_number(to_text(value))
    return math.nan


def is_truthy(value: Any) -> bool:
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    # Containers count as present even when empty
    return True


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-kind coercion: ``True != 1`` and ``"1" != 1``."""
    if left is MISSING or right is MISSING:
        return left is right
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    # Objects and arrays only equal themselves
    return left is right


def evaluate_field_condition(field_value: Any, condition: Any) -> bool:
    """Apply one ``{operator, value}`` condition. Unknown operators fail closed."""
    if not isinstance(condition, Mapping):
        return False
    operator = condition.get("operator")
    value = condition.get("value", MISSING)

    if operator == "equals":
        return strict_equals(field_value, value)
    if operator == "not_equals":
        return not strict_equals(field_value, value)
    if operator == "contains":
        return to_text(value) in to_text(field_value)
    if operator == "not_contains":
        return to_text(value) not in to_text(field_value)
    if operator == "starts_with":
        return to_text(field_value).startswith(to_text(value))
    if operator == "ends_with":
        return to_text(field_value).endswith(to_text(value))
    # NaN on either side makes both comparisons False
    if operator == "greater_than":
        return to_number(field_value) > to_number(value)
    if operator == "less_than":
        return to_number(field_value) < to_number(value)
    if operator == "is_empty":
        return not is_truthy(field_value)
    if operator == "is_not_empty":
        return is_truthy(field_value)
    return False


def evaluate_conditions(
    conditions: Mapping[str, Any] | None,
    form_data: Mapping[str, JsonValue],
    user_info: Mapping[str, JsonValue] | None,
) -> bool:
    """Return True when every field condition and every user condition holds.

    Absent dimensions are vacuously true. Pure function: no I/O, no state.
    """
    if not conditions:
        return True

    field_conditions = conditions.get("field_conditions") or {}
    for path, condition in field_conditions.items():
        if not evaluate_field_condition(resolve_path(form_data, path), condition):
            return False

    user_conditions = conditions.get("user_conditions") or {}
    user_info = user_info or {}
    for key, expected in user_conditions.items():
        if not strict_equals(user_info.get(key, MISSING), expected):
            return False

    return True
