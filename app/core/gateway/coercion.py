import math
import re
from typing import Any, Union

# -----------------------------------------------------------------------------
# COERCION MODULE
# Purpose: turn loosely typed request values into typed bound parameters.
# Why: the gateway never knows a column's type; the database does the final
# conversion at bind time, we only pick the narrowest sensible Python type.
# -----------------------------------------------------------------------------

TypedParameter = Union[None, bool, int, float, str]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Only plain ASCII literals; Python's int()/float() also accept "1_000",
# non-ASCII digits and "inf", none of which should become numbers here.
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def coerce_value(value: Any) -> TypedParameter:
    """
    Coerce a raw payload value into a typed SQL parameter.

    Non-string values (None, bool, int, float) are returned unchanged.
    Strings are trimmed and then tried, in order, as a boolean, a signed
    64-bit integer and a finite float; anything else stays a string.

    Example:
        coerce_value(" 42 ")  -> 42
        coerce_value("3.14")  -> 3.14
        coerce_value("TRUE")  -> True
        coerce_value(" abc ") -> "abc"
    """
    if not isinstance(value, str):
        return value

    text = value.strip()
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if _INTEGER_RE.fullmatch(text):
        number = int(text)
        if INT64_MIN <= number <= INT64_MAX:
            return number
        # Too wide for a bigint, fall through to the float attempt

    if _FLOAT_RE.fullmatch(text):
        number = float(text)
        if math.isfinite(number):
            return number

    return text
