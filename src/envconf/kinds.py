"""Conversion rules for the kinds of values a registry can declare."""

import re
from datetime import timedelta
from fractions import Fraction
from typing import Any, Dict, Type, Union

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_INTEGER_RE = re.compile(
    r"""
    [+-]?
    (?:
        0[xX](?:_?[0-9a-fA-F])+     # hexadecimal
      | 0[oO](?:_?[0-7])+           # octal
      | 0[bB](?:_?[01])+            # binary
      | 0[0-7]*                     # legacy octal, and plain zero
      | [1-9][0-9]*                 # decimal
    )
    """,
    re.X,
)
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX_FLOAT_RE = re.compile(r"[+-]?0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+")
_FLOAT_SPECIAL_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.I)

_TRUE_LITERALS = {"1", "t", "true"}
_FALSE_LITERALS = {"0", "f", "false"}

# Nanoseconds per unit
_DURATION_UNITS = {
    "ns": 1,
    "us": 10**3,
    "\u00b5s": 10**3,  # micro sign
    "\u03bcs": 10**3,  # greek mu
    "ms": 10**6,
    "s": 10**9,
    "m": 60 * 10**9,
    "h": 60 * 60 * 10**9,
}
_DURATION_PART_RE = re.compile(r"([0-9]*(?:\.[0-9]*)?)([^0-9.]+)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration literal such as ``10s``, ``1h30m`` or ``-1.5ms``.

    Args:
        text: Signed sequence of decimal numbers, each followed by a unit
            (``ns``, ``us``/``µs``, ``ms``, ``s``, ``m``, ``h``). A bare ``0`` is also accepted.

    Returns:
        Parsed duration  # (sub-microsecond precision is truncated toward zero)

    Raises:
        ValueError: If the literal is malformed or out of range
    """
    body = text
    negative = False
    if body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]

    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration {text!r}")

    nanoseconds = Fraction(0)
    pos = 0
    while pos < len(body):
        match = _DURATION_PART_RE.match(body, pos)
        if match is None:
            raise ValueError(f"missing unit in duration {text!r}")
        number, unit = match.groups()
        if number in ("", "."):
            raise ValueError(f"invalid duration {text!r}")
        if unit not in _DURATION_UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        nanoseconds += Fraction(number) * _DURATION_UNITS[unit]
        pos = match.end()

    limit = -_INT64_MIN if negative else _INT64_MAX
    if nanoseconds > limit:
        raise ValueError(f"invalid duration {text!r}")

    result = timedelta(microseconds=int(nanoseconds) // 1000)
    return -result if negative else result


def format_duration(value: timedelta) -> str:
    """Format a duration the way it is written in the environment, e.g. ``1h30m0s``.

    Args:
        value: Duration to format

    Returns:
        Duration literal accepted by :func:`parse_duration`
    """
    micro = value // timedelta(microseconds=1)
    if micro == 0:
        return "0s"

    sign = "-" if micro < 0 else ""
    micro = abs(micro)

    if micro < 1000:
        return f"{sign}{micro}µs"
    if micro < 10**6:
        whole, frac = divmod(micro, 1000)
        return f"{sign}{whole}{_fraction(frac, 3)}ms"

    seconds, frac = divmod(micro, 10**6)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    text = f"{seconds}{_fraction(frac, 6)}s"
    if hours:
        text = f"{hours}h{minutes}m{text}"
    elif minutes:
        text = f"{minutes}m{text}"
    return sign + text


def _fraction(value: int, width: int) -> str:
    if not value:
        return ""
    return "." + f"{value:0{width}d}".rstrip("0")


class Kind:
    """Conversion rule for one kind of configuration value.

    Subclasses set ``name`` (as shown in help and error messages), ``python_type`` and ``zero``,
    and implement :meth:`convert`.
    """

    name: str = ""
    python_type: Type[Any] = object
    zero: Any = None

    def convert(self, raw: str) -> Any:
        """Convert raw environment text to a value of this kind.

        Raises:
            ValueError: If the text is not a valid literal of this kind
        """
        raise NotImplementedError

    def check_default(self, value: Any) -> Any:
        """Return ``value`` as a default for this kind, or raise TypeError if it does not fit."""
        if not isinstance(value, self.python_type):
            raise TypeError(
                f"Default for a {self.name} must be {self.python_type.__name__}, got {type(value).__name__}"
            )
        return value

    def is_zero(self, value: Any) -> bool:
        return value == self.zero

    def format(self, value: Any) -> str:
        return str(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StringKind(Kind):
    name = "string"
    python_type = str
    zero = ""

    def convert(self, raw: str) -> str:
        return raw


class IntegerKind(Kind):
    """Signed 64-bit integers, with ``0x``/``0o``/``0b`` and legacy ``0`` octal prefixes."""

    name = "integer"
    python_type = int
    zero = 0

    def convert(self, raw: str) -> int:
        if not _INTEGER_RE.fullmatch(raw):
            raise ValueError(f"invalid integer literal {raw!r}")

        digits = raw.lstrip("+-")
        if digits[:2].lower() in ("0x", "0o", "0b"):
            value = int(digits, 0)
        else:
            value = int(digits, 8 if digits.startswith("0") else 10)
        if raw.startswith("-"):
            value = -value

        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"integer {raw!r} out of range")
        return value

    def check_default(self, value: Any) -> int:
        if isinstance(value, bool):
            raise TypeError(f"Default for a {self.name} must be int, got bool")
        return super().check_default(value)


class FloatKind(Kind):
    """64-bit floats in decimal or hexadecimal (``0x1p-2``) notation."""

    name = "float"
    python_type = float
    zero = 0.0

    def convert(self, raw: str) -> float:
        if _FLOAT_SPECIAL_RE.fullmatch(raw):
            return float(raw)

        if _HEX_FLOAT_RE.fullmatch(raw):
            try:
                return float.fromhex(raw)
            except OverflowError:
                raise ValueError(f"float {raw!r} out of range")

        if not _FLOAT_RE.fullmatch(raw):
            raise ValueError(f"invalid float literal {raw!r}")
        value = float(raw)
        if value in (float("inf"), float("-inf")):
            raise ValueError(f"float {raw!r} out of range")
        return value

    def check_default(self, value: Any) -> float:
        # Widen integer defaults, e.g. default=1 for a float item
        if isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        return super().check_default(value)

    def format(self, value: float) -> str:
        return repr(value)


class BooleanKind(Kind):
    name = "boolean"
    python_type = bool
    zero = False

    def convert(self, raw: str) -> bool:
        lowered = raw.lower()
        if lowered in _TRUE_LITERALS:
            return True
        if lowered in _FALSE_LITERALS:
            return False
        raise ValueError(f"invalid boolean literal {raw!r}")

    def format(self, value: bool) -> str:
        return "true" if value else "false"


class DurationKind(Kind):
    name = "duration"
    python_type = timedelta
    zero = timedelta(0)

    def convert(self, raw: str) -> timedelta:
        return parse_duration(raw)

    def format(self, value: timedelta) -> str:
        return format_duration(value)


STRING = StringKind()
INTEGER = IntegerKind()
FLOAT = FloatKind()
BOOLEAN = BooleanKind()
DURATION = DurationKind()

KINDS: Dict[str, Kind] = {kind.name: kind for kind in (STRING, INTEGER, FLOAT, BOOLEAN, DURATION)}

_KINDS_BY_TYPE: Dict[type, Kind] = {kind.python_type: kind for kind in KINDS.values()}

KIND_SPEC = Union[str, Kind, type]


def resolve_kind(kind: KIND_SPEC) -> Kind:
    """Resolve a kind given by name, as a Kind instance, or as a Python type.

    Args:
        kind: ``"integer"``, ``INTEGER`` or ``int`` all resolve to the integer kind

    Returns:
        Matching Kind

    Raises:
        ValueError: If no kind has the given name
        TypeError: If no kind converts to the given type
    """
    if isinstance(kind, Kind):
        return kind
    if isinstance(kind, str):
        if kind not in KINDS:
            raise ValueError(f"Unknown kind '{kind}', expected one of: {', '.join(KINDS)}")
        return KINDS[kind]
    if isinstance(kind, type) and kind in _KINDS_BY_TYPE:
        return _KINDS_BY_TYPE[kind]
    raise TypeError(f"Unsupported configuration type: {kind!r}")
