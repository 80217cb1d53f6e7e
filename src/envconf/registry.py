"""EnvConf registry module."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, TypeVar

from .exceptions import ConversionFailure, EnvParseError, UnparsedValueError
from .kinds import BOOLEAN, DURATION, FLOAT, INTEGER, KIND_SPEC, STRING, Kind, resolve_kind

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_NO_DEFAULT = object()

DEFAULT_HEADING = "Environment variables:"


class Value(Generic[T]):
    """Handle to a declared configuration value.

    The handle is returned as soon as the value is declared, but it only holds a value once
    :meth:`Registry.parse` has populated it. Until then :attr:`is_set` is False and reading
    the value raises :class:`UnparsedValueError`.
    """

    __slots__ = ("name", "_value", "_is_set")

    def __init__(self, name: str):
        self.name = name
        self._value: Optional[T] = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    @property
    def value(self) -> T:
        return self.get()

    def get(self) -> T:
        """Return the parsed value.

        Raises:
            UnparsedValueError: If the registry has not populated this value yet
        """
        if not self._is_set:
            raise UnparsedValueError(self.name)
        return self._value

    def _set(self, value: T) -> None:
        self._value = value
        self._is_set = True

    def __repr__(self) -> str:
        if not self._is_set:
            return f"Value({self.name!r}, <unset>)"
        return f"Value({self.name!r}, {self._value!r})"


@dataclass
class ConfigItem:
    """A declared configuration entry."""

    name: str
    kind: Kind
    required: bool
    default: Any
    help: str
    destination: Value = field(repr=False)
    raw: str = ""  # (environment text read by the latest parse, echoed in error messages)


class Registry:
    """Ordered collection of declared environment variables.

    Declare values with :meth:`declare` or the per-kind shorthands, call :meth:`parse` once at
    startup, then read the returned handles. Declaration order is the order values are parsed,
    reported and listed in :meth:`help`.

    Declaring the same name twice is allowed: each declaration gets its own handle and both are
    converted independently from the same environment value.

    The registry does no locking. Declaring and parsing are expected to happen on a single
    thread during startup; callers that share a registry across threads must synchronize.
    """

    def __init__(self, heading: str = DEFAULT_HEADING):
        """Initialize an empty registry.

        Args:
            heading: First line of the :meth:`help` listing
        """
        self.heading = heading
        self._items: List[ConfigItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ConfigItem]:
        return iter(self._items)

    def declare(
        self,
        kind: KIND_SPEC,
        name: str,
        required: bool = False,
        default: Any = _NO_DEFAULT,
        help: str = "",
    ) -> Value:
        """Declare an environment variable.

        Args:
            kind: Kind name (``"integer"``), Kind instance, or Python type (``int``)
            name: Environment variable to read
            required: If True, an unset or empty variable is reported as a failure
            default: Value used when the variable is unset or empty and not required  # (defaults to the kind's zero value)
            help: Description shown by :meth:`help`

        Returns:
            Handle that holds the value once :meth:`parse` has run

        Raises:
            ValueError: If the name is empty or the kind is unknown
            TypeError: If the default does not match the kind
        """
        if not name:
            raise ValueError("Environment variable name must not be empty")

        kind = resolve_kind(kind)
        default = kind.zero if default is _NO_DEFAULT else kind.check_default(default)

        if any(item.name == name for item in self._items):
            LOGGER.warning("Environment variable %s is declared more than once", name)

        destination: Value = Value(name)
        self._items.append(ConfigItem(name, kind, required, default, help, destination))
        return destination

    def string(self, name: str, required: bool = False, default: str = "", help: str = "") -> Value[str]:
        return self.declare(STRING, name, required, default, help)

    def integer(self, name: str, required: bool = False, default: int = 0, help: str = "") -> Value[int]:
        return self.declare(INTEGER, name, required, default, help)

    def float(self, name: str, required: bool = False, default: float = 0.0, help: str = "") -> Value[float]:
        return self.declare(FLOAT, name, required, default, help)

    def boolean(self, name: str, required: bool = False, default: bool = False, help: str = "") -> Value[bool]:
        return self.declare(BOOLEAN, name, required, default, help)

    def duration(
        self, name: str, required: bool = False, default: timedelta = timedelta(0), help: str = ""
    ) -> Value[timedelta]:
        return self.declare(DURATION, name, required, default, help)

    def parse(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Read, convert and store every declared value.

        Every item is processed even when earlier ones fail, so one call reports every
        misconfigured variable. A failed item keeps whatever its handle held before.

        Args:
            environ: Mapping to read variables from (defaults to os.environ)

        Raises:
            EnvParseError: If any value is missing while required or cannot be converted
        """
        if environ is None:
            environ = os.environ

        failures = []  # List[ConversionFailure] (in declaration order)
        for item in self._items:
            failure = self._process_item(item, environ)
            if failure is not None:
                failures.append(failure)

        LOGGER.debug("Parsed %d environment variables, %d failed", len(self._items), len(failures))
        if failures:
            raise EnvParseError(failures)

    def values(self) -> Dict[str, Any]:
        """Return parsed values keyed by variable name.

        Values that are not set are left out. For duplicated names the later declaration wins.
        """
        return {item.name: item.destination.get() for item in self._items if item.destination.is_set}

    def help(self) -> str:
        """Render the declared variables as a help listing.

        Returns:
            Heading line followed by two lines per variable: name with default, then help text
        """
        lines = [self.heading]
        for item in self._items:
            if item.kind.is_zero(item.default):
                default = "no default"
            else:
                default = f"'{item.kind.format(item.default)}'"
            lines.append(f"  {item.name}  default: {default}")
            # Multi-line help is folded so each variable keeps to two lines
            help_text = " ".join(line.strip() for line in item.help.splitlines())
            lines.append(f"       {help_text}")
        return "\n".join(lines)

    def _process_item(self, item: ConfigItem, environ: Mapping[str, str]) -> Optional[ConversionFailure]:
        """Resolve a single item from the environment into its handle.

        Args:
            item: Declared item
            environ: Mapping to read the variable from

        Returns:
            Failure record if the item could not be resolved, else None
        """
        item.raw = environ.get(item.name, "")

        if item.raw == "":
            if not item.required:
                LOGGER.debug("%s is not set, using default", item.name)
                item.destination._set(item.default)
                return None
            return ConversionFailure(item.name, item.kind.name, item.raw)

        try:
            value = item.kind.convert(item.raw)
        except ValueError:
            return ConversionFailure(item.name, item.kind.name, item.raw)

        item.destination._set(value)
        return None
