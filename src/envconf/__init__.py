"""EnvConf - Typed Environment Variable Configuration.

Declare typed environment variables up front, parse them all in one pass, and get every
misconfigured variable reported at once.
"""
# ruff: noqa: F401

from .exceptions import (
    ConversionFailure,
    EnvConfError,
    EnvParseError,
    UnparsedValueError,
)
from .kinds import format_duration, parse_duration
from .parser import EnvConfParser
from .registry import ConfigItem, Registry, Value
from .settings import declare_settings

__version__ = "0.1.0"
