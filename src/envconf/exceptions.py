"""Custom exceptions for EnvConf."""

from dataclasses import dataclass


class EnvConfError(Exception):
    """Base exception for EnvConf errors."""

    pass


class UnparsedValueError(EnvConfError, LookupError):
    """Raised when a declared value is read before the registry populated it."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Value of '{name}' is not available, call Registry.parse() first")


@dataclass
class ConversionFailure:
    """Represents an environment value that could not be converted to its declared kind."""

    name: str
    kind: str
    raw_value: str

    def format_error_message(self) -> str:
        """Format error message for a failed conversion.

        Returns:
            Formatted error message string
        """
        return f"expected: {self.name} type: {self.kind} got: {self.raw_value}"


class EnvParseError(EnvConfError):
    """Raised when one or more declared values fail to parse."""

    def __init__(self, failures: list[ConversionFailure]):
        """Initialize environment parse error.

        Args:
            failures: List of conversion failures, in the order they were recorded
        """
        self.failures = failures
        error_messages = []

        for failure in failures:
            error_messages.append(failure.format_error_message())

        super().__init__("\n".join(error_messages))
