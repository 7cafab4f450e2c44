"""Custom exceptions for proptree."""

from typing import Any, Dict, List, Optional


class PropTreeError(Exception):
    """Base exception for proptree errors."""

    pass


class ConversionError(PropTreeError):
    """Raised when a raw representation cannot be converted into a kind."""

    def __init__(self, value: Any, target: Any, reason: Optional[str] = None):
        self.value = value
        self.target = target
        message = f"cannot convert {value!r} ({type(value).__name__}) to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TypeMismatchError(PropTreeError):
    """Raised (and kept as a sticky error) when a write disagrees with a property's kind."""

    def __init__(self, name: str, expected: Any, actual: Any):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"will not store {actual} inside {expected} property '{name}'")


class ValidationError(PropTreeError):
    """Raised when a validator rejects the value of a property."""

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"validation failed for {name}: {cause}")


class CallbackError(PropTreeError):
    """Raised when one or more callbacks of a lifecycle phase fail."""

    def __init__(self, name: str, phase: Any, errors: List[BaseException]):
        self.name = name
        self.phase = phase
        self.errors = errors
        details = "\n".join(str(error) for error in errors)
        super().__init__(f"{len(errors)} {phase} callback(s) failed for {name}:\n{details}")


class FrozenStoreError(PropTreeError):
    """Attached to a property when a write is attempted on a frozen store."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"store is frozen, cannot change {name}")


class FlagParseError(PropTreeError):
    """Raised when command line arguments cannot be parsed."""

    pass


class ConfigFileError(PropTreeError):
    """Raised when a configuration file is missing or cannot be merged."""

    def __init__(self, path: Any, reason: Any):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to load {path}: {reason}")


class UnsupportedFileError(PropTreeError):
    """Raised for configuration files with an unknown extension."""

    def __init__(self, path: Any):
        self.path = path
        super().__init__(f"unsupported file extension: {path}")


class SourceNotFoundError(PropTreeError):
    """Raised when no source is registered for a property."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"source not found for {name}")


class PropertyError(PropTreeError):
    """Sticky errors accumulated on a single property."""

    def __init__(self, name: str, errors: List[BaseException]):
        self.name = name
        self.errors = list(errors)
        details = "\n".join(str(error) for error in self.errors)
        super().__init__(f"property '{name}' has errors:\n{details}")


class StorePanic(BaseException):
    """Intentional fatal condition.

    Raised on a write to a property with the panic-on-change rule, and on an
    attempt to resurrect a condemned property. Derives from BaseException so
    that generic ``except Exception`` handlers do not swallow it.
    """

    pass


class SourceFetchError(PropTreeError):
    """Raised when one or more sources fail to fetch."""

    def __init__(self, errors: Dict[str, BaseException]):
        self.errors = dict(errors)
        details = "\n".join(f"failed to fetch from source for {name}: {error}" for name, error in self.errors.items())
        super().__init__(details)


class UnknownPropertyError(PropTreeError, KeyError):
    """Raised when a name matches no property or alias."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no property named '{name}'")

    def __str__(self) -> str:
        return f"no property named '{self.name}'"
