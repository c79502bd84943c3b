"""Exceptions raised while loading, validating and saving configuration."""

from flow_deploy_core.exceptions import FlowError


class ConfigError(FlowError):
    """Base exception for configuration errors."""

    pass


class ConfigNotFoundError(ConfigError):
    """Raised when a configuration file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"configuration file not found: {path}")


class ParserNotFoundError(ConfigError):
    """Raised when no parser supports the file format."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"no parser found for configuration format: {extension!r}")


class InvalidSyntaxError(ConfigError):
    """Raised when a configuration file cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid configuration syntax in {path}: {reason}")


class InvalidSemanticsError(ConfigError):
    """Raised when a parsed configuration is inconsistent."""

    pass


class InvalidKeyTypeError(ConfigError):
    """Raised when an account key has an unknown type."""

    def __init__(self, key_type: str) -> None:
        self.key_type = key_type
        super().__init__(f'invalid key type: "{key_type}"')


class MissingContextFieldError(ConfigError):
    """Raised when an account key context lacks a required field."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f'"{field}" field is required')
