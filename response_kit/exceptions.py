"""Exceptions raised by the response kit."""


class ResponseKitError(Exception):
    """Base class for response kit errors."""


class ConfigurationError(ResponseKitError):
    """Raised at startup when the configuration snapshot is invalid."""


class ValidationFailed(ResponseKitError):
    """
    Field-level validation failure raised by application code.

    Always rendered as a 422 validation envelope, regardless of environment.

    Args:
        errors: Mapping of field name to its ordered error messages
        message: Optional summary message (defaults to "Validation failed")
    """

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        self.message = message or "Validation failed"
        super().__init__(self.message)
