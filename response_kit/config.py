"""Configuration management using pydantic-settings."""

from fnmatch import fnmatchcase
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import ResponseKind

DEFAULT_STATUS_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}

DEFAULT_DATA_STORE_ERRORS = [
    "sqlite3.Error",
    "sqlalchemy.exc.SQLAlchemyError",
    "psycopg.Error",
    "psycopg2.Error",
    "pymongo.errors.PyMongoError",
]


class ResponseKeys(BaseModel):
    """Key names used in the response envelope."""

    model_config = ConfigDict(frozen=True)

    success: str = Field(default="success", min_length=1)
    message: str = Field(default="message", min_length=1)
    data: str = Field(default="data", min_length=1)
    errors: str = Field(default="errors", min_length=1)
    meta: str = Field(default="meta", min_length=1)

    @model_validator(mode="after")
    def _validate_unique(self) -> "ResponseKeys":
        values = list(self.model_dump().values())
        if len(set(values)) != len(values):
            raise ValueError(f"Response keys must be distinct, got {values}")
        return self


class DebugSettings(BaseModel):
    """Controls how much error detail reaches clients."""

    model_config = ConfigDict(frozen=True)

    show_trace: bool = False
    hide_sql_errors: bool = True


class MiddlewareSettings(BaseModel):
    """Automatic response formatting middleware."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = True
    is_global: bool = Field(default=False, alias="global")
    exclude: list[str] = Field(default_factory=list)


class Settings(BaseSettings):
    """Read-only configuration snapshot for the response kit."""

    model_config = SettingsConfigDict(
        env_prefix="RESPONSE_KIT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Default page size for Page helpers
    per_page: int = Field(default=10, gt=0)

    keys: ResponseKeys = Field(default_factory=ResponseKeys)

    # Request ID Settings
    request_id_prefix: str = "LH-"
    request_id_header: str | None = "X-Request-ID"
    accept_request_id_header: bool = False

    default_message: str = "Success"

    debug: DebugSettings = Field(default_factory=DebugSettings)

    # Exception Settings
    max_trace_frames: int = Field(default=10, ge=0)
    exception_messages: dict[str, str] = Field(default_factory=dict)
    data_store_errors: list[str] = Field(default_factory=lambda: list(DEFAULT_DATA_STORE_ERRORS))

    status_messages: dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_STATUS_MESSAGES))

    middleware: MiddlewareSettings = Field(default_factory=MiddlewareSettings)

    # Formatter class per response kind; None keeps the built-in formatter
    formatters: dict[ResponseKind, type | None] = Field(
        default_factory=lambda: {kind: None for kind in ResponseKind}
    )

    def status_message(self, status_code: int, fallback: str = "An error occurred") -> str:
        """Return the configured message for a status code."""
        return self.status_messages.get(status_code, fallback)

    def is_route_excluded(self, path: str) -> bool:
        """
        Check whether a request path matches one of the excluded route patterns.

        Matching is case-sensitive and covers the whole path; leading slashes are ignored
        on both sides so "api/health" and "/api/health" name the same route.
        """
        route = path.strip("/") or "/"
        for pattern in self.middleware.exclude:
            if fnmatchcase(route, pattern.lstrip("/") or "/"):
                return True
        return False


def load_settings(**overrides) -> Settings:
    """
    Build a settings snapshot from the environment plus explicit overrides.

    Raises:
        ConfigurationError: if any value is missing or malformed
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid response kit configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
