"""Configuration loading from environment variables."""

import json
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from courier.core.formats import ResponseFormat

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

# Formats whose decoded result the CLI can print
CLI_RESPONSE_FORMATS = (ResponseFormat.BYTES, ResponseFormat.JSON, ResponseFormat.XML)


class Settings(BaseModel):
    """Runtime configuration for the courier CLI.

    Attributes:
        url: Target URL of the request.
        method: HTTP method.
        timeout_sec: Optional timeout in seconds (must be positive).
        response_format: How the response is decoded.
        bearer_token: Optional bearer token.
        headers: Extra request headers.
    """

    url: str = Field(..., description="Target URL of the request.")
    method: str = Field(default="GET", min_length=1, description="HTTP method.")
    timeout_sec: float | None = Field(
        default=None,
        gt=0,
        description="Request timeout in seconds. If not set, the request never times out.",
    )
    response_format: str = Field(
        default=ResponseFormat.BYTES.value,
        description="One of bytes, json, xml.",
    )
    bearer_token: str | None = Field(default=None, description="Bearer token sent as Authorization.")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers.")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that the target is a valid HTTP(S) URL.

        Args:
            v: URL to validate.

        Returns:
            The validated URL.

        Raises:
            ValueError: If URL is invalid or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
            if url.scheme not in ("http", "https"):
                raise ValueError("Only http:// and https:// URLs allowed")
        except Exception as e:
            raise ValueError(f"Invalid request URL: {e}") from e
        return v

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("response_format")
    @classmethod
    def validate_response_format(cls, v: str) -> str:
        """Accept only the formats the CLI knows how to print.

        Raises:
            ValueError: If the value is not a known response format.
        """
        allowed = [f.value for f in CLI_RESPONSE_FORMATS]
        if v not in allowed:
            raise ValueError(f"response_format must be one of {', '.join(allowed)} (got: {v})")
        return v


def _parse_headers(raw: str) -> dict[str, str]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("REQUEST_HEADERS contains invalid JSON") from e
    if not isinstance(data, dict):
        raise ValueError("REQUEST_HEADERS must be a JSON object")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise ValueError("REQUEST_HEADERS values must be strings")
    return data


def load_settings() -> Settings:
    """Load and validate settings from environment (and a ``.env`` file).

    Required environment variables:
    - REQUEST_URL: Valid HTTP(S) URL.

    Optional:
    - REQUEST_METHOD: HTTP method (default GET).
    - REQUEST_TIMEOUT_SECONDS: Positive number of seconds.
    - RESPONSE_FORMAT: bytes (default), json or xml.
    - REQUEST_BEARER_TOKEN: Bearer token.
    - REQUEST_HEADERS: JSON object of extra headers.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing or invalid.
        ValueError: If configuration is invalid.
    """
    try:
        url = os.environ["REQUEST_URL"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    timeout_raw = os.getenv("REQUEST_TIMEOUT_SECONDS")
    timeout_sec: float | None = None
    if timeout_raw:
        try:
            timeout_sec = float(timeout_raw)
            if timeout_sec <= 0:
                raise ValueError("Must be positive")
        except ValueError as e:
            raise RuntimeError(
                f"REQUEST_TIMEOUT_SECONDS must be a positive number (got: {timeout_raw})"
            ) from e

    headers_raw = os.getenv("REQUEST_HEADERS")
    headers = _parse_headers(headers_raw) if headers_raw else {}

    settings = Settings(
        url=url,
        method=os.getenv("REQUEST_METHOD", "GET"),
        timeout_sec=timeout_sec,
        response_format=os.getenv("RESPONSE_FORMAT", ResponseFormat.BYTES.value),
        bearer_token=os.getenv("REQUEST_BEARER_TOKEN") or None,
        headers=headers,
    )

    logger.info(
        f"Courier configured: {settings.method} {settings.url}, "
        f"format={settings.response_format}, "
        f"timeout={settings.timeout_sec or '<none>'}, "
        f"headers={len(settings.headers)}"
    )

    return settings
