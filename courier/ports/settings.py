"""Settings port definition (DTO)."""

from dataclasses import dataclass, field

__all__ = ["RequestSettingsPort"]


@dataclass
class RequestSettingsPort:
    """Description of the one-shot request performed by the CLI.

    Decouples request building from concrete configuration sources,
    enabling easy testing and implementation swapping.

    Attributes:
        url: Target URL.
        method: HTTP method.
        response_format: Response format selector value.
        timeout_sec: Optional request timeout in seconds.
        bearer_token: Optional bearer token.
        headers: Extra request headers.
    """

    url: str
    method: str = "GET"
    response_format: str = "bytes"
    timeout_sec: float | None = None
    bearer_token: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
