"""Application entrypoint: perform one request described by the environment."""

import asyncio
import json
import logging
import sys
from typing import Any

from courier.adapters.driven.config.settings import load_settings
from courier.adapters.driven.http.client import AiohttpTransport
from courier.adapters.driven.logging.logging_config import configure_logs
from courier.adapters.driving.signals import make_cancel_on_sigterm
from courier.api import new_request
from courier.core.cancellation import CancellationToken
from courier.core.formats import ResponseFormat
from courier.core.request import Request
from courier.ports.http import HttpTransport
from courier.ports.settings import RequestSettingsPort

__all__ = ["build_request", "main", "run", "write_output"]

logger = logging.getLogger(__name__)


def build_request(
    settings: RequestSettingsPort,
    transport: HttpTransport,
    token: CancellationToken,
) -> Request:
    """Translate settings into a configured request.

    Args:
        settings: Request description.
        transport: Transport to send through.
        token: Cancellation token raced against the request.

    Returns:
        The configured request.
    """
    request = (
        new_request(settings.url, transport)
        .method(settings.method)
        .headers(settings.headers)
        .response_format(settings.response_format)
        .cancellation(token)
    )
    if settings.timeout_sec is not None:
        request.timeout(settings.timeout_sec)
    if settings.bearer_token:
        request.bearer_token(settings.bearer_token)
    return request


async def main() -> int:
    """Run one request and write its result to stdout.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Fire the cancellation token on SIGTERM/SIGINT.
    4. Execute the request and print the decoded body.

    Returns:
        0 on success, 1 on configuration or request failure.
    """
    configure_logs()

    try:
        config = load_settings()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check REQUEST_URL, REQUEST_TIMEOUT_SECONDS, RESPONSE_FORMAT "
            "and that REQUEST_HEADERS is a JSON object.",
            exc,
        )
        return 1

    # Wrap config into port so request building depends on the DTO only
    settings_port = RequestSettingsPort(
        url=config.url,
        method=config.method,
        response_format=config.response_format,
        timeout_sec=config.timeout_sec,
        bearer_token=config.bearer_token,
        headers=config.headers,
    )

    destination = bytearray() if settings_port.response_format == ResponseFormat.BYTES else {}
    async with AiohttpTransport() as transport:
        request = build_request(settings_port, transport, make_cancel_on_sigterm())
        try:
            await request.execute(destination)
        except Exception as e:
            logger.error(f"Request failed: {e}")
            return 1

    write_output(destination)
    return 0


def write_output(destination: bytearray | dict[str, Any]) -> None:
    """Write raw bytes as is, decoded documents as indented JSON."""
    if isinstance(destination, bytearray):
        sys.stdout.buffer.write(bytes(destination))
    else:
        sys.stdout.write(json.dumps(destination, indent=2) + "\n")
    sys.stdout.flush()


def run() -> None:
    """Console script entry point."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
