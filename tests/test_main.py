"""Tests for main application entrypoint."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from courier.core.cancellation import CancellationToken
from courier.core.errors import HTTPStatusError
from courier.core.formats import ResponseFormat
from courier.main import build_request, main, write_output
from courier.ports.http import WireRequest
from courier.ports.settings import RequestSettingsPort

__all__ = []


class RecordingTransport:
    """Transport double answering 200 with an empty body."""

    def __init__(self) -> None:
        self.requests: list[WireRequest] = []

    async def send(self, request: WireRequest, /) -> Mock:
        self.requests.append(request)
        response = Mock()
        response.status = 200
        response.headers = {}
        response.read = AsyncMock(return_value=b"")
        return response


def make_config(**overrides) -> Mock:
    config = Mock()
    config.url = "http://localhost:8000/animal"
    config.method = "GET"
    config.response_format = "bytes"
    config.timeout_sec = None
    config.bearer_token = None
    config.headers = {}
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


@pytest.mark.asyncio
async def test_build_request_applies_settings() -> None:
    """Settings should translate into method, headers and auth."""
    settings = RequestSettingsPort(
        url="http://localhost:8000/animal",
        method="POST",
        response_format=ResponseFormat.JSON.value,
        timeout_sec=3,
        bearer_token="secret",
        headers={"X-Unit-Test": "ok!"},
    )
    transport = RecordingTransport()

    request = build_request(settings, transport, CancellationToken())
    await request.execute()

    wire = transport.requests[0]
    assert request.url == "http://localhost:8000/animal"
    assert wire.method == "POST"
    assert wire.headers["X-Unit-Test"] == "ok!"
    assert wire.headers["Accept"] == "application/json"
    assert wire.headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_main_returns_1_on_configuration_error() -> None:
    """Main should stop before any request when settings are invalid."""
    with (
        patch("courier.main.configure_logs"),
        patch("courier.main.load_settings", side_effect=RuntimeError("Missing REQUEST_URL")),
        patch("courier.main.AiohttpTransport") as mock_transport_class,
    ):
        result = await main()

    assert result == 1
    mock_transport_class.assert_not_called()


@pytest.mark.asyncio
async def test_main_writes_bytes_on_success() -> None:
    """Main should execute into a bytearray and print it."""
    mock_request = Mock()
    mock_request.execute = AsyncMock()

    with (
        patch("courier.main.configure_logs"),
        patch("courier.main.load_settings", return_value=make_config()),
        patch("courier.main.AiohttpTransport") as mock_transport_class,
        patch("courier.main.make_cancel_on_sigterm"),
        patch("courier.main.build_request", return_value=mock_request),
        patch("courier.main.write_output") as mock_write,
    ):
        mock_transport = AsyncMock()
        mock_transport_class.return_value = mock_transport
        mock_transport.__aenter__.return_value = mock_transport

        result = await main()

    assert result == 0
    (destination,) = mock_request.execute.call_args.args
    assert isinstance(destination, bytearray)
    mock_write.assert_called_once_with(destination)


@pytest.mark.asyncio
async def test_main_uses_dict_for_structured_formats() -> None:
    """JSON and XML formats should decode into a dict."""
    mock_request = Mock()
    mock_request.execute = AsyncMock()

    with (
        patch("courier.main.configure_logs"),
        patch("courier.main.load_settings", return_value=make_config(response_format="json")),
        patch("courier.main.AiohttpTransport") as mock_transport_class,
        patch("courier.main.make_cancel_on_sigterm"),
        patch("courier.main.build_request", return_value=mock_request),
        patch("courier.main.write_output"),
    ):
        mock_transport = AsyncMock()
        mock_transport_class.return_value = mock_transport
        mock_transport.__aenter__.return_value = mock_transport

        await main()

    (destination,) = mock_request.execute.call_args.args
    assert destination == {}


@pytest.mark.asyncio
async def test_main_returns_1_on_request_error() -> None:
    """Request failures should be logged, not raised."""
    mock_request = Mock()
    mock_request.execute = AsyncMock(side_effect=HTTPStatusError(500, "zalgo"))

    with (
        patch("courier.main.configure_logs"),
        patch("courier.main.load_settings", return_value=make_config()),
        patch("courier.main.AiohttpTransport") as mock_transport_class,
        patch("courier.main.make_cancel_on_sigterm"),
        patch("courier.main.build_request", return_value=mock_request),
        patch("courier.main.write_output") as mock_write,
        patch("courier.main.logger") as mock_logger,
    ):
        mock_transport = AsyncMock()
        mock_transport_class.return_value = mock_transport
        mock_transport.__aenter__.return_value = mock_transport

        try:
            result = await main()
        except HTTPStatusError:
            pytest.fail("main() should not raise; request errors are caught internally")

    assert result == 1
    mock_logger.error.assert_called()
    mock_write.assert_not_called()


def test_write_output(capsys) -> None:
    """Decoded documents should be printed as JSON."""
    write_output({"animal": "platypus"})

    assert '"animal": "platypus"' in capsys.readouterr().out
