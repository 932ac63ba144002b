"""Tests for EmailClient – request shape, timeouts and error mapping."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from newsletter.services.email_client import EmailClient, EmailDeliveryError


def _client() -> EmailClient:
    return EmailClient(
        base_url="https://email.example.com/",
        sender="newsletter@example.com",
        authorization_token="secret-token",
        timeout_seconds=2.5,
    )


def _send(client: EmailClient) -> None:
    client.send_email(
        recipient="ursula@example.com",
        subject="Issue #1",
        html_body="<p>Hello</p>",
        text_body="Hello",
    )


class TestSendEmail:
    def test_sends_expected_request(self) -> None:
        with patch("newsletter.services.email_client.httpx.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client_cls.return_value.__enter__.return_value = mock_client
            mock_client.post.return_value = MagicMock(status_code=200)

            _send(_client())

        mock_client_cls.assert_called_once_with(timeout=2.5)
        mock_client.post.assert_called_once_with(
            "https://email.example.com/email",
            json={
                "From": "newsletter@example.com",
                "To": "ursula@example.com",
                "Subject": "Issue #1",
                "HtmlBody": "<p>Hello</p>",
                "TextBody": "Hello",
            },
            headers={"X-Postmark-Server-Token": "secret-token"},
        )

    def test_server_error_raises(self) -> None:
        with patch("newsletter.services.email_client.httpx.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client_cls.return_value.__enter__.return_value = mock_client
            mock_client.post.return_value = MagicMock(status_code=500)

            with pytest.raises(EmailDeliveryError) as exc_info:
                _send(_client())

        assert exc_info.value.kind == "http_status"
        assert exc_info.value.status_code == 500

    def test_timeout_raises(self) -> None:
        with patch("newsletter.services.email_client.httpx.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client_cls.return_value.__enter__.return_value = mock_client
            mock_client.post.side_effect = httpx.ReadTimeout("Read timed out")

            with pytest.raises(EmailDeliveryError) as exc_info:
                _send(_client())

        assert exc_info.value.kind == "timeout"

    def test_connection_error_raises(self) -> None:
        with patch("newsletter.services.email_client.httpx.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client_cls.return_value.__enter__.return_value = mock_client
            mock_client.post.side_effect = httpx.ConnectError("Connection refused")

            with pytest.raises(EmailDeliveryError) as exc_info:
                _send(_client())

        assert exc_info.value.kind == "network"
        assert exc_info.value.status_code is None

    def test_real_transport_round_trip(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"MessageID": "abc"})

        transport = httpx.MockTransport(handler)
        real_client_cls = httpx.Client
        with patch(
            "newsletter.services.email_client.httpx.Client",
            side_effect=lambda **kwargs: real_client_cls(transport=transport, **kwargs),
        ):
            _send(_client())

        assert len(seen) == 1
        assert seen[0].url.path == "/email"
        assert seen[0].headers["X-Postmark-Server-Token"] == "secret-token"
        assert seen[0].headers["content-type"] == "application/json"


class TestFromSettings:
    def test_uses_configuration(self) -> None:
        with patch("newsletter.services.email_client.settings") as mock_settings:
            mock_settings.EMAIL_BASE_URL = "https://api.example.com"
            mock_settings.EMAIL_SENDER = "from@example.com"
            mock_settings.EMAIL_AUTHORIZATION_TOKEN = "tok"
            mock_settings.email_timeout_seconds = 10.0
            client = EmailClient.from_settings()

        assert client.base_url == "https://api.example.com"
        assert client.sender == "from@example.com"
        assert client.authorization_token == "tok"
        assert client.timeout_seconds == 10.0
