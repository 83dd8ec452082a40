from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.email.sender import (
    CONFIRMATION_SUBJECT,
    _build_confirmation_html,
    _build_plain_text,
    send_confirmation_email,
)


def _mock_client(response: MagicMock | None = None, error: Exception | None = None) -> AsyncMock:
    client = AsyncMock()
    if error is not None:
        client.post.side_effect = error
    else:
        client.post.return_value = response
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


class TestTemplates:
    def test_html_mentions_product_and_waves(self) -> None:
        html = _build_confirmation_html("Sidekick")
        assert "founding access to Sidekick" in html
        assert "invite teams in waves" in html
        assert "The Sidekick Team" in html

    def test_plain_text_matches_html_copy(self) -> None:
        text = _build_plain_text("Acme")
        assert "founding access to Acme" in text
        assert "not instant access" in text


class TestSendConfirmationEmail:
    @pytest.mark.asyncio
    async def test_calls_resend_api(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"id": "email_123"}

        with patch("src.email.sender.httpx.AsyncClient") as mock_client_cls:
            client = _mock_client(response)
            mock_client_cls.return_value = client

            result = await send_confirmation_email(
                to="jane@x.com",
                resend_api_key="re_test_key",
                email_from="Sidekick <hello@sidekick.dev>",
                http_timeout_seconds=10.0,
            )

        assert result is True
        mock_client_cls.assert_called_once_with(timeout=10.0)
        call_args = client.post.call_args
        assert call_args[0][0] == "https://api.resend.com/emails"
        payload = call_args[1]["json"]
        assert payload["to"] == ["jane@x.com"]
        assert payload["from"] == "Sidekick <hello@sidekick.dev>"
        assert payload["subject"] == CONFIRMATION_SUBJECT
        assert "Sidekick" in payload["html"]
        assert call_args[1]["headers"]["Authorization"] == "Bearer re_test_key"

    @pytest.mark.asyncio
    async def test_accepted_message_without_json_body_is_success(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.json.side_effect = ValueError("Expecting value")

        with patch("src.email.sender.httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client(response)
            result = await send_confirmation_email(
                to="jane@x.com",
                resend_api_key="re_test_key",
                email_from="hello@sidekick.dev",
                http_timeout_seconds=10.0,
            )

        assert result is True

    @pytest.mark.asyncio
    async def test_returns_false_on_api_error(self) -> None:
        response = MagicMock()
        response.status_code = 403
        response.text = "domain not verified"

        with patch("src.email.sender.httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client(response)
            result = await send_confirmation_email(
                to="jane@x.com",
                resend_api_key="re_test_key",
                email_from="hello@sidekick.dev",
                http_timeout_seconds=10.0,
            )

        assert result is False

    @pytest.mark.asyncio
    async def test_returns_false_on_network_error(self) -> None:
        with patch("src.email.sender.httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client(error=httpx.ConnectError("connection refused"))
            with patch("src.email.sender.logger") as mock_logger:
                result = await send_confirmation_email(
                    to="jane@x.com",
                    resend_api_key="re_test_key",
                    email_from="hello@sidekick.dev",
                    http_timeout_seconds=10.0,
                )

        assert result is False
        mock_logger.exception.assert_called_once()

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self) -> None:
        with patch("src.email.sender.httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client(error=httpx.ReadTimeout("too slow"))
            result = await send_confirmation_email(
                to="jane@x.com",
                resend_api_key="re_test_key",
                email_from="hello@sidekick.dev",
                http_timeout_seconds=0.5,
            )

        assert result is False
