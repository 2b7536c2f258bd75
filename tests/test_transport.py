"""Tests for notification transports."""

import os
import sys
from unittest.mock import AsyncMock, Mock

import discord
import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domains.taskmaster.transport import DiscordTransport, LogTransport, TelegramTransport, TransportError


class TestTelegramTransport:

    def test_requires_token_and_chat(self):
        with pytest.raises(ValueError):
            TelegramTransport("", "@channel")
        with pytest.raises(ValueError):
            TelegramTransport("token", None)

    @pytest.mark.asyncio
    async def test_send(self, mock_httpx_client):
        response = Mock()
        response.json.return_value = {"ok": True, "result": {"message_id": 1}}
        mock_httpx_client.post.return_value = response

        sent = await TelegramTransport("123:abc", "@reminders").send("hello")

        assert sent is True
        url = mock_httpx_client.post.call_args.args[0]
        assert url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert mock_httpx_client.post.call_args.kwargs["json"] == {"chat_id": "@reminders", "text": "hello"}

    @pytest.mark.asyncio
    async def test_not_ok_response(self, mock_httpx_client):
        response = Mock()
        response.json.return_value = {"ok": False, "description": "chat not found"}
        mock_httpx_client.post.return_value = response

        assert await TelegramTransport("123:abc", "@reminders").send("hello") is False

    @pytest.mark.asyncio
    async def test_http_error_raises_transport_error(self, mock_httpx_client):
        mock_httpx_client.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(TransportError):
            await TelegramTransport("123:abc", "@reminders").send("hello")


class TestDiscordTransport:

    @pytest.mark.asyncio
    async def test_send_to_cached_channel(self, mock_discord_client):
        sent = await DiscordTransport(mock_discord_client, 42).send("hello")

        assert sent is True
        mock_discord_client.get_channel.assert_called_once_with(42)
        mock_discord_client.get_channel.return_value.send.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_fetches_uncached_channel(self, mock_discord_client):
        channel = Mock(send=AsyncMock())
        mock_discord_client.get_channel.return_value = None
        mock_discord_client.fetch_channel.return_value = channel

        await DiscordTransport(mock_discord_client, 42).send("hello")

        mock_discord_client.fetch_channel.assert_awaited_once_with(42)
        channel.send.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_long_message_is_split(self, mock_discord_client):
        await DiscordTransport(mock_discord_client, 42).send("x" * 4500)

        channel = mock_discord_client.get_channel.return_value
        assert [len(c.args[0]) for c in channel.send.await_args_list] == [2000, 2000, 500]

    @pytest.mark.asyncio
    async def test_discord_error_raises_transport_error(self, mock_discord_client):
        mock_discord_client.get_channel.return_value.send.side_effect = discord.DiscordException("missing access")

        with pytest.raises(TransportError):
            await DiscordTransport(mock_discord_client, 42).send("hello")


@pytest.mark.asyncio
async def test_log_transport_accepts():
    assert await LogTransport().send("hello") is True
